from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_TIME_COST", "1")

from shopdb.database import Base  # noqa: E402
from shopdb.apps.accounts import models as account_models  # noqa: E402
from shopdb.apps.customers import models as customer_models  # noqa: E402
from shopdb.apps.fleet import models as fleet_models  # noqa: E402
from shopdb.apps.work import models as work_models  # noqa: E402
from shopdb.apps.timesheets import models as timesheet_models  # noqa: E402
from shopdb.apps.audit import models as audit_models  # noqa: E402


@pytest.fixture()
def db_session():
    # One shared connection so the in-memory database survives across
    # sessions and the TestClient's worker thread.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(
        bind=engine,
        tables=[
            account_models.Shop.__table__,
            account_models.User.__table__,
            customer_models.Customer.__table__,
            fleet_models.Aircraft.__table__,
            work_models.WorkOrder.__table__,
            work_models.WorkOrderItem.__table__,
            timesheet_models.TimesheetEntry.__table__,
            audit_models.AuditEvent.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
