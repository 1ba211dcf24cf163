# backend/shopdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- String relationship targets ("Aircraft", "WorkOrder", ...) resolve no
  matter which app is imported first.

The actual model classes are kept in shopdb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models          # shops / users
from .apps.customers import models as customers_models        # aircraft owners
from .apps.fleet import models as fleet_models                # aircraft
from .apps.work import models as work_models                  # work orders + line items
from .apps.timesheets import models as timesheets_models      # booked hours
from .apps.audit import models as audit_models                # audit trail

__all__ = [
    "accounts_models",
    "customers_models",
    "fleet_models",
    "work_models",
    "timesheets_models",
    "audit_models",
]
