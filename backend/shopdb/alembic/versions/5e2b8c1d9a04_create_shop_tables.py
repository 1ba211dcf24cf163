"""
Create the shop, fleet, work-order, timesheet and audit tables.

Revision ID: 5e2b8c1d9a04
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5e2b8c1d9a04"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


USER_ROLES = ("admin", "manager", "mechanic", "inspector", "viewer")
WORK_ORDER_STATUSES = (
    "draft",
    "open",
    "in_progress",
    "pending_parts",
    "completed",
    "invoiced",
    "cancelled",
)
ITEM_TYPES = ("labor", "parts", "subcontract")
TIMESHEET_STATUSES = ("pending", "approved", "rejected")


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "shops",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=64), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("faa_repair_station", sa.String(length=32), nullable=True),
        sa.Column("time_zone", sa.String(length=64), nullable=True),
        sa.Column("labor_rate", sa.Numeric(10, 2), nullable=False, server_default="85.00"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_shops_slug", "shops", ["slug"], unique=True)
    op.create_index("ix_shops_code", "shops", ["code"], unique=True)
    op.create_index("ix_shops_is_active", "shops", ["is_active"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "shop_id",
            sa.String(length=36),
            sa.ForeignKey("shops.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=128), nullable=False),
        sa.Column("last_name", sa.String(length=128), nullable=False),
        sa.Column("role", sa.Enum(*USER_ROLES, name="user_role_enum"), nullable=False),
        sa.Column("certificate_number", sa.String(length=64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("shop_id", "email", name="uq_users_shop_email"),
    )
    op.create_index("ix_users_shop_id", "users", ["shop_id"])
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_is_active", "users", ["is_active"])
    op.create_index("idx_users_role_active", "users", ["role", "is_active"])

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "shop_id",
            sa.String(length=36),
            sa.ForeignKey("shops.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("contact_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("state", sa.String(length=64), nullable=True),
        sa.Column("zip_code", sa.String(length=16), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_customers_shop_id", "customers", ["shop_id"])
    op.create_index("ix_customers_name", "customers", ["name"])

    op.create_table(
        "aircraft",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "shop_id",
            sa.String(length=36),
            sa.ForeignKey("shops.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("registration", sa.String(length=16), nullable=False),
        sa.Column("make", sa.String(length=64), nullable=True),
        sa.Column("model", sa.String(length=64), nullable=True),
        sa.Column("serial_number", sa.String(length=64), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column(
            "customer_id",
            sa.Integer(),
            sa.ForeignKey("customers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("total_time", sa.Numeric(10, 1), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("shop_id", "registration", name="uq_aircraft_shop_registration"),
    )
    op.create_index("ix_aircraft_shop_id", "aircraft", ["shop_id"])
    op.create_index("ix_aircraft_registration", "aircraft", ["registration"])

    op.create_table(
        "work_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "shop_id",
            sa.String(length=36),
            sa.ForeignKey("shops.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("wo_number", sa.String(length=32), nullable=False),
        sa.Column(
            "aircraft_id",
            sa.Integer(),
            sa.ForeignKey("aircraft.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "customer_id",
            sa.Integer(),
            sa.ForeignKey("customers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("work_type", sa.String(length=64), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "status",
            sa.Enum(*WORK_ORDER_STATUSES, name="work_order_status_enum"),
            nullable=False,
            server_default="draft",
        ),
        sa.Column("scheduled_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scheduled_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hobbs_in", sa.Numeric(10, 1), nullable=True),
        sa.Column("hobbs_out", sa.Numeric(10, 1), nullable=True),
        sa.Column("tach_in", sa.Numeric(10, 1), nullable=True),
        sa.Column("tach_out", sa.Numeric(10, 1), nullable=True),
        sa.Column("estimated_labor", sa.Numeric(12, 2), nullable=True),
        sa.Column("estimated_parts", sa.Numeric(12, 2), nullable=True),
        sa.Column("assigned_mechanic", sa.String(length=255), nullable=True),
        sa.Column("inspector", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column(
            "created_by_user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "updated_by_user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.UniqueConstraint("shop_id", "wo_number", name="uq_work_orders_shop_wo_number"),
    )
    op.create_index("ix_work_orders_shop_id", "work_orders", ["shop_id"])
    op.create_index("ix_work_orders_wo_number", "work_orders", ["wo_number"])
    op.create_index("ix_work_orders_aircraft_id", "work_orders", ["aircraft_id"])
    op.create_index("ix_work_orders_customer_id", "work_orders", ["customer_id"])
    op.create_index("ix_work_orders_status", "work_orders", ["status"])

    op.create_table(
        "work_order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "work_order_id",
            sa.Integer(),
            sa.ForeignKey("work_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "item_type",
            sa.Enum(*ITEM_TYPES, name="work_order_item_type_enum"),
            nullable=False,
        ),
        sa.Column("description", sa.String(length=512), nullable=False),
        sa.Column("part_number", sa.String(length=64), nullable=True),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("hours", sa.Numeric(6, 2), nullable=True),
        sa.Column("rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_work_order_items_work_order_id", "work_order_items", ["work_order_id"])

    op.create_table(
        "timesheet_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "shop_id",
            sa.String(length=36),
            sa.ForeignKey("shops.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "work_order_id",
            sa.Integer(),
            sa.ForeignKey("work_orders.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("task_type", sa.String(length=64), nullable=True),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=8), nullable=True),
        sa.Column("end_time", sa.String(length=8), nullable=True),
        sa.Column("hours", sa.Numeric(6, 2), nullable=False),
        sa.Column("is_billable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*TIMESHEET_STATUSES, name="timesheet_status_enum"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "approved_by_user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_timesheet_entries_shop_id", "timesheet_entries", ["shop_id"])
    op.create_index("ix_timesheet_entries_user_id", "timesheet_entries", ["user_id"])
    op.create_index("ix_timesheet_entries_work_order_id", "timesheet_entries", ["work_order_id"])
    op.create_index("ix_timesheet_entries_work_date", "timesheet_entries", ["work_date"])
    op.create_index("ix_timesheet_entries_status", "timesheet_entries", ["status"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "shop_id",
            sa.String(length=36),
            sa.ForeignKey("shops.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column(
            "actor_user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("before", sa.JSON(), nullable=True),
        sa.Column("after", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
    )
    op.create_index("ix_audit_events_shop_id", "audit_events", ["shop_id"])
    op.create_index(
        "ix_audit_events_shop_entity", "audit_events", ["shop_id", "entity_type", "entity_id"]
    )
    op.create_index("ix_audit_events_shop_time", "audit_events", ["shop_id", "occurred_at"])
    op.create_index("ix_audit_events_occurred_at", "audit_events", ["occurred_at"])
    op.create_index("ix_audit_events_actor_user_id", "audit_events", ["actor_user_id"])


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("timesheet_entries")
    op.drop_table("work_order_items")
    op.drop_table("work_orders")
    op.drop_table("aircraft")
    op.drop_table("customers")
    op.drop_table("users")
    op.drop_table("shops")
    for enum_name in (
        "timesheet_status_enum",
        "work_order_item_type_enum",
        "work_order_status_enum",
        "user_role_enum",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
