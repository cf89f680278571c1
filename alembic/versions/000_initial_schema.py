"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all initial tables."""

    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("admin", "attendant", name="userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("attendant_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("category", sa.Enum("vehicle", "carpet", name="bookingcategory"), nullable=False),
        sa.Column(
            "payment_method",
            sa.Enum("attendant_cash", "admin_cash", "admin_till", name="paymentmethod"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum("pending", "in progress", "completed", "cancelled", name="bookingstatus"),
            nullable=False,
        ),
        sa.Column("attendant_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("car_registration_number", sa.String(20), nullable=True),
        sa.Column("service_type", sa.Enum("full wash", "half wash", name="servicetype"), nullable=True),
        sa.Column("vehicle_type", sa.String(50), nullable=True),
        sa.Column("phone_number", sa.String(30), nullable=True),
        sa.Column("color", sa.String(50), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_bookings_attendant_id", "bookings", ["attendant_id"])
    op.create_index("ix_bookings_category", "bookings", ["category"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_attendant_paid", "bookings", ["attendant_paid"])
    op.create_index("ix_bookings_car_registration_number", "bookings", ["car_registration_number"])
    op.create_index("ix_bookings_phone_number", "bookings", ["phone_number"])

    # Attendant wallets
    op.create_table(
        "wallets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("attendant_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("balance", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_earnings", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_commission", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_company_share", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("company_debt", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cycle", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_wallets_is_paid", "wallets", ["is_paid"])

    # Tips and deductions
    op.create_table(
        "wallet_adjustments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("wallet_id", sa.Integer(), sa.ForeignKey("wallets.id"), nullable=False),
        sa.Column("type", sa.Enum("tip", "deduction", name="adjustmenttype"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("reason", sa.String(500), nullable=True),
        sa.Column("adjusted_by", sa.String(100), nullable=True),
        sa.Column("adjusted_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("cycle", sa.Integer(), nullable=False),
        sa.Column("adjusted_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_wallet_adjustments_wallet_id", "wallet_adjustments", ["wallet_id"])
    op.create_index("ix_wallet_adjustments_cycle", "wallet_adjustments", ["cycle"])

    # Wallet trail
    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("wallet_id", sa.Integer(), sa.ForeignKey("wallets.id"), nullable=False),
        sa.Column("attendant_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "booking_id",
            sa.Integer(),
            sa.ForeignKey("bookings.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "entry_type",
            sa.Enum(
                "booking_applied",
                "booking_reversed",
                "adjustment",
                "settlement",
                "rebuild",
                name="ledgerentrytype",
            ),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("balance_delta", sa.Numeric(12, 2), nullable=False),
        sa.Column("debt_delta", sa.Numeric(12, 2), nullable=False),
        sa.Column("balance_after", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("note", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_ledger_entries_wallet_id", "ledger_entries", ["wallet_id"])
    op.create_index("ix_ledger_entries_attendant_id", "ledger_entries", ["attendant_id"])
    op.create_index("ix_ledger_entries_booking_id", "ledger_entries", ["booking_id"])
    op.create_index("ix_ledger_entries_created_at", "ledger_entries", ["created_at"])

    # Company wallet (single row)
    op.create_table(
        "system_wallet",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("total_revenue", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_company_share", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_attendant_payments", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_admin_collections", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_attendant_collections", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("current_balance", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
    )

    # Audit logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "action",
            sa.Enum(
                "login",
                "logout",
                "create_attendant",
                "create_booking",
                "update_booking",
                "delete_booking",
                "settle_wallet",
                "rebuild_wallet",
                "adjust_wallet",
                name="auditaction",
            ),
            nullable=False,
        ),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("audit_logs")
    op.drop_table("system_wallet")
    op.drop_table("ledger_entries")
    op.drop_table("wallet_adjustments")
    op.drop_table("wallets")
    op.drop_table("bookings")
    op.drop_table("users")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS auditaction")
    op.execute("DROP TYPE IF EXISTS ledgerentrytype")
    op.execute("DROP TYPE IF EXISTS adjustmenttype")
    op.execute("DROP TYPE IF EXISTS servicetype")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
    op.execute("DROP TYPE IF EXISTS paymentmethod")
    op.execute("DROP TYPE IF EXISTS bookingcategory")
    op.execute("DROP TYPE IF EXISTS userrole")
