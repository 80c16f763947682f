"""Initial schema: businesses, users, catalog, expenses, inventory, invitations and audit trail.

- businesses
- users (optional membership in one business)
- categories (value unique per business), suppliers
- expenses
- warehouses, warehouse_items, transactions
- invitations
- audit_logs
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1d9e52a7b0"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _business_fk(table: str) -> list:
    return [
        sa.Column("business_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            ["business_id"], ["businesses.id"], ondelete="CASCADE", name=f"fk_{table}_business_id_businesses"
        ),
    ]


def upgrade() -> None:
    # Businesses (tenants)
    op.create_table(
        "businesses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("currency", sa.Text(), server_default="USD", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_businesses"),
    )

    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("hashed_password", sa.Text(), nullable=True),
        sa.Column("business_id", sa.Uuid(), nullable=True),
        sa.Column("role", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.ForeignKeyConstraint(
            ["business_id"], ["businesses.id"], ondelete="SET NULL", name="fk_users_business_id_businesses"
        ),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_business_id", "users", ["business_id"])

    # Catalog
    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_business_fk("categories"),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_categories"),
        sa.UniqueConstraint("business_id", "value", name="uq_categories_business_value"),
    )
    op.create_index("ix_categories_business_id", "categories", ["business_id"])

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_business_fk("suppliers"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("contact_name", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_suppliers"),
    )
    op.create_index("ix_suppliers_business_id", "suppliers", ["business_id"])

    # Expenses
    op.create_table(
        "expenses",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_business_fk("expenses"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_expenses"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL", name="fk_expenses_created_by_users"),
    )
    op.create_index("ix_expenses_business_id", "expenses", ["business_id"])
    op.create_index("ix_expenses_business_created_at", "expenses", ["business_id", "created_at"])

    # Inventory
    op.create_table(
        "warehouses",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_business_fk("warehouses"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_warehouses"),
        sa.UniqueConstraint("business_id", "name", name="uq_warehouses_business_name"),
    )
    op.create_index("ix_warehouses_business_id", "warehouses", ["business_id"])

    op.create_table(
        "warehouse_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_business_fk("warehouse_items"),
        sa.Column("warehouse_id", sa.Uuid(), nullable=False),
        sa.Column("sku", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_warehouse_items"),
        sa.ForeignKeyConstraint(
            ["warehouse_id"], ["warehouses.id"], ondelete="CASCADE", name="fk_warehouse_items_warehouse_id_warehouses"
        ),
        sa.UniqueConstraint("warehouse_id", "sku", name="uq_warehouse_items_warehouse_sku"),
        sa.CheckConstraint("quantity >= 0", name="ck_warehouse_items_quantity_non_negative"),
    )
    op.create_index("ix_warehouse_items_business_id", "warehouse_items", ["business_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_business_fk("transactions"),
        sa.Column("warehouse_item_id", sa.Uuid(), nullable=True),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("reference", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_transactions"),
        sa.ForeignKeyConstraint(
            ["warehouse_item_id"],
            ["warehouse_items.id"],
            ondelete="SET NULL",
            name="fk_transactions_warehouse_item_id_warehouse_items",
        ),
        sa.ForeignKeyConstraint(
            ["created_by"], ["users.id"], ondelete="SET NULL", name="fk_transactions_created_by_users"
        ),
    )
    op.create_index("ix_transactions_business_id", "transactions", ["business_id"])

    # Invitations
    op.create_table(
        "invitations",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_business_fk("invitations"),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), server_default="MEMBER", nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invited_by", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_invitations"),
        sa.ForeignKeyConstraint(["invited_by"], ["users.id"], ondelete="SET NULL", name="fk_invitations_invited_by_users"),
        sa.UniqueConstraint("code", name="uq_invitations_code"),
    )
    op.create_index("ix_invitations_business_id", "invitations", ["business_id"])

    # Audit trail; business_id carries no foreign key
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("business_id", sa.Uuid(), nullable=False),
        sa.Column("model", sa.Text(), nullable=False),
        sa.Column("record_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("changes", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),
        sa.Column("performed_by", sa.Uuid(), nullable=True),
        sa.Column("performed_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_audit_logs"),
        sa.ForeignKeyConstraint(
            ["performed_by"], ["users.id"], ondelete="SET NULL", name="fk_audit_logs_performed_by_users"
        ),
    )
    op.create_index("ix_audit_logs_business_performed_at", "audit_logs", ["business_id", "performed_at"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_business_performed_at", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_invitations_business_id", table_name="invitations")
    op.drop_table("invitations")
    op.drop_index("ix_transactions_business_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_warehouse_items_business_id", table_name="warehouse_items")
    op.drop_table("warehouse_items")
    op.drop_index("ix_warehouses_business_id", table_name="warehouses")
    op.drop_table("warehouses")
    op.drop_index("ix_expenses_business_created_at", table_name="expenses")
    op.drop_index("ix_expenses_business_id", table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("ix_suppliers_business_id", table_name="suppliers")
    op.drop_table("suppliers")
    op.drop_index("ix_categories_business_id", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_users_business_id", table_name="users")
    op.drop_table("users")
    op.drop_table("businesses")
