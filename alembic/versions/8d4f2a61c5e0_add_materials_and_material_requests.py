"""add materials and material requests

Revision ID: 8d4f2a61c5e0
Revises: 3c1e9d0b7a42
Create Date: 2026-09-21 16:40:37.902114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8d4f2a61c5e0"
down_revision: Union[str, Sequence[str], None] = "3c1e9d0b7a42"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "materials",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit_of_measure", sa.String(), nullable=False),
        sa.Column("unit_price", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("supplier", sa.String(), nullable=True),
        sa.Column("current_stock", sa.Numeric(15, 3), nullable=False, server_default="0"),
        sa.Column("minimum_stock", sa.Numeric(15, 3), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("name", name="uq_materials_name"),
        sa.CheckConstraint("unit_price >= 0", name="ck_materials_unit_price_nonnegative"),
        sa.CheckConstraint("current_stock >= 0", name="ck_materials_current_stock_nonnegative"),
        sa.CheckConstraint("minimum_stock >= 0", name="ck_materials_minimum_stock_nonnegative"),
    )
    op.create_index("ix_materials_id", "materials", ["id"], unique=False)

    op.create_table(
        "material_requests",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("requester_id", sa.Integer(), nullable=False),
        sa.Column("needed_by", sa.Date(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("decided_by_id", sa.Integer(), nullable=True),
        sa.Column("decided_at", sa.DateTime(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["decided_by_id"], ["users.id"]),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_material_requests_status_valid",
        ),
        sa.CheckConstraint(
            "status = 'pending' OR (decided_by_id IS NOT NULL AND decided_at IS NOT NULL)",
            name="ck_material_requests_decision_recorded",
        ),
        sa.CheckConstraint(
            "status <> 'rejected' OR rejection_reason IS NOT NULL",
            name="ck_material_requests_rejection_reason",
        ),
    )
    op.create_index("ix_material_requests_id", "material_requests", ["id"], unique=False)
    op.create_index("ix_material_requests_project_id", "material_requests", ["project_id"], unique=False)
    op.create_index("ix_material_requests_requester_id", "material_requests", ["requester_id"], unique=False)
    op.create_index("ix_material_requests_status", "material_requests", ["status"], unique=False)
    op.create_index("ix_material_requests_created_at", "material_requests", ["created_at"], unique=False)

    op.create_table(
        "material_request_items",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("material_request_id", sa.Integer(), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("material_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(15, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(15, 2), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["material_request_id"], ["material_requests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["material_id"], ["materials.id"]),
        sa.UniqueConstraint(
            "material_request_id",
            "line_number",
            name="uq_material_request_items_line",
        ),
        sa.CheckConstraint("quantity > 0", name="ck_material_request_items_quantity_positive"),
        sa.CheckConstraint("unit_price >= 0", name="ck_material_request_items_unit_price_nonnegative"),
    )
    op.create_index("ix_material_request_items_id", "material_request_items", ["id"], unique=False)
    op.create_index(
        "ix_material_request_items_material_request_id",
        "material_request_items",
        ["material_request_id"],
        unique=False,
    )
    op.create_index(
        "ix_material_request_items_material_id",
        "material_request_items",
        ["material_id"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_material_request_items_material_id", table_name="material_request_items")
    op.drop_index("ix_material_request_items_material_request_id", table_name="material_request_items")
    op.drop_index("ix_material_request_items_id", table_name="material_request_items")
    op.drop_table("material_request_items")

    op.drop_index("ix_material_requests_created_at", table_name="material_requests")
    op.drop_index("ix_material_requests_status", table_name="material_requests")
    op.drop_index("ix_material_requests_requester_id", table_name="material_requests")
    op.drop_index("ix_material_requests_project_id", table_name="material_requests")
    op.drop_index("ix_material_requests_id", table_name="material_requests")
    op.drop_table("material_requests")

    op.drop_index("ix_materials_id", table_name="materials")
    op.drop_table("materials")
