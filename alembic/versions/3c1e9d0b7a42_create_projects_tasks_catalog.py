"""create users projects tasks and service catalog

Revision ID: 3c1e9d0b7a42
Revises:
Create Date: 2026-09-14 10:02:11.481207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1e9d0b7a42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("client", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="planning"),
        sa.Column("total_budget", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("realized_cost", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("progress_percentage", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('planning', 'in_progress', 'paused', 'completed', 'cancelled')",
            name="ck_projects_status_valid",
        ),
        sa.CheckConstraint("total_budget >= 0", name="ck_projects_total_budget_nonnegative"),
        sa.CheckConstraint("realized_cost >= 0", name="ck_projects_realized_cost_nonnegative"),
        sa.CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100",
            name="ck_projects_progress_range",
        ),
    )
    op.create_index("ix_projects_id", "projects", ["id"], unique=False)

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="not_started"),
        sa.Column("progress_percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("labor_cost", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("material_cost", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("equipment_cost", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("blended_cost", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("total_cost", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.CheckConstraint(
            "status IN ('not_started', 'in_progress', 'done', 'blocked', 'cancelled')",
            name="ck_tasks_status_valid",
        ),
        sa.CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100",
            name="ck_tasks_progress_range",
        ),
        sa.CheckConstraint(
            "labor_cost >= 0 AND material_cost >= 0 AND equipment_cost >= 0 "
            "AND blended_cost >= 0 AND total_cost >= 0",
            name="ck_tasks_costs_nonnegative",
        ),
    )
    op.create_index("ix_tasks_id", "tasks", ["id"], unique=False)
    op.create_index("ix_tasks_project_id", "tasks", ["project_id"], unique=False)
    op.create_index("ix_tasks_status", "tasks", ["status"], unique=False)

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit_of_measurement", sa.String(), nullable=False),
        sa.Column("unit_labor_cost", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("unit_material_cost", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("unit_equipment_cost", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("name", name="uq_services_name"),
        sa.CheckConstraint(
            "unit_labor_cost >= 0 AND unit_material_cost >= 0 AND unit_equipment_cost >= 0",
            name="ck_services_unit_costs_nonnegative",
        ),
    )
    op.create_index("ix_services_id", "services", ["id"], unique=False)

    op.create_table(
        "task_services",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("service_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(15, 2), nullable=False),
        sa.Column("unit_cost_override", sa.Numeric(15, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["service_id"], ["services.id"]),
        sa.UniqueConstraint("task_id", "service_id", name="uq_task_services_task_service"),
        sa.CheckConstraint("quantity > 0", name="ck_task_services_quantity_positive"),
        sa.CheckConstraint(
            "unit_cost_override IS NULL OR unit_cost_override >= 0",
            name="ck_task_services_override_nonnegative",
        ),
    )
    op.create_index("ix_task_services_id", "task_services", ["id"], unique=False)
    op.create_index("ix_task_services_task_id", "task_services", ["task_id"], unique=False)
    op.create_index("ix_task_services_service_id", "task_services", ["service_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_task_services_service_id", table_name="task_services")
    op.drop_index("ix_task_services_task_id", table_name="task_services")
    op.drop_index("ix_task_services_id", table_name="task_services")
    op.drop_table("task_services")

    op.drop_index("ix_services_id", table_name="services")
    op.drop_table("services")

    op.drop_index("ix_tasks_status", table_name="tasks")
    op.drop_index("ix_tasks_project_id", table_name="tasks")
    op.drop_index("ix_tasks_id", table_name="tasks")
    op.drop_table("tasks")

    op.drop_index("ix_projects_id", table_name="projects")
    op.drop_table("projects")

    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
