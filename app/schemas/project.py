from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProjectCreate(BaseModel):
    name: str
    total_budget: Decimal = Decimal("0")
    description: Optional[str] = None
    client: Optional[str] = None
    status: str = "planning"


class ProjectBudgetUpdate(BaseModel):
    total_budget: Decimal


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    client: Optional[str]
    status: str
    total_budget: Decimal
    realized_cost: Decimal
    progress_percentage: Decimal
    created_at: datetime
    updated_at: datetime


class ProjectBudgetReport(BaseModel):
    project_id: int
    project_name: str
    total_budget: Decimal
    realized_cost: Decimal
    variance: Decimal
    utilization_percent: Decimal
    is_over_budget: bool
    progress_percentage: Decimal
    labor_cost: Decimal
    material_cost: Decimal
    equipment_cost: Decimal
    blended_cost: Decimal
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
