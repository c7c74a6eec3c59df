from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.models.task import TaskStatus


class TaskCreate(BaseModel):
    project_id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.NOT_STARTED
    progress_percentage: int = 0


class TaskProgressUpdate(BaseModel):
    progress_percentage: int
    notes: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    title: str
    description: Optional[str]
    status: str
    progress_percentage: int
    notes: Optional[str]
    labor_cost: Decimal
    material_cost: Decimal
    equipment_cost: Decimal
    blended_cost: Decimal
    total_cost: Decimal
    created_at: datetime
    updated_at: datetime


class TaskServiceCreate(BaseModel):
    service_id: int
    quantity: Decimal
    unit_cost_override: Optional[Decimal] = None
    notes: Optional[str] = None


class TaskServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    service_id: int
    quantity: Decimal
    unit_cost_override: Optional[Decimal]
    notes: Optional[str]
    created_at: datetime


class CostLineResponse(BaseModel):
    binding_id: int
    service_id: int
    service_name: str
    quantity: Decimal
    unit_cost_override: Optional[Decimal]
    # Itemized lines fill the three categories; blended lines only blended_cost
    labor_cost: Decimal
    material_cost: Decimal
    equipment_cost: Decimal
    blended_cost: Decimal
    total_cost: Decimal


class TaskCostReport(BaseModel):
    task_id: int
    project_id: int
    lines: List[CostLineResponse]
    labor_cost: Decimal
    material_cost: Decimal
    equipment_cost: Decimal
    blended_cost: Decimal
    total_cost: Decimal
