from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ServiceCreate(BaseModel):
    name: str
    unit_of_measurement: str
    unit_labor_cost: Decimal = Decimal("0")
    unit_material_cost: Decimal = Decimal("0")
    unit_equipment_cost: Decimal = Decimal("0")
    description: Optional[str] = None


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    unit_of_measurement: Optional[str] = None
    unit_labor_cost: Optional[Decimal] = None
    unit_material_cost: Optional[Decimal] = None
    unit_equipment_cost: Optional[Decimal] = None
    description: Optional[str] = None


class ServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    unit_of_measurement: str
    unit_labor_cost: Decimal
    unit_material_cost: Decimal
    unit_equipment_cost: Decimal
    total_unit_cost: Decimal
    is_active: bool
    created_at: datetime
