from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class MaterialCreate(BaseModel):
    name: str
    unit_of_measure: str
    unit_price: Decimal = Decimal("0")
    current_stock: Decimal = Decimal("0")
    minimum_stock: Decimal = Decimal("0")
    supplier: Optional[str] = None
    description: Optional[str] = None


class StockMovement(BaseModel):
    movement_type: str
    quantity: Decimal


class MaterialResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    unit_of_measure: str
    unit_price: Decimal
    supplier: Optional[str]
    current_stock: Decimal
    minimum_stock: Decimal
    is_below_minimum: bool
    is_active: bool
    created_at: datetime
