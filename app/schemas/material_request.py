from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class MaterialRequestItemCreate(BaseModel):
    material_id: int
    quantity: Decimal
    note: Optional[str] = None


class MaterialRequestCreate(BaseModel):
    project_id: int
    items: List[MaterialRequestItemCreate]
    needed_by: Optional[date] = None
    note: Optional[str] = None


class MaterialRequestReject(BaseModel):
    reason: str


class MaterialRequestItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    line_number: int
    material_id: int
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    note: Optional[str]


class MaterialRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    requester_id: int
    needed_by: Optional[date]
    note: Optional[str]
    status: str
    decided_by_id: Optional[int]
    decided_at: Optional[datetime]
    rejection_reason: Optional[str]
    created_at: datetime
    total_amount: Decimal
    items: List[MaterialRequestItemResponse]
