from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from app.database import Base


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MaterialRequest(Base):
    __tablename__ = "material_requests"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    needed_by = Column(Date, nullable=True)
    note = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=RequestStatus.PENDING.value, index=True)

    decided_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    decided_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    items = relationship(
        "MaterialRequestItem",
        order_by="MaterialRequestItem.line_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING.value

    @property
    def total_amount(self) -> Decimal:
        return sum((item.total_price for item in self.items), Decimal("0"))


class MaterialRequestItem(Base):
    __tablename__ = "material_request_items"

    id = Column(Integer, primary_key=True, index=True)
    material_request_id = Column(
        Integer,
        ForeignKey("material_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    line_number = Column(Integer, nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=False, index=True)

    quantity = Column(Numeric(15, 3), nullable=False)
    # Snapshot of Material.unit_price at creation; never re-read
    unit_price = Column(Numeric(15, 2), nullable=False)
    note = Column(Text, nullable=True)

    @property
    def total_price(self) -> Decimal:
        return Decimal(self.quantity) * Decimal(self.unit_price)
