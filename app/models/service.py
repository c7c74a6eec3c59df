from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from app.database import Base


class Service(Base):
    """Billable catalog entry. Deactivated, never deleted."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    unit_of_measurement = Column(String, nullable=False)

    unit_labor_cost = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    unit_material_cost = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    unit_equipment_cost = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def total_unit_cost(self) -> Decimal:
        return (
            Decimal(self.unit_labor_cost or 0)
            + Decimal(self.unit_material_cost or 0)
            + Decimal(self.unit_equipment_cost or 0)
        )
