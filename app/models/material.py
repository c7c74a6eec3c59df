from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from app.database import Base


class Material(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    unit_of_measure = Column(String, nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    supplier = Column(String, nullable=True)

    # Mutated only through app.services.stock_ledger
    current_stock = Column(Numeric(15, 3), nullable=False, default=Decimal("0"))
    minimum_stock = Column(Numeric(15, 3), nullable=False, default=Decimal("0"))

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_below_minimum(self) -> bool:
        return Decimal(self.current_stock or 0) <= Decimal(self.minimum_stock or 0)
