from datetime import datetime
from decimal import Decimal

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text

from app.database import Base

PROJECT_STATUSES = ("planning", "in_progress", "paused", "completed", "cancelled")


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    client = Column(String, nullable=True)
    status = Column(String, nullable=False, default="planning")

    total_budget = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))

    # Written only by app.services.project_cascade
    realized_cost = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    progress_percentage = Column(Numeric(5, 2), nullable=False, default=Decimal("0"))

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
