from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text

from app.database import Base


class TaskStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.NOT_STARTED.value, index=True)
    progress_percentage = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)

    # Written only by app.services.cost_engine
    labor_cost = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    material_cost = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    equipment_cost = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    blended_cost = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    total_cost = Column(Numeric(15, 2), nullable=False, default=Decimal("0"))

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE.value
