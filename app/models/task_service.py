from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, Text, UniqueConstraint

from app.database import Base


class TaskServiceBinding(Base):
    __tablename__ = "task_services"

    __table_args__ = (
        UniqueConstraint("task_id", "service_id", name="uq_task_services_task_service"),
    )

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)

    quantity = Column(Numeric(15, 2), nullable=False)
    # When set, replaces all three catalog unit costs with one blended figure
    unit_cost_override = Column(Numeric(15, 2), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def has_override(self) -> bool:
        return self.unit_cost_override is not None
