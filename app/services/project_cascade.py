import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.core.money import money
from app.database import session_scope
from app.models.project import Project
from app.models.task import Task

logger = logging.getLogger(__name__)

PERCENT = Decimal("0.01")


def lock_project(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == int(project_id)).with_for_update().first()
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


def recalculate_project_realized_cost(project_id: int, *, db: Optional[Session] = None) -> Project:
    """Realized cost is the sum of total_cost over every task, whatever its status."""
    with session_scope(db) as s:
        project = lock_project(s, project_id)
        s.flush()

        totals = s.query(Task.total_cost).filter(Task.project_id == project.id).all()
        project.realized_cost = money(sum((Decimal(t or 0) for (t,) in totals), Decimal("0")))
        s.flush()

        logger.info(
            "Project realized cost recalculated",
            extra={"project_id": project.id, "realized_cost": str(project.realized_cost)},
        )
        return project


def recalculate_project_progress(project_id: int, *, db: Optional[Session] = None) -> Project:
    """Unweighted mean of task progress; 0 for a project without tasks."""
    with session_scope(db) as s:
        project = lock_project(s, project_id)
        s.flush()

        values = [int(p or 0) for (p,) in s.query(Task.progress_percentage).filter(Task.project_id == project.id)]
        if not values:
            project.progress_percentage = Decimal("0.00")
        else:
            mean = Decimal(sum(values)) / Decimal(len(values))
            project.progress_percentage = mean.quantize(PERCENT, rounding=ROUND_HALF_UP)
        s.flush()

        logger.info(
            "Project progress recalculated",
            extra={
                "project_id": project.id,
                "task_count": len(values),
                "progress_percentage": str(project.progress_percentage),
            },
        )
        return project


def recalculate_project(project_id: int, *, db: Optional[Session] = None) -> Project:
    with session_scope(db) as s:
        recalculate_project_realized_cost(project_id, db=s)
        return recalculate_project_progress(project_id, db=s)
