import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.core.money import money, non_negative, required_text
from app.database import session_scope
from app.models.project import PROJECT_STATUSES, Project
from app.models.task import Task, TaskStatus
from app.services.budget_view import budget_view
from app.services.events import enqueue_audit
from app.services.project_cascade import lock_project

logger = logging.getLogger(__name__)


def _load_project(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == int(project_id)).first()
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


def create_project(
    *,
    name: str,
    total_budget: Any = 0,
    description: Optional[str] = None,
    client: Optional[str] = None,
    status: str = "planning",
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> Project:
    clean_name = required_text(name, "name")
    budget = non_negative(total_budget, "total_budget")
    if status not in PROJECT_STATUSES:
        raise ValidationError(f"Invalid project status: {status}")

    with session_scope(db) as s:
        project = Project(
            name=clean_name,
            description=description,
            client=client,
            status=status,
            total_budget=money(budget),
            realized_cost=Decimal("0"),
            progress_percentage=Decimal("0"),
        )
        s.add(project)
        s.flush()

        enqueue_audit(s, entity_type="project", entity_id=project.id, action="created", actor_id=actor_id)
        logger.info("Project created", extra={"project_id": project.id})
        return project


def update_project_budget(
    project_id: int,
    total_budget: Any,
    *,
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> Project:
    budget = money(non_negative(total_budget, "total_budget"))

    with session_scope(db) as s:
        project = lock_project(s, project_id)
        previous = project.total_budget
        project.total_budget = budget
        s.flush()

        enqueue_audit(
            s,
            entity_type="project",
            entity_id=project.id,
            action="budget_updated",
            actor_id=actor_id,
            details={"from": str(previous), "to": str(budget)},
        )
        return project


def get_project(project_id: int, *, db: Optional[Session] = None) -> Project:
    with session_scope(db) as s:
        return _load_project(s, project_id)


def list_projects(*, status: Optional[str] = None, db: Optional[Session] = None) -> List[Project]:
    with session_scope(db) as s:
        q = s.query(Project)
        if status:
            q = q.filter(Project.status == status)
        return q.order_by(Project.created_at.desc(), Project.id.desc()).all()


def project_budget_report(project_id: int, *, db: Optional[Session] = None) -> Dict[str, Any]:
    """
    Budget figures for a project, derived on every call from stored values:
    the budget view, cost totals per category and task counts.
    """
    with session_scope(db) as s:
        project = _load_project(s, project_id)
        tasks = s.query(Task).filter(Task.project_id == project.id).all()

        view = budget_view(project.total_budget, project.realized_cost)

        def _total(attr: str) -> Decimal:
            return money(sum((Decimal(getattr(t, attr) or 0) for t in tasks), Decimal("0")))

        completed = sum(1 for t in tasks if t.status == TaskStatus.DONE.value)

        return {
            "project_id": project.id,
            "project_name": project.name,
            "total_budget": view.total_budget,
            "realized_cost": view.realized_cost,
            "variance": view.variance,
            "utilization_percent": view.utilization_percent,
            "is_over_budget": view.is_over_budget,
            "progress_percentage": Decimal(project.progress_percentage),
            "labor_cost": _total("labor_cost"),
            "material_cost": _total("material_cost"),
            "equipment_cost": _total("equipment_cost"),
            "blended_cost": _total("blended_cost"),
            "total_tasks": len(tasks),
            "completed_tasks": completed,
            "pending_tasks": len(tasks) - completed,
        }
