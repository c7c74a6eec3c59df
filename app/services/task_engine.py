"""
Task lifecycle and progress.

Progress and status are coupled in one direction only: moving a task to done
forces its progress to 100, but leaving done (or editing progress) never moves
the other field. Every change that can affect project figures re-runs the
project cascade before returning.
"""
import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.core.money import required_text
from app.database import session_scope
from app.models.task import Task, TaskStatus
from app.models.task_service import TaskServiceBinding
from app.services.cost_engine import load_task
from app.services.events import enqueue_audit
from app.services.project_cascade import lock_project, recalculate_project, recalculate_project_progress

logger = logging.getLogger(__name__)

TASK_STATUSES = tuple(s.value for s in TaskStatus)


def clamp_progress(value: Any) -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError("progress_percentage is required")
    try:
        progress = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("progress_percentage must be an integer") from exc
    return max(0, min(100, progress))


def normalize_status(value: Any) -> str:
    raw = value.value if isinstance(value, TaskStatus) else str(value or "").strip().lower()
    if raw not in TASK_STATUSES:
        raise ValidationError(f"Invalid task status: {value}")
    return raw


def get_task(task_id: int, *, db: Optional[Session] = None) -> Task:
    with session_scope(db) as s:
        return load_task(s, task_id)


def list_tasks(project_id: int, *, db: Optional[Session] = None) -> List[Task]:
    with session_scope(db) as s:
        return (
            s.query(Task)
            .filter(Task.project_id == int(project_id))
            .order_by(Task.id.asc())
            .all()
        )


def create_task(
    project_id: int,
    *,
    title: str,
    description: Optional[str] = None,
    status: Any = TaskStatus.NOT_STARTED,
    progress_percentage: Any = 0,
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> Task:
    clean_title = required_text(title, "title")
    status_value = normalize_status(status)
    progress = clamp_progress(progress_percentage)
    if status_value == TaskStatus.DONE.value:
        progress = 100

    with session_scope(db) as s:
        project = lock_project(s, project_id)

        task = Task(
            project_id=project.id,
            title=clean_title,
            description=description,
            status=status_value,
            progress_percentage=progress,
        )
        s.add(task)
        s.flush()

        recalculate_project(project.id, db=s)

        enqueue_audit(s, entity_type="task", entity_id=task.id, action="created", actor_id=actor_id)
        logger.info("Task created", extra={"task_id": task.id, "project_id": project.id})
        return task


def delete_task(task_id: int, *, actor_id: Optional[int] = None, db: Optional[Session] = None) -> None:
    """Deleting a task drops its bindings with it and shrinks the project totals."""
    with session_scope(db) as s:
        task = load_task(s, task_id, for_update=True)
        project_id = task.project_id

        s.query(TaskServiceBinding).filter(TaskServiceBinding.task_id == task.id).delete(
            synchronize_session=False
        )
        s.delete(task)
        s.flush()

        recalculate_project(project_id, db=s)

        enqueue_audit(s, entity_type="task", entity_id=task_id, action="deleted", actor_id=actor_id)
        logger.info("Task deleted", extra={"task_id": int(task_id), "project_id": project_id})


def update_task_progress(
    task_id: int,
    progress_percentage: Any,
    notes: Optional[str] = None,
    *,
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> Task:
    progress = clamp_progress(progress_percentage)

    with session_scope(db) as s:
        task = load_task(s, task_id, for_update=True)
        task.progress_percentage = progress

        if notes is not None and notes.strip():
            stamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M")
            entry = f"[{stamp}] {progress}%: {notes.strip()}"
            task.notes = f"{task.notes}\n{entry}" if task.notes else entry

        s.flush()
        recalculate_project_progress(task.project_id, db=s)

        enqueue_audit(
            s,
            entity_type="task",
            entity_id=task.id,
            action="progress_updated",
            actor_id=actor_id,
            details={"progress_percentage": progress},
        )
        logger.info("Task progress updated", extra={"task_id": task.id, "progress_percentage": progress})
        return task


def update_task_status(
    task_id: int,
    status: Any,
    *,
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> Task:
    status_value = normalize_status(status)

    with session_scope(db) as s:
        task = load_task(s, task_id, for_update=True)
        previous = task.status
        task.status = status_value

        progress_forced = status_value == TaskStatus.DONE.value and task.progress_percentage != 100
        if progress_forced:
            task.progress_percentage = 100
        s.flush()

        if progress_forced:
            recalculate_project_progress(task.project_id, db=s)

        enqueue_audit(
            s,
            entity_type="task",
            entity_id=task.id,
            action="status_changed",
            actor_id=actor_id,
            details={"from": previous, "to": status_value},
        )
        logger.info(
            "Task status changed",
            extra={"task_id": task.id, "from_status": previous, "to_status": status_value},
        )
        return task
