from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from app.database import SessionLocal
from app.models.material import Material
from app.models.material_request import MaterialRequest
from app.models.task import Task
from app.models.task_service import TaskServiceBinding


def _assert_rejected(row) -> None:
    db = SessionLocal()
    try:
        db.add(row)
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    finally:
        db.close()


def test_negative_stock_is_blocked_at_the_database():
    _assert_rejected(
        Material(name="Negative", unit_of_measure="kg", current_stock=Decimal("-1"))
    )


def test_task_progress_range_is_enforced(make_project):
    project = make_project()
    _assert_rejected(Task(project_id=project.id, title="Overdone", progress_percentage=101))


def test_task_status_domain_is_enforced(make_project):
    project = make_project()
    _assert_rejected(Task(project_id=project.id, title="Odd", status="paused"))


def test_binding_quantity_must_be_positive(make_project, make_task, make_service):
    task = make_task(make_project().id)
    service = make_service()
    _assert_rejected(TaskServiceBinding(task_id=task.id, service_id=service.id, quantity=Decimal("0")))


def test_rejected_request_needs_reason_and_decider(make_project, make_user):
    project = make_project()
    user = make_user()
    _assert_rejected(
        MaterialRequest(project_id=project.id, requester_id=user.id, status="rejected")
    )
