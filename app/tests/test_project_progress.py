from decimal import Decimal

import pytest

from app.core.errors import NotFoundError, ValidationError
from app.services import catalog_service, cost_engine, project_service, task_engine
from app.services.project_cascade import recalculate_project_progress, recalculate_project_realized_cost


def test_project_without_tasks_has_zero_progress(make_project):
    project = make_project()
    assert project_service.get_project(project.id).progress_percentage == Decimal("0")

    recalculate_project_progress(project.id)
    assert project_service.get_project(project.id).progress_percentage == Decimal("0")


def test_progress_is_the_plain_mean_of_task_progress(make_project, make_task):
    project = make_project()
    a = make_task(project.id, title="A")
    b = make_task(project.id, title="B", status="blocked")
    c = make_task(project.id, title="C", status="cancelled")

    task_engine.update_task_progress(a.id, 0)
    task_engine.update_task_progress(b.id, 50)
    task_engine.update_task_progress(c.id, 100)

    assert project_service.get_project(project.id).progress_percentage == Decimal("50")


def test_progress_mean_rounds_to_two_places(make_project, make_task):
    project = make_project()
    make_task(project.id, title="A", progress_percentage=100)
    make_task(project.id, title="B", progress_percentage=0)
    make_task(project.id, title="C", progress_percentage=0)

    assert project_service.get_project(project.id).progress_percentage == Decimal("33.33")


def test_progress_is_clamped_and_notes_are_appended(make_project, make_task):
    project = make_project()
    task = make_task(project.id)

    task_engine.update_task_progress(task.id, 140, "Walls up")
    fresh = task_engine.get_task(task.id)
    assert fresh.progress_percentage == 100
    assert fresh.status == "not_started"
    assert "Walls up" in fresh.notes

    task_engine.update_task_progress(task.id, -5, "Rework")
    fresh = task_engine.get_task(task.id)
    assert fresh.progress_percentage == 0
    assert fresh.notes.count("\n") == 1

    with pytest.raises(ValidationError):
        task_engine.update_task_progress(task.id, "lots")


def test_done_forces_full_progress_but_leaving_done_keeps_it(make_project, make_task):
    project = make_project()
    task = make_task(project.id, progress_percentage=40)

    task_engine.update_task_status(task.id, "done")
    assert task_engine.get_task(task.id).progress_percentage == 100
    assert project_service.get_project(project.id).progress_percentage == Decimal("100")

    task_engine.update_task_status(task.id, "in_progress")
    fresh = task_engine.get_task(task.id)
    assert fresh.status == "in_progress"
    assert fresh.progress_percentage == 100

    with pytest.raises(ValidationError):
        task_engine.update_task_status(task.id, "finished")


def test_creating_and_deleting_tasks_reruns_the_cascade(make_project, make_task, make_service):
    project = make_project()
    keep = make_task(project.id, title="Keep", progress_percentage=80)
    drop = make_task(project.id, title="Drop", progress_percentage=20)
    service = make_service(labor="5")
    catalog_service.add_service_to_task(drop.id, service.id, "4")

    before = project_service.get_project(project.id)
    assert before.progress_percentage == Decimal("50")
    assert before.realized_cost == Decimal("20")

    task_engine.delete_task(drop.id)

    after = project_service.get_project(project.id)
    assert after.progress_percentage == Decimal("80")
    assert after.realized_cost == Decimal("0")
    assert [t.id for t in task_engine.list_tasks(project.id)] == [keep.id]

    with pytest.raises(NotFoundError):
        task_engine.get_task(drop.id)


def test_recalculation_is_idempotent(make_project, make_task, make_service):
    project = make_project()
    task = make_task(project.id, progress_percentage=30)
    catalog_service.add_service_to_task(task.id, make_service(material="2.5").id, "4")

    first = recalculate_project_realized_cost(project.id)
    second = recalculate_project_realized_cost(project.id)
    assert first.realized_cost == second.realized_cost == Decimal("10")

    assert recalculate_project_progress(project.id).progress_percentage == Decimal("30")
    assert recalculate_project_progress(project.id).progress_percentage == Decimal("30")


def test_cascade_on_missing_project_is_not_found():
    with pytest.raises(NotFoundError):
        recalculate_project_realized_cost(424242)
    with pytest.raises(NotFoundError):
        task_engine.create_task(424242, title="Orphan")


def test_failed_cascade_rolls_back_the_binding_and_task_costs(make_project, make_task, make_service, monkeypatch):
    project = make_project()
    task = make_task(project.id)
    service = make_service(labor="10")

    def _project_gone(project_id, *, db=None):
        raise NotFoundError("Project", project_id)

    monkeypatch.setattr(cost_engine, "recalculate_project_realized_cost", _project_gone)
    with pytest.raises(NotFoundError):
        catalog_service.add_service_to_task(task.id, service.id, "2")
    monkeypatch.undo()

    assert catalog_service.list_task_services(task.id) == []
    fresh = task_engine.get_task(task.id)
    assert fresh.labor_cost == Decimal("0")
    assert fresh.total_cost == Decimal("0")
    assert project_service.get_project(project.id).realized_cost == Decimal("0")
