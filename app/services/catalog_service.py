"""
Service catalog and task-service bindings.

Every binding change recomputes the task's costs (and through them the
project's realized cost) inside the same unit of work, so a caller never sees
a task whose bindings changed while its costs did not.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, StateConflictError
from app.core.money import MONEY_PLACES, money, non_negative, optional_non_negative, positive, required_text
from app.database import session_scope
from app.models.service import Service
from app.models.task_service import TaskServiceBinding
from app.services.cost_engine import (
    BindingCost,
    BlendedCost,
    binding_cost,
    bindings_with_services,
    load_task,
    recalculate_task_costs,
)
from app.services.events import enqueue_audit

logger = logging.getLogger(__name__)

_COST_FIELDS = ("unit_labor_cost", "unit_material_cost", "unit_equipment_cost")


def _get_service(db: Session, service_id: int, *, for_update: bool = False) -> Service:
    q = db.query(Service).filter(Service.id == int(service_id))
    if for_update:
        q = q.with_for_update()
    service = q.first()
    if service is None:
        raise NotFoundError("Service", service_id)
    return service


def _ensure_name_available(db: Session, name: str, *, exclude_id: Optional[int] = None) -> None:
    q = db.query(Service.id).filter(Service.name == name)
    if exclude_id is not None:
        q = q.filter(Service.id != int(exclude_id))
    if q.first() is not None:
        raise StateConflictError(f"Service name already exists: {name}")


def get_service(service_id: int, *, db: Optional[Session] = None) -> Service:
    with session_scope(db) as s:
        return _get_service(s, service_id)


def create_service(
    *,
    name: str,
    unit_of_measurement: str,
    unit_labor_cost: Any = 0,
    unit_material_cost: Any = 0,
    unit_equipment_cost: Any = 0,
    description: Optional[str] = None,
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> Service:
    """Name uniqueness covers inactive services too."""
    clean_name = required_text(name, "name")
    uom = required_text(unit_of_measurement, "unit_of_measurement")
    labor = non_negative(unit_labor_cost, "unit_labor_cost", MONEY_PLACES)
    material = non_negative(unit_material_cost, "unit_material_cost", MONEY_PLACES)
    equipment = non_negative(unit_equipment_cost, "unit_equipment_cost", MONEY_PLACES)

    with session_scope(db) as s:
        _ensure_name_available(s, clean_name)

        service = Service(
            name=clean_name,
            description=description,
            unit_of_measurement=uom,
            unit_labor_cost=labor,
            unit_material_cost=material,
            unit_equipment_cost=equipment,
            is_active=True,
        )
        s.add(service)
        try:
            s.flush()
        except IntegrityError as exc:
            raise StateConflictError(f"Service name already exists: {clean_name}") from exc

        enqueue_audit(s, entity_type="service", entity_id=service.id, action="created", actor_id=actor_id)
        logger.info("Service created", extra={"service_id": service.id, "service_name": service.name})
        return service


def update_service(
    service_id: int,
    *,
    changes: Dict[str, Any],
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> Service:
    """
    Apply a partial update. A unit cost change is pushed to every task that
    binds the service (and on to their projects) in the same unit of work.
    """
    with session_scope(db) as s:
        service = _get_service(s, service_id, for_update=True)

        if "name" in changes and changes["name"] is not None:
            new_name = required_text(changes["name"], "name")
            if new_name != service.name:
                _ensure_name_available(s, new_name, exclude_id=service.id)
                service.name = new_name

        if "unit_of_measurement" in changes and changes["unit_of_measurement"] is not None:
            service.unit_of_measurement = required_text(changes["unit_of_measurement"], "unit_of_measurement")

        if "description" in changes:
            service.description = changes["description"]

        costs_changed = False
        for field in _COST_FIELDS:
            if field in changes and changes[field] is not None:
                value = non_negative(changes[field], field, MONEY_PLACES)
                if Decimal(getattr(service, field)) != value:
                    setattr(service, field, value)
                    costs_changed = True

        try:
            s.flush()
        except IntegrityError as exc:
            raise StateConflictError(f"Service name already exists: {service.name}") from exc

        if costs_changed:
            task_ids = [
                tid
                for (tid,) in s.query(TaskServiceBinding.task_id)
                .filter(TaskServiceBinding.service_id == service.id)
                .order_by(TaskServiceBinding.task_id.asc())
            ]
            for task_id in task_ids:
                recalculate_task_costs(task_id, db=s)

        enqueue_audit(
            s,
            entity_type="service",
            entity_id=service.id,
            action="updated",
            actor_id=actor_id,
            details={"fields": sorted(changes.keys())},
        )
        logger.info(
            "Service updated",
            extra={"service_id": service.id, "costs_changed": costs_changed},
        )
        return service


def deactivate_service(service_id: int, *, actor_id: Optional[int] = None, db: Optional[Session] = None) -> Service:
    with session_scope(db) as s:
        service = _get_service(s, service_id, for_update=True)
        service.is_active = False
        s.flush()
        enqueue_audit(s, entity_type="service", entity_id=service.id, action="deactivated", actor_id=actor_id)
        return service


def list_active_services(*, db: Optional[Session] = None) -> List[Service]:
    with session_scope(db) as s:
        return s.query(Service).filter(Service.is_active.is_(True)).order_by(Service.name.asc()).all()


def search_services(name: str, *, db: Optional[Session] = None) -> List[Service]:
    term = (name or "").strip().lower()
    with session_scope(db) as s:
        q = s.query(Service)
        if term:
            q = q.filter(Service.name.ilike(f"%{term}%"))
        return q.order_by(Service.name.asc()).all()


def add_service_to_task(
    task_id: int,
    service_id: int,
    quantity: Any,
    unit_cost_override: Any = None,
    notes: Optional[str] = None,
    *,
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> TaskServiceBinding:
    qty = positive(quantity, "quantity", MONEY_PLACES)
    override = optional_non_negative(unit_cost_override, "unit_cost_override", MONEY_PLACES)

    with session_scope(db) as s:
        task = load_task(s, task_id, for_update=True)
        service = _get_service(s, service_id)
        if not service.is_active:
            raise StateConflictError(f"Service {service.id} is inactive")

        existing = (
            s.query(TaskServiceBinding.id)
            .filter(
                TaskServiceBinding.task_id == task.id,
                TaskServiceBinding.service_id == service.id,
            )
            .first()
        )
        if existing is not None:
            raise StateConflictError(f"Service {service.id} is already bound to task {task.id}")

        binding = TaskServiceBinding(
            task_id=task.id,
            service_id=service.id,
            quantity=qty,
            unit_cost_override=override,
            notes=notes,
        )
        s.add(binding)
        try:
            s.flush()
        except IntegrityError as exc:
            raise StateConflictError(f"Service {service.id} is already bound to task {task.id}") from exc

        recalculate_task_costs(task.id, db=s)

        enqueue_audit(
            s,
            entity_type="task",
            entity_id=task.id,
            action="service_bound",
            actor_id=actor_id,
            details={"service_id": service.id, "quantity": str(qty)},
        )
        logger.info(
            "Service bound to task",
            extra={"task_id": task.id, "service_id": service.id, "binding_id": binding.id},
        )
        return binding


def remove_service_from_task(
    task_id: int,
    service_id: int,
    *,
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> None:
    with session_scope(db) as s:
        task = load_task(s, task_id, for_update=True)
        binding = (
            s.query(TaskServiceBinding)
            .filter(
                TaskServiceBinding.task_id == task.id,
                TaskServiceBinding.service_id == int(service_id),
            )
            .first()
        )
        if binding is None:
            raise NotFoundError("Task service binding", f"{task.id}/{service_id}")

        s.delete(binding)
        s.flush()

        recalculate_task_costs(task.id, db=s)

        enqueue_audit(
            s,
            entity_type="task",
            entity_id=task.id,
            action="service_unbound",
            actor_id=actor_id,
            details={"service_id": int(service_id)},
        )
        logger.info("Service unbound from task", extra={"task_id": task.id, "service_id": int(service_id)})


def list_task_services(task_id: int, *, db: Optional[Session] = None) -> List[TaskServiceBinding]:
    with session_scope(db) as s:
        load_task(s, task_id)
        return [binding for binding, _service in bindings_with_services(s, task_id)]


@dataclass(frozen=True)
class BindingCostLine:
    binding_id: int
    service_id: int
    service_name: str
    quantity: Decimal
    unit_cost_override: Optional[Decimal]
    cost: BindingCost

    @property
    def is_blended(self) -> bool:
        return isinstance(self.cost, BlendedCost)


def describe_binding(binding: TaskServiceBinding, service: Service) -> BindingCostLine:
    return BindingCostLine(
        binding_id=binding.id,
        service_id=service.id,
        service_name=service.name,
        quantity=Decimal(binding.quantity),
        unit_cost_override=(
            Decimal(binding.unit_cost_override) if binding.unit_cost_override is not None else None
        ),
        cost=binding_cost(binding, service),
    )


def task_cost_report(task_id: int, *, db: Optional[Session] = None) -> Dict[str, Any]:
    """Per-binding cost lines next to the task's stored totals."""
    with session_scope(db) as s:
        task = load_task(s, task_id)
        lines = [describe_binding(b, svc) for b, svc in bindings_with_services(s, task.id)]

        return {
            "task_id": task.id,
            "project_id": task.project_id,
            "lines": lines,
            "labor_cost": money(task.labor_cost),
            "material_cost": money(task.material_cost),
            "equipment_cost": money(task.equipment_cost),
            "blended_cost": money(task.blended_cost),
            "total_cost": money(task.total_cost),
        }
