"""
Task cost aggregation.

A binding contributes either an itemized cost (quantity times each of the
service's labor/material/equipment unit costs) or, when it carries a unit cost
override, a single blended cost (quantity times the override). A blended cost
cannot be split back into categories, so tasks keep it in its own column:

    total_cost = labor_cost + material_cost + equipment_cost + blended_cost
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.core.money import money
from app.database import session_scope
from app.models.service import Service
from app.models.task import Task
from app.models.task_service import TaskServiceBinding
from app.services.project_cascade import recalculate_project_realized_cost

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class ItemizedCost:
    labor: Decimal
    material: Decimal
    equipment: Decimal

    @property
    def total(self) -> Decimal:
        return self.labor + self.material + self.equipment


@dataclass(frozen=True)
class BlendedCost:
    amount: Decimal

    @property
    def total(self) -> Decimal:
        return self.amount


BindingCost = Union[ItemizedCost, BlendedCost]


@dataclass(frozen=True)
class TaskCostSummary:
    labor: Decimal = ZERO
    material: Decimal = ZERO
    equipment: Decimal = ZERO
    blended: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.labor + self.material + self.equipment + self.blended


def binding_cost(binding: TaskServiceBinding, service: Service) -> BindingCost:
    qty = Decimal(binding.quantity)
    if binding.unit_cost_override is not None:
        return BlendedCost(amount=money(qty * Decimal(binding.unit_cost_override)))
    return ItemizedCost(
        labor=money(qty * Decimal(service.unit_labor_cost)),
        material=money(qty * Decimal(service.unit_material_cost)),
        equipment=money(qty * Decimal(service.unit_equipment_cost)),
    )


def summarize(costs: Iterable[BindingCost]) -> TaskCostSummary:
    labor = material = equipment = blended = ZERO
    for cost in costs:
        if isinstance(cost, BlendedCost):
            blended += cost.amount
        else:
            labor += cost.labor
            material += cost.material
            equipment += cost.equipment

    return TaskCostSummary(
        labor=money(labor),
        material=money(material),
        equipment=money(equipment),
        blended=money(blended),
    )


def load_task(db: Session, task_id: int, *, for_update: bool = False) -> Task:
    q = db.query(Task).filter(Task.id == int(task_id))
    if for_update:
        q = q.with_for_update()
    task = q.first()
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


def bindings_with_services(db: Session, task_id: int) -> List[Tuple[TaskServiceBinding, Service]]:
    return (
        db.query(TaskServiceBinding, Service)
        .join(Service, Service.id == TaskServiceBinding.service_id)
        .filter(TaskServiceBinding.task_id == int(task_id))
        .order_by(TaskServiceBinding.id.asc())
        .all()
    )


def recalculate_task_costs(task_id: int, *, db: Optional[Session] = None) -> Task:
    """
    Rewrite the task's cost columns from its current bindings, then cascade the
    new total to the owning project's realized cost.

    A task with no bindings ends up with every cost at zero.
    """
    with session_scope(db) as s:
        task = load_task(s, task_id, for_update=True)
        s.flush()

        summary = summarize(
            binding_cost(binding, service)
            for binding, service in bindings_with_services(s, task.id)
        )

        task.labor_cost = summary.labor
        task.material_cost = summary.material
        task.equipment_cost = summary.equipment
        task.blended_cost = summary.blended
        task.total_cost = money(summary.total)
        s.flush()

        recalculate_project_realized_cost(task.project_id, db=s)

        logger.info(
            "Task costs recalculated",
            extra={
                "task_id": task.id,
                "project_id": task.project_id,
                "total_cost": str(task.total_cost),
            },
        )
        return task
