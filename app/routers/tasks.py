from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import EngineError, http_status_for
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.schemas.task import (
    CostLineResponse,
    TaskCostReport,
    TaskCreate,
    TaskProgressUpdate,
    TaskResponse,
    TaskServiceCreate,
    TaskServiceResponse,
    TaskStatusUpdate,
)
from app.services import catalog_service, task_engine
from app.services.catalog_service import BindingCostLine
from app.services.cost_engine import BlendedCost

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def _cost_line(line: BindingCostLine) -> CostLineResponse:
    zero = Decimal("0")
    if isinstance(line.cost, BlendedCost):
        labor = material = equipment = zero
        blended = line.cost.amount
    else:
        labor, material, equipment = line.cost.labor, line.cost.material, line.cost.equipment
        blended = zero

    return CostLineResponse(
        binding_id=line.binding_id,
        service_id=line.service_id,
        service_name=line.service_name,
        quantity=line.quantity,
        unit_cost_override=line.unit_cost_override,
        labor_cost=labor,
        material_cost=material,
        equipment_cost=equipment,
        blended_cost=blended,
        total_cost=line.cost.total,
    )


@router.post("", response_model=TaskResponse)
def create_task(payload: TaskCreate, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        task = task_engine.create_task(
            payload.project_id,
            title=payload.title,
            description=payload.description,
            status=payload.status,
            progress_percentage=payload.progress_percentage,
            actor_id=user_id,
            db=db,
        )
        db.commit()
        db.refresh(task)
        return task
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return task_engine.get_task(task_id, db=db)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.delete("/{task_id}", status_code=204)
def delete_task(task_id: int, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        task_engine.delete_task(task_id, actor_id=user_id, db=db)
        db.commit()
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.put("/{task_id}/progress", response_model=TaskResponse)
def update_progress(task_id: int, payload: TaskProgressUpdate, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        task = task_engine.update_task_progress(
            task_id, payload.progress_percentage, payload.notes, actor_id=user_id, db=db
        )
        db.commit()
        db.refresh(task)
        return task
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.put("/{task_id}/status", response_model=TaskResponse)
def update_status(task_id: int, payload: TaskStatusUpdate, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        task = task_engine.update_task_status(task_id, payload.status, actor_id=user_id, db=db)
        db.commit()
        db.refresh(task)
        return task
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/{task_id}/services", response_model=List[TaskServiceResponse])
def list_task_services(task_id: int, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return catalog_service.list_task_services(task_id, db=db)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.post("/{task_id}/services", response_model=TaskServiceResponse)
def add_service(task_id: int, payload: TaskServiceCreate, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        binding = catalog_service.add_service_to_task(
            task_id,
            payload.service_id,
            payload.quantity,
            payload.unit_cost_override,
            payload.notes,
            actor_id=user_id,
            db=db,
        )
        db.commit()
        return binding
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.delete("/{task_id}/services/{service_id}", status_code=204)
def remove_service(task_id: int, service_id: int, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        catalog_service.remove_service_from_task(task_id, service_id, actor_id=user_id, db=db)
        db.commit()
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/{task_id}/costs", response_model=TaskCostReport)
def cost_report(task_id: int, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        report = catalog_service.task_cost_report(task_id, db=db)
        report["lines"] = [_cost_line(line) for line in report["lines"]]
        return report
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()
