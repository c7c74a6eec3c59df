from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import EngineError, http_status_for
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.schemas.service import ServiceCreate, ServiceResponse, ServiceUpdate
from app.services import catalog_service

router = APIRouter(prefix="/services", tags=["Services"])


@router.post("", response_model=ServiceResponse)
def create_service(payload: ServiceCreate, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        service = catalog_service.create_service(
            name=payload.name,
            unit_of_measurement=payload.unit_of_measurement,
            unit_labor_cost=payload.unit_labor_cost,
            unit_material_cost=payload.unit_material_cost,
            unit_equipment_cost=payload.unit_equipment_cost,
            description=payload.description,
            actor_id=user_id,
            db=db,
        )
        db.commit()
        db.refresh(service)
        return service
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("", response_model=List[ServiceResponse])
def list_services(q: Optional[str] = None, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        if q:
            return catalog_service.search_services(q, db=db)
        return catalog_service.list_active_services(db=db)
    finally:
        db.close()


@router.get("/{service_id}", response_model=ServiceResponse)
def get_service(service_id: int, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return catalog_service.get_service(service_id, db=db)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.patch("/{service_id}", response_model=ServiceResponse)
def update_service(service_id: int, payload: ServiceUpdate, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        service = catalog_service.update_service(
            service_id,
            changes=payload.model_dump(exclude_unset=True),
            actor_id=user_id,
            db=db,
        )
        db.commit()
        db.refresh(service)
        return service
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.post("/{service_id}/deactivate", response_model=ServiceResponse)
def deactivate_service(service_id: int, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        service = catalog_service.deactivate_service(service_id, actor_id=user_id, db=db)
        db.commit()
        db.refresh(service)
        return service
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()
