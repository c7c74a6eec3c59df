from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import EngineError, http_status_for
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.schemas.material import MaterialCreate, MaterialResponse, StockMovement
from app.services import material_service

router = APIRouter(prefix="/materials", tags=["Materials"])


@router.post("", response_model=MaterialResponse)
def create_material(payload: MaterialCreate, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        material = material_service.create_material(
            name=payload.name,
            unit_of_measure=payload.unit_of_measure,
            unit_price=payload.unit_price,
            current_stock=payload.current_stock,
            minimum_stock=payload.minimum_stock,
            supplier=payload.supplier,
            description=payload.description,
            actor_id=user_id,
            db=db,
        )
        db.commit()
        db.refresh(material)
        return material
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("", response_model=List[MaterialResponse])
def list_materials(active_only: bool = False, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return material_service.list_materials(active_only=active_only, db=db)
    finally:
        db.close()


@router.get("/below-minimum", response_model=List[MaterialResponse])
def list_below_minimum(_auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return material_service.list_materials_below_minimum(db=db)
    finally:
        db.close()


@router.get("/{material_id}", response_model=MaterialResponse)
def get_material(material_id: int, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return material_service.get_material(material_id, db=db)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.post("/{material_id}/movements", response_model=MaterialResponse)
def record_movement(material_id: int, payload: StockMovement, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        material = material_service.record_stock_movement(
            material_id, payload.movement_type, payload.quantity, actor_id=user_id, db=db
        )
        db.commit()
        db.refresh(material)
        return material
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.post("/{material_id}/deactivate", response_model=MaterialResponse)
def deactivate_material(material_id: int, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        material = material_service.deactivate_material(material_id, actor_id=user_id, db=db)
        db.commit()
        db.refresh(material)
        return material
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()
