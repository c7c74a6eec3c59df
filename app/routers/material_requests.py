from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import EngineError, http_status_for
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.schemas.material_request import (
    MaterialRequestCreate,
    MaterialRequestReject,
    MaterialRequestResponse,
)
from app.services import material_request_service

router = APIRouter(prefix="/material-requests", tags=["Material Requests"])


@router.post("", response_model=MaterialRequestResponse)
def create_request(payload: MaterialRequestCreate, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        req = material_request_service.create_material_request(
            payload.project_id,
            user_id,
            [item.model_dump() for item in payload.items],
            needed_by=payload.needed_by,
            note=payload.note,
            db=db,
        )
        db.commit()
        return req
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("", response_model=List[MaterialRequestResponse])
def list_requests(
    status: Optional[str] = None,
    project_id: Optional[int] = None,
    _auth: int = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return material_request_service.list_material_requests(
            status=status, project_id=project_id, db=db
        )
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/{request_id}", response_model=MaterialRequestResponse)
def get_request(request_id: int, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return material_request_service.get_material_request(request_id, db=db)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.post("/{request_id}/approve", response_model=MaterialRequestResponse)
def approve_request(request_id: int, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        req = material_request_service.approve_material_request(request_id, user_id, db=db)
        db.commit()
        return req
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.post("/{request_id}/reject", response_model=MaterialRequestResponse)
def reject_request(request_id: int, payload: MaterialRequestReject, user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        req = material_request_service.reject_material_request(
            request_id, user_id, payload.reason, db=db
        )
        db.commit()
        return req
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()
