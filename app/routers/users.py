from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import EngineError, http_status_for
from app.database import SessionLocal
from app.deps.auth import require_auth
from app.schemas.user import UserCreate, UserResponse
from app.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserResponse)
def create_user(payload: UserCreate):
    db = SessionLocal()
    try:
        user = user_service.create_user(full_name=payload.full_name, email=payload.email, db=db)
        db.commit()
        return user
    except EngineError as exc:
        db.rollback()
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/me", response_model=UserResponse)
def get_me(user_id: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return user_service.get_user(user_id, db=db)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, _auth: int = Depends(require_auth)):
    db = SessionLocal()
    try:
        return user_service.get_user(user_id, db=db)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    finally:
        db.close()
