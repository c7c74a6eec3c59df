import os

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.core.errors import EngineError, http_status_for
from app.services.auth_service import create_access_token
from app.services.user_service import get_user

router = APIRouter(prefix="/auth", tags=["auth"])


class TokenRequest(BaseModel):
    user_id: int


@router.post("/token")
def issue_token(payload: TokenRequest):
    env = os.getenv("ENV", "dev").lower()
    if env not in {"dev", "local", "test"}:
        raise HTTPException(status_code=404, detail="Not Found")

    try:
        user = get_user(payload.user_id)
    except EngineError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=str(exc)) from exc
    if not user.is_active:
        raise HTTPException(status_code=403, detail="User is inactive")

    try:
        token = create_access_token(user_id=user.id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "access_token": token,
        "token_type": "bearer",
    }
