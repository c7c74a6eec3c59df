from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.deps.auth import require_auth
from app.models.event_outbox import EventOutbox

router = APIRouter(prefix="/outbox", tags=["Outbox"])


class OutboxRow(BaseModel):
    id: int
    event_type: str
    payload: Dict[str, Any]
    processed: bool
    retry_count: int
    created_at: str
    processed_at: Optional[str]


class OutboxListResponse(BaseModel):
    limit: int
    offset: int
    rows: List[OutboxRow]


@router.get("", response_model=OutboxListResponse)
def list_outbox(
    processed: Optional[bool] = None,
    event_type: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=1_000_000),
    _auth: int = Depends(require_auth),
):
    db: Session = SessionLocal()
    try:
        q = db.query(EventOutbox)
        if processed is not None:
            q = q.filter(EventOutbox.processed == bool(processed))
        if event_type:
            q = q.filter(EventOutbox.event_type == event_type)

        rows = q.order_by(EventOutbox.id.asc()).limit(int(limit)).offset(int(offset)).all()

        return {
            "limit": int(limit),
            "offset": int(offset),
            "rows": [
                {
                    "id": r.id,
                    "event_type": r.event_type,
                    "payload": r.payload or {},
                    "processed": r.processed,
                    "retry_count": r.retry_count,
                    "created_at": r.created_at.isoformat(),
                    "processed_at": None if r.processed_at is None else r.processed_at.isoformat(),
                }
                for r in rows
            ],
        }
    finally:
        db.close()
