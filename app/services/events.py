"""
After-commit event publishing for the notification and audit collaborators.

Engine operations call enqueue_event(db, ...) inside their unit of work. The
events are held on the session and only written to event_outbox once that
session commits, in a separate session. A rollback discards them. Failing to
write an event is logged and never propagates: the engine operation that
produced it has already committed.
"""
import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.models.event_outbox import EventOutbox

logger = logging.getLogger(__name__)

MATERIAL_REQUEST_CREATED = "MATERIAL_REQUEST_CREATED"
MATERIAL_REQUEST_APPROVED = "MATERIAL_REQUEST_APPROVED"
MATERIAL_REQUEST_REJECTED = "MATERIAL_REQUEST_REJECTED"
AUDIT = "AUDIT"

_PENDING_KEY = "pending_outbox_events"


def enqueue_event(
    db: Session,
    event_type: str,
    payload: Dict[str, Any],
    idempotency_key: Optional[str] = None,
) -> None:
    key = idempotency_key or str(uuid.uuid4())
    db.info.setdefault(_PENDING_KEY, []).append((event_type, payload, key))


def enqueue_audit(
    db: Session,
    *,
    entity_type: str,
    entity_id: Any,
    action: str,
    actor_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    enqueue_event(
        db,
        AUDIT,
        {
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "action": action,
            "actor_id": actor_id,
            "details": details or {},
        },
    )


def publish_event(event_type: str, payload: Dict[str, Any], idempotency_key: str) -> bool:
    db = SessionLocal()
    try:
        db.add(
            EventOutbox(
                event_type=event_type,
                idempotency_key=idempotency_key,
                payload=payload,
            )
        )
        db.commit()
        return True
    except IntegrityError:
        db.rollback()
        logger.info(
            "Outbox event already published",
            extra={"event_type": event_type, "idempotency_key": idempotency_key},
        )
        return False
    except Exception:
        db.rollback()
        logger.exception(
            "Outbox event publish failed",
            extra={"event_type": event_type, "idempotency_key": idempotency_key},
        )
        return False
    finally:
        db.close()


@event.listens_for(Session, "after_commit")
def _flush_pending_events(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, None)
    if not pending:
        return
    for event_type, payload, key in pending:
        publish_event(event_type, payload, key)


@event.listens_for(Session, "after_rollback")
def _discard_pending_events(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)
