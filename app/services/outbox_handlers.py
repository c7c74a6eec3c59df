"""
Outbox consumers for the notification and audit collaborators.

Notifications are delivered as log lines on the "app.notifications" logger;
wiring a mail or chat transport means replacing notify_material_request.
"""
import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog
from app.models.event_outbox import EventOutbox
from app.services.events import (
    AUDIT,
    MATERIAL_REQUEST_APPROVED,
    MATERIAL_REQUEST_CREATED,
    MATERIAL_REQUEST_REJECTED,
)

logger = logging.getLogger(__name__)
notifications = logging.getLogger("app.notifications")


def _payload(row: EventOutbox) -> Dict[str, Any]:
    payload = row.payload
    if not isinstance(payload, dict):
        raise ValueError(f"Outbox row {row.id} has a non-object payload")
    return payload


def notify_material_request(row: EventOutbox, db: Session) -> None:
    payload = _payload(row)
    request_id = payload.get("material_request_id")
    if request_id is None:
        raise ValueError(f"{row.event_type} missing material_request_id")

    notifications.info(
        "Material request %s: %s",
        request_id,
        payload.get("status"),
        extra={
            "event_type": row.event_type,
            "material_request_id": request_id,
            "project_id": payload.get("project_id"),
            "requester_id": payload.get("requester_id"),
            "decided_by_id": payload.get("decided_by_id"),
            "rejection_reason": payload.get("rejection_reason"),
        },
    )


def record_audit(row: EventOutbox, db: Session) -> None:
    payload = _payload(row)
    for key in ("entity_type", "entity_id", "action"):
        if not payload.get(key):
            raise ValueError(f"AUDIT event missing {key}")

    db.add(
        AuditLog(
            entity_type=str(payload["entity_type"]),
            entity_id=str(payload["entity_id"]),
            action=str(payload["action"]),
            actor_id=payload.get("actor_id"),
            details=payload.get("details") or {},
        )
    )


HANDLERS = {
    MATERIAL_REQUEST_CREATED: notify_material_request,
    MATERIAL_REQUEST_APPROVED: notify_material_request,
    MATERIAL_REQUEST_REJECTED: notify_material_request,
    AUDIT: record_audit,
}
