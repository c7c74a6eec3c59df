"""
Material request workflow.

    pending --approve--> approved
    pending --reject---> rejected

Both targets are terminal. Approval is all-or-nothing: every material the
request touches is row-locked (ascending id) before any stock is checked, and
the locks are held until the deduction commits. Concurrent approvals competing
for the same material therefore serialize instead of both passing the check.

SQLite has no row locks and ignores FOR UPDATE, so approvals get no such
serialization there. Concurrent approvers need PostgreSQL.
"""
import logging
from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from app.core.errors import (
    InsufficientStockError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from app.core.money import STOCK_PLACES, positive, required_text
from app.database import session_scope
from app.models.material import Material
from app.models.material_request import MaterialRequest, MaterialRequestItem, RequestStatus
from app.models.project import Project
from app.services import stock_ledger
from app.services.events import (
    MATERIAL_REQUEST_APPROVED,
    MATERIAL_REQUEST_CREATED,
    MATERIAL_REQUEST_REJECTED,
    enqueue_audit,
    enqueue_event,
)
from app.services.user_service import load_user

logger = logging.getLogger(__name__)


def _load_request(db: Session, request_id: int, *, for_update: bool = False) -> MaterialRequest:
    q = db.query(MaterialRequest).filter(MaterialRequest.id == int(request_id))
    if for_update:
        q = q.with_for_update()
    row = q.first()
    if row is None:
        raise NotFoundError("Material request", request_id)
    return row


def _event_payload(req: MaterialRequest) -> Dict[str, Any]:
    return {
        "material_request_id": req.id,
        "project_id": req.project_id,
        "requester_id": req.requester_id,
        "status": req.status,
        "decided_by_id": req.decided_by_id,
        "rejection_reason": req.rejection_reason,
        "item_count": len(req.items),
        "total_amount": str(req.total_amount),
    }


def _ensure_pending(req: MaterialRequest) -> None:
    if not req.is_pending:
        raise StateConflictError(f"Material request {req.id} is already {req.status}")


def create_material_request(
    project_id: int,
    requester_id: int,
    items: Sequence[Mapping[str, Any]],
    *,
    needed_by: Optional[date] = None,
    note: Optional[str] = None,
    db: Optional[Session] = None,
) -> MaterialRequest:
    """
    Every reference and quantity is validated before anything is added to the
    session. Each line keeps the material's unit price as of now.
    """
    if not items:
        raise ValidationError("A material request needs at least one item")

    material_ids: List[int] = []
    quantities: List[Decimal] = []
    for idx, item in enumerate(items, start=1):
        raw_id = item.get("material_id")
        if raw_id is None:
            raise ValidationError(f"Item {idx}: material_id is required")
        try:
            material_ids.append(int(raw_id))
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Item {idx}: material_id must be an integer") from exc
        quantities.append(positive(item.get("quantity"), f"items[{idx}].quantity", STOCK_PLACES))

    with session_scope(db) as s:
        if s.query(Project.id).filter(Project.id == int(project_id)).first() is None:
            raise NotFoundError("Project", project_id)
        load_user(s, requester_id)

        materials = {
            m.id: m for m in s.query(Material).filter(Material.id.in_(set(material_ids))).all()
        }

        lines: List[MaterialRequestItem] = []
        for idx, (item, material_id, qty) in enumerate(zip(items, material_ids, quantities), start=1):
            material = materials.get(material_id)
            if material is None:
                raise NotFoundError("Material", material_id)
            if not material.is_active:
                raise ValidationError(f"Material {material.name} is inactive")

            lines.append(
                MaterialRequestItem(
                    line_number=idx,
                    material_id=material.id,
                    quantity=qty,
                    unit_price=material.unit_price,
                    note=item.get("note"),
                )
            )

        req = MaterialRequest(
            project_id=int(project_id),
            requester_id=int(requester_id),
            needed_by=needed_by,
            note=note,
            status=RequestStatus.PENDING.value,
        )
        req.items = lines
        s.add(req)
        s.flush()

        enqueue_event(
            s,
            MATERIAL_REQUEST_CREATED,
            _event_payload(req),
            idempotency_key=f"material_request:{req.id}:created",
        )
        enqueue_audit(
            s,
            entity_type="material_request",
            entity_id=req.id,
            action="created",
            actor_id=req.requester_id,
            details={"item_count": len(lines)},
        )
        logger.info(
            "Material request created",
            extra={"material_request_id": req.id, "project_id": req.project_id, "item_count": len(lines)},
        )
        return req


def approve_material_request(
    request_id: int,
    approver_id: int,
    *,
    db: Optional[Session] = None,
) -> MaterialRequest:
    with session_scope(db) as s:
        req = _load_request(s, request_id, for_update=True)
        _ensure_pending(req)
        load_user(s, approver_id)

        # Repeated materials are checked against their combined quantity
        needed: "OrderedDict[int, Decimal]" = OrderedDict()
        for item in req.items:
            needed[item.material_id] = needed.get(item.material_id, Decimal("0")) + Decimal(item.quantity)

        locked = {mid: stock_ledger.lock_material(s, mid) for mid in sorted(needed)}

        for material_id, qty in needed.items():
            material = locked[material_id]
            available = Decimal(material.current_stock)
            if qty > available:
                logger.warning(
                    "Material request approval refused: insufficient stock",
                    extra={
                        "material_request_id": req.id,
                        "material_id": material.id,
                        "available": str(available),
                        "requested": str(qty),
                    },
                )
                raise InsufficientStockError(
                    material.name,
                    available=available,
                    requested=qty,
                    material_id=material.id,
                )

        for item in req.items:
            stock_ledger.remove_stock(item.material_id, item.quantity, db=s)

        req.status = RequestStatus.APPROVED.value
        req.decided_by_id = int(approver_id)
        req.decided_at = datetime.utcnow()
        s.flush()

        enqueue_event(
            s,
            MATERIAL_REQUEST_APPROVED,
            _event_payload(req),
            idempotency_key=f"material_request:{req.id}:approved",
        )
        enqueue_audit(
            s,
            entity_type="material_request",
            entity_id=req.id,
            action="approved",
            actor_id=int(approver_id),
        )
        logger.info(
            "Material request approved",
            extra={"material_request_id": req.id, "approver_id": int(approver_id)},
        )
        return req


def reject_material_request(
    request_id: int,
    approver_id: int,
    reason: Optional[str],
    *,
    db: Optional[Session] = None,
) -> MaterialRequest:
    """No stock is touched. The reason is mandatory."""
    with session_scope(db) as s:
        req = _load_request(s, request_id, for_update=True)
        _ensure_pending(req)
        clean_reason = required_text(reason, "rejection reason")
        load_user(s, approver_id)

        req.status = RequestStatus.REJECTED.value
        req.decided_by_id = int(approver_id)
        req.decided_at = datetime.utcnow()
        req.rejection_reason = clean_reason
        s.flush()

        enqueue_event(
            s,
            MATERIAL_REQUEST_REJECTED,
            _event_payload(req),
            idempotency_key=f"material_request:{req.id}:rejected",
        )
        enqueue_audit(
            s,
            entity_type="material_request",
            entity_id=req.id,
            action="rejected",
            actor_id=int(approver_id),
            details={"reason": clean_reason},
        )
        logger.info(
            "Material request rejected",
            extra={"material_request_id": req.id, "approver_id": int(approver_id)},
        )
        return req


def get_material_request(request_id: int, *, db: Optional[Session] = None) -> MaterialRequest:
    with session_scope(db) as s:
        return _load_request(s, request_id)


def list_material_requests(
    *,
    status: Optional[str] = None,
    project_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> List[MaterialRequest]:
    if status is not None and status not in {st.value for st in RequestStatus}:
        raise ValidationError(f"Invalid request status: {status}")

    with session_scope(db) as s:
        q = s.query(MaterialRequest)
        if status is not None:
            q = q.filter(MaterialRequest.status == status)
        if project_id is not None:
            q = q.filter(MaterialRequest.project_id == int(project_id))
        return q.order_by(MaterialRequest.created_at.desc(), MaterialRequest.id.desc()).all()
