from datetime import datetime, timedelta, timezone

from app.database import SessionLocal
from app.models.event_outbox import EventOutbox
from app.services.outbox_processor import process_outbox_batch


def test_outbox_due_filter_prevents_starvation():
    """
    A row waiting out its backoff must not hide later rows that are due,
    even when the batch only has room for one row.
    """
    db = SessionLocal()
    try:
        now = datetime.now(timezone.utc)

        waiting = EventOutbox(
            event_type="MATERIAL_REQUEST_CREATED",
            idempotency_key="material_request:1:created",
            payload={"material_request_id": 1},
            processed=False,
            retry_count=3,
            available_at=now + timedelta(seconds=8),
        )
        due = EventOutbox(
            event_type="MATERIAL_REQUEST_CREATED",
            idempotency_key="material_request:2:created",
            payload={"material_request_id": 2},
            processed=False,
            retry_count=0,
            available_at=now - timedelta(seconds=10),
        )
        db.add(waiting)
        db.flush()
        db.add(due)
        db.commit()

        seen = []

        def _record(row, _db):
            seen.append(row.payload["material_request_id"])

        result = process_outbox_batch(
            db=db,
            now=now,
            batch_size=1,
            handlers={"MATERIAL_REQUEST_CREATED": _record},
        )
        db.commit()

        assert result.processed == 1
        assert result.failed == 0
        assert seen == [2]

        db.refresh(waiting)
        db.refresh(due)
        assert waiting.processed is False
        assert due.processed is True
    finally:
        db.close()
