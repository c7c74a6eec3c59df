import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.database import SessionLocal, is_postgres
from app.models.event_outbox import EventOutbox

logger = logging.getLogger(__name__)

OUTBOX_LOCK_KEYS = (7301, 7302)


@dataclass(frozen=True)
class OutboxProcessResult:
    processed: int
    failed: int


OutboxHandler = Callable[[EventOutbox, Session], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def retry_backoff(retry_count: int) -> timedelta:
    """
    Wait before the next attempt after `retry_count` failures:
    0 -> 0s, 1 -> 2s, 2 -> 4s, 3 -> 8s, ... capped at 60s.
    """
    n = int(retry_count or 0)
    if n <= 0:
        return timedelta(seconds=0)
    return timedelta(seconds=min(60, 2**n))


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def default_handlers() -> Dict[str, OutboxHandler]:
    from app.services.outbox_handlers import HANDLERS

    return dict(HANDLERS)


def process_outbox_batch(
    *,
    db: Optional[Session] = None,
    now: Optional[datetime] = None,
    batch_size: int = 50,
    max_retries: int = 10,
    handlers: Optional[Dict[str, OutboxHandler]] = None,
) -> OutboxProcessResult:
    """
    Claim due rows (skipping rows another worker holds), hand each to its
    handler and record the outcome. A failing row is rescheduled with
    exponential backoff and given up on after max_retries attempts.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    now = _as_utc(now or _utcnow())
    if handlers is None:
        handlers = default_handlers()

    processed = 0
    failed = 0

    try:
        rows = (
            db.query(EventOutbox)
            .filter(EventOutbox.processed.is_(False))
            .filter(EventOutbox.available_at <= now)
            .order_by(EventOutbox.id.asc())
            .with_for_update(skip_locked=True)
            .limit(int(batch_size))
            .all()
        )

        for row in rows:
            handler = handlers.get(row.event_type)
            try:
                if handler is None:
                    raise ValueError(f"Unknown event_type: {row.event_type}")

                handler(row, db)

                row.processed = True
                row.processed_at = now
                db.flush()
                processed += 1

            except Exception:
                row.retry_count = int(row.retry_count or 0) + 1
                if row.retry_count >= int(max_retries):
                    row.processed = True
                    row.processed_at = now
                else:
                    row.available_at = now + retry_backoff(row.retry_count)

                db.flush()
                failed += 1
                logger.exception(
                    "Outbox row processing failed",
                    extra={
                        "event_outbox_id": row.id,
                        "event_type": row.event_type,
                        "retry_count": int(row.retry_count),
                        "max_retries": int(max_retries),
                    },
                )

        if owns_db:
            db.commit()

        return OutboxProcessResult(processed=processed, failed=failed)

    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def try_acquire_outbox_lock(db: Session) -> bool:
    # Single-process databases need no cross-process guard
    if not is_postgres():
        return True
    res = db.execute(
        text("select pg_try_advisory_lock(:a, :b)"),
        {"a": OUTBOX_LOCK_KEYS[0], "b": OUTBOX_LOCK_KEYS[1]},
    ).scalar()
    return bool(res)


def release_outbox_lock(db: Session) -> None:
    if not is_postgres():
        return
    db.execute(
        text("select pg_advisory_unlock(:a, :b)"),
        {"a": OUTBOX_LOCK_KEYS[0], "b": OUTBOX_LOCK_KEYS[1]},
    )
