import asyncio
import logging
import os
from typing import Optional

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from app import database
from app.database import SessionLocal
from app.services.outbox_processor import (
    process_outbox_batch,
    release_outbox_lock,
    try_acquire_outbox_lock,
)

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if not v:
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if not v:
        return default
    try:
        return float(v)
    except ValueError:
        return default


def outbox_worker_enabled() -> bool:
    # Tests drive the processor directly
    if os.getenv("PYTEST_CURRENT_TEST"):
        return False
    v = os.getenv("OUTBOX_WORKER_ENABLED")
    if v is None:
        return True
    return v.strip().lower() not in {"0", "false", "no", "off"}


def _dispose_pool() -> None:
    if database.engine is None:
        return
    try:
        database.engine.dispose()
    except Exception:
        logger.exception("Engine dispose failed", extra={"component": "outbox_worker"})


def _run_tick(batch_size: int) -> None:
    work_db: Session = SessionLocal()
    try:
        result = process_outbox_batch(db=work_db, batch_size=batch_size)
        work_db.commit()
        if result.processed or result.failed:
            logger.info(
                "Outbox batch processed",
                extra={"processed": result.processed, "failed": result.failed},
            )
    except Exception:
        work_db.rollback()
        raise
    finally:
        work_db.close()


async def outbox_worker_loop(*, poll_seconds: float = 1.0, batch_size: int = 50) -> None:
    """
    Poll the outbox forever. Only the process holding the advisory lock
    processes batches; database failures are logged and the loop reconnects.
    """
    logger.info(
        "Outbox worker started",
        extra={"poll_seconds": float(poll_seconds), "batch_size": int(batch_size)},
    )

    while True:
        lock_db: Session = SessionLocal()
        have_lock = False
        try:
            have_lock = try_acquire_outbox_lock(lock_db)
            if not have_lock:
                await asyncio.sleep(poll_seconds)
                continue

            while True:
                try:
                    _run_tick(batch_size)
                except DBAPIError:
                    logger.exception(
                        "Outbox worker tick failed",
                        extra={"component": "outbox_worker", "reason": "dbapi_error"},
                    )
                    _dispose_pool()
                except Exception:
                    logger.exception(
                        "Outbox worker tick failed",
                        extra={"component": "outbox_worker", "reason": "unexpected"},
                    )
                await asyncio.sleep(poll_seconds)

        except asyncio.CancelledError:
            logger.info("Outbox worker cancelled; shutting down")
            raise

        except DBAPIError:
            logger.exception(
                "Outbox worker lock connection failed",
                extra={"component": "outbox_worker", "reason": "lock_dbapi_error"},
            )
            _dispose_pool()
            await asyncio.sleep(poll_seconds)

        finally:
            if have_lock:
                try:
                    release_outbox_lock(lock_db)
                except DBAPIError:
                    logger.warning("Outbox advisory lock release failed", extra={"component": "outbox_worker"})
            lock_db.close()


def start_outbox_worker_task() -> Optional[asyncio.Task]:
    if not outbox_worker_enabled():
        logger.info("Outbox worker disabled")
        return None

    poll_seconds = _env_float("OUTBOX_POLL_SECONDS", 1.0)
    batch_size = _env_int("OUTBOX_BATCH_SIZE", 50)
    return asyncio.create_task(outbox_worker_loop(poll_seconds=poll_seconds, batch_size=batch_size))
