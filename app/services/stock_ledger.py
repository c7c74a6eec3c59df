import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.core.errors import InsufficientStockError, NotFoundError
from app.core.money import STOCK_PLACES, positive
from app.database import session_scope
from app.models.material import Material

logger = logging.getLogger(__name__)


def lock_material(db: Session, material_id: int) -> Material:
    """Load a material holding its row lock until the transaction ends."""
    material = (
        db.query(Material)
        .filter(Material.id == int(material_id))
        .with_for_update()
        .first()
    )
    if material is None:
        raise NotFoundError("Material", material_id)
    return material


def add_stock(material_id: int, quantity: Any, *, db: Optional[Session] = None) -> Material:
    """
    If db is provided, this function will NOT commit/close. Caller owns the transaction.
    If db is None, this function manages its own session + commit.
    """
    qty = positive(quantity, "quantity", STOCK_PLACES)

    with session_scope(db) as s:
        material = lock_material(s, material_id)
        material.current_stock = Decimal(material.current_stock) + qty
        s.flush()

        logger.info(
            "Stock added",
            extra={
                "material_id": material.id,
                "quantity": str(qty),
                "current_stock": str(material.current_stock),
            },
        )
        return material


def remove_stock(material_id: int, quantity: Any, *, db: Optional[Session] = None) -> Material:
    """
    Deduct stock, failing (never clamping) when quantity exceeds current stock.

    Not retry-safe: repeating a successful call deducts twice. Only a call that
    raised may be retried.
    """
    qty = positive(quantity, "quantity", STOCK_PLACES)

    with session_scope(db) as s:
        material = lock_material(s, material_id)
        available = Decimal(material.current_stock)
        if qty > available:
            raise InsufficientStockError(
                material.name,
                available=available,
                requested=qty,
                material_id=material.id,
            )

        material.current_stock = available - qty
        s.flush()

        logger.info(
            "Stock removed",
            extra={
                "material_id": material.id,
                "quantity": str(qty),
                "current_stock": str(material.current_stock),
            },
        )
        return material
