import logging
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, StateConflictError, ValidationError
from app.core.money import STOCK_PLACES, money, non_negative, required_text
from app.database import session_scope
from app.models.material import Material
from app.services import stock_ledger
from app.services.events import enqueue_audit

logger = logging.getLogger(__name__)

# Portuguese aliases are still sent by older clients
MOVEMENT_IN = {"IN", "ENTRADA"}
MOVEMENT_OUT = {"OUT", "SAIDA"}


def _load_material(db: Session, material_id: int) -> Material:
    material = db.query(Material).filter(Material.id == int(material_id)).first()
    if material is None:
        raise NotFoundError("Material", material_id)
    return material


def create_material(
    *,
    name: str,
    unit_of_measure: str,
    unit_price: Any = 0,
    current_stock: Any = 0,
    minimum_stock: Any = 0,
    supplier: Optional[str] = None,
    description: Optional[str] = None,
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> Material:
    clean_name = required_text(name, "name")
    uom = required_text(unit_of_measure, "unit_of_measure")
    price = money(non_negative(unit_price, "unit_price"))
    initial = non_negative(current_stock, "current_stock", STOCK_PLACES)
    minimum = non_negative(minimum_stock, "minimum_stock", STOCK_PLACES)

    with session_scope(db) as s:
        if s.query(Material.id).filter(Material.name == clean_name).first() is not None:
            raise StateConflictError(f"Material name already exists: {clean_name}")

        material = Material(
            name=clean_name,
            description=description,
            unit_of_measure=uom,
            unit_price=price,
            supplier=supplier,
            current_stock=Decimal("0"),
            minimum_stock=minimum,
            is_active=True,
        )
        s.add(material)
        try:
            s.flush()
        except IntegrityError as exc:
            raise StateConflictError(f"Material name already exists: {clean_name}") from exc

        # Opening balance goes through the ledger like any other movement
        if initial > 0:
            stock_ledger.add_stock(material.id, initial, db=s)

        enqueue_audit(s, entity_type="material", entity_id=material.id, action="created", actor_id=actor_id)
        logger.info("Material created", extra={"material_id": material.id, "material_name": material.name})
        return material


def get_material(material_id: int, *, db: Optional[Session] = None) -> Material:
    with session_scope(db) as s:
        return _load_material(s, material_id)


def list_materials(*, active_only: bool = False, db: Optional[Session] = None) -> List[Material]:
    with session_scope(db) as s:
        q = s.query(Material)
        if active_only:
            q = q.filter(Material.is_active.is_(True))
        return q.order_by(Material.name.asc()).all()


def list_materials_below_minimum(*, db: Optional[Session] = None) -> List[Material]:
    with session_scope(db) as s:
        return (
            s.query(Material)
            .filter(Material.is_active.is_(True))
            .filter(Material.current_stock <= Material.minimum_stock)
            .order_by(Material.name.asc())
            .all()
        )


def record_stock_movement(
    material_id: int,
    movement_type: str,
    quantity: Any,
    *,
    actor_id: Optional[int] = None,
    db: Optional[Session] = None,
) -> Material:
    kind = str(movement_type or "").strip().upper()
    if kind in MOVEMENT_IN:
        op = stock_ledger.add_stock
    elif kind in MOVEMENT_OUT:
        op = stock_ledger.remove_stock
    else:
        raise ValidationError(f"Invalid movement type: {movement_type}")

    with session_scope(db) as s:
        material = op(material_id, quantity, db=s)
        enqueue_audit(
            s,
            entity_type="material",
            entity_id=material.id,
            action="stock_in" if kind in MOVEMENT_IN else "stock_out",
            actor_id=actor_id,
            details={"quantity": str(quantity), "current_stock": str(material.current_stock)},
        )
        return material


def deactivate_material(material_id: int, *, actor_id: Optional[int] = None, db: Optional[Session] = None) -> Material:
    with session_scope(db) as s:
        material = stock_ledger.lock_material(s, material_id)
        material.is_active = False
        s.flush()
        enqueue_audit(s, entity_type="material", entity_id=material.id, action="deactivated", actor_id=actor_id)
        return material
