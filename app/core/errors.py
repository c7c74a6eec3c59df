"""
Engine error taxonomy.

    EngineError
    +-- ValidationError         malformed, missing or out-of-range input
    +-- NotFoundError           referenced entity does not exist
    +-- StateConflictError      operation illegal in the current state
    +-- InsufficientStockError  stock too low for a removal or an approval

All of them are raised before anything is committed, so the caller's unit of
work can simply be rolled back. They subclass ValueError so older call sites
that catch ValueError keep working.
"""
from decimal import Decimal
from typing import Optional


class EngineError(ValueError):
    code = "ENGINE_ERROR"
    http_status = 400


class ValidationError(EngineError):
    code = "VALIDATION_ERROR"
    http_status = 422


class NotFoundError(EngineError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class StateConflictError(EngineError):
    code = "STATE_CONFLICT"
    http_status = 409


class InsufficientStockError(EngineError):
    code = "INSUFFICIENT_STOCK"
    http_status = 409

    def __init__(
        self,
        material_name: str,
        available: Decimal,
        requested: Decimal,
        material_id: Optional[int] = None,
    ):
        self.material_id = material_id
        self.material_name = material_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for material {material_name}: "
            f"available={available}, requested={requested}"
        )


def http_status_for(exc: Exception) -> int:
    return int(getattr(exc, "http_status", 400))
