from decimal import Decimal

import pytest

from app.core.errors import InsufficientStockError, NotFoundError, StateConflictError, ValidationError
from app.services import material_service, stock_ledger


def test_add_and_remove_stock(make_material):
    material = make_material(stock="10", minimum="5")

    stock_ledger.add_stock(material.id, "2.5")
    assert material_service.get_material(material.id).current_stock == Decimal("12.5")

    stock_ledger.remove_stock(material.id, "12.5")
    fresh = material_service.get_material(material.id)
    assert fresh.current_stock == Decimal("0")
    assert fresh.is_below_minimum is True


@pytest.mark.parametrize("qty", ["0", "-1", None, "abc"])
def test_non_positive_or_malformed_quantity_is_rejected(make_material, qty):
    material = make_material(stock="10")

    with pytest.raises(ValidationError):
        stock_ledger.add_stock(material.id, qty)
    with pytest.raises(ValidationError):
        stock_ledger.remove_stock(material.id, qty)

    assert material_service.get_material(material.id).current_stock == Decimal("10")


def test_remove_more_than_available_fails_without_clamping(make_material):
    material = make_material(name="Cement", stock="10")

    with pytest.raises(InsufficientStockError) as excinfo:
        stock_ledger.remove_stock(material.id, "10.001")

    assert excinfo.value.material_name == "Cement"
    assert excinfo.value.available == Decimal("10")
    assert material_service.get_material(material.id).current_stock == Decimal("10")


def test_unknown_material_is_not_found():
    with pytest.raises(NotFoundError):
        stock_ledger.add_stock(987654, "1")


def test_is_below_minimum_is_inclusive(make_material):
    assert make_material(stock="5", minimum="5").is_below_minimum is True
    assert make_material(stock="5.001", minimum="5").is_below_minimum is False


def test_stock_movements_accept_english_and_portuguese_types(make_material):
    material = make_material(stock="3")

    material_service.record_stock_movement(material.id, "IN", "2")
    material_service.record_stock_movement(material.id, "entrada", "1")
    material_service.record_stock_movement(material.id, "OUT", "4")
    material_service.record_stock_movement(material.id, "SAIDA", "1")
    assert material_service.get_material(material.id).current_stock == Decimal("1")

    with pytest.raises(ValidationError):
        material_service.record_stock_movement(material.id, "TRANSFER", "1")
    with pytest.raises(InsufficientStockError):
        material_service.record_stock_movement(material.id, "OUT", "2")


def test_below_minimum_listing_and_duplicate_names(make_material):
    low = make_material(name="Rebar", stock="2", minimum="10")
    make_material(name="Sand", stock="50", minimum="10")

    assert [m.id for m in material_service.list_materials_below_minimum()] == [low.id]

    with pytest.raises(StateConflictError):
        make_material(name="Rebar")


def test_quantities_below_stock_precision_are_refused(make_material):
    material = make_material(stock="10")

    with pytest.raises(ValidationError):
        stock_ledger.remove_stock(material.id, "0.0004")
    with pytest.raises(ValidationError):
        stock_ledger.add_stock(material.id, "1.0005")
    with pytest.raises(ValidationError):
        make_material(stock="1.0005")

    assert material_service.get_material(material.id).current_stock == Decimal("10")

    stock_ledger.remove_stock(material.id, "0.001")
    assert material_service.get_material(material.id).current_stock == Decimal("9.999")
