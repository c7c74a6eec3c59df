from decimal import Decimal

import pytest

from app.core.errors import NotFoundError, StateConflictError, ValidationError
from app.services import catalog_service


def test_service_names_are_unique_even_when_inactive(make_service):
    service = make_service(name="Plastering")
    catalog_service.deactivate_service(service.id)

    with pytest.raises(StateConflictError):
        make_service(name="Plastering")

    # Case-sensitive
    assert make_service(name="plastering").name == "plastering"


def test_create_service_validates_costs():
    with pytest.raises(ValidationError):
        catalog_service.create_service(name="Bad", unit_of_measurement="m", unit_labor_cost="-1")
    with pytest.raises(ValidationError):
        catalog_service.create_service(name="  ", unit_of_measurement="m")


def test_total_unit_cost_sums_components(make_service):
    service = make_service(labor="1.10", material="2.20", equipment="3.30")
    assert service.total_unit_cost == Decimal("6.60")


def test_rename_rechecks_uniqueness(make_service):
    make_service(name="Tiling")
    other = make_service(name="Painting")

    with pytest.raises(StateConflictError):
        catalog_service.update_service(other.id, changes={"name": "Tiling"})

    renamed = catalog_service.update_service(other.id, changes={"name": "Interior painting"})
    assert renamed.name == "Interior painting"

    with pytest.raises(NotFoundError):
        catalog_service.update_service(12345, changes={"name": "Ghost"})


def test_listing_and_search(make_service):
    make_service(name="Excavation")
    make_service(name="Concrete pour")
    retired = make_service(name="Concrete pump")
    catalog_service.deactivate_service(retired.id)

    active = [s.name for s in catalog_service.list_active_services()]
    assert active == ["Concrete pour", "Excavation"]

    found = [s.name for s in catalog_service.search_services("CONCRETE")]
    assert found == ["Concrete pour", "Concrete pump"]
