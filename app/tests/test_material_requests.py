from decimal import Decimal

import pytest

from app.core.errors import InsufficientStockError, NotFoundError, StateConflictError, ValidationError
from app.database import session_scope
from app.models.material import Material
from app.services import material_request_service as mrs
from app.services import material_service


def _item(material, qty):
    return {"material_id": material.id, "quantity": qty}


def test_create_snapshots_unit_price(make_user, make_project, make_material):
    requester = make_user()
    project = make_project()
    material = make_material(price="12.40", stock="100")

    req = mrs.create_material_request(project.id, requester.id, [_item(material, "3")], note="Level 2 slab")
    assert req.status == "pending"
    assert req.items[0].unit_price == Decimal("12.40")
    assert req.items[0].line_number == 1

    # Catalog price changes later; the request keeps its snapshot
    with session_scope() as s:
        s.query(Material).filter(Material.id == material.id).update({"unit_price": Decimal("99.00")})

    fresh = mrs.get_material_request(req.id)
    assert fresh.items[0].unit_price == Decimal("12.40")
    assert fresh.total_amount == Decimal("37.20")


def test_create_validates_everything_before_persisting(make_user, make_project, make_material):
    requester = make_user()
    project = make_project()
    good = make_material()
    inactive = make_material()
    material_service.deactivate_material(inactive.id)

    with pytest.raises(ValidationError):
        mrs.create_material_request(project.id, requester.id, [])
    with pytest.raises(ValidationError):
        mrs.create_material_request(project.id, requester.id, [_item(good, "1"), _item(good, "0")])
    with pytest.raises(ValidationError):
        mrs.create_material_request(project.id, requester.id, [_item(good, "1"), _item(inactive, "1")])
    with pytest.raises(NotFoundError):
        mrs.create_material_request(project.id, requester.id, [{"material_id": 55555, "quantity": "1"}])
    with pytest.raises(NotFoundError):
        mrs.create_material_request(777, requester.id, [_item(good, "1")])
    with pytest.raises(NotFoundError):
        mrs.create_material_request(project.id, 888, [_item(good, "1")])

    assert mrs.list_material_requests() == []


def test_approval_deducts_stock_and_flags_low_materials(make_user, make_project, make_material):
    requester = make_user()
    approver = make_user(full_name="Site Manager")
    project = make_project()
    material = make_material(stock="10", minimum="4")

    req = mrs.create_material_request(project.id, requester.id, [_item(material, "6")])
    approved = mrs.approve_material_request(req.id, approver.id)

    assert approved.status == "approved"
    assert approved.decided_by_id == approver.id
    assert approved.decided_at is not None

    fresh = material_service.get_material(material.id)
    assert fresh.current_stock == Decimal("4")
    assert fresh.is_below_minimum is True


def test_insufficient_stock_leaves_everything_untouched(make_user, make_project, make_material):
    requester = make_user()
    approver = make_user()
    project = make_project()
    plenty = make_material(name="Gravel", stock="100")
    scarce = make_material(name="Cement", stock="10", minimum="5")

    req = mrs.create_material_request(
        project.id, requester.id, [_item(plenty, "30"), _item(scarce, "12")]
    )

    with pytest.raises(InsufficientStockError) as excinfo:
        mrs.approve_material_request(req.id, approver.id)
    assert excinfo.value.material_name == "Cement"

    assert material_service.get_material(plenty.id).current_stock == Decimal("100")
    assert material_service.get_material(scarce.id).current_stock == Decimal("10")
    assert mrs.get_material_request(req.id).status == "pending"


def test_repeated_material_lines_are_checked_together(make_user, make_project, make_material):
    requester = make_user()
    project = make_project()
    material = make_material(stock="10")

    req = mrs.create_material_request(
        project.id, requester.id, [_item(material, "6"), _item(material, "6")]
    )
    with pytest.raises(InsufficientStockError):
        mrs.approve_material_request(req.id, requester.id)
    assert material_service.get_material(material.id).current_stock == Decimal("10")


def test_decided_requests_are_terminal(make_user, make_project, make_material):
    requester = make_user()
    approver = make_user()
    project = make_project()
    material = make_material(stock="10")

    approved = mrs.create_material_request(project.id, requester.id, [_item(material, "1")])
    mrs.approve_material_request(approved.id, approver.id)
    with pytest.raises(StateConflictError):
        mrs.approve_material_request(approved.id, approver.id)
    with pytest.raises(StateConflictError):
        mrs.reject_material_request(approved.id, approver.id, "Too late")

    rejected = mrs.create_material_request(project.id, requester.id, [_item(material, "1")])
    mrs.reject_material_request(rejected.id, approver.id, "Wrong site")
    with pytest.raises(StateConflictError):
        mrs.approve_material_request(rejected.id, approver.id)

    assert material_service.get_material(material.id).current_stock == Decimal("9")


def test_reject_requires_reason_and_existing_approver(make_user, make_project, make_material):
    requester = make_user()
    project = make_project()
    material = make_material(stock="10")
    req = mrs.create_material_request(project.id, requester.id, [_item(material, "2")])

    with pytest.raises(ValidationError):
        mrs.reject_material_request(req.id, requester.id, "   ")
    with pytest.raises(NotFoundError):
        mrs.reject_material_request(req.id, 31337, "No budget")
    with pytest.raises(NotFoundError):
        mrs.approve_material_request(req.id, 31337)
    with pytest.raises(NotFoundError):
        mrs.approve_material_request(4040, requester.id)

    rejected = mrs.reject_material_request(req.id, requester.id, "  No budget ")
    assert rejected.status == "rejected"
    assert rejected.rejection_reason == "No budget"
    assert material_service.get_material(material.id).current_stock == Decimal("10")


def test_listing_filters_and_orders_newest_first(make_user, make_project, make_material):
    requester = make_user()
    first_project = make_project(name="North")
    second_project = make_project(name="South")
    material = make_material(stock="10")

    r1 = mrs.create_material_request(first_project.id, requester.id, [_item(material, "1")])
    r2 = mrs.create_material_request(second_project.id, requester.id, [_item(material, "1")])
    r3 = mrs.create_material_request(first_project.id, requester.id, [_item(material, "1")])
    mrs.reject_material_request(r3.id, requester.id, "Duplicate")

    assert [r.id for r in mrs.list_material_requests()] == [r3.id, r2.id, r1.id]
    assert [r.id for r in mrs.list_material_requests(project_id=first_project.id)] == [r3.id, r1.id]
    assert [r.id for r in mrs.list_material_requests(status="pending")] == [r2.id, r1.id]

    with pytest.raises(ValidationError):
        mrs.list_material_requests(status="archived")


def test_item_ids_and_quantities_are_validated(make_user, make_project, make_material):
    requester = make_user()
    project = make_project()
    material = make_material(stock="10")

    with pytest.raises(ValidationError):
        mrs.create_material_request(project.id, requester.id, [{"material_id": "abc", "quantity": "1"}])
    with pytest.raises(ValidationError):
        mrs.create_material_request(project.id, requester.id, [_item(material, "0.0001")])

    assert mrs.list_material_requests() == []
