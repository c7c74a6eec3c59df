from decimal import Decimal

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def _auth_headers(user_id: int) -> dict:
    resp = client.post("/auth/token", json={"user_id": user_id})
    assert resp.status_code == 200, f"token request failed: {resp.status_code} {resp.text}"
    data = resp.json()
    assert "access_token" in data, f"token response missing access_token: {data}"
    return {"Authorization": f"Bearer {data['access_token']}"}


def _create_user(email: str) -> int:
    resp = client.post("/users", json={"full_name": email.split("@")[0], "email": email})
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


def test_health():
    assert client.get("/health").json()["status"] == "ok"


def test_costing_flow_over_http():
    headers = _auth_headers(_create_user("engineer@example.com"))

    project = client.post("/projects", headers=headers, json={"name": "Harbour Bridge", "total_budget": "50"})
    assert project.status_code == 200, project.text
    project_id = project.json()["id"]

    task = client.post("/tasks", headers=headers, json={"project_id": project_id, "title": "Deck"})
    assert task.status_code == 200, task.text
    task_id = task.json()["id"]

    service_a = client.post(
        "/services",
        headers=headers,
        json={"name": "Steel fixing", "unit_of_measurement": "t", "unit_labor_cost": "10", "unit_material_cost": "5"},
    ).json()
    service_b = client.post(
        "/services",
        headers=headers,
        json={"name": "Crane", "unit_of_measurement": "h", "unit_equipment_cost": "4"},
    ).json()

    r = client.post(f"/tasks/{task_id}/services", headers=headers, json={"service_id": service_a["id"], "quantity": "2"})
    assert r.status_code == 200, r.text
    r = client.post(f"/tasks/{task_id}/services", headers=headers, json={"service_id": service_b["id"], "quantity": "1"})
    assert r.status_code == 200, r.text

    dup = client.post(f"/tasks/{task_id}/services", headers=headers, json={"service_id": service_b["id"], "quantity": "1"})
    assert dup.status_code == 409

    costs = client.get(f"/tasks/{task_id}/costs", headers=headers).json()
    assert Decimal(costs["total_cost"]) == Decimal("34")
    assert len(costs["lines"]) == 2

    r = client.delete(f"/tasks/{task_id}/services/{service_a['id']}", headers=headers)
    assert r.status_code == 204
    assert Decimal(client.get(f"/tasks/{task_id}", headers=headers).json()["total_cost"]) == Decimal("4")

    r = client.put(f"/tasks/{task_id}/status", headers=headers, json={"status": "done"})
    assert r.status_code == 200
    assert r.json()["progress_percentage"] == 100

    report = client.get(f"/projects/{project_id}/budget", headers=headers).json()
    assert Decimal(report["realized_cost"]) == Decimal("4")
    assert Decimal(report["progress_percentage"]) == Decimal("100")
    assert report["is_over_budget"] is False
    assert report["completed_tasks"] == 1

    missing = client.get("/tasks/99999", headers=headers)
    assert missing.status_code == 404

    bad = client.put(f"/tasks/{task_id}/status", headers=headers, json={"status": "finished"})
    assert bad.status_code == 422


def test_material_request_flow_over_http():
    requester_id = _create_user("foreman@example.com")
    approver_id = _create_user("manager@example.com")
    requester = _auth_headers(requester_id)
    approver = _auth_headers(approver_id)

    project_id = client.post("/projects", headers=requester, json={"name": "Depot"}).json()["id"]
    material = client.post(
        "/materials",
        headers=approver,
        json={"name": "Cement", "unit_of_measure": "bag", "unit_price": "8.50", "current_stock": "10", "minimum_stock": "5"},
    )
    assert material.status_code == 200, material.text
    material_id = material.json()["id"]

    too_big = client.post(
        "/material-requests",
        headers=requester,
        json={"project_id": project_id, "items": [{"material_id": material_id, "quantity": "12"}]},
    ).json()
    assert too_big["status"] == "pending"
    assert too_big["requester_id"] == requester_id
    assert Decimal(too_big["total_amount"]) == Decimal("102")

    refused = client.post(f"/material-requests/{too_big['id']}/approve", headers=approver)
    assert refused.status_code == 409
    assert "Cement" in refused.json()["detail"]
    assert Decimal(client.get(f"/materials/{material_id}", headers=approver).json()["current_stock"]) == Decimal("10")

    ok = client.post(
        "/material-requests",
        headers=requester,
        json={"project_id": project_id, "items": [{"material_id": material_id, "quantity": "6"}]},
    ).json()
    approved = client.post(f"/material-requests/{ok['id']}/approve", headers=approver)
    assert approved.status_code == 200, approved.text
    assert approved.json()["status"] == "approved"
    assert approved.json()["decided_by_id"] == approver_id

    stock = client.get(f"/materials/{material_id}", headers=approver).json()
    assert Decimal(stock["current_stock"]) == Decimal("4")
    assert stock["is_below_minimum"] is True

    again = client.post(f"/material-requests/{ok['id']}/approve", headers=approver)
    assert again.status_code == 409

    blank = client.post(f"/material-requests/{too_big['id']}/reject", headers=approver, json={"reason": " "})
    assert blank.status_code == 422

    rejected = client.post(
        f"/material-requests/{too_big['id']}/reject", headers=approver, json={"reason": "Order smaller batches"}
    )
    assert rejected.status_code == 200
    assert rejected.json()["rejection_reason"] == "Order smaller batches"

    pending = client.get("/material-requests", headers=approver, params={"status": "pending"}).json()
    assert pending == []

    outbox = client.get("/outbox", headers=approver, params={"event_type": "MATERIAL_REQUEST_APPROVED"}).json()
    assert [row["payload"]["material_request_id"] for row in outbox["rows"]] == [ok["id"]]
