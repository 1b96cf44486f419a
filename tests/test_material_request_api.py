"""Tests for the material request and allocation HTTP endpoints."""

import uuid

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_db, get_event_dispatcher
from app.main import app
from app.services.events import dispatch_pending


@pytest.fixture
def client(db_session):
    """Test client bound to the per-test database."""

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_event_dispatcher] = lambda: (lambda: dispatch_pending(db_session))
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def requester_headers(person):
    return {"X-Actor-Id": str(person.id), "User-Agent": "api-tests"}


@pytest.fixture
def approver_headers(approver):
    return {"X-Actor-Id": str(approver.id)}


def _create_body(material, quantity=3):
    return {
        "pr_numbers": [{"pr_number": "PR-5001", "pr_date": "2026-10-01"}],
        "items": [{"material_id": str(material.id), "requested_quantity": quantity}],
        "remarks": "Site install",
    }


def _create(client, headers, material, quantity=3):
    response = client.post("/api/material-request", json=_create_body(material, quantity), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _approve(client, headers, mr_id):
    response = client.post(f"/api/material-request/{mr_id}/approve", json={"status": "APPROVED"}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]


class TestMaterialRequestEndpoints:
    def test_create(self, client, requester_headers, material, person):
        response = client.post("/api/material-request", json=_create_body(material), headers=requester_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Material request created successfully"
        assert body["data"]["status"] == "SUBMITTED"
        assert body["data"]["requested_by"]["id"] == str(person.id)
        assert body["data"]["pr_numbers"] == [{"pr_number": "PR-5001", "pr_date": "2026-10-01"}]
        assert body["data"]["items"][0]["uom"] == "PIECE(S)"

    def test_create_without_actor(self, client, material):
        response = client.post("/api/material-request", json=_create_body(material))
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "VALIDATION_ERROR"

    def test_create_with_invalid_quantity(self, client, requester_headers, material):
        response = client.post(
            "/api/material-request", json=_create_body(material, quantity=0), headers=requester_headers
        )
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert body["errors"][0]["field"].endswith("requested_quantity")

    def test_create_with_malformed_actor_header(self, client, material):
        response = client.post(
            "/api/material-request", json=_create_body(material), headers={"X-Actor-Id": "nobody"}
        )
        assert response.status_code == 400

    def test_create_with_unknown_stock_area(self, client, requester_headers, material):
        body = _create_body(material)
        body["from_stock_area_id"] = str(uuid.uuid4())
        response = client.post("/api/material-request", json=body, headers=requester_headers)
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Stock area not found", "code": "NOT_FOUND"}

    def test_create_with_request_date_and_requestor(self, client, requester_headers, material, approver):
        body = _create_body(material)
        body["request_date"] = "2025-03-14"
        body["requestor_id"] = str(approver.id)
        response = client.post("/api/material-request", json=body, headers=requester_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["number"] == "MR-MAR-2025-1"
        assert data["request_date"] == "2025-03-14"
        assert data["requestor"]["id"] == str(approver.id)

    def test_list_pagination_envelope(self, client, requester_headers, material):
        _create(client, requester_headers, material)
        response = client.get("/api/material-request", params={"page": 1, "limit": 10}, headers=requester_headers)
        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {"totalItems": 1, "totalPages": 1, "currentPage": 1, "itemsPerPage": 10}

    def test_get_not_found(self, client, requester_headers):
        response = client.get(f"/api/material-request/{uuid.uuid4()}", headers=requester_headers)
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": "Material request not found",
            "code": "NOT_FOUND",
        }

    def test_update_replaces_items(self, client, requester_headers, material, other_material):
        mr = _create(client, requester_headers, material)
        response = client.put(
            f"/api/material-request/{mr['id']}",
            json={"items": [{"material_id": str(other_material.id), "requested_quantity": 2}]},
            headers=requester_headers,
        )
        assert response.status_code == 200
        items = response.json()["data"]["items"]
        assert [(item["material_id"], item["requested_quantity"]) for item in items] == [
            (str(other_material.id), 2)
        ]

    def test_approve_and_reject_validation(self, client, requester_headers, approver_headers, material):
        mr = _create(client, requester_headers, material)
        response = client.post(
            f"/api/material-request/{mr['id']}/approve", json={"status": "MAYBE"}, headers=approver_headers
        )
        assert response.status_code == 400
        response = client.post(
            f"/api/material-request/{mr['id']}/approve",
            json={"status": "approved", "approved_items": [{"item_id": mr["items"][0]["id"], "approved_quantity": 0}]},
            headers=approver_headers,
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Material request approved successfully"
        approved = response.json()["data"]
        assert approved["status"] == "APPROVED"
        assert approved["items"][0]["approved_quantity"] == 3

    def test_soft_delete(self, client, requester_headers, material):
        mr = _create(client, requester_headers, material)
        response = client.delete(f"/api/material-request/{mr['id']}", headers=requester_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Material request deleted successfully"
        assert client.get(f"/api/material-request/{mr['id']}", headers=requester_headers).status_code == 404

    def test_versioned_prefix(self, client, requester_headers, material):
        mr = _create(client, requester_headers, material)
        response = client.get(f"/api/v1/material-request/{mr['id']}", headers=requester_headers)
        assert response.status_code == 200


class TestAllocationEndpoints:
    def test_allocation_flow(self, client, requester_headers, approver_headers, material, make_units, person):
        units = make_units(material, 4)
        mr = _create(client, requester_headers, material)
        item_id = _approve(client, approver_headers, mr["id"])["items"][0]["id"]

        stock = client.get(f"/api/material-request/{mr['id']}/available-stock", headers=approver_headers)
        assert stock.status_code == 200
        assert stock.json()["data"]["total_items"] == 4

        response = client.post(
            f"/api/material-request/{mr['id']}/allocate",
            json={"allocations": [{"request_item_id": item_id, "inventory_unit_ids": [str(u.id) for u in units[:3]]}]},
            headers=approver_headers,
        )
        assert response.status_code == 201, response.text
        assert response.json()["data"]["total_allocated"] == 3

        response = client.post(
            f"/api/material-request/{mr['id']}/allocate",
            json={"allocations": [{"request_item_id": item_id, "inventory_unit_ids": [str(units[3].id)]}]},
            headers=approver_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == (
            "Allocation exceeds requested quantity. Requested: 3, Already allocated: 3, Trying to allocate: 1"
        )
        assert response.json()["code"] == "INVALID_STATE"

        listing = client.get(f"/api/material-request/{mr['id']}/allocations", headers=approver_headers)
        data = listing.json()["data"]
        assert data["total_allocations"] == 3
        allocation_id = data["allocations"][0]["allocations"][0]["id"]

        cancelled = client.delete(
            f"/api/material-request/{mr['id']}/allocations/{allocation_id}", headers=approver_headers
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["data"]["status"] == "CANCELLED"
        assert cancelled.json()["message"] == "Allocation cancelled successfully"

        again = client.delete(f"/api/material-request/{mr['id']}/allocations/{allocation_id}", headers=approver_headers)
        assert again.status_code == 404

        # Background dispatch has written the side effects by now.
        history = client.get(f"/api/audit-logs/MaterialRequest/{mr['id']}")
        actions = {entry["action"] for entry in history.json()["data"]}
        assert {"CREATE", "APPROVE", "ALLOCATE"} <= actions

        inbox = client.get("/api/notifications", headers=requester_headers)
        assert inbox.status_code == 200
        assert inbox.json()["data"]["unread_count"] == 3

    def test_allocate_before_approval(self, client, requester_headers, material, make_units):
        units = make_units(material, 1)
        mr = _create(client, requester_headers, material)
        response = client.post(
            f"/api/material-request/{mr['id']}/allocate",
            json={"allocations": [{"request_item_id": mr["items"][0]["id"], "inventory_unit_ids": [str(units[0].id)]}]},
            headers=requester_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Material request must be approved before allocation"

    def test_allocate_unknown_item_is_bad_request(self, client, requester_headers, approver_headers, material):
        mr = _create(client, requester_headers, material)
        _approve(client, approver_headers, mr["id"])
        response = client.post(
            f"/api/material-request/{mr['id']}/allocate",
            json={"allocations": [{"request_item_id": str(uuid.uuid4()), "inventory_unit_ids": [str(uuid.uuid4())]}]},
            headers=approver_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "NOT_FOUND"


class TestNotificationEndpoints:
    def test_mark_read_and_delete(self, client, requester_headers, approver_headers, material):
        mr = _create(client, requester_headers, material)
        _approve(client, approver_headers, mr["id"])
        inbox = client.get("/api/notifications", headers=requester_headers).json()["data"]
        notification_id = inbox["notifications"][0]["id"]

        read = client.post(f"/api/notifications/{notification_id}/read", headers=requester_headers)
        assert read.status_code == 200
        assert read.json()["data"]["is_read"] is True

        other = client.delete(f"/api/notifications/{notification_id}", headers=approver_headers)
        assert other.status_code == 404
        deleted = client.delete(f"/api/notifications/{notification_id}", headers=requester_headers)
        assert deleted.status_code == 200

    def test_requires_actor(self, client):
        response = client.get("/api/notifications")
        assert response.status_code == 400


class TestInventoryEndpoints:
    def test_material_and_unit_crud(self, client, requester_headers, stock_area):
        material = client.post(
            "/api/inventory/materials",
            json={"name": "Splitter 1x8", "product_code": "SPL-18"},
            headers=requester_headers,
        )
        assert material.status_code == 201
        material_id = material.json()["data"]["id"]

        unit = client.post(
            "/api/inventory/units",
            json={"material_id": material_id, "stock_area_id": str(stock_area.id), "serial_number": "SPL-0001"},
            headers=requester_headers,
        )
        assert unit.status_code == 201
        assert unit.json()["data"]["status"] == "AVAILABLE"

        listing = client.get("/api/inventory/units", params={"material_id": material_id}, headers=requester_headers)
        assert listing.json()["pagination"]["totalItems"] == 1


class TestHealthEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_metrics(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "material_allocations_total" in response.text
