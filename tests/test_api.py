"""HTTP layer tests through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from yunshui.repositories import MemoryRepository
from yunshui.server.app import create_app

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "ADMIN"}
PM = {"X-User-Id": "pm-1", "X-User-Role": "PM"}
OTHER_PM = {"X-User-Id": "pm-2", "X-User-Role": "PM"}
AM = {"X-User-Id": "am-1", "X-User-Role": "AM"}
WAREHOUSE = {"X-User-Id": "wh-1", "X-User-Role": "WAREHOUSE"}


@pytest.fixture
def client():
    app = create_app(repository=MemoryRepository())
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def bolt_id(client):
    response = client.post(
        "/api/materials",
        json={"name": "Bolt", "category": "Fasteners", "price": "2.50", "quantity": 100,
              "type": "AUXILIARY"},
        headers=ADMIN,
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


@pytest.fixture
def order_id(client, bolt_id):
    response = client.post(
        "/api/orders/auxiliary",
        json={"items": [{"materialId": bolt_id, "quantity": 3}]},
        headers=PM,
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


def test_root_and_health(client):
    assert client.get("/").json()["service"] == "Yunshui Materials"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["checks"]["storage"]["status"] == "ok"


def test_identity_headers_required(client):
    assert client.get("/api/materials").status_code == 401
    assert client.get("/api/materials", headers={"X-User-Id": "x", "X-User-Role": "GUEST"}).status_code == 401


def test_material_management_is_admin_only(client):
    response = client.post(
        "/api/materials",
        json={"name": "Bolt", "price": "1.00", "type": "AUXILIARY"},
        headers=PM,
    )
    assert response.status_code == 403


def test_material_listing_and_lookup(client, bolt_id):
    body = client.get("/api/materials", params={"type": "AUXILIARY"}, headers=PM).json()
    assert body["success"] is True
    assert body["data"]["total"] == 1
    assert body["data"]["items"][0]["name"] == "Bolt"

    assert client.get("/api/materials/categories", headers=PM).json()["data"] == ["Fasteners"]

    missing = client.get("/api/materials/nope", headers=PM)
    assert missing.status_code == 404
    assert missing.json() == {
        "success": False,
        "error": "Not found",
        "message": "Material nope not found",
    }


def test_stock_adjustment(client, bolt_id):
    response = client.put(
        f"/api/materials/{bolt_id}/quantity", json={"quantity": 5}, headers=WAREHOUSE
    )
    assert response.json()["data"]["quantity"] == 5

    negative = client.put(
        f"/api/materials/{bolt_id}/quantity", json={"quantity": -1}, headers=WAREHOUSE
    )
    assert negative.status_code == 400
    assert negative.json()["error"] == "Validation error"


def test_create_order_totals_and_roles(client, bolt_id):
    response = client.post(
        "/api/orders/auxiliary",
        json={"items": [{"materialId": bolt_id, "quantity": 3}]},
        headers=PM,
    )
    data = response.json()["data"]
    assert float(data["total_amount"]) == 7.5
    assert data["order_type"] == "AUXILIARY"
    assert data["status"] == "PENDING"

    forbidden = client.post(
        "/api/orders/auxiliary",
        json={"items": [{"materialId": bolt_id, "quantity": 1}]},
        headers=AM,
    )
    assert forbidden.status_code == 403

    wrong_type = client.post(
        "/api/orders/finished",
        json={"items": [{"materialId": bolt_id, "quantity": 1}]},
        headers=AM,
    )
    assert wrong_type.status_code == 400
    assert wrong_type.json()["message"] == "Material Bolt is not of type FINISHED"


def test_order_listing_scope(client, bolt_id, order_id):
    assert client.get("/api/orders/auxiliary", headers=PM).json()["data"]["total"] == 1
    assert client.get("/api/orders/auxiliary", headers=OTHER_PM).json()["data"]["total"] == 0
    assert client.get("/api/orders/auxiliary", headers=WAREHOUSE).json()["data"]["total"] == 1
    assert client.get("/api/orders/auxiliary", headers=AM).status_code == 403
    assert client.get("/api/orders/finished", headers=PM).status_code == 403
    assert client.get("/api/orders/finished", headers=AM).json()["data"]["total"] == 0

    assert client.get(f"/api/orders/{order_id}", headers=OTHER_PM).status_code == 403


def test_status_tracks_over_http(client, order_id):
    no_project = client.put(
        f"/api/orders/{order_id}/status/check", json={"status": "OK"}, headers=WAREHOUSE
    )
    assert no_project.status_code == 404
    assert no_project.json()["message"] == f"Project not found for order {order_id}"

    project = client.post(f"/api/orders/{order_id}/project/ensure", headers=WAREHOUSE).json()["data"]

    posted = client.put(
        f"/api/orders/{order_id}/status/order",
        json={"primaryStatus": "Ordered", "secondaryStatus": "Processing"},
        headers=WAREHOUSE,
    )
    assert posted.status_code == 200
    assert posted.json()["data"]["status_value"] == "Ordered - Processing"
    assert posted.json()["data"]["additional_data"] == {
        "primaryStatus": "Ordered",
        "secondaryStatus": "Processing",
    }

    bad_delivery = client.put(
        f"/api/orders/{order_id}/status/delivery", json={"status": "Delivered"}, headers=WAREHOUSE
    )
    assert bad_delivery.status_code == 400

    assert client.put(
        f"/api/orders/{order_id}/status/check", json={"status": "OK"}, headers=AM
    ).status_code == 403

    client.put(f"/api/orders/{order_id}/status/check", json={"status": "OK"}, headers=PM)

    order = client.get(f"/api/orders/{order_id}", headers=PM).json()["data"]
    assert order["status_summary"] == {
        "order": "Ordered - Processing",
        "pickup": "未設定",
        "delivery": "未設定",
        "check": "OK",
    }
    assert order["project"]["overall_status"] == "COMPLETED"

    history = client.get(f"/api/projects/{project['id']}/status", headers=PM).json()["data"]
    assert len(history["status_history"]) == 2


def test_status_feed_is_restricted(client, order_id):
    assert client.get("/api/status/statistics", headers=PM).status_code == 403

    stats = client.get("/api/status/statistics", headers=ADMIN).json()["data"]
    assert stats["total"] == 0
    assert stats["by_type"] == {"ORDER": 0, "PICKUP": 0, "DELIVERY": 0, "CHECK": 0}

    feed = client.get("/api/status/updates", headers=WAREHOUSE).json()["data"]
    assert feed["items"] == []


def test_projects_endpoints(client):
    created = client.post("/api/projects", json={"projectName": "North Wing"}, headers=PM)
    assert created.status_code == 201

    duplicate = client.post("/api/projects", json={"projectName": "north wing"}, headers=AM)
    assert duplicate.status_code == 400

    listing = client.get("/api/projects", params={"search": "north"}, headers=PM).json()["data"]
    assert [p["project_name"] for p in listing] == ["North Wing"]


def test_order_maintenance(client, order_id):
    renamed = client.put(f"/api/orders/{order_id}/name", json={"name": "Lobby"}, headers=PM)
    assert renamed.json()["data"]["name"] == "Lobby"

    assert client.put(
        f"/api/orders/{order_id}/status", json={"status": "APPROVED"}, headers=PM
    ).status_code == 403
    approved = client.put(
        f"/api/orders/{order_id}/status", json={"status": "APPROVED"}, headers=ADMIN
    )
    assert approved.json()["data"]["status"] == "APPROVED"

    project = client.post("/api/projects", json={"projectName": "Site"}, headers=PM).json()["data"]
    assigned = client.put(
        f"/api/orders/{order_id}/project", json={"projectId": project["id"]}, headers=PM
    )
    assert assigned.json()["data"]["project_id"] == project["id"]
    removed = client.delete(f"/api/orders/{order_id}/project", headers=PM)
    assert removed.json()["data"]["project_id"] is None

    assert client.delete(f"/api/orders/{order_id}/delete", headers=PM).status_code == 403
    assert client.delete(f"/api/orders/{order_id}/delete", headers=ADMIN).json()["success"] is True
    assert client.get(f"/api/orders/{order_id}", headers=ADMIN).status_code == 404


def test_confirm_seeds_tracks(client, order_id):
    assert client.put(f"/api/orders/{order_id}/confirm", headers=OTHER_PM).status_code == 403
    assert client.put(f"/api/orders/{order_id}/confirm-finished", headers=AM).status_code == 403

    confirmed = client.put(f"/api/orders/{order_id}/confirm", headers=PM)
    assert confirmed.status_code == 200
    data = confirmed.json()["data"]
    assert data["order"]["status"] == "CONFIRMED"
    assert data["project"]["order_id"] == order_id

    order = client.get(f"/api/orders/{order_id}", headers=PM).json()["data"]
    assert set(order["status_summary"].values()) == {"PENDING"}
    assert order["project"]["overall_status"] == "ACTIVE"

    again = client.put(f"/api/orders/{order_id}/confirm", headers=PM)
    assert again.status_code == 400
    assert again.json()["message"] == "Only pending orders can be confirmed"


def test_cancel_order(client, order_id):
    assert client.delete(f"/api/orders/{order_id}", headers=OTHER_PM).status_code == 403

    cancelled = client.delete(f"/api/orders/{order_id}", headers=PM)
    assert cancelled.json()["data"]["status"] == "CANCELLED"

    assert client.delete(f"/api/orders/{order_id}", headers=ADMIN).status_code == 400
    assert client.get(f"/api/orders/{order_id}", headers=PM).status_code == 200


def test_project_track_post_by_id(client, order_id):
    project = client.post(f"/api/orders/{order_id}/project/ensure", headers=WAREHOUSE).json()["data"]

    assert client.put(
        f"/api/projects/{project['id']}/status",
        json={"statusType": "PICKUP", "statusValue": "Picked"},
        headers=PM,
    ).status_code == 403

    posted = client.put(
        f"/api/projects/{project['id']}/status",
        json={
            "statusType": "DELIVERY",
            "statusValue": "Delivered",
            "additionalData": {"time": "09:00", "address": "1 Main St", "po": "PO-1",
                               "deliveredBy": "Lee"},
        },
        headers=WAREHOUSE,
    )
    assert posted.status_code == 200
    assert posted.json()["data"]["additional_data"]["deliveredBy"] == "Lee"

    bad = client.put(
        f"/api/projects/{project['id']}/status",
        json={"statusType": "DELIVERY", "statusValue": "Delivered", "additionalData": {"po": "x"}},
        headers=WAREHOUSE,
    )
    assert bad.status_code == 400

    missing = client.put(
        "/api/projects/nope/status",
        json={"statusType": "CHECK", "statusValue": "OK"},
        headers=WAREHOUSE,
    )
    assert missing.status_code == 404


def test_project_rename_orders_and_delete(client, order_id):
    project = client.post("/api/projects", json={"projectName": "Site"}, headers=PM).json()["data"]
    client.post("/api/projects", json={"projectName": "Other"}, headers=PM)
    client.put(f"/api/orders/{order_id}/project", json={"projectId": project["id"]}, headers=PM)

    renamed = client.put(
        f"/api/projects/{project['id']}", json={"projectName": "Site B"}, headers=PM
    )
    assert renamed.json()["data"]["project_name"] == "Site B"
    clash = client.put(f"/api/projects/{project['id']}", json={"projectName": "other"}, headers=AM)
    assert clash.status_code == 400

    orders = client.get(f"/api/projects/{project['id']}/orders", headers=PM).json()["data"]
    assert [o["id"] for o in orders] == [order_id]

    assert client.delete(f"/api/projects/{project['id']}", headers=PM).status_code == 403
    deleted = client.delete(f"/api/projects/{project['id']}", headers=ADMIN).json()
    assert deleted["data"] == {"detached_orders": 1}

    order = client.get(f"/api/orders/{order_id}", headers=PM).json()["data"]
    assert order["project_id"] is None
    assert client.get(f"/api/projects/{project['id']}/status", headers=PM).status_code == 404
