"""Operator API via TestClient, with the session wired to in-process fakes."""
import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from _helper import FakeRedis, FakeStore, MemoryStore, build_session, make_order, make_stock
from dashboard.main import create_app
from dashboard.models import OrderStatus as S

KEY = "dashboardNotifications"

STORED = json.dumps([
    {"id": "n-2", "type": "new_order", "data": {"message": "New order", "orderNumber": "A101"},
     "time": "2026-03-01T10:05:00Z"},
    {"id": "n-1", "type": "new_order", "data": {"message": "New order", "orderNumber": "A100"},
     "time": "2026-03-01T10:00:00Z"},
])


@pytest.fixture()
def store():
    return FakeStore([make_order("ord-1", S.SHIPPED), make_order("ord-2", S.PROCESSING)])


@pytest.fixture()
def kv():
    return MemoryStore({KEY: STORED})


@pytest.fixture()
def broker():
    return FakeRedis()


@pytest.fixture()
def client(store, kv, broker):
    session = build_session(store, kv, broker)
    with TestClient(create_app(lambda: session)) as c:
        yield c


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_metrics(client):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "order_status_changes_total" in response.text


def test_get_order_and_transitions(client):
    order = client.get("/orders/ord-1").json()
    assert order["status"] == "SHIPPED"
    assert order["orderNumber"] == "N-ord-1"

    response = client.get("/orders/ord-1/transitions")
    assert response.json() == {"status": "SHIPPED", "transitions": ["DELIVERED", "RETURNED"]}


def test_list_orders(client):
    body = client.get("/orders", params={"status": "PROCESSING"}).json()
    assert [o["id"] for o in body["orders"]] == ["ord-2"]
    assert body["totalItems"] == 1


def test_change_status_accepted(client, store):
    response = client.put("/orders/ord-1/status", json={"status": "DELIVERED"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "DELIVERED"
    assert body["statusHistory"][-1]["previousStatus"] == "SHIPPED"
    assert body["statusHistory"][-1]["newStatus"] == "DELIVERED"
    assert store.status_puts() == [("PUT", "/orders/ord-1/status", {"status": "DELIVERED"})]


def test_change_status_rejected_locally(client, store):
    response = client.put("/orders/ord-2/status", json={"status": "DELIVERED"})
    assert response.status_code == 422
    assert "PROCESSING" in response.json()["detail"]
    assert store.status_puts() == []
    assert client.get("/orders/ord-2").json()["status"] == "PROCESSING"


def test_change_status_unknown_value(client, store):
    response = client.put("/orders/ord-1/status", json={"status": "TELEPORTED"})
    assert response.status_code == 422
    assert store.status_puts() == []


def test_change_status_remote_failure(client, store):
    store.fail_paths.add("/orders/ord-1/status")
    response = client.put("/orders/ord-1/status", json={"status": "RETURNED"})
    assert response.status_code == 502
    assert response.json() == {"detail": "Internal server error", "upstream_status": 500}


def test_missing_order(client):
    assert client.get("/orders/nope").status_code == 404


def test_notifications_loaded_from_storage(client):
    body = client.get("/notifications").json()
    assert body["count"] == 2
    assert [n["data"]["orderNumber"] for n in body["notifications"]] == ["A101", "A100"]


def test_remove_and_clear_notifications(client, kv):
    assert client.delete("/notifications/n-2").status_code == 200
    assert client.delete("/notifications/n-2").status_code == 404
    assert [n["id"] for n in json.loads(kv.data[KEY])] == ["n-1"]

    assert client.delete("/notifications").json() == {"status": "ok"}
    assert client.get("/notifications").json()["count"] == 0
    assert json.loads(kv.data[KEY]) == []


def test_low_stock_listing_reports_effective_status(client, store):
    store.low_stock = [make_stock("p-1", 3, 5, "IN_STOCK")]
    body = client.get("/inventory/low-stock").json()
    assert body["products"][0]["stockStatus"] == "IN_STOCK"
    assert body["products"][0]["effectiveStatus"] == "LOW_STOCK"
    assert body["totalItems"] == 1


def test_classify_endpoint(client):
    response = client.post("/inventory/classify", json={"quantity": 0, "threshold": 5, "storedStatus": "IN_STOCK"})
    assert response.json() == {"status": "OUT_OF_STOCK"}


def test_stock_settings_partial_failure(client, store):
    store.fail_paths.add("/inventory/p-1/threshold")
    response = client.put("/inventory/p-1/stock-settings", json={"quantity": 5, "threshold": 2})
    assert response.status_code == 502
    assert response.json() == {
        "status": "partial_failure",
        "steps": [
            {"step": "stock", "ok": True, "error": None},
            {"step": "threshold", "ok": False, "error": "Internal server error"},
        ],
    }


def test_session_closed_on_shutdown(store, kv, broker):
    session = build_session(store, kv, broker)
    with TestClient(create_app(lambda: session)):
        pass
    assert broker.closed
    assert not session.channel.is_open


def test_session_closed_when_start_fails(store, broker):
    class BrokenStore(MemoryStore):
        async def get(self, key):
            raise OSError("storage unavailable")

    session = build_session(store, BrokenStore(), broker)
    app = create_app(lambda: session)

    async def run():
        async with app.router.lifespan_context(app):
            pass

    with pytest.raises(OSError):
        asyncio.run(run())
    assert broker.closed
