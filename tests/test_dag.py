from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
import sys

from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from dag.bootstrap import create_app
from dps.repository import CatalogRepository


def _fixed_clock(hour: int, minute: int = 0):
    # 2026-10-20 is a Tuesday
    return lambda: datetime(2026, 10, 20, hour, minute, tzinfo=timezone.utc)


def _seed(db_path: Path) -> dict[str, int]:
    with CatalogRepository(db_path=str(db_path)) as catalog:
        customer = catalog.add_customer(username="spc.rivera")
        dfac = catalog.add_dfac(dfac_name="Warrior Inn")
        meal = catalog.add_meal(dfac_id=dfac.dfac_id, meal_name="Breakfast Burrito", price=Decimal("9.50"))
    return {"customerID": customer.customer_id, "dfacID": dfac.dfac_id, "mealID": meal.meal_id}


def _create_client(tmp_path: Path, *, enforce_order_window: bool = False, hour: int = 7) -> tuple[TestClient, dict[str, int]]:
    db_path = tmp_path / "runtime" / "state" / "dfacdash.db"
    app = create_app(db_path=str(db_path), enforce_order_window=enforce_order_window, clock=_fixed_clock(hour))
    return TestClient(app), _seed(db_path)


def test_create_and_get_order_contract(tmp_path: Path) -> None:
    client, refs = _create_client(tmp_path)
    try:
        response = client.post(
            "/api/orders",
            json={**refs, "comments": "extra salsa", "toGo": True, "quantity": 2, "specialInstructions": "no onions"},
            headers={"X-Request-Id": "req-create-1"},
        )

        assert response.status_code == 201
        payload = response.json()
        assert payload["success"] is True
        assert payload["requestId"] == "req-create-1"
        data = payload["data"]
        assert data["order"]["orderID"] == data["orderLine"]["orderID"]
        assert data["order"]["status"] == "CREATED"
        assert data["orderLine"]["quantity"] == 2
        assert Decimal(data["orderLine"]["priceAtOrder"]) == Decimal("9.50")
        assert data["meal"]["mealID"] == refs["mealID"]

        order_id = data["order"]["orderID"]
        fetched = client.get(f"/api/orders/{order_id}")
        assert fetched.status_code == 200
        assert fetched.json()["data"]["meal"]["mealID"] == refs["mealID"]
        assert fetched.json()["data"]["order"]["comments"] == "extra salsa"
    finally:
        client.close()


def test_missing_meal_returns_not_found_and_leaves_no_order(tmp_path: Path) -> None:
    client, refs = _create_client(tmp_path)
    try:
        response = client.post("/api/orders", json={**refs, "mealID": 9999})

        assert response.status_code == 404
        payload = response.json()
        assert payload["success"] is False
        assert payload["error"]["code"] == "DFAC_NOT_FOUND"
        assert payload["error"]["details"][0]["field"] == "mealID"

        listed = client.get("/api/orders", params={"customerID": refs["customerID"]})
        assert listed.status_code == 200
        assert listed.json()["data"]["orders"] == []
    finally:
        client.close()


def test_bad_reference_and_quantity_are_client_errors(tmp_path: Path) -> None:
    client, refs = _create_client(tmp_path)
    try:
        bad_customer = client.post("/api/orders", json={**refs, "customerID": 404})
        assert bad_customer.status_code == 400
        assert bad_customer.json()["error"]["code"] == "DFAC_BAD_REFERENCE"

        bad_quantity = client.post("/api/orders", json={**refs, "quantity": 0})
        assert bad_quantity.status_code == 400
        assert bad_quantity.json()["error"]["code"] == "DFAC_VALIDATION_FAILED"
    finally:
        client.close()


def test_patch_applies_only_supplied_fields(tmp_path: Path) -> None:
    client, refs = _create_client(tmp_path)
    try:
        order_id = client.post("/api/orders", json={**refs, "comments": "keep me"}).json()["data"]["order"]["orderID"]

        response = client.patch(f"/api/orders/{order_id}", json={"readyTime": "2026-10-20T07:20:00Z"})
        assert response.status_code == 200
        order = response.json()["data"]["order"]
        assert order["status"] == "READY_FOR_PICKUP"
        assert order["comments"] == "keep me"

        empty = client.patch(f"/api/orders/{order_id}", json={})
        assert empty.status_code == 400
        assert empty.json()["error"]["code"] == "DFAC_VALIDATION_FAILED"

        unknown = client.patch(f"/api/orders/{order_id}", json={"customerID": 2})
        assert unknown.status_code == 400
        assert unknown.json()["error"]["code"] == "DFAC_VALIDATION_FAILED"
    finally:
        client.close()


def test_double_cancel_is_rejected_as_terminal(tmp_path: Path) -> None:
    client, refs = _create_client(tmp_path)
    try:
        order_id = client.post("/api/orders", json=refs).json()["data"]["order"]["orderID"]

        first = client.patch(f"/api/orders/{order_id}", json={"canceled": True})
        assert first.status_code == 200
        assert first.json()["data"]["order"]["canceled"] is True
        assert first.json()["data"]["order"]["canceledAtTime"] == "2026-10-20T07:00:00+00:00"

        second = client.patch(f"/api/orders/{order_id}", json={"canceled": True})
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "ORDER_ALREADY_TERMINAL"

        picked_up = client.patch(f"/api/orders/{order_id}", json={"pickedUpTime": "2026-10-20T07:40:00Z"})
        assert picked_up.status_code == 409
    finally:
        client.close()


def test_delete_soft_removes_order(tmp_path: Path) -> None:
    client, refs = _create_client(tmp_path)
    try:
        order_id = client.post("/api/orders", json=refs).json()["data"]["order"]["orderID"]

        deleted = client.delete(f"/api/orders/{order_id}")
        assert deleted.status_code == 200
        assert deleted.json()["data"] == {"deleted": order_id}

        assert client.get(f"/api/orders/{order_id}").status_code == 404
        assert client.delete(f"/api/orders/{order_id}").status_code == 404
    finally:
        client.close()


def test_order_window_gate_when_enforced(tmp_path: Path) -> None:
    client, refs = _create_client(tmp_path, enforce_order_window=True, hour=9)
    try:
        response = client.post("/api/orders", json=refs)

        assert response.status_code == 403
        payload = response.json()
        assert payload["error"]["code"] == "ORDER_WINDOW_CLOSED"
        assert payload["error"]["retryable"] is False
    finally:
        client.close()


def test_meal_patch_does_not_touch_existing_price_snapshot(tmp_path: Path) -> None:
    client, refs = _create_client(tmp_path)
    try:
        created = client.post("/api/orders", json=refs).json()["data"]

        patched = client.patch(f"/api/meals/{refs['mealID']}", json={"price": "12.75"})
        assert patched.status_code == 200
        assert Decimal(patched.json()["data"]["meal"]["price"]) == Decimal("12.75")

        with CatalogRepository(db_path=str(tmp_path / "runtime" / "state" / "dfacdash.db")) as catalog:
            row = catalog.conn.execute(
                "SELECT price_at_order FROM order_meals WHERE order_id = ?",
                (created["order"]["orderID"],),
            ).fetchone()
        assert Decimal(str(row["price_at_order"])) == Decimal("9.50")

        unknown = client.patch(f"/api/meals/{refs['mealID']}", json={"likes": 5})
        assert unknown.status_code == 400
    finally:
        client.close()


def test_create_rejects_coercible_quantity_values(tmp_path: Path) -> None:
    client, refs = _create_client(tmp_path)
    try:
        for quantity in (True, 1.5, "2"):
            response = client.post("/api/orders", json={**refs, "quantity": quantity})
            assert response.status_code == 400
            payload = response.json()
            assert payload["error"]["code"] == "DFAC_VALIDATION_FAILED"
            assert payload["error"]["details"][0]["field"] == "body.quantity"

        listed = client.get("/api/orders", params={"customerID": refs["customerID"]})
        assert listed.json()["data"]["orders"] == []
    finally:
        client.close()


def test_dfac_patch_and_hours_patch_use_separate_allow_lists(tmp_path: Path) -> None:
    client, refs = _create_client(tmp_path)
    try:
        dfac_id = refs["dfacID"]

        patched = client.patch(f"/api/dfacs/{dfac_id}", json={"city": "Fort Drum", "flashMsg1": "Closed Sunday"})
        assert patched.status_code == 200
        dfac = patched.json()["data"]["dfac"]
        assert dfac["city"] == "Fort Drum"
        assert dfac["flashMsg1"] == "Closed Sunday"
        assert dfac["bfHours"] is None

        hours = client.patch(f"/api/dfacs/{dfac_id}/hours", json={"bfHours": "0630-0830", "orderBf": "0600-0800"})
        assert hours.status_code == 200
        dfac = hours.json()["data"]["dfac"]
        assert dfac["bfHours"] == "0630-0830"
        assert dfac["orderBf"] == "0600-0800"
        assert dfac["city"] == "Fort Drum"

        wrong_list = client.patch(f"/api/dfacs/{dfac_id}/hours", json={"city": "Watertown"})
        assert wrong_list.status_code == 400
        assert wrong_list.json()["error"]["code"] == "DFAC_VALIDATION_FAILED"

        empty = client.patch(f"/api/dfacs/{dfac_id}/hours", json={})
        assert empty.status_code == 400

        missing = client.patch("/api/dfacs/9999/hours", json={"luHours": "1100-1300"})
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "DFAC_NOT_FOUND"
    finally:
        client.close()
