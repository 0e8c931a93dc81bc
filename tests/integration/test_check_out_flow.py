"""Integration test: check-in → FEFO check-out → transaction log on a real database."""

import json
from collections.abc import AsyncGenerator
from datetime import date, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_inv_store
from src.api.main import app
from src.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations


@pytest.fixture
async def client(tmp_path: Path) -> AsyncGenerator[AsyncClient, None]:
    """App client backed by a freshly migrated database."""
    import src.infrastructure.storage.sqlite.connection as conn_module

    db_path = tmp_path / "flow.db"
    results = await run_migrations(db_path)
    assert all(r.success for r in results)

    settings = MagicMock()
    settings.storage.db_path = db_path
    settings.storage.pool_size = 2
    settings.storage.busy_timeout = 5000

    store = SQLiteInventoryStore()
    conn_module._pool = None
    app.dependency_overrides[get_inv_store] = lambda: store
    with patch.object(conn_module, "get_settings", return_value=settings):
        try:
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                yield ac
        finally:
            app.dependency_overrides.pop(get_inv_store, None)
            await conn_module.close_pool()


async def _check_in(client: AsyncClient, lot_id: int | None, expiry: date, quantity: float) -> str:
    response = await client.post(
        "/api/checkin",
        json={
            "lotId": lot_id,
            "medicationName": "Amoxicillin",
            "strength": 500,
            "strengthUnit": "mg",
            "ndcId": "0093-4155-73",
            "quantityPerUnit": quantity,
            "expiryDate": expiry.isoformat(),
            "actingUser": "pharmacist",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["units"][0]["id"]


class TestCheckOutFlow:
    """Receive two units, dispense across both, then read the audit log."""

    async def test_fefo_flow(self, client: AsyncClient):
        lot = await client.post("/api/lots", json={"lotCode": "DONATION-1"})
        assert lot.status_code == 201
        lot_id = lot.json()["id"]

        soon = date.today() + timedelta(days=20)
        later = date.today() + timedelta(days=200)
        late_unit = await _check_in(client, lot_id, later, 30)
        early_unit = await _check_in(client, lot_id, soon, 10)

        # Both check-ins resolve to the same drug
        first = await client.get(f"/api/units/{late_unit}")
        second = await client.get(f"/api/units/{early_unit}")
        assert first.json()["drugId"] == second.json()["drugId"]

        # Over-request is refused with the total available
        refused = await client.post(
            "/api/checkout/fefo",
            json={"ndcId": "0093-4155-73", "requestedQuantity": 45, "actingUser": "nurse"},
        )
        assert refused.status_code == 409
        assert refused.json()["details"]["max_fulfillable"] == 40

        # 12 takes the early unit fully, then 2 from the later one
        dispensed = await client.post(
            "/api/checkout/fefo",
            json={
                "ndcId": "0093-4155-73",
                "requestedQuantity": 12,
                "actingUser": "nurse",
                "patientReferenceId": "PT-1",
            },
        )
        assert dispensed.status_code == 200, dispensed.text
        used = [(u["unitId"], u["quantityTaken"]) for u in dispensed.json()["unitsUsed"]]
        assert used == [(early_unit, 10), (late_unit, 2)]

        early = (await client.get(f"/api/units/{early_unit}")).json()
        late = (await client.get(f"/api/units/{late_unit}")).json()
        assert early["availableQuantity"] == 0
        assert late["availableQuantity"] == 28

        # Exhausted units drop out of the default search
        search = await client.get("/api/units", params={"query": "amox"})
        assert [u["id"] for u in search.json()["units"]] == [late_unit]
        assert search.json()["total"] == 1

        empty = await client.get("/api/units", params={"stock": "out_of_stock"})
        assert [u["id"] for u in empty.json()["units"]] == [early_unit]

        soon_units = await client.get(
            "/api/units", params={"expiringSoon": "true", "stock": "all"}
        )
        assert [u["id"] for u in soon_units.json()["units"]] == [early_unit]

        log = await client.get("/api/transactions", params={"type": "check_out"})
        body = log.json()
        assert body["total"] == 2
        assert {t["unitId"] for t in body["transactions"]} == {early_unit, late_unit}
        assert all(t["patientReferenceId"] == "PT-1" for t in body["transactions"])

        stats = (await client.get("/api/dashboard/stats")).json()
        assert stats["totalUnits"] == 1
        assert stats["recentCheckIns"] == 2
        assert stats["recentCheckOuts"] == 2

    async def test_unit_then_adjust(self, client: AsyncClient):
        unit_id = await _check_in(client, None, date.today() + timedelta(days=90), 5)

        taken = await client.post(
            "/api/checkout/unit",
            json={"unitId": unit_id, "quantity": 2, "actingUser": "nurse"},
        )
        assert taken.status_code == 200

        adjusted = await client.patch(
            f"/api/units/{unit_id}",
            json={"availableQuantity": 1, "reason": "recount", "actingUser": "admin"},
        )
        assert adjusted.status_code == 200
        assert adjusted.json()["delta"] == -2

        too_much = await client.post(
            "/api/checkout/unit",
            json={"unitId": unit_id, "quantity": 2, "actingUser": "nurse"},
        )
        assert too_much.status_code == 409
        assert too_much.json()["details"]["max_fulfillable"] == 1

    async def test_non_finite_quantities_rejected(self, client: AsyncClient):
        unit_id = await _check_in(client, None, date.today() + timedelta(days=90), 5)
        headers = {"Content-Type": "application/json"}

        requests = [
            (
                "POST",
                "/api/checkout/fefo",
                {"ndcId": "0093-4155-73", "requestedQuantity": float("nan"), "actingUser": "nurse"},
            ),
            ("POST", "/api/checkout/unit", {"unitId": unit_id, "quantity": float("inf"), "actingUser": "nurse"}),
            (
                "POST",
                "/api/checkin",
                {
                    "medicationName": "Amoxicillin",
                    "quantityPerUnit": float("nan"),
                    "expiryDate": "2030-01-01",
                    "actingUser": "pharmacist",
                },
            ),
            ("PATCH", f"/api/units/{unit_id}", {"availableQuantity": float("nan"), "actingUser": "admin"}),
        ]
        for method, url, payload in requests:
            response = await client.request(method, url, content=json.dumps(payload), headers=headers)
            assert response.status_code == 400, (url, response.text)
            assert response.json()["error_code"] == "INVALID_REQUEST"

        unit = (await client.get(f"/api/units/{unit_id}")).json()
        assert unit["availableQuantity"] == 5
        log = await client.get("/api/transactions", params={"unitId": unit_id})
        assert log.json()["total"] == 1
