"""HTTP-level tests for the /api routes."""

from datetime import date

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from almanac.api.dependencies import CommonDependencies, get_common_deps, viewers
from almanac.app import app
from almanac.controller import EventLifecycleController
from almanac.settings import Settings
from almanac.types import DateRange, RefType

JANUARY = {"unit_id": "U1", "start": "2024-01-01", "end": "2024-01-31"}


@pytest_asyncio.fixture
async def deps(db, store, seed):
    settings = Settings(db)
    await settings.init_defaults()

    await seed(RefType.RECEIVABLE, "r1", expected_date=date(2024, 1, 10), category="Corte")
    await seed(RefType.PAYABLE, "p1", expected_date=date(2024, 1, 20), category="Aluguel")
    await seed(RefType.RECEIVABLE, "r2", expected_date=date(2024, 2, 15), category="Corte")

    controller = EventLifecycleController(store, auto_reconcile=False)
    yield CommonDependencies(db=db, settings=settings, store=store, controller=controller)
    await controller.dispose()


@pytest.fixture
def client(deps):
    async def override_deps():
        return deps

    app.dependency_overrides[get_common_deps] = override_deps
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestEventsApi:
    @pytest.mark.asyncio
    async def test_list_events(self, client):
        resp = client.get("/api/events", params=JANUARY)

        assert resp.status_code == 200
        data = resp.json()
        assert data["state"] == "ready"
        assert data["error"] is None
        assert [(e["ref_type"], e["id"], e["status"]) for e in data["events"]] == [
            ("Receivable", "r1", "Overdue"),
            ("Payable", "p1", "Overdue"),
        ]

    @pytest.mark.asyncio
    async def test_type_filter(self, client):
        resp = client.get("/api/events", params={**JANUARY, "types": "Payable"})
        assert [e["id"] for e in resp.json()["events"]] == ["p1"]

    @pytest.mark.asyncio
    async def test_missing_parameters(self, client):
        assert client.get("/api/events", params={"unit_id": "U1"}).status_code == 400
        resp = client.get("/api/events", params={"start": "2024-01-01", "end": "2024-01-31"})
        assert resp.status_code == 400
        assert resp.json()["detail"]["kind"] == "validation"

    @pytest.mark.asyncio
    async def test_inverted_range(self, client):
        resp = client.get("/api/events", params={**JANUARY, "start": "2024-02-01"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_get_single_event(self, client):
        resp = client.get("/api/events/receivable/r2")
        assert resp.status_code == 200
        assert resp.json()["status"] == "Pending"

        assert client.get("/api/events/Receivable/nope").status_code == 404
        assert client.get("/api/events/Invoice/r1").status_code == 400

    @pytest.mark.asyncio
    async def test_settle_with_date(self, client):
        client.get("/api/events", params=JANUARY)

        resp = client.post("/api/events/Receivable/r1/settle", json={"settled_date": "2024-01-12"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        r1 = next(e for e in body["view"]["events"] if e["id"] == "r1")
        assert r1["status"] == "Settled"
        assert r1["actual_date"] == "2024-01-12"

    @pytest.mark.asyncio
    async def test_settle_without_body(self, client, db):
        resp = client.post("/api/events/Payable/p1/settle")

        assert resp.status_code == 200
        row = await db.get_obligation("Payable", "p1")
        assert row["status"] == "Pago"
        assert row["actual_date"] == "2024-02-01"

    @pytest.mark.asyncio
    async def test_cancelled_cannot_be_settled(self, client):
        assert client.post("/api/events/Receivable/r1/cancel").status_code == 200

        resp = client.post("/api/events/Receivable/r1/settle")
        assert resp.status_code == 400
        assert resp.json()["detail"]["kind"] == "validation"

    @pytest.mark.asyncio
    async def test_reconcile(self, client, db):
        resp = client.post("/api/events/Payable/p1/reconcile", json={"settled_date": "2024-01-21"})

        assert resp.status_code == 200
        row = await db.get_obligation("Payable", "p1")
        assert row["status"] == "Conciliado"
        assert row["actual_date"] == "2024-01-21"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["settle", "cancel", "reconcile"])
    async def test_action_on_missing_event_is_not_found(self, client, action):
        resp = client.post(f"/api/events/Receivable/nope/{action}")

        assert resp.status_code == 404
        assert resp.json()["detail"]["kind"] == "not_found"

    @pytest.mark.asyncio
    async def test_refetch_requires_loaded_view(self, client):
        assert client.post("/api/events/refetch").status_code == 400

        client.get("/api/events", params=JANUARY)
        resp = client.post("/api/events/refetch")
        assert resp.status_code == 200
        assert len(resp.json()["events"]) == 2


class TestReconciliationApi:
    @pytest.mark.asyncio
    async def test_run(self, client, db):
        resp = client.post("/api/reconciliation/run", params=JANUARY)

        assert resp.status_code == 200
        assert resp.json() == {"corrected": 2, "failed": []}
        row = await db.get_obligation("Receivable", "r1")
        assert row["status"] == "Recebido"
        assert row["actual_date"] == "2024-01-10"

    @pytest.mark.asyncio
    async def test_run_requires_unit(self, client):
        resp = client.post("/api/reconciliation/run", params={"start": "2024-01-01", "end": "2024-01-31"})
        assert resp.status_code == 400


class TestSummariesApi:
    @pytest.mark.asyncio
    async def test_overall(self, client):
        resp = client.get("/api/summaries/overall", params=JANUARY)

        assert resp.status_code == 200
        data = resp.json()
        assert data["total_events"] == 2
        assert data["receivables_planned"] == "100.00"
        assert data["payables_planned"] == "100.00"
        assert data["projected_balance"] == "0.00"
        assert data["overdue_count"] == 2

    @pytest.mark.asyncio
    async def test_monthly(self, client):
        resp = client.get("/api/summaries/monthly", params={"year": 2024, "unit_id": "U1"})

        assert resp.status_code == 200
        months = resp.json()["months"]
        assert len(months) == 12
        assert months[0]["total_events"] == 2
        assert months[1]["planned_receivable"] == "100.00"

    @pytest.mark.asyncio
    async def test_daily(self, client):
        resp = client.get("/api/summaries/daily", params={"day": "2024-01-10", "unit_id": "U1"})

        assert resp.status_code == 200
        assert resp.json()["receivable_total"] == "100.00"
        assert resp.json()["total_events"] == 1

    @pytest.mark.asyncio
    async def test_categories(self, client):
        resp = client.get("/api/summaries/categories", params=JANUARY)

        assert resp.status_code == 200
        assert [(g["category"], g["status"]) for g in resp.json()["categories"]] == [
            ("Aluguel", "Overdue"),
            ("Corte", "Overdue"),
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("year", [0, 10000])
    async def test_monthly_rejects_out_of_range_year(self, client, year):
        resp = client.get("/api/summaries/monthly", params={"year": year, "unit_id": "U1"})

        assert resp.status_code == 400
        assert resp.json()["detail"]["kind"] == "validation"

    @pytest.mark.asyncio
    async def test_missing_unit(self, client):
        resp = client.get("/api/summaries/daily", params={"day": "2024-01-10"})
        assert resp.status_code == 400


class TestSettingsApi:
    @pytest.mark.asyncio
    async def test_get_settings(self, client):
        resp = client.get("/api/settings")

        assert resp.status_code == 200
        assert resp.json()["cache_ttl_seconds"] == 30
        assert resp.json()["auto_reconcile"] is True

    @pytest.mark.asyncio
    async def test_update_setting(self, client):
        resp = client.put("/api/settings/cache_ttl_seconds", json={"value": 10})

        assert resp.status_code == 200
        assert client.get("/api/settings").json()["cache_ttl_seconds"] == 10

    @pytest.mark.asyncio
    async def test_rejects_wrong_type(self, client):
        resp = client.put("/api/settings/auto_reconcile", json={"value": "yes"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_rejects_unknown_key(self, client):
        resp = client.put("/api/settings/theme", json={"value": "dark"})
        assert resp.status_code == 404



class TestViewersApi:
    @pytest.mark.asyncio
    async def test_dispose_viewer_clears_its_cache(self, client, db):
        controller = await viewers.get("kiosk", db, Settings(db))
        await controller.load("U1", DateRange(date(2024, 1, 1), date(2024, 1, 31)))
        assert len(controller.cache) > 0

        resp = client.delete("/api/viewers/kiosk")

        assert resp.status_code == 200
        assert "kiosk" not in viewers
        assert len(controller.cache) == 0

    @pytest.mark.asyncio
    async def test_unknown_viewer(self, client):
        assert client.delete("/api/viewers/nobody").status_code == 404

@pytest.mark.asyncio
async def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
