"""
API tests for the quoting, carrier and RFQ template endpoints, run against stubbed
network clients and no database.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rateshop.api import carriers, quote_runs, quotes
from rateshop.api.deps import get_quote_session
from rateshop.db.database import get_db
from rateshop.schemas.carrier import CarrierGroup, CarrierInfo
from rateshop.services.errors import CredentialError
from rateshop.services.pricing import PricingSettings
from rateshop.services.quote_session import QuoteSession


@pytest.fixture
def project44(make_quote):
    client = MagicMock()
    client.credentials = SimpleNamespace(is_configured=True)
    client.get_quotes = AsyncMock(return_value=[make_quote(carrier="Saia LTL Freight", total=400.0)])
    client.directory.list_carriers_by_group = AsyncMock(return_value=[
        CarrierGroup(group_code="G1", group_name="East (Standard LTL)",
                     carriers=[CarrierInfo(id="SAIA_ACCT", name="Saia LTL Freight", scac="SAIA")]),
    ])
    return client


@pytest.fixture
def api(project44):
    app = FastAPI()
    app.include_router(quotes.router, prefix="/api/quotes")
    app.include_router(carriers.router, prefix="/api/carriers")
    app.include_router(quote_runs.router, prefix="/api/quote-runs")
    session = QuoteSession(project44=project44, pricing_settings=PricingSettings(margin_percentage=25.0))
    app.dependency_overrides[get_quote_session] = lambda: session
    app.dependency_overrides[get_db] = lambda: MagicMock()
    return TestClient(app)


SHIPMENT = {"from_date": "2025-03-10", "from_zip": "60601", "to_zip": "30301", "pallets": 2, "gross_weight": 900}


class TestQuoteEndpoints:

    def test_batch_quotes_without_saving(self, api, project44):
        response = api.post("/api/quotes/batch", json={
            "shipments": [SHIPMENT, {**SHIPMENT, "pallets": 14}],
            "options": {"strategy": "sequential", "sequential_delay": 0},
            "save": False,
        })

        assert response.status_code == 200
        body = response.json()
        assert body["run_id"] is None
        assert body["total"] == 2
        assert body["failed"] == 0
        assert [r["routing_decision"] for r in body["results"]] == ["standard", "dual"]
        assert body["results"][0]["quotes"][0]["customer_price"] == 500.0

    def test_batch_results_survive_save_failure(self, api, monkeypatch):
        db = MagicMock()
        api.app.dependency_overrides[get_db] = lambda: db
        monkeypatch.setattr(quotes, "save_quote_run", MagicMock(side_effect=RuntimeError("database is gone")))

        response = api.post("/api/quotes/batch", json={
            "shipments": [SHIPMENT],
            "options": {"strategy": "sequential"},
            "save": True,
        })

        assert response.status_code == 200
        body = response.json()
        assert body["run_id"] is None
        assert body["total"] == 1
        assert body["results"][0]["quotes"][0]["total"] == 400.0
        db.rollback.assert_called_once()

    def test_spot_quote(self, api):
        response = api.post("/api/quotes/spot", json={"shipment": SHIPMENT})

        assert response.status_code == 200
        assert response.json()["status"] == "success"

    def test_missing_credentials_is_bad_request(self, api, project44):
        project44.credentials = SimpleNamespace(is_configured=False)

        response = api.post("/api/quotes/spot", json={"shipment": SHIPMENT})

        assert response.status_code == 400
        assert "PROJECT44_CLIENT_ID" in response.json()["detail"]

    def test_classify_preview(self, api):
        response = api.post("/api/quotes/classify", json=[SHIPMENT, {**SHIPMENT, "is_reefer": True}])

        assert response.status_code == 200
        assert [d["network"] for d in response.json()] == ["standard", "reefer"]

    def test_invalid_shipment_rejected(self, api):
        response = api.post("/api/quotes/spot", json={"shipment": {**SHIPMENT, "pallets": 0}})

        assert response.status_code == 422


class TestCarrierEndpoints:

    def test_list_groups(self, api, project44):
        response = api.get("/api/carriers/groups", params={"mode": "volume"})

        assert response.status_code == 200
        assert response.json()[0]["carriers"][0]["id"] == "SAIA_ACCT"
        project44.directory.list_carriers_by_group.assert_awaited_once()

    def test_bad_credentials_is_unauthorized(self, api, project44):
        project44.directory.list_carriers_by_group.side_effect = CredentialError("Invalid OAuth credentials")

        response = api.get("/api/carriers/groups")

        assert response.status_code == 401

    def test_clear_cache(self, api, project44):
        response = api.post("/api/carriers/cache/clear")

        assert response.json() == {"status": "cleared"}
        project44.directory.clear_cache.assert_called_once()


class TestRfqTemplateEndpoint:

    def test_template_download_per_network(self, api):
        response = api.get("/api/quote-runs/template", params={"network": "freshx"})

        assert response.status_code == 200
        assert "rfq_template_freshx.xlsx" in response.headers["content-disposition"]
        assert response.content[:2] == b"PK"

    def test_unknown_network_rejected(self, api):
        response = api.get("/api/quote-runs/template", params={"network": "telegraph"})

        assert response.status_code == 422
