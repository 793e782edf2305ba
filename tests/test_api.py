from __future__ import annotations

from typing import Any, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

from fbr_invoicing.api.api import app
from fbr_invoicing.api.deps import get_fbr_client, get_submission_service
from fbr_invoicing.api.endpoints.fbr import is_direct_fbr_payload
from fbr_invoicing.config.fbr_config import FbrConfig
from fbr_invoicing.config.settings import Settings
from fbr_invoicing.modules.fbr.client import FbrClient
from fbr_invoicing.services.fbr_submission_service import FbrSubmissionService

BASE_URL = "https://gw.fbr.gov.pk/di_data/v1/di"
VALID = {"validationResponse": {"status": "Valid", "statusCode": "00"}}
POSTED = {"success": True, "invoiceNumber": "INV-123", "message": "ok"}

ORDER = {
    "email": "buyer@example.com",
    "scenarioId": "SN001",
    "invoiceDate": "2025-01-15",
    "items": [{"productName": "Widget", "quantity": 1, "price": 1000, "totalPrice": 1000}],
}

DIRECT_INVOICE = {
    "invoiceType": "Sale Invoice",
    "invoiceDate": "2025-01-15",
    "sellerNTNCNIC": "7000000000001",
    "buyerRegistrationType": "Unregistered",
    "scenarioId": "SN001",
    "items": [{"hsCode": "0101.2100", "rate": "18%", "valueSalesExcludingST": 1000}],
    "fbrSandboxToken": "tenant-token",
}


@pytest.fixture
def fbr_api():
    state: Dict[str, Any] = {"validate": VALID, "down": False}
    calls: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if state["down"]:
            raise httpx.ConnectError("connection refused", request=request)
        path = request.url.path
        if path.endswith("/validateinvoicedata_sb"):
            return httpx.Response(200, json=state["validate"])
        if path.endswith("/postinvoicedata_sb"):
            return httpx.Response(200, json=POSTED)
        return httpx.Response(200, json=[])

    client = FbrClient(FbrConfig(base_url=BASE_URL, token="default-token"), transport=httpx.MockTransport(handler))
    service = FbrSubmissionService(client, Settings(FBR_LIVE_SALE_TYPE_LOOKUP=False, FBR_VALIDATE_RETRIES=0))
    app.dependency_overrides[get_fbr_client] = lambda: client
    app.dependency_overrides[get_submission_service] = lambda: service
    yield TestClient(app), state, calls
    app.dependency_overrides.clear()


def test_submit_order(fbr_api):
    api, _, calls = fbr_api
    resp = api.post("/api/fbr/submit", json=ORDER)

    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["step"] == "post"
    assert body["response"]["invoiceNumber"] == "INV-123"
    assert body["fbrInvoice"]["items"][0]["hsCode"] == "2710.1991"
    assert len(calls) == 2


def test_submit_direct_payload_uses_body_token(fbr_api):
    api, _, calls = fbr_api
    resp = api.post("/api/fbr/submit", json=DIRECT_INVOICE)

    assert resp.status_code == 200
    assert calls[0].headers["Authorization"] == "Bearer tenant-token"
    assert b"fbrSandboxToken" not in calls[0].content


def test_submit_invalid_order_is_400(fbr_api):
    api, _, calls = fbr_api
    resp = api.post("/api/fbr/submit", json={**ORDER, "items": []})

    assert resp.status_code == 400
    assert resp.json()["step"] == "validation"
    assert calls == []


def test_submit_remote_invalid_is_400(fbr_api):
    api, state, _ = fbr_api
    state["validate"] = {"validationResponse": {"status": "Invalid", "error": "Invalid buyer"}}
    resp = api.post("/api/fbr/submit", json=ORDER)

    assert resp.status_code == 400
    assert resp.json()["step"] == "validate"
    assert resp.json()["error"] == "Invalid buyer"


def test_submit_transport_error_is_500(fbr_api):
    api, state, _ = fbr_api
    state["down"] = True
    resp = api.post("/api/fbr/submit", json=ORDER)

    assert resp.status_code == 500
    assert resp.json()["step"] == "error"


def test_submit_info_endpoints(fbr_api):
    api, _, _ = fbr_api
    assert api.get("/api/fbr/submit", params={"test": "config"}).json() == {"configured": True, "errors": []}
    assert api.get("/api/fbr/submit", params={"test": "connection"}).json() == {"success": True, "error": None}

    sample = api.get("/api/fbr/submit", params={"test": "sample", "scenario": "SN008"}).json()
    assert sample["invoice"]["scenarioId"] == "SN008"
    assert sample["invoice"]["items"][0]["saleType"] == "3rd Schedule Goods"

    assert api.get("/api/fbr/submit").json()["message"] == "FBR Submit API"


def test_harness_endpoint(fbr_api):
    api, _, _ = fbr_api
    mapping = api.get("/api/fbr/test", params={"action": "mapping"}).json()
    assert mapping["test"] == "mapping"
    assert mapping["success"] is True

    sweep = api.get("/api/fbr/test", params={"action": "all"}).json()
    assert sweep["totalScenarios"] == 10
    assert sweep["successCount"] == 10

    data = api.get("/api/fbr/test", params={"action": "data", "scenario": "SN006"}).json()
    assert data["publishedRate"] == "Exempt"
    assert data["data"]["items"][0]["productName"] == "Exempt Product"

    bad = api.get("/api/fbr/test", params={"action": "nope"})
    assert bad.status_code == 400
    assert "setup" in bad.json()["availableActions"]


def test_custom_order_endpoint(fbr_api):
    api, _, calls = fbr_api
    ok = api.post("/api/fbr/test", json={"testType": "custom-order", "orderData": ORDER})
    assert ok.status_code == 200
    assert ok.json()["success"] is True
    assert [c.url.path.rsplit("/", 1)[-1] for c in calls] == ["validateinvoicedata_sb"]

    bad = api.post("/api/fbr/test", json={"testType": "custom-order", "orderData": {**ORDER, "email": None}})
    assert bad.status_code == 400
    assert bad.json()["step"] == "order-validation"


def test_status_endpoint(fbr_api):
    api, _, _ = fbr_api
    body = api.get("/api/fbr/status").json()
    assert body["configuration"]["is_valid"] is True
    assert body["connection"]["success"] is True
    assert body["environment"]["token"] == "Set"


def test_health_and_request_id(fbr_api):
    api, _, _ = fbr_api
    resp = api.get("/health", headers={"X-Request-ID": "req-42"})
    assert resp.json()["status"] == "healthy"
    assert resp.headers["X-Request-ID"] == "req-42"


def test_is_direct_fbr_payload():
    assert is_direct_fbr_payload(DIRECT_INVOICE)
    assert not is_direct_fbr_payload(ORDER)
    assert not is_direct_fbr_payload({**DIRECT_INVOICE, "items": [{"hsCode": "0101.2100"}]})
    assert not is_direct_fbr_payload({**DIRECT_INVOICE, "sellerNTNCNIC": ""})
