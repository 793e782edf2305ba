from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any, Dict

import requests

from fbr_invoicing.services import webhook_service
from fbr_invoicing.services.webhook_service import InvoiceWebhookService


class _Response:
    def __init__(self, status_code: int, text: str = ""):
        self.status_code = status_code
        self.text = text


def test_no_url_is_a_noop(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr(webhook_service.requests, "post", fail)
    assert InvoiceWebhookService().send_invoice_notification({"invoiceNumber": "X"}) is True


def test_payload_is_signed(monkeypatch):
    captured: Dict[str, Any] = {}

    def fake_post(url, data=None, headers=None, timeout=None):
        captured.update(url=url, data=data, headers=headers, timeout=timeout)
        return _Response(204)

    monkeypatch.setattr(webhook_service.requests, "post", fake_post)
    service = InvoiceWebhookService(url="https://hooks.example/fbr", secret="s3cret", timeout=3)

    assert service.send_invoice_notification({"invoiceNumber": "INV-1"}) is True

    expected = hmac.new(b"s3cret", captured["data"].encode("utf-8"), hashlib.sha256).hexdigest()
    assert captured["url"] == "https://hooks.example/fbr"
    assert captured["timeout"] == 3
    assert json.loads(captured["data"]) == {"invoiceNumber": "INV-1"}
    assert captured["headers"]["X-FBR-Invoicing-Signature"] == f"sha256={expected}"


def test_failures_return_false(monkeypatch):
    service = InvoiceWebhookService(url="https://hooks.example/fbr")

    monkeypatch.setattr(webhook_service.requests, "post", lambda *a, **k: _Response(500, "boom"))
    assert service.send_invoice_notification({"a": 1}) is False

    def timeout(*args, **kwargs):
        raise requests.exceptions.Timeout()

    monkeypatch.setattr(webhook_service.requests, "post", timeout)
    assert service.send_invoice_notification({"a": 1}) is False

    def refused(*args, **kwargs):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(webhook_service.requests, "post", refused)
    assert service.send_invoice_notification({"a": 1}) is False
