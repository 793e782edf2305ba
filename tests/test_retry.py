from __future__ import annotations

import asyncio

import pytest

from fbr_invoicing.core.exceptions import FbrConfigurationError, FbrResponseParseError, FbrTransportError
from fbr_invoicing.core.retry import fbr_retry


def _flaky(exc: Exception, failures: int):
    state = {"calls": 0}

    async def call():
        state["calls"] += 1
        if state["calls"] <= failures:
            raise exc
        return "ok"

    return call, state


def test_transient_transport_error_is_retried():
    call, state = _flaky(FbrTransportError("Failed to validate invoice: connection reset"), failures=1)
    assert asyncio.run(fbr_retry(max_attempts=2, min_wait=0, max_wait=0)(call)()) == "ok"
    assert state["calls"] == 2


@pytest.mark.parametrize("exc", [
    FbrResponseParseError("Failed to validate invoice: FBR API returned invalid JSON: timeout"),
    FbrConfigurationError("FBR token is not configured"),
    FbrTransportError("Failed to validate invoice: certificate verify failed"),
])
def test_permanent_errors_are_not_retried(exc):
    call, state = _flaky(exc, failures=1)
    with pytest.raises(type(exc)):
        asyncio.run(fbr_retry(max_attempts=3, min_wait=0, max_wait=0)(call)())
    assert state["calls"] == 1
