from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
import logging
from datetime import datetime
from typing import Dict, Any, Optional

from fbr_invoicing.api.deps import get_fbr_client, get_submission_service
from fbr_invoicing.config.settings import settings
from fbr_invoicing.models.fbr import SubmissionResult
from fbr_invoicing.modules.fbr.client import FbrClient, validate_fbr_config
from fbr_invoicing.modules.fbr.harness import (
    DEFAULT_CHECK_SCENARIO,
    check_custom_order,
    check_order_mapping,
    check_scenario_data,
    run_flow_check,
    run_setup_check,
    run_validation_check,
    sweep_scenarios,
)
from fbr_invoicing.modules.fbr.mapper import create_test_fbr_invoice
from fbr_invoicing.services.fbr_submission_service import FbrSubmissionService

router = APIRouter()
logger = logging.getLogger(__name__)

SUBMIT_ENDPOINTS = {
    "POST /api/fbr/submit": "Submit invoice to FBR (validate + post)",
    "GET /api/fbr/submit?test=config": "Test FBR configuration",
    "GET /api/fbr/submit?test=connection": "Test FBR connection",
    "GET /api/fbr/submit?test=sample&scenario=SN026": "Generate sample invoice",
}

TEST_ACTIONS = {
    "setup": "Test FBR configuration and connection",
    "validate": "Validate the sample invoice of a scenario (?scenario=SN026)",
    "flow": "Validate and post the sample invoice of a scenario",
    "mapping": "Check order validation on a representative order",
    "all": "Validate the sample invoice of every sweep scenario",
    "data": "Generate sample order data for a scenario",
}


def is_direct_fbr_payload(body: Dict[str, Any]) -> bool:
    """
    True when ``body`` already is an FBR invoice (FBR field names, first item
    with hsCode and rate) rather than an order to map.
    """
    items = body.get("items")
    if not (
        body.get("invoiceType")
        and body.get("scenarioId")
        and items
        and body.get("sellerNTNCNIC")
        and body.get("buyerRegistrationType")
    ):
        return False
    first = items[0] if isinstance(items, list) else None
    return isinstance(first, dict) and bool(first.get("hsCode")) and bool(first.get("rate"))


def _submission_response(result: SubmissionResult) -> JSONResponse:
    if result.ok:
        status_code = 200
    elif result.step == "error":
        status_code = 500
    else:
        status_code = 400
    return JSONResponse(status_code=status_code, content=result.model_dump(by_alias=True, exclude_none=True))


@router.post("/submit")
async def submit_invoice(
    body: Dict[str, Any] = Body(...),
    service: FbrSubmissionService = Depends(get_submission_service),
):
    """
    Two-step FBR submission: validate, then post only when FBR says Valid.

    Accepts either a ready FBR invoice or an order to map. Per-tenant
    ``fbrSandboxToken`` / ``fbrBaseUrl`` in the body override the configured ones.
    """
    if is_direct_fbr_payload(body):
        logger.info("📄 Received direct FBR invoice payload")
        payload = dict(body)
        token = payload.pop("fbrSandboxToken", None)
        base_url = payload.pop("fbrBaseUrl", None)
        result = await service.submit_invoice(payload, token=token, base_url=base_url)
    else:
        logger.info("🔄 Converting order to FBR invoice format")
        result = await service.submit_order(body)
    return _submission_response(result)


@router.get("/submit")
async def submit_info(
    test: Optional[str] = None,
    scenario: str = DEFAULT_CHECK_SCENARIO,
    client: FbrClient = Depends(get_fbr_client),
):
    if test == "config":
        config = validate_fbr_config(client.config)
        return {"configured": config.is_valid, "errors": config.errors}

    if test == "connection":
        return await client.test_connection()

    if test == "sample":
        invoice = await create_test_fbr_invoice(scenario)
        return {"scenario": scenario, "invoice": invoice.to_payload()}

    return {"message": "FBR Submit API", "endpoints": SUBMIT_ENDPOINTS}


@router.get("/test")
async def run_test(
    action: str = "setup",
    scenario: str = DEFAULT_CHECK_SCENARIO,
    client: FbrClient = Depends(get_fbr_client),
):
    if action == "setup":
        result = await run_setup_check(client)
    elif action == "validate":
        result = await run_validation_check(client, scenario)
    elif action == "flow":
        result = await run_flow_check(client, scenario)
    elif action == "mapping":
        result = check_order_mapping()
    elif action == "all":
        result = await sweep_scenarios(client)
    elif action == "data":
        result = await check_scenario_data(client, scenario)
    else:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid test action", "availableActions": TEST_ACTIONS},
        )
    return {"test": action, "scenario": scenario, **result}


@router.post("/test")
async def run_custom_order_test(
    body: Dict[str, Any] = Body(...),
    client: FbrClient = Depends(get_fbr_client),
):
    """Validates a caller-supplied order locally and with FBR (never posts)."""
    order_data = body.get("orderData")
    if body.get("testType") != "custom-order" or not isinstance(order_data, dict):
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid POST request",
                "supportedActions": {"custom-order": "Test with custom order data (provide orderData in body)"},
            },
        )

    result = await check_custom_order(client, order_data)
    if result.get("step") == "order-validation":
        return JSONResponse(status_code=400, content=result)
    return result


@router.get("/status")
async def fbr_status(client: FbrClient = Depends(get_fbr_client)):
    config = validate_fbr_config(client.config)
    connection = await client.test_connection()
    return {
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "configuration": config.model_dump(),
        "connection": connection,
        "environment": {
            "baseUrl": "Set" if client.config.base_url else "Missing",
            "token": "Set" if client.config.token else "Missing",
            "sellerNTN": "Set" if settings.FBR_SELLER_NTNCNIC else "Missing",
            "sellerName": "Set" if settings.FBR_SELLER_BUSINESS_NAME else "Missing",
        },
    }
