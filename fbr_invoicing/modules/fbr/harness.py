"""
Sandbox checks for the FBR integration (server-side only: they call FBR).

Every check returns a plain dict summary and never raises, so the results
can be served as-is from the test endpoint or printed by the sweep script.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from fbr_invoicing.core.exceptions import FbrError
from fbr_invoicing.models.fbr import validation_status
from fbr_invoicing.models.order import Order, OrderItem
from fbr_invoicing.modules.fbr.client import FbrClient, validate_fbr_config
from fbr_invoicing.modules.fbr.mapper import (
    create_test_fbr_invoice,
    map_order_to_fbr_invoice,
    resolve_rate_label_from_fbr,
    today_iso,
)
from fbr_invoicing.modules.fbr.sale_types import ScenarioId, describe_scenario, resolve_scenario
from fbr_invoicing.modules.fbr.validator import validate_order_for_fbr

logger = logging.getLogger(__name__)

DEFAULT_CHECK_SCENARIO = ScenarioId.SN026.value

SWEEP_SCENARIOS: List[str] = [
    "SN001", "SN002", "SN005", "SN006", "SN007", "SN008",
    "SN017", "SN026", "SN027", "SN028",
]


def _error_text(error: Exception) -> str:
    if isinstance(error, FbrError):
        return error.message
    return str(error)


def _validation_block(response: Dict[str, Any]) -> Dict[str, Any]:
    block = response.get("validationResponse") if isinstance(response, dict) else None
    return block if isinstance(block, dict) else {}


async def run_setup_check(client: FbrClient) -> Dict[str, Any]:
    logger.info("🔧 Testing FBR configuration...")
    config = validate_fbr_config(client.config)
    if not config.is_valid:
        return {
            "success": False,
            "error": "Configuration invalid",
            "details": config.errors,
        }

    logger.info("📡 Testing FBR connection...")
    connection = await client.test_connection()
    return {
        "success": connection["success"],
        "configuration": config.model_dump(),
        "connection": connection,
    }


async def run_validation_check(client: FbrClient, scenario: str = DEFAULT_CHECK_SCENARIO) -> Dict[str, Any]:
    """Maps the sample invoice for ``scenario`` and validates it remotely (no post)."""
    logger.info(f"🧪 Testing FBR validation with scenario {scenario}...")
    try:
        invoice = await create_test_fbr_invoice(scenario)
        validation = await client.validate_invoice(invoice)
    except FbrError as e:
        logger.error(f"❌ Test validation failed: {e}")
        return {"success": False, "error": _error_text(e)}

    return {
        "success": validation_status(validation) == "Valid",
        "invoice": invoice.to_payload(),
        "validation": validation,
    }


async def run_flow_check(client: FbrClient, scenario: str = DEFAULT_CHECK_SCENARIO) -> Dict[str, Any]:
    """Validate then post the sample invoice. Posts to the sandbox only when validation passes."""
    logger.info(f"🚀 Testing complete FBR flow with scenario {scenario}...")
    try:
        invoice = await create_test_fbr_invoice(scenario)
        validation = await client.validate_invoice(invoice)
        if validation_status(validation) != "Valid":
            return {
                "success": False,
                "step": "validation",
                "invoice": invoice.to_payload(),
                "validation": validation,
                "error": _validation_block(validation).get("error") or "Validation failed",
            }

        post = await client.post_invoice(invoice)
    except FbrError as e:
        logger.error(f"❌ Test flow failed: {e}")
        return {"success": False, "error": _error_text(e)}

    return {
        "success": True,
        "invoice": invoice.to_payload(),
        "validation": validation,
        "post": post,
    }


def check_order_mapping() -> Dict[str, Any]:
    """Local only: runs the validator over a representative SN026 order."""
    order = generate_test_order(DEFAULT_CHECK_SCENARIO)
    order.items[0] = order.items[0].model_copy(update={
        "product_id": "test-1",
        "product_name": "Test Product",
        "product_description": "A test product for FBR integration",
        "quantity": 2,
        "price": 500,
        "tax_amount": 180,
    })

    validation = validate_order_for_fbr(order)
    summary = {
        "success": validation.is_valid,
        "order": order.model_dump(by_alias=True, exclude_none=True),
    }
    if validation.is_valid:
        summary["validation"] = validation.model_dump()
    else:
        summary["errors"] = validation.errors
    return summary


async def sweep_scenarios(client: FbrClient, scenarios: Sequence[str] = SWEEP_SCENARIOS) -> Dict[str, Any]:
    """Validates the sample invoice of each scenario in turn; one failure doesn't stop the sweep."""
    logger.info("🎯 Testing FBR scenarios...")
    results = []
    for scenario in scenarios:
        logger.info(f"Testing scenario {scenario}...")
        try:
            invoice = await create_test_fbr_invoice(scenario)
            validation = await client.validate_invoice(invoice)
        except FbrError as e:
            results.append({"scenario": scenario, "success": False, "error": _error_text(e)})
            continue

        block = _validation_block(validation)
        results.append({
            "scenario": scenario,
            "success": block.get("status") == "Valid",
            "saleType": invoice.items[0].sale_type if invoice.items else None,
            "status": block.get("status"),
            "error": block.get("error"),
        })

    success_count = sum(1 for r in results if r["success"])
    logger.info(f"✅ {success_count}/{len(results)} scenarios passed validation")
    return {
        "totalScenarios": len(results),
        "successCount": success_count,
        "results": results,
    }


def _sample_item(product_id: str, product_name: str, tax_percentage: float, **extra: Any) -> OrderItem:
    return OrderItem(
        product_id=product_id,
        product_name=product_name,
        hs_code="1234567890",
        uom="PCS",
        quantity=1,
        price=1000,
        total_price=1000,
        tax_percentage=tax_percentage,
        **extra,
    )


def generate_test_order(scenario: Union[ScenarioId, str]) -> Order:
    """Sample order shaped for the scenario (withholding, reduced, exempt, 3rd Schedule, FED)."""
    sid = resolve_scenario(scenario)
    order = Order(
        email="test@example.com",
        scenario_id=sid.value,
        invoice_type="Sale Invoice",
        subtotal=1000,
        total_amount=1180,
        tax_amount=180,
        currency="PKR",
        buyer_registration_type="Unregistered",
        billing_first_name="John",
        billing_last_name="Doe",
        billing_address1="123 Test Street",
        billing_city="Lahore",
        billing_state="Punjab",
        billing_country="Pakistan",
    )

    if sid == ScenarioId.SN002:
        order.items = [_sample_item("test-wht", "Product with Withholding Tax", 18, extra_tax=20)]
    elif sid == ScenarioId.SN005:
        order.total_amount = 1010
        order.tax_amount = 10
        order.items = [_sample_item("test-reduced", "Reduced Rate Product", 1)]
    elif sid == ScenarioId.SN006:
        order.total_amount = 1000
        order.tax_amount = 0
        order.items = [_sample_item("test-exempt", "Exempt Product", 0)]
    elif sid == ScenarioId.SN008:
        order.items = [_sample_item(
            "test-3rd-schedule", "3rd Schedule Product", 18, fixed_notified_value_or_retail_price=1200
        )]
    elif sid == ScenarioId.SN017:
        order.items = [_sample_item("test-fed", "FED Product", 18, fed_payable_tax=50)]
    else:
        order.items = [_sample_item("test-standard", "Standard Product", 18)]
    return order


async def check_scenario_data(client: Optional[FbrClient], scenario: str = DEFAULT_CHECK_SCENARIO) -> Dict[str, Any]:
    """Sample order for the scenario plus the rate label FBR currently publishes for it."""
    profile = describe_scenario(scenario)
    published_rate = await resolve_rate_label_from_fbr(scenario, profile["saleType"], today_iso(), client)
    return {
        "profile": profile,
        "publishedRate": published_rate,
        "data": generate_test_order(scenario).model_dump(by_alias=True, exclude_none=True),
    }


async def check_custom_order(client: FbrClient, order_data: Dict[str, Any]) -> Dict[str, Any]:
    """Local validation, mapping and remote validation of a caller-supplied order."""
    try:
        order = Order.model_validate(order_data)
    except ValueError as e:
        return {"success": False, "step": "order-validation", "errors": [str(e)]}

    validation = validate_order_for_fbr(order)
    if not validation.is_valid:
        return {"success": False, "step": "order-validation", "errors": validation.errors}

    try:
        invoice = await map_order_to_fbr_invoice(order)
        fbr_validation = await client.validate_invoice(invoice)
    except FbrError as e:
        return {"success": False, "step": "error", "error": _error_text(e)}

    return {
        "success": validation_status(fbr_validation) == "Valid",
        "orderValidation": validation.model_dump(),
        "fbrInvoice": invoice.to_payload(),
        "fbrValidation": fbr_validation,
    }
