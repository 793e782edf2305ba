"""
Local pre-submission checks for orders headed to FBR.
"""

import re
import logging
from typing import Any, Dict, List, Union

from pydantic import ValidationError

from fbr_invoicing.models.fbr import ValidationResult
from fbr_invoicing.models.order import Order
from fbr_invoicing.modules.fbr.mapper import DEBIT_NOTE, coerce_order
from fbr_invoicing.modules.fbr.sale_types import requires_withholding_tax, resolve_scenario

logger = logging.getLogger(__name__)

# DDDD.DDDD (as FBR publishes them) or 8-10 plain digits
HS_CODE_PATTERN = re.compile(r"\d{4}\.\d{4}|\d{8,10}")


def is_valid_hs_code(hs_code: str) -> bool:
    return bool(HS_CODE_PATTERN.fullmatch(hs_code))


def validate_order_for_fbr(order: Union[Order, Dict[str, Any]]) -> ValidationResult:
    """
    Checks everything FBR will reject outright and returns all problems at once.

    Items are numbered from 1 in the messages. A withholding scenario without
    an ``extra_tax`` on any item only logs a warning. A dict that cannot be
    read as an order is reported field by field.
    """
    try:
        order = coerce_order(order)
    except ValidationError as e:
        messages = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        return ValidationResult(is_valid=False, errors=messages)
    errors: List[str] = []

    if not order.scenario_id:
        errors.append("Order must have a scenarioId")

    if not order.items:
        errors.append("Order must have at least one item")

    if not order.email:
        errors.append("Order must have buyer email")

    for index, item in enumerate(order.items, start=1):
        if not item.product_name:
            errors.append(f"Item {index}: Product name is required")

        if not item.quantity or item.quantity <= 0:
            errors.append(f"Item {index}: Quantity must be greater than 0")

        if not item.price or item.price <= 0:
            errors.append(f"Item {index}: Price must be greater than 0")

        if item.hs_code and not is_valid_hs_code(item.hs_code):
            errors.append(f"Item {index}: HS code must be 8-10 digits or DDDD.DDDD format")

    if order.invoice_type == DEBIT_NOTE and not order.invoice_ref_no:
        errors.append("Debit Note must have an invoice reference number")

    if order.buyer_registration_type == "Registered" and not order.buyer_ntncnic:
        errors.append("Registered buyer must have NTN/CNIC")

    if order.scenario_id and requires_withholding_tax(order.scenario_id):
        has_withholding = any(item.extra_tax and item.extra_tax > 0 for item in order.items)
        if not has_withholding:
            logger.warning(
                f"⚠️ Scenario {resolve_scenario(order.scenario_id).value} typically requires withholding tax at item level"
            )

    if errors:
        logger.info(f"📋 Order failed FBR pre-validation with {len(errors)} error(s)")

    return ValidationResult(is_valid=not errors, errors=errors)
