from __future__ import annotations

import re
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

from fbr_invoicing.modules.fbr.sale_types import get_default_rate_for_scenario

_RATE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)%?")

GENERAL_DECIMALS = 2
QUANTITY_DECIMALS = 4


def parse_rate(rate_label: Any) -> float:
    """
    Converts an FBR rate label to a decimal fraction.

    "18%" -> 0.18, "0%" -> 0.0, "Exempt" -> 0.0 (case-insensitive, trimmed).
    Anything unparseable is treated as 0 rather than an error.
    """
    if not rate_label:
        return 0.0

    normalized = str(rate_label).strip().lower()
    if normalized in ("exempt", "0%"):
        return 0.0

    match = _RATE_PATTERN.search(normalized)
    if match:
        return float(match.group(1)) / 100
    return 0.0


def format_rate(decimal: float) -> str:
    """0.18 -> "18%". Rounds half-up to the nearest whole percent."""
    if not decimal:
        return "0%"
    percent = _to_decimal(decimal * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{int(percent)}%"


def round_to_fbr_precision(value: Any, is_quantity: bool = False) -> float:
    """
    Rounds half-up to the precision FBR accepts: 2 decimals, 4 for quantity.

    Works on the shortest decimal representation of the float, so 1.005
    becomes 1.01 (not 1.0) and rounding an already rounded value is a no-op.
    """
    if value is None:
        return 0.0
    decimals = QUANTITY_DECIMALS if is_quantity else GENERAL_DECIMALS
    quantum = Decimal(1).scaleb(-decimals)
    return float(_to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _to_decimal(value: Any) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(0)
    return result if result.is_finite() else Decimal(0)


def rate_label_for_item(item: Any, scenario_id: Any) -> str:
    """
    Rate label sent for an item: its ``tax_percentage`` override, else the
    scenario default. A 0 override on an Exempt scenario stays "Exempt".
    """
    default_rate = get_default_rate_for_scenario(scenario_id)
    percentage = getattr(item, "tax_percentage", None)
    if percentage is None:
        return default_rate
    if percentage == 0:
        return "Exempt" if default_rate == "Exempt" else "0%"
    return format_rate(percentage / 100)
