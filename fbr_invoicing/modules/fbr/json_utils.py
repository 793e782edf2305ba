from __future__ import annotations
import json
import re
import logging
from typing import Any

logger = logging.getLogger(__name__)

# Sent even when 0: FBR rejects invoices that omit them.
ALWAYS_SEND_NUMERIC_FIELDS = frozenset({
    "discount", "fedPayable", "extraTax", "furtherTax",
    "salesTaxWithheldAtSource", "fixedNotifiedValueOrRetailPrice",
})

# Sent even when "": FBR expects the key to be present.
ALWAYS_SEND_STRING_FIELDS = frozenset({
    "invoiceRefNo", "sroScheduleNo", "sroItemSerialNo",
})


def sanitize(obj: Any) -> Any:
    """
    Recursively drops None and "" values from an outbound payload.

    FBR rejects empty-string numerics, so everything empty goes, except the
    whitelisted numeric fields (kept at 0) and string fields (kept as "").
    """
    if isinstance(obj, list):
        return [sanitize(v) for v in obj]

    if isinstance(obj, dict):
        sanitized = {}
        for key, value in obj.items():
            if value is None:
                continue
            if key in ALWAYS_SEND_NUMERIC_FIELDS and _is_number(value):
                sanitized[key] = value
            elif key in ALWAYS_SEND_STRING_FIELDS and isinstance(value, str):
                sanitized[key] = value
            elif value != "":
                sanitized[key] = sanitize(value)
        return sanitized

    return obj


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def repair_json_text(text: str) -> str:
    """
    Fixes the malformed JSON patterns FBR has been seen to return:
      "key":,   -> "key": null,
      "key":}   -> "key": null}
      trailing commas before } or ]
      duplicated commas
    """
    cleaned = re.sub(r":\s*,", ": null,", text)
    cleaned = re.sub(r":\s*([}\]])", r": null\1", cleaned)
    cleaned = re.sub(r",(\s*,)+", ",", cleaned)
    cleaned = re.sub(r",(\s*[}\]])", r"\1", cleaned)
    return cleaned


def _extract_json_block(text: str) -> str:
    # first {...} object; gateways sometimes wrap the body in HTML or text
    m = re.search(r"(\{[\s\S]*\})", text)
    if m:
        return m.group(1)
    return text.strip()


def parse_fbr_response(text: str) -> Any:
    """
    Parses a raw FBR response body.

    Valid JSON is returned as is; only a body that fails to parse is
    repaired, then searched for an embedded object. Raises
    json.JSONDecodeError (ValueError) when the body still isn't JSON.
    """
    text = text or ""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.debug("FBR body is not strict JSON; repairing known patterns")

    repaired = repair_json_text(text)
    try:
        return json.loads(repaired)
    except json.JSONDecodeError:
        block = _extract_json_block(repaired)
        if block == repaired:
            raise
        logger.debug("FBR body had text around the JSON object; parsing extracted block")
        return json.loads(block)
