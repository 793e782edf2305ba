"""
FBR Digital Invoicing API client (server-side only: holds the bearer token).

Both submission calls follow the same pattern: sanitize the payload, POST it
with bearer auth, read the raw body, repair known malformed-JSON patterns,
parse and log. Network and parse failures are wrapped in ``FbrTransportError``
/ ``FbrResponseParseError``; a remote "Invalid" status is returned, not raised.
No retries happen here.
"""
import logging
from datetime import date
from typing import Dict, Any, Optional, Tuple, Union

import httpx

from fbr_invoicing.config.fbr_config import FbrConfig
from fbr_invoicing.config.timeouts import build_timeout, SALE_TYPE_LOOKUP_TIMEOUT, LOG_RESPONSE_PREVIEW_CHARS
from fbr_invoicing.core.exceptions import FbrConfigurationError, FbrTransportError, FbrResponseParseError
from fbr_invoicing.core.result import Result, success, failure, ErrorCodes
from fbr_invoicing.models.fbr import (
    FbrInvoice,
    FbrPostResponse,
    FbrValidationResponse,
    ValidationResult,
    validation_status,
)
from fbr_invoicing.modules.fbr.json_utils import sanitize, parse_fbr_response

logger = logging.getLogger(__name__)

VALIDATE_ENDPOINT = "validateinvoicedata_sb"
POST_ENDPOINT = "postinvoicedata_sb"
SALE_TYPE_TO_RATE_PATH = "/pdi/v2/SaleTypeToRate"
DI_PATH_SUFFIX = "/di_data/v1/di"

InvoicePayload = Union[FbrInvoice, Dict[str, Any]]


def validate_fbr_config(config: FbrConfig) -> ValidationResult:
    """Startup check: base URL and token present, URL looks like HTTP(S)."""
    errors = []

    if not config.base_url:
        errors.append("FBR_BASE_URL environment variable is not set")

    if not config.token or not config.token.strip():
        errors.append("FBR_SANDBOX_TOKEN environment variable is not set")

    if config.base_url and not config.base_url.startswith("http"):
        errors.append("FBR_BASE_URL must be a valid HTTP/HTTPS URL")

    return ValidationResult(is_valid=not errors, errors=errors)


def _as_payload(payload: InvoicePayload) -> Dict[str, Any]:
    if isinstance(payload, FbrInvoice):
        return payload.to_payload()
    return dict(payload)


def _preview(text: str) -> str:
    if len(text) > LOG_RESPONSE_PREVIEW_CHARS:
        return text[:LOG_RESPONSE_PREVIEW_CHARS] + "..."
    return text


class FbrClient:
    def __init__(self, config: FbrConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

        if not config.is_configured:
            logger.warning("⚠️ FBR base URL/token not configured. Tenant-specific credentials must be passed per call.")

    def _http(self, timeout: Union[float, httpx.Timeout]) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    @staticmethod
    def _headers(token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def _resolve_credentials(self, token: Optional[str], base_url: Optional[str]) -> Tuple[str, str]:
        cfg = self.config.with_overrides(token=token, base_url=base_url)
        if not cfg.base_url:
            raise FbrConfigurationError(
                "FBR_BASE_URL is not configured and no tenant-specific base URL was supplied"
            )
        if not cfg.token:
            raise FbrConfigurationError(
                "FBR token is not configured (neither FBR_SANDBOX_TOKEN nor a tenant-specific token)"
            )
        return cfg.base_url.rstrip("/"), cfg.token

    async def _submit(
        self,
        endpoint: str,
        verb: str,
        payload: InvoicePayload,
        token: Optional[str],
        base_url: Optional[str],
    ) -> Dict[str, Any]:
        base, resolved_token = self._resolve_credentials(token, base_url)
        body = sanitize(_as_payload(payload))
        summary = {
            "invoiceType": body.get("invoiceType"),
            "scenarioId": body.get("scenarioId"),
            "itemCount": len(body.get("items") or []),
        }
        logger.info(f"📤 Sending invoice to FBR ({verb})", extra={"fbr_request": summary})

        url = f"{base}/{endpoint}"
        try:
            async with self._http(build_timeout(self.config.connect_timeout, self.config.read_timeout)) as http:
                response = await http.post(url, json=body, headers=self._headers(resolved_token))
        except httpx.HTTPError as e:
            logger.error(f"❌ Error calling FBR ({verb}): {e}", extra={"fbr_request": summary})
            raise FbrTransportError(
                f"Failed to {verb} invoice: {e}",
                details={"url": url, **summary},
                cause=e,
            ) from e

        raw_text = response.text
        try:
            result = parse_fbr_response(raw_text)
        except ValueError as e:
            logger.error(
                "❌ FBR returned invalid JSON",
                extra={
                    "status": response.status_code,
                    "reason": response.reason_phrase,
                    "response_text": _preview(raw_text),
                    "json_error": str(e),
                },
            )
            raise FbrResponseParseError(
                f"Failed to {verb} invoice: FBR API returned invalid JSON: {e}",
                details={"status": response.status_code, "response_text": _preview(raw_text)},
                cause=e,
            ) from e

        body_info = result if isinstance(result, dict) else {}
        if not response.is_success:
            logger.error(
                f"❌ FBR {verb} failed",
                extra={"status": response.status_code, "reason": response.reason_phrase, "result": result},
            )
        elif verb == "validate":
            logger.info(
                "✅ FBR validation response",
                extra={
                    "validation_status": validation_status(body_info),
                    "has_error": bool((body_info.get("validationResponse") or {}).get("error")),
                },
            )
        else:
            logger.info(
                "✅ FBR post completed",
                extra={
                    "success": body_info.get("success"),
                    "invoice_number": body_info.get("invoiceNumber"),
                    "fbr_message": body_info.get("message"),
                },
            )
        return result

    async def validate_invoice(
        self,
        payload: InvoicePayload,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> FbrValidationResponse:
        """
        Validates an invoice with FBR without recording it.

        Args:
            payload: Mapped invoice (model or FBR-shaped dict).
            token: Tenant token overriding the configured one.
            base_url: Tenant base URL overriding the configured one.
        Returns:
            Parsed FBR body; inspect ``validationResponse.status``.
        """
        return await self._submit(VALIDATE_ENDPOINT, "validate", payload, token, base_url)

    async def post_invoice(
        self,
        payload: InvoicePayload,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> FbrPostResponse:
        """Records a previously validated invoice with FBR."""
        return await self._submit(POST_ENDPOINT, "post", payload, token, base_url)

    async def get_sale_type_to_rate(
        self,
        day: str,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> Result[Any]:
        """
        Fetches FBR's published sale type / rate table for ``day`` (YYYY-MM-DD).

        Advisory only: every failure is returned as ``Failure``, never raised.
        """
        cfg = self.config.with_overrides(token=token, base_url=base_url)
        if not cfg.is_configured:
            logger.warning("⚠️ Cannot fetch SaleTypeToRate: FBR credentials not configured")
            return failure("FBR credentials not configured", code=ErrorCodes.NOT_CONFIGURED)

        root = cfg.base_url.replace(DI_PATH_SUFFIX, "").rstrip("/")
        url = f"{root}{SALE_TYPE_TO_RATE_PATH}"
        params = {"date": day, "transTypeId": 18, "originationSupplier": 1}

        logger.info(f"📊 Fetching SaleTypeToRate from FBR for date: {day}")
        try:
            async with self._http(SALE_TYPE_LOOKUP_TIMEOUT) as http:
                response = await http.get(url, params=params, headers={"Authorization": f"Bearer {cfg.token}"})
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ Error fetching SaleTypeToRate: {e}")
            return failure(str(e), code=ErrorCodes.NETWORK_ERROR)

        if not response.is_success:
            logger.warning(f"⚠️ SaleTypeToRate request failed: {response.status_code} {response.reason_phrase}")
            return failure(f"HTTP {response.status_code}", code=ErrorCodes.HTTP_ERROR,
                           details={"status": response.status_code})

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"⚠️ SaleTypeToRate returned invalid JSON: {e}")
            return failure(str(e), code=ErrorCodes.INVALID_RESPONSE)

        logger.info("✅ SaleTypeToRate fetched successfully")
        return success(data)

    async def test_connection(self) -> Dict[str, Any]:
        """Health check: configuration first, then a best-effort SaleTypeToRate call."""
        config_check = validate_fbr_config(self.config)
        if not config_check.is_valid:
            return {
                "success": False,
                "error": f"Configuration invalid: {', '.join(config_check.errors)}",
            }

        result = await self.get_sale_type_to_rate(date.today().isoformat())
        return {
            "success": result.is_success(),
            "error": None if result.is_success() else "Failed to connect to FBR API",
        }
