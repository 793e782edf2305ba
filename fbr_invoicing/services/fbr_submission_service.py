"""
Validate-then-post submission flow for orders and ready-made FBR payloads.

Each stage that can stop the flow is reported in ``SubmissionResult.step``:
validation (local checks), mapping, validate (FBR said not Valid), post
(success) and error (configuration / transport / parse failure).
"""
import asyncio
import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from fbr_invoicing.config.settings import Settings, settings as default_settings
from fbr_invoicing.core.exceptions import FbrError, FbrPreconditionError
from fbr_invoicing.core.retry import fbr_retry
from fbr_invoicing.models.fbr import (
    FbrInvoice,
    SellerInfo,
    SubmissionResult,
    validation_errors,
    validation_status,
)
from fbr_invoicing.models.order import Order
from fbr_invoicing.modules.fbr.client import FbrClient
from fbr_invoicing.modules.fbr.mapper import coerce_order, map_order_to_fbr_invoice
from fbr_invoicing.modules.fbr.validator import validate_order_for_fbr
from fbr_invoicing.services.webhook_service import InvoiceWebhookService

logger = logging.getLogger(__name__)


def _invalid_response(error: str) -> Dict[str, Any]:
    return {"validationResponse": {"status": "Invalid", "error": error}}


def _as_dict(response: Any) -> Dict[str, Any]:
    if isinstance(response, dict):
        return response
    return {"raw": response}


class FbrSubmissionService:
    def __init__(
        self,
        client: FbrClient,
        app_settings: Optional[Settings] = None,
        notifier: Optional[InvoiceWebhookService] = None,
    ):
        self.client = client
        self.settings = app_settings or default_settings
        self.notifier = notifier

    def _validate_call(self):
        retries = self.settings.FBR_VALIDATE_RETRIES
        if retries > 0:
            # validation has no side effects at FBR; posting is never retried
            return fbr_retry(max_attempts=retries + 1)(self.client.validate_invoice)
        return self.client.validate_invoice

    async def submit_order(
        self,
        order: Union[Order, Dict[str, Any]],
        seller_info: Optional[SellerInfo] = None,
    ) -> SubmissionResult:
        """
        Runs the full flow for an order.

        On success the order gets ``invoice_number`` and the serialized FBR
        validation response written back, and the webhook (if any) is notified.
        The updated order is returned on ``SubmissionResult.order``; a dict
        passed in is not modified.
        """
        try:
            order = coerce_order(order)
        except ValidationError as e:
            message = f"Order validation failed: {e}"
            return SubmissionResult(step="validation", ok=False, error=message, response=_invalid_response(message))

        validation = validate_order_for_fbr(order)
        if not validation.is_valid:
            joined = ", ".join(validation.errors)
            logger.warning(f"⚠️ Order rejected before FBR submission: {joined}")
            return SubmissionResult(
                step="validation",
                ok=False,
                error=f"Order validation failed: {joined}",
                response=_invalid_response(joined),
            )

        lookup_client = self.client if self.settings.FBR_LIVE_SALE_TYPE_LOOKUP else None
        try:
            invoice = await map_order_to_fbr_invoice(
                order, seller_info, client=lookup_client, app_settings=self.settings
            )
        except FbrPreconditionError as e:
            return SubmissionResult(
                step="mapping",
                ok=False,
                error=f"Failed to convert order to FBR format: {e.message}",
                response=_invalid_response(e.message),
            )
        logger.info("🔄 Order converted to FBR format")

        result = await self.submit_invoice(invoice, token=order.fbr_sandbox_token, base_url=order.fbr_base_url)
        if result.ok:
            order.invoice_number = result.response.get("invoiceNumber")
            order.validation_response = json.dumps(result.validation)
            result.order = order
            await self._notify(order, result)
        return result

    async def submit_invoice(
        self,
        invoice: Union[FbrInvoice, Dict[str, Any]],
        token: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> SubmissionResult:
        """Validate with FBR and, only when the status is Valid, post."""
        payload = invoice.to_payload() if isinstance(invoice, FbrInvoice) else dict(invoice)
        logger.info(
            "🔍 Starting FBR validation for invoice",
            extra={
                "invoiceType": payload.get("invoiceType"),
                "scenarioId": payload.get("scenarioId"),
                "buyerType": payload.get("buyerRegistrationType"),
                "itemCount": len(payload.get("items") or []),
            },
        )

        try:
            validate_resp = _as_dict(await self._validate_call()(payload, token=token, base_url=base_url))
            status = validation_status(validate_resp)
            if status != "Valid":
                errors = validation_errors(validate_resp)
                logger.error(f"❌ FBR validation failed: {status}", extra={"errors": errors})
                return SubmissionResult(
                    step="validate",
                    ok=False,
                    response=validate_resp,
                    fbr_invoice=payload,
                    error="; ".join(errors) or f"FBR validation status: {status}",
                )

            logger.info("✅ FBR validation successful, posting invoice")
            post_resp = _as_dict(await self.client.post_invoice(payload, token=token, base_url=base_url))
        except FbrError as e:
            logger.error(f"❌ FBR submission error: {e}")
            return SubmissionResult(
                step="error",
                ok=False,
                error=e.message,
                response=_invalid_response(e.message),
            )

        return SubmissionResult(
            step="post",
            ok=True,
            response=post_resp,
            validation=validate_resp,
            fbr_invoice=payload,
        )

    async def _notify(self, order: Order, result: SubmissionResult) -> None:
        if self.notifier is None or not self.notifier.enabled:
            return
        data = {
            "event": "fbr.invoice.posted",
            "orderId": order.id,
            "orderNumber": order.order_number,
            "invoiceNumber": order.invoice_number,
            "scenarioId": order.scenario_id,
            "fbrInvoice": result.fbr_invoice,
        }
        delivered = await asyncio.to_thread(self.notifier.send_invoice_notification, data)
        if not delivered:
            logger.warning(f"⚠️ Invoice {order.invoice_number} posted but webhook delivery failed")
