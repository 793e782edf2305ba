from fastapi import Depends

from fbr_invoicing.config.fbr_config import FbrConfig
from fbr_invoicing.config.settings import settings
from fbr_invoicing.modules.fbr.client import FbrClient
from fbr_invoicing.services.fbr_submission_service import FbrSubmissionService
from fbr_invoicing.services.webhook_service import InvoiceWebhookService


def get_fbr_client() -> FbrClient:
    """Process-wide FBR credentials; orders and direct payloads may override them per call."""
    return FbrClient(FbrConfig.from_settings(settings))


def get_submission_service(client: FbrClient = Depends(get_fbr_client)) -> FbrSubmissionService:
    return FbrSubmissionService(
        client,
        settings,
        notifier=InvoiceWebhookService.from_settings(settings),
    )
