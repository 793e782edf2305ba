import json
import logging
import hmac
import hashlib
import requests
from typing import Dict, Any, Optional

from fbr_invoicing.config.settings import Settings

logger = logging.getLogger(__name__)


class InvoiceWebhookService:
    """
    Notifies an external system after FBR accepted an invoice.

    Delivery is best effort: failures are logged and reported as False,
    never raised, so they cannot affect the submission result.
    """
    def __init__(self, url: str = "", secret: str = "", timeout: float = 10.0):
        self.url = url
        self.secret = secret
        self.timeout = timeout

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "InvoiceWebhookService":
        return cls(
            url=app_settings.FBR_WEBHOOK_URL,
            secret=app_settings.FBR_WEBHOOK_SECRET,
            timeout=app_settings.FBR_WEBHOOK_TIMEOUT,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def _headers(self, payload_str: str) -> Dict[str, str]:
        headers = {
            'Content-Type': 'application/json',
            'User-Agent': 'FBR-Invoicing-Webhook/1.0',
        }
        if self.secret:
            signature = hmac.new(
                self.secret.encode('utf-8'),
                payload_str.encode('utf-8'),
                hashlib.sha256
            ).hexdigest()
            headers['X-FBR-Invoicing-Signature'] = f"sha256={signature}"
        return headers

    def send_invoice_notification(self, invoice_data: Dict[str, Any], url: Optional[str] = None) -> bool:
        """
        POSTs ``invoice_data`` as JSON (HMAC-SHA256 signed when a secret is set).

        Returns True when delivered or when no webhook is configured.
        """
        target = url or self.url
        if not target:
            return True

        logger.info(f"🚀 Sending invoice webhook to {target}")
        try:
            payload_str = json.dumps(invoice_data, default=str)
            response = requests.post(
                target,
                data=payload_str,
                headers=self._headers(payload_str),
                timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            logger.error(f"❌ Timeout reaching invoice webhook {target}")
            return False
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ Network error sending invoice webhook to {target}: {str(e)}")
            return False
        except (TypeError, ValueError) as e:
            logger.error(f"❌ Invoice webhook payload could not be serialized: {str(e)}")
            return False

        if 200 <= response.status_code < 300:
            logger.info(f"✅ Invoice webhook delivered to {target} (Status {response.status_code})")
            return True

        logger.warning(f"⚠️ Invoice webhook {target} returned HTTP {response.status_code}: {response.text[:200]}")
        return False
