"""
Opt-in retry decorators with exponential backoff (tenacity).

The FBR client itself never retries. Callers that want a retry policy around
a remote call wrap it explicitly:

    from fbr_invoicing.core.retry import fbr_retry

    validate = fbr_retry(max_attempts=3)(client.validate_invoice)
    response = await validate(invoice)

Only transient transport errors are retried; configuration errors and
unparseable responses are raised immediately.
"""
import logging
from typing import Callable, TypeVar, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
)

from fbr_invoicing.config.timeouts import is_retryable_error
from fbr_invoicing.core.exceptions import FbrTransportError, FbrResponseParseError

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, FbrResponseParseError):
        return False
    if isinstance(exc, FbrTransportError):
        return is_retryable_error(str(exc))
    return isinstance(exc, (TimeoutError, ConnectionError))


def fbr_retry(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
) -> Callable[[F], F]:
    """
    Factory for FBR call retry decorators.

    Args:
        max_attempts: Total attempts including the first one.
        min_wait: Minimum wait between attempts (seconds).
        max_wait: Maximum wait between attempts (seconds).
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception(_is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
