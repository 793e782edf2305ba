"""
Centralised timeouts for outbound FBR calls and helpers to classify
transport errors for callers that add their own retry policy.
"""
import httpx

# Auxiliary SaleTypeToRate lookup is advisory; keep it short so mapping never stalls.
SALE_TYPE_LOOKUP_TIMEOUT = 5.0    # seconds

# Truncation limit for raw response bodies written to logs
LOG_RESPONSE_PREVIEW_CHARS = 500


def build_timeout(connect: float, read: float) -> httpx.Timeout:
    """Builds the httpx timeout used for validate/post calls."""
    return httpx.Timeout(read, connect=connect)


def is_retryable_error(error_msg: str) -> bool:
    """Returns True when the error message looks transient."""
    error_lower = error_msg.lower()
    retryable_keywords = [
        "timeout", "timed out", "rate limit", "too many requests", "connection",
        "network", "server error", "503", "502", "504", "temporary"
    ]
    return any(keyword in error_lower for keyword in retryable_keywords)
