"""
Result pattern for calls whose failure is expected and handled by the caller.

Usage:
    from fbr_invoicing.core.result import success, failure, Result

    async def get_sale_type_to_rate(date: str) -> Result[list]:
        if not configured:
            return failure("FBR not configured", code=ErrorCodes.NOT_CONFIGURED)
        ...
        return success(data)

    # Advisory lookups discard the failure explicitly
    rates = (await client.get_sale_type_to_rate(day)).unwrap_or(None)
"""
from dataclasses import dataclass, field
from typing import Generic, TypeVar, Union, Optional, Any

T = TypeVar('T')


@dataclass
class Success(Generic[T]):
    """Successful result carrying a value."""
    value: T

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass
class Failure:
    """Failed result carrying error information."""
    error: str
    code: str = "UNKNOWN"
    details: Optional[dict] = field(default_factory=dict)

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def unwrap(self) -> Any:
        raise ValueError(f"Cannot unwrap Failure: {self.error} (code={self.code})")

    def unwrap_or(self, default: T) -> T:
        return default


Result = Union[Success[T], Failure]


# ============ Helper Functions ============

def success(value: T) -> Success[T]:
    return Success(value)


def failure(error: str, code: str = "UNKNOWN", details: dict = None) -> Failure:
    return Failure(error=error, code=code, details=details or {})


# ============ Common Error Codes ============

class ErrorCodes:
    UNKNOWN = "UNKNOWN"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    HTTP_ERROR = "HTTP_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
