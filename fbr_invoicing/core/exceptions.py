"""
Standard exceptions for the FBR invoicing pipeline.

Hierarchy:
    FbrError (base)
    ├── FbrConfigurationError   missing base URL / token, raised before any I/O
    ├── FbrPreconditionError    order cannot be mapped (no scenario, no items)
    └── FbrTransportError       network failure talking to FBR
        └── FbrResponseParseError   body is not JSON even after repair

Local validation problems are never raised: they are returned as a list
(see ``ValidationResult``). A remote ``"Invalid"`` status is a normal return
value as well.
"""
from typing import Optional, Dict, Any


class FbrError(Exception):
    """
    Base exception for every FBR pipeline error.

    Attributes:
        message: Human readable description.
        code: Stable identifier for the error type.
        details: Extra information for debugging / API responses.
    """
    code: str = "FBR_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialises the error for API responses."""
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details
        }


class FbrConfigurationError(FbrError):
    """FBR base URL or token not configured."""
    code = "FBR_CONFIGURATION_ERROR"


class FbrPreconditionError(FbrError):
    """Order is missing data the mapper cannot default."""
    code = "FBR_PRECONDITION_ERROR"


class FbrTransportError(FbrError):
    """Network or protocol failure calling the FBR API."""
    code = "FBR_TRANSPORT_ERROR"


class FbrResponseParseError(FbrTransportError):
    """FBR returned a body that could not be repaired into JSON."""
    code = "FBR_RESPONSE_PARSE_ERROR"
