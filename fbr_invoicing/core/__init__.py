# Core module - errors, results and retry helpers
from .result import success, failure, Success, Failure, Result, ErrorCodes
from .exceptions import (
    FbrError, FbrConfigurationError, FbrPreconditionError,
    FbrTransportError, FbrResponseParseError,
)
from .retry import fbr_retry

__all__ = [
    # Result
    'success', 'failure', 'Success', 'Failure', 'Result', 'ErrorCodes',
    # Exceptions
    'FbrError', 'FbrConfigurationError', 'FbrPreconditionError',
    'FbrTransportError', 'FbrResponseParseError',
    # Retry
    'fbr_retry',
]
