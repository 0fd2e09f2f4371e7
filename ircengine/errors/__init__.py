"""Error taxonomy and structured error logging."""

from .handling import classify_error, log_error  # noqa: F401
from .internal import (  # noqa: F401
    AttemptsExceeded,
    CertificateWarning,
    ConfigError,
    ConnectionFailure,
    InternalError,
    ParseError,
)

__all__ = [
    "AttemptsExceeded",
    "CertificateWarning",
    "ConfigError",
    "ConnectionFailure",
    "InternalError",
    "ParseError",
    "classify_error",
    "log_error",
]
