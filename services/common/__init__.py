"""
Common utilities and configurations for Briefly services.
"""

from services.common.http_errors import (
    AuthError,
    BrieflyAPIException,
    ErrorCode,
    ProviderError,
    ValidationError,
)
from services.common.logging_config import get_logger, request_id_var

__all__ = [
    "AuthError",
    "BrieflyAPIException",
    "ErrorCode",
    "ProviderError",
    "ValidationError",
    "get_logger",
    "request_id_var",
]
