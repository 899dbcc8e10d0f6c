"""
Custom exceptions for the CloudWatch forwarder.

Provides structured error handling with appropriate HTTP status codes
and error details for API responses.
"""

from typing import Any, Dict, Optional


class ForwarderException(Exception):
    """Base exception for the forwarder service."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class PayloadDecodeError(ForwarderException):
    """Raised when a subscription payload cannot be turned into an envelope."""

    def __init__(self, message: str, reason: str, details: Optional[Dict[str, Any]] = None) -> None:
        details = dict(details or {})
        details["reason"] = reason
        super().__init__(
            message=message,
            status_code=400,
            error_code="payload_decode_error",
            details=details,
        )
        self.reason = reason


class DeliveryError(ForwarderException):
    """Raised when the ingestion endpoint does not accept a batch."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = dict(details or {})
        if status_code is not None:
            details["upstream_status"] = status_code
        super().__init__(
            message=message,
            status_code=502,
            error_code="delivery_error",
            details=details,
        )
