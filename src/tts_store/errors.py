"""
Error Codes and Exceptions for the Conversion Pipeline.

Every failure inside a conversion is expressed as one of four
ConversionError subclasses. The service's top-level boundary catches them
and turns each into a uniform response; nothing propagates past it.

    InvalidInputError      400  missing/empty text, no provider contacted
    SynthesisFailedError   500  provider answered but returned no audio
    UpstreamTransportError 500  network/auth/throttling failure from a provider
    UnknownError           500  anything else during buffering or upload
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """
    Standardized error codes for responses.

    Returned in the "code" field of error response bodies so callers can
    branch on failures without parsing messages.
    """
    INVALID_INPUT = "INVALID_INPUT"             # Missing or empty text
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"       # No usable audio from provider
    UPSTREAM_TRANSPORT = "UPSTREAM_TRANSPORT"   # Provider call failed
    UNKNOWN_ERROR = "UNKNOWN_ERROR"             # Unexpected failure


# HTTP-equivalent status per error code
STATUS_MAP = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.SYNTHESIS_FAILED: 500,
    ErrorCode.UPSTREAM_TRANSPORT: 500,
    ErrorCode.UNKNOWN_ERROR: 500,
}


class ConversionError(Exception):
    """
    Base exception for conversion failures.

    Attributes:
        message: Human-readable error message.
        code: Error code from ErrorCode class.
        details: Optional dictionary with additional context.
    """
    code = ErrorCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return STATUS_MAP.get(self.code, 500)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a log/diagnostics friendly dict."""
        result: Dict[str, Any] = {
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class InvalidInputError(ConversionError):
    """Raised when the request text is missing, empty or unusable."""
    code = ErrorCode.INVALID_INPUT


class SynthesisFailedError(ConversionError):
    """Raised when the synthesis provider returns no audio stream."""
    code = ErrorCode.SYNTHESIS_FAILED


class UpstreamTransportError(ConversionError):
    """Raised when a provider call fails (network, credentials, throttling)."""
    code = ErrorCode.UPSTREAM_TRANSPORT


class UnknownError(ConversionError):
    """Raised for any other failure during a conversion."""
    code = ErrorCode.UNKNOWN_ERROR
