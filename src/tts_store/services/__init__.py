"""
tts-store Services Layer.

Business logic between the invocation layers (HTTP API, Lambda, CLI) and
the provider adapters.

Components:
    - conversion_service.py: ConversionService (validate → synthesize → store)
    - validators.py: Input validation
    - keys.py: Unique storage key generation
"""
from tts_store.errors import (
    ConversionError,
    ErrorCode,
    InvalidInputError,
    SynthesisFailedError,
    UnknownError,
    UpstreamTransportError,
)

from .conversion_service import (
    ConversionResult,
    ConversionService,
    ConvertRequest,
    HandlerResponse,
    StoredObject,
    build_service,
    get_service,
    reset_service,
)

__all__ = [
    "ConversionService",
    "ConvertRequest",
    "ConversionResult",
    "HandlerResponse",
    "StoredObject",
    "build_service",
    "get_service",
    "reset_service",
    "ConversionError",
    "ErrorCode",
    "InvalidInputError",
    "SynthesisFailedError",
    "UnknownError",
    "UpstreamTransportError",
]
