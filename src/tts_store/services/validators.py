"""
Input Validation for the Conversion Service.

Validation runs before any provider is contacted, so a bad request costs
nothing but a 400 response.

Validation Rules:
    - Payload: must be a mapping (dict) carrying a "text" field
    - Text: required string, not empty or whitespace-only,
      at most synthesis.max_text_chars characters

Usage:
    from tts_store.services.validators import validate_payload

    text = validate_payload({"text": "Hello world"}, max_length=3000)
"""
from __future__ import annotations

from typing import Any, Mapping

from tts_store.errors import InvalidInputError


def validate_text(text: Any, max_length: int = 3000) -> str:
    """
    Validate text input.

    Args:
        text: Input text
        max_length: Maximum allowed length

    Returns:
        Validated text

    Raises:
        InvalidInputError: If validation fails
    """
    if text is None:
        raise InvalidInputError("Text is required", {"field": "text"})

    if not isinstance(text, str):
        raise InvalidInputError(
            f"Text must be a string, got {type(text).__name__}",
            {"field": "text"},
        )

    if not text.strip():
        raise InvalidInputError("Text is required", {"field": "text"})

    if len(text) > max_length:
        raise InvalidInputError(
            f"Text exceeds maximum length ({len(text)} > {max_length})",
            {"field": "text", "max_length": max_length},
        )

    return text


def validate_payload(payload: Any, max_length: int = 3000) -> str:
    """
    Validate an inbound request payload and return its text.

    Args:
        payload: Decoded request payload.
        max_length: Maximum allowed text length.

    Returns:
        Validated text

    Raises:
        InvalidInputError: If the payload is not a mapping or its text is invalid.
    """
    if not isinstance(payload, Mapping):
        raise InvalidInputError("Request body must be a JSON object with a 'text' field")
    return validate_text(payload.get("text"), max_length=max_length)
