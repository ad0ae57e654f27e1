"""
API Request/Response Schemas.

Example Request:
    {"text": "Hello world"}

Example Responses:
    200 {"message": "The audio file has been stored as audio-1700000000000-3f9a1c0b7d2e.mp3",
         "fileUrl": "https://my-bucket.s3.us-east-1.amazonaws.com/audio-1700000000000-3f9a1c0b7d2e.mp3"}
    400 {"message": "Invalid request", "error": "Text is required", "code": "INVALID_INPUT"}
    500 {"message": "Error converting text to speech", "error": "...", "code": "UPSTREAM_TRANSPORT"}
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ConvertRequestBody(BaseModel):
    """
    Conversion request schema.

    text is declared loosely on purpose: the service validates it and
    answers 400 for missing, empty or non-string values, the same way the
    Lambda and CLI entry points do.
    """
    text: Any = Field(
        default=None,
        description="Text to convert to speech",
        examples=["Hello world"],
    )


class ConvertResponseBody(BaseModel):
    """Conversion response schema (success and failure share one shape)."""
    message: str = Field(..., description="Human-readable outcome")
    fileUrl: str | None = Field(default=None, description="URL of the stored audio file")
    error: str | None = Field(default=None, description="Failure message")
    code: str | None = Field(default=None, description="Machine-readable error code")
