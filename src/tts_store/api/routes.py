"""
Conversion API Routes.

Endpoints:
    POST /v1/convert  - Convert text to speech and store it in S3
    GET  /health      - Configuration summary for probes

Request Flow:
    1. Generate request ID for tracing
    2. Hand the payload to ConversionService.handle()
    3. Return its status code and body, plus X-Request-Id

Error Handling:
    The service never raises; it already maps failures to 400/500 bodies.
    A service that cannot be built (ConfigValidationError) is answered by
    misconfigured_handler with a 500 body of the same shape.
    Request bodies FastAPI cannot parse (missing, not JSON) are answered
    by invalid_body_handler with the same 400 body the service produces.

Example Usage:
    curl -X POST http://localhost:8000/v1/convert \\
        -H "Content-Type: application/json" \\
        -d '{"text": "Hello world"}'
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tts_store.api.dependencies import get_conversion_service
from tts_store.api.schemas import ConvertRequestBody, ConvertResponseBody
from tts_store.core.config import ConfigValidationError
from tts_store.core.logging import fail, get_logger, set_request_id, warn
from tts_store.errors import InvalidInputError, UnknownError
from tts_store.services.conversion_service import (
    ConversionService,
    HandlerResponse,
    new_request_id,
)

router = APIRouter()

_LOG = get_logger("tts-store.api")


def _json_response(response: HandlerResponse, rid: str) -> JSONResponse:
    return JSONResponse(
        status_code=response.status_code,
        content=response.body,
        headers={"X-Request-Id": rid},
    )


@router.post(
    "/v1/convert",
    response_model=ConvertResponseBody,
    responses={400: {"model": ConvertResponseBody}, 500: {"model": ConvertResponseBody}},
)
def convert_v1(
    req: ConvertRequestBody,
    service: ConversionService = Depends(get_conversion_service),
):
    """
    Convert text to an MP3 file stored in S3.

    Returns:
        200 with message and fileUrl on success,
        400 when text is missing or empty (no provider is called),
        500 when synthesis or upload fails.
    """
    rid = new_request_id()
    response = service.handle(req.model_dump(), request_id=rid)
    return _json_response(response, rid)


@router.get("/health")
def health(service: ConversionService = Depends(get_conversion_service)):
    """Health check: service configuration summary."""
    return service.get_health_info()


async def invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer unparseable request bodies with the service's 400 response."""
    rid = new_request_id()
    set_request_id(rid)
    error = InvalidInputError("Request body must be a JSON object with a 'text' field")
    warn(_LOG, "invalid_body", error=error.message, status_code=error.status_code,
         path=request.url.path)
    return _json_response(HandlerResponse.failure(error), rid)


async def misconfigured_handler(request: Request, exc: ConfigValidationError) -> JSONResponse:
    """Answer with the uniform 500 body when the service cannot be built."""
    rid = new_request_id()
    set_request_id(rid)
    error = UnknownError(f"Service misconfigured: {exc}")
    fail(_LOG, "service_unavailable", error=error.message, status_code=error.status_code,
         path=request.url.path)
    return _json_response(HandlerResponse.failure(error), rid)
