"""
AWS Lambda Entry Point.

Handler: tts_store.lambda_handler.handler

Accepted events:
    Direct invocation:      {"text": "Hello world"}
    API Gateway / URL proxy: {"body": "{\"text\": \"Hello world\"}", "isBase64Encoded": false, ...}

Response (Lambda proxy shape, usable by API Gateway as-is):
    {"statusCode": 200, "headers": {...}, "body": "{\"message\": ..., \"fileUrl\": ...}"}

The service and its boto3 clients are created on the first invocation and
reused by every later invocation in the same container.
"""
from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict, Optional

from tts_store.api.dependencies import get_conversion_service
from tts_store.core.config import ConfigValidationError
from tts_store.core.logging import fail, get_logger, set_request_id
from tts_store.errors import InvalidInputError, UnknownError
from tts_store.services.conversion_service import HandlerResponse

_LOG = get_logger("tts-store.lambda")


def parse_event(event: Any) -> Any:
    """
    Extract the request payload from a Lambda event.

    Proxy events carry the payload as a (possibly base64-encoded) JSON
    string in "body"; direct invocations are the payload itself.

    Raises:
        InvalidInputError: If a proxy body is not valid JSON.
    """
    if not isinstance(event, dict) or "body" not in event:
        return event

    body = event.get("body")
    if body is None:
        return {}
    if isinstance(body, dict):
        return body

    try:
        if event.get("isBase64Encoded"):
            body = base64.b64decode(body).decode("utf-8")
        return json.loads(body) if body else {}
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidInputError(f"Request body is not valid JSON: {e}") from e


def _aws_request_id(context: Any) -> Optional[str]:
    rid = getattr(context, "aws_request_id", None)
    return str(rid) if rid else None


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Lambda handler: convert the event's text and store the audio."""
    rid = _aws_request_id(context)

    try:
        payload = parse_event(event)
    except InvalidInputError as e:
        set_request_id(rid or "-")
        fail(_LOG, "invalid_event", error=e.message, status_code=e.status_code)
        return HandlerResponse.failure(e).to_lambda()

    try:
        service = get_conversion_service()
    except ConfigValidationError as e:
        set_request_id(rid or "-")
        err = UnknownError(f"Service misconfigured: {e}")
        fail(_LOG, "service_unavailable", error=err.message, status_code=err.status_code)
        return HandlerResponse.failure(err).to_lambda()

    return service.handle(payload, request_id=rid).to_lambda()
