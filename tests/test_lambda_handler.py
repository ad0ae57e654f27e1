"""
Tests for the Lambda entry point.

Tests cover:
- parse_event for direct and proxy (API Gateway / function URL) events
- handler success and failure responses in the Lambda proxy shape
- configuration errors reported as 500 responses
"""
import base64
import json
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from conftest import FROZEN_MS
from tts_store.api.dependencies import get_settings
from tts_store.core.config import ConfigValidationError
from tts_store.errors import InvalidInputError
from tts_store.lambda_handler import handler, parse_event


class TestParseEvent:
    """Tests for parse_event."""

    def test_direct_event(self):
        assert parse_event({"text": "Hello"}) == {"text": "Hello"}

    def test_non_dict_event_passed_through(self):
        assert parse_event("Hello") == "Hello"

    def test_proxy_string_body(self):
        assert parse_event({"body": '{"text": "Hello"}'}) == {"text": "Hello"}

    def test_proxy_dict_body(self):
        assert parse_event({"body": {"text": "Hello"}}) == {"text": "Hello"}

    def test_proxy_base64_body(self):
        body = base64.b64encode(b'{"text": "Hello"}').decode("ascii")
        assert parse_event({"body": body, "isBase64Encoded": True}) == {"text": "Hello"}

    @pytest.mark.parametrize("body", [None, ""])
    def test_proxy_empty_body(self, body):
        assert parse_event({"body": body}) == {}

    def test_proxy_invalid_json(self):
        with pytest.raises(InvalidInputError, match="not valid JSON"):
            parse_event({"body": "{not json"})

    def test_proxy_base64_body_not_utf8(self):
        with pytest.raises(InvalidInputError):
            parse_event({"body": base64.b64encode(b"\xff\xfe").decode("ascii"), "isBase64Encoded": True})


class TestHandler:
    """Tests for handler."""

    @pytest.fixture(autouse=True)
    def _service(self, service):
        with patch("tts_store.lambda_handler.get_conversion_service", return_value=service):
            yield

    def test_success(self, polly_client):
        result = handler({"text": "Hello world"}, SimpleNamespace(aws_request_id="req-1"))

        assert result["statusCode"] == 200
        assert result["headers"]["Content-Type"] == "application/json"
        body = json.loads(result["body"])
        assert body["message"] == f"The audio file has been stored as audio-{FROZEN_MS}.mp3"
        assert body["fileUrl"].endswith(f"/audio-{FROZEN_MS}.mp3")
        polly_client.synthesize_speech.assert_called_once()

    def test_proxy_event(self):
        result = handler({"body": json.dumps({"text": "Hello"})})
        assert result["statusCode"] == 200

    def test_missing_text(self, polly_client):
        result = handler({})

        assert result["statusCode"] == 400
        assert json.loads(result["body"])["code"] == "INVALID_INPUT"
        polly_client.synthesize_speech.assert_not_called()

    def test_invalid_json_body(self, polly_client):
        result = handler({"body": "{oops"})

        assert result["statusCode"] == 400
        assert json.loads(result["body"])["message"] == "Invalid request"
        polly_client.synthesize_speech.assert_not_called()

    def test_upstream_failure(self, s3_client):
        s3_client.put_object.side_effect = RuntimeError("connection reset")

        result = handler({"text": "Hello"})

        assert result["statusCode"] == 500
        body = json.loads(result["body"])
        assert body["message"] == "Error converting text to speech"
        assert body["error"] == "connection reset"


def test_misconfigured_service():
    with patch(
        "tts_store.lambda_handler.get_conversion_service",
        side_effect=ConfigValidationError("storage.bucket is required"),
    ):
        result = handler({"text": "Hello"})

    assert result["statusCode"] == 500
    body = json.loads(result["body"])
    assert body["code"] == "UNKNOWN_ERROR"
    assert "storage.bucket is required" in body["error"]


class TestSettingsErrors:
    """Bad settings files are reported as 500 responses."""

    @pytest.fixture(autouse=True)
    def settings_file(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.yaml"
        monkeypatch.setenv("TTS_STORE_SETTINGS", str(path))
        monkeypatch.delenv("TTS_STORE_BUCKET", raising=False)
        get_settings.cache_clear()
        yield path
        get_settings.cache_clear()

    def test_non_numeric_value(self, settings_file):
        settings_file.write_text(
            "storage:\n  bucket: b\n  presign_expires_s: one-hour\n", encoding="utf-8")

        result = handler({"text": "Hello"})

        assert result["statusCode"] == 500
        body = json.loads(result["body"])
        assert body["code"] == "UNKNOWN_ERROR"
        assert "storage.presign_expires_s must be an integer" in body["error"]

    def test_malformed_yaml(self, settings_file):
        settings_file.write_text("storage: {bucket: [unclosed\n", encoding="utf-8")

        result = handler({"text": "Hello"})

        assert result["statusCode"] == 500
        assert "invalid settings file" in json.loads(result["body"])["error"]
