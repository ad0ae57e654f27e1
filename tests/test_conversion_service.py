"""
Tests for ConversionService - the text → audio → S3 pipeline.

Tests cover:
- Invalid input short-circuits with 400 and no provider calls
- Exactly one synthesis and one upload per valid request
- Missing/empty audio stream → 500, no upload
- Upload failure → 500 with the storage error message
- End-to-end response shape with a frozen clock
- Unexpected failures collapse into UNKNOWN_ERROR
- preview() and get_health_info()
"""
import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from conftest import AUDIO, FROZEN_MS
from tts_store.errors import (
    ErrorCode,
    InvalidInputError,
    SynthesisFailedError,
    UnknownError,
    UpstreamTransportError,
)
from tts_store.services.conversion_service import (
    ConversionService,
    ConvertRequest,
    HandlerResponse,
    StoredObject,
)
from tts_store.services.keys import KeyGenerator


def _client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": message},
         "ResponseMetadata": {"HTTPStatusCode": 403}},
        operation,
    )


class TestInvalidInput:
    """Invalid requests never reach a provider."""

    @pytest.mark.parametrize("payload", [
        {},
        {"text": None},
        {"text": ""},
        {"text": "   \n\t"},
        {"text": 42},
        None,
        "hello",
        ["hello"],
    ])
    def test_invalid_payload_returns_400(self, service, polly_client, s3_client, payload):
        response = service.handle(payload)

        assert response.status_code == 400
        assert response.body["code"] == ErrorCode.INVALID_INPUT
        assert response.body["message"]
        polly_client.synthesize_speech.assert_not_called()
        s3_client.put_object.assert_not_called()

    def test_missing_text_message(self, service):
        response = service.handle({})
        assert response.body["error"] == "Text is required"
        assert "fileUrl" not in response.body

    def test_text_too_long_returns_400(self, service, polly_client):
        response = service.handle({"text": "a" * 3001})
        assert response.status_code == 400
        assert "3001" in response.body["error"]
        polly_client.synthesize_speech.assert_not_called()

    def test_convert_raises_invalid_input(self, service):
        with pytest.raises(InvalidInputError):
            service.convert(ConvertRequest(text=""), "rid")


class TestSuccessPath:
    """Valid requests make exactly one call to each provider."""

    def test_one_synthesis_one_upload(self, service, polly_client, s3_client):
        response = service.handle({"text": "Hello world"})

        assert response.status_code == 200
        polly_client.synthesize_speech.assert_called_once_with(
            Text="Hello world", OutputFormat="mp3", VoiceId="Joanna",
        )
        s3_client.put_object.assert_called_once()

    def test_upload_receives_full_buffer(self, service, s3_client):
        service.handle({"text": "Hello world"})

        kwargs = s3_client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "my-bucket"
        assert kwargs["Body"] == AUDIO
        assert isinstance(kwargs["Body"], bytes)
        assert kwargs["ContentType"] == "audio/mpeg"
        assert "ACL" not in kwargs

    def test_end_to_end_response(self, service, s3_client):
        response = service.handle({"text": "Hello world"})

        assert response.to_dict() == {
            "statusCode": 200,
            "body": {
                "message": f"The audio file has been stored as audio-{FROZEN_MS}.mp3",
                "fileUrl": f"https://my-bucket.s3.us-east-1.amazonaws.com/audio-{FROZEN_MS}.mp3",
            },
        }
        assert s3_client.put_object.call_args.kwargs["Key"] == f"audio-{FROZEN_MS}.mp3"

    def test_two_invocations_same_millisecond_get_distinct_keys(self, service, s3_client):
        first = service.handle({"text": "hello"})
        second = service.handle({"text": "hello"})

        keys = [c.kwargs["Key"] for c in s3_client.put_object.call_args_list]
        assert len(keys) == 2
        assert keys[0] != keys[1]
        assert first.body["fileUrl"] != second.body["fileUrl"]

    def test_convert_result(self, service):
        result = service.convert(ConvertRequest(text="Hello world"), "rid-1")

        assert result.request_id == "rid-1"
        assert result.stored.key == f"audio-{FROZEN_MS}.mp3"
        assert result.stored.bytes == len(AUDIO)
        assert result.stored.content_type == "audio/mpeg"
        assert set(result.timings) == {"synthesize", "drain", "upload"}
        assert result.total_seconds >= 0

    def test_request_id_is_used(self, service):
        from tts_store.core.logging import get_request_id

        service.handle({"text": "Hello"}, request_id="abc123")
        assert get_request_id() == "abc123"

    def test_presigned_url_mode(self, settings, polly_client, s3_client):
        from tts_store.core.config import Settings
        from tts_store.services.conversion_service import build_service
        from tts_store.providers.aws import AwsClients

        raw = dict(settings.raw)
        raw["storage"] = {"bucket": "my-bucket", "url_mode": "presigned", "presign_expires_s": 600}
        svc = build_service(Settings(raw=raw), clients=AwsClients(polly=polly_client, s3=s3_client))

        response = svc.handle({"text": "Hello"})

        assert response.status_code == 200
        assert response.body["fileUrl"].endswith("X-Amz-Signature=abc")
        call = s3_client.generate_presigned_url.call_args
        assert call.args[0] == "get_object"
        assert call.kwargs["ExpiresIn"] == 600
        assert call.kwargs["Params"]["Key"] == s3_client.put_object.call_args.kwargs["Key"]


class TestSynthesisFailures:
    """Synthesis failures: 500 and no upload."""

    def test_no_audio_stream(self, service, polly_client, s3_client):
        polly_client.synthesize_speech.side_effect = None
        polly_client.synthesize_speech.return_value = {"ContentType": "audio/mpeg"}

        response = service.handle({"text": "Hello"})

        assert response.status_code == 500
        assert response.body["code"] == ErrorCode.SYNTHESIS_FAILED
        assert response.body["error"] == "provider returned no audio"
        s3_client.put_object.assert_not_called()

    def test_empty_audio_stream(self, service, polly_client, s3_client):
        from conftest import streaming_body

        polly_client.synthesize_speech.side_effect = None
        polly_client.synthesize_speech.return_value = {"AudioStream": streaming_body(b"")}

        response = service.handle({"text": "Hello"})

        assert response.status_code == 500
        assert response.body["code"] == ErrorCode.SYNTHESIS_FAILED
        s3_client.put_object.assert_not_called()

    def test_polly_client_error(self, service, polly_client, s3_client):
        polly_client.synthesize_speech.side_effect = _client_error(
            "ThrottlingException", "Rate exceeded", "SynthesizeSpeech")

        response = service.handle({"text": "Hello"})

        assert response.status_code == 500
        assert response.body["code"] == ErrorCode.UPSTREAM_TRANSPORT
        assert "Rate exceeded" in response.body["error"]
        assert polly_client.synthesize_speech.call_count == 1
        s3_client.put_object.assert_not_called()

    def test_polly_connection_error(self, service, polly_client):
        polly_client.synthesize_speech.side_effect = EndpointConnectionError(
            endpoint_url="https://polly.us-east-1.amazonaws.com")

        response = service.handle({"text": "Hello"})

        assert response.status_code == 500
        assert response.body["code"] == ErrorCode.UPSTREAM_TRANSPORT

    def test_stream_read_failure_is_unknown(self, service, polly_client, s3_client):
        stream = MagicMock()
        stream.iter_chunks.side_effect = OSError("connection reset")
        polly_client.synthesize_speech.side_effect = None
        polly_client.synthesize_speech.return_value = {"AudioStream": stream}

        response = service.handle({"text": "Hello"})

        assert response.status_code == 500
        assert response.body["code"] == ErrorCode.UNKNOWN_ERROR
        assert response.body["error"] == "connection reset"
        stream.close.assert_called_once()
        s3_client.put_object.assert_not_called()

    def test_convert_raises_typed_error(self, service, polly_client):
        polly_client.synthesize_speech.side_effect = None
        polly_client.synthesize_speech.return_value = {}

        with pytest.raises(SynthesisFailedError):
            service.convert(ConvertRequest(text="Hello"), "rid")


class TestUploadFailures:
    """Upload failures: 500 carrying the storage error message."""

    def test_upload_client_error(self, service, s3_client):
        s3_client.put_object.side_effect = _client_error("AccessDenied", "Access Denied", "PutObject")

        response = service.handle({"text": "Hello"})

        assert response.status_code == 500
        assert response.body["message"] == "Error converting text to speech"
        assert "Access Denied" in response.body["error"]
        assert response.body["code"] == ErrorCode.UPSTREAM_TRANSPORT
        assert s3_client.put_object.call_count == 1

    def test_upload_unexpected_error(self, service, s3_client):
        s3_client.put_object.side_effect = RuntimeError("disk on fire")

        response = service.handle({"text": "Hello"})

        assert response.status_code == 500
        assert response.body["code"] == ErrorCode.UNKNOWN_ERROR
        assert response.body["error"] == "disk on fire"

    def test_convert_raises_upstream_error(self, service, s3_client):
        s3_client.put_object.side_effect = _client_error("NoSuchBucket", "Bucket missing", "PutObject")

        with pytest.raises(UpstreamTransportError) as exc_info:
            service.convert(ConvertRequest(text="Hello"), "rid")
        assert exc_info.value.details["provider"] == "s3"
        assert exc_info.value.details["aws_error_code"] == "NoSuchBucket"


class TestTopLevelBoundary:
    """handle() never raises."""

    def test_synthesizer_bug_is_caught(self, config, s3_client):
        synthesizer = MagicMock()
        synthesizer.name = "broken"
        synthesizer.synthesize.side_effect = AttributeError("boom")
        store = MagicMock()
        svc = ConversionService(config, synthesizer, store, KeyGenerator())

        response = svc.handle({"text": "Hello"})

        assert response.status_code == 500
        assert response.body["code"] == ErrorCode.UNKNOWN_ERROR
        store.put.assert_not_called()

    def test_convert_wraps_unexpected_errors(self, config):
        synthesizer = MagicMock()
        synthesizer.synthesize.side_effect = KeyError("AudioStream")
        svc = ConversionService(config, synthesizer, MagicMock())

        with pytest.raises(UnknownError) as exc_info:
            svc.convert(ConvertRequest(text="Hello"), "rid")
        assert exc_info.value.details["error_type"] == "KeyError"


class TestHandlerResponse:
    """Tests for HandlerResponse serialization."""

    def test_success_body(self):
        stored = StoredObject(key="audio-1.mp3", url="https://b.s3.us-east-1.amazonaws.com/audio-1.mp3", bytes=10)
        response = HandlerResponse.success(stored)
        assert response.ok
        assert response.body == {
            "message": "The audio file has been stored as audio-1.mp3",
            "fileUrl": "https://b.s3.us-east-1.amazonaws.com/audio-1.mp3",
        }

    def test_failure_body(self):
        response = HandlerResponse.failure(UpstreamTransportError("Access Denied"))
        assert not response.ok
        assert response.status_code == 500
        assert response.body == {
            "message": "Error converting text to speech",
            "error": "Access Denied",
            "code": "UPSTREAM_TRANSPORT",
        }

    def test_to_lambda_serializes_body(self):
        response = HandlerResponse.failure(InvalidInputError("Text is required"))
        out = response.to_lambda()
        assert out["statusCode"] == 400
        assert json.loads(out["body"])["error"] == "Text is required"


class TestPreviewAndHealth:
    """Tests for preview() and get_health_info()."""

    def test_preview_contacts_no_provider(self, service, polly_client, s3_client):
        summary = service.preview({"text": "Hello"})

        assert summary["key"] == f"audio-{FROZEN_MS}.mp3"
        assert summary["fileUrl"] == f"https://my-bucket.s3.us-east-1.amazonaws.com/audio-{FROZEN_MS}.mp3"
        assert summary["chars"] == 5
        polly_client.synthesize_speech.assert_not_called()
        s3_client.put_object.assert_not_called()

    def test_preview_rejects_invalid_text(self, service):
        with pytest.raises(InvalidInputError):
            service.preview({"text": ""})

    def test_health_info(self, service):
        health = service.get_health_info()
        assert health["ok"] is True
        assert health["synthesizer"] == "polly"
        assert health["store"] == "s3"
        assert health["bucket"] == "my-bucket"
        assert health["voice"] == "Joanna"
        assert health["key_scheme"] == "timestamp"
