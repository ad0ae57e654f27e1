"""
ConversionService - Text to Stored Audio.

This module provides the ConversionService class, the single place where a
conversion happens. The HTTP API, the Lambda entry point and the CLI all
call the same service.

Architecture:
    Request → Validate → Synthesize → Drain stream → Key → Upload → Response

    One branch point (input validity), one error-collapse point (handle()).
    Exactly one synthesis call per valid request and exactly one upload per
    successful synthesis. Nothing is retried.

Error Handling:
    convert() raises typed ConversionError subclasses (see tts_store.errors).
    handle() catches everything, logs it and returns a HandlerResponse, so
    callers never see an exception.

Example:
    >>> from tts_store.core.config import Settings
    >>> from tts_store.services import build_service
    >>>
    >>> service = build_service(Settings(raw={"storage": {"bucket": "audio"}}))
    >>> response = service.handle({"text": "Hello world"})
    >>> response.body["message"]
    'The audio file has been stored as audio-1700000000000-3f9a1c0b7d2e.mp3'
"""
from __future__ import annotations

import json
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from tts_store.audio.stream import drain_stream
from tts_store.core.config import ServiceConfig, Settings
from tts_store.core.logging import (
    debug,
    fail,
    get_logger,
    info,
    set_request_id,
    success,
    verbose,
    warn,
)
from tts_store.errors import (
    ConversionError,
    ErrorCode,
    SynthesisFailedError,
    UnknownError,
)
from tts_store.providers.aws import AwsClients, build_clients
from tts_store.providers.storage import BaseObjectStore, S3ObjectStore
from tts_store.providers.synthesis import BaseSynthesizer, PollySynthesizer
from tts_store.services.keys import KeyGenerator
from tts_store.services.validators import validate_payload, validate_text
from tts_store.utils.timeit import timeit

_LOG = get_logger("tts-store.service")

SUCCESS_MESSAGE = "The audio file has been stored as {key}"
FAILURE_MESSAGE = "Error converting text to speech"
INVALID_MESSAGE = "Invalid request"


def new_request_id() -> str:
    """Short request ID for log correlation."""
    return str(uuid.uuid4())[:12]


# =============================================================================
# Request/Response Dataclasses
# =============================================================================

@dataclass
class ConvertRequest:
    """
    Request for a conversion.

    Attributes:
        text: Text to synthesize (required, non-empty).
    """
    text: str


@dataclass
class StoredObject:
    """
    Descriptor of a persisted audio file.

    Attributes:
        key: Storage key, unique per conversion.
        url: URL the object can be fetched from.
        bytes: Size of the stored audio.
        content_type: MIME type the object was stored with.
    """
    key: str
    url: str
    bytes: int
    content_type: str = "audio/mpeg"


@dataclass
class ConversionResult:
    """
    Result of a successful conversion.

    Attributes:
        stored: Descriptor of the stored object.
        request_id: Request ID for tracing.
        total_seconds: Total processing time.
        timings: Per-stage timing breakdown (synthesize, drain, upload).
    """
    stored: StoredObject
    request_id: str
    total_seconds: float
    timings: Dict[str, float] = field(default_factory=dict)


@dataclass
class HandlerResponse:
    """
    Response handed back to the invocation layer.

    Attributes:
        status_code: 200, 400 or 500.
        body: {"message": str, "fileUrl"?: str, "error"?: str, "code"?: str}
    """
    status_code: int
    body: Dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @classmethod
    def success(cls, stored: StoredObject) -> "HandlerResponse":
        return cls(
            status_code=200,
            body={
                "message": SUCCESS_MESSAGE.format(key=stored.key),
                "fileUrl": stored.url,
            },
        )

    @classmethod
    def failure(cls, error: ConversionError) -> "HandlerResponse":
        status = error.status_code
        return cls(
            status_code=status,
            body={
                "message": INVALID_MESSAGE if status < 500 else FAILURE_MESSAGE,
                "error": error.message,
                "code": error.code,
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"statusCode": self.status_code, "body": self.body}

    def to_lambda(self) -> Dict[str, Any]:
        """Lambda proxy integration shape: the body is a JSON string."""
        return {
            "statusCode": self.status_code,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps(self.body, ensure_ascii=False),
        }


# =============================================================================
# Main Service Class
# =============================================================================

class ConversionService:
    """
    Converts text to speech and stores the audio.

    Providers are injected so they are created once per process and can be
    replaced with fakes in tests.

    Args:
        config: Validated service configuration.
        synthesizer: Speech synthesis provider adapter.
        store: Object storage provider adapter.
        keys: Storage key generator (built from config if omitted).

    Usage:
        service = ConversionService(config, synthesizer, store)
        response = service.handle({"text": "Hello world"})
    """

    def __init__(
        self,
        config: ServiceConfig,
        synthesizer: BaseSynthesizer,
        store: BaseObjectStore,
        keys: Optional[KeyGenerator] = None,
    ):
        self._config = config
        self._synthesizer = synthesizer
        self._store = store
        self._keys = keys or KeyGenerator.from_config(config.keys, config.synthesis.extension)
        self._content_type = config.synthesis.content_type
        self._max_text_chars = config.synthesis.max_text_chars
        self._text_preview_chars = config.logging.text_preview_chars

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @property
    def synthesizer(self) -> BaseSynthesizer:
        return self._synthesizer

    @property
    def store(self) -> BaseObjectStore:
        return self._store

    @property
    def keys(self) -> KeyGenerator:
        return self._keys

    # =========================================================================
    # Public API: convert()
    # =========================================================================

    def convert(self, request: ConvertRequest, request_id: str) -> ConversionResult:
        """
        Convert text to a stored audio file.

        Pipeline:
            1. Validate text (no provider call on failure)
            2. Synthesize (one provider call, no retry)
            3. Drain the audio stream into one buffer
            4. Generate a unique key
            5. Upload (one provider call, no retry)

        Args:
            request: ConvertRequest with the text.
            request_id: Unique ID for request tracing.

        Returns:
            ConversionResult describing the stored object.

        Raises:
            InvalidInputError: Text missing, empty or too long.
            SynthesisFailedError: Provider returned no audio.
            UpstreamTransportError: A provider call failed.
            UnknownError: Anything else.
        """
        text = validate_text(request.text, max_length=self._max_text_chars)

        preview = text[:self._text_preview_chars] if self._text_preview_chars > 0 else ""
        info(_LOG, "request", chars=len(text), text_preview=preview)

        timings: Dict[str, float] = {}
        try:
            with timeit("request_total") as total_t:
                # ─────────────────────────────────────────────────────────────
                # Stage 1: Synthesize
                # ─────────────────────────────────────────────────────────────
                with timeit("synthesize", into=timings):
                    synthesis = self._synthesizer.synthesize(text)
                verbose(_LOG, "stage", event="synthesize", seconds=round(timings["synthesize"], 4))

                if synthesis is None or synthesis.audio_stream is None:
                    raise SynthesisFailedError(
                        "provider returned no audio",
                        {"provider": self._synthesizer.name},
                    )

                # ─────────────────────────────────────────────────────────────
                # Stage 2: Drain the audio stream
                # ─────────────────────────────────────────────────────────────
                with timeit("drain", into=timings):
                    audio = drain_stream(synthesis.audio_stream)
                verbose(_LOG, "stage", event="drain", seconds=round(timings["drain"], 4),
                        bytes=len(audio))

                if not audio:
                    raise SynthesisFailedError(
                        "provider returned no audio",
                        {"provider": self._synthesizer.name, "bytes": 0},
                    )

                # ─────────────────────────────────────────────────────────────
                # Stage 3: Key
                # ─────────────────────────────────────────────────────────────
                key = self._keys.new_key()
                debug(_LOG, "key", key=key, scheme=self._keys.scheme)

                # ─────────────────────────────────────────────────────────────
                # Stage 4: Upload
                # ─────────────────────────────────────────────────────────────
                with timeit("upload", into=timings):
                    self._store.put(key, audio, self._content_type)
                verbose(_LOG, "stage", event="upload", seconds=round(timings["upload"], 4))

                url = self._store.url_for(key)

        except ConversionError:
            raise
        except Exception as e:
            raise UnknownError(str(e) or type(e).__name__, {"error_type": type(e).__name__}) from e

        total_s = total_t.seconds
        success(_LOG, "done", key=key, bytes=len(audio), seconds=round(total_s, 3))

        return ConversionResult(
            stored=StoredObject(key=key, url=url, bytes=len(audio), content_type=self._content_type),
            request_id=request_id,
            total_seconds=total_s,
            timings=timings,
        )

    # =========================================================================
    # Public API: handle()
    # =========================================================================

    def handle(self, payload: Any, request_id: Optional[str] = None) -> HandlerResponse:
        """
        Handle one inbound request end to end. Never raises.

        Args:
            payload: Decoded request payload, expected {"text": str}.
            request_id: Optional request ID (generated if omitted).

        Returns:
            HandlerResponse with status 200, 400 or 500.
        """
        rid = request_id or new_request_id()
        set_request_id(rid)

        try:
            text = validate_payload(payload, max_length=self._max_text_chars)
            result = self.convert(ConvertRequest(text=text), rid)
        except ConversionError as e:
            if e.code == ErrorCode.INVALID_INPUT:
                warn(_LOG, "invalid_input", error=e.message, status_code=e.status_code)
            else:
                fail(_LOG, "request_failed", error=e.message, code=e.code,
                     status_code=e.status_code, **e.details)
            return HandlerResponse.failure(e)
        except Exception as e:
            err = UnknownError(str(e) or type(e).__name__, {"error_type": type(e).__name__})
            fail(_LOG, "request_failed", error=err.message, code=err.code,
                 status_code=err.status_code, error_type=type(e).__name__)
            return HandlerResponse.failure(err)

        return HandlerResponse.success(result.stored)

    # =========================================================================
    # Dry run and health
    # =========================================================================

    def preview(self, payload: Any) -> Dict[str, Any]:
        """
        Validate a payload and show the key and URL a conversion would use.

        No provider is contacted. The key is freshly generated, so a later
        real conversion gets a different one.

        Raises:
            InvalidInputError: If the payload is invalid.
        """
        text = validate_payload(payload, max_length=self._max_text_chars)
        key = self._keys.new_key()
        return {
            "chars": len(text),
            "voice": self._config.synthesis.voice_id,
            "output_format": self._config.synthesis.output_format,
            "bucket": self._config.storage.bucket,
            "key": key,
            "fileUrl": self._store.url_for(key),
        }

    def get_health_info(self) -> Dict[str, Any]:
        """Configuration summary for health checks."""
        synthesis = self._config.synthesis
        storage = self._config.storage
        return {
            "ok": True,
            "synthesizer": self._synthesizer.name,
            "voice": synthesis.voice_id,
            "output_format": synthesis.output_format,
            "engine": synthesis.engine,
            "store": self._store.name,
            "bucket": storage.bucket,
            "region": storage.region,
            "url_mode": storage.url_mode,
            "key_scheme": self._keys.scheme,
        }


# =============================================================================
# Construction
# =============================================================================

def build_service(settings: Settings, clients: Optional[AwsClients] = None) -> ConversionService:
    """
    Build a ConversionService backed by Polly and S3.

    Args:
        settings: Application settings.
        clients: Pre-built boto3 clients (created from settings if omitted).

    Raises:
        ConfigValidationError: If the configuration is invalid.
    """
    config = settings.get_service_config()
    clients = clients or build_clients(config)
    service = ConversionService(
        config,
        synthesizer=PollySynthesizer.from_config(clients.polly, config.synthesis),
        store=S3ObjectStore.from_config(clients.s3, config.storage),
    )
    info(_LOG, "service_ready", **service.get_health_info())
    return service


_service: Optional[ConversionService] = None
_service_lock = threading.Lock()


def get_service(settings: Settings) -> ConversionService:
    """
    Get or create the process-wide ConversionService.

    Thread-safe lazy singleton, so boto3 clients are built once per process.
    """
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = build_service(settings)
    return _service


def reset_service() -> None:
    """Reset the process-wide service (used by tests)."""
    global _service
    with _service_lock:
        _service = None
