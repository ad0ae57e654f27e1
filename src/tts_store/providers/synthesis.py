"""
Speech Synthesis Provider Adapters.

This module provides:
    - SynthesisResponse: What a provider hands back (a lazy audio stream)
    - BaseSynthesizer: Interface the conversion service depends on
    - PollySynthesizer: Amazon Polly implementation over a boto3 client

The service never talks to boto3 directly; it receives a synthesizer at
construction time, which is what lets tests pass a MagicMock instead.

Polly Call:
    polly.synthesize_speech(Text=..., OutputFormat="mp3", VoiceId="Joanna")
    -> {"AudioStream": StreamingBody, "ContentType": "audio/mpeg",
        "RequestCharacters": 11, ...}
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from tts_store.core.config import SynthesisConfig
from tts_store.core.logging import debug, get_logger
from tts_store.errors import UpstreamTransportError

_LOG = get_logger("tts-store.synthesis")


@dataclass
class SynthesisResponse:
    """
    Result of a synthesis call.

    Attributes:
        audio_stream: Lazy, finite, non-restartable byte stream, or None
            when the provider returned no audio.
        content_type: MIME type reported by the provider.
        request_characters: Billed characters, when the provider reports it.
    """
    audio_stream: Optional[Any]
    content_type: str = "audio/mpeg"
    request_characters: Optional[int] = None


class BaseSynthesizer:
    """
    Interface for speech synthesis providers.

    Implementations must turn transport-level failures into
    UpstreamTransportError and must not retry.
    """
    name: str = "base"

    def synthesize(self, text: str) -> SynthesisResponse:
        """Convert text to a lazy audio stream."""
        raise NotImplementedError


def upstream_error(provider: str, operation: str, exc: Exception) -> UpstreamTransportError:
    """Wrap a botocore exception as UpstreamTransportError."""
    details: Dict[str, Any] = {"provider": provider, "operation": operation}
    if isinstance(exc, ClientError):
        err = exc.response.get("Error", {})
        details["aws_error_code"] = err.get("Code")
        details["http_status"] = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return UpstreamTransportError(str(exc), details)


class PollySynthesizer(BaseSynthesizer):
    """
    Amazon Polly synthesizer.

    Args:
        client: boto3 Polly client, created once per process.
        voice_id: Polly voice (e.g. "Joanna").
        output_format: Polly output format (always "mp3" here).
        engine: Optional Polly engine ("standard", "neural", ...).
    """
    name = "polly"

    def __init__(
        self,
        client: Any,
        voice_id: str = "Joanna",
        output_format: str = "mp3",
        engine: Optional[str] = None,
    ):
        self._client = client
        self.voice_id = voice_id
        self.output_format = output_format
        self.engine = engine

    @classmethod
    def from_config(cls, client: Any, config: SynthesisConfig) -> "PollySynthesizer":
        return cls(
            client,
            voice_id=config.voice_id,
            output_format=config.output_format,
            engine=config.engine,
        )

    def synthesize(self, text: str) -> SynthesisResponse:
        params: Dict[str, Any] = {
            "Text": text,
            "OutputFormat": self.output_format,
            "VoiceId": self.voice_id,
        }
        if self.engine:
            params["Engine"] = self.engine

        debug(_LOG, "polly_request", voice=self.voice_id,
              output_format=self.output_format, engine=self.engine, chars=len(text))

        try:
            resp = self._client.synthesize_speech(**params)
        except (ClientError, BotoCoreError) as e:
            raise upstream_error(self.name, "SynthesizeSpeech", e) from e

        return SynthesisResponse(
            audio_stream=resp.get("AudioStream"),
            content_type=resp.get("ContentType") or "audio/mpeg",
            request_characters=resp.get("RequestCharacters"),
        )
