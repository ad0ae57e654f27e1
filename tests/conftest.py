"""Shared fixtures: service wired to MagicMock boto3 clients."""
import io
from unittest.mock import MagicMock

import pytest
from botocore.response import StreamingBody

from tts_store.core.config import Settings
from tts_store.providers.storage import S3ObjectStore
from tts_store.providers.synthesis import PollySynthesizer
from tts_store.services.conversion_service import ConversionService, reset_service
from tts_store.services.keys import KeyGenerator

# MPEG frame sync header followed by padding
AUDIO = b"\xff\xfb\x90\x64" + b"\x00" * 60
FROZEN_MS = 1700000000000


def streaming_body(data: bytes) -> StreamingBody:
    """botocore StreamingBody over in-memory bytes, as Polly returns it."""
    return StreamingBody(io.BytesIO(data), len(data))


@pytest.fixture
def settings():
    return Settings(raw={
        "aws": {"region": "us-east-1"},
        "synthesis": {"voice_id": "Joanna", "output_format": "mp3"},
        "storage": {"bucket": "my-bucket"},
        "keys": {"scheme": "timestamp"},
        "logging": {"level": 1, "text_preview_chars": 20},
    })


@pytest.fixture
def config(settings):
    return settings.get_service_config()


@pytest.fixture
def polly_client():
    client = MagicMock()
    client.synthesize_speech.side_effect = lambda **kw: {
        "AudioStream": streaming_body(AUDIO),
        "ContentType": "audio/mpeg",
        "RequestCharacters": len(kw["Text"]),
    }
    return client


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.put_object.return_value = {"ETag": '"abc123"'}
    client.generate_presigned_url.return_value = (
        "https://my-bucket.s3.amazonaws.com/audio.mp3?X-Amz-Signature=abc"
    )
    return client


@pytest.fixture
def service(config, polly_client, s3_client):
    keys = KeyGenerator.from_config(config.keys, config.synthesis.extension, clock=lambda: FROZEN_MS)
    return ConversionService(
        config,
        synthesizer=PollySynthesizer.from_config(polly_client, config.synthesis),
        store=S3ObjectStore.from_config(s3_client, config.storage),
        keys=keys,
    )


@pytest.fixture(autouse=True)
def _reset_service_singleton():
    reset_service()
    yield
    reset_service()
