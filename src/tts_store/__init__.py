"""
tts-store: Text-to-Speech Conversion and Storage Service.

Converts a text payload into an MP3 audio file using Amazon Polly and stores
the result in an Amazon S3 bucket, returning the stored object's key and URL.

Request Flow:
    Validate → Synthesize (Polly) → Drain audio stream → Generate key
    → Upload (S3) → Respond {statusCode, body}

Invocation Layers:
    - HTTP API (FastAPI): POST /v1/convert
    - AWS Lambda: tts_store.lambda_handler.handler
    - CLI: tts-store --text "..."

Example Usage:
    >>> from tts_store.core.config import Settings
    >>> from tts_store.services import build_service
    >>>
    >>> settings = Settings(raw={'storage': {'bucket': 'my-audio-bucket'}})
    >>> service = build_service(settings)
    >>> response = service.handle({"text": "Hello world"})
    >>> response.status_code
    200
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
