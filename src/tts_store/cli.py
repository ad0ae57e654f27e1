"""
Command-Line Interface for tts-store.

Converts text and stores the audio without running the HTTP server.

Usage Examples:
    # Convert and store
    tts-store --text "Hello world"

    # Positional text (same as above)
    tts-store "Hello world"

    # Validate and show the key/URL without calling Polly or S3
    tts-store --text "Hello world" --dry-run --json

    # Override deployment settings
    tts-store --text "Hello" --bucket my-audio --region eu-west-1 --voice Matthew

Environment Variables:
    TTS_STORE_SETTINGS: Settings file (default config/settings.yaml)
    TTS_STORE_BUCKET: Destination bucket
    TTS_STORE_VOICE: Polly voice
    AWS_REGION: Region for both providers

Exit code is 0 when the response status is 200, 1 otherwise.
"""

from __future__ import annotations

import argparse
import copy
import json
from typing import List, Optional

from tts_store.core.config import ConfigValidationError, Settings, load_settings, load_settings_or_env
from tts_store.core.logging import configure_logging, get_logger, info, set_request_id
from tts_store.errors import ConversionError
from tts_store.services.conversion_service import (
    ConversionService,
    HandlerResponse,
    build_service,
    new_request_id,
)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="tts-store CLI (convert text and store the audio)")

    parser.add_argument("text_pos", nargs="?", help="Text to convert (positional)")
    parser.add_argument("--text", help="Text to convert")
    parser.add_argument("--settings", help="Settings file path")

    # Deployment overrides
    parser.add_argument("--bucket", help="Destination bucket override")
    parser.add_argument("--region", help="AWS region override")
    parser.add_argument("--voice", help="Polly voice override")

    parser.add_argument("--dry-run", action="store_true",
                        help="Validate and show key/URL without calling any provider")
    parser.add_argument("--json", action="store_true",
                        help="Print the response as JSON")

    return parser.parse_args(argv)


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return new Settings with command-line overrides applied."""
    raw = copy.deepcopy(settings.raw)
    if args.bucket:
        raw.setdefault("storage", {})["bucket"] = args.bucket
    if args.region:
        raw.setdefault("aws", {})["region"] = args.region
    if args.voice:
        raw.setdefault("synthesis", {})["voice_id"] = args.voice
    return Settings(raw=raw)


def _print(payload: dict, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        for k, v in payload.items():
            print(f"{k}: {v}")


def main(argv: Optional[List[str]] = None, service: Optional[ConversionService] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Optional list of command-line arguments.
        service: Pre-built service (tests inject one with fake providers).

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    args = _parse_args(argv)

    configure_logging()
    log = get_logger("tts-store.cli")
    rid = new_request_id()
    set_request_id(rid)

    text = args.text if args.text is not None else args.text_pos
    payload = {"text": text}

    if service is None:
        try:
            # An explicit --settings path must exist
            settings = load_settings(args.settings) if args.settings else load_settings_or_env()
            service = build_service(_apply_overrides(settings, args))
        except (FileNotFoundError, ConfigValidationError) as e:
            _print({"ok": False, "error": str(e)}, args.json)
            return 1

    if args.dry_run:
        try:
            summary = service.preview(payload)
        except ConversionError as e:
            _print(HandlerResponse.failure(e).to_dict(), args.json)
            return 1
        info(log, "dry_run", key=summary["key"], bucket=summary["bucket"])
        _print({"ok": True, "dry_run": True, **summary}, args.json)
        return 0

    response = service.handle(payload, request_id=rid)
    _print(response.to_dict(), args.json)
    return 0 if response.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
