"""
Configuration Management for tts-store.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration objects
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (AWS_REGION, TTS_STORE_BUCKET, etc.)
    2. YAML config file (config/settings.yaml)
    3. Defaults class values

Everything here is fixed per deployment. Nothing is configurable per request.

Example settings.yaml:
    aws:
      region: us-east-1

    synthesis:
      voice_id: Joanna
      output_format: mp3

    storage:
      bucket: my-audio-bucket
      url_mode: public

    keys:
      scheme: random

    logging:
      level: 2  # NORMAL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import os
import yaml

from tts_store.core.logging.levels import coerce_level


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    Configuration is validated once at process start, so this error
    surfaces during service construction rather than per request.
    """
    pass


# Output formats the service knows how to store: format -> (extension, content type)
AUDIO_FORMATS = {
    "mp3": ("mp3", "audio/mpeg"),
}

KEY_SCHEMES = ("random", "timestamp", "uuid")
URL_MODES = ("public", "presigned")
POLLY_ENGINES = ("standard", "neural", "long-form", "generative")


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - AWS: Region shared by both providers
        - Synthesis: Polly voice and output format
        - Storage: S3 bucket, URL construction and upload options
        - Keys: Storage key naming
        - Logging: Log level and text preview
    """

    # ─────────────────────────────────────────────────────────────────────────
    # AWS
    # ─────────────────────────────────────────────────────────────────────────
    AWS_REGION = "us-east-1"

    # ─────────────────────────────────────────────────────────────────────────
    # Synthesis (Amazon Polly)
    # ─────────────────────────────────────────────────────────────────────────
    SYNTHESIS_VOICE_ID = "Joanna"
    SYNTHESIS_OUTPUT_FORMAT = "mp3"
    SYNTHESIS_ENGINE = None             # Polly picks the voice's default engine
    SYNTHESIS_MAX_TEXT_CHARS = 3000     # Polly SynthesizeSpeech text limit

    # ─────────────────────────────────────────────────────────────────────────
    # Storage (Amazon S3)
    # ─────────────────────────────────────────────────────────────────────────
    STORAGE_BUCKET = ""                 # Required, no sensible default
    STORAGE_URL_MODE = "public"         # public | presigned
    STORAGE_PRESIGN_EXPIRES_S = 3600    # Presigned URL lifetime
    STORAGE_ACL = None                  # e.g. "public-read"; bucket policy otherwise

    # ─────────────────────────────────────────────────────────────────────────
    # Keys
    # ─────────────────────────────────────────────────────────────────────────
    KEYS_SCHEME = "random"              # random | timestamp | uuid
    KEYS_PREFIX = ""                    # Optional "folder" in the bucket
    KEYS_BASENAME = "audio"

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 80     # Characters to show in text preview
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG


@dataclass
class SynthesisConfig:
    """
    Speech synthesis configuration.

    The voice and output format are fixed per deployment; requests only
    carry the text.
    """
    region: str = Defaults.AWS_REGION
    voice_id: str = Defaults.SYNTHESIS_VOICE_ID
    output_format: str = Defaults.SYNTHESIS_OUTPUT_FORMAT
    engine: Optional[str] = Defaults.SYNTHESIS_ENGINE
    max_text_chars: int = Defaults.SYNTHESIS_MAX_TEXT_CHARS

    @property
    def extension(self) -> str:
        return AUDIO_FORMATS[self.output_format][0]

    @property
    def content_type(self) -> str:
        return AUDIO_FORMATS[self.output_format][1]


@dataclass
class StorageConfig:
    """
    Object storage configuration.

    url_mode controls the URL returned to callers:
        public: https://<bucket>.s3.<region>.amazonaws.com/<key>
        presigned: time-limited signed GET URL
    """
    bucket: str = Defaults.STORAGE_BUCKET
    region: str = Defaults.AWS_REGION
    url_mode: str = Defaults.STORAGE_URL_MODE
    presign_expires_s: int = Defaults.STORAGE_PRESIGN_EXPIRES_S
    acl: Optional[str] = Defaults.STORAGE_ACL


@dataclass
class KeysConfig:
    """Storage key naming configuration."""
    scheme: str = Defaults.KEYS_SCHEME
    prefix: str = Defaults.KEYS_PREFIX
    basename: str = Defaults.KEYS_BASENAME


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, failures only
        2 = NORMAL: Request lifecycle (default)
        3 = VERBOSE: Per-stage timing
        4 = DEBUG: Provider call details
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class ServiceConfig:
    """
    Validated configuration for ConversionService.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = ServiceConfig.from_settings(settings)
        print(config.storage.bucket)
    """
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    keys: KeysConfig = field(default_factory=KeysConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ServiceConfig":
        """
        Create ServiceConfig from Settings with validation.

        Args:
            settings: Raw Settings object loaded from YAML.

        Returns:
            Validated ServiceConfig instance.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw
        region = settings.region

        # ─────────────────────────────────────────────────────────────────────
        # Synthesis configuration
        # ─────────────────────────────────────────────────────────────────────
        synth_raw = raw.get("synthesis", {}) or {}
        engine = synth_raw.get("engine", Defaults.SYNTHESIS_ENGINE)
        synthesis = SynthesisConfig(
            region=str(synth_raw.get("region") or region),
            voice_id=str(synth_raw.get("voice_id", Defaults.SYNTHESIS_VOICE_ID)),
            output_format=str(synth_raw.get("output_format", Defaults.SYNTHESIS_OUTPUT_FORMAT)).lower(),
            engine=str(engine) if engine else None,
            max_text_chars=cls._int("synthesis.max_text_chars",
                                   synth_raw.get("max_text_chars", Defaults.SYNTHESIS_MAX_TEXT_CHARS)),
        )
        cls._validate_required("synthesis.voice_id", synthesis.voice_id)
        cls._validate_choice("synthesis.output_format", synthesis.output_format, tuple(AUDIO_FORMATS))
        if synthesis.engine is not None:
            cls._validate_choice("synthesis.engine", synthesis.engine, POLLY_ENGINES)
        cls._validate_positive("synthesis.max_text_chars", synthesis.max_text_chars)

        # ─────────────────────────────────────────────────────────────────────
        # Storage configuration
        # ─────────────────────────────────────────────────────────────────────
        storage_raw = raw.get("storage", {}) or {}
        acl = storage_raw.get("acl", Defaults.STORAGE_ACL)
        storage = StorageConfig(
            bucket=str(storage_raw.get("bucket") or Defaults.STORAGE_BUCKET),
            region=str(storage_raw.get("region") or region),
            url_mode=str(storage_raw.get("url_mode", Defaults.STORAGE_URL_MODE)).lower(),
            presign_expires_s=cls._int("storage.presign_expires_s",
                                      storage_raw.get("presign_expires_s", Defaults.STORAGE_PRESIGN_EXPIRES_S)),
            acl=str(acl) if acl else None,
        )
        cls._validate_required("storage.bucket", storage.bucket)
        cls._validate_choice("storage.url_mode", storage.url_mode, URL_MODES)
        cls._validate_positive("storage.presign_expires_s", storage.presign_expires_s)

        # ─────────────────────────────────────────────────────────────────────
        # Keys configuration
        # ─────────────────────────────────────────────────────────────────────
        keys_raw = raw.get("keys", {}) or {}
        keys = KeysConfig(
            scheme=str(keys_raw.get("scheme", Defaults.KEYS_SCHEME)).lower(),
            prefix=str(keys_raw.get("prefix") or Defaults.KEYS_PREFIX).strip("/"),
            basename=str(keys_raw.get("basename") or Defaults.KEYS_BASENAME),
        )
        cls._validate_choice("keys.scheme", keys.scheme, KEY_SCHEMES)

        # ─────────────────────────────────────────────────────────────────────
        # Logging configuration
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)
        if isinstance(log_level_raw, str):
            log_level = int(coerce_level(log_level_raw))
        else:
            log_level = cls._int("logging.level", log_level_raw)

        logging_cfg = LoggingConfig(
            text_preview_chars=cls._int("logging.text_preview_chars",
                                       logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            level=log_level,
        )
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(
            synthesis=synthesis,
            storage=storage,
            keys=keys,
            logging=logging_cfg,
        )

    @staticmethod
    def _int(name: str, value: Any) -> int:
        """Parse an integer setting."""
        if isinstance(value, bool):
            raise ConfigValidationError(f"{name} must be an integer, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigValidationError(f"{name} must be an integer, got {value!r}") from None

    @staticmethod
    def _validate_required(name: str, value: str) -> None:
        """Validate that a string value is set."""
        if not value or not value.strip():
            raise ConfigValidationError(f"{name} is required")

    @staticmethod
    def _validate_choice(name: str, value: str, choices: tuple) -> None:
        """Validate that a value is one of the allowed choices."""
        if value not in choices:
            raise ConfigValidationError(f"{name} must be one of {', '.join(choices)}, got {value!r}")

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_service_config() to get the validated ServiceConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    @property
    def region(self) -> str:
        """Get the AWS region shared by both providers."""
        return str((self.raw.get("aws", {}) or {}).get("region") or Defaults.AWS_REGION)

    @property
    def bucket(self) -> str:
        """Get the destination bucket name."""
        return str((self.raw.get("storage", {}) or {}).get("bucket") or Defaults.STORAGE_BUCKET)

    @property
    def voice_id(self) -> str:
        """Get the synthesis voice."""
        return str((self.raw.get("synthesis", {}) or {}).get("voice_id", Defaults.SYNTHESIS_VOICE_ID))

    def get_service_config(self) -> ServiceConfig:
        """
        Get validated ServiceConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return ServiceConfig.from_settings(self)


def apply_env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to a raw settings dictionary.

    Environment variables:
        - AWS_REGION / AWS_DEFAULT_REGION: aws.region
        - TTS_STORE_BUCKET: storage.bucket
        - TTS_STORE_VOICE: synthesis.voice_id
        - TTS_STORE_KEY_SCHEME: keys.scheme

    Returns:
        The same dictionary, updated in place.
    """
    region = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")
    if region:
        raw.setdefault("aws", {})["region"] = region

    bucket = os.getenv("TTS_STORE_BUCKET")
    if bucket:
        raw.setdefault("storage", {})["bucket"] = bucket

    voice = os.getenv("TTS_STORE_VOICE")
    if voice:
        raw.setdefault("synthesis", {})["voice_id"] = voice

    scheme = os.getenv("TTS_STORE_KEY_SCHEME")
    if scheme:
        raw.setdefault("keys", {})["scheme"] = scheme

    return raw


def load_settings(path: str = "config/settings.yaml") -> Settings:
    """
    Load settings from a YAML configuration file.

    Environment overrides are applied on top of the file contents
    (see apply_env_overrides).

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Settings object with loaded configuration.

    Raises:
        FileNotFoundError: If the settings file doesn't exist.
        ConfigValidationError: If the file is not valid YAML or not a mapping.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    try:
        with p.open("r", encoding="utf-8") as f:
            raw: Dict[str, Any] = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"invalid settings file {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigValidationError(f"invalid settings file {p}: top level must be a mapping")

    return Settings(raw=apply_env_overrides(raw))


def settings_path() -> str:
    """Get the settings file path (TTS_STORE_SETTINGS or config/settings.yaml)."""
    return os.getenv("TTS_STORE_SETTINGS", "config/settings.yaml")


def load_settings_or_env(path: Optional[str] = None) -> Settings:
    """
    Load settings from file if it exists, otherwise from environment only.

    Serverless deployments usually ship no settings file and configure
    everything through environment variables.
    """
    path = path or settings_path()
    if Path(path).exists():
        return load_settings(path)
    return Settings(raw=apply_env_overrides({}))
