"""
AWS Client Construction.

Polly and S3 clients are built once per process and injected into the
service, so credential resolution and connection setup are paid on cold
start only (module import in Lambda, app startup in FastAPI).

Retries are disabled: every conversion makes exactly one synthesis call and
at most one upload call. botocore's "standard" retry mode counts the first
attempt in max_attempts, so max_attempts=1 means no retry.

Credentials come from the standard boto3 chain (environment, shared config,
instance/Lambda role).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import boto3
from botocore.config import Config

from tts_store import __version__
from tts_store.core.config import ServiceConfig

NO_RETRY = {"max_attempts": 1, "mode": "standard"}


@dataclass
class AwsClients:
    """boto3 clients shared by every conversion in this process."""
    polly: Any
    s3: Any


def client_config(region: str) -> Config:
    """botocore Config used for both clients."""
    return Config(
        region_name=region,
        retries=NO_RETRY,
        user_agent_extra=f"tts-store/{__version__}",
    )


def build_clients(config: ServiceConfig, session: Optional[boto3.session.Session] = None) -> AwsClients:
    """
    Create the Polly and S3 clients.

    Args:
        config: Validated service configuration.
        session: Optional boto3 session (defaults to a new one).

    Returns:
        AwsClients with polly and s3 clients.
    """
    session = session or boto3.session.Session()
    return AwsClients(
        polly=session.client("polly", config=client_config(config.synthesis.region)),
        s3=session.client("s3", config=client_config(config.storage.region)),
    )
