"""
Object Storage Provider Adapters.

This module provides:
    - BaseObjectStore: Interface the conversion service depends on
    - S3ObjectStore: Amazon S3 implementation over a boto3 client

S3 uploads are atomic: a failed put_object leaves no partial object behind,
so a failed upload needs no cleanup.

Object URLs:
    public     https://<bucket>.s3.<region>.amazonaws.com/<key>
    presigned  https://<bucket>.s3.amazonaws.com/<key>?X-Amz-Signature=...
"""
from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError

from tts_store.core.config import StorageConfig
from tts_store.core.logging import debug, get_logger
from tts_store.providers.synthesis import upstream_error

_LOG = get_logger("tts-store.storage")


class BaseObjectStore:
    """
    Interface for object storage providers.

    Implementations must turn transport-level failures into
    UpstreamTransportError and must not retry.
    """
    name: str = "base"

    def put(self, key: str, body: bytes, content_type: str) -> None:
        """Store body under key."""
        raise NotImplementedError

    def url_for(self, key: str) -> str:
        """Build the URL a caller can fetch the object from."""
        raise NotImplementedError


class S3ObjectStore(BaseObjectStore):
    """
    Amazon S3 object store.

    Args:
        client: boto3 S3 client, created once per process.
        bucket: Destination bucket.
        region: Bucket region, used for public URLs.
        url_mode: "public" or "presigned".
        presign_expires_s: Presigned URL lifetime in seconds.
        acl: Optional canned ACL for uploads (e.g. "public-read").
    """
    name = "s3"

    def __init__(
        self,
        client: Any,
        bucket: str,
        region: str = "us-east-1",
        url_mode: str = "public",
        presign_expires_s: int = 3600,
        acl: Optional[str] = None,
    ):
        self._client = client
        self.bucket = bucket
        self.region = region
        self.url_mode = url_mode
        self.presign_expires_s = presign_expires_s
        self.acl = acl

    @classmethod
    def from_config(cls, client: Any, config: StorageConfig) -> "S3ObjectStore":
        return cls(
            client,
            bucket=config.bucket,
            region=config.region,
            url_mode=config.url_mode,
            presign_expires_s=config.presign_expires_s,
            acl=config.acl,
        )

    def put(self, key: str, body: bytes, content_type: str) -> None:
        params: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if self.acl:
            params["ACL"] = self.acl

        debug(_LOG, "s3_put", bucket=self.bucket, key=key, bytes=len(body))

        try:
            self._client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise upstream_error(self.name, "PutObject", e) from e

    def public_url(self, key: str) -> str:
        """Virtual-hosted-style URL of an object."""
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"

    def url_for(self, key: str) -> str:
        if self.url_mode != "presigned":
            return self.public_url(key)

        # Signing is local, no request is sent
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self.presign_expires_s,
            )
        except (ClientError, BotoCoreError) as e:
            raise upstream_error(self.name, "GeneratePresignedUrl", e) from e
