"""
SOP Gateway: Amazon S3 Asset Signer
====================================

What:  AssetSigner backed by boto3's `generate_presigned_url("get_object")`.
How:   One boto3 S3 client is built per process (`create_s3_client`) and
       handed to S3AssetSigner. boto3 is synchronous, so each signing call is
       pushed to a worker thread with asyncio.to_thread.
Who:   Constructed in the FastAPI lifespan; used by LinkResolver.
"""

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.config import Config

from app.config import Settings
from app.services.signer_base import AssetSigner

logger = logging.getLogger(__name__)


def create_s3_client(settings: Settings) -> Any:
    """
    Build the boto3 S3 client from settings.

    Explicit keys are passed only when both are configured; otherwise boto3
    resolves credentials through its default chain. No retries are
    configured beyond a single attempt.
    """
    config = Config(
        signature_version="s3v4",
        connect_timeout=settings.signer_timeout_seconds,
        read_timeout=settings.signer_timeout_seconds,
        retries={"max_attempts": 1, "mode": "standard"},
    )
    kwargs = {
        "region_name": settings.aws_region or None,
        "config": config,
    }
    if settings.aws_s3_endpoint_url:
        kwargs["endpoint_url"] = settings.aws_s3_endpoint_url
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

    client = boto3.client("s3", **kwargs)
    logger.info(
        "S3 client created (region=%s, endpoint=%s)",
        settings.aws_region or "default",
        settings.aws_s3_endpoint_url or "aws",
    )
    return client


class S3AssetSigner(AssetSigner):
    """Presigns GET requests for keys in a single bucket."""

    def __init__(self, client: Any, bucket: str):
        self._client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[Any] = None) -> "S3AssetSigner":
        return cls(client or create_s3_client(settings), settings.s3_bucket_name)

    async def sign(self, key: str, expires_in: int) -> str:
        return await asyncio.to_thread(
            self._client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )
