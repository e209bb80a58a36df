"""
SOP Gateway: S3 Signer Tests
=============================

Presigning is computed locally by botocore, so a real client with dummy
credentials works offline; failure paths use a mocked client.
"""

from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlsplit

import boto3
import pytest
from botocore.config import Config
from botocore.exceptions import ClientError

from app.services.s3_signer import S3AssetSigner, create_s3_client


@pytest.fixture
def offline_s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="AKIATESTTESTTEST",
        aws_secret_access_key="test-secret",
        config=Config(signature_version="s3v4"),
    )


class TestS3AssetSigner:

    @pytest.mark.asyncio
    async def test_presigned_url_targets_bucket_and_key(self, offline_s3_client):
        signer = S3AssetSigner(offline_s3_client, "sop-audio-test")

        url = await signer.sign("recordings/opening.mp3", 86_400)

        parts = urlsplit(url)
        query = parse_qs(parts.query)
        assert "sop-audio-test" in parts.netloc + parts.path
        assert parts.path.endswith("/recordings/opening.mp3")
        assert query["X-Amz-Expires"] == ["86400"]
        assert "X-Amz-Signature" in query

    @pytest.mark.asyncio
    async def test_sign_passes_get_object_params(self):
        client = MagicMock()
        client.generate_presigned_url.return_value = "https://signed"
        signer = S3AssetSigner(client, "bucket")

        assert await signer.sign("a b/c", 60) == "https://signed"
        client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "bucket", "Key": "a b/c"},
            ExpiresIn=60,
        )

    @pytest.mark.asyncio
    async def test_client_errors_propagate(self):
        client = MagicMock()
        client.generate_presigned_url.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GetObject"
        )
        signer = S3AssetSigner(client, "bucket")

        with pytest.raises(ClientError):
            await signer.sign("k", 60)


class TestCreateS3Client:

    def test_builds_client_for_region(self, test_settings):
        client = create_s3_client(test_settings)
        assert client.meta.region_name == "us-east-1"

    def test_custom_endpoint(self, test_settings):
        settings = test_settings.model_copy(update={"aws_s3_endpoint_url": "http://localhost:9000"})
        client = create_s3_client(settings)
        assert client.meta.endpoint_url == "http://localhost:9000"

    def test_from_settings_uses_bucket(self, test_settings):
        signer = S3AssetSigner.from_settings(test_settings, client=MagicMock())
        assert signer.bucket == "sop-audio-test"
