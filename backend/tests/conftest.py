"""
SOP Gateway: Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   The Supabase table and the S3 signer are replaced with in-memory fakes
       that are injected through create_app(), so no test touches the network.

Fixtures:
    sample_records:  three rows with distinct created_at values
    fake_store:      FakeRecordStore over sample_records
    fake_signer:     FakeSigner returning deterministic URLs
    test_settings:   fully configured Settings (development)
    make_client:     factory for an httpx AsyncClient bound to a fresh app
    test_client:     make_client() with the default fakes
"""

import asyncio
import os
from typing import Any, Callable, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Environment for the module-level settings object, set before app imports
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key-not-real")
os.environ.setdefault("TABLE_NAME", "sop_records")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("S3_BUCKET_NAME", "sop-audio-test")
os.environ["LOG_LEVEL"] = "WARNING"

from app.config import Settings  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.signer_base import AssetSigner  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Fakes
# ══════════════════════════════════════════════════════════════════════════

class FakeRecordStore:
    """
    In-memory stand-in for RecordStore.

    Applies the same ordering as the real query (created_at desc, id desc)
    and records every call so tests can assert on them.
    """

    def __init__(self, rows: List[Dict[str, Any]], table_name: str = "sop_records"):
        self.rows = [dict(row) for row in rows]
        self.table_name = table_name
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None

    def _ordered(self) -> List[Dict[str, Any]]:
        return sorted(self.rows, key=lambda r: (r["created_at"], r["id"]), reverse=True)

    def _check_error(self):
        if self.error is not None:
            raise self.error

    async def fetch_page(self, offset: int, limit: int):
        self.calls.append(("fetch_page", offset, limit))
        self._check_error()
        ordered = self._ordered()
        return [dict(r) for r in ordered[offset:offset + limit]], len(ordered)

    async def fetch_by_id(self, record_id: str):
        self.calls.append(("fetch_by_id", record_id))
        self._check_error()
        for row in self.rows:
            if row["id"] == record_id:
                return dict(row)
        return None

    async def fetch_all(self):
        self.calls.append(("fetch_all",))
        self._check_error()
        return [dict(r) for r in self.rows], len(self.rows)

    async def fetch_sample(self, limit: int = 5):
        self.calls.append(("fetch_sample", limit))
        self._check_error()
        return [dict(r) for r in self.rows[:limit]], len(self.rows)


class FakeSigner(AssetSigner):
    """
    Deterministic signer.

    Args:
        delay: optional callable key → seconds to sleep before answering
        error: optional exception raised instead of signing
    """

    def __init__(
        self,
        delay: Optional[Callable[[str], float]] = None,
        error: Optional[Exception] = None,
    ):
        self.delay = delay
        self.error = error
        self.calls: List[tuple] = []

    async def sign(self, key: str, expires_in: int) -> str:
        self.calls.append((key, expires_in))
        if self.delay is not None:
            await asyncio.sleep(self.delay(key))
        if self.error is not None:
            raise self.error
        return f"https://signed.example.com/{key}?X-Amz-Expires={expires_in}"


# ══════════════════════════════════════════════════════════════════════════
# Data Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_records():
    """Three SOP rows; sop-3 is the newest and has no audio."""
    return [
        {
            "id": "sop-1",
            "title": "Open the store",
            "created_at": "2024-01-01T10:00:00+00:00",
            "audio_url": "recordings/opening.mp3",
        },
        {
            "id": "sop-2",
            "title": "Close the store",
            "created_at": "2024-02-01T10:00:00+00:00",
            "audio_url": "https://sop-audio-test.s3.amazonaws.com/recordings/closing%20v2.mp3",
        },
        {
            "id": "sop-3",
            "title": "Count the till",
            "created_at": "2024-03-01T10:00:00+00:00",
            "audio_url": None,
        },
    ]


@pytest.fixture
def fake_store(sample_records):
    return FakeRecordStore(sample_records)


@pytest.fixture
def fake_signer():
    return FakeSigner()


@pytest.fixture
def signer_factory():
    """Build FakeSigner instances with custom delay/error behaviour."""
    return FakeSigner


@pytest.fixture
def store_factory():
    return FakeRecordStore


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        supabase_url="https://test-project.supabase.co",
        supabase_key="test-key-not-real",
        table_name="sop_records",
        aws_region="us-east-1",
        s3_bucket_name="sop-audio-test",
        environment="development",
        log_level="WARNING",
    )


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_client(test_settings, fake_store, fake_signer):
    """
    Factory returning an httpx AsyncClient for a freshly built app.

    raise_app_exceptions=False lets tests observe the 500 responses produced
    by the catch-all handler instead of the re-raised exception.

    Usage:
        async with make_client(settings=prod_settings) as client:
            response = await client.get("/api/sop")
    """

    def _make(settings=None, store=None, signer=None) -> AsyncClient:
        app = create_app(
            settings=settings or test_settings,
            record_store=store or fake_store,
            asset_signer=signer or fake_signer,
        )
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        return AsyncClient(transport=transport, base_url="http://test")

    return _make


@pytest_asyncio.fixture
async def test_client(make_client):
    async with make_client() as client:
        yield client
