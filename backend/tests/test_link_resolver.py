"""
SOP Gateway: Link Resolver Unit Tests
======================================

What we test:
    ✅ Bare keys reach the signer unchanged
    ✅ URL references are reduced to their decoded path
    ✅ Signer failures fall back to the original reference
    ✅ Empty references produce no link and no signer call
"""

import pytest

from app.services.link_resolver import LinkResolver, extract_key, looks_like_url


class TestExtractKey:
    """Tests for asset reference → store key."""

    def test_bare_key_unchanged(self):
        assert extract_key("recordings/2024/clip.mp3") == "recordings/2024/clip.mp3"

    def test_url_path_is_percent_decoded(self):
        assert extract_key("https://bucket.s3.amazonaws.com/a%20b/c") == "a b/c"

    def test_only_one_leading_slash_is_stripped(self):
        assert extract_key("https://cdn.example.com//nested/key.mp3") == "/nested/key.mp3"

    def test_query_string_is_not_part_of_key(self):
        url = "https://bucket.s3.amazonaws.com/clips/one.mp3?X-Amz-Expires=60"
        assert extract_key(url) == "clips/one.mp3"

    def test_s3_scheme(self):
        assert extract_key("s3://sop-audio/clips/one.mp3") == "clips/one.mp3"

    def test_unparseable_url_falls_back_to_raw_reference(self, caplog):
        broken = "http://[::1/clips/one.mp3"
        assert extract_key(broken) == broken
        assert "Could not parse asset URL" in caplog.text

    def test_url_without_path_falls_back_to_raw_reference(self):
        assert extract_key("https://bucket.s3.amazonaws.com") == "https://bucket.s3.amazonaws.com"

    def test_looks_like_url(self):
        assert looks_like_url("https://x/y")
        assert looks_like_url("s3://bucket/key")
        assert not looks_like_url("folder/https-notes.mp3")
        assert not looks_like_url("clip.mp3")


class TestLinkResolver:
    """Tests for LinkResolver.resolve()."""

    @pytest.mark.asyncio
    async def test_bare_key_passed_to_signer_unchanged(self, fake_signer):
        resolver = LinkResolver(fake_signer)

        link = await resolver.resolve("recordings/opening.mp3")

        assert fake_signer.calls == [("recordings/opening.mp3", 86_400)]
        assert link == "https://signed.example.com/recordings/opening.mp3?X-Amz-Expires=86400"

    @pytest.mark.asyncio
    async def test_url_reference_signed_with_decoded_key(self, fake_signer):
        resolver = LinkResolver(fake_signer)

        await resolver.resolve("https://bucket.s3.amazonaws.com/a%20b/c")

        assert fake_signer.calls[0][0] == "a b/c"

    @pytest.mark.asyncio
    async def test_validity_window_is_configurable(self, fake_signer):
        resolver = LinkResolver(fake_signer, ttl_seconds=600)

        await resolver.resolve("k.mp3")

        assert fake_signer.calls == [("k.mp3", 600)]

    @pytest.mark.asyncio
    async def test_signer_failure_returns_original_reference(self, signer_factory, caplog):
        signer = signer_factory(error=RuntimeError("AccessDenied"))
        resolver = LinkResolver(signer)
        reference = "https://bucket.s3.amazonaws.com/a%20b/c"

        link = await resolver.resolve(reference)

        assert link == reference
        assert "Signing failed" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reference", [None, ""])
    async def test_empty_reference_yields_no_link(self, fake_signer, reference):
        resolver = LinkResolver(fake_signer)

        assert await resolver.resolve(reference) is None
        assert fake_signer.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reference, key", [({"k": 1}, "{'k': 1}"), (42, "42")])
    async def test_non_string_reference_is_signed_by_its_text(self, fake_signer, caplog, reference, key):
        resolver = LinkResolver(fake_signer)

        link = await resolver.resolve(reference)

        assert fake_signer.calls == [(key, 86_400)]
        assert link.startswith("https://signed.example.com/")
        assert "not a string" in caplog.text

    @pytest.mark.asyncio
    async def test_key_extraction_failure_returns_original_reference(self, fake_signer, monkeypatch):
        def broken_extract(reference):
            raise TypeError("unexpected reference")

        monkeypatch.setattr("app.services.link_resolver.extract_key", broken_extract)
        resolver = LinkResolver(fake_signer)

        assert await resolver.resolve("recordings/a.mp3") == "recordings/a.mp3"
        assert fake_signer.calls == []
