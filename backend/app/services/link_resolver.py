"""
SOP Gateway: Signed-Link Resolver
==================================

What:  Turns an asset reference stored on a record into a signed, time-limited
       URL for that asset.
How:   1. Empty reference → no link.
       2. Reference with a URL scheme → key = percent-decoded URL path minus
          its leading "/". Unparseable URL → warning, raw reference is the key.
       3. Anything else is already a key. A reference that is not a string
          (number, JSON object) is logged and its text form is the key.
       4. Ask the AssetSigner for a URL valid for the configured window.
Who:   Called by RecordService.enrich() once per record.

Failure policy:
    A resolution or signing failure never fails the record. The resolver logs
    it and hands back the original reference unchanged, so the client still
    receives every other field of the record.
"""

import logging
import re
from typing import Any, Optional
from urllib.parse import unquote, urlsplit

from app.services.signer_base import AssetSigner

logger = logging.getLogger(__name__)

# scheme "://" as in RFC 3986 (http://, https://, s3://, ...)
_URL_PREFIX = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")

DEFAULT_TTL_SECONDS = 24 * 60 * 60


def looks_like_url(reference: str) -> bool:
    return bool(_URL_PREFIX.match(reference))


def as_reference_text(reference: Any) -> str:
    """Stored references are strings; anything else is logged and used as its str() form."""
    if isinstance(reference, str):
        return reference
    logger.warning(
        "Asset reference %r is a %s, not a string; using its text as the key",
        reference,
        type(reference).__name__,
    )
    return str(reference)


def extract_key(reference: str) -> str:
    """
    Derive the object-store key from an asset reference.

    >>> extract_key("https://bucket.s3.amazonaws.com/a%20b/c")
    'a b/c'
    >>> extract_key("recordings/2024/clip.mp3")
    'recordings/2024/clip.mp3'
    """
    if not looks_like_url(reference):
        return reference

    try:
        path = urlsplit(reference).path
    except ValueError as exc:
        logger.warning("Could not parse asset URL %r (%s); using it as the key", reference, exc)
        return reference

    key = unquote(path)
    if key.startswith("/"):
        key = key[1:]
    if not key:
        logger.warning("Asset URL %r has no path; using it as the key", reference)
        return reference
    return key


class LinkResolver:
    """
    Resolves asset references to signed links.

    Args:
        signer:      AssetSigner producing the actual URL.
        ttl_seconds: Validity window of every link (24 hours by default).
    """

    def __init__(self, signer: AssetSigner, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self._signer = signer
        self.ttl_seconds = ttl_seconds

    async def resolve(self, reference: Any) -> Optional[str]:
        """
        Returns:
            None when there is no reference, the signed URL on success, or
            the original reference when it could not be resolved.
        """
        if not reference:
            return None

        try:
            key = extract_key(as_reference_text(reference))
            signed = await self._signer.sign(key, self.ttl_seconds)
        except Exception as exc:
            logger.error(
                "Signing failed for reference %r (%s: %s); returning the unresolved reference",
                reference,
                type(exc).__name__,
                exc,
            )
            return reference

        logger.debug("Signed asset key %r for %ds", key, self.ttl_seconds)
        return signed
