"""
SOP Gateway: Abstract Asset Signer Interface
=============================================

What:  Contract for services that turn an object-store key into a
       time-limited, credential-free GET URL.
How:   Concrete implementations inherit from AssetSigner and implement sign().
Who:   Called by LinkResolver; the production implementation is
       S3AssetSigner, tests use an in-memory fake.
"""

from abc import ABC, abstractmethod


class AssetSigner(ABC):
    """
    Abstract interface for presigned-URL generation.

    Contract:
        - sign() returns a URL granting read access to one key for
          `expires_in` seconds.
        - Implementations raise whatever their SDK raises on failure; the
          caller (LinkResolver) owns the fallback policy.
        - Implementations must not block the event loop.
    """

    @abstractmethod
    async def sign(self, key: str, expires_in: int) -> str:
        """
        Produce a signed GET URL for `key`.

        Args:
            key:        Object key inside the configured bucket (no leading "/").
            expires_in: Validity window in seconds.

        Returns:
            The signed URL.
        """
        ...
