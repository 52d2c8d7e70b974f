"""
Blob storage contract.

The economy core persists JSON documents under logical keys. Each stored
document carries a version; writes name the version they were computed
from, and a commit applies either all of its writes or none of them.

Version 0 means "absent". The first write of a key creates version 1.
"""

from dataclasses import dataclass
from typing import Any, Protocol


class ProviderUnavailableError(Exception):
    """
    Raised by a single provider that cannot serve a request right now.

    This is internal to the storage layer. The layered store falls back to
    the next provider; only when all fail does the caller see
    StorageUnavailableError.
    """

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider}: {reason}")


@dataclass(frozen=True, slots=True)
class VersionedBlob:
    key: str
    version: int
    payload: Any


@dataclass(frozen=True, slots=True)
class BlobWrite:
    """
    A conditional write.

    Attributes:
        key: Logical key
        payload: JSON-serializable document
        expected_version: Version the payload was computed from (0 = new key)
    """

    key: str
    payload: Any
    expected_version: int


class BlobStore(Protocol):
    name: str

    async def load(self, key: str) -> VersionedBlob | None:
        """Load a blob, or None if the key is absent."""
        ...

    async def commit(self, writes: list[BlobWrite]) -> dict[str, int]:
        """
        Apply all writes atomically.

        Returns the new version of every written key.

        Raises:
            ConcurrentModificationError: If any key is not at its expected version
            ProviderUnavailableError: If the provider cannot be reached
        """
        ...

    async def replicate(self, blobs: list[VersionedBlob]) -> None:
        """
        Store copies of blobs committed through another provider.

        Each blob is written with its own version, and only over an absent
        key or an older version. A newer local version is left alone.

        Raises:
            ProviderUnavailableError: If the provider cannot be reached
        """
        ...

    async def ping(self) -> None:
        """Raise ProviderUnavailableError if the provider is unreachable."""
        ...
