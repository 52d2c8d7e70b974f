"""
Storage collaborator for the economy core.

Versioned JSON blobs behind an ordered list of providers, plus per-key
locks for read-modify-write serialization.
"""

from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardledger.storage.base import (
    BlobStore,
    BlobWrite,
    ProviderUnavailableError,
    VersionedBlob,
)
from cardledger.storage.file_store import FileBlobStore
from cardledger.storage.layered import LayeredBlobStore
from cardledger.storage.locks import KeyedLocks
from cardledger.storage.sql_store import SqlBlobStore


def build_blob_store(
    provider_names: list[str],
    session_factory: async_sessionmaker[AsyncSession],
    persist_path: Path | str,
) -> LayeredBlobStore:
    """
    Build the layered store from configured provider names.

    Raises:
        ValueError: If a provider name is unknown
    """
    providers: list[BlobStore] = []
    for name in provider_names:
        if name == SqlBlobStore.name:
            providers.append(SqlBlobStore(session_factory))
        elif name == FileBlobStore.name:
            providers.append(FileBlobStore(persist_path))
        else:
            raise ValueError(f"Unknown storage provider: {name}")
    return LayeredBlobStore(providers)


__all__ = [
    "BlobStore",
    "BlobWrite",
    "FileBlobStore",
    "KeyedLocks",
    "LayeredBlobStore",
    "ProviderUnavailableError",
    "SqlBlobStore",
    "VersionedBlob",
    "build_blob_store",
]
