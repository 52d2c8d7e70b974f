"""
Remote-backed blob store on async SQLAlchemy.

Each commit runs in a single database transaction, so all conditional
writes of one commit land together or not at all.

Only connectivity failures make the provider unavailable. Any other
database error (bad data, schema mismatch, programming errors) propagates
so it is not mistaken for an outage and hidden by a fallback.
"""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardledger.db.operations import get_blob, put_blob_version, write_blob
from cardledger.storage.base import BlobWrite, ProviderUnavailableError, VersionedBlob

logger = logging.getLogger(__name__)

UNAVAILABLE_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
    OSError,
)


class SqlBlobStore:
    name = "sql"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def load(self, key: str) -> VersionedBlob | None:
        try:
            async with self._session_factory() as session:
                row = await get_blob(session, key)
                if row is None:
                    return None
                payload: Any = row.payload
                return VersionedBlob(key=key, version=row.version, payload=payload)
        except UNAVAILABLE_ERRORS as e:
            raise ProviderUnavailableError(self.name, type(e).__name__) from e

    async def commit(self, writes: list[BlobWrite]) -> dict[str, int]:
        versions: dict[str, int] = {}
        try:
            async with self._session_factory() as session, session.begin():
                for write in writes:
                    versions[write.key] = await write_blob(
                        session, write.key, write.payload, write.expected_version
                    )
        except UNAVAILABLE_ERRORS as e:
            raise ProviderUnavailableError(self.name, type(e).__name__) from e

        logger.debug("SQL_COMMIT", extra={"keys": sorted(versions)})
        return versions

    async def replicate(self, blobs: list[VersionedBlob]) -> None:
        written: list[str] = []
        try:
            async with self._session_factory() as session, session.begin():
                for blob in blobs:
                    if await put_blob_version(session, blob.key, blob.version, blob.payload):
                        written.append(blob.key)
        except UNAVAILABLE_ERRORS as e:
            raise ProviderUnavailableError(self.name, type(e).__name__) from e

        if written:
            logger.debug("SQL_REPLICATED", extra={"keys": sorted(written)})

    async def ping(self) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except UNAVAILABLE_ERRORS as e:
            raise ProviderUnavailableError(self.name, type(e).__name__) from e
