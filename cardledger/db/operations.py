"""
Database CRUD operations.

Provides async functions for reading and conditionally writing versioned
JSON blobs. Writes are compare-and-swap on the stored version.
"""

from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.models.db import JsonBlobDB
from cardledger.models.failure import ConcurrentModificationError


async def get_blob(session: AsyncSession, key: str) -> JsonBlobDB | None:
    """
    Get a blob by key.

    Returns None if nothing is stored under this key.
    """
    result = await session.execute(select(JsonBlobDB).where(JsonBlobDB.key == key))
    return result.scalar_one_or_none()


async def get_blob_version(session: AsyncSession, key: str) -> int:
    """Current version of a key, 0 if absent."""
    result = await session.execute(select(JsonBlobDB.version).where(JsonBlobDB.key == key))
    version = result.scalar_one_or_none()
    return int(version) if version is not None else 0


async def insert_blob(session: AsyncSession, key: str, payload: Any) -> int:
    """
    Insert a new blob at version 1.

    Raises ConcurrentModificationError if the key already exists. A
    conflicting insert that lands between the check and the flush leaves the
    session needing a rollback; the caller owns the transaction.
    """
    actual = await get_blob_version(session, key)
    if actual != 0:
        raise ConcurrentModificationError(key, expected=0, actual=actual)

    session.add(JsonBlobDB(key=key, version=1, payload=payload))
    try:
        await session.flush()
    except IntegrityError as e:
        raise ConcurrentModificationError(key, expected=0, actual=1) from e
    return 1


async def update_blob(session: AsyncSession, key: str, payload: Any, expected_version: int) -> int:
    """
    Replace a blob's payload if it is still at `expected_version`.

    Returns the new version.

    Raises ConcurrentModificationError if the stored version differs.
    """
    result = await session.execute(
        update(JsonBlobDB)
        .where(JsonBlobDB.key == key, JsonBlobDB.version == expected_version)
        .values(payload=payload, version=expected_version + 1)
        .execution_options(synchronize_session=False)
    )
    # rowcount is available on UPDATE results; type stubs incomplete for async
    if int(result.rowcount) != 1:  # type: ignore[attr-defined]
        actual = await get_blob_version(session, key)
        raise ConcurrentModificationError(key, expected=expected_version, actual=actual)
    return expected_version + 1


async def write_blob(session: AsyncSession, key: str, payload: Any, expected_version: int) -> int:
    """Insert or compare-and-swap update, depending on `expected_version`."""
    if expected_version == 0:
        return await insert_blob(session, key, payload)
    return await update_blob(session, key, payload, expected_version)


async def put_blob_version(session: AsyncSession, key: str, version: int, payload: Any) -> bool:
    """
    Store a copy of a blob at an explicit version.

    Only an absent key or an older stored version is overwritten. Returns
    True if the row was written.
    """
    actual = await get_blob_version(session, key)
    if actual >= version:
        return False
    if actual == 0:
        session.add(JsonBlobDB(key=key, version=version, payload=payload))
        await session.flush()
        return True
    result = await session.execute(
        update(JsonBlobDB)
        .where(JsonBlobDB.key == key, JsonBlobDB.version == actual)
        .values(payload=payload, version=version)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount) == 1  # type: ignore[attr-defined]
