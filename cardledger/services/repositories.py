"""
Typed access to the economy's stored records.

Every record lives under its own logical key so that locking and version
checks are per player and per session:

    ledger/<playerId>     PlayerLedgerEntry
    quota/<playerId>      {dayKey: unitsSold}
    trade/<sessionId>     TradeSession
    identity/<token>      {playerId, displayName}   (written by the issuer)
    stats/<playerId>      {wins, losses}            (written by the game)
    receipt/<playerId>/<idempotencyKey>              stored sell result
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from cardledger.models.ledger import DailyQuotaEntry, PlayerLedgerEntry, PlayerStats
from cardledger.models.trade import TradeSession
from cardledger.storage.base import BlobStore, BlobWrite

T = TypeVar("T")


def ledger_key(player_id: str) -> str:
    return f"ledger/{player_id}"


def quota_key(player_id: str) -> str:
    return f"quota/{player_id}"


def trade_key(session_id: str) -> str:
    return f"trade/{session_id}"


def identity_key(token: str) -> str:
    return f"identity/{token}"


def stats_key(player_id: str) -> str:
    return f"stats/{player_id}"


def receipt_key(player_id: str, idempotency_key: str) -> str:
    return f"receipt/{player_id}/{idempotency_key}"


@dataclass
class Loaded(Generic[T]):
    """A record together with the version it was read at (0 = absent)."""

    record: T
    version: int

    @property
    def exists(self) -> bool:
        return self.version > 0


class EconomyRepository:
    def __init__(self, store: BlobStore):
        self.store = store

    async def _payload(self, key: str) -> tuple[Any, int]:
        blob = await self.store.load(key)
        if blob is None:
            return None, 0
        return blob.payload, blob.version

    async def load_ledger(self, player_id: str) -> Loaded[PlayerLedgerEntry]:
        """Load a ledger entry; absent players get an empty, unsaved entry."""
        payload, version = await self._payload(ledger_key(player_id))
        if not isinstance(payload, dict):
            return Loaded(PlayerLedgerEntry(player_id=player_id), version)
        return Loaded(PlayerLedgerEntry.from_blob(player_id, payload), version)

    async def load_quota(self, player_id: str) -> Loaded[DailyQuotaEntry]:
        payload, version = await self._payload(quota_key(player_id))
        if not isinstance(payload, dict):
            return Loaded(DailyQuotaEntry(player_id=player_id), version)
        return Loaded(DailyQuotaEntry.from_blob(player_id, payload), version)

    async def load_session(self, session_id: str) -> Loaded[TradeSession | None]:
        payload, version = await self._payload(trade_key(session_id))
        if not isinstance(payload, dict):
            return Loaded(None, version)
        return Loaded(TradeSession.from_blob(payload), version)

    async def load_identity(self, token: str) -> dict[str, Any] | None:
        payload, _ = await self._payload(identity_key(token))
        return payload if isinstance(payload, dict) else None

    async def load_stats(self, player_id: str) -> PlayerStats:
        payload, _ = await self._payload(stats_key(player_id))
        return PlayerStats.from_blob(payload if isinstance(payload, dict) else None)

    async def load_receipt(self, player_id: str, idempotency_key: str) -> dict[str, Any] | None:
        payload, _ = await self._payload(receipt_key(player_id, idempotency_key))
        return payload if isinstance(payload, dict) else None

    async def commit(self, writes: list[BlobWrite]) -> dict[str, int]:
        return await self.store.commit(writes)


def ledger_write(loaded: Loaded[PlayerLedgerEntry]) -> BlobWrite:
    entry = loaded.record
    return BlobWrite(ledger_key(entry.player_id), entry.to_blob(), loaded.version)


def quota_write(loaded: Loaded[DailyQuotaEntry]) -> BlobWrite:
    entry = loaded.record
    return BlobWrite(quota_key(entry.player_id), entry.to_blob(), loaded.version)


def session_write(session: TradeSession, version: int) -> BlobWrite:
    return BlobWrite(trade_key(session.session_id), session.to_blob(), version)
