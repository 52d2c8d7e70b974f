from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from cardledger.api.deps import get_economy
from cardledger.main import app
from cardledger.models.card import CardMasterRecord, Rarity
from cardledger.models.ledger import PlayerLedgerEntry
from cardledger.services.card_catalog import CardCatalog
from cardledger.services.economy import Economy, build_economy
from cardledger.services.repositories import identity_key, ledger_key, quota_key
from cardledger.storage.base import BlobStore, BlobWrite
from cardledger.storage.file_store import FileBlobStore


class FakeClock:
    """Settable clock for quota day-rollover tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 12, 0, tzinfo=UTC))


@pytest.fixture
def catalog() -> CardCatalog:
    """Small card master: one card per rarity plus odd entries."""
    records = [
        CardMasterRecord("001", Rarity.RARE, "Ember Drake"),
        CardMasterRecord("002", Rarity.COMMON, "Field Medic"),
        CardMasterRecord("003", Rarity.LEGENDARY, "The Warden"),
        CardMasterRecord("004", Rarity.UNCOMMON, "Trip Wire"),
        CardMasterRecord("005", Rarity.UNIQUE, "Founder's Sigil"),
        CardMasterRecord("006", None, "Misprint"),
    ]
    return CardCatalog(records={r.card_id: r for r in records})


@pytest.fixture
def store(tmp_path: Path) -> FileBlobStore:
    return FileBlobStore(tmp_path / "persist")


@pytest.fixture
def economy(store: FileBlobStore, catalog: CardCatalog, clock: FakeClock) -> Economy:
    return build_economy(store, catalog, daily_limit=5, max_selection=3, clock=clock)


class Seeder:
    """Writes fixture records straight into a blob store."""

    def __init__(self, store: BlobStore):
        self.store = store

    async def player(
        self,
        player_id: str,
        owned: dict[str, int] | None = None,
        balance: str = "0.00",
        token: str | None = None,
    ) -> None:
        """Write a ledger entry (and optionally an identity token) for a player."""
        entry = PlayerLedgerEntry(
            player_id=player_id,
            display_name=player_id.title(),
            balance=Decimal(balance),
            owned_counts=dict(owned or {}),
        )
        writes = [BlobWrite(ledger_key(player_id), entry.to_blob(), 0)]
        if token:
            writes.append(
                BlobWrite(
                    identity_key(token),
                    {"playerId": player_id, "displayName": player_id.title()},
                    0,
                )
            )
        await self.store.commit(writes)

    async def quota(self, player_id: str, sold_by_day: dict[str, int]) -> None:
        await self.store.commit([BlobWrite(quota_key(player_id), sold_by_day, 0)])

    async def ledger(self, player_id: str) -> PlayerLedgerEntry:
        blob = await self.store.load(ledger_key(player_id))
        assert blob is not None
        return PlayerLedgerEntry.from_blob(player_id, blob.payload)

    async def quota_today(self, player_id: str, day: str) -> int:
        blob = await self.store.load(quota_key(player_id))
        return 0 if blob is None else int(blob.payload.get(day, 0))


@pytest.fixture
def seed(store: FileBlobStore) -> Seeder:
    return Seeder(store)


@pytest.fixture
async def client(economy: Economy):
    """Async test client wired to the fixture economy."""
    app.dependency_overrides[get_economy] = lambda: economy

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
