"""
Sell Engine — rarity-priced selling under a daily UTC quota.

INVARIANTS:
- A player's units sold today never exceed the daily limit
- A request that would exceed the remaining quota is rejected in full
- Owned counts never go negative: quantities are clamped to ownership
- credited is the sum of price * clamped quantity, rounded once at the end
- new balance == old balance + credited
- Ledger and quota writes of one sell are committed together or not at all

ENFORCEMENT:
All reads and writes of one sell happen while holding the player's ledger
and quota locks, and the commit is version-checked.
"""

import hashlib
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from cardledger.models.card import normalize_card_id
from cardledger.models.failure import (
    DailyLimitReachedError,
    InvalidRequestError,
    NoOwnershipError,
    NothingToSellError,
)
from cardledger.models.ledger import day_key, next_utc_midnight, round_cents
from cardledger.services.pricing import PricingResolver
from cardledger.services.repositories import (
    EconomyRepository,
    ledger_key,
    ledger_write,
    quota_key,
    quota_write,
    receipt_key,
)
from cardledger.storage.base import BlobWrite
from cardledger.storage.locks import KeyedLocks

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class SellItem:
    card_id: str
    qty: int


def normalize_items(raw_items: list[tuple[Any, int]]) -> list[SellItem]:
    """
    Normalize (card_id, qty) pairs.

    Raises:
        InvalidRequestError: If a card id is not a numeric id
    """
    items: list[SellItem] = []
    for raw_id, qty in raw_items:
        try:
            card_id = normalize_card_id(raw_id)
        except ValueError as e:
            raise InvalidRequestError(str(e), detail={"cardId": str(raw_id)}) from e
        items.append(SellItem(card_id=card_id, qty=int(qty)))
    return items


def request_fingerprint(items: list[SellItem]) -> str:
    """Stable hash of a normalized sell request, stored with its receipt."""
    lines = [[item.card_id, item.qty] for item in items]
    return hashlib.sha256(json.dumps(lines).encode()).hexdigest()


@dataclass(frozen=True)
class SellStatus:
    sold_today: int
    remaining: int
    limit: int
    reset_at: datetime


@dataclass(frozen=True)
class SellResult:
    credited: Decimal
    sold_count: int
    new_balance: Decimal
    new_owned_counts: dict[str, int]
    sold_today: int
    remaining: int

    def to_blob(self) -> dict[str, Any]:
        return {
            "credited": str(self.credited),
            "soldCount": self.sold_count,
            "newBalance": str(self.new_balance),
            "newOwnedCounts": dict(self.new_owned_counts),
            "soldToday": self.sold_today,
            "remaining": self.remaining,
        }

    @classmethod
    def from_blob(cls, blob: dict[str, Any]) -> "SellResult":
        return cls(
            credited=Decimal(blob["credited"]),
            sold_count=int(blob["soldCount"]),
            new_balance=Decimal(blob["newBalance"]),
            new_owned_counts={k: int(v) for k, v in blob["newOwnedCounts"].items()},
            sold_today=int(blob["soldToday"]),
            remaining=int(blob["remaining"]),
        )


class SellEngine:
    def __init__(
        self,
        repository: EconomyRepository,
        pricing: PricingResolver,
        locks: KeyedLocks,
        daily_limit: int,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.pricing = pricing
        self.locks = locks
        self.daily_limit = daily_limit
        self.clock = clock

    def preview_sell(self, player_id: str | None, items: list[SellItem]) -> Decimal:
        """
        Price a sell without consulting ownership or quota.

        Purely informational: no reads, no writes.
        """
        credited = self.pricing.quote([(item.card_id, item.qty) for item in items])
        logger.debug(
            "SELL_PREVIEWED",
            extra={"player_id": player_id, "lines": len(items), "credited": str(credited)},
        )
        return credited

    async def sell_status(self, player_id: str) -> SellStatus:
        now = self.clock()
        quota = await self.repository.load_quota(player_id)
        sold_today = quota.record.sold_on(day_key(now))
        return SellStatus(
            sold_today=sold_today,
            remaining=max(0, self.daily_limit - sold_today),
            limit=self.daily_limit,
            reset_at=next_utc_midnight(now),
        )

    async def execute_sell(
        self,
        player_id: str,
        items: list[SellItem],
        idempotency_key: str | None = None,
    ) -> SellResult:
        """
        Sell cards for currency.

        Raises:
            NothingToSellError: If no positive quantity was requested
            DailyLimitReachedError: If the request exceeds today's remaining quota
            NoOwnershipError: If the player owns none of the requested cards
            InvalidRequestError: If the idempotency key was used for another request
            ConcurrentModificationError: If another writer changed the records
            StorageUnavailableError: If no storage provider is reachable
        """
        async with self.locks.hold(ledger_key(player_id), quota_key(player_id)):
            fingerprint = request_fingerprint(items)
            if idempotency_key:
                receipt = await self.repository.load_receipt(player_id, idempotency_key)
                if receipt is not None:
                    if receipt.get("requestHash") != fingerprint:
                        raise InvalidRequestError(
                            "Idempotency-Key was already used for a different sell request.",
                            detail={"idempotencyKey": idempotency_key},
                        )
                    logger.info(
                        "SELL_REPLAYED",
                        extra={"player_id": player_id, "idempotency_key": idempotency_key},
                    )
                    return SellResult.from_blob(receipt)

            now = self.clock()
            today = day_key(now)

            # 1. Quota usage for today
            quota = await self.repository.load_quota(player_id)
            used = quota.record.sold_on(today)
            remaining = max(0, self.daily_limit - used)

            # 2. Whole-request checks
            requested = sum(max(0, item.qty) for item in items)
            if requested == 0:
                raise NothingToSellError()
            if requested > remaining:
                logger.info(
                    "DAILY_LIMIT_REACHED",
                    extra={
                        "player_id": player_id,
                        "requested": requested,
                        "remaining": remaining,
                        "limit": self.daily_limit,
                    },
                )
                raise DailyLimitReachedError(
                    allowed=remaining, requested=requested, limit=self.daily_limit
                )

            # 3. Clamp to ownership; repeated lines share the owned count
            ledger = await self.repository.load_ledger(player_id)
            entry = ledger.record
            sold: dict[str, int] = {}
            credited = Decimal("0")
            sold_count = 0
            for item in items:
                if item.qty <= 0:
                    continue
                available = entry.owned(item.card_id) - sold.get(item.card_id, 0)
                sell_qty = min(item.qty, max(0, available))
                if sell_qty == 0:
                    continue
                sold[item.card_id] = sold.get(item.card_id, 0) + sell_qty
                credited += self.pricing.price_of(item.card_id) * sell_qty
                sold_count += sell_qty

            # 4. Nothing owned
            if sold_count == 0:
                raise NoOwnershipError(detail={"requested": requested})

            # 5. Final daily cap (already guaranteed by step 2)
            sold_count = min(sold_count, remaining)

            # 6. Apply
            credited = round_cents(credited)
            entry.credit(credited)
            for card_id, qty in sold.items():
                entry.remove_cards(card_id, qty)
            entry.updated_at = now.isoformat()
            quota.record.record(today, sold_count)

            result = SellResult(
                credited=credited,
                sold_count=sold_count,
                new_balance=entry.balance,
                new_owned_counts=dict(entry.owned_counts),
                sold_today=quota.record.sold_on(today),
                remaining=max(0, self.daily_limit - quota.record.sold_on(today)),
            )

            # 7. Persist as one unit
            writes = [ledger_write(ledger), quota_write(quota)]
            if idempotency_key:
                receipt = {**result.to_blob(), "requestHash": fingerprint}
                writes.append(BlobWrite(receipt_key(player_id, idempotency_key), receipt, 0))
            await self.repository.commit(writes)

        logger.info(
            "SELL_EXECUTED",
            extra={
                "player_id": player_id,
                "sold_count": sold_count,
                "credited": str(credited),
                "sold_today": result.sold_today,
            },
        )
        return result
