"""
Player ledger and daily quota records.

These mirror the JSON blobs held by the storage collaborator. Balances are
kept as Decimal and persisted as 2-decimal strings so cents never drift.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")


def round_cents(amount: Decimal) -> Decimal:
    """Round half-up at the cent."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _parse_balance(raw: Any) -> Decimal:
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return Decimal("0.00")
    if not value.is_finite() or value < 0:
        return Decimal("0.00")
    return round_cents(value)


def _parse_counts(raw: Any) -> dict[str, int]:
    counts: dict[str, int] = {}
    if not isinstance(raw, dict):
        return counts
    for card_id, qty in raw.items():
        try:
            n = int(qty)
        except (TypeError, ValueError):
            continue
        counts[str(card_id)] = max(0, n)
    return counts


def day_key(moment: datetime) -> str:
    """UTC day key (YYYY-MM-DD) for a timezone-aware datetime."""
    return moment.astimezone(UTC).date().isoformat()


def next_utc_midnight(moment: datetime) -> datetime:
    """Start of the UTC day after `moment`, when the daily quota resets."""
    day = moment.astimezone(UTC).date() + timedelta(days=1)
    return datetime(day.year, day.month, day.day, tzinfo=UTC)


@dataclass
class PlayerLedgerEntry:
    """
    A player's currency balance and owned card counts.

    INVARIANTS:
    - balance is never negative
    - owned_counts values are never negative
    """

    player_id: str
    display_name: str | None = None
    balance: Decimal = Decimal("0.00")
    owned_counts: dict[str, int] = field(default_factory=dict)
    updated_at: str | None = None

    def owned(self, card_id: str) -> int:
        """Get quantity owned of a specific card."""
        return self.owned_counts.get(card_id, 0)

    def add_cards(self, card_id: str, quantity: int) -> None:
        self.owned_counts[card_id] = self.owned(card_id) + quantity

    def remove_cards(self, card_id: str, quantity: int) -> None:
        remaining = self.owned(card_id) - quantity
        if remaining < 0:
            raise ValueError(f"Cannot remove {quantity} of {card_id}: only {self.owned(card_id)}")
        self.owned_counts[card_id] = remaining

    def credit(self, amount: Decimal) -> None:
        if amount < 0:
            raise ValueError("Credit amount must not be negative")
        self.balance = round_cents(self.balance + amount)

    def to_blob(self) -> dict[str, Any]:
        return {
            "playerId": self.player_id,
            "displayName": self.display_name,
            "balance": str(round_cents(self.balance)),
            "ownedCounts": dict(self.owned_counts),
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_blob(cls, player_id: str, blob: dict[str, Any]) -> "PlayerLedgerEntry":
        return cls(
            player_id=player_id,
            display_name=blob.get("displayName"),
            balance=_parse_balance(blob.get("balance", "0")),
            owned_counts=_parse_counts(blob.get("ownedCounts")),
            updated_at=blob.get("updatedAt"),
        )


@dataclass
class DailyQuotaEntry:
    """
    Units sold per UTC day for one player.

    Old day keys are kept as history; a new day starts at zero.
    """

    player_id: str
    sold_by_day: dict[str, int] = field(default_factory=dict)

    def sold_on(self, key: str) -> int:
        return max(0, self.sold_by_day.get(key, 0))

    def record(self, key: str, quantity: int) -> None:
        self.sold_by_day[key] = self.sold_on(key) + quantity

    def to_blob(self) -> dict[str, Any]:
        return dict(self.sold_by_day)

    @classmethod
    def from_blob(cls, player_id: str, blob: dict[str, Any]) -> "DailyQuotaEntry":
        return cls(player_id=player_id, sold_by_day=_parse_counts(blob))


@dataclass(frozen=True, slots=True)
class PlayerStats:
    wins: int = 0
    losses: int = 0

    @classmethod
    def from_blob(cls, blob: dict[str, Any] | None) -> "PlayerStats":
        if not blob:
            return cls()
        counts = _parse_counts({"wins": blob.get("wins", 0), "losses": blob.get("losses", 0)})
        return cls(wins=counts.get("wins", 0), losses=counts.get("losses", 0))
