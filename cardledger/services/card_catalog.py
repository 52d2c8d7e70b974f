"""
Card Master Index.

Loads and caches the static card master table. The table is read once at
startup and never mutated at runtime.

A missing or unreadable table yields an empty catalog: pricing falls back
to the Common price, and metadata lookups return not-found.
"""

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

from cardledger.config import settings
from cardledger.models.card import CardMasterRecord, Rarity, normalize_card_id

logger = logging.getLogger(__name__)


class CardCatalogError(Exception):
    """Raised when the card master table cannot be loaded."""

    pass


@dataclass(frozen=True)
class CardCatalog:
    """Read-only card master index keyed by 3-digit card id."""

    records: dict[str, CardMasterRecord] = field(default_factory=dict)

    def lookup(self, card_id: str) -> CardMasterRecord | None:
        try:
            return self.records.get(normalize_card_id(card_id))
        except ValueError:
            return None

    def __len__(self) -> int:
        return len(self.records)


def parse_card_master(raw: Any) -> dict[str, CardMasterRecord]:
    """
    Build the index from a card master document.

    Accepts either a list of card objects or {"cards": [...]}. Each card
    may carry its id as "id" or "number". Entries without a usable id are
    skipped; the first entry for an id wins.
    """
    if isinstance(raw, dict):
        raw = raw.get("cards", [])
    if not isinstance(raw, list):
        raise CardCatalogError("Card master must be a list or an object with a 'cards' list")

    records: dict[str, CardMasterRecord] = {}
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            card_id = normalize_card_id(entry.get("id", entry.get("number")))
        except ValueError:
            continue
        if card_id in records:
            continue
        records[card_id] = CardMasterRecord(
            card_id=card_id,
            rarity=Rarity.parse(entry.get("rarity")),
            name=str(entry.get("name") or ""),
            asset_ref=entry.get("image") or entry.get("asset") or entry.get("assetRef"),
        )
    return records


def load_card_catalog(path: Path | None = None) -> CardCatalog:
    """
    Load the card master table from file.

    Raises:
        CardCatalogError: If the file is missing or malformed
    """
    if path is None:
        path = Path(settings.card_master_path)

    if not path.exists():
        raise CardCatalogError(f"Card master not found at {path}")

    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        raise CardCatalogError(f"Card master at {path} is unreadable: {e}") from e

    return CardCatalog(records=parse_card_master(raw))


@lru_cache(maxsize=1)
def get_card_catalog() -> CardCatalog:
    """
    Get the cached card catalog.

    Cached after first load. Falls back to an empty catalog if the table
    cannot be loaded.
    """
    try:
        catalog = load_card_catalog()
    except CardCatalogError as e:
        logger.warning("CARD_MASTER_UNAVAILABLE", extra={"reason": str(e)})
        return CardCatalog()

    logger.info("CARD_MASTER_LOADED", extra={"cards": len(catalog)})
    return catalog
