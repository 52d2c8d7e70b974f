from dataclasses import dataclass
from enum import Enum


class Rarity(str, Enum):
    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    LEGENDARY = "Legendary"
    UNIQUE = "Unique"

    @classmethod
    def parse(cls, raw: object) -> "Rarity | None":
        """
        Classify a free-form rarity string.

        Exact names match case-insensitively. Anything else is matched by
        substring (legendary, uncommon, rare, common), so "Ultra Rare"
        classifies as RARE. Returns None when nothing matches.
        """
        if not isinstance(raw, str) or not raw.strip():
            return None
        text = raw.strip().lower()
        for rarity in cls:
            if rarity.value.lower() == text:
                return rarity
        # "uncommon" contains "common", so order matters
        for rarity in (cls.LEGENDARY, cls.UNCOMMON, cls.RARE, cls.COMMON):
            if rarity.value.lower() in text:
                return rarity
        return None


def normalize_card_id(raw: object) -> str:
    """
    Normalize a card id to its 3-digit zero-padded form.

    Accepts ints and strings ("7", "007", 7). Raises ValueError for
    anything that is not a non-negative integer id.
    """
    if isinstance(raw, bool):
        raise ValueError(f"Invalid card id: {raw!r}")
    text = str(raw).strip()
    if not (text.isascii() and text.isdigit()):
        raise ValueError(f"Invalid card id: {raw!r}")
    return text.zfill(3)


@dataclass(frozen=True, slots=True)
class CardMasterRecord:
    """
    Static metadata for one card.

    Attributes:
        card_id: 3-digit zero-padded id, unique in the catalog
        rarity: Parsed rarity, None when missing or unrecognized
        name: Display name
        asset_ref: Reference to the card art asset
    """

    card_id: str
    rarity: Rarity | None
    name: str
    asset_ref: str | None = None
