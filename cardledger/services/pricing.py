"""
Pricing Resolver.

Maps a card id to its unit sell price through a fixed rarity table.
Unknown cards and missing or unrecognized rarities price as Common, so
pricing never blocks a sell.
"""

from decimal import Decimal

from cardledger.config import MAX_LINE_QTY
from cardledger.models.card import Rarity
from cardledger.models.ledger import round_cents
from cardledger.services.card_catalog import CardCatalog

RARITY_PRICES: dict[Rarity, Decimal] = {
    Rarity.LEGENDARY: Decimal("3.00"),
    Rarity.RARE: Decimal("2.00"),
    Rarity.UNCOMMON: Decimal("1.00"),
    Rarity.COMMON: Decimal("0.50"),
}

DEFAULT_PRICE = RARITY_PRICES[Rarity.COMMON]


class PricingResolver:
    def __init__(self, catalog: CardCatalog):
        self.catalog = catalog

    def price_of(self, card_id: str) -> Decimal:
        """Unit sell price for a card."""
        record = self.catalog.lookup(card_id)
        if record is None or record.rarity is None:
            return DEFAULT_PRICE
        return RARITY_PRICES.get(record.rarity, DEFAULT_PRICE)

    def quote(self, lines: list[tuple[str, int]]) -> Decimal:
        """
        Total price for (card_id, qty) lines.

        Non-positive quantities are ignored and each quantity is capped at
        MAX_LINE_QTY. The total is rounded once, half-up at the cent.
        """
        total = Decimal("0")
        for card_id, qty in lines:
            qty = min(qty, MAX_LINE_QTY)
            if qty <= 0:
                continue
            total += self.price_of(card_id) * qty
        return round_cents(total)
