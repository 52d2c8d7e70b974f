"""
CardLedger services.

Business logic for the card economy: catalog, pricing, selling and trading.
"""

from cardledger.services.card_catalog import (
    CardCatalog,
    CardCatalogError,
    get_card_catalog,
    load_card_catalog,
    parse_card_master,
)
from cardledger.services.economy import Economy, build_economy
from cardledger.services.identity import Identity, IdentityResolver
from cardledger.services.pricing import DEFAULT_PRICE, RARITY_PRICES, PricingResolver
from cardledger.services.repositories import EconomyRepository, Loaded
from cardledger.services.sell_engine import (
    SellEngine,
    SellItem,
    SellResult,
    SellStatus,
    normalize_items,
)
from cardledger.services.trade_engine import DecisionResult, TradeEngine, clamp_to_ownership

__all__ = [
    "CardCatalog",
    "CardCatalogError",
    "DEFAULT_PRICE",
    "DecisionResult",
    "Economy",
    "EconomyRepository",
    "Identity",
    "IdentityResolver",
    "Loaded",
    "PricingResolver",
    "RARITY_PRICES",
    "SellEngine",
    "SellItem",
    "SellResult",
    "SellStatus",
    "TradeEngine",
    "build_economy",
    "clamp_to_ownership",
    "get_card_catalog",
    "load_card_catalog",
    "normalize_items",
    "parse_card_master",
]
