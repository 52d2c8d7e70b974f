"""
Wiring for the economy services.

One Economy is built per application at startup and shared by all
requests. It owns the per-key locks, so every mutating request in the
process serializes through the same lock registry.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from cardledger.config import settings
from cardledger.services.card_catalog import CardCatalog
from cardledger.services.identity import IdentityResolver
from cardledger.services.pricing import PricingResolver
from cardledger.services.repositories import EconomyRepository
from cardledger.services.sell_engine import SellEngine, utc_now
from cardledger.services.trade_engine import TradeEngine
from cardledger.storage.base import BlobStore
from cardledger.storage.locks import KeyedLocks


@dataclass
class Economy:
    store: BlobStore
    catalog: CardCatalog
    repository: EconomyRepository
    identity: IdentityResolver
    sell_engine: SellEngine
    trade_engine: TradeEngine


def build_economy(
    store: BlobStore,
    catalog: CardCatalog,
    daily_limit: int | None = None,
    max_selection: int | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> Economy:
    """Build the services over a store. Limits default to settings."""
    repository = EconomyRepository(store)
    locks = KeyedLocks()
    return Economy(
        store=store,
        catalog=catalog,
        repository=repository,
        identity=IdentityResolver(repository, locks, clock),
        sell_engine=SellEngine(
            repository,
            PricingResolver(catalog),
            locks,
            daily_limit=settings.daily_sell_limit if daily_limit is None else daily_limit,
            clock=clock,
        ),
        trade_engine=TradeEngine(
            repository,
            locks,
            max_selection=(
                settings.max_trade_selection if max_selection is None else max_selection
            ),
            clock=clock,
        ),
    )
