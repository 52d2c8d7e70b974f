from cardledger.api.health import router as health_router
from cardledger.api.player import router as player_router
from cardledger.api.sell import router as sell_router
from cardledger.api.trade import router as trade_router

__all__ = [
    "health_router",
    "player_router",
    "sell_router",
    "trade_router",
]
