"""
Player API endpoints.

Read-only views of the caller's coin balance and match stats.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from cardledger.api.deps import CamelModel, format_coins, get_economy, get_identity, to_amount
from cardledger.services.economy import Economy
from cardledger.services.identity import Identity
from cardledger.services.sell_engine import utc_now

router = APIRouter(prefix="/me", tags=["player"])


class CoinsResponse(CamelModel):
    ok: bool = True
    player_id: str
    display_name: str | None = None
    coins: float
    coins_pretty: str
    updated_at: str


class StatsResponse(CamelModel):
    ok: bool = True
    player_id: str
    coins: float
    wins: int = 0
    losses: int = 0


@router.get("/coins", response_model=CoinsResponse)
async def my_coins(
    identity: Annotated[Identity, Depends(get_identity)],
    economy: Annotated[Economy, Depends(get_economy)],
) -> CoinsResponse:
    """Current coin balance, raw and formatted for display."""
    entry = (await economy.repository.load_ledger(identity.player_id)).record
    return CoinsResponse(
        player_id=identity.player_id,
        display_name=entry.display_name,
        coins=to_amount(entry.balance),
        coins_pretty=format_coins(entry.balance),
        updated_at=utc_now().isoformat(),
    )


@router.get("/stats", response_model=StatsResponse)
async def my_stats(
    identity: Annotated[Identity, Depends(get_identity)],
    economy: Annotated[Economy, Depends(get_economy)],
) -> StatsResponse:
    """Coins plus win/loss record. Missing stats read as zero."""
    entry = (await economy.repository.load_ledger(identity.player_id)).record
    stats = await economy.repository.load_stats(identity.player_id)
    return StatsResponse(
        player_id=identity.player_id,
        coins=to_amount(entry.balance),
        wins=stats.wins,
        losses=stats.losses,
    )
