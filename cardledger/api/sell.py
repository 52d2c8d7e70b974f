"""
Sell API endpoints.

Daily quota status, price preview and the sell itself.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header
from pydantic import AliasChoices, Field

from cardledger.api.deps import CamelModel, get_economy, get_identity, to_amount
from cardledger.services.economy import Economy
from cardledger.services.identity import Identity
from cardledger.services.sell_engine import normalize_items

router = APIRouter(prefix="/sell", tags=["sell"])

IDEMPOTENCY_KEY_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


class SellLine(CamelModel):
    """One line of a sell request."""

    card_id: str | int = Field(
        ...,
        validation_alias=AliasChoices("cardId", "number", "card_id"),
        description="Card id, zero-padded to 3 digits on receipt",
        examples=["012"],
    )
    qty: int = Field(default=0, description="Quantity to sell; non-positive lines are ignored")


class SellRequest(CamelModel):
    items: list[SellLine] = Field(
        default_factory=list,
        examples=[[{"cardId": "001", "qty": 2}, {"cardId": "002", "qty": 1}]],
    )


class SellStatusResponse(CamelModel):
    ok: bool = True
    sold_today: int
    remaining: int
    limit: int
    reset_at_iso: str = Field(alias="resetAtISO")


class SellPreviewResponse(CamelModel):
    ok: bool = True
    credited: float


class SellResponse(CamelModel):
    ok: bool = True
    message: str
    credited: float
    sold_count: int
    balance: float
    owned_counts: dict[str, int] = Field(default_factory=dict)
    sold_today: int
    remaining: int


@router.get("/status", response_model=SellStatusResponse)
async def sell_status(
    identity: Annotated[Identity, Depends(get_identity)],
    economy: Annotated[Economy, Depends(get_economy)],
) -> SellStatusResponse:
    """Units sold today, what is left, and when the quota resets (next UTC midnight)."""
    status = await economy.sell_engine.sell_status(identity.player_id)
    return SellStatusResponse(
        sold_today=status.sold_today,
        remaining=status.remaining,
        limit=status.limit,
        reset_at_iso=status.reset_at.isoformat().replace("+00:00", "Z"),
    )


@router.post("/preview", response_model=SellPreviewResponse)
async def sell_preview(
    request: SellRequest,
    economy: Annotated[Economy, Depends(get_economy)],
) -> SellPreviewResponse:
    """
    Price a sell without writing anything.

    Ownership and quota are not checked.
    """
    items = normalize_items([(line.card_id, line.qty) for line in request.items])
    credited = economy.sell_engine.preview_sell(None, items)
    return SellPreviewResponse(credited=to_amount(credited))


@router.post("", response_model=SellResponse)
async def sell(
    request: SellRequest,
    identity: Annotated[Identity, Depends(get_identity)],
    economy: Annotated[Economy, Depends(get_economy)],
    idempotency_key: Annotated[
        str | None, Header(pattern=IDEMPOTENCY_KEY_PATTERN, description="Retry token")
    ] = None,
) -> SellResponse:
    """
    Sell cards for coins.

    Rejects the whole request if it exceeds today's remaining quota.
    Quantities above what the player owns are clamped.

    A retry carrying the same Idempotency-Key returns the original result
    without selling again.
    The key is 1-64 letters, digits, "_" or "-"; reusing it for a different
    request is rejected.
    """
    items = normalize_items([(line.card_id, line.qty) for line in request.items])
    result = await economy.sell_engine.execute_sell(
        identity.player_id, items, idempotency_key=idempotency_key
    )
    return SellResponse(
        message=f"Sold {result.sold_count} card(s)",
        credited=to_amount(result.credited),
        sold_count=result.sold_count,
        balance=to_amount(result.new_balance),
        owned_counts=result.new_owned_counts,
        sold_today=result.sold_today,
        remaining=result.remaining,
    )
