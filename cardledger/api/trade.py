"""
Trade API endpoints.

Drives a trade session through PickMine -> PickTheirs -> Decision.
The caller's role is always resolved from their identity, never from the
request body.
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends
from pydantic import Field

from cardledger.api.deps import CamelModel, get_economy, get_identity
from cardledger.models.trade import TradeAction, TradeSession, TradeStage
from cardledger.services.economy import Economy
from cardledger.services.identity import Identity

router = APIRouter(prefix="/trade", tags=["trade"])


class TradeSideResponse(CamelModel):
    player_id: str
    selection: list[str] = Field(default_factory=list)


class TradeStateResponse(CamelModel):
    ok: bool = True
    session_id: str
    stage: TradeStage
    initiator: TradeSideResponse
    partner: TradeSideResponse
    limits: dict[str, int] = Field(default_factory=dict)
    your_role: str | None = None
    created_at: str | None = None
    applied: dict[str, list[str]] | None = None


class OpenTradeRequest(CamelModel):
    partner_id: str = Field(..., min_length=1, description="Player to trade with")


class SelectRequest(CamelModel):
    stage: str = Field(..., description="Stage the selection is for", examples=["PickMine"])
    cards: list[str | int] = Field(
        default_factory=list,
        description="Card ids; repeat an id to select several copies",
        examples=[["001", "001", "014"]],
    )


class SelectResponse(CamelModel):
    ok: bool = True
    new_stage: TradeStage


class DecisionRequest(CamelModel):
    decision: Literal["accept", "deny"]


class DecisionResponse(CamelModel):
    ok: bool = True
    stage: TradeStage
    message: str
    given: list[str] = Field(default_factory=list)
    received: list[str] = Field(default_factory=list)
    dropped: list[str] = Field(default_factory=list)


def _parse_stage(raw: str) -> TradeStage | None:
    """Match a stage name case-insensitively ("pickmine" -> PickMine)."""
    for stage in TradeStage:
        if stage.value.lower() == raw.strip().lower():
            return stage
    return None


def _state_response(
    session: TradeSession, caller_id: str, limits: dict[str, int]
) -> TradeStateResponse:
    role = session.role_of(caller_id)
    return TradeStateResponse(
        session_id=session.session_id,
        stage=session.stage,
        initiator=TradeSideResponse(
            player_id=session.initiator.player_id,
            selection=session.initiator.selection,
        ),
        partner=TradeSideResponse(
            player_id=session.partner.player_id,
            selection=session.partner.selection,
        ),
        limits=limits,
        your_role=role.value if role else None,
        created_at=session.created_at,
        applied=session.applied,
    )


@router.post("", response_model=TradeStateResponse)
async def open_trade(
    request: OpenTradeRequest,
    identity: Annotated[Identity, Depends(get_identity)],
    economy: Annotated[Economy, Depends(get_economy)],
) -> TradeStateResponse:
    """Start a trade with another player. The caller becomes the initiator."""
    engine = economy.trade_engine
    session = await engine.open_session(identity.player_id, request.partner_id)
    return _state_response(session, identity.player_id, engine.limits)


@router.get("/{session_id}/state", response_model=TradeStateResponse)
async def trade_state(
    session_id: str,
    identity: Annotated[Identity, Depends(get_identity)],
    economy: Annotated[Economy, Depends(get_economy)],
) -> TradeStateResponse:
    """Current stage, both selections and limits. Participants only."""
    engine = economy.trade_engine
    session = await engine.get_state(session_id, identity.player_id)
    return _state_response(session, identity.player_id, engine.limits)


@router.post("/{session_id}/select", response_model=SelectResponse)
async def trade_select(
    session_id: str,
    request: SelectRequest,
    identity: Annotated[Identity, Depends(get_identity)],
    economy: Annotated[Economy, Depends(get_economy)],
) -> SelectResponse:
    """
    Submit the initiator's selection for the current picking stage.

    PickMine selects from the initiator's own cards; PickTheirs selects from
    the partner's cards. Selections above the limit are rejected.
    """
    new_stage = await economy.trade_engine.select(
        session_id,
        identity.player_id,
        _parse_stage(request.stage),
        list(request.cards),
    )
    return SelectResponse(new_stage=new_stage)


@router.post("/{session_id}/decision", response_model=DecisionResponse)
async def trade_decision(
    session_id: str,
    request: DecisionRequest,
    identity: Annotated[Identity, Depends(get_identity)],
    economy: Annotated[Economy, Depends(get_economy)],
) -> DecisionResponse:
    """
    Accept or deny the trade. Partner only, Decision stage only.

    On accept, cards the initiator or partner no longer own are left out of
    the swap and reported in `dropped`.
    """
    result = await economy.trade_engine.decide(
        session_id, identity.player_id, TradeAction(request.decision)
    )
    return DecisionResponse(
        stage=result.stage,
        message=result.message,
        given=result.given,
        received=result.received,
        dropped=result.dropped,
    )
