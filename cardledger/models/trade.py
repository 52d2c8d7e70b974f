"""
Trade Session — two-party, two-stage card exchange.

The protocol is a closed transition table. Every action names the stage it
requires and the role that may perform it; anything else is rejected.

    PickMine   --initiator selects own cards-------> PickTheirs
    PickTheirs --initiator selects partner cards---> Decision
    Decision   --partner accepts-------------------> Accepted (terminal)
    Decision   --partner denies--------------------> Denied   (terminal)

INVARIANTS:
- A selection never holds more than the configured maximum of cards
- Selections are frozen once the session reaches Decision
- Terminal sessions are kept as an archive and never change again
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TradeStage(str, Enum):
    PICK_MINE = "PickMine"
    PICK_THEIRS = "PickTheirs"
    DECISION = "Decision"
    ACCEPTED = "Accepted"
    DENIED = "Denied"

    @property
    def is_terminal(self) -> bool:
        return self in (TradeStage.ACCEPTED, TradeStage.DENIED)


class TradeRole(str, Enum):
    INITIATOR = "initiator"
    PARTNER = "partner"


class TradeAction(str, Enum):
    SELECT_MINE = "select_mine"
    SELECT_THEIRS = "select_theirs"
    ACCEPT = "accept"
    DENY = "deny"


@dataclass(frozen=True, slots=True)
class Transition:
    stage: TradeStage
    role: TradeRole
    next_stage: TradeStage


TRANSITIONS: dict[TradeAction, Transition] = {
    TradeAction.SELECT_MINE: Transition(
        TradeStage.PICK_MINE, TradeRole.INITIATOR, TradeStage.PICK_THEIRS
    ),
    TradeAction.SELECT_THEIRS: Transition(
        TradeStage.PICK_THEIRS, TradeRole.INITIATOR, TradeStage.DECISION
    ),
    TradeAction.ACCEPT: Transition(TradeStage.DECISION, TradeRole.PARTNER, TradeStage.ACCEPTED),
    TradeAction.DENY: Transition(TradeStage.DECISION, TradeRole.PARTNER, TradeStage.DENIED),
}

# The selection action available in each picking stage
SELECTION_ACTIONS: dict[TradeStage, TradeAction] = {
    TradeStage.PICK_MINE: TradeAction.SELECT_MINE,
    TradeStage.PICK_THEIRS: TradeAction.SELECT_THEIRS,
}


@dataclass
class TradeSide:
    """One participant and the cards they give up in the trade."""

    player_id: str
    selection: list[str] = field(default_factory=list)

    def to_blob(self) -> dict[str, Any]:
        return {"playerId": self.player_id, "selection": list(self.selection)}

    @classmethod
    def from_blob(cls, blob: dict[str, Any]) -> "TradeSide":
        return cls(
            player_id=str(blob["playerId"]),
            selection=[str(card_id) for card_id in blob.get("selection") or []],
        )


@dataclass
class TradeSession:
    """
    Per-session trade state.

    The initiator's selection is what they give; the partner's selection is
    what the initiator asked for from the partner's collection.

    `applied` records the swap that was actually executed on acceptance,
    after dropping cards that were no longer owned.
    """

    session_id: str
    initiator: TradeSide
    partner: TradeSide
    stage: TradeStage = TradeStage.PICK_MINE
    created_at: str | None = None
    updated_at: str | None = None
    applied: dict[str, list[str]] | None = None

    def role_of(self, player_id: str) -> TradeRole | None:
        """Resolve a caller's role from the stored participant ids."""
        if player_id == self.initiator.player_id:
            return TradeRole.INITIATOR
        if player_id == self.partner.player_id:
            return TradeRole.PARTNER
        return None

    def to_blob(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "initiator": self.initiator.to_blob(),
            "partner": self.partner.to_blob(),
            "stage": self.stage.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "applied": self.applied,
        }

    @classmethod
    def from_blob(cls, blob: dict[str, Any]) -> "TradeSession":
        return cls(
            session_id=str(blob["sessionId"]),
            initiator=TradeSide.from_blob(blob["initiator"]),
            partner=TradeSide.from_blob(blob["partner"]),
            stage=TradeStage(blob["stage"]),
            created_at=blob.get("createdAt"),
            updated_at=blob.get("updatedAt"),
            applied=blob.get("applied"),
        )
