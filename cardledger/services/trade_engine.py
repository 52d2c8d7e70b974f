"""
Trade Session State Machine.

Drives a trade session through its transition table (see
cardledger.models.trade) and, on acceptance, moves cards between the two
players' ledgers.

INVARIANTS:
- A caller's role comes from the session's stored participant ids only
- An action outside its stage or role is rejected and mutates nothing
- Selections are validated against the owner's current counts when made
- Acceptance re-validates both selections against CURRENT ownership and
  drops card instances that are no longer owned
- An accepted trade conserves every card's total across both players
- Both ledgers and the session are committed together or not at all
"""

import logging
import uuid
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from cardledger.models.card import normalize_card_id
from cardledger.models.failure import (
    InvalidRequestError,
    InvalidStageError,
    NoOwnershipError,
    NotParticipantError,
    PlayerNotFoundError,
    SelectionTooLargeError,
    SessionNotFoundError,
)
from cardledger.models.ledger import PlayerLedgerEntry
from cardledger.models.trade import (
    SELECTION_ACTIONS,
    TRANSITIONS,
    TradeAction,
    TradeRole,
    TradeSession,
    TradeSide,
    TradeStage,
)
from cardledger.services.repositories import (
    EconomyRepository,
    Loaded,
    ledger_key,
    ledger_write,
    session_write,
    trade_key,
)
from cardledger.services.sell_engine import utc_now
from cardledger.storage.locks import KeyedLocks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisionResult:
    stage: TradeStage
    message: str
    given: list[str]
    received: list[str]
    dropped: list[str]


def clamp_to_ownership(
    selection: list[str], entry: PlayerLedgerEntry
) -> tuple[list[str], list[str]]:
    """
    Split a selection into (still owned, no longer owned) card instances.

    Order is preserved. A card selected twice but owned once keeps its first
    instance.
    """
    used: Counter[str] = Counter()
    kept: list[str] = []
    dropped: list[str] = []
    for card_id in selection:
        if used[card_id] < entry.owned(card_id):
            used[card_id] += 1
            kept.append(card_id)
        else:
            dropped.append(card_id)
    return kept, dropped


class TradeEngine:
    def __init__(
        self,
        repository: EconomyRepository,
        locks: KeyedLocks,
        max_selection: int,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ):
        self.repository = repository
        self.locks = locks
        self.max_selection = max_selection
        self.clock = clock
        self.id_factory = id_factory

    @property
    def limits(self) -> dict[str, int]:
        return {"maxSelection": self.max_selection}

    async def open_session(self, initiator_id: str, partner_id: str) -> TradeSession:
        """
        Start a trade between two existing players.

        Raises:
            InvalidRequestError: If a player tries to trade with themself
            PlayerNotFoundError: If the partner has no ledger entry
        """
        if initiator_id == partner_id:
            raise InvalidRequestError("You cannot trade with yourself.")
        for player_id in (initiator_id, partner_id):
            if not (await self.repository.load_ledger(player_id)).exists:
                raise PlayerNotFoundError(player_id)

        now = self.clock().isoformat()
        session = TradeSession(
            session_id=self.id_factory(),
            initiator=TradeSide(player_id=initiator_id),
            partner=TradeSide(player_id=partner_id),
            stage=TradeStage.PICK_MINE,
            created_at=now,
            updated_at=now,
        )
        async with self.locks.hold(trade_key(session.session_id)):
            await self.repository.commit([session_write(session, 0)])

        logger.info(
            "TRADE_OPENED",
            extra={
                "session_id": session.session_id,
                "initiator": initiator_id,
                "partner": partner_id,
            },
        )
        return session

    async def _load(self, session_id: str) -> Loaded[TradeSession]:
        loaded = await self.repository.load_session(session_id)
        if loaded.record is None:
            raise SessionNotFoundError(session_id)
        return Loaded(loaded.record, loaded.version)

    def _authorize(
        self, session: TradeSession, caller_id: str, action: TradeAction
    ) -> TradeRole:
        """
        Check the caller's role and the session stage for an action.

        Raises:
            NotParticipantError: If the caller is not in the session
            InvalidStageError: If the stage or role does not permit the action
        """
        role = session.role_of(caller_id)
        if role is None:
            raise NotParticipantError(session.session_id)
        transition = TRANSITIONS[action]
        if session.stage != transition.stage or role != transition.role:
            logger.info(
                "TRADE_ACTION_REJECTED",
                extra={
                    "session_id": session.session_id,
                    "stage": session.stage.value,
                    "action": action.value,
                    "role": role.value,
                },
            )
            raise InvalidStageError(session.stage.value, action.value)
        return role

    async def get_state(self, session_id: str, caller_id: str) -> TradeSession:
        session = (await self._load(session_id)).record
        if session.role_of(caller_id) is None:
            raise NotParticipantError(session_id)
        return session

    async def select(
        self,
        session_id: str,
        caller_id: str,
        stage: TradeStage | None,
        cards: list[Any],
    ) -> TradeStage:
        """
        Submit the selection for the current picking stage.

        `stage` is the stage the caller believes the session is in; it must
        match the stored stage; None (an unrecognized stage name) never matches.

        Raises:
            SessionNotFoundError, NotParticipantError, InvalidStageError,
            SelectionTooLargeError, InvalidRequestError, NoOwnershipError
        """
        async with self.locks.hold(trade_key(session_id)):
            loaded = await self._load(session_id)
            session = loaded.record

            if session.role_of(caller_id) is None:
                raise NotParticipantError(session_id)
            action = SELECTION_ACTIONS.get(session.stage)
            if action is None or stage != session.stage:
                submitted = stage.value if stage else "unknown"
                raise InvalidStageError(session.stage.value, f"select:{submitted}")
            self._authorize(session, caller_id, action)

            if len(cards) > self.max_selection:
                raise SelectionTooLargeError(len(cards), self.max_selection)

            try:
                selection = [normalize_card_id(card) for card in cards]
            except ValueError as e:
                raise InvalidRequestError(str(e)) from e

            side = session.initiator if action == TradeAction.SELECT_MINE else session.partner
            owner = (await self.repository.load_ledger(side.player_id)).record
            for card_id, count in Counter(selection).items():
                if count > owner.owned(card_id):
                    raise NoOwnershipError(
                        detail={
                            "cardId": card_id,
                            "owner": side.player_id,
                            "owned": owner.owned(card_id),
                            "selected": count,
                        }
                    )

            side.selection = selection
            session.stage = TRANSITIONS[action].next_stage
            session.updated_at = self.clock().isoformat()
            await self.repository.commit([session_write(session, loaded.version)])

        logger.info(
            "TRADE_SELECTION_MADE",
            extra={
                "session_id": session_id,
                "action": action.value,
                "cards": selection,
                "next_stage": session.stage.value,
            },
        )
        return session.stage

    async def decide(
        self, session_id: str, caller_id: str, decision: TradeAction
    ) -> DecisionResult:
        """
        Accept or deny a trade in the Decision stage.

        Raises:
            SessionNotFoundError, NotParticipantError, InvalidStageError,
            InvalidRequestError
        """
        if decision not in (TradeAction.ACCEPT, TradeAction.DENY):
            raise InvalidRequestError(f"Unknown decision: {decision.value}")

        # Participants never change, so their ids are safe to read unlocked
        participants = (await self._load(session_id)).record
        initiator_id = participants.initiator.player_id
        partner_id = participants.partner.player_id

        async with self.locks.hold(
            trade_key(session_id), ledger_key(initiator_id), ledger_key(partner_id)
        ):
            loaded = await self._load(session_id)
            session = loaded.record
            self._authorize(session, caller_id, decision)
            session.updated_at = self.clock().isoformat()

            if decision == TradeAction.DENY:
                session.stage = TradeStage.DENIED
                await self.repository.commit([session_write(session, loaded.version)])
                logger.info("TRADE_DENIED", extra={"session_id": session_id})
                return DecisionResult(
                    stage=session.stage,
                    message="Trade denied.",
                    given=[],
                    received=[],
                    dropped=[],
                )

            initiator = await self.repository.load_ledger(initiator_id)
            partner = await self.repository.load_ledger(partner_id)

            given, dropped_given = clamp_to_ownership(session.initiator.selection, initiator.record)
            received, dropped_received = clamp_to_ownership(
                session.partner.selection, partner.record
            )

            for card_id in given:
                initiator.record.remove_cards(card_id, 1)
            for card_id in received:
                partner.record.remove_cards(card_id, 1)
            for card_id in given:
                partner.record.add_cards(card_id, 1)
            for card_id in received:
                initiator.record.add_cards(card_id, 1)
            initiator.record.updated_at = session.updated_at
            partner.record.updated_at = session.updated_at

            session.stage = TradeStage.ACCEPTED
            session.applied = {"given": given, "received": received}
            await self.repository.commit(
                [
                    ledger_write(initiator),
                    ledger_write(partner),
                    session_write(session, loaded.version),
                ]
            )

        dropped = dropped_given + dropped_received
        logger.info(
            "TRADE_ACCEPTED",
            extra={
                "session_id": session_id,
                "given": given,
                "received": received,
                "dropped": dropped,
            },
        )
        message = "Trade accepted."
        if dropped:
            message += f" {len(dropped)} card(s) no longer owned were left out."
        return DecisionResult(
            stage=TradeStage.ACCEPTED,
            message=message,
            given=given,
            received=received,
            dropped=dropped,
        )
