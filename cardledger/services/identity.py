"""
Identity resolution.

Maps a caller's credential to a player id. Tokens are issued by an external
service that writes identity/<token> records; this module only reads them.

Resolution order:
1. Player token (Authorization: Bearer or X-Player-Token)
2. Bare player id (trusted callers only, player must already have a ledger)

A player seen for the first time through a token gets an empty ledger entry.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from cardledger.models.failure import (
    ConcurrentModificationError,
    MissingIdentityError,
    PlayerNotFoundError,
)
from cardledger.services.repositories import EconomyRepository, ledger_key, ledger_write
from cardledger.storage.locks import KeyedLocks

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Identity:
    player_id: str
    display_name: str | None = None


class IdentityResolver:
    def __init__(
        self,
        repository: EconomyRepository,
        locks: KeyedLocks,
        clock: Callable[[], datetime],
    ):
        self.repository = repository
        self.locks = locks
        self.clock = clock

    async def resolve(self, player_id: str | None, token: str | None) -> Identity:
        """
        Resolve the caller.

        Raises:
            MissingIdentityError: If neither a token nor a player id is given
            PlayerNotFoundError: If the token or player id is unknown
        """
        token = (token or "").strip()
        player_id = (player_id or "").strip()

        if token:
            record = await self.repository.load_identity(token)
            if record is None or not record.get("playerId"):
                raise PlayerNotFoundError()
            identity = Identity(
                player_id=str(record["playerId"]),
                display_name=record.get("displayName"),
            )
            await self._observe(identity)
            return identity

        if player_id:
            loaded = await self.repository.load_ledger(player_id)
            if not loaded.exists:
                raise PlayerNotFoundError(player_id)
            return Identity(player_id=player_id, display_name=loaded.record.display_name)

        raise MissingIdentityError()

    async def _observe(self, identity: Identity) -> None:
        """Create the player's ledger entry on first observation."""
        async with self.locks.hold(ledger_key(identity.player_id)):
            loaded = await self.repository.load_ledger(identity.player_id)
            if loaded.exists:
                return

            loaded.record.display_name = identity.display_name
            loaded.record.updated_at = self.clock().isoformat()
            try:
                await self.repository.commit([ledger_write(loaded)])
            except ConcurrentModificationError:
                # Created by another process in the meantime
                logger.info("PLAYER_CREATED_ELSEWHERE", extra={"player_id": identity.player_id})
                return

            logger.info("PLAYER_CREATED", extra={"player_id": identity.player_id})
