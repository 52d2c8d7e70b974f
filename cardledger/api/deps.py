"""
Shared API dependencies and response helpers.
"""

from decimal import Decimal
from typing import Annotated

from fastapi import Depends, Header, Query, Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from cardledger.models.ledger import round_cents
from cardledger.services.economy import Economy
from cardledger.services.identity import Identity


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def get_economy(request: Request) -> Economy:
    """
    Dependency that provides the application's economy services.

    Built once at startup (see cardledger.main).
    """
    economy: Economy = request.app.state.economy
    return economy


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def get_identity(
    economy: Annotated[Economy, Depends(get_economy)],
    player_id: Annotated[str | None, Query(alias="playerId")] = None,
    authorization: Annotated[str | None, Header()] = None,
    x_player_token: Annotated[str | None, Header()] = None,
) -> Identity:
    """
    Resolve the caller's identity.

    Accepts a Bearer token, an X-Player-Token header, or a playerId query
    parameter.
    """
    token = bearer_token(authorization) or x_player_token
    return await economy.identity.resolve(player_id=player_id, token=token)


def to_amount(value: Decimal) -> float:
    """Money as a JSON number with at most two decimals."""
    return float(round_cents(value))


def format_coins(value: Decimal) -> str:
    """Format coins with up to 2 decimals, trimming trailing zeros (2.50 -> "2.5")."""
    text = f"{round_cents(value):.2f}"
    if text.endswith(".00"):
        return text[:-3]
    if text.endswith("0"):
        return text[:-1]
    return text
