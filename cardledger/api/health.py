"""
Health check endpoints.

Provides liveness and readiness probes with storage connectivity checks.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from cardledger.api.deps import get_economy
from cardledger.models.failure import StorageUnavailableError
from cardledger.services.economy import Economy

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    storage: str | None = None
    catalog_cards: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    economy: Annotated[Economy, Depends(get_economy)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns ready if at least one storage provider is reachable.
    Returns 503 otherwise.
    """
    try:
        await economy.store.ping()
    except StorageUnavailableError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", storage="unavailable")
    return HealthResponse(status="ready", storage="connected", catalog_cards=len(economy.catalog))
