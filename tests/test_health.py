"""Tests for health check endpoints and app wiring."""

from httpx import ASGITransport, AsyncClient

from cardledger.api.deps import get_economy
from cardledger.main import app
from cardledger.services.economy import build_economy
from cardledger.storage.base import BlobWrite, ProviderUnavailableError, VersionedBlob
from cardledger.storage.layered import LayeredBlobStore


class UnreachableStore:
    name = "sql"

    async def load(self, key: str) -> VersionedBlob | None:
        raise ProviderUnavailableError(self.name, "OperationalError")

    async def commit(self, writes: list[BlobWrite]) -> dict[str, int]:
        raise ProviderUnavailableError(self.name, "OperationalError")

    async def replicate(self, blobs: list[VersionedBlob]) -> None:
        raise ProviderUnavailableError(self.name, "OperationalError")

    async def ping(self) -> None:
        raise ProviderUnavailableError(self.name, "OperationalError")


class TestApp:
    def test_app_title(self) -> None:
        assert app.title == "CardLedger"

    def test_routes_registered(self) -> None:
        paths = {route.path for route in app.routes}

        assert {
            "/health",
            "/ready",
            "/sell",
            "/sell/status",
            "/sell/preview",
            "/me/coins",
            "/me/stats",
            "/trade",
            "/trade/{session_id}/state",
            "/trade/{session_id}/select",
            "/trade/{session_id}/decision",
        } <= paths


class TestHealthEndpoint:
    async def test_health_returns_healthy(self, client: AsyncClient) -> None:
        """Liveness probe returns healthy."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.headers["cache-control"] == "no-store"

    async def test_health_no_storage_check(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.json().get("storage") is None


class TestReadyEndpoint:
    async def test_ready_returns_ready(self, client: AsyncClient) -> None:
        """Readiness probe returns ready when storage is reachable."""
        response = await client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["storage"] == "connected"
        assert data["catalog_cards"] == 6

    async def test_ready_fails_when_storage_down(self, catalog) -> None:
        economy = build_economy(LayeredBlobStore([UnreachableStore()]), catalog)
        app.dependency_overrides[get_economy] = lambda: economy

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/ready")

        app.dependency_overrides.clear()

        assert response.status_code == 503
        assert response.json()["status"] == "not ready"

    async def test_storage_down_is_structured_error(self, catalog) -> None:
        economy = build_economy(LayeredBlobStore([UnreachableStore()]), catalog)
        app.dependency_overrides[get_economy] = lambda: economy

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/sell/status", params={"playerId": "alice"})

        app.dependency_overrides.clear()

        assert response.status_code == 503
        assert response.json()["error"] == "STORAGE_UNAVAILABLE"
