"""Tests for sell API endpoints."""

import pytest
from httpx import AsyncClient

TODAY = "2026-10-19"


class TestSellStatus:
    async def test_status(self, client: AsyncClient, seed) -> None:
        await seed.player("alice")
        await seed.quota("alice", {TODAY: 2})

        response = await client.get("/sell/status", params={"playerId": "alice"})

        assert response.status_code == 200
        data = response.json()
        assert data == {
            "ok": True,
            "soldToday": 2,
            "remaining": 3,
            "limit": 5,
            "resetAtISO": "2026-10-20T00:00:00Z",
        }
        assert response.headers["cache-control"] == "no-store"

    async def test_status_with_bearer_token(self, client: AsyncClient, seed) -> None:
        await seed.player("alice", token="tok-alice")

        response = await client.get(
            "/sell/status", headers={"Authorization": "Bearer tok-alice"}
        )

        assert response.status_code == 200
        assert response.json()["remaining"] == 5

    async def test_missing_identity(self, client: AsyncClient) -> None:
        response = await client.get("/sell/status")

        assert response.status_code == 401
        data = response.json()
        assert data["ok"] is False
        assert data["error"] == "MISSING_IDENTITY"
        assert response.headers["cache-control"] == "no-store"

    async def test_unknown_player(self, client: AsyncClient) -> None:
        response = await client.get("/sell/status", params={"playerId": "ghost"})

        assert response.status_code == 404
        assert response.json()["error"] == "PLAYER_NOT_FOUND"


class TestSellPreview:
    async def test_preview(self, client: AsyncClient) -> None:
        response = await client.post(
            "/sell/preview",
            json={"items": [{"cardId": "001", "qty": 2}, {"cardId": 2, "qty": 1}]},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True, "credited": 4.5}

    async def test_preview_accepts_number_alias(self, client: AsyncClient) -> None:
        response = await client.post("/sell/preview", json={"items": [{"number": "3", "qty": 1}]})

        assert response.json()["credited"] == 3.0

    async def test_preview_rejects_bad_card_id(self, client: AsyncClient) -> None:
        response = await client.post("/sell/preview", json={"items": [{"cardId": "x", "qty": 1}]})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_REQUEST"


class TestSell:
    async def test_sell(self, client: AsyncClient, seed) -> None:
        await seed.player("alice", {"001": 2, "002": 1})

        response = await client.post(
            "/sell",
            params={"playerId": "alice"},
            json={"items": [{"cardId": "001", "qty": 2}, {"cardId": "002", "qty": 1}]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["credited"] == 4.5
        assert data["soldCount"] == 3
        assert data["balance"] == 4.5
        assert data["ownedCounts"] == {"001": 0, "002": 0}
        assert data["remaining"] == 2

    async def test_daily_limit(self, client: AsyncClient, seed) -> None:
        await seed.player("alice", {"001": 2})
        await seed.quota("alice", {TODAY: 4})

        response = await client.post(
            "/sell",
            params={"playerId": "alice"},
            json={"items": [{"cardId": "001", "qty": 2}]},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "DAILY_LIMIT_REACHED"
        assert data["detail"] == {"allowed": 1, "requested": 2, "limit": 5}
        assert (await seed.ledger("alice")).owned_counts == {"001": 2}

    async def test_no_ownership(self, client: AsyncClient, seed) -> None:
        await seed.player("alice")

        response = await client.post(
            "/sell",
            params={"playerId": "alice"},
            json={"items": [{"cardId": "001", "qty": 1}]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "NO_OWNERSHIP"

    async def test_nothing_to_sell(self, client: AsyncClient, seed) -> None:
        await seed.player("alice", {"001": 1})

        response = await client.post("/sell", params={"playerId": "alice"}, json={"items": []})

        assert response.status_code == 400
        assert response.json()["error"] == "NOTHING_TO_SELL"

    async def test_malformed_body(self, client: AsyncClient, seed) -> None:
        await seed.player("alice", {"001": 1})

        response = await client.post(
            "/sell", params={"playerId": "alice"}, json={"items": [{"qty": "lots"}]}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["ok"] is False
        assert data["error"] == "INVALID_REQUEST"

    async def test_idempotent_retry(self, client: AsyncClient, seed) -> None:
        await seed.player("alice", {"002": 4})
        request = {
            "params": {"playerId": "alice"},
            "json": {"items": [{"cardId": "002", "qty": 2}]},
            "headers": {"Idempotency-Key": "abc-123"},
        }

        first = await client.post("/sell", **request)
        second = await client.post("/sell", **request)

        assert first.json() == second.json()
        assert (await seed.ledger("alice")).owned_counts == {"002": 2}

    @pytest.mark.parametrize("key", ["k" * 65, "bad key!", "../x"])
    async def test_malformed_idempotency_key_is_rejected(
        self, client: AsyncClient, seed, key: str
    ) -> None:
        await seed.player("alice", {"002": 4})

        response = await client.post(
            "/sell",
            params={"playerId": "alice"},
            json={"items": [{"cardId": "002", "qty": 1}]},
            headers={"Idempotency-Key": key},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_REQUEST"
        assert (await seed.ledger("alice")).owned_counts == {"002": 4}

    async def test_idempotency_key_at_length_limit(self, client: AsyncClient, seed) -> None:
        await seed.player("alice", {"002": 4})

        response = await client.post(
            "/sell",
            params={"playerId": "alice"},
            json={"items": [{"cardId": "002", "qty": 1}]},
            headers={"Idempotency-Key": "k" * 64},
        )

        assert response.status_code == 200
        assert response.json()["soldCount"] == 1
