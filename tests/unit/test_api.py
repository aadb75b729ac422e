"""HTTP-level tests: routing, auth, envelope and error mapping.

Application services are replaced with mocks and the DB session with a stub,
so these run without Postgres or Redis.
"""

from collections.abc import AsyncGenerator, Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from src.au_account.application.schemas import BalanceResponse
from src.au_bidding.application.schemas import AutoBidSettingsResponse
from src.au_common.database import get_db_session
from src.au_common.errors import (
    AuctionNotFoundError,
    BidTooLowError,
    InsufficientBalanceError,
)
from src.au_gateway.auth.jwt_handler import ROLE_ADMIN, create_access_token
from src.main import app


def _auth(user_id: str = "user-1", role: str = "user") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role=role)}"}


@pytest.fixture(autouse=True)
def _stub_infrastructure() -> Iterator[AsyncMock]:
    db = AsyncMock()

    async def override_db() -> AsyncGenerator[AsyncMock, None]:
        yield db

    redis = MagicMock()
    redis.incr = AsyncMock(return_value=1)
    redis.expire = AsyncMock()
    app.dependency_overrides[get_db_session] = override_db
    with patch(
        "src.au_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)
    ):
        yield db
    app.dependency_overrides.clear()


class TestHealthAndAuth:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_missing_token_is_401(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/account/balance")
        assert resp.status_code == 401

    async def test_invalid_token_is_401(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/v1/account/balance", headers={"Authorization": "Bearer nope"}
        )
        assert resp.status_code == 401

    async def test_admin_route_rejects_users(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/admin/auctions/finalize-expired", headers=_auth())
        assert resp.status_code == 403
        assert resp.json()["code"] == 1006


class TestAccountRoutes:
    async def test_balance_envelope(self, client: AsyncClient) -> None:
        service = MagicMock()
        service.get_balance = AsyncMock(
            return_value=BalanceResponse.from_amounts("user-1", available=970, held=30)
        )
        with patch("src.au_account.api.router._service", service):
            resp = await client.get("/api/v1/account/balance", headers=_auth())

        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["total_balance"] == 1_000
        assert body["request_id"].startswith("req_")
        assert resp.headers["X-Request-ID"] == body["request_id"]
        service.get_balance.assert_awaited_once()
        assert service.get_balance.await_args.args[1] == "user-1"

    async def test_inbound_request_id_is_kept(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/account/deposit",
            json={"amount": 0},
            headers={**_auth(), "X-Request-ID": "edge-42"},
        )
        assert resp.headers["X-Request-ID"] == "edge-42"

    async def test_deposit_validation_is_422(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/account/deposit", json={"amount": 0}, headers=_auth()
        )
        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == 9004
        assert body["data"]["errors"][0]["loc"] == ["body", "amount"]


class TestBidRoutes:
    async def test_bid_too_low_carries_minimum(self, client: AsyncClient) -> None:
        service = MagicMock()
        service.place_bid = AsyncMock(side_effect=BidTooLowError(140, 200))
        with patch("src.au_bidding.api.router._service", service):
            resp = await client.post(
                "/api/v1/bids", json={"auction_id": "auc-1", "amount": 140}, headers=_auth()
            )

        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == 4002
        assert body["data"] == {"minimum_bid": 200}

    async def test_insufficient_balance_carries_numbers(self, client: AsyncClient) -> None:
        service = MagicMock()
        service.place_bid = AsyncMock(side_effect=InsufficientBalanceError(30, 20))
        with patch("src.au_bidding.api.router._service", service):
            resp = await client.post(
                "/api/v1/bids", json={"auction_id": "auc-1", "amount": 150}, headers=_auth()
            )

        assert resp.status_code == 422
        assert resp.json()["data"] == {"required_balance": 30, "current_balance": 20}

    async def test_bid_amount_must_be_positive(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/bids", json={"auction_id": "auc-1", "amount": 0}, headers=_auth()
        )
        assert resp.status_code == 422

    async def test_rate_limited(self, client: AsyncClient) -> None:
        redis = MagicMock()
        redis.incr = AsyncMock(return_value=10_000)
        with patch(
            "src.au_gateway.middleware.rate_limit.get_redis", AsyncMock(return_value=redis)
        ):
            resp = await client.post(
                "/api/v1/bids", json={"auction_id": "auc-1", "amount": 150}, headers=_auth()
            )

        assert resp.status_code == 429
        assert resp.json()["code"] == 9001
        assert "Retry-After" in resp.headers

    async def test_update_max(self, client: AsyncClient) -> None:
        service = MagicMock()
        service.update_max_bid = AsyncMock(
            return_value=AutoBidSettingsResponse(bid_id="b1", is_auto_bid=True, max_bid_amount=900)
        )
        with patch("src.au_bidding.api.router._service", service):
            resp = await client.put(
                "/api/v1/bids/b1/max", json={"max_bid_amount": 900}, headers=_auth("user-7")
            )

        assert resp.status_code == 200
        assert resp.json()["data"]["max_bid_amount"] == 900
        args = service.update_max_bid.await_args.args
        assert args[1:] == ("b1", "user-7", 900)


class TestAuctionRoutes:
    async def test_not_found_is_404(self, client: AsyncClient) -> None:
        service = MagicMock()
        service.get_auction = AsyncMock(side_effect=AuctionNotFoundError("auc-x"))
        with patch("src.au_auction.api.router._service", service):
            resp = await client.get("/api/v1/auctions/auc-x", headers=_auth())

        assert resp.status_code == 404
        assert resp.json()["code"] == 3001

    async def test_create_requires_admin(self, client: AsyncClient) -> None:
        body = {
            "title": "Lot",
            "seller_id": "seller",
            "starting_price": 100,
            "start_time": "2026-03-01T12:00:00Z",
            "end_time": "2026-03-02T12:00:00Z",
        }
        resp = await client.post("/api/v1/auctions", json=body, headers=_auth())
        assert resp.status_code == 403

    async def test_admin_sweep(self, client: AsyncClient) -> None:
        service = MagicMock()
        service.finalize_expired = AsyncMock(return_value={"finalized_count": 2})
        with patch("src.au_admin.api.router._service", service):
            resp = await client.post(
                "/api/v1/admin/auctions/finalize-expired", headers=_auth("ops", ROLE_ADMIN)
            )

        assert resp.status_code == 200
        assert resp.json()["data"] == {"finalized_count": 2}
