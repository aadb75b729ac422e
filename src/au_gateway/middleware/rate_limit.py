"""Bid rate limiting middleware.

Fixed-window counter in Redis on the bid placement endpoint:
  - Key pattern: "ratelimit:bids:{user_id_or_ip}:{window}"
  - INCR, then EXPIRE on the first hit of the window
  - Over BID_RATE_LIMIT_PER_MINUTE → RateLimitError (9001) in the standard
    envelope with a Retry-After header

The caller is identified by the JWT ``sub`` when a valid Bearer token is
present, otherwise by client IP (X-Forwarded-For aware). Authentication itself
is still enforced by the router dependency.
"""

import logging
import time
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from config.settings import settings
from src.au_common.errors import InvalidCredentialsError, RateLimitError
from src.au_common.redis_client import get_redis
from src.au_common.response import error_response
from src.au_gateway.auth.jwt_handler import decode_token

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60
_LIMITED_ROUTES: frozenset[tuple[str, str]] = frozenset({("POST", "/api/v1/bids")})


def _client_key(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        try:
            return f"user:{decode_token(auth[7:].strip())['sub']}"
        except InvalidCredentialsError:
            pass
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limit: int | None = None,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] | None = None,
    ) -> None:
        super().__init__(app)
        self._limit = limit if limit is not None else settings.BID_RATE_LIMIT_PER_MINUTE
        self._redis_factory = redis_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if (request.method, request.url.path.rstrip("/")) not in _LIMITED_ROUTES:
            return await call_next(request)

        window = int(time.time()) // _WINDOW_SECONDS
        key = f"ratelimit:bids:{_client_key(request)}:{window}"
        try:
            redis = await (self._redis_factory or get_redis)()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except RedisError:
            # Fail open: bidding must not depend on the limiter being up
            logger.warning("Rate limiter unavailable, allowing %s", key)
            return await call_next(request)

        if count > self._limit:
            err = RateLimitError()
            body = error_response(err.code, err.message, {"limit": self._limit}, request)
            retry_after = _WINDOW_SECONDS - int(time.time()) % _WINDOW_SECONDS
            return JSONResponse(
                status_code=err.http_status,
                content=body.model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
