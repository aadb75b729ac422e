"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config.settings import settings
from src.au_account.api.router import router as account_router
from src.au_admin.api.router import router as admin_router
from src.au_auction.api.router import router as auction_router
from src.au_bidding.api.router import router as bid_router
from src.au_common.database import check_database, dispose_engine
from src.au_common.errors import AppError, InvalidRequestError
from src.au_common.redis_client import close_redis, get_redis
from src.au_common.response import error_response
from src.au_gateway.middleware.rate_limit import RateLimitMiddleware
from src.au_gateway.middleware.request_log import RequestLogMiddleware
from src.au_settlement.infrastructure.scheduler import init_scheduler, shutdown_scheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the expiry sweep. Shutdown: dispose."""
    await check_database()
    await get_redis()
    if settings.SWEEP_ENABLED:
        init_scheduler()
    yield
    shutdown_scheduler()
    await dispose_engine()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Starlette runs the last-added middleware first: request log wraps rate limiting
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.details, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return await app_error_handler(request, InvalidRequestError(jsonable_encoder(exc.errors())))


app.include_router(account_router, prefix="/api/v1")
app.include_router(auction_router, prefix="/api/v1")
app.include_router(bid_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str | bool]:
    return {"status": "ok", "version": "0.1.0", "sweep_enabled": settings.SWEEP_ENABLED}
