# src/au_auction/api/router.py
"""au_auction REST API: listings, bid history and buy-it-now."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_auction.application.schemas import CreateAuctionRequest
from src.au_auction.application.service import AuctionApplicationService
from src.au_common.database import get_db_session
from src.au_common.response import ApiResponse, success_response
from src.au_gateway.auth.dependencies import CurrentUser, get_current_user, require_admin

router = APIRouter(prefix="/auctions", tags=["auctions"])

_service = AuctionApplicationService()


@router.post("", status_code=201)
async def create_auction(
    body: CreateAuctionRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_auction(db, body)
    return success_response(data, request)


@router.get("/{auction_id}")
async def get_auction(
    auction_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_auction(db, auction_id)
    return success_response(data, request)


@router.post("/{auction_id}/publish")
async def publish_auction(
    auction_id: str,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.publish_auction(db, auction_id)
    return success_response(data, request)


@router.post("/{auction_id}/cancel")
async def cancel_auction(
    auction_id: str,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel_auction(db, auction_id)
    return success_response(data, request)


@router.delete("/{auction_id}")
async def delete_auction(
    auction_id: str,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.delete_auction(db, auction_id)
    return success_response(data, request)


@router.get("/{auction_id}/bids")
async def get_bid_history(
    auction_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(50, ge=1, le=200, description="Max bids returned, highest first"),
) -> ApiResponse:
    data = await _service.get_bid_history(db, auction_id, limit)
    return success_response(data, request)


@router.post("/{auction_id}/buy-now")
async def buy_now(
    auction_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.buy_now(db, auction_id, current_user.user_id)
    return success_response(data, request)
