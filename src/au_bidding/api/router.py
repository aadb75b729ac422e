# src/au_bidding/api/router.py
"""au_bidding REST API: place bids and manage auto-bids."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_bidding.application.schemas import PlaceBidRequest, UpdateMaxBidRequest
from src.au_bidding.application.service import BidApplicationService
from src.au_common.database import get_db_session
from src.au_common.response import ApiResponse, success_response
from src.au_gateway.auth.dependencies import CurrentUser, get_current_user

router = APIRouter(prefix="/bids", tags=["bids"])

_service = BidApplicationService()


@router.post("", status_code=201)
async def place_bid(
    body: PlaceBidRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.place_bid(db, body, current_user.user_id)
    return success_response(data, request)


@router.get("/mine")
async def list_my_bids(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: str | None = Query(None, description="Filter by bid status"),
    cursor: str | None = Query(None, description="Pagination cursor (bid ID)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_my_bids(db, current_user.user_id, status, cursor, limit)
    return success_response(data, request)


@router.post("/{bid_id}/cancel-auto")
async def cancel_auto_bid(
    bid_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel_auto_bid(db, bid_id, current_user.user_id)
    return success_response(data, request)


@router.put("/{bid_id}/max")
async def update_max_bid(
    bid_id: str,
    body: UpdateMaxBidRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_max_bid(
        db, bid_id, current_user.user_id, body.max_bid_amount
    )
    return success_response(data, request)
