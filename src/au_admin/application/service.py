# src/au_admin/application/service.py
"""Admin application service: operational triggers."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_engine.application.service import get_bidding_engine
from src.au_engine.engine.engine import BiddingEngine

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, engine: BiddingEngine | None = None) -> None:
        self._engine = engine

    async def finalize_expired(self, db: AsyncSession) -> dict[str, Any]:
        """Run the expiry sweep now instead of waiting for the scheduler.

        The sweep commits each auction itself.
        """
        engine = self._engine or get_bidding_engine()
        settled = await engine.finalize_expired_auctions(db)
        logger.info("Manual expiry sweep settled %d auctions", settled)
        return {"finalized_count": settled}
