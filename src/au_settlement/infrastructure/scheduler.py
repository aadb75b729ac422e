"""APScheduler setup for the auction expiry sweep."""

import logging
from collections.abc import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config.settings import settings
from src.au_common.database import session_scope
from src.au_engine.application.service import get_bidding_engine

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


async def expiry_sweep_job() -> int:
    """Settle every expired auction and retry pending hold releases."""
    try:
        async with session_scope() as db:
            settled = await get_bidding_engine().finalize_expired_auctions(db)
    except Exception:
        logger.exception("Expiry sweep failed")
        return 0
    if settled:
        logger.info("Expiry sweep settled %d auctions", settled)
    return settled


def init_scheduler(
    job: Callable[[], Awaitable[int]] = expiry_sweep_job,
    interval_seconds: int | None = None,
) -> AsyncIOScheduler:
    """Start the APScheduler with the interval expiry sweep."""
    global _scheduler  # noqa: PLW0603
    seconds = interval_seconds or settings.SWEEP_INTERVAL_SECONDS
    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        job,
        trigger=IntervalTrigger(seconds=seconds),
        id="auction_expiry_sweep",
        name="Auction expiry sweep",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    _scheduler.start()
    logger.info("APScheduler started with auction expiry sweep every %ds", seconds)
    return _scheduler


def shutdown_scheduler() -> None:
    """Gracefully shut down the scheduler."""
    global _scheduler  # noqa: PLW0603
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("APScheduler shut down")
