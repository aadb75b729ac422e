# src/au_engine/application/service.py
from src.au_account.infrastructure.persistence import AccountRepository
from src.au_auction.infrastructure.persistence import AuctionRepository
from src.au_bidding.infrastructure.persistence import BidRepository
from src.au_engine.engine.engine import BiddingEngine

_engine: BiddingEngine | None = None


def get_bidding_engine() -> BiddingEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = BiddingEngine(
            auction_repo=AuctionRepository(),
            bid_repo=BidRepository(),
            account_repo=AccountRepository(),
        )
    return _engine
