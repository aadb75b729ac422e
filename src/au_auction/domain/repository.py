"""AuctionRepository Protocol: dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_auction.domain.models import Auction


class AuctionRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, auction: Auction) -> Auction: ...

    async def get_by_id(
        self, db: AsyncSession, auction_id: str, for_update: bool = False
    ) -> Auction | None: ...

    async def save(self, db: AsyncSession, auction: Auction) -> None:
        """Write back mutable state; raises ConcurrentModificationError if the
        stored version no longer matches ``auction.version``. Bumps the version."""
        ...

    async def delete(self, db: AsyncSession, auction_id: str) -> None: ...

    async def list_due_for_activation(self, db: AsyncSession, now: datetime) -> list[str]: ...

    async def list_due_for_finalization(self, db: AsyncSession, now: datetime) -> list[str]: ...
