"""Unit tests for end-of-auction settlement, the expiry sweep and the lazy read path."""

from datetime import timedelta

from fakes import World

from src.au_common.enums import AuctionStatus, BidStatus, LedgerEntryType


def _expire(world: World) -> None:
    world.clock.now = world.auction().end_time + timedelta(seconds=1)


class TestFinalize:
    async def test_sold_to_highest_bidder(self, world: World) -> None:
        world.add_account("A")
        world.add_account("B")
        world.add_auction()
        await world.bid("A", 150)
        await world.bid("B", 200)
        _expire(world)

        settled = await world.engine.finalize_expired_auctions(world.db)

        assert settled == 1
        auction = world.auction()
        assert auction.status == AuctionStatus.SOLD
        assert auction.winner_id == "B"
        assert auction.final_price == 200
        a_bid, b_bid = world.bids_of()
        assert a_bid.status == BidStatus.LOST
        assert a_bid.hold_released is True
        assert a_bid.hold_release_date is not None
        assert b_bid.status == BidStatus.WON
        assert b_bid.hold_released is False
        # loser fully credited back, winner still holds
        assert world.account("A").held_balance == 0
        assert world.account("A").available_balance == 100_000
        assert world.account("B").held_balance == 40

    async def test_reserve_not_met_ends_unsold(self, world: World) -> None:
        world.add_account("A")
        world.add_auction(reserve_price=1000)
        await world.bid("A", 900)
        _expire(world)

        await world.engine.finalize_expired_auctions(world.db)

        auction = world.auction()
        assert auction.status == AuctionStatus.ENDED
        assert auction.winner_id is None
        assert auction.final_price is None
        (bid,) = world.bids_of()
        assert bid.status == BidStatus.LOST
        assert bid.hold_released is True
        assert world.account("A").held_balance == 0

    async def test_no_bids_ends_unsold(self, world: World) -> None:
        world.add_auction()
        _expire(world)

        settled = await world.engine.finalize_expired_auctions(world.db)

        assert settled == 1
        assert world.auction().status == AuctionStatus.ENDED
        assert world.auction().winner_id is None

    async def test_every_losing_proxy_hold_is_released(self, world: World) -> None:
        world.add_account("X")
        world.add_account("Y")
        world.add_auction()
        await world.bid("X", 150, max_bid_amount=300)
        await world.bid("Y", 200, max_bid_amount=1000)
        _expire(world)

        await world.engine.finalize_expired_auctions(world.db)

        assert world.auction().winner_id == "Y"
        assert world.account("X").held_balance == 0
        releases = [
            e for e in world.state.ledger
            if e.entry_type == LedgerEntryType.BID_HOLD_RELEASE.value
        ]
        assert {e.user_id for e in releases} == {"X"}
        assert all(b.status == BidStatus.WON for b in world.bids_of() if b.bidder_id == "Y")

    async def test_second_run_is_a_no_op(self, world: World) -> None:
        world.add_account("A")
        world.add_account("B")
        world.add_auction()
        await world.bid("A", 150)
        await world.bid("B", 200)
        _expire(world)
        await world.engine.finalize_expired_auctions(world.db)
        ledger_size = len(world.state.ledger)
        balance = world.account("A").available_balance

        settled = await world.engine.finalize_expired_auctions(world.db)

        assert settled == 0
        assert len(world.state.ledger) == ledger_size
        assert world.account("A").available_balance == balance

    async def test_not_yet_expired_is_left_alone(self, world: World) -> None:
        world.add_account("A")
        world.add_auction()
        await world.bid("A", 150)

        settled = await world.engine.finalize_expired_auctions(world.db)

        assert settled == 0
        assert world.auction().status == AuctionStatus.ACTIVE

    async def test_expired_scheduled_auction_is_settled(self, world: World) -> None:
        world.add_auction(
            status=AuctionStatus.SCHEDULED,
            start_time=world.clock.now + timedelta(minutes=5),
            end_time=world.clock.now + timedelta(minutes=10),
        )
        world.clock.advance(minutes=11)

        await world.engine.finalize_expired_auctions(world.db)

        assert world.auction().status == AuctionStatus.ENDED


class TestReleaseFailure:
    async def test_failed_release_is_retried_by_the_sweep(self, world: World) -> None:
        world.add_account("A")
        world.add_account("B")
        world.add_auction()
        await world.bid("A", 150)
        await world.bid("B", 200)
        _expire(world)
        world.accounts.fail_release_for.add("A")

        settled = await world.engine.finalize_expired_auctions(world.db)

        # settlement itself still commits
        assert settled == 1
        assert world.auction().status == AuctionStatus.SOLD
        a_bid = world.bids_of()[0]
        assert a_bid.status == BidStatus.LOST
        assert a_bid.hold_released is False
        assert world.account("A").held_balance == 30

        world.accounts.fail_release_for.clear()
        settled = await world.engine.finalize_expired_auctions(world.db)

        assert settled == 0
        assert world.bids_of()[0].hold_released is True
        assert world.account("A").held_balance == 0

    async def test_one_failure_does_not_block_other_releases(self, world: World) -> None:
        for user in ("A", "B", "C"):
            world.add_account(user)
        world.add_auction()
        await world.bid("A", 150)
        await world.bid("B", 200)
        await world.bid("C", 250)
        _expire(world)
        world.accounts.fail_release_for.add("A")

        await world.engine.finalize_expired_auctions(world.db)

        assert world.account("A").held_balance == 30
        assert world.account("B").held_balance == 0


class TestActivationAndReadPath:
    async def test_sweep_activates_due_auctions(self, world: World) -> None:
        world.add_auction(
            status=AuctionStatus.SCHEDULED,
            start_time=world.clock.now + timedelta(minutes=5),
        )
        world.clock.advance(minutes=6)

        settled = await world.engine.finalize_expired_auctions(world.db)

        assert settled == 0
        assert world.auction().status == AuctionStatus.ACTIVE

    async def test_refresh_settles_expired_auction(self, world: World) -> None:
        world.add_account("A")
        world.add_auction()
        await world.bid("A", 150)
        _expire(world)

        auction = await world.engine.refresh_auction(world.db, "auc-1")

        assert auction is not None
        assert auction.status == AuctionStatus.SOLD
        assert auction.winner_id == "A"

    async def test_refresh_activates_scheduled_auction(self, world: World) -> None:
        world.add_auction(
            status=AuctionStatus.SCHEDULED,
            start_time=world.clock.now + timedelta(minutes=5),
        )
        world.clock.advance(minutes=5)

        auction = await world.engine.refresh_auction(world.db, "auc-1")

        assert auction is not None
        assert auction.status == AuctionStatus.ACTIVE

    async def test_refresh_leaves_running_auction_untouched(self, world: World) -> None:
        world.add_auction()
        version = world.auction().version

        auction = await world.engine.refresh_auction(world.db, "auc-1")

        assert auction is not None
        assert auction.status == AuctionStatus.ACTIVE
        assert world.auction().version == version

    async def test_refresh_unknown_auction(self, world: World) -> None:
        assert await world.engine.refresh_auction(world.db, "missing") is None


class TestSweepIsolation:
    async def _two_expired_auctions(self, world: World) -> None:
        for user in ("A", "B", "C"):
            world.add_account(user)
        world.add_auction("auc-1")
        world.add_auction("auc-2")
        await world.bid("A", 150, auction_id="auc-1")
        await world.bid("B", 200, auction_id="auc-1")
        await world.bid("C", 150, auction_id="auc-2")
        world.clock.advance(days=2)

    async def test_each_auction_is_committed_before_the_next(self, world: World) -> None:
        await self._two_expired_auctions(world)
        seen_at_commit: list[tuple[AuctionStatus, AuctionStatus]] = []
        world.db.commit.side_effect = lambda: seen_at_commit.append(
            (world.auction("auc-1").status, world.auction("auc-2").status)
        )

        settled = await world.engine.finalize_expired_auctions(world.db)

        assert settled == 2
        assert seen_at_commit[0] == (AuctionStatus.SOLD, AuctionStatus.ACTIVE)
        assert seen_at_commit[1] == (AuctionStatus.SOLD, AuctionStatus.SOLD)

    async def test_failing_auction_leaves_others_settled(self, world: World) -> None:
        await self._two_expired_auctions(world)
        save = world.auctions.save

        async def save_or_fail(db, auction) -> None:
            if auction.id == "auc-2":
                raise RuntimeError("constraint violated")
            await save(db, auction)

        world.auctions.save = save_or_fail

        settled = await world.engine.finalize_expired_auctions(world.db)

        assert settled == 1
        assert world.auction("auc-1").status == AuctionStatus.SOLD
        assert world.auction("auc-1").winner_id == "B"
        assert world.account("A").held_balance == 0
        # auc-2 is untouched and picked up again by the next sweep
        assert world.auction("auc-2").status == AuctionStatus.ACTIVE
        assert world.account("C").held_balance == 30
        world.db.rollback.assert_awaited_once()

        world.auctions.save = save
        assert await world.engine.finalize_expired_auctions(world.db) == 1
        assert world.auction("auc-2").winner_id == "C"
