"""Tests for au_common.enums: values must match DB CHECK constraints."""

from src.au_common.enums import (
    OPEN_BID_STATUSES,
    STANDING_BID_STATUSES,
    TERMINAL_AUCTION_STATUSES,
    AuctionStatus,
    BidStatus,
    LedgerEntryType,
)


class TestAllEnumsAreStr:
    def test_auction_status_is_str(self) -> None:
        assert isinstance(AuctionStatus.ACTIVE, str)
        assert AuctionStatus.ACTIVE == "ACTIVE"

    def test_bid_status_is_str(self) -> None:
        assert BidStatus.WINNING == "WINNING"

    def test_ledger_entry_type_is_str(self) -> None:
        assert LedgerEntryType.BID_HOLD_RELEASE == "BID_HOLD_RELEASE"


class TestValues:
    def test_auction_statuses(self) -> None:
        assert {s.value for s in AuctionStatus} == {
            "DRAFT", "SCHEDULED", "ACTIVE", "ENDED", "SOLD", "CANCELLED",
        }

    def test_bid_statuses(self) -> None:
        assert {s.value for s in BidStatus} == {"ACTIVE", "OUTBID", "WINNING", "WON", "LOST"}

    def test_ledger_entry_types(self) -> None:
        assert {t.value for t in LedgerEntryType} == {
            "DEPOSIT", "WITHDRAW", "BID_HOLD", "BID_HOLD_RELEASE",
        }


class TestGroups:
    def test_terminal_statuses(self) -> None:
        assert TERMINAL_AUCTION_STATUSES == {"ENDED", "SOLD", "CANCELLED"}

    def test_outbid_registrations_keep_standing(self) -> None:
        assert BidStatus.OUTBID in STANDING_BID_STATUSES
        assert BidStatus.OUTBID not in OPEN_BID_STATUSES

    def test_final_statuses_never_stand(self) -> None:
        assert BidStatus.WON not in STANDING_BID_STATUSES
        assert BidStatus.LOST not in STANDING_BID_STATUSES
