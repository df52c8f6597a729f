"""Unit tests for the auction service boundary."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from ledger_auction.auction.gateway import AuctionGateway, GatewayError
from ledger_auction.auction.models import BidOutcome, Receipt
from ledger_auction.auction.outcomes import OutcomeClassifier
from ledger_auction.auction.scheduler import AutoBidder
from ledger_auction.auction.service import AuctionService
from ledger_auction.bidders.registry import UnknownBidder
from ledger_auction.ledger.client import LocalLedgerClient
from ledger_auction.storage import BidLedger


@pytest.fixture
def gateway():
    gateway = AsyncMock(spec=AuctionGateway)
    gateway.submit_bid = AsyncMock(return_value=Receipt(status="INSUFFICIENT_PAYER_BALANCE", transaction_id="tx"))
    gateway.create_auction = AsyncMock(return_value="0.0.1100")
    gateway.reset_auction = AsyncMock(return_value=Receipt(status="SUCCESS", transaction_id="tx"))
    return gateway


@pytest.fixture
def service(accounts, gateway, autobid_settings):
    return AuctionService(accounts, BidLedger(), gateway, autobid=autobid_settings)


class TestPlaceBid:
    @pytest.mark.asyncio
    async def test_records_bid_and_returns_gateway_status_verbatim(self, service, gateway):
        receipt = await service.place_bid("Bob", 500, "0.0.100")

        assert receipt.status == "INSUFFICIENT_PAYER_BALANCE"
        submitted = gateway.submit_bid.await_args.args[0]
        assert submitted.bidder_address == "0.0.1003"
        assert submitted.amount == 500
        stored = await service.lookup_bid("Bob", submitted.sequence_id)
        assert stored == submitted

    @pytest.mark.asyncio
    async def test_each_bid_gets_a_fresh_sequence_id(self, service, gateway):
        for bidder in ("Bob", "Carol", "Bob"):
            await service.place_bid(bidder, 500, "0.0.100")

        ids = [c.args[0].sequence_id for c in gateway.submit_bid.await_args_list]
        assert ids == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_bid_is_recorded_even_when_gateway_fails(self, service, gateway):
        gateway.submit_bid.side_effect = GatewayError("network down")

        with pytest.raises(GatewayError):
            await service.place_bid("Carol", 700, "0.0.100")

        assert (await service.lookup_bid("Carol", 0)).amount == 700

    @pytest.mark.asyncio
    async def test_unknown_bidder(self, service, gateway):
        with pytest.raises(UnknownBidder):
            await service.place_bid("Mallory", 500, "0.0.100")
        gateway.submit_bid.assert_not_called()

    @pytest.mark.asyncio
    async def test_default_contract_required(self, service):
        with pytest.raises(ValueError):
            await service.place_bid("Bob", 500)

    @pytest.mark.asyncio
    async def test_negative_amount(self, service):
        with pytest.raises(ValueError):
            await service.place_bid("Bob", -1, "0.0.100")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_create_auction_clears_history_and_sets_default(self, service, gateway):
        await service.place_bid("Bob", 500, "0.0.100")

        contract = await service.create_auction("0.0.1001", 60)

        assert contract == "0.0.1100"
        assert service.default_contract == "0.0.1100"
        assert await service.lookup_bid("Bob", 0) is None
        await service.place_bid("Alice", 10)
        assert gateway.submit_bid.await_args.args[0].contract_address == "0.0.1100"

    @pytest.mark.asyncio
    async def test_reset_auction_clears_history(self, service, gateway):
        await service.place_bid("Bob", 500, "0.0.100")

        receipt = await service.reset_auction("0.0.100")

        assert receipt.status == "SUCCESS"
        assert await service.bid_history() == []
        gateway.reset_auction.assert_awaited_once_with("0.0.100")


class TestAgainstLocalLedger:
    @pytest.mark.asyncio
    async def test_auto_bidder_drives_contract_until_window_closes(self, accounts, autobid_settings):
        clock_now = [1_700_000_000.0]
        client = LocalLedgerClient(clock=lambda: clock_now[0])
        service = AuctionService(accounts, BidLedger(), AuctionGateway(client), autobid=autobid_settings)
        contract = await service.create_auction("0.0.1001", 60)
        bidder = AutoBidder(
            contract,
            accounts.roster,
            service.place_bid,
            OutcomeClassifier(),
            initial_delay_seconds=0,
            period_seconds=0,
        )

        for _ in range(3):
            assert await bidder.tick() is BidOutcome.SUCCESS
        clock_now[0] += 61
        assert await bidder.tick() is BidOutcome.AUCTION_ENDED

        history = await service.bid_history()
        assert [bid.bidder_name for bid in history] == ["Bob", "Carol", "Alice", "Bob"]
        assert [bid.amount for bid in history] == [1001, 1002, 1003, 1004]
        assert not bidder.running

    @pytest.mark.asyncio
    async def test_start_auto_bidding_is_acknowledged_once(self, accounts, autobid_settings):
        service = AuctionService(accounts, BidLedger(), AuctionGateway(LocalLedgerClient()), autobid=autobid_settings)
        contract = await service.create_auction("0.0.1001", 60)

        assert await service.start_auto_bidding(contract) == {"status": "success", "contract": contract}
        assert (await service.start_auto_bidding(contract))["status"] == "already_running"
        assert await service.stop_auto_bidding(contract) is True
        await service.shutdown()
