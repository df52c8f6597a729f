"""Unit tests for the auction gateway."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from ledger_auction.auction.gateway import AuctionGateway, GatewayError
from ledger_auction.auction.models import Bid, Receipt


def _bid(contract: str = "0.0.100", bidder_address: str = "0.0.1003") -> Bid:
    return Bid(
        sequence_id=7,
        bidder_name="Bob",
        bidder_address=bidder_address,
        amount=500,
        contract_address=contract,
    )


@pytest.fixture
def ledger_client():
    client = AsyncMock()
    client.submit_transaction = AsyncMock(return_value=Receipt(status="SUCCESS", transaction_id="tx"))
    client.deploy_contract = AsyncMock(return_value="0.0.1100")
    return client


class TestSubmitBid:
    @pytest.mark.asyncio
    async def test_bid_is_sent_as_payable_call(self, ledger_client):
        gateway = AuctionGateway(ledger_client)
        receipt = await gateway.submit_bid(_bid())

        assert receipt.status == "SUCCESS"
        ledger_client.submit_transaction.assert_awaited_once_with(
            "0.0.100", "bid", (), sender="0.0.1003", amount=500
        )

    @pytest.mark.asyncio
    async def test_malformed_contract_address(self, ledger_client):
        gateway = AuctionGateway(ledger_client)
        with pytest.raises(GatewayError, match="contract address"):
            await gateway.submit_bid(_bid(contract="not-a-contract"))
        ledger_client.submit_transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_slow_ledger_call_times_out(self, ledger_client):
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        ledger_client.submit_transaction.side_effect = hang
        gateway = AuctionGateway(ledger_client, call_timeout_seconds=0.01)

        with pytest.raises(GatewayError, match="timed out"):
            await gateway.submit_bid(_bid())

    @pytest.mark.asyncio
    async def test_transport_errors_are_wrapped(self, ledger_client):
        ledger_client.submit_transaction.side_effect = ConnectionRefusedError("refused")
        gateway = AuctionGateway(ledger_client)

        with pytest.raises(GatewayError, match="refused"):
            await gateway.submit_bid(_bid())


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_create_auction(self, ledger_client):
        gateway = AuctionGateway(ledger_client)
        assert await gateway.create_auction("0.0.1001", 120) == "0.0.1100"
        ledger_client.deploy_contract.assert_awaited_once_with("0.0.1001", 120)

    @pytest.mark.asyncio
    async def test_entry_points(self, ledger_client):
        gateway = AuctionGateway(ledger_client)
        await gateway.end_auction("0.0.1003", "0.0.100")
        await gateway.reset_auction("0.0.100")
        await gateway.start_timer("0.0.100")

        entry_points = [c.args[1] for c in ledger_client.submit_transaction.await_args_list]
        assert entry_points == ["auctionEnd", "resetAuction", "startTimer"]
        assert ledger_client.submit_transaction.await_args_list[0].kwargs["sender"] == "0.0.1003"
