"""Auction operations exposed to the HTTP facade."""

from __future__ import annotations

import logging
from typing import Any

from ..bidders.registry import AccountRegistry
from ..config import AutoBidConfig
from ..storage import BidHistory
from .gateway import AuctionGateway
from .models import Bid, Receipt
from .outcomes import OutcomeClassifier
from .scheduler import AutoBidManager

logger = logging.getLogger(__name__)


class AuctionService:
    def __init__(
        self,
        accounts: AccountRegistry,
        history: BidHistory,
        gateway: AuctionGateway,
        *,
        autobid: AutoBidConfig,
        classifier: OutcomeClassifier | None = None,
        default_contract: str | None = None,
    ) -> None:
        self._accounts = accounts
        self._history = history
        self._gateway = gateway
        self._default_contract = default_contract
        self._autobid = AutoBidManager(
            self.place_bid,
            accounts.roster,
            classifier or OutcomeClassifier(autobid.ended_markers),
            autobid,
        )

    @property
    def default_contract(self) -> str | None:
        return self._default_contract

    @property
    def autobid(self) -> AutoBidManager:
        return self._autobid

    async def place_bid(self, bidder_name: str, amount: int, contract_address: str | None = None) -> Receipt:
        """Record the bid under a fresh sequence id, then submit it to the contract."""
        bidder_address = self._accounts.resolve(bidder_name)
        if amount < 0:
            raise ValueError("bid amount must be non-negative")
        contract = self._resolve_contract(contract_address)
        bid = Bid(
            sequence_id=self._history.next_sequence_id(),
            bidder_name=bidder_name,
            bidder_address=bidder_address,
            amount=amount,
            contract_address=contract,
        )
        await self._history.record(bid)
        receipt = await self._gateway.submit_bid(bid)
        logger.info("bid submitted: bid=%s status=%s", bid, receipt.status)
        return receipt

    async def lookup_bid(self, bidder_name: str, sequence_id: int) -> Bid | None:
        return await self._history.lookup(bidder_name, sequence_id)

    async def start_auto_bidding(self, contract_address: str | None = None) -> dict[str, str]:
        return self._autobid.start(self._resolve_contract(contract_address))

    async def stop_auto_bidding(self, contract_address: str) -> bool:
        return await self._autobid.stop(contract_address)

    async def create_auction(self, beneficiary_address: str, duration_seconds: int) -> str:
        await self._history.clear()
        contract = await self._gateway.create_auction(beneficiary_address, duration_seconds)
        self._default_contract = contract
        logger.info("set default contract = %s", contract)
        return contract

    async def reset_auction(self, contract_address: str | None = None) -> Receipt:
        contract = self._resolve_contract(contract_address)
        await self._history.clear()
        receipt = await self._gateway.reset_auction(contract)
        logger.info("reset contract = %s status=%s", contract, receipt.status)
        return receipt

    async def end_auction(self, bidder_name: str, contract_address: str | None = None) -> Receipt:
        caller = self._accounts.resolve(bidder_name)
        contract = self._resolve_contract(contract_address)
        receipt = await self._gateway.end_auction(caller, contract)
        logger.info("auctionEnd called by %s on contract = %s status=%s", bidder_name, contract, receipt.status)
        return receipt

    async def start_timer(self, contract_address: str | None = None) -> Receipt:
        contract = self._resolve_contract(contract_address)
        receipt = await self._gateway.start_timer(contract)
        logger.info("restarted timer for contract = %s", contract)
        return receipt

    async def bid_history(self) -> list[Bid]:
        return await self._history.list_bids()

    def auto_bid_sessions(self) -> list[dict[str, Any]]:
        return self._autobid.sessions()

    async def shutdown(self) -> None:
        await self._autobid.shutdown()

    def _resolve_contract(self, contract_address: str | None) -> str:
        contract = contract_address or self._default_contract
        if not contract:
            raise ValueError("no contract address given and no default contract set")
        return contract
