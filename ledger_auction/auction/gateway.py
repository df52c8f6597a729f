"""Translate bid intents and lifecycle calls into ledger transactions."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Awaitable, TypeVar

from ..ledger.client import GatewayError, LedgerClient
from .models import Bid, Receipt

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ADDRESS_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")

BID_ENTRY_POINT = "bid"
END_ENTRY_POINT = "auctionEnd"
RESET_ENTRY_POINT = "resetAuction"
START_TIMER_ENTRY_POINT = "startTimer"


def check_address(value: str | None, kind: str = "address") -> str:
    if not value or not _ADDRESS_PATTERN.match(value):
        raise GatewayError(f"malformed {kind} {value!r}, expected shard.realm.num")
    return value


class AuctionGateway:
    """The only component that talks to the ledger client.

    Contract error strings are passed through untouched inside the receipt;
    every transport failure or call timeout surfaces as ``GatewayError``.
    """

    def __init__(self, client: LedgerClient, *, call_timeout_seconds: float | None = 10.0) -> None:
        self._client = client
        self._timeout = call_timeout_seconds

    async def submit_bid(self, bid: Bid) -> Receipt:
        check_address(bid.contract_address, "contract address")
        check_address(bid.bidder_address, "bidder address")
        return await self._call(
            self._client.submit_transaction(
                bid.contract_address,
                BID_ENTRY_POINT,
                (),
                sender=bid.bidder_address,
                amount=bid.amount,
            ),
            f"bid #{bid.sequence_id} on {bid.contract_address}",
        )

    async def create_auction(self, beneficiary_address: str, duration_seconds: int) -> str:
        check_address(beneficiary_address, "beneficiary address")
        contract_address = await self._call(
            self._client.deploy_contract(beneficiary_address, duration_seconds),
            "auction deployment",
        )
        return check_address(contract_address, "contract address")

    async def end_auction(self, caller_address: str, contract_address: str) -> Receipt:
        check_address(caller_address, "caller address")
        check_address(contract_address, "contract address")
        return await self._call(
            self._client.submit_transaction(contract_address, END_ENTRY_POINT, (), sender=caller_address),
            f"auctionEnd on {contract_address}",
        )

    async def reset_auction(self, contract_address: str) -> Receipt:
        check_address(contract_address, "contract address")
        return await self._call(
            self._client.submit_transaction(contract_address, RESET_ENTRY_POINT, ()),
            f"resetAuction on {contract_address}",
        )

    async def start_timer(self, contract_address: str) -> Receipt:
        check_address(contract_address, "contract address")
        return await self._call(
            self._client.submit_transaction(contract_address, START_TIMER_ENTRY_POINT, ()),
            f"startTimer on {contract_address}",
        )

    async def _call(self, call: Awaitable[T], description: str) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise GatewayError(f"{description} timed out after {self._timeout}s") from exc
        except GatewayError:
            raise
        except (OSError, ValueError) as exc:
            raise GatewayError(f"{description} failed: {exc}") from exc


__all__ = ["AuctionGateway", "GatewayError", "check_address"]
