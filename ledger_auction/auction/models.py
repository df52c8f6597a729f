"""Shared auction data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

SUCCESS = "SUCCESS"
CONTRACT_REVERT_EXECUTED = "CONTRACT_REVERT_EXECUTED"


@dataclass(frozen=True)
class Bid:
    sequence_id: int
    bidder_name: str
    bidder_address: str
    amount: int
    contract_address: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence_id": self.sequence_id,
            "bidder_name": self.bidder_name,
            "bidder_address": self.bidder_address,
            "amount": self.amount,
            "contract_address": self.contract_address,
        }


@dataclass(frozen=True)
class ContractLog:
    contract_id: str
    bloom: bytes = b""
    data: bytes = b""
    topics: tuple[bytes, ...] = ()


@dataclass(frozen=True)
class ContractCallResult:
    contract_id: str
    gas_used: int = 0
    error_message: str | None = None
    result_bytes: bytes = b""
    logs: tuple[ContractLog, ...] = ()


@dataclass(frozen=True)
class Receipt:
    """Structured outcome of a submitted transaction."""

    status: str
    transaction_id: str
    consensus_timestamp: str | None = None
    transaction_fee: int = 0
    contract_result: ContractCallResult | None = None

    @property
    def error_message(self) -> str | None:
        if self.contract_result is None:
            return None
        return self.contract_result.error_message

    @property
    def logs(self) -> tuple[ContractLog, ...]:
        if self.contract_result is None:
            return ()
        return self.contract_result.logs

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS and not self.error_message


class BidOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    AUCTION_ENDED = "auction_ended"


@dataclass(frozen=True)
class AutoBidState:
    cursor: int
    bid_floor: int
    running: bool = True
