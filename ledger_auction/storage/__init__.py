"""Bid history storage."""

from __future__ import annotations

from typing import Protocol

from ..auction.models import Bid
from .in_memory import BidLedger


class BidHistory(Protocol):
    def next_sequence_id(self) -> int: ...

    async def record(self, bid: Bid) -> None: ...

    async def lookup(self, bidder_name: str, sequence_id: int) -> Bid | None: ...

    async def clear(self) -> None: ...

    async def list_bids(self) -> list[Bid]: ...


__all__ = ["BidHistory", "BidLedger"]
