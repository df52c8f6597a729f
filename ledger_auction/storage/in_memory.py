"""In-memory bid history for the current auction instance."""

from __future__ import annotations

import asyncio
import itertools

from ..auction.models import Bid


class BidLedger:
    """Append-only record of submitted bids keyed by (bidder, sequence id).

    Sequence ids come from a single process-wide counter; ``next()`` on an
    ``itertools.count`` is one atomic step, so direct API bids and auto-bid
    ticks never observe the same id.
    """

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)
        self._bids: dict[tuple[str, int], Bid] = {}
        self._lock = asyncio.Lock()

    def next_sequence_id(self) -> int:
        return next(self._counter)

    async def record(self, bid: Bid) -> None:
        async with self._lock:
            self._bids[(bid.bidder_name, bid.sequence_id)] = bid

    async def lookup(self, bidder_name: str, sequence_id: int) -> Bid | None:
        async with self._lock:
            return self._bids.get((bidder_name, sequence_id))

    async def clear(self) -> None:
        async with self._lock:
            self._bids.clear()

    async def list_bids(self) -> list[Bid]:
        async with self._lock:
            return sorted(self._bids.values(), key=lambda bid: bid.sequence_id)
