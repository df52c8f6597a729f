"""Automated bidding on behalf of the simulated roster."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from functools import partial
from typing import Any, Awaitable, Callable, Sequence

from ..config import AutoBidConfig
from ..ledger.client import GatewayError
from .models import AutoBidState, BidOutcome, Receipt
from .outcomes import OutcomeClassifier

logger = logging.getLogger(__name__)

BidPlacer = Callable[[str, int, str], Awaitable[Receipt]]


def advance(state: AutoBidState, outcome: BidOutcome, roster_size: int) -> AutoBidState:
    """Apply one tick's outcome to the scheduler state.

    The bid floor is raised before the bid is sent, so it is never touched
    here: a failed attempt still leaves the floor one higher for the retry.
    """
    if not state.running:
        return state
    if outcome is BidOutcome.AUCTION_ENDED:
        return replace(state, running=False)
    if outcome is BidOutcome.SUCCESS:
        return replace(state, cursor=(state.cursor + 1) % roster_size)
    return state


class AutoBidder:
    """Drives one contract with strictly increasing bids from a fixed roster."""

    def __init__(
        self,
        contract_address: str,
        roster: Sequence[str],
        place_bid: BidPlacer,
        classifier: OutcomeClassifier,
        *,
        initial_bid: int = 1000,
        initial_delay_seconds: float = 2.0,
        period_seconds: float = 3.0,
    ) -> None:
        if not roster:
            raise ValueError("auto-bid roster must not be empty")
        self._contract = contract_address
        self._roster = tuple(roster)
        self._place_bid = place_bid
        self._classifier = classifier
        self._initial_delay = initial_delay_seconds
        self._period = period_seconds
        self._state = AutoBidState(cursor=0, bid_floor=initial_bid)
        self._tick_lock = asyncio.Lock()

    @property
    def contract_address(self) -> str:
        return self._contract

    @property
    def roster(self) -> tuple[str, ...]:
        return self._roster

    @property
    def state(self) -> AutoBidState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state.running

    @property
    def current_bidder(self) -> str:
        return self._roster[self._state.cursor]

    def stop(self) -> None:
        self._state = replace(self._state, running=False)

    async def tick(self) -> BidOutcome | None:
        """Run one bid attempt; returns None when the tick was skipped."""
        if not self._state.running:
            return None
        if self._tick_lock.locked():
            logger.debug("auto-bid tick still in flight for contract=%s, skipping", self._contract)
            return None
        async with self._tick_lock:
            if not self._state.running:
                return None
            bidder = self._roster[self._state.cursor]
            amount = self._state.bid_floor + 1
            self._state = replace(self._state, bid_floor=amount)
            try:
                receipt = await self._place_bid(bidder, amount, self._contract)
            except Exception as exc:
                outcome = self._classifier.classify_error(exc)
                if outcome is BidOutcome.FAILURE:
                    logger.warning(
                        "auto-bid failed: bidder=%s amount=%s contract=%s error=%s",
                        bidder,
                        amount,
                        self._contract,
                        exc,
                        exc_info=not isinstance(exc, GatewayError),
                    )
            else:
                outcome = self._classifier.classify(receipt)
                if outcome is BidOutcome.FAILURE:
                    logger.warning(
                        "auto-bid rejected: bidder=%s amount=%s contract=%s status=%s error=%s",
                        bidder,
                        amount,
                        self._contract,
                        receipt.status,
                        receipt.error_message,
                    )
                else:
                    logger.info(
                        "auto-bid %s: bidder=%s amount=%s contract=%s status=%s",
                        outcome.value,
                        bidder,
                        amount,
                        self._contract,
                        receipt.status,
                    )
            self._state = advance(self._state, outcome, len(self._roster))
            if outcome is BidOutcome.AUCTION_ENDED:
                logger.info("Stopped auto bidding for contract=%s at amount=%s", self._contract, amount)
            return outcome

    async def run(self) -> AutoBidState:
        await asyncio.sleep(self._initial_delay)
        while self._state.running:
            await self.tick()
            if not self._state.running:
                break
            await asyncio.sleep(self._period)
        return self._state


@dataclass
class _Run:
    bidder: AutoBidder
    task: asyncio.Task


class AutoBidManager:
    """Keeps at most one running AutoBidder per contract."""

    def __init__(
        self,
        place_bid: BidPlacer,
        roster: Sequence[str],
        classifier: OutcomeClassifier,
        settings: AutoBidConfig,
    ) -> None:
        self._place_bid = place_bid
        self._roster = tuple(roster)
        self._classifier = classifier
        self._settings = settings
        self._runs: dict[str, _Run] = {}

    def start(self, contract_address: str) -> dict[str, str]:
        existing = self._runs.get(contract_address)
        if existing is not None and not existing.task.done():
            logger.info("auto bidding already running for contract=%s", contract_address)
            return {"status": "already_running", "contract": contract_address}
        bidder = AutoBidder(
            contract_address,
            self._roster,
            self._place_bid,
            self._classifier,
            initial_bid=self._settings.initial_bid,
            initial_delay_seconds=self._settings.initial_delay_seconds,
            period_seconds=self._settings.period_seconds,
        )
        task = asyncio.create_task(bidder.run(), name=f"autobid-{contract_address}")
        self._runs[contract_address] = _Run(bidder=bidder, task=task)
        task.add_done_callback(partial(self._on_done, contract_address))
        logger.info(
            "Started auto bidding for contract=%s roster=%s initial_bid=%s",
            contract_address,
            ",".join(self._roster),
            self._settings.initial_bid,
        )
        return {"status": "success", "contract": contract_address}

    async def stop(self, contract_address: str) -> bool:
        run = self._runs.pop(contract_address, None)
        if run is None:
            return False
        run.bidder.stop()
        run.task.cancel()
        await asyncio.gather(run.task, return_exceptions=True)
        logger.info("Cancelled auto bidding for contract=%s", contract_address)
        return True

    async def shutdown(self) -> None:
        for contract_address in list(self._runs):
            await self.stop(contract_address)

    def is_running(self, contract_address: str) -> bool:
        run = self._runs.get(contract_address)
        return run is not None and not run.task.done()

    def get(self, contract_address: str) -> AutoBidder | None:
        run = self._runs.get(contract_address)
        return run.bidder if run else None

    def sessions(self) -> list[dict[str, Any]]:
        return [
            {
                "contract": contract_address,
                "bidder": run.bidder.current_bidder,
                "cursor": run.bidder.state.cursor,
                "bid_floor": run.bidder.state.bid_floor,
                "running": run.bidder.running,
            }
            for contract_address, run in sorted(self._runs.items())
        ]

    def _on_done(self, contract_address: str, task: asyncio.Task) -> None:
        run = self._runs.get(contract_address)
        if run is not None and run.task is task:
            del self._runs[contract_address]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("auto bidding for contract=%s crashed", contract_address, exc_info=exc)
