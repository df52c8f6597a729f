"""Map ledger receipts and gateway errors onto auto-bid outcomes."""

from __future__ import annotations

from typing import Iterable

from ..config import DEFAULT_ENDED_MARKERS
from ..ledger.client import GatewayError
from .models import BidOutcome, Receipt


class OutcomeClassifier:
    """Classify a bid attempt using the configured "auction ended" markers.

    Markers are matched as substrings of the contract error message, the
    receipt status, or a gateway error. Anything that is neither a clean
    ``SUCCESS`` nor a known marker is a plain failure.
    """

    def __init__(self, ended_markers: Iterable[str] = DEFAULT_ENDED_MARKERS) -> None:
        self._markers = tuple(marker for marker in ended_markers if marker)

    @property
    def ended_markers(self) -> tuple[str, ...]:
        return self._markers

    def classify(self, receipt: Receipt) -> BidOutcome:
        if self._is_ended(receipt.error_message) or self._is_ended(receipt.status):
            return BidOutcome.AUCTION_ENDED
        if receipt.succeeded:
            return BidOutcome.SUCCESS
        return BidOutcome.FAILURE

    def classify_error(self, exc: BaseException) -> BidOutcome:
        if isinstance(exc, GatewayError) and self._is_ended(str(exc)):
            return BidOutcome.AUCTION_ENDED
        return BidOutcome.FAILURE

    def _is_ended(self, text: str | None) -> bool:
        if not text:
            return False
        return any(marker in text for marker in self._markers)
