"""Operational stats endpoint."""

from __future__ import annotations

from collections import Counter
from typing import Any

from fastapi import APIRouter, Depends, Request

from ..auction.service import AuctionService

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_service(request: Request) -> AuctionService:
    return request.app.state.auction_service


@router.get("/stats")
async def stats(service: AuctionService = Depends(_get_service)) -> dict[str, Any]:
    bids = await service.bid_history()
    bids_by_bidder: Counter[str] = Counter()
    bids_by_contract: Counter[str] = Counter()
    highest_by_contract: dict[str, int] = {}
    for bid in bids:
        bids_by_bidder[bid.bidder_name] += 1
        bids_by_contract[bid.contract_address] += 1
        highest_by_contract[bid.contract_address] = max(
            highest_by_contract.get(bid.contract_address, 0), bid.amount
        )
    return {
        "total_bids": len(bids),
        "last_sequence_id": bids[-1].sequence_id if bids else None,
        "bids_by_bidder": dict(bids_by_bidder),
        "bids_by_contract": dict(bids_by_contract),
        "highest_submitted_by_contract": highest_by_contract,
        "auto_bidding": service.auto_bid_sessions(),
    }
