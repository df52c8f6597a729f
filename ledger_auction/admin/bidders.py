"""Expose the demo bidder accounts."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from ..bidders.registry import AccountRegistry

router = APIRouter(tags=["admin"])


def _get_accounts(request: Request) -> AccountRegistry:
    return request.app.state.accounts


@router.get("/bidders")
async def bidders(accounts: AccountRegistry = Depends(_get_accounts)) -> dict[str, str]:
    """Account ID to bidder name map used by the demo UI."""
    return accounts.by_address()


@router.get("/admin/bidders")
async def bidder_inventory(accounts: AccountRegistry = Depends(_get_accounts)) -> list[dict[str, Any]]:
    roster = accounts.roster
    inventory = []
    for account in accounts.all():
        inventory.append(
            {
                "id": account.name,
                "account": account.address,
                "roster_position": roster.index(account.name) if account.name in roster else None,
                "status": "active",
            }
        )
    return inventory
