"""Expose currently loaded server config for debugging."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..bidders.registry import AccountRegistry
from ..config import ServerConfig

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_config(request: Request) -> ServerConfig:
    return request.app.state.server_config


def _get_accounts(request: Request) -> AccountRegistry:
    return request.app.state.accounts


@router.get("/config")
async def config(
    config: ServerConfig = Depends(_get_config),
    accounts: AccountRegistry = Depends(_get_accounts),
) -> dict:
    autobid = config.autobid
    return {
        "listen": dict(config.listen),
        "ledger": {
            "backend": config.ledger.backend,
            "call_timeout_seconds": config.ledger.call_timeout_seconds,
            "default_contract": config.ledger.default_contract,
        },
        "autobid": {
            "roster": list(accounts.roster),
            "initial_bid": autobid.initial_bid,
            "initial_delay_seconds": autobid.initial_delay_seconds,
            "period_seconds": autobid.period_seconds,
            "settle_delay_seconds": autobid.settle_delay_seconds,
            "ended_markers": list(autobid.ended_markers),
        },
        "manager": accounts.manager,
        "logging": {"level": config.logging.level},
    }
