"""Configuration helpers for the auction facade."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml

_DEFAULT_SERVER_CONFIG = Path(__file__).resolve().parent / "server.yaml"
_DEFAULT_ACCOUNTS_CONFIG = Path(__file__).resolve().parent / "accounts.yaml"

DEFAULT_ENDED_MARKERS = (
    "auctionEnd has already been called",
    "Auction already ended",
)


@dataclass(frozen=True)
class LedgerConfig:
    backend: str
    options: Mapping[str, Any]
    call_timeout_seconds: float
    default_contract: str | None


@dataclass(frozen=True)
class AutoBidConfig:
    initial_bid: int
    initial_delay_seconds: float
    period_seconds: float
    settle_delay_seconds: float
    ended_markers: tuple[str, ...]


@dataclass(frozen=True)
class LoggingConfig:
    level: str


@dataclass(frozen=True)
class ServerConfig:
    listen: Mapping[str, Any]
    ledger: LedgerConfig
    autobid: AutoBidConfig
    logging: LoggingConfig


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return yaml.safe_load(path.read_text()) or {}


def parse_server_config(data: Mapping[str, Any]) -> ServerConfig:
    ledger = data.get("ledger", {})
    autobid = data.get("autobid", {})
    log_cfg = data.get("logging", {})
    markers = tuple(autobid.get("ended_markers") or DEFAULT_ENDED_MARKERS)
    return ServerConfig(
        listen=data.get("listen", {}),
        ledger=LedgerConfig(
            backend=str(ledger.get("backend", "local")),
            options=dict(ledger.get("options") or {}),
            call_timeout_seconds=float(ledger.get("call_timeout_seconds", 10)),
            default_contract=ledger.get("default_contract") or None,
        ),
        autobid=AutoBidConfig(
            initial_bid=int(autobid.get("initial_bid", 1000)),
            initial_delay_seconds=float(autobid.get("initial_delay_seconds", 2)),
            period_seconds=float(autobid.get("period_seconds", 3)),
            settle_delay_seconds=float(autobid.get("settle_delay_seconds", 1)),
            ended_markers=markers,
        ),
        logging=LoggingConfig(level=str(log_cfg.get("level", "INFO")).upper()),
    )


@lru_cache(maxsize=1)
def get_server_config() -> ServerConfig:
    path = Path(os.getenv("AUCTION_CONFIG_PATH", _DEFAULT_SERVER_CONFIG))
    return parse_server_config(_load_yaml(path))


def get_accounts_config_path() -> Path:
    return Path(os.getenv("AUCTION_ACCOUNTS_PATH", _DEFAULT_ACCOUNTS_CONFIG))
