"""Shared fixtures for the auction facade tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from ledger_auction.bidders.registry import AccountRegistry
from ledger_auction.config import DEFAULT_ENDED_MARKERS, AutoBidConfig, get_server_config

SERVER_YAML = """
listen:
  host: 127.0.0.1
  port: 8080
ledger:
  backend: local
  call_timeout_seconds: 2
autobid:
  initial_bid: 1000
  initial_delay_seconds: 0.05
  period_seconds: 0.01
  settle_delay_seconds: 0
logging:
  level: DEBUG
"""


@pytest.fixture
def accounts() -> AccountRegistry:
    return AccountRegistry(
        accounts={"Alice": "0.0.1002", "Bob": "0.0.1003", "Carol": "0.0.1004"},
        roster=["Bob", "Carol", "Alice"],
        manager="0.0.1001",
    )


@pytest.fixture
def autobid_settings() -> AutoBidConfig:
    return AutoBidConfig(
        initial_bid=1000,
        initial_delay_seconds=0,
        period_seconds=0,
        settle_delay_seconds=0,
        ended_markers=DEFAULT_ENDED_MARKERS,
    )


@pytest.fixture
def server_config_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    path = tmp_path / "server.yaml"
    path.write_text(SERVER_YAML)
    monkeypatch.setenv("AUCTION_CONFIG_PATH", str(path))
    get_server_config.cache_clear()
    yield path
    get_server_config.cache_clear()
