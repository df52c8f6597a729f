"""Unit tests for configuration loading and the account registry."""

from __future__ import annotations

from pathlib import Path

import pytest
from jsonschema import ValidationError

from ledger_auction.bidders.registry import AccountRegistry, UnknownBidder
from ledger_auction.config import (
    DEFAULT_ENDED_MARKERS,
    get_accounts_config_path,
    get_server_config,
    parse_server_config,
)


class TestServerConfig:
    def test_defaults(self):
        config = parse_server_config({})
        assert config.ledger.backend == "local"
        assert config.ledger.default_contract is None
        assert config.autobid.initial_bid == 1000
        assert config.autobid.initial_delay_seconds == 2
        assert config.autobid.period_seconds == 3
        assert config.autobid.settle_delay_seconds == 1
        assert config.autobid.ended_markers == DEFAULT_ENDED_MARKERS
        assert config.logging.level == "INFO"

    def test_loaded_from_env_path(self, server_config_path):
        config = get_server_config()
        assert config.autobid.period_seconds == 0.01
        assert config.ledger.call_timeout_seconds == 2
        assert config.logging.level == "DEBUG"

    def test_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("AUCTION_CONFIG_PATH", str(tmp_path / "nope.yaml"))
        get_server_config.cache_clear()
        try:
            with pytest.raises(FileNotFoundError):
                get_server_config()
        finally:
            get_server_config.cache_clear()


class TestAccountRegistry:
    def test_bundled_accounts_file(self):
        registry = AccountRegistry.from_yaml(get_accounts_config_path())
        assert registry.roster == ("Bob", "Carol", "Alice")
        assert registry.resolve("Alice") == "0.0.1002"
        assert registry.by_address()["0.0.1003"] == "Bob"
        assert registry.manager == "0.0.1001"

    def test_unknown_bidder(self, accounts):
        with pytest.raises(UnknownBidder) as excinfo:
            accounts.resolve("Mallory")
        assert "Mallory" in str(excinfo.value)
        assert accounts.get("Mallory") is None

    def test_roster_must_reference_known_accounts(self):
        with pytest.raises(ValueError, match="Dave"):
            AccountRegistry(accounts={"Bob": "0.0.1003"}, roster=["Bob", "Dave"])

    def test_malformed_account_rejected_by_schema(self, tmp_path: Path):
        path = tmp_path / "accounts.yaml"
        path.write_text("bidders:\n  Bob: not-an-account\nroster: [Bob]\n")
        with pytest.raises(ValidationError):
            AccountRegistry.from_yaml(path)
