"""Demo account registry backed by YAML configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from ..validation.validator import SchemaRegistry, get_schema_registry


class UnknownBidder(KeyError):
    """Raised when a bidder name has no configured ledger account."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown bidder {self.name!r}"


@dataclass(frozen=True)
class BidderAccount:
    name: str
    address: str


class AccountRegistry:
    """Name to ledger-account mapping plus the fixed auto-bid roster.

    Loaded once at startup and treated as immutable afterwards.
    """

    def __init__(self, accounts: Mapping[str, str], roster: Iterable[str], manager: str | None = None) -> None:
        self._accounts = {
            name: BidderAccount(name=name, address=str(address))
            for name, address in accounts.items()
        }
        self._roster = tuple(roster)
        self._manager = manager
        missing = [name for name in self._roster if name not in self._accounts]
        if missing:
            raise ValueError(f"roster names without accounts: {', '.join(missing)}")

    @classmethod
    def from_yaml(cls, path: Path, schemas: SchemaRegistry | None = None) -> "AccountRegistry":
        data: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        (schemas or get_schema_registry()).validate("accounts", data)
        return cls(
            accounts=data["bidders"],
            roster=data["roster"],
            manager=data.get("manager"),
        )

    @property
    def roster(self) -> tuple[str, ...]:
        return self._roster

    @property
    def manager(self) -> str | None:
        return self._manager

    def all(self) -> Iterable[BidderAccount]:
        return self._accounts.values()

    def get(self, name: str) -> BidderAccount | None:
        return self._accounts.get(name)

    def resolve(self, name: str) -> str:
        account = self._accounts.get(name)
        if account is None:
            raise UnknownBidder(name)
        return account.address

    def by_address(self) -> dict[str, str]:
        return {account.address: account.name for account in self._accounts.values()}
