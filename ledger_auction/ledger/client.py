"""Ledger client backends: an in-process simulated auction and an HTTP relay."""

from __future__ import annotations

import asyncio
import hashlib
import itertools
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Protocol

import httpx
from jsonschema import ValidationError

from ..auction.models import (
    CONTRACT_REVERT_EXECUTED,
    SUCCESS,
    ContractCallResult,
    ContractLog,
    Receipt,
)
from ..config import ServerConfig
from ..transport.canonical_json import canonical_dumps
from ..validation.validator import SchemaRegistry, get_schema_registry
from .fsm import ContractEvent, ContractState, transition

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised when a ledger call fails at the transport or contract level."""


class LedgerClient(Protocol):
    async def submit_transaction(
        self,
        contract_address: str,
        entry_point: str,
        args: Iterable[Any] = (),
        *,
        sender: str | None = None,
        amount: int = 0,
    ) -> Receipt: ...

    async def deploy_contract(self, beneficiary_address: str, duration_seconds: int) -> str: ...

    async def close(self) -> None: ...


# Simulated ledger -------------------------------------------------------------

_TRANSACTION_FEE = 84_000_000
_GAS_USED = {
    "bid": 31_000,
    "auctionEnd": 28_000,
    "resetAuction": 24_000,
    "startTimer": 22_000,
}


def _topic(signature: str) -> bytes:
    return hashlib.sha3_256(signature.encode()).digest()


class _Revert(Exception):
    pass


@dataclass
class _AuctionContract:
    address: str
    beneficiary: str
    bidding_time: float
    auction_end: float
    state: ContractState = ContractState.OPEN
    highest_bidder: str | None = None
    highest_bid: int = 0


class LocalLedgerClient:
    """Runs a simple open auction per deployed contract inside the process.

    Mirrors the revert messages of the deployed contract so the auto-bidder
    sees the same outcomes it would against the network.
    """

    def __init__(
        self,
        *,
        shard_realm: str = "0.0",
        first_contract_num: int = 1100,
        operator: str = "0.0.2",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._shard_realm = shard_realm
        self._contract_nums = itertools.count(first_contract_num)
        self._operator = operator
        self._clock = clock
        self._contracts: dict[str, _AuctionContract] = {}
        self._lock = asyncio.Lock()
        self._entry_points = {
            "bid": self._bid,
            "auctionEnd": self._auction_end,
            "resetAuction": self._reset,
            "startTimer": self._start_timer,
        }

    async def deploy_contract(self, beneficiary_address: str, duration_seconds: int) -> str:
        if duration_seconds <= 0:
            raise GatewayError("bidding time must be positive")
        async with self._lock:
            address = f"{self._shard_realm}.{next(self._contract_nums)}"
            now = self._clock()
            self._contracts[address] = _AuctionContract(
                address=address,
                beneficiary=beneficiary_address,
                bidding_time=float(duration_seconds),
                auction_end=now + duration_seconds,
            )
        logger.info("[local-ledger] deployed auction contract=%s beneficiary=%s", address, beneficiary_address)
        return address

    async def submit_transaction(
        self,
        contract_address: str,
        entry_point: str,
        args: Iterable[Any] = (),
        *,
        sender: str | None = None,
        amount: int = 0,
    ) -> Receipt:
        payer = sender or self._operator
        async with self._lock:
            contract = self._contracts.get(contract_address)
            if contract is None:
                raise GatewayError(f"contract {contract_address} not found")
            handler = self._entry_points.get(entry_point)
            now = self._clock()
            logs: tuple[ContractLog, ...] = ()
            error_message = None
            if handler is None:
                error_message = f"unknown function {entry_point}"
            else:
                try:
                    logs = handler(contract, payer, amount, now)
                except _Revert as exc:
                    error_message = str(exc)
        return self._receipt(contract_address, entry_point, payer, now, logs, error_message)

    async def close(self) -> None:
        return None

    def _bid(self, contract: _AuctionContract, sender: str, amount: int, now: float) -> tuple[ContractLog, ...]:
        if contract.state is ContractState.ENDED:
            raise _Revert("auctionEnd has already been called")
        if now >= contract.auction_end:
            raise _Revert("Auction already ended")
        if amount <= contract.highest_bid:
            raise _Revert("There already is a higher bid")
        contract.highest_bidder = sender
        contract.highest_bid = amount
        return (
            self._log(contract, "HighestBidIncreased(address,uint256)", {"bidder": sender, "amount": amount}),
        )

    def _auction_end(self, contract: _AuctionContract, sender: str, amount: int, now: float) -> tuple[ContractLog, ...]:
        if now < contract.auction_end:
            raise _Revert("Auction not yet ended")
        if contract.state is ContractState.ENDED:
            raise _Revert("auctionEnd has already been called")
        contract.state = transition(contract.state, ContractEvent.AUCTION_ENDED)
        return (
            self._log(
                contract,
                "AuctionEnded(address,uint256)",
                {"winner": contract.highest_bidder, "amount": contract.highest_bid},
            ),
        )

    def _reset(self, contract: _AuctionContract, sender: str, amount: int, now: float) -> tuple[ContractLog, ...]:
        contract.state = transition(contract.state, ContractEvent.RESET)
        contract.highest_bidder = None
        contract.highest_bid = 0
        contract.auction_end = now + contract.bidding_time
        return ()

    def _start_timer(self, contract: _AuctionContract, sender: str, amount: int, now: float) -> tuple[ContractLog, ...]:
        contract.state = transition(contract.state, ContractEvent.TIMER_STARTED)
        contract.auction_end = now + contract.bidding_time
        return ()

    def _log(self, contract: _AuctionContract, signature: str, data: dict[str, Any]) -> ContractLog:
        return ContractLog(
            contract_id=contract.address,
            bloom=b"",
            data=canonical_dumps(data),
            topics=(_topic(signature),),
        )

    def _receipt(
        self,
        contract_address: str,
        entry_point: str,
        payer: str,
        now: float,
        logs: tuple[ContractLog, ...],
        error_message: str | None,
    ) -> Receipt:
        seconds, fraction = divmod(now, 1)
        nanos = int(fraction * 1_000_000_000)
        return Receipt(
            status=SUCCESS if error_message is None else CONTRACT_REVERT_EXECUTED,
            transaction_id=f"{payer}@{int(seconds)}.{nanos:09d}",
            consensus_timestamp=datetime.fromtimestamp(now, timezone.utc).isoformat().replace("+00:00", "Z"),
            transaction_fee=_TRANSACTION_FEE,
            contract_result=ContractCallResult(
                contract_id=contract_address,
                gas_used=_GAS_USED.get(entry_point, 0),
                error_message=error_message,
                result_bytes=error_message.encode() if error_message else b"",
                logs=logs,
            ),
        )


# HTTP relay -------------------------------------------------------------------


def _decode_hex(value: str | None) -> bytes:
    if not value:
        return b""
    return bytes.fromhex(value.removeprefix("0x"))


def receipt_from_payload(payload: dict[str, Any]) -> Receipt:
    """Build a Receipt from a relay response already validated against the schema."""
    result_payload = payload.get("contract_result")
    contract_result = None
    if result_payload:
        logs = tuple(
            ContractLog(
                contract_id=log["contract_id"],
                bloom=_decode_hex(log.get("bloom")),
                data=_decode_hex(log.get("data")),
                topics=tuple(_decode_hex(topic) for topic in log.get("topics", [])),
            )
            for log in result_payload.get("logs", [])
        )
        contract_result = ContractCallResult(
            contract_id=result_payload.get("contract_id", ""),
            gas_used=int(result_payload.get("gas_used", 0)),
            error_message=result_payload.get("error_message"),
            result_bytes=_decode_hex(result_payload.get("result")),
            logs=logs,
        )
    return Receipt(
        status=payload["status"],
        transaction_id=payload["transaction_id"],
        consensus_timestamp=payload.get("consensus_timestamp"),
        transaction_fee=int(payload.get("transaction_fee", 0)),
        contract_result=contract_result,
    )


class HttpLedgerClient:
    """Talks JSON to a relay service that signs and submits ledger transactions."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 15.0,
        schemas: SchemaRegistry | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("http ledger backend requires base_url")
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)
        self._schemas = schemas or get_schema_registry()

    async def close(self) -> None:
        await self._client.aclose()

    async def submit_transaction(
        self,
        contract_address: str,
        entry_point: str,
        args: Iterable[Any] = (),
        *,
        sender: str | None = None,
        amount: int = 0,
    ) -> Receipt:
        body = {
            "function": entry_point,
            "args": list(args),
            "sender": sender,
            "amount": amount,
        }
        payload = await self._post(f"/contracts/{contract_address}/call", body)
        self._validate("receipt", payload)
        try:
            return receipt_from_payload(payload)
        except ValueError as exc:
            raise GatewayError(f"malformed receipt from ledger relay: {exc}") from exc

    async def deploy_contract(self, beneficiary_address: str, duration_seconds: int) -> str:
        payload = await self._post(
            "/contracts",
            {"beneficiary": beneficiary_address, "bidding_time": duration_seconds},
        )
        self._validate("deployment", payload)
        return payload["contract_id"]

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(
                path,
                content=canonical_dumps(body),
                headers={"content-type": "application/json"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise GatewayError(
                f"ledger relay returned {exc.response.status_code}: {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise GatewayError(f"ledger relay unreachable: {exc}") from exc
        except ValueError as exc:
            raise GatewayError("ledger relay returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise GatewayError("ledger relay returned unexpected payload")
        return data

    def _validate(self, schema_name: str, payload: dict[str, Any]) -> None:
        try:
            self._schemas.validate(schema_name, payload)
        except ValidationError as exc:
            raise GatewayError(f"invalid {schema_name} from ledger relay: {exc.message}") from exc


def build_ledger_client(config: ServerConfig, schemas: SchemaRegistry | None = None) -> LedgerClient:
    backend = config.ledger.backend
    options = dict(config.ledger.options)
    if backend == "local":
        return LocalLedgerClient()
    if backend == "http":
        return HttpLedgerClient(
            base_url=str(options.get("base_url", "")),
            timeout_seconds=float(options.get("timeout_seconds", 15)),
            schemas=schemas,
        )
    raise ValueError(f"unknown ledger backend {backend}")
