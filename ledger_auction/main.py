from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Awaitable

from fastapi import Depends, FastAPI, HTTPException, Path, Query, Request, status
from fastapi.responses import PlainTextResponse

from .admin import bidders as admin_bidders
from .admin import config as admin_config
from .admin import health as admin_health
from .admin import stats as admin_stats
from .auction.gateway import AuctionGateway, GatewayError
from .auction.models import Receipt
from .auction.outcomes import OutcomeClassifier
from .auction.receipts import format_receipt
from .auction.service import AuctionService
from .bidders.registry import AccountRegistry, UnknownBidder
from .config import ServerConfig, get_accounts_config_path, get_server_config
from .ledger.client import build_ledger_client
from .storage import BidLedger
from .validation.validator import get_schema_registry

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    package_logger = logging.getLogger("ledger_auction")
    package_logger.setLevel(level)
    if not logging.getLogger().handlers and not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        package_logger.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    server_config = get_server_config()
    configure_logging(server_config.logging.level)
    schema_registry = get_schema_registry()
    accounts = AccountRegistry.from_yaml(get_accounts_config_path(), schema_registry)
    ledger_client = build_ledger_client(server_config, schema_registry)
    gateway = AuctionGateway(
        ledger_client,
        call_timeout_seconds=server_config.ledger.call_timeout_seconds,
    )
    auction_service = AuctionService(
        accounts,
        BidLedger(),
        gateway,
        autobid=server_config.autobid,
        classifier=OutcomeClassifier(server_config.autobid.ended_markers),
        default_contract=server_config.ledger.default_contract,
    )

    app.state.server_config = server_config
    app.state.schema_registry = schema_registry
    app.state.accounts = accounts
    app.state.ledger_client = ledger_client
    app.state.auction_service = auction_service
    app.state.start_time = datetime.now(timezone.utc)
    logger.info(
        "auction facade ready: ledger backend=%s default contract=%s",
        server_config.ledger.backend,
        server_config.ledger.default_contract,
    )

    yield

    await auction_service.shutdown()
    await ledger_client.close()


app = FastAPI(
    title="Ledger Auction Facade",
    version="1.0.0",
    docs_url="/docs",
    lifespan=lifespan,
)

app.include_router(admin_health.router)
app.include_router(admin_stats.router)
app.include_router(admin_config.router)
app.include_router(admin_bidders.router)


# Dependency helpers ---------------------------------------------------------


def get_server_settings(request: Request) -> ServerConfig:
    return request.app.state.server_config


def get_auction_service(request: Request) -> AuctionService:
    return request.app.state.auction_service


async def _receipt_response(call: Awaitable[Receipt]) -> PlainTextResponse:
    try:
        receipt = await call
    except UnknownBidder as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except GatewayError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return PlainTextResponse(format_receipt(receipt), status_code=status.HTTP_201_CREATED)


# Routes ---------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root(
    settings: ServerConfig = Depends(get_server_settings),
    service: AuctionService = Depends(get_auction_service),
) -> dict[str, Any]:
    return {
        "service": "ledger-auction",
        "version": app.version,
        "ledger_backend": settings.ledger.backend,
        "default_contract": service.default_contract,
    }


@app.get("/getBid", tags=["bids"])
async def get_bid(
    bidder: str = Query(...),
    sequence_id: int = Query(..., alias="id"),
    service: AuctionService = Depends(get_auction_service),
) -> dict[str, Any] | None:
    bid = await service.lookup_bid(bidder, sequence_id)
    return bid.to_dict() if bid else None


@app.post("/singleBid/{bidder}/{amount}/{contract_addr}", tags=["bids"], response_class=PlainTextResponse)
async def single_bid(
    bidder: str,
    contract_addr: str,
    amount: int = Path(..., ge=0),
    service: AuctionService = Depends(get_auction_service),
) -> PlainTextResponse:
    return await _receipt_response(service.place_bid(bidder, amount, contract_addr))


@app.post("/singleBid/{bidder}/{amount}", tags=["bids"], response_class=PlainTextResponse)
async def single_bid_default_contract(
    bidder: str,
    amount: int = Path(..., ge=0),
    service: AuctionService = Depends(get_auction_service),
) -> PlainTextResponse:
    return await _receipt_response(service.place_bid(bidder, amount))


@app.post("/bid/{bidder}/{amount}/{contract_addr}", tags=["bids"], response_class=PlainTextResponse)
async def bid_and_start_auto_bidding(
    bidder: str,
    contract_addr: str,
    amount: int = Path(..., ge=0),
    service: AuctionService = Depends(get_auction_service),
    settings: ServerConfig = Depends(get_server_settings),
) -> PlainTextResponse:
    """Place one bid, then let the simulated roster keep bidding until the auction ends."""
    response = await _receipt_response(service.place_bid(bidder, amount, contract_addr))
    await asyncio.sleep(settings.autobid.settle_delay_seconds)
    await service.start_auto_bidding(contract_addr)
    return response


@app.post("/bid/{contract_id}", tags=["autobid"])
async def start_auto_bidding(
    contract_id: str,
    service: AuctionService = Depends(get_auction_service),
) -> dict[str, str]:
    return await service.start_auto_bidding(contract_id)


@app.delete("/bid/{contract_id}", tags=["autobid"])
async def stop_auto_bidding(
    contract_id: str,
    service: AuctionService = Depends(get_auction_service),
) -> dict[str, str]:
    if not await service.stop_auto_bidding(contract_id):
        raise HTTPException(status_code=404, detail=f"no auto bidding running for {contract_id}")
    return {"status": "stopped", "contract": contract_id}


@app.post("/endAuction/{bidder}/{contract_addr}", tags=["auction"], response_class=PlainTextResponse)
async def end_auction(
    bidder: str,
    contract_addr: str,
    service: AuctionService = Depends(get_auction_service),
) -> PlainTextResponse:
    return await _receipt_response(service.end_auction(bidder, contract_addr))


@app.post("/newAuction/{bidding_time_sec}/{beneficiary_addr}", tags=["auction"], response_class=PlainTextResponse)
async def new_auction(
    beneficiary_addr: str,
    bidding_time_sec: int = Path(..., gt=0),
    service: AuctionService = Depends(get_auction_service),
) -> PlainTextResponse:
    try:
        contract = await service.create_auction(beneficiary_addr, bidding_time_sec)
    except GatewayError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return PlainTextResponse(contract, status_code=status.HTTP_201_CREATED)


@app.post("/resetAuction/{contract_id}", tags=["auction"], response_class=PlainTextResponse)
async def reset_auction(
    contract_id: str,
    service: AuctionService = Depends(get_auction_service),
) -> PlainTextResponse:
    return await _receipt_response(service.reset_auction(contract_id))


@app.post("/startTimer/{contract_id}", tags=["auction"], response_class=PlainTextResponse)
async def start_timer(
    contract_id: str,
    service: AuctionService = Depends(get_auction_service),
) -> PlainTextResponse:
    return await _receipt_response(service.start_timer(contract_id))
