"""pm_market REST endpoints.

GET  /markets                  — all markets with odds, status, current block
GET  /market/{market_id}       — one market with odds, status, live price
POST /create                   — create market (x402 gated)
POST /bet                      — bet call intent
POST /settle/{market_id}       — settle from the oracle price
POST /claim/{market_id}        — claim call intent
POST /demo/create-test-market  — seeded demo market
GET  /api                      — service info
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from config.settings import settings
from src.pm_common.errors import AppError
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.payment.dependencies import require_payment
from src.pm_market.application.schemas import BetRequest, ClaimRequest, CreateMarketRequest
from src.pm_market.application.service import MarketLedgerService

router = APIRouter(tags=["markets"])


def get_ledger_service(request: Request) -> MarketLedgerService:
    """FastAPI dependency: the service built during app lifespan."""
    return request.app.state.ledger_service


Ledger = Annotated[MarketLedgerService, Depends(get_ledger_service)]


def _respond(request: Request, data: object, message: str = "success") -> ApiResponse:
    return success_response(data, message, request)


@router.get("/api")
async def service_info(request: Request, service: Ledger) -> ApiResponse:
    result = await service.service_info()
    return _respond(request, result.model_dump())


@router.get("/markets")
async def list_markets(request: Request, service: Ledger) -> ApiResponse:
    result = await service.list_markets()
    return _respond(request, result.model_dump())


@router.get("/market/{market_id}")
async def get_market(market_id: int, request: Request, service: Ledger) -> ApiResponse:
    result = await service.get_market(market_id)
    return _respond(request, result.model_dump())


@router.post("/create")
async def create_market(
    req: CreateMarketRequest,
    request: Request,
    service: Ledger,
    payment: Annotated[str, Depends(require_payment)],
) -> ApiResponse:
    result = await service.create_market(
        req.target_price, req.settlement_block, req.description, payment
    )
    return _respond(request, result.model_dump(), result.message)


@router.post("/bet")
async def bet(req: BetRequest, request: Request, service: Ledger) -> ApiResponse:
    result = await service.describe_bet(req.market_id, req.side, req.amount, req.sender)
    return _respond(request, result.model_dump(), result.message)


@router.post("/settle/{market_id}")
async def settle(market_id: int, request: Request, service: Ledger) -> ApiResponse:
    result = await service.settle(market_id)
    return _respond(request, result.model_dump(), result.message)


@router.post("/claim/{market_id}")
async def claim(
    market_id: int, req: ClaimRequest, request: Request, service: Ledger
) -> ApiResponse:
    result = await service.describe_claim(market_id, req.sender)
    return _respond(request, result.model_dump(), result.message)


@router.post("/demo/create-test-market")
async def create_test_market(request: Request, service: Ledger) -> ApiResponse:
    if not settings.ENABLE_DEMO_ENDPOINTS:
        raise AppError(3999, "Demo endpoints are disabled", http_status=404)
    market = await service.create_demo_market()
    return _respond(
        request,
        {"market": market.model_dump()},
        "Test market created for demo purposes",
    )
