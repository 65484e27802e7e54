"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config.settings import settings
from src.pm_common.enums import StoreBackend
from src.pm_common.errors import AppError, InternalError, RequestValidationFailed
from src.pm_common.redis_client import close_redis, get_redis, ping_redis
from src.pm_common.response import error_response
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_market.api.router import router as market_router
from src.pm_market.application.service import MarketLedgerService
from src.pm_market.domain.repository import MarketStoreProtocol
from src.pm_market.infrastructure.persistence import InMemoryMarketStore, RedisMarketStore
from src.pm_oracle.infrastructure.gateway import HttpOracleGateway

# Field hints returned when a request body does not parse.
_REQUIRED_FIELDS = {
    "/create": {"target_price": "cents", "settlement_block": "number"},
    "/bet": {"market_id": "number", "side": "yes|no", "amount": "sats", "sender": "address"},
}


async def _build_store() -> MarketStoreProtocol:
    if settings.STORE_BACKEND == StoreBackend.MEMORY:
        return InMemoryMarketStore()
    redis = await get_redis()
    await ping_redis(redis)
    return RedisMarketStore(redis, settings.MARKETS_KEY, settings.STORE_MAX_RETRIES)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: wire store + oracle into the ledger service. Shutdown: close them."""
    # Startup
    oracle = HttpOracleGateway(
        settings.BLOCK_FEED_URL,
        settings.PRICE_FEED_URL,
        settings.ORACLE_TIMEOUT_SECONDS,
    )
    app.state.ledger_service = MarketLedgerService(await _build_store(), oracle)
    yield
    # Shutdown
    await oracle.close()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.details, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    ]
    return await app_error_handler(
        request,
        RequestValidationFailed(_REQUIRED_FIELDS.get(request.url.path, {}), errors),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Logged by RequestLogMiddleware; the client only sees the generic envelope.
    return await app_error_handler(request, InternalError())


app.include_router(market_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": settings.APP_VERSION}
