"""Shared test fixtures."""

import asyncio
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pm_market.api.router import get_ledger_service
from src.pm_market.application.service import MarketLedgerService
from src.pm_market.domain.models import Market
from src.pm_market.infrastructure.persistence import InMemoryMarketStore

CURRENT_BLOCK = 870_000


class FakeOracle:
    """Settable oracle; yields to the loop on every read like a real feed."""

    def __init__(self, block: int | None = CURRENT_BLOCK, price: int | None = 5_000_000) -> None:
        self.block = block
        self.price = price

    async def current_block(self) -> int | None:
        await asyncio.sleep(0)
        return self.block

    async def current_price(self) -> int | None:
        await asyncio.sleep(0)
        return self.price


def make_market(**kwargs) -> Market:
    defaults = dict(
        id=0, creator="tx-abc", target_price=5_000_000,
        settlement_block=CURRENT_BLOCK + 200, yes_pool=0, no_pool=0,
        settled=False, winning_side=None, settlement_price=0,
        description="BTC >= $50,000 by block 870200",
        created_at=datetime(2026, 1, 1, tzinfo=UTC),
    )
    defaults.update(kwargs)
    return Market(**defaults)


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def store() -> InMemoryMarketStore:
    return InMemoryMarketStore()


@pytest.fixture
def ledger_service(store, oracle) -> MarketLedgerService:
    return MarketLedgerService(store, oracle)


@pytest.fixture
async def client(ledger_service) -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints (in-memory store, fake oracle)."""
    app.dependency_overrides[get_ledger_service] = lambda: ledger_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
