"""Pydantic schemas for pm_market API requests and responses.

Intents (bet / claim) describe a contract call for the client to sign; the
ledger never submits transactions itself.
"""

from typing import Any

from pydantic import BaseModel

from src.pm_common.datetime_utils import to_iso_utc
from src.pm_market.domain.models import Market, Odds

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateMarketRequest(BaseModel):
    target_price: int      # cents
    settlement_block: int
    description: str | None = None


class BetRequest(BaseModel):
    market_id: int
    side: str
    amount: int            # sats
    sender: str


class ClaimRequest(BaseModel):
    sender: str = ""


# ---------------------------------------------------------------------------
# Market views
# ---------------------------------------------------------------------------


class OddsOut(BaseModel):
    yes_odds: int
    no_odds: int
    implied_yes: float | str
    implied_no: float | str

    @classmethod
    def from_domain(cls, odds: Odds) -> "OddsOut":
        return cls(
            yes_odds=odds.yes_odds,
            no_odds=odds.no_odds,
            implied_yes=odds.implied_yes,
            implied_no=odds.implied_no,
        )


class MarketOut(BaseModel):
    id: int
    creator: str
    target_price: int
    settlement_block: int
    yes_pool: int
    no_pool: int
    settled: bool
    winning_side: str | None
    settlement_price: int
    description: str
    created_at: str

    @classmethod
    def from_domain(cls, m: Market) -> "MarketOut":
        return cls(
            id=m.id,
            creator=m.creator,
            target_price=m.target_price,
            settlement_block=m.settlement_block,
            yes_pool=m.yes_pool,
            no_pool=m.no_pool,
            settled=m.settled,
            winning_side=m.winning_side.value if m.winning_side else None,
            settlement_price=m.settlement_price,
            description=m.description,
            created_at=to_iso_utc(m.created_at),
        )


class MarketView(MarketOut):
    """Market plus derived odds and lifecycle status."""

    odds: OddsOut
    status: str
    blocks_remaining: int | None


class MarketListResponse(BaseModel):
    markets: list[MarketView]
    count: int
    current_block: int | None


class MarketDetailResponse(MarketView):
    current_price: int | None
    current_block: int | None


class CreateMarketResponse(BaseModel):
    market: MarketOut
    payment: dict[str, str]
    message: str
    bet_endpoint: str = "/bet"


# ---------------------------------------------------------------------------
# Contract call intents
# ---------------------------------------------------------------------------


class ClarityArg(BaseModel):
    type: str
    value: int


class PostCondition(BaseModel):
    type: str
    sender: str
    amount: int


class ContractCall(BaseModel):
    contract_address: str
    contract_name: str
    function_name: str
    function_args: list[ClarityArg]
    post_conditions: list[PostCondition] = []


class BetMarketSnapshot(BaseModel):
    id: int
    target_price: int
    settlement_block: int
    current_odds: OddsOut


class BetIntent(BaseModel):
    transaction: ContractCall
    market: BetMarketSnapshot
    message: str


class SettlementSummary(BaseModel):
    market_id: int
    target_price: int
    settlement_price: int
    winning_side: str
    yes_pool: int
    no_pool: int


class SettlementResult(BaseModel):
    settlement: SettlementSummary
    message: str
    claim_endpoint: str


class ClaimMarketSnapshot(BaseModel):
    id: int
    winning_side: str
    settlement_price: int


class ClaimIntent(BaseModel):
    transaction: ContractCall
    market: ClaimMarketSnapshot
    message: str


# ---------------------------------------------------------------------------
# Service info
# ---------------------------------------------------------------------------


class ServiceInfo(BaseModel):
    name: str
    version: str
    description: str
    current_btc_block: int | None
    current_btc_price: str | None
    contract: dict[str, str]
    endpoints: dict[str, Any]
