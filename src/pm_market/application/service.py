"""MarketLedgerService — create / bet-intent / settle / claim-intent.

Every mutation runs through ``store.update`` so the load-modify-save cycle on
the shared market key is serialized. Oracle reads happen before the cycle;
state-dependent checks are repeated inside it.

Pools are a read-mirror of the on-chain contract: ``describe_bet`` only
builds a call intent and never credits a pool here.
"""

import asyncio
import logging

from config.settings import settings
from src.pm_common.cents import cents_to_display, cents_to_whole_dollars
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import Side
from src.pm_common.errors import (
    BetAmountTooSmallError,
    InvalidBetSideError,
    InvalidTargetPriceError,
    MarketNotFoundError,
    MarketNotSettledError,
    MissingSenderError,
    OracleUnavailableError,
    PaymentRequiredError,
    SettlementBlockTooSoonError,
)
from src.pm_market.application.schemas import (
    BetIntent,
    BetMarketSnapshot,
    ClaimIntent,
    ClaimMarketSnapshot,
    ClarityArg,
    ContractCall,
    CreateMarketResponse,
    MarketDetailResponse,
    MarketListResponse,
    MarketOut,
    MarketView,
    OddsOut,
    PostCondition,
    ServiceInfo,
    SettlementResult,
    SettlementSummary,
)
from src.pm_market.domain.models import Market
from src.pm_market.domain.odds import calculate_odds
from src.pm_market.domain.repository import MarketStoreProtocol
from src.pm_market.domain.settlement import (
    apply_settlement,
    blocks_remaining,
    derive_status,
    ensure_betting_open,
    ensure_settleable,
    minimum_settlement_block,
)
from src.pm_oracle.domain.gateway import OracleGatewayProtocol

logger = logging.getLogger(__name__)

CREATOR_TOKEN_CHARS = 20

DEMO_PRICE_OFFSET_CENTS = 500_000      # current price + $5k
DEMO_FALLBACK_TARGET_CENTS = 15_000_000  # $150k when the price feed is down
DEMO_YES_POOL = 50_000
DEMO_NO_POOL = 30_000

ENDPOINTS = {
    "GET /markets": "List all markets",
    "GET /market/:id": "Get market details",
    "POST /create": "Create new market (x402: 0.01 STX)",
    "POST /bet": "Generate bet transaction",
    "POST /settle/:id": "Trigger market settlement",
    "POST /claim/:id": "Generate claim transaction",
}


def default_description(target_price: int, settlement_block: int) -> str:
    return f"BTC >= ${cents_to_whole_dollars(target_price)} by block {settlement_block}"


def _find_market(markets: list[Market], market_id: int) -> Market:
    for m in markets:
        if m.id == market_id:
            return m
    raise MarketNotFoundError(market_id)


def _to_view(market: Market, current_block: int | None) -> dict:
    return dict(
        MarketOut.from_domain(market).model_dump(),
        odds=OddsOut.from_domain(calculate_odds(market.yes_pool, market.no_pool)),
        status=derive_status(market, current_block).value,
        blocks_remaining=blocks_remaining(market, current_block),
    )


class MarketLedgerService:
    def __init__(
        self,
        store: MarketStoreProtocol,
        oracle: OracleGatewayProtocol,
        contract_address: str = settings.CONTRACT_ADDRESS,
        contract_name: str = settings.CONTRACT_NAME,
        min_settlement_delay: int = settings.MIN_SETTLEMENT_DELAY_BLOCKS,
        min_bet: int = settings.MIN_BET_SATS,
    ) -> None:
        self._store = store
        self._oracle = oracle
        self._contract_address = contract_address
        self._contract_name = contract_name
        self._min_settlement_delay = min_settlement_delay
        self._min_bet = min_bet

    def _contract_call(
        self,
        function_name: str,
        args: list[int],
        post_conditions: list[PostCondition] | None = None,
    ) -> ContractCall:
        return ContractCall(
            contract_address=self._contract_address,
            contract_name=self._contract_name,
            function_name=function_name,
            function_args=[ClarityArg(type="uint", value=a) for a in args],
            post_conditions=post_conditions or [],
        )

    async def _require_block(self) -> int:
        current_block = await self._oracle.current_block()
        if current_block is None:
            raise OracleUnavailableError("block height")
        return current_block

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_markets(self) -> MarketListResponse:
        markets = await self._store.load_all()
        current_block = await self._oracle.current_block()
        return MarketListResponse(
            markets=[MarketView(**_to_view(m, current_block)) for m in markets],
            count=len(markets),
            current_block=current_block,
        )

    async def get_market(self, market_id: int) -> MarketDetailResponse:
        market = _find_market(await self._store.load_all(), market_id)
        current_block, current_price = await asyncio.gather(
            self._oracle.current_block(), self._oracle.current_price()
        )
        return MarketDetailResponse(
            **_to_view(market, current_block),
            current_price=current_price,
            current_block=current_block,
        )

    async def service_info(self) -> ServiceInfo:
        current_block, current_price = await asyncio.gather(
            self._oracle.current_block(), self._oracle.current_price()
        )
        price_display = f"${cents_to_whole_dollars(current_price)}" if current_price else None
        return ServiceInfo(
            name=settings.APP_NAME,
            version=settings.APP_VERSION,
            description="Bet sBTC on Bitcoin price predictions, settled via Pyth oracle",
            current_btc_block=current_block,
            current_btc_price=price_display,
            contract={"address": self._contract_address, "name": self._contract_name},
            endpoints=ENDPOINTS,
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_market(
        self,
        target_price: int,
        settlement_block: int,
        description: str | None,
        creator_token: str,
    ) -> CreateMarketResponse:
        if not creator_token:
            raise PaymentRequiredError(
                "Create prediction market",
                settings.CREATE_MARKET_PRICE,
                settings.PAYMENT_ADDRESS,
            )
        if target_price <= 0:
            raise InvalidTargetPriceError(target_price)

        current_block = await self._require_block()
        min_block = minimum_settlement_block(current_block, self._min_settlement_delay)
        if settlement_block < min_block:
            raise SettlementBlockTooSoonError(settlement_block, min_block, current_block)

        market = await self._append_market(
            creator=creator_token[:CREATOR_TOKEN_CHARS],
            target_price=target_price,
            settlement_block=settlement_block,
            description=description or default_description(target_price, settlement_block),
        )
        return CreateMarketResponse(
            market=MarketOut.from_domain(market),
            payment={"txid": creator_token},
            message="Market created! Users can now place bets.",
        )

    async def create_demo_market(self) -> MarketOut:
        current_block = await self._require_block()
        current_price = await self._oracle.current_price()
        target = (
            current_price + DEMO_PRICE_OFFSET_CENTS
            if current_price is not None
            else DEMO_FALLBACK_TARGET_CENTS
        )
        market = await self._append_market(
            creator="demo",
            target_price=target,
            settlement_block=current_block + settings.DEMO_MARKET_BLOCKS,
            description="Demo: Will BTC reach new highs?",
            yes_pool=DEMO_YES_POOL,
            no_pool=DEMO_NO_POOL,
        )
        return MarketOut.from_domain(market)

    async def _append_market(
        self,
        creator: str,
        target_price: int,
        settlement_block: int,
        description: str,
        yes_pool: int = 0,
        no_pool: int = 0,
    ) -> Market:
        created_at = utc_now()

        def _append(markets: list[Market]) -> Market:
            # Id is the dense position; only valid inside the serialized cycle.
            market = Market(
                id=len(markets),
                creator=creator,
                target_price=target_price,
                settlement_block=settlement_block,
                yes_pool=yes_pool,
                no_pool=no_pool,
                settled=False,
                winning_side=None,
                settlement_price=0,
                description=description,
                created_at=created_at,
            )
            markets.append(market)
            return market

        market = await self._store.update(_append)
        logger.info(
            "Market %d created: target=%s block=%d creator=%s",
            market.id, cents_to_display(target_price), settlement_block, creator,
        )
        return market

    # ------------------------------------------------------------------
    # Bet intent
    # ------------------------------------------------------------------

    async def describe_bet(
        self, market_id: int, side: str, amount: int, sender: str
    ) -> BetIntent:
        try:
            bet_side = Side(side)
        except ValueError:
            raise InvalidBetSideError(side) from None
        if amount < self._min_bet:
            raise BetAmountTooSmallError(amount, self._min_bet)
        if not sender:
            raise MissingSenderError()

        market = _find_market(await self._store.load_all(), market_id)
        ensure_betting_open(market, await self._oracle.current_block())

        function_name = "bet-yes" if bet_side is Side.YES else "bet-no"
        return BetIntent(
            transaction=self._contract_call(
                function_name,
                [market.id, amount],
                [PostCondition(type="stx-transfer", sender=sender, amount=amount)],
            ),
            market=BetMarketSnapshot(
                id=market.id,
                target_price=market.target_price,
                settlement_block=market.settlement_block,
                current_odds=OddsOut.from_domain(
                    calculate_odds(market.yes_pool, market.no_pool)
                ),
            ),
            message=f"Sign this transaction to bet {amount} sats on {bet_side.value.upper()}",
        )

    # ------------------------------------------------------------------
    # Settle
    # ------------------------------------------------------------------

    async def settle(self, market_id: int) -> SettlementResult:
        market = _find_market(await self._store.load_all(), market_id)
        ensure_settleable(market, await self._oracle.current_block())

        price = await self._oracle.current_price()
        if price is None:
            raise OracleUnavailableError("BTC price")

        def _settle(markets: list[Market]) -> Market:
            current = _find_market(markets, market_id)
            settled = apply_settlement(current, price)
            markets[markets.index(current)] = settled
            return settled

        settled = await self._store.update(_settle)
        assert settled.winning_side is not None
        side = settled.winning_side.value
        logger.info(
            "Market %d settled: %s wins (price %s vs target %s)",
            market_id, side.upper(),
            cents_to_display(price), cents_to_display(settled.target_price),
        )
        return SettlementResult(
            settlement=SettlementSummary(
                market_id=market_id,
                target_price=settled.target_price,
                settlement_price=price,
                winning_side=side,
                yes_pool=settled.yes_pool,
                no_pool=settled.no_pool,
            ),
            message=(
                f"Market settled! {side.upper()} wins. "
                f"BTC was ${cents_to_whole_dollars(price)} "
                f"vs target ${cents_to_whole_dollars(settled.target_price)}"
            ),
            claim_endpoint=f"/claim/{market_id}",
        )

    # ------------------------------------------------------------------
    # Claim intent
    # ------------------------------------------------------------------

    async def describe_claim(self, market_id: int, sender: str) -> ClaimIntent:
        if not sender:
            raise MissingSenderError()

        market = _find_market(await self._store.load_all(), market_id)
        if not market.settled:
            raise MarketNotSettledError(market_id)
        assert market.winning_side is not None

        return ClaimIntent(
            transaction=self._contract_call("claim", [market.id]),
            market=ClaimMarketSnapshot(
                id=market.id,
                winning_side=market.winning_side.value,
                settlement_price=market.settlement_price,
            ),
            message="Sign this transaction to claim your winnings",
        )
