"""Market lifecycle rules — status derivation, lock checks, settlement.

States: ACTIVE (open for stakes) -> PENDING_SETTLEMENT (locked, derived from
the block height, never stored) -> SETTLED (terminal).

A block height or price of None means the oracle feed was unavailable; it
never satisfies a lifecycle check.
"""

from dataclasses import replace

from src.pm_common.enums import MarketStatus, Side
from src.pm_common.errors import (
    BettingClosedError,
    MarketAlreadySettledError,
    OracleUnavailableError,
    SettlementBlockNotReachedError,
)
from src.pm_market.domain.models import Market


def resolve_outcome(settlement_price: int, target_price: int) -> Side:
    """YES wins when price >= target; ties go to YES."""
    return Side.YES if settlement_price >= target_price else Side.NO


def derive_status(market: Market, current_block: int | None) -> MarketStatus:
    if market.settled:
        return MarketStatus.SETTLED
    if current_block is None:
        return MarketStatus.UNKNOWN
    if current_block >= market.settlement_block:
        return MarketStatus.PENDING_SETTLEMENT
    return MarketStatus.ACTIVE


def blocks_remaining(market: Market, current_block: int | None) -> int | None:
    if current_block is None:
        return None
    return market.settlement_block - current_block


def minimum_settlement_block(current_block: int, delay_blocks: int) -> int:
    return current_block + delay_blocks


def ensure_not_settled(market: Market) -> None:
    if market.settled:
        assert market.winning_side is not None
        raise MarketAlreadySettledError(
            market.id, market.winning_side.value, market.settlement_price
        )


def ensure_betting_open(market: Market, current_block: int | None) -> None:
    """Betting closes at lock (settlement block reached), not at settlement."""
    ensure_not_settled(market)
    if current_block is None:
        raise OracleUnavailableError("block height")
    if current_block >= market.settlement_block:
        raise BettingClosedError(market.id, current_block, market.settlement_block)


def ensure_settleable(market: Market, current_block: int | None) -> None:
    ensure_not_settled(market)
    if current_block is None:
        raise OracleUnavailableError("block height")
    if current_block < market.settlement_block:
        raise SettlementBlockNotReachedError(
            market.id, current_block, market.settlement_block
        )


def apply_settlement(market: Market, settlement_price: int | None) -> Market:
    """Return the settled copy of ``market``; the input is left untouched.

    Re-checks ``settled`` so a racing second settlement fails with the
    recorded outcome instead of re-resolving.
    """
    ensure_not_settled(market)
    if settlement_price is None or settlement_price <= 0:
        raise OracleUnavailableError("BTC price")
    return replace(
        market,
        settled=True,
        winning_side=resolve_outcome(settlement_price, market.target_price),
        settlement_price=settlement_price,
    )
