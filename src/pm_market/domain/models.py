"""Domain models for pm_market — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import Side


@dataclass
class Market:
    id: int
    creator: str
    target_price: int          # cents
    settlement_block: int
    yes_pool: int              # sats, mirrored from on-chain state
    no_pool: int               # sats, mirrored from on-chain state
    settled: bool
    winning_side: Side | None  # None until settled
    settlement_price: int      # cents, 0 until settled
    description: str
    created_at: datetime


@dataclass(frozen=True)
class Odds:
    """Pool-derived odds view.

    yes_odds/no_odds are whole percentages summing to 100. implied_* are payout
    multipliers: 2-decimal strings, "∞" for an empty opposite pool, or the
    neutral prior 2 when no stake exists yet.
    """

    yes_odds: int
    no_odds: int
    implied_yes: float | str
    implied_no: float | str
