"""Parimutuel odds calculator — pure function of the two pool totals.

yes_odds = round_half_up(100 * yes / total), no_odds = 100 - yes_odds, so the
pair always sums to exactly 100. Integer arithmetic only; no float rounding.
"""

from src.pm_common.cents import ratio_to_display, round_half_up_div
from src.pm_market.domain.models import Odds

INFINITY = "∞"

NEUTRAL_ODDS = Odds(yes_odds=50, no_odds=50, implied_yes=2, implied_no=2)


def calculate_odds(yes_pool: int, no_pool: int) -> Odds:
    if yes_pool < 0 or no_pool < 0:
        raise ValueError(f"pools must be non-negative, got yes={yes_pool} no={no_pool}")

    total = yes_pool + no_pool
    if total == 0:
        return NEUTRAL_ODDS

    yes_odds = round_half_up_div(100 * yes_pool, total)
    return Odds(
        yes_odds=yes_odds,
        no_odds=100 - yes_odds,
        implied_yes=ratio_to_display(total, no_pool) if no_pool > 0 else INFINITY,
        implied_no=ratio_to_display(total, yes_pool) if yes_pool > 0 else INFINITY,
    )
