"""Credit score to APR mapping"""

from typing import Tuple
from astral_gateway.domain.models import RateTier

# Checked high-to-low, first match wins
RATE_TIERS: Tuple[RateTier, ...] = (
    RateTier(min_score=760, annual_rate=0.05),
    RateTier(min_score=700, annual_rate=0.065),
    RateTier(min_score=650, annual_rate=0.08),
    RateTier(min_score=600, annual_rate=0.12),
)

SUBPRIME_RATE = 0.18


def rate_for(credit_score: float) -> float:
    """
    Map a credit score to an annual percentage rate.

    Tiers:
    - 760+:    5.0%
    - 700-759: 6.5%
    - 650-699: 8.0%
    - 600-649: 12.0%
    - <600:    18.0%

    Scores outside 300-850 are not rejected; they land in the lowest or
    highest tier.
    """
    for tier in RATE_TIERS:
        if credit_score >= tier.min_score:
            return tier.annual_rate
    return SUBPRIME_RATE
