"""Vehicle recommendations filtered by preferences and affordability"""

from typing import Iterable, List, Sequence
from astral_gateway.domain.affordability import estimate
from astral_gateway.domain.models import Recommendation, UserInput, Vehicle
from astral_gateway.domain.plans import build_financing_plan
from astral_gateway.domain.rates import rate_for

STRETCH_RATIO = 1.1  # show vehicles up to 10% over the affordable max
FALLBACK_CANDIDATES = 3


def matches_preferences(vehicle: Vehicle, user_input: UserInput) -> bool:
    """Style, use case and seats; an empty preference list matches everything"""
    prefs = user_input.preferences
    style_match = not prefs.styles or vehicle.style in prefs.styles
    use_case_match = not prefs.use_cases or vehicle.use_case in prefs.use_cases
    seats_match = vehicle.seating_capacity is None or vehicle.seating_capacity >= user_input.min_seats
    return style_match and use_case_match and seats_match


def advisor_candidates(vehicles: Iterable[Vehicle], user_input: UserInput) -> List[Vehicle]:
    """
    Vehicles worth sending to the advisory service.

    Matching vehicles at or under the affordable max; if none qualify,
    the three cheapest matching vehicles so the advisor has something
    to compare.
    """
    matching = [v for v in vehicles if matches_preferences(v, user_input)]
    affordability = estimate(
        user_input.income, user_input.credit_score, user_input.down_payment, user_input.loan_term_years
    )
    affordable = [v for v in matching if v.price <= affordability.max]
    if not affordable and matching:
        return sorted(matching, key=lambda v: v.price)[:FALLBACK_CANDIDATES]
    return affordable


def recommend(
    vehicles: Iterable[Vehicle],
    user_input: UserInput,
    top_models: Sequence[str] = (),
) -> List[Recommendation]:
    """
    Rank catalog vehicles for a buyer.

    Requirements:
    - Keep vehicles matching preferences priced up to 110% of the affordable max
    - Attach a financing preview at the buyer's credit-score rate
    - Advisor top matches first, then cheapest first
    """
    affordability = estimate(
        user_input.income, user_input.credit_score, user_input.down_payment, user_input.loan_term_years
    )
    rate = rate_for(user_input.credit_score)
    price_ceiling = affordability.max * STRETCH_RATIO

    recommendations = [
        Recommendation(
            vehicle=vehicle,
            financing_plan=build_financing_plan(vehicle.price, user_input, rate),
            is_top_match=vehicle.model in top_models,
        )
        for vehicle in vehicles
        if matches_preferences(vehicle, user_input) and vehicle.price <= price_ceiling
    ]

    recommendations.sort(key=lambda r: (not r.is_top_match, r.vehicle.price))
    return recommendations
