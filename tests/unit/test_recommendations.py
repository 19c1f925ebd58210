"""Unit tests for vehicle recommendations"""

import pytest
from typing import List
from astral_gateway.domain.models import Preferences, UserInput, Vehicle
from astral_gateway.domain.plans import build_financing_plan
from astral_gateway.domain.recommendations import advisor_candidates, matches_preferences, recommend


@pytest.fixture
def catalog() -> List[Vehicle]:
    """Default buyer can afford roughly $52.9k, stretch ceiling roughly $58.2k"""
    return [
        Vehicle(model="Highlander", price=45_000, style="SUV", use_case="Family", seating_capacity=7),
        Vehicle(model="Corolla", price=25_000, style="Sedan", use_case="Commute", seating_capacity=5),
        Vehicle(model="Tundra", price=60_000, style="Truck", use_case="Work", seating_capacity=5),
        Vehicle(model="Supra", price=50_000, style="Coupe", use_case="Fun", seating_capacity=2),
        Vehicle(model="Tacoma", price=55_000, style="Truck", use_case="Work"),
    ]


def test_recommend_filters_and_sorts_by_price(catalog: List[Vehicle], user_input: UserInput):
    results = recommend(catalog, user_input)

    # Tundra is over 110% of the affordable max, Tacoma is within the stretch
    assert [r.vehicle.model for r in results] == ["Corolla", "Highlander", "Supra", "Tacoma"]
    assert not any(r.is_top_match for r in results)


def test_top_matches_ranked_first(catalog: List[Vehicle], user_input: UserInput):
    results = recommend(catalog, user_input, top_models=["Supra"])

    assert results[0].vehicle.model == "Supra"
    assert results[0].is_top_match
    assert [r.vehicle.model for r in results[1:]] == ["Corolla", "Highlander", "Tacoma"]


def test_recommendation_carries_financing_preview(catalog: List[Vehicle], user_input: UserInput):
    corolla = recommend(catalog, user_input)[0]
    assert corolla.financing_plan == build_financing_plan(25_000, user_input, 0.065)


def test_preferences_narrow_results(catalog: List[Vehicle]):
    user_input = UserInput(preferences=Preferences(styles=["SUV", "Truck"]))
    assert [r.vehicle.model for r in recommend(catalog, user_input)] == ["Highlander", "Tacoma"]


def test_min_seats(catalog: List[Vehicle]):
    """Vehicles with unknown seating are never excluded by seat count"""
    user_input = UserInput(min_seats=6)
    assert [r.vehicle.model for r in recommend(catalog, user_input)] == ["Highlander", "Tacoma"]


def test_matches_preferences_empty_lists_match_all(catalog: List[Vehicle], user_input: UserInput):
    assert all(matches_preferences(v, user_input) for v in catalog)


def test_advisor_candidates_are_affordable(catalog: List[Vehicle], user_input: UserInput):
    models = [v.model for v in advisor_candidates(catalog, user_input)]
    assert sorted(models) == ["Corolla", "Highlander", "Supra"]


def test_advisor_candidates_fall_back_to_cheapest(catalog: List[Vehicle]):
    """Nothing affordable: the three cheapest matching vehicles"""
    user_input = UserInput(income=0, down_payment=0)
    models = [v.model for v in advisor_candidates(catalog, user_input)]
    assert models == ["Corolla", "Highlander", "Supra"]


def test_no_matching_vehicles(catalog: List[Vehicle]):
    user_input = UserInput(preferences=Preferences(styles=["Minivan"]))

    assert recommend(catalog, user_input) == []
    assert advisor_candidates(catalog, user_input) == []
