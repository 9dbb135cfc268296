"""
Tests for the nutrient aggregation of weekly menus.

Run: python -m pytest creche/tests/test_nutrition.py -v
"""

import sys
import os
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from creche.core.engine.nutrition import (
    NUTRIENT_FIELDS,
    aggregate,
    compare_to_targets,
    day_totals,
    empty_totals,
    ingredient_contribution,
    period_average,
    round_for_display,
    sum_totals,
    target_status,
)

ARROZ = {"name": "Arroz cozido", "energy": 130, "protein": 2.7, "carbohydrate": 28.1}
FEIJAO = {"name": "Feijão carioca", "energy": 76, "protein": 4.8, "iron": 1.3}


def test_ingredient_contribution_scales_per_100g():
    totals = ingredient_contribution({**ARROZ, "quantity": 200})
    assert totals["energy"] == pytest.approx(260.0)
    assert totals["protein"] == pytest.approx(5.4)
    assert totals["iron"] == 0.0


def test_missing_or_invalid_values_count_as_zero():
    totals = ingredient_contribution({"name": "Água", "energy": None, "protein": "n/a", "quantity": 100})
    assert totals["energy"] == 0.0
    assert totals["protein"] == 0.0
    assert ingredient_contribution({**ARROZ})["energy"] == 0.0


def test_aggregate_sums_ingredients():
    totals = aggregate([{**ARROZ, "quantity": 100}, {**FEIJAO, "quantity": 50}])
    assert totals["energy"] == pytest.approx(168.0)
    assert totals["protein"] == pytest.approx(5.1)
    assert totals["iron"] == pytest.approx(0.65)
    assert set(totals) == set(NUTRIENT_FIELDS)


def test_aggregate_empty_list_is_all_zeros():
    assert aggregate([]) == empty_totals()


def test_day_totals_ignores_ingredient_lists():
    lunch = aggregate([{**ARROZ, "quantity": 100}])
    snack = {"energy": 50}
    meals = {"lunch": lunch, "lunch_ingredients": [{**ARROZ, "quantity": 100}], "snack": snack}
    totals = day_totals(meals)
    assert totals["energy"] == pytest.approx(180.0)


def test_day_totals_without_meals_is_none():
    assert day_totals({}) is None
    assert day_totals({"lunch_ingredients": []}) is None


def test_period_average_divides_by_days_with_energy():
    days = [{"energy": 1000, "protein": 20}, {"energy": 0, "protein": 6}, None]
    average = period_average(days)
    # Sum covers every day; only the day with energy counts in the divisor
    assert average["energy"] == pytest.approx(1000.0)
    assert average["protein"] == pytest.approx(26.0)


def test_period_average_of_nothing_is_zero():
    average = period_average([])
    assert average["energy"] == 0.0


def test_aggregate_of_parts_adds_up_to_whole():
    ingredients = [
        {**ARROZ, "quantity": 120},
        {**FEIJAO, "quantity": 80},
        {"name": "Cenoura", "energy": 34, "vitamin_a": 835, "quantity": 40},
        {"name": "Frango", "energy": 159, "protein": 32, "quantity": 60},
    ]
    whole = aggregate(ingredients)
    for split_at in range(len(ingredients) + 1):
        parts = sum_totals([aggregate(ingredients[:split_at]), aggregate(ingredients[split_at:])])
        for field in NUTRIENT_FIELDS:
            assert parts[field] == pytest.approx(whole[field])


def test_single_day_with_data_is_its_own_average():
    lunch = aggregate([{**ARROZ, "quantity": 100}])
    day = day_totals({"lunch": lunch})
    assert day == lunch

    # Days without a menu do not pull the weekly average down
    average = period_average([day, None, day_totals({}), None, None])
    for field in NUTRIENT_FIELDS:
        assert average[field] == pytest.approx(day[field])
    assert average["energy"] == pytest.approx(130.0)

def test_round_for_display():
    rounded = round_for_display({"energy": 1234.56, "protein": 5.44, "iron": 0.25})
    assert rounded["energy"] == 1235
    assert rounded["protein"] == 5.4
    assert rounded["fiber"] == 0.0


@pytest.mark.parametrize(
    "ratio,expected",
    [(1.0, "adequate"), (0.9, "adequate"), (1.1, "adequate"), (0.8, "close"), (1.5, "close"), (0.5, "low")],
)
def test_target_status(ratio, expected):
    assert target_status(ratio) == expected


def test_compare_to_targets():
    comparison = {c["nutrient"]: c for c in compare_to_targets({"energy": 1200, "protein": 9.5}, "maternal")}
    assert comparison["energy"]["status"] == "adequate"
    assert comparison["energy"]["ratio"] == 1.0
    assert comparison["protein"]["ratio"] == 0.5
    assert comparison["protein"]["status"] == "low"
    # Zero targets never divide
    bercario = {c["nutrient"]: c for c in compare_to_targets({}, "bercario_0_6")}
    assert bercario["fiber"]["ratio"] == 0.0


def test_compare_to_unknown_menu_type():
    with pytest.raises(KeyError):
        compare_to_targets({}, "fundamental")
