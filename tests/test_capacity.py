"""Tests for kensyaku / capacity conversion and recipe lookup."""

from shubo.services.capacity import capacity_from_gauge, gauge_from_capacity, max_capacity
from shubo.services.recipes import find_recipe
from shubo.services.types import RecipeAmounts, RecipeTemplate

CURVES = {
    "No.650": [(0, 1000), (10, 900), (20, 800)],
    "No.22": [],
}


def test_capacity_from_gauge_is_exact_match_only():
    assert capacity_from_gauge(CURVES, "No.650", 10) == 900
    assert capacity_from_gauge(CURVES, "No.650", 15) is None


def test_capacity_from_gauge_unknown_tank():
    assert capacity_from_gauge(CURVES, "No.999", 0) is None
    assert capacity_from_gauge(CURVES, "No.22", 0) is None


def test_gauge_from_capacity_nearest_point():
    assert gauge_from_capacity(CURVES, "No.650", 900) == 10
    assert gauge_from_capacity(CURVES, "No.650", 790) == 20


def test_gauge_from_capacity_tie_keeps_smaller_gauge():
    assert gauge_from_capacity(CURVES, "No.650", 850) == 10


def test_gauge_from_capacity_stops_at_first_point_covering_target():
    curves = {"T": [(0, 100), (10, 195), (20, 300), (30, 201)]}

    # (30, 201) is closer to 200 but the scan has already stopped at 20
    assert gauge_from_capacity(curves, "T", 200) == 10


def test_gauge_from_capacity_without_data():
    assert gauge_from_capacity(CURVES, "No.22", 500) is None
    assert gauge_from_capacity(CURVES, "No.999", 500) is None


def test_max_capacity_is_capacity_at_zero():
    assert max_capacity(CURVES["No.650"]) == 1000
    assert max_capacity([(10, 900)]) == 0


def _template(batch_type, scale):
    return RecipeTemplate(batch_type=batch_type, scale=scale, amounts=RecipeAmounts(total_rice=scale))


TEMPLATES = [
    _template("速醸", 100),
    _template("速醸", 300),
    _template("速醸", 200),
    _template("高温糖化", 150),
]


def test_find_recipe_exact_scale():
    assert find_recipe(TEMPLATES, "速醸", 200).scale == 200


def test_find_recipe_falls_back_to_largest_smaller_scale():
    assert find_recipe(TEMPLATES, "速醸", 250).scale == 200
    assert find_recipe(TEMPLATES, "速醸", 1000).scale == 300


def test_find_recipe_never_rounds_up():
    assert find_recipe(TEMPLATES, "速醸", 50) is None


def test_find_recipe_matches_batch_type():
    assert find_recipe(TEMPLATES, "高温糖化", 200).scale == 150
    assert find_recipe(TEMPLATES, "生酛", 200) is None
