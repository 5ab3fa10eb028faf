"""Tests for dual-batch detection and merging."""

from datetime import date

from shubo.services.pairing import (
    detect_dual_batches,
    detect_unassigned_pairs,
    display_names,
    merge_batches,
)
from shubo.services.types import PlannedBatch, RecipeAmounts

from tests.conftest import configured


def test_consecutive_same_tank_same_start_pair():
    pairings = detect_dual_batches([configured(12), configured(13)])

    assert pairings[12].is_dual and pairings[12].is_primary
    assert pairings[12].paired_number == 13
    assert pairings[13].is_dual and not pairings[13].is_primary
    assert pairings[13].paired_number == 12


def test_different_tank_does_not_pair():
    pairings = detect_dual_batches([configured(12), configured(13, tank_id="No.22")])

    assert not pairings[12].is_dual
    assert not pairings[13].is_dual


def test_different_start_does_not_pair():
    pairings = detect_dual_batches([configured(12), configured(13, start=date(2024, 3, 2))])

    assert not pairings[12].is_dual
    assert not pairings[13].is_dual


def test_non_consecutive_numbers_do_not_pair():
    pairings = detect_dual_batches([configured(12), configured(14)])

    assert not pairings[12].is_dual
    assert not pairings[14].is_dual


def test_three_in_a_row_pairs_first_two_only():
    pairings = detect_dual_batches([configured(3), configured(1), configured(2)])

    assert pairings[1].paired_number == 2
    assert pairings[2].paired_number == 1
    assert not pairings[3].is_dual


def test_unassigned_pairs_ignore_missing_start_dates():
    planned = [
        PlannedBatch(number=1, fiscal_year=2023, brewing_scale=100, start_date=None, end_date=None, days=0),
        PlannedBatch(number=2, fiscal_year=2023, brewing_scale=100, start_date=None, end_date=None, days=0),
        PlannedBatch(number=3, fiscal_year=2023, brewing_scale=100, start_date=date(2024, 3, 1), end_date=None, days=0),
        PlannedBatch(number=4, fiscal_year=2023, brewing_scale=100, start_date=date(2024, 3, 1), end_date=None, days=0),
    ]

    pairings = detect_unassigned_pairs(planned)

    assert not pairings[1].is_dual
    assert not pairings[2].is_dual
    assert pairings[3].is_primary and pairings[3].paired_number == 4


def test_merge_dual_sums_recipe_and_keeps_both_end_dates():
    primary = configured(12, days=10, recipe=RecipeAmounts(total_rice=50, water=55, measurement=90))
    secondary = configured(13, days=12, recipe=RecipeAmounts(total_rice=50, water=55, measurement=90))

    merged = merge_batches([primary, secondary])

    assert len(merged) == 1
    batch = merged[0]
    assert batch.display_name == "12・13号"
    assert batch.is_dual
    assert batch.numbers == [12, 13]
    assert batch.recipe.total_rice == 100
    assert batch.recipe.water == 110
    assert batch.recipe.measurement == 180
    assert batch.end_dates == [date(2024, 3, 10), date(2024, 3, 12)]
    assert batch.max_days == 12
    assert batch.individual_recipes == [primary.recipe, secondary.recipe]


def test_merge_covers_every_number_once():
    batches = [
        configured(1),
        configured(2),
        configured(3, tank_id="No.22"),
        configured(5, start=date(2024, 4, 1)),
    ]

    merged = merge_batches(batches)

    numbers = [n for b in merged for n in b.numbers]
    assert sorted(numbers) == [1, 2, 3, 5]
    assert [b.display_name for b in merged] == ["1・2号", "3号", "5号"]


def test_merge_drops_secondary_without_primary():
    pairings = detect_dual_batches([configured(12), configured(13)])

    merged = merge_batches([configured(13)], pairings)

    assert merged == []


def test_merge_keeps_primary_without_secondary_as_single():
    pairings = detect_dual_batches([configured(12), configured(13)])

    merged = merge_batches([configured(12)], pairings)

    assert len(merged) == 1
    assert merged[0].display_name == "12号"
    assert not merged[0].is_dual


def test_display_names_name_both_halves_after_the_pair():
    names = display_names([configured(7), configured(8), configured(9, start=date(2024, 5, 1))])

    assert names == {7: "7・8号", 8: "7・8号", 9: "9号"}
