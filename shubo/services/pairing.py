"""Dual-batch detection and merging.

Two batches with consecutive numbers that share a tank and a start date are
one physical fill ("2個酛") and are shown and tracked as one merged batch.
"""

import logging

from shubo.services.types import ConfiguredBatch, MergedBatch, Pairing

logger = logging.getLogger(__name__)


def _greedy_pairs(items, same_fill) -> dict[int, Pairing]:
    """Pair neighbours left to right; a batch joins at most one pair."""
    items = sorted(items, key=lambda b: b.number)
    pairings = {b.number: Pairing() for b in items}

    i = 0
    while i < len(items) - 1:
        current, following = items[i], items[i + 1]
        if following.number == current.number + 1 and same_fill(current, following):
            pairings[current.number] = Pairing(True, True, following.number)
            pairings[following.number] = Pairing(True, False, current.number)
            i += 2
        else:
            i += 1

    return pairings


def detect_dual_batches(batches: list[ConfiguredBatch]) -> dict[int, Pairing]:
    """Return the pairing of every configured batch, keyed by batch number."""
    return _greedy_pairs(
        batches,
        lambda a, b: a.tank_id == b.tank_id and a.start_date == b.start_date,
    )


def detect_unassigned_pairs(raw_batches) -> dict[int, Pairing]:
    """Pairing preview for raw batches before any tank is chosen.

    Only numbers and start dates are compared; a missing start date never pairs.
    """
    return _greedy_pairs(
        raw_batches,
        lambda a, b: a.start_date is not None and a.start_date == b.start_date,
    )


def merge_batches(batches: list[ConfiguredBatch], pairings: dict[int, Pairing] | None = None) -> list[MergedBatch]:
    """Fold configured batches into merged batches.

    Every input number ends up in exactly one output entry. A secondary whose
    primary is not in *batches* is dropped.
    """
    if pairings is None:
        pairings = detect_dual_batches(batches)

    by_number = {b.number: b for b in batches}
    processed = set()
    merged = []

    for batch in sorted(batches, key=lambda b: b.number):
        if batch.number in processed:
            continue

        pairing = pairings.get(batch.number, Pairing())

        if pairing.is_dual and pairing.is_primary:
            secondary = by_number.get(pairing.paired_number)
            if secondary is None:
                merged.append(_single(batch))
                processed.add(batch.number)
                continue
            merged.append(_dual(batch, secondary))
            processed.update((batch.number, secondary.number))
        elif pairing.is_dual:
            # Secondary without its primary
            logger.warning("Dropping batch %s: primary %s missing", batch.number, pairing.paired_number)
            processed.add(batch.number)
        else:
            merged.append(_single(batch))
            processed.add(batch.number)

    return merged


def _single(batch: ConfiguredBatch) -> MergedBatch:
    return MergedBatch(
        display_name=f"{batch.number}号",
        primary_number=batch.number,
        secondary_number=batch.number,
        tank_id=batch.tank_id,
        batch_type=batch.batch_type,
        start_date=batch.start_date,
        end_dates=[batch.end_date],
        max_days=batch.days,
        recipe=batch.recipe,
        individual_recipes=[batch.recipe],
        fiscal_year=batch.fiscal_year,
        originals=[batch.original],
    )


def _dual(primary: ConfiguredBatch, secondary: ConfiguredBatch) -> MergedBatch:
    return MergedBatch(
        display_name=f"{primary.number}・{secondary.number}号",
        primary_number=primary.number,
        secondary_number=secondary.number,
        tank_id=primary.tank_id,
        batch_type=primary.batch_type,
        start_date=primary.start_date,
        end_dates=[primary.end_date, secondary.end_date],
        max_days=max(primary.days, secondary.days),
        recipe=primary.recipe.plus(secondary.recipe),
        individual_recipes=[primary.recipe, secondary.recipe],
        fiscal_year=primary.fiscal_year,
        originals=[primary.original, secondary.original],
    )


def display_names(batches: list[ConfiguredBatch], pairings: dict[int, Pairing] | None = None) -> dict[int, str]:
    """Per-batch display name, e.g. ``"12・13号"`` for both halves of a pair."""
    if pairings is None:
        pairings = detect_dual_batches(batches)

    names = {}
    for batch in batches:
        pairing = pairings.get(batch.number, Pairing())
        if not pairing.is_dual:
            names[batch.number] = f"{batch.number}号"
        elif pairing.is_primary:
            names[batch.number] = f"{batch.number}・{pairing.paired_number}号"
        else:
            names[batch.number] = f"{pairing.paired_number}・{batch.number}号"
    return names
