"""Tank and batch-type assignment for planned batches."""

import logging
from datetime import date, timedelta

from shubo import db
from shubo.models import BatchConfig
from shubo.services.capacity import gauge_from_capacity
from shubo.services.pairing import display_names
from shubo.services.recipes import find_recipe
from shubo.services.types import ConfiguredBatch, Pairing, PlannedBatch, RecipeTemplate

logger = logging.getLogger(__name__)

DEFAULT_BATCH_TYPE = "速醸"
BATCH_TYPES = ("速醸", "高温糖化")


def windows_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and a_end >= b_start


def build_configured(
    planned: PlannedBatch,
    tank_id: str,
    batch_type: str,
    recipes: list[RecipeTemplate],
    is_dual: bool,
) -> ConfiguredBatch:
    """Snapshot the resolved recipe onto a new configured batch.

    Each half of a dual fill gets half of the recipe, so the merged batch
    carries one full recipe.
    """
    if planned.start_date is None or planned.end_date is None:
        raise ValueError(f"Batch {planned.number} has no start or end date")

    recipe = find_recipe(recipes, batch_type, planned.brewing_scale)
    if recipe is None:
        raise ValueError(
            f"No {batch_type} recipe at or below {planned.brewing_scale}kg for batch {planned.number}"
        )

    amounts = recipe.amounts.halved() if is_dual else recipe.amounts
    return ConfiguredBatch(
        number=planned.number,
        tank_id=tank_id,
        batch_type=batch_type,
        start_date=planned.start_date,
        end_date=planned.end_date,
        days=planned.days,
        recipe=amounts,
        fiscal_year=planned.fiscal_year,
        display_name=f"{planned.number}号",
        original=planned.data,
    )


def follow_primary(assignments: dict[int, dict], pairings: dict[int, Pairing]) -> dict[int, dict]:
    """Give the second half of a planned pair the tank chosen for the first."""
    expanded = {number: dict(choice) for number, choice in assignments.items()}
    for number, choice in assignments.items():
        pairing = pairings.get(number, Pairing())
        if pairing.is_dual and pairing.is_primary and choice.get("tank_id"):
            partner = expanded.setdefault(pairing.paired_number, {})
            partner["tank_id"] = choice["tank_id"]
            partner.setdefault("batch_type", choice.get("batch_type") or DEFAULT_BATCH_TYPE)
    return expanded


def can_use_tank(
    tank_id: str,
    planned: PlannedBatch,
    configured: list[ConfiguredBatch],
    ignore: set[int] = frozenset(),
) -> bool:
    """False if another batch already occupies *tank_id* during *planned*'s window."""
    if planned.start_date is None or planned.end_date is None:
        return True
    for other in configured:
        if other.tank_id != tank_id or other.number == planned.number or other.number in ignore:
            continue
        if windows_overlap(planned.start_date, planned.end_date, other.start_date, other.end_date):
            return False
    return True


def tank_available_date(tank_id: str, configured: list[ConfiguredBatch]) -> date | None:
    """Day after the tank's last scheduled end date, or None when it is free now."""
    end_dates = [c.end_date for c in configured if c.tank_id == tank_id]
    if not end_dates:
        return None
    return max(end_dates) + timedelta(days=1)


def _check_secondary_tank(number, tank_id, primary, choices, configured) -> None:
    """The second half of a planned pair shares its partner's tank, or is not assigned."""
    primary_tank = (choices.get(primary) or {}).get("tank_id")
    if not primary_tank:
        primary_tank = next((c.tank_id for c in configured if c.number == primary), None)
    if primary_tank is None:
        raise ValueError(f"Assign batch {primary} before batch {number}")
    if primary_tank != tank_id:
        raise ValueError(f"Batch {number} must share tank {primary_tank} with batch {primary}")


class AssignmentService:
    """Persist tank / batch-type choices for the current fiscal year."""

    @staticmethod
    def assign(state, assignments: dict[int, dict]) -> list[ConfiguredBatch]:
        """Assign tanks and types; ``assignments`` maps batch number to
        ``{"tank_id": ..., "batch_type": ...}``.

        Raises ValueError for unknown batches, a missing recipe or a tank that
        is occupied during the batch's window.
        """
        pairings = state.planned_pairings
        choices = follow_primary(assignments, pairings)
        reassigned = set(choices)

        built = []
        for number in sorted(choices):
            choice = choices[number]
            planned = state.find_planned(number)
            if planned is None:
                raise ValueError(f"Unknown batch {number}")

            tank_id = (choice.get("tank_id") or "").strip()
            if not tank_id:
                raise ValueError(f"No tank chosen for batch {number}")
            batch_type = choice.get("batch_type") or DEFAULT_BATCH_TYPE

            pairing = pairings.get(number, Pairing())
            if pairing.is_dual and not pairing.is_primary:
                _check_secondary_tank(number, tank_id, pairing.paired_number, choices, state.configured)
            others =[c for c in state.configured if c.number not in reassigned] + built
            partner = {pairing.paired_number} if pairing.is_dual else set()
            if not can_use_tank(tank_id, planned, others, ignore=partner):
                raise ValueError(f"Tank {tank_id} is in use during batch {number}")

            built.append(build_configured(planned, tank_id, batch_type, state.recipes, pairing.is_dual))

        # Display names follow the pairing of the full configured set
        combined = [c for c in state.configured if c.number not in reassigned] + built
        names = display_names(combined)
        for batch in built:
            batch.display_name = names[batch.number]
            row = BatchConfig.query.filter_by(
                shubo_number=batch.number, fiscal_year=batch.fiscal_year
            ).first()
            if not row:
                row = BatchConfig()
                db.session.add(row)
            row.apply(batch)

        db.session.commit()
        logger.info("Assigned %d batches", len(built))
        return built

    @staticmethod
    def unassign(number: int, fiscal_year: int, pairings: dict[int, Pairing] = None) -> bool:
        """Remove the assignment of *number* and of its planned partner, if any."""
        numbers = {number}
        pairing = (pairings or {}).get(number, Pairing())
        if pairing.is_dual:
            numbers.add(pairing.paired_number)

        rows = BatchConfig.query.filter(
            BatchConfig.shubo_number.in_(sorted(numbers)),
            BatchConfig.fiscal_year == fiscal_year,
        ).all()
        if not any(row.shubo_number == number for row in rows):
            return False
        for row in rows:
            db.session.delete(row)
        db.session.commit()
        logger.info("Unassigned batches %s", sorted(r.shubo_number for r in rows))
        return True

    @staticmethod
    def assignment_rows(state) -> list[dict]:
        """Planned batches with pair labels, current choices and recipe preview."""
        configured = {c.number: c for c in state.configured}
        rows = []
        for planned in state.planned:
            pairing = state.planned_pairings.get(planned.number, Pairing())
            if pairing.is_dual and pairing.is_primary:
                dual_label = f"{planned.number}・{pairing.paired_number}号 (1/2)"
            elif pairing.is_dual:
                dual_label = f"{pairing.paired_number}・{planned.number}号 (2/2)"
            else:
                dual_label = ""

            current = configured.get(planned.number)
            batch_type = current.batch_type if current else DEFAULT_BATCH_TYPE
            recipe = find_recipe(state.recipes, batch_type, planned.brewing_scale)
            preview = None
            if recipe is not None:
                amounts = recipe.amounts.halved() if pairing.is_dual else recipe.amounts
                preview = {
                    "total_rice": amounts.total_rice,
                    "water": amounts.water,
                    "lactic_acid": amounts.lactic_acid,
                }
                if current is not None:
                    preview["water_kensyaku"] = gauge_from_capacity(
                        state.curves, current.tank_id, amounts.water
                    )

            rows.append({
                **planned.data,
                "is_dual_primary": pairing.is_dual and pairing.is_primary,
                "is_dual_secondary": pairing.is_dual and not pairing.is_primary,
                "dual_label": dual_label,
                "tank_id": current.tank_id if current else None,
                "batch_type": batch_type,
                "recipe": preview,
            })
        return rows
