"""Dashboard views derived from merged batches: status list, today's work,
brewing preparation and discharge figures."""

from datetime import date, timedelta

from shubo import db
from shubo.models import BrewingPreparation, DischargeSchedule
from shubo.services.capacity import capacity_from_gauge, gauge_from_capacity
from shubo.services.lifecycle import BatchStatus, batch_status, day_number
from shubo.services.types import MergedBatch


class ScheduleService:
    """Service for the dashboard's per-day views."""

    @staticmethod
    def batch_list(merged: list[MergedBatch], today: date) -> list[dict]:
        """Every merged batch with status, day number (active only) and period.

        Sorted active first, then preparing, then complete.
        """
        rows = []
        for batch in merged:
            status = batch_status(batch, today)
            rows.append({
                **batch.to_dict(),
                "status": status,
                "day_number": day_number(batch.start_date, today) if status == BatchStatus.ACTIVE else None,
                "period": (batch.last_end_date - batch.start_date).days + 1,
            })
        rows.sort(key=lambda r: BatchStatus.ORDER[r["status"]])
        return rows

    @staticmethod
    def todays_work(merged: list[MergedBatch], today: date) -> dict:
        tomorrow = today + timedelta(days=1)
        return {
            "preparations": [b for b in merged if b.start_date == tomorrow],
            "brewing": [b for b in merged if b.start_date == today],
            "analysis": [
                b for b in merged
                if batch_status(b, today) == BatchStatus.ACTIVE and day_number(b.start_date, today) > 1
            ],
            "discharges": [b for b in merged if today in b.end_dates],
        }

    # ------------------------------------------------------------------
    # Brewing preparation
    # ------------------------------------------------------------------

    @staticmethod
    def preparation(batch: MergedBatch, curves) -> dict:
        row = BrewingPreparation.query.filter_by(
            shubo_number=batch.primary_number, fiscal_year=batch.fiscal_year
        ).first()
        ice = row.ice_amount if row else None
        kensyaku = row.after_brewing_kensyaku if row else None

        water = batch.recipe.water
        return {
            "shubo_number": batch.primary_number,
            "display_name": batch.display_name,
            "tank_id": batch.tank_id,
            "water_amount": water,
            "ice_amount": ice,
            "preparation_water": water - (ice or 0),
            "water_kensyaku": gauge_from_capacity(curves, batch.tank_id, water),
            "after_brewing_kensyaku": kensyaku,
            "after_brewing_capacity": (
                capacity_from_gauge(curves, batch.tank_id, kensyaku) if kensyaku is not None else None
            ),
            "lactic_acid": batch.recipe.lactic_acid,
        }

    @staticmethod
    def save_preparation(batch: MergedBatch, ice_amount=None, after_brewing_kensyaku=None) -> None:
        row = BrewingPreparation.query.filter_by(
            shubo_number=batch.primary_number, fiscal_year=batch.fiscal_year
        ).first()
        if not row:
            row = BrewingPreparation(shubo_number=batch.primary_number, fiscal_year=batch.fiscal_year)
            db.session.add(row)
        row.ice_amount = ice_amount
        row.after_brewing_kensyaku = after_brewing_kensyaku
        db.session.commit()

    # ------------------------------------------------------------------
    # Discharge
    # ------------------------------------------------------------------

    @staticmethod
    def discharges(batch: MergedBatch, curves) -> list[dict]:
        """One entry per end date; a dual batch is discharged in two parts."""
        rows = {
            r.discharge_index: r
            for r in DischargeSchedule.query.filter_by(
                shubo_number=batch.primary_number, fiscal_year=batch.fiscal_year
            ).all()
        }

        result = []
        for index, end_date in enumerate(batch.end_dates):
            row = rows.get(index)
            before_kensyaku = row.before_discharge_kensyaku if row else None
            after_capacity = row.after_discharge_capacity if row else None

            before_capacity = None
            if before_kensyaku is not None:
                before_capacity = capacity_from_gauge(curves, batch.tank_id, before_kensyaku)
            after_kensyaku = None
            if after_capacity is not None:
                after_kensyaku = gauge_from_capacity(curves, batch.tank_id, after_capacity)

            amount = None
            if before_capacity is not None and after_capacity is not None:
                amount = before_capacity - after_capacity

            expected = batch.individual_recipes[index].measurement if index < len(batch.individual_recipes) else None
            result.append({
                "discharge_index": index,
                "end_date": end_date.isoformat(),
                "before_discharge_kensyaku": before_kensyaku,
                "before_discharge_capacity": before_capacity,
                "after_discharge_capacity": after_capacity,
                "after_discharge_kensyaku": after_kensyaku,
                "discharge_amount": amount,
                "destination_tank": row.destination_tank if row else None,
                "ice_amount": row.ice_amount if row else None,
                "expected_measurement": expected,
                "measurement_ratio": (amount / expected) if amount is not None and expected else None,
            })
        return result

    @staticmethod
    def save_discharge(batch: MergedBatch, index: int, fields: dict) -> None:
        if index < 0 or index >= len(batch.end_dates):
            raise ValueError(f"{batch.display_name} has no discharge #{index}")

        row = DischargeSchedule.query.filter_by(
            shubo_number=batch.primary_number,
            fiscal_year=batch.fiscal_year,
            discharge_index=index,
        ).first()
        if not row:
            row = DischargeSchedule(
                shubo_number=batch.primary_number,
                fiscal_year=batch.fiscal_year,
                discharge_index=index,
            )
            db.session.add(row)
        for name in ("before_discharge_kensyaku", "after_discharge_capacity", "destination_tank", "ice_amount"):
            if name in fields:
                setattr(row, name, fields[name])
        db.session.commit()
