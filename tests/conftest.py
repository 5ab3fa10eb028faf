"""Shared fixtures: an app on in-memory SQLite and a small seeded brewery."""

from datetime import date, timedelta

import pytest

from shubo import create_app, db
from shubo.config import TestConfig
from shubo.models import RawBatch, Recipe, Settings
from shubo.services.csv_import import CsvImportService
from shubo.services.types import ConfiguredBatch, RecipeAmounts

FISCAL_YEAR = 2023


def configured(number, tank_id="No.650", start=date(2024, 3, 1), days=10, recipe=None, batch_type="速醸"):
    """A configured batch ending ``days - 1`` days after *start*."""
    return ConfiguredBatch(
        number=number,
        tank_id=tank_id,
        batch_type=batch_type,
        start_date=start,
        end_date=start + timedelta(days=days - 1),
        days=days,
        recipe=recipe or RecipeAmounts(total_rice=100, steamed_rice=60, koji_rice=40, water=110, measurement=180, lactic_acid=0.6),
        fiscal_year=FISCAL_YEAR,
    )


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seeded(app):
    """Two tanks, one recipe scale, and planned batches 1-3 (1 and 2 share a start date)."""
    Settings.set_fiscal_year(FISCAL_YEAR)

    CsvImportService.import_tank_conversions([
        {"tank_id": "No.650", "kensyaku": 0, "capacity": 1000},
        {"tank_id": "No.650", "kensyaku": 100, "capacity": 800},
        {"tank_id": "No.650", "kensyaku": 200, "capacity": 600},
        {"tank_id": "No.22", "kensyaku": 0, "capacity": 500},
        {"tank_id": "No.22", "kensyaku": 50, "capacity": 400},
    ])

    db.session.add(Recipe(
        shubo_type="速醸",
        recipe_brewing_scale=100,
        recipe_total_rice=100,
        steamed_rice=60,
        koji_rice=40,
        water=110,
        measurement=180,
        lactic_acid=0.6,
    ))

    for number, start, days in ((1, date(2024, 3, 1), 10), (2, date(2024, 3, 1), 12), (3, date(2024, 3, 20), 9)):
        db.session.add(RawBatch(
            shubo_number=number,
            fiscal_year=FISCAL_YEAR,
            brewing_scale=100,
            shubo_total_rice=100,
            shubo_start_date=start,
            shubo_end_date=start + timedelta(days=days - 1),
            shubo_days=days,
        ))
    db.session.commit()
    return app
