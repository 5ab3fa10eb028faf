#!/usr/bin/env python3
"""
Seed the database from the brewery's CSV exports.

Usage:
    python scripts/load_csv.py --tanks tanks.csv --recipes recipes.csv --plan shubo.csv [--fiscal-year 2025]

Tanks are loaded first so tank settings exist before batches are assigned.
Files may be UTF-8 or Shift_JIS.
"""

import argparse
import sys

# Add parent directory to path for imports
sys.path.insert(0, ".")

from shubo import create_app, db
from shubo.models import Settings
from shubo.services.csv_import import (
    CsvImportService,
    decode_upload,
    parse_recipe_csv,
    parse_shubo_csv,
    parse_tank_csv,
    read_rows,
)


def _rows(path: str):
    with open(path, "rb") as f:
        return read_rows(decode_upload(f))


def load(tanks=None, recipes=None, plan=None, fiscal_year=None):
    app = create_app()

    with app.app_context():
        db.create_all()

        try:
            if fiscal_year:
                Settings.set_fiscal_year(fiscal_year)
                print(f"Fiscal year set to {fiscal_year}")

            if tanks:
                count = CsvImportService.import_tank_conversions(parse_tank_csv(_rows(tanks)))
                print(f"  {count} calibration points from {tanks}")

            if recipes:
                count = CsvImportService.import_recipes(parse_recipe_csv(_rows(recipes)))
                print(f"  {count} recipes from {recipes}")

            if plan:
                year = Settings.get_fiscal_year()
                count = CsvImportService.import_raw_batches(parse_shubo_csv(_rows(plan), fiscal_year=year))
                print(f"  {count} planned batches from {plan} for {year}")

        except (OSError, ValueError) as e:
            print(f"Error: {e}")
            db.session.rollback()
            return 1

    print("Done!")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load CSV data into the shubo database")
    parser.add_argument("--tanks", help="Tank quick-reference CSV (tank, capacity, kensyaku groups)")
    parser.add_argument("--recipes", help="Recipe CSV")
    parser.add_argument("--plan", help="Brewing plan CSV")
    parser.add_argument("--fiscal-year", type=int, help="Brewing year to load the plan into")
    args = parser.parse_args()

    if not (args.tanks or args.recipes or args.plan):
        parser.error("Give at least one of --tanks, --recipes, --plan")

    sys.exit(load(args.tanks, args.recipes, args.plan, args.fiscal_year))
