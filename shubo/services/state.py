"""In-memory snapshot of the current fiscal year's reference and batch data.

Loaded once, marked stale by change notifications, and reloaded on the next
request. Merged batches are always recomputed in full from the configured
batches.
"""

import logging
import threading

from shubo.services.pairing import detect_dual_batches, detect_unassigned_pairs, merge_batches
from shubo.services.types import MergedBatch

logger = logging.getLogger(__name__)


class AppState:
    """Current fiscal year's plan, assignments, recipes and tank data."""

    def __init__(self, app=None):
        self.app = app
        self._lock = threading.RLock()
        self._stale = True
        self.fiscal_year = None
        self.planned = []
        self.configured = []
        self.recipes = []
        self.curves = {}
        self.tanks = []
        self.pairings = {}
        self.planned_pairings = {}
        self.merged = []

    @property
    def is_stale(self) -> bool:
        return self._stale

    def invalidate(self) -> None:
        self._stale = True

    def ensure_loaded(self) -> None:
        if self._stale:
            self.load()

    def load(self) -> None:
        """Read everything for the current fiscal year. Needs an app context."""
        from shubo.models import BatchConfig, RawBatch, Recipe, Settings, TankConfig, TankConversion

        with self._lock:
            # Cleared before reading so an invalidate() during the reads is kept
            self._stale = False
            try:
                fiscal_year = Settings.get_fiscal_year()
                planned = [
                    r.to_planned()
                    for r in RawBatch.query.filter_by(fiscal_year=fiscal_year)
                    .order_by(RawBatch.shubo_number).all()
                ]
                configured = [
                    c.to_domain()
                    for c in BatchConfig.query.filter_by(fiscal_year=fiscal_year)
                    .order_by(BatchConfig.shubo_number).all()
                ]
                recipes = [r.to_template() for r in Recipe.query.all()]
                curves = TankConversion.load_curves()
                tanks = [t.to_dict() for t in TankConfig.query.order_by(TankConfig.max_capacity.desc()).all()]
            except Exception:
                self._stale = True
                raise

            self.fiscal_year = fiscal_year
            self.planned = planned
            self.configured = configured
            self.recipes = recipes
            self.curves = curves
            self.tanks = tanks
            self.planned_pairings = detect_unassigned_pairs(planned)
            self.recompute()

        logger.info(
            "State loaded for %s: %d planned, %d configured, %d merged",
            fiscal_year, len(planned), len(configured), len(self.merged),
        )

    def recompute(self) -> None:
        """Rebuild pairings and merged batches from the configured list."""
        with self._lock:
            self.pairings = detect_dual_batches(self.configured)
            self.merged = merge_batches(self.configured, self.pairings)

    def find_merged(self, number: int) -> MergedBatch | None:
        """The merged batch containing *number*, as primary or secondary."""
        for batch in self.merged:
            if number in batch.numbers:
                return batch
        return None

    def find_planned(self, number: int):
        for batch in self.planned:
            if batch.number == number:
                return batch
        return None

    def enabled_tanks(self) -> list[dict]:
        return [t for t in self.tanks if t["is_enabled"]]


def get_state() -> AppState:
    from flask import current_app

    state = current_app.extensions["shubo_state"]
    state.ensure_loaded()
    return state
