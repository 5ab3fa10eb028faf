"""Plain in-memory records the batch engine works on.

The SQLAlchemy models in ``shubo.models`` convert to and from these so the
pairing, merging, lifecycle and record-generation code never touches the
database session.
"""

from dataclasses import asdict, dataclass, field, fields
from datetime import date


@dataclass
class RecipeAmounts:
    """Prescribed amounts for one batch (kg / L)."""

    total_rice: float = 0
    steamed_rice: float = 0
    koji_rice: float = 0
    water: float = 0
    measurement: float = 0
    lactic_acid: float = 0

    def plus(self, other: "RecipeAmounts") -> "RecipeAmounts":
        """Field-by-field sum, no rounding."""
        return RecipeAmounts(**{
            f.name: getattr(self, f.name) + getattr(other, f.name)
            for f in fields(self)
        })

    def halved(self) -> "RecipeAmounts":
        return RecipeAmounts(**{f.name: getattr(self, f.name) / 2 for f in fields(self)})

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> "RecipeAmounts":
        data = data or {}
        return cls(**{f.name: data.get(f.name) or 0 for f in fields(cls)})


@dataclass
class StageAmounts:
    """One addition stage of a multi-stage recipe."""

    total_rice: float | None = None
    kake_rice: float | None = None
    koji_rice: float | None = None
    water: float | None = None


@dataclass
class RecipeTemplate:
    batch_type: str
    scale: int
    amounts: RecipeAmounts
    first: StageAmounts = field(default_factory=StageAmounts)
    middle: StageAmounts = field(default_factory=StageAmounts)
    final: StageAmounts = field(default_factory=StageAmounts)
    three_stage_total_rice: float | None = None
    water_ratio_to_final: float | None = None


@dataclass
class ConfiguredBatch:
    """A raw batch with its chosen tank, batch type and recipe snapshot."""

    number: int
    tank_id: str
    batch_type: str
    start_date: date
    end_date: date
    days: int
    recipe: RecipeAmounts = field(default_factory=RecipeAmounts)
    fiscal_year: int | None = None
    display_name: str = ""
    original: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Pairing:
    is_dual: bool = False
    is_primary: bool = False
    paired_number: int | None = None


@dataclass
class MergedBatch:
    display_name: str
    primary_number: int
    secondary_number: int
    tank_id: str
    batch_type: str
    start_date: date
    end_dates: list[date]
    max_days: int
    recipe: RecipeAmounts
    individual_recipes: list[RecipeAmounts]
    fiscal_year: int | None = None
    originals: list[dict] = field(default_factory=list)

    @property
    def is_dual(self) -> bool:
        return self.secondary_number != self.primary_number

    @property
    def numbers(self) -> list[int]:
        if self.is_dual:
            return [self.primary_number, self.secondary_number]
        return [self.primary_number]

    @property
    def last_end_date(self) -> date:
        return self.end_dates[-1]

    def to_dict(self) -> dict:
        return {
            "display_name": self.display_name,
            "primary_number": self.primary_number,
            "secondary_number": self.secondary_number,
            "is_dual": self.is_dual,
            "tank_id": self.tank_id,
            "batch_type": self.batch_type,
            "start_date": self.start_date.isoformat(),
            "end_dates": [d.isoformat() for d in self.end_dates],
            "max_days": self.max_days,
            "fiscal_year": self.fiscal_year,
            "recipe": self.recipe.to_dict(),
            "individual_recipes": [r.to_dict() for r in self.individual_recipes],
        }


@dataclass
class DailyEntry:
    """One generated day of a batch's fermentation record."""

    batch_number: int
    fiscal_year: int | None
    record_date: date
    day_number: int
    day_label: str
    time_slot: str = ""
    temperature1: float | None = None
    temperature2: float | None = None
    temperature3: float | None = None
    baume: float | None = None
    acidity: float | None = None
    alcohol: float | None = None
    memo: str = ""
    is_analysis_day: bool = False


@dataclass
class PlannedBatch:
    """A raw scheduled batch, before tank and batch type are chosen."""

    number: int
    fiscal_year: int | None
    brewing_scale: int
    start_date: date | None
    end_date: date | None
    days: int
    data: dict = field(default_factory=dict)
