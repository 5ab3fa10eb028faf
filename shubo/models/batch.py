from shubo import db
from shubo.services.types import ConfiguredBatch, PlannedBatch, RecipeAmounts


class RawBatch(db.Model):
    """Scheduled batches as imported from the brewing plan CSV."""

    __tablename__ = "shubo_raw_data"
    __table_args__ = (
        db.UniqueConstraint("shubo_number", "fiscal_year", name="uq_raw_number_year"),
    )

    id = db.Column(db.Integer, primary_key=True)
    shubo_number = db.Column(db.Integer, nullable=False, index=True)
    fiscal_year = db.Column(db.Integer, nullable=False, index=True)
    brewing_scale = db.Column(db.Integer, default=0)
    pour_date = db.Column(db.String(50))
    brewing_category = db.Column(db.String(50))
    tank_number = db.Column(db.Integer, default=0)
    memo = db.Column(db.Text)
    koji_rice_variety = db.Column(db.String(100))
    kake_rice_variety = db.Column(db.String(100))
    shubo_total_rice = db.Column(db.Integer, default=0)
    shubo_start_date = db.Column(db.Date)
    shubo_end_date = db.Column(db.Date)
    shubo_days = db.Column(db.Integer, default=0)
    yeast = db.Column(db.String(100))
    shubo_storage = db.Column(db.String(100))
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def to_planned(self) -> PlannedBatch:
        return PlannedBatch(
            number=self.shubo_number,
            fiscal_year=self.fiscal_year,
            brewing_scale=self.brewing_scale or 0,
            start_date=self.shubo_start_date,
            end_date=self.shubo_end_date,
            days=self.shubo_days or 0,
            data=self.to_dict(),
        )

    def to_dict(self):
        return {
            "shubo_number": self.shubo_number,
            "fiscal_year": self.fiscal_year,
            "brewing_scale": self.brewing_scale,
            "pour_date": self.pour_date or "",
            "brewing_category": self.brewing_category or "",
            "tank_number": self.tank_number or 0,
            "memo": self.memo or "",
            "koji_rice_variety": self.koji_rice_variety or "",
            "kake_rice_variety": self.kake_rice_variety or "",
            "shubo_total_rice": self.shubo_total_rice or 0,
            "shubo_start_date": self.shubo_start_date.isoformat() if self.shubo_start_date else None,
            "shubo_end_date": self.shubo_end_date.isoformat() if self.shubo_end_date else None,
            "shubo_days": self.shubo_days or 0,
            "yeast": self.yeast or "",
            "shubo_storage": self.shubo_storage or "",
        }

    def __repr__(self):
        return f"<RawBatch {self.shubo_number} ({self.fiscal_year})>"


class BatchConfig(db.Model):
    """A raw batch assigned to a tank and batch type, with its recipe snapshot."""

    __tablename__ = "shubo_configured_data"
    __table_args__ = (
        db.UniqueConstraint("shubo_number", "fiscal_year", name="uq_configured_number_year"),
    )

    id = db.Column(db.Integer, primary_key=True)
    shubo_number = db.Column(db.Integer, nullable=False, index=True)
    fiscal_year = db.Column(db.Integer, nullable=False, index=True)
    selected_tank_id = db.Column(db.String(50), nullable=False)
    shubo_type = db.Column(db.String(50), nullable=False)
    shubo_start_date = db.Column(db.Date, nullable=False)
    shubo_end_date = db.Column(db.Date, nullable=False)
    shubo_days = db.Column(db.Integer, default=0)
    display_name = db.Column(db.String(50))
    recipe_data = db.Column(db.JSON)
    original_data = db.Column(db.JSON)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def to_domain(self) -> ConfiguredBatch:
        return ConfiguredBatch(
            number=self.shubo_number,
            tank_id=self.selected_tank_id,
            batch_type=self.shubo_type,
            start_date=self.shubo_start_date,
            end_date=self.shubo_end_date,
            days=self.shubo_days or 0,
            recipe=RecipeAmounts.from_dict(self.recipe_data),
            fiscal_year=self.fiscal_year,
            display_name=self.display_name or f"{self.shubo_number}号",
            original=self.original_data or {},
        )

    def apply(self, batch: ConfiguredBatch) -> None:
        """Copy a configured batch onto this row."""
        self.shubo_number = batch.number
        self.fiscal_year = batch.fiscal_year
        self.selected_tank_id = batch.tank_id
        self.shubo_type = batch.batch_type
        self.shubo_start_date = batch.start_date
        self.shubo_end_date = batch.end_date
        self.shubo_days = batch.days
        self.display_name = batch.display_name
        self.recipe_data = batch.recipe.to_dict()
        self.original_data = batch.original

    def __repr__(self):
        return f"<BatchConfig {self.shubo_number} -> {self.selected_tank_id}>"
