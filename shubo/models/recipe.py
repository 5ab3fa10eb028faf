from shubo import db
from shubo.services.types import RecipeAmounts, RecipeTemplate, StageAmounts


class Recipe(db.Model):
    """Recipe template per batch type and brewing scale."""

    __tablename__ = "shubo_recipe_data"
    __table_args__ = (
        db.UniqueConstraint("shubo_type", "recipe_brewing_scale", name="uq_recipe_type_scale"),
    )

    id = db.Column(db.Integer, primary_key=True)
    shubo_type = db.Column(db.String(50), nullable=False, index=True)
    recipe_brewing_scale = db.Column(db.Integer, nullable=False)
    recipe_total_rice = db.Column(db.Float, default=0)
    steamed_rice = db.Column(db.Float, default=0)
    koji_rice = db.Column(db.Float, default=0)
    water = db.Column(db.Float, default=0)
    measurement = db.Column(db.Float, default=0)
    lactic_acid = db.Column(db.Float, default=0)

    # Stage breakdown (初添 / 仲添 / 留添)
    first_total_rice = db.Column(db.Float)
    first_kake_rice = db.Column(db.Float)
    first_koji_rice = db.Column(db.Float)
    first_water = db.Column(db.Float)
    middle_total_rice = db.Column(db.Float)
    middle_kake_rice = db.Column(db.Float)
    middle_koji_rice = db.Column(db.Float)
    middle_water = db.Column(db.Float)
    final_total_rice = db.Column(db.Float)
    final_kake_rice = db.Column(db.Float)
    final_koji_rice = db.Column(db.Float)
    final_water = db.Column(db.Float)
    three_stage_total_rice = db.Column(db.Float)
    water_ratio_to_final = db.Column(db.Float)

    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    STAGES = ("first", "middle", "final")
    STAGE_FIELDS = ("total_rice", "kake_rice", "koji_rice", "water")

    def _stage(self, stage: str) -> StageAmounts:
        return StageAmounts(**{
            name: getattr(self, f"{stage}_{name}") for name in self.STAGE_FIELDS
        })

    def to_template(self) -> RecipeTemplate:
        return RecipeTemplate(
            batch_type=self.shubo_type,
            scale=self.recipe_brewing_scale,
            amounts=RecipeAmounts(
                total_rice=self.recipe_total_rice or 0,
                steamed_rice=self.steamed_rice or 0,
                koji_rice=self.koji_rice or 0,
                water=self.water or 0,
                measurement=self.measurement or 0,
                lactic_acid=self.lactic_acid or 0,
            ),
            first=self._stage("first"),
            middle=self._stage("middle"),
            final=self._stage("final"),
            three_stage_total_rice=self.three_stage_total_rice,
            water_ratio_to_final=self.water_ratio_to_final,
        )

    def __repr__(self):
        return f"<Recipe {self.shubo_type} {self.recipe_brewing_scale}kg>"
