import json
from datetime import date

from shubo import db


class Settings(db.Model):
    """Application settings stored in the database."""

    __tablename__ = "settings"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    value = db.Column(db.Text)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    # Default analysis days per batch type (速醸 / 高温糖化)
    DEFAULT_ANALYSIS_DAYS = {
        "速醸": [2, 6, 9],
        "高温糖化": [2, 5, 7],
    }

    @classmethod
    def get(cls, key: str, default: str = None) -> str:
        """Get a setting value by key."""
        setting = cls.query.filter_by(key=key).first()
        return setting.value if setting else default

    @classmethod
    def set(cls, key: str, value: str) -> None:
        """Set a setting value."""
        setting = cls.query.filter_by(key=key).first()
        if setting:
            setting.value = value
        else:
            setting = cls(key=key, value=value)
            db.session.add(setting)
        db.session.commit()

    # ------------------------------------------------------------------
    # Fiscal year
    # ------------------------------------------------------------------

    @classmethod
    def get_fiscal_year(cls) -> int:
        """Get the brewing year currently shown, defaulting to today's."""
        from shubo.services.lifecycle import fiscal_year_for

        value = cls.get("fiscal_year")
        try:
            return int(value) if value else fiscal_year_for(date.today())
        except (ValueError, TypeError):
            return fiscal_year_for(date.today())

    @classmethod
    def set_fiscal_year(cls, year: int) -> None:
        cls.set("fiscal_year", str(year))

    # ------------------------------------------------------------------
    # Analysis settings
    # ------------------------------------------------------------------

    @classmethod
    def get_analysis_days(cls) -> dict:
        """Return ``{batch_type: [day, ...]}`` for analysis-day defaults."""
        value = cls.get("analysis_days")
        if not value:
            return {k: list(v) for k, v in cls.DEFAULT_ANALYSIS_DAYS.items()}
        try:
            return json.loads(value)
        except ValueError:
            return {k: list(v) for k, v in cls.DEFAULT_ANALYSIS_DAYS.items()}

    @classmethod
    def save_analysis_days(cls, days_by_type: dict) -> None:
        cleaned = {
            batch_type: sorted({int(d) for d in days if int(d) > 0})
            for batch_type, days in days_by_type.items()
        }
        cls.set("analysis_days", json.dumps(cleaned, ensure_ascii=False))

    def __repr__(self):
        return f"<Settings {self.key}={self.value}>"
