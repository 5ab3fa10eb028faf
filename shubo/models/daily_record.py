from shubo import db
from shubo.services.types import DailyEntry


class DailyRecord(db.Model):
    """Per-day fermentation measurements for a (merged) batch."""

    __tablename__ = "shubo_daily_records"
    __table_args__ = (
        db.UniqueConstraint(
            "shubo_number", "fiscal_year", "record_date", "time_slot",
            name="uq_daily_record_key",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    shubo_number = db.Column(db.Integer, nullable=False, index=True)
    fiscal_year = db.Column(db.Integer, nullable=False, index=True)
    record_date = db.Column(db.Date, nullable=False)
    time_slot = db.Column(db.String(20), nullable=False, default="")
    day_number = db.Column(db.Integer, default=0)
    day_label = db.Column(db.String(50))
    temperature1 = db.Column(db.Float)
    temperature2 = db.Column(db.Float)
    temperature3 = db.Column(db.Float)
    baume = db.Column(db.Float)
    acidity = db.Column(db.Float)
    alcohol = db.Column(db.Float)
    memo = db.Column(db.Text, default="")
    is_analysis_day = db.Column(db.Boolean, default=False)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    # Fields a user may edit after generation
    EDITABLE_FIELDS = (
        "day_label",
        "temperature1",
        "temperature2",
        "temperature3",
        "baume",
        "acidity",
        "alcohol",
        "memo",
        "is_analysis_day",
    )

    @classmethod
    def from_entry(cls, entry: DailyEntry) -> "DailyRecord":
        return cls(
            shubo_number=entry.batch_number,
            fiscal_year=entry.fiscal_year,
            record_date=entry.record_date,
            time_slot=entry.time_slot,
            day_number=entry.day_number,
            day_label=entry.day_label,
            temperature1=entry.temperature1,
            temperature2=entry.temperature2,
            temperature3=entry.temperature3,
            baume=entry.baume,
            acidity=entry.acidity,
            alcohol=entry.alcohol,
            memo=entry.memo,
            is_analysis_day=entry.is_analysis_day,
        )

    def to_dict(self):
        return {
            "shubo_number": self.shubo_number,
            "fiscal_year": self.fiscal_year,
            "record_date": self.record_date.isoformat(),
            "time_slot": self.time_slot,
            "day_number": self.day_number,
            "day_label": self.day_label,
            "temperature1": self.temperature1,
            "temperature2": self.temperature2,
            "temperature3": self.temperature3,
            "baume": self.baume,
            "acidity": self.acidity,
            "alcohol": self.alcohol,
            "memo": self.memo or "",
            "is_analysis_day": bool(self.is_analysis_day),
        }

    def __repr__(self):
        return f"<DailyRecord {self.shubo_number} day {self.day_number}>"


class DailyEnvironment(db.Model):
    """Brewery room temperature and humidity by date."""

    __tablename__ = "shubo_daily_environment"

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, unique=True, nullable=False, index=True)
    temperature = db.Column(db.Float)
    humidity = db.Column(db.Float)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    @classmethod
    def upsert(cls, day, temperature=None, humidity=None) -> "DailyEnvironment":
        row = cls.query.filter_by(date=day).first()
        if not row:
            row = cls(date=day)
            db.session.add(row)
        row.temperature = temperature
        row.humidity = humidity
        db.session.commit()
        return row

    def to_dict(self):
        return {
            "date": self.date.isoformat(),
            "temperature": self.temperature,
            "humidity": self.humidity,
        }

    def __repr__(self):
        return f"<DailyEnvironment {self.date}>"
