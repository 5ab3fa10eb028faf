from shubo import db


class BrewingPreparation(db.Model):
    """Inputs for the day-before brewing preparation of a batch."""

    __tablename__ = "shubo_brewing_preparation"
    __table_args__ = (
        db.UniqueConstraint("shubo_number", "fiscal_year", name="uq_preparation_number_year"),
    )

    id = db.Column(db.Integer, primary_key=True)
    shubo_number = db.Column(db.Integer, nullable=False, index=True)
    fiscal_year = db.Column(db.Integer, nullable=False)
    ice_amount = db.Column(db.Float)
    after_brewing_kensyaku = db.Column(db.Float)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self):
        return f"<BrewingPreparation {self.shubo_number}>"


class DischargeSchedule(db.Model):
    """Discharge inputs; a dual batch has one row per constituent (index 0, 1)."""

    __tablename__ = "shubo_discharge_schedule"
    __table_args__ = (
        db.UniqueConstraint(
            "shubo_number", "fiscal_year", "discharge_index", name="uq_discharge_key"
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    shubo_number = db.Column(db.Integer, nullable=False, index=True)
    fiscal_year = db.Column(db.Integer, nullable=False)
    discharge_index = db.Column(db.Integer, nullable=False, default=0)
    before_discharge_kensyaku = db.Column(db.Float)
    after_discharge_capacity = db.Column(db.Float)
    destination_tank = db.Column(db.String(50))
    ice_amount = db.Column(db.Float)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self):
        return f"<DischargeSchedule {self.shubo_number}#{self.discharge_index}>"
