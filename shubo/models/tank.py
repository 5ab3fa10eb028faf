from shubo import db


class TankConversion(db.Model):
    """Calibration points: kensyaku (gauge) reading to capacity, per tank."""

    __tablename__ = "tank_conversions"
    __table_args__ = (
        db.UniqueConstraint("tank_id", "kensyaku", name="uq_tank_kensyaku"),
    )

    id = db.Column(db.Integer, primary_key=True)
    tank_id = db.Column(db.String(50), nullable=False, index=True)
    kensyaku = db.Column(db.Float, nullable=False)
    capacity = db.Column(db.Float, nullable=False)

    @classmethod
    def load_curves(cls) -> dict[str, list[tuple[float, float]]]:
        """Return ``{tank_id: [(kensyaku, capacity), ...]}`` ordered by kensyaku."""
        curves = {}
        for row in cls.query.order_by(cls.tank_id, cls.kensyaku).all():
            curves.setdefault(row.tank_id, []).append((row.kensyaku, row.capacity))
        return curves

    def __repr__(self):
        return f"<TankConversion {self.tank_id} {self.kensyaku}mm={self.capacity}L>"


class TankStatus:
    EMPTY = "空き"
    IN_USE = "使用中"


class TankConfig(db.Model):
    """Which tanks may hold a batch, and how they are shown."""

    __tablename__ = "shubo_tank_config"

    id = db.Column(db.Integer, primary_key=True)
    tank_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(100))
    max_capacity = db.Column(db.Float, default=0)
    is_enabled = db.Column(db.Boolean, default=False)
    is_recommended = db.Column(db.Boolean, default=False)
    current_status = db.Column(db.String(20), default=TankStatus.EMPTY)
    available_date = db.Column(db.Date)
    memo = db.Column(db.Text)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "tank_id": self.tank_id,
            "display_name": self.display_name,
            "max_capacity": self.max_capacity,
            "is_enabled": bool(self.is_enabled),
            "is_recommended": bool(self.is_recommended),
            "current_status": self.current_status or TankStatus.EMPTY,
            "available_date": self.available_date.isoformat() if self.available_date else None,
            "memo": self.memo or "",
        }

    def __repr__(self):
        return f"<TankConfig {self.tank_id}>"
