from datetime import datetime

from shubo import db


class CsvUpdate(db.Model):
    """History of plan CSV updates."""

    __tablename__ = "csv_update_history"

    id = db.Column(db.Integer, primary_key=True)
    update_date = db.Column(db.Date, nullable=False)
    executed_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_count = db.Column(db.Integer, default=0)
    kept_count = db.Column(db.Integer, default=0)
    filename = db.Column(db.String(255))

    def to_dict(self):
        return {
            "id": self.id,
            "update_date": self.update_date.isoformat(),
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
            "updated_count": self.updated_count,
            "kept_count": self.kept_count,
            "filename": self.filename,
        }

    def __repr__(self):
        return f"<CsvUpdate {self.update_date}: {self.updated_count} updated>"
