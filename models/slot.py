from datetime import datetime
from models.db import db

class Slot(db.Model):
    __tablename__ = "slots"
    __bind_key__ = "scheduling"

    id = db.Column(db.Integer, primary_key=True)

    scheduled_at = db.Column(db.DateTime, nullable=False, unique=True, index=True)

    total_capacity = db.Column(db.Integer, nullable=False)
    # only changed through services.capacity (claim/release)
    reserved_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("total_capacity >= 0", name="ck_slot_capacity_non_negative"),
        db.CheckConstraint(
            "reserved_count >= 0 AND reserved_count <= total_capacity",
            name="ck_slot_reserved_within_capacity",
        ),
    )

    @property
    def available(self) -> int:
        return self.total_capacity - self.reserved_count
