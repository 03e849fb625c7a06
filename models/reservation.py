from datetime import datetime
from models.db import db

STATUS_PENDING = "PENDING"
STATUS_PROCESSING = "PROCESSING"
STATUS_READY = "READY"


class Reservation(db.Model):
    __tablename__ = "reservations"
    __bind_key__ = "scheduling"

    id = db.Column(db.Integer, primary_key=True)

    # users live in the accounts database, so no FK here
    user_id = db.Column(db.Integer, nullable=False, index=True)
    barber_id = db.Column(db.Integer, db.ForeignKey("barbers.id"), nullable=False, index=True)
    slot_id = db.Column(db.Integer, db.ForeignKey("slots.id"), nullable=True, index=True)

    # copied from the slot when the reservation is made
    scheduled_at = db.Column(db.DateTime, nullable=False, index=True)

    attention_code = db.Column(db.String(40), nullable=False, unique=True, index=True)
    processing_status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING)
    # status values: PENDING -> PROCESSING -> READY

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "barberId": self.barber_id,
            "slotId": self.slot_id,
            "scheduledAt": self.scheduled_at.isoformat(),
            "attentionCode": self.attention_code,
            "processingStatus": self.processing_status,
        }
