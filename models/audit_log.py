import json
from datetime import datetime
from models.db import db

class AuditLog(db.Model):
    """Append-only trail of account and reservation events, kept in the accounts store."""
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_entity", "entity", "entity_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)  # None for anonymous events
    action = db.Column(db.String(80), nullable=False)  # RESERVATION_CREATE, ADMIN_RESERVATION_DELETE, ...
    entity = db.Column(db.String(40), nullable=True)   # reservation, slot, barber
    entity_id = db.Column(db.String(40), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def details(self) -> dict:
        return json.loads(self.metadata_json) if self.metadata_json else {}
