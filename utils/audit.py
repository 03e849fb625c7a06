import json
import logging

from flask import has_request_context, request
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_event(action: str, user_id=None, entity=None, entity_id=None, metadata=None):
    ip = user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata) if metadata else None
    )
    db.session.add(row)
    db.session.commit()


def record_event(action: str, **kwargs) -> bool:
    """
    Audit after the fact. Used once the scheduling change has committed, when
    a failing accounts store must not turn a completed change into an error.
    """
    try:
        log_event(action, **kwargs)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Audit write failed for %s", action)
        return False
    return True
