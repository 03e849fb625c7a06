"""
Reservation transaction manager.

reserve() claims slot capacity and inserts the reservation as one unit of
work. Post-processing is only started once that unit has committed.
"""
import logging
import secrets
import time
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.barber import Barber
from models.reservation import Reservation, STATUS_PENDING
from models.user import User
from services import capacity
from services.errors import (
    BarberNotFound,
    DomainError,
    InternalFailure,
    ReservationNotFound,
    ValidationError,
)
from services.post_processing import jobs

logger = logging.getLogger(__name__)


def generate_attention_code() -> str:
    # time based with a random suffix; the unique index catches the rare clash
    return f"ATN-{int(time.time() * 1000)}-{secrets.token_hex(2).upper()}"


def _require_int(value, field: str) -> int:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError("slotId and barberId are required")
    # int() would truncate 1.9 to 1
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def reserve(user_id: int, barber_id, slot_id) -> Reservation:
    slot_id = _require_int(slot_id, "slotId")
    barber_id = _require_int(barber_id, "barberId")

    if db.session.get(Barber, barber_id) is None:
        raise BarberNotFound()

    try:
        slot = capacity.try_claim(slot_id)

        reservation = Reservation(
            user_id=user_id,
            barber_id=barber_id,
            slot_id=slot.id,
            scheduled_at=slot.scheduled_at,
            attention_code=generate_attention_code(),
            processing_status=STATUS_PENDING,
        )
        db.session.add(reservation)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Reservation failed for user %s on slot %s", user_id, slot_id)
        raise InternalFailure("Could not create the reservation")
    except Exception:
        # SlotNotFound / CapacityExhausted included: nothing claimed survives
        db.session.rollback()
        raise

    logger.info(
        "Reservation %s created for user %s on slot %s", reservation.attention_code, user_id, slot_id
    )
    _start_post_processing(reservation.attention_code)
    return reservation


def _start_post_processing(attention_code: str) -> None:
    try:
        jobs.enqueue(attention_code)
    except Exception:
        # the reservation is already committed; the sheet just won't be generated
        logger.exception("Could not enqueue post-processing for %s", attention_code)


def get_status(attention_code: str) -> dict:
    row = Reservation.query.filter_by(attention_code=attention_code).first()
    if row is None:
        raise ReservationNotFound()
    return {"attentionCode": row.attention_code, "processingStatus": row.processing_status}


def _with_barber(reservation: Reservation, barber) -> dict:
    out = reservation.to_dict()
    out["barberName"] = barber.name if barber else None
    out["specialty"] = barber.specialty if barber else None
    return out


def _query_with_barber():
    return db.session.query(Reservation, Barber).outerjoin(Barber, Reservation.barber_id == Barber.id)


def list_for_user(user_id: int) -> list:
    rows = (
        _query_with_barber()
        .filter(Reservation.user_id == user_id)
        .order_by(Reservation.scheduled_at.desc())
        .all()
    )
    return [_with_barber(r, b) for r, b in rows]


def list_for_barber(barber_id: int) -> list:
    rows = (
        Reservation.query
        .filter_by(barber_id=barber_id)
        .order_by(Reservation.scheduled_at.desc())
        .all()
    )
    return [r.to_dict() for r in rows]


def _lookup_clients(user_ids) -> dict:
    """Best effort read from the accounts database."""
    if not user_ids:
        return {}
    try:
        users = User.query.filter(User.id.in_(user_ids)).all()
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning("Accounts lookup failed, using placeholder client names", exc_info=True)
        return {}
    return {u.id: u for u in users}


def list_all_enriched() -> list:
    rows = _query_with_barber().order_by(Reservation.scheduled_at.desc()).all()
    clients = _lookup_clients({r.user_id for r, _ in rows})

    out = []
    for r, b in rows:
        item = _with_barber(r, b)
        client = clients.get(r.user_id)
        item["clientName"] = client.full_name if client and client.full_name else f"User {r.user_id}"
        item["clientEmail"] = client.email if client else ""
        out.append(item)
    return out


def update_reservation(reservation_id: int, barber_id=None, scheduled_at: datetime = None) -> Reservation:
    if barber_id is None and scheduled_at is None:
        raise ValidationError("Send at least one field to update")

    reservation = db.session.get(Reservation, reservation_id)
    if reservation is None:
        raise ReservationNotFound()

    if barber_id is not None:
        barber_id = _require_int(barber_id, "barberId")
        if db.session.get(Barber, barber_id) is None:
            raise BarberNotFound()
        reservation.barber_id = barber_id
    if scheduled_at is not None:
        reservation.scheduled_at = scheduled_at

    db.session.commit()
    return reservation


def remove_reservation(reservation_id: int) -> None:
    """Delete a reservation and give its unit of capacity back to the slot."""
    try:
        reservation = db.session.get(Reservation, reservation_id)
        if reservation is None:
            raise ReservationNotFound()

        slot = capacity.find_slot_for_reservation(reservation)
        if slot is not None:
            capacity.release(slot)
        else:
            logger.info("No slot found for reservation %s, capacity left untouched", reservation_id)

        db.session.delete(reservation)
        db.session.commit()
    except DomainError:
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Removing reservation %s failed", reservation_id)
        raise InternalFailure("Could not delete the reservation")
