"""
Capacity ledger: claim and release units of a slot's capacity.

Neither claim nor release commits. They run inside the caller's transaction so
the row lock taken here is held until the caller commits or rolls back.
"""
import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import set_committed_value

from models import db
from models.slot import Slot
from services.errors import CapacityExhausted, Conflict, SlotNotFound, ValidationError

logger = logging.getLogger(__name__)


def list_slots():
    return Slot.query.order_by(Slot.scheduled_at.asc()).all()


def _lock_slot(slot_id: int):
    # SELECT ... FOR UPDATE; other claimants on this row wait for our commit
    return Slot.query.filter_by(id=slot_id).with_for_update().first()


def try_claim(slot_id: int) -> Slot:
    """
    Reserve one unit of capacity on a slot and return the locked row.

    Raises SlotNotFound or CapacityExhausted. The increment is guarded by
    reserved_count < total_capacity so engines without row locks (SQLite)
    still can't go over capacity.
    """
    slot = _lock_slot(slot_id)
    if slot is None:
        raise SlotNotFound()

    if slot.total_capacity - slot.reserved_count <= 0:
        raise CapacityExhausted()

    result = db.session.execute(
        update(Slot)
        .where(Slot.id == slot.id, Slot.reserved_count < Slot.total_capacity)
        .values(reserved_count=Slot.reserved_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # lost the race to a claimant that committed after our read
        raise CapacityExhausted()

    # mirror the increment without marking the row dirty
    set_committed_value(slot, "reserved_count", slot.reserved_count + 1)
    return slot


def release(slot: Slot) -> None:
    """Give back one unit, never going below zero."""
    locked = _lock_slot(slot.id)
    if locked is None:
        return
    locked.reserved_count = max(locked.reserved_count - 1, 0)


def find_slot_for_reservation(reservation):
    if reservation.slot_id is not None:
        return db.session.get(Slot, reservation.slot_id)
    # rows created before slot_id existed only carry the timestamp
    return Slot.query.filter_by(scheduled_at=reservation.scheduled_at).first()


def create_slot(scheduled_at: datetime, total_capacity: int) -> Slot:
    if total_capacity < 0:
        raise ValidationError("totalCapacity must be >= 0")

    slot = Slot(scheduled_at=scheduled_at, total_capacity=total_capacity, reserved_count=0)
    db.session.add(slot)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("A slot already exists at that time")

    logger.info("Slot %s created at %s with capacity %s", slot.id, scheduled_at.isoformat(), total_capacity)
    return slot
