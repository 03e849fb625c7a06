from flask import Blueprint, request, jsonify, g

from security.rbac import admin_required
from services import barbers, capacity, reservations
from services.errors import CapacityExhausted
from utils.audit import record_event
from utils.auth_context import login_required
from utils.parsing import parse_iso

reservations_bp = Blueprint("reservations", __name__)


def _slot_payload(s) -> dict:
    return {
        "id": s.id,
        "scheduledAt": s.scheduled_at.isoformat(),
        "totalCapacity": s.total_capacity,
        "reservedCount": s.reserved_count,
        "available": s.available,
    }


# ---------- PUBLIC: availability ----------
@reservations_bp.get("/slots")
def list_slots():
    return jsonify([_slot_payload(s) for s in capacity.list_slots()]), 200


# ---------- ADMIN: create slots ----------
@reservations_bp.post("/slots")
@admin_required
def create_slot():
    data = request.get_json(silent=True) or {}
    scheduled_at = data.get("scheduledAt")
    total_capacity = data.get("totalCapacity")

    if not scheduled_at or total_capacity is None:
        return jsonify(error="scheduledAt and totalCapacity are required"), 400

    try:
        at = parse_iso(scheduled_at)
    except (TypeError, ValueError):
        return jsonify(error="Invalid datetime format. Use ISO e.g. 2026-01-20T18:00:00"), 400
    if isinstance(total_capacity, bool) or (isinstance(total_capacity, float) and not total_capacity.is_integer()):
        return jsonify(error="totalCapacity must be an integer"), 400
    try:
        total_capacity = int(total_capacity)
    except (TypeError, ValueError):
        return jsonify(error="totalCapacity must be an integer"), 400

    slot = capacity.create_slot(at, total_capacity)
    record_event("SLOT_CREATE", user_id=g.user.id, entity="slot", entity_id=slot.id)
    return jsonify(_slot_payload(slot)), 201


# ---------- PUBLIC: barbers ----------
@reservations_bp.get("/barbers")
def list_barbers():
    return jsonify([
        {"id": b.id, "name": b.name, "specialty": b.specialty}
        for b in barbers.list_barbers()
    ]), 200


@reservations_bp.post("/barbers")
@admin_required
def create_barber():
    data = request.get_json(silent=True) or {}
    barber = barbers.create_barber(data.get("name"), data.get("specialty"))
    record_event("BARBER_CREATE", user_id=g.user.id, entity="barber", entity_id=barber.id)
    return jsonify(id=barber.id, name=barber.name, specialty=barber.specialty), 201


# ---------- USERS: reserve (capacity safe) ----------
@reservations_bp.post("/reservations")
@login_required
def create_reservation():
    data = request.get_json(silent=True) or {}
    slot_id = data.get("slotId")
    barber_id = data.get("barberId")

    try:
        reservation = reservations.reserve(g.user.id, barber_id, slot_id)
    except CapacityExhausted:
        record_event("RESERVATION_FAIL_NO_CAPACITY", user_id=g.user.id, entity="slot", entity_id=slot_id)
        raise

    record_event(
        "RESERVATION_CREATE",
        user_id=g.user.id,
        entity="reservation",
        entity_id=reservation.id,
        metadata={"slot_id": reservation.slot_id, "attention_code": reservation.attention_code},
    )
    return jsonify(
        message="Reservation created. The appointment sheet is being generated in the background.",
        attentionCode=reservation.attention_code,
    ), 201


@reservations_bp.get("/reservations/status/<code>")
@login_required
def reservation_status(code: str):
    return jsonify(reservations.get_status(code)), 200


@reservations_bp.get("/reservations/mine")
@login_required
def my_reservations():
    return jsonify(reservations.list_for_user(g.user.id)), 200


@reservations_bp.get("/reservations/by-barber/<int:barber_id>")
@login_required
def reservations_by_barber(barber_id: int):
    return jsonify(reservations.list_for_barber(barber_id)), 200
