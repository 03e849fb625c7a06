from flask import Blueprint, jsonify, g, request

from security.rbac import admin_required
from services import reservations
from utils.audit import record_event
from utils.parsing import parse_iso

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.get("/reservations")
@admin_required
def list_reservations():
    return jsonify(reservations.list_all_enriched()), 200


@admin_bp.put("/reservations/<int:reservation_id>")
@admin_required
def update_reservation(reservation_id: int):
    data = request.get_json(silent=True) or {}
    barber_id = data.get("barberId") or None
    scheduled_at = data.get("scheduledAt") or data.get("scheduledAtCita") or None

    if barber_id is None and scheduled_at is None:
        return jsonify(error="Send at least one field to update"), 400

    if scheduled_at is not None:
        try:
            scheduled_at = parse_iso(scheduled_at)
        except (TypeError, ValueError):
            return jsonify(error="Invalid datetime format. Use ISO e.g. 2026-01-20T18:00:00"), 400

    row = reservations.update_reservation(reservation_id, barber_id=barber_id, scheduled_at=scheduled_at)

    record_event(
        "ADMIN_RESERVATION_UPDATE",
        user_id=g.user.id,
        entity="reservation",
        entity_id=reservation_id,
        metadata={"barber_id": row.barber_id, "scheduled_at": row.scheduled_at.isoformat()},
    )
    return jsonify(message="Reservation updated", reservation=row.to_dict()), 200


@admin_bp.delete("/reservations/<int:reservation_id>")
@admin_required
def delete_reservation(reservation_id: int):
    reservations.remove_reservation(reservation_id)
    record_event("ADMIN_RESERVATION_DELETE", user_id=g.user.id, entity="reservation", entity_id=reservation_id)
    return jsonify(message="Reservation deleted"), 200
