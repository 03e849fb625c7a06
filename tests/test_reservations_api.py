"""HTTP surface of slots, barbers and reservations."""
import threading

import pytest
from sqlalchemy.exc import OperationalError

from conftest import register_and_login, slot_state, wait_for_status
from models.reservation import STATUS_READY
from services import reservations
from utils import audit


@pytest.mark.integration
class TestSlots:
    def test_list_is_public_and_ordered(self, client, schedule):
        resp = client.get("/slots")
        assert resp.status_code == 200
        body = resp.get_json()
        assert [s["id"] for s in body] == [schedule["single"], schedule["double"], schedule["full"]]
        assert body[0] == {
            "id": schedule["single"],
            "scheduledAt": "2030-05-01T10:00:00",
            "totalCapacity": 1,
            "reservedCount": 0,
            "available": 1,
        }

    def test_create_slot_requires_admin(self, client, user_auth):
        resp = client.post(
            "/slots",
            json={"scheduledAt": "2030-06-01T09:00:00", "totalCapacity": 2},
            headers=user_auth["headers"],
        )
        assert resp.status_code == 403

    def test_admin_creates_slot(self, client, admin_auth):
        resp = client.post(
            "/slots",
            json={"scheduledAt": "2030-06-01T09:00:00", "totalCapacity": 2},
            headers=admin_auth["headers"],
        )
        assert resp.status_code == 201
        assert resp.get_json()["reservedCount"] == 0

    def test_create_slot_rejects_fractional_capacity(self, client, admin_auth):
        resp = client.post(
            "/slots",
            json={"scheduledAt": "2030-06-01T09:00:00", "totalCapacity": 2.5},
            headers=admin_auth["headers"],
        )
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "totalCapacity must be an integer"}

    def test_create_slot_bad_datetime(self, client, admin_auth):
        resp = client.post(
            "/slots",
            json={"scheduledAt": "tomorrow", "totalCapacity": 2},
            headers=admin_auth["headers"],
        )
        assert resp.status_code == 400

    def test_create_slot_duplicate_time(self, client, admin_auth, schedule):
        resp = client.post(
            "/slots",
            json={"scheduledAt": "2030-05-01T10:00:00", "totalCapacity": 2},
            headers=admin_auth["headers"],
        )
        assert resp.status_code == 409


@pytest.mark.integration
class TestBarbers:
    def test_list_and_create(self, client, admin_auth, schedule):
        resp = client.post("/barbers", json={"name": "Ana Bravo"}, headers=admin_auth["headers"])
        assert resp.status_code == 201
        names = [b["name"] for b in client.get("/barbers").get_json()]
        assert names == ["Ana Bravo", "Carlos Rivas"]

    def test_name_required(self, client, admin_auth):
        resp = client.post("/barbers", json={"name": "  "}, headers=admin_auth["headers"])
        assert resp.status_code == 400


@pytest.mark.integration
class TestReserve:
    def test_requires_authentication(self, client, schedule):
        resp = client.post("/reservations", json={"slotId": schedule["single"], "barberId": schedule["barber_id"]})
        assert resp.status_code == 401

    def test_missing_fields(self, client, user_auth):
        resp = client.post("/reservations", json={"slotId": 1}, headers=user_auth["headers"])
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "slotId and barberId are required"}

    def test_created(self, app, client, user_auth, schedule):
        resp = client.post(
            "/reservations",
            json={"slotId": schedule["double"], "barberId": schedule["barber_id"]},
            headers=user_auth["headers"],
        )
        assert resp.status_code == 201
        code = resp.get_json()["attentionCode"]

        status = client.get(f"/reservations/status/{code}", headers=user_auth["headers"])
        assert status.status_code == 200
        assert status.get_json()["processingStatus"] in ("PENDING", "PROCESSING", "READY")

        assert wait_for_status(app, code, STATUS_READY)
        status = client.get(f"/reservations/status/{code}", headers=user_auth["headers"]).get_json()
        assert status == {"attentionCode": code, "processingStatus": "READY"}

    def test_unknown_slot_is_404_and_ledger_unchanged(self, app, client, user_auth, schedule):
        resp = client.post(
            "/reservations",
            json={"slotId": 9999, "barberId": schedule["barber_id"]},
            headers=user_auth["headers"],
        )
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Slot not found"}
        assert slot_state(app, schedule["single"]) == (0, 1)
        assert slot_state(app, schedule["double"]) == (0, 2)

    def test_full_slot_is_409(self, client, user_auth, schedule):
        resp = client.post(
            "/reservations",
            json={"slotId": schedule["full"], "barberId": schedule["barber_id"]},
            headers=user_auth["headers"],
        )
        assert resp.status_code == 409

    def test_fractional_slot_id_is_400(self, app, client, user_auth, schedule):
        resp = client.post(
            "/reservations",
            json={"slotId": schedule["single"] + 0.9, "barberId": schedule["barber_id"]},
            headers=user_auth["headers"],
        )
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "slotId must be an integer"}
        assert slot_state(app, schedule["single"]) == (0, 1)

    def test_audit_failure_after_commit_still_reports_created(self, app, client, user_auth, schedule, monkeypatch):
        def accounts_down(action, **kwargs):
            raise OperationalError("INSERT INTO audit_logs", {}, Exception("accounts store unreachable"))

        monkeypatch.setattr(audit, "log_event", accounts_down)
        resp = client.post(
            "/reservations",
            json={"slotId": schedule["single"], "barberId": schedule["barber_id"]},
            headers=user_auth["headers"],
        )
        assert resp.status_code == 201
        code = resp.get_json()["attentionCode"]
        assert slot_state(app, schedule["single"]) == (1, 1)
        mine = client.get("/reservations/mine", headers=user_auth["headers"]).get_json()
        assert [r["attentionCode"] for r in mine] == [code]

    def test_storage_failure_is_500_without_details(self, app, client, user_auth, schedule, monkeypatch):
        first = client.post(
            "/reservations",
            json={"slotId": schedule["double"], "barberId": schedule["barber_id"]},
            headers=user_auth["headers"],
        ).get_json()["attentionCode"]
        monkeypatch.setattr(reservations, "generate_attention_code", lambda: first)

        resp = client.post(
            "/reservations",
            json={"slotId": schedule["double"], "barberId": schedule["barber_id"]},
            headers=user_auth["headers"],
        )
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Could not create the reservation"}
        assert slot_state(app, schedule["double"]) == (1, 2)

    def test_two_simultaneous_requests_for_last_unit(self, app, user_auth, schedule):
        barrier = threading.Barrier(2)
        results = []
        lock = threading.Lock()

        def send():
            client = app.test_client()
            barrier.wait()
            resp = client.post(
                "/reservations",
                json={"slotId": schedule["single"], "barberId": schedule["barber_id"]},
                headers=user_auth["headers"],
            )
            with lock:
                results.append(resp.status_code)

        threads = [threading.Thread(target=send) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert sorted(results) == [201, 409]
        assert slot_state(app, schedule["single"]) == (1, 1)

    def test_unknown_status_code(self, client, user_auth):
        resp = client.get("/reservations/status/ATN-NOPE", headers=user_auth["headers"])
        assert resp.status_code == 404


@pytest.mark.integration
class TestListings:
    def test_mine_only_shows_callers_reservations(self, client, user_auth, schedule):
        other_token, _ = register_and_login(client, "other@barberia.test")
        client.post(
            "/reservations",
            json={"slotId": schedule["double"], "barberId": schedule["barber_id"]},
            headers={"X-Auth-Token": other_token},
        )
        client.post(
            "/reservations",
            json={"slotId": schedule["single"], "barberId": schedule["barber_id"]},
            headers=user_auth["headers"],
        )

        mine = client.get("/reservations/mine", headers=user_auth["headers"]).get_json()
        assert len(mine) == 1
        assert mine[0]["userId"] == user_auth["user_id"]
        assert mine[0]["barberName"] == "Carlos Rivas"

    def test_rejected_reservation_never_shows_up(self, client, user_auth, schedule):
        client.post(
            "/reservations",
            json={"slotId": schedule["full"], "barberId": schedule["barber_id"]},
            headers=user_auth["headers"],
        )
        assert client.get("/reservations/mine", headers=user_auth["headers"]).get_json() == []

    def test_by_barber(self, client, user_auth, schedule):
        client.post(
            "/reservations",
            json={"slotId": schedule["single"], "barberId": schedule["barber_id"]},
            headers=user_auth["headers"],
        )
        rows = client.get(
            f"/reservations/by-barber/{schedule['barber_id']}", headers=user_auth["headers"]
        ).get_json()
        assert len(rows) == 1
        assert rows[0]["barberId"] == schedule["barber_id"]
        assert client.get("/reservations/by-barber/777", headers=user_auth["headers"]).get_json() == []
