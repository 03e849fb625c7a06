import os
import time
from datetime import datetime, timedelta

import pytest

from app import create_app
from config import Config
from models import db
from models.barber import Barber
from models.reservation import Reservation
from models.slot import Slot
from services.post_processing import jobs

ADMIN_TEST_EMAIL = "admin@barberia.test"
PASSWORD = "s3cret-pass"


@pytest.fixture
def app(tmp_path):
    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + os.path.join(tmp_path, "accounts.db")
        SQLALCHEMY_BINDS = {"scheduling": "sqlite:///" + os.path.join(tmp_path, "scheduling.db")}
        # concurrent writers wait for the SQLite file lock instead of failing
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30, "check_same_thread": False}}
        CREATE_TABLES_ON_STARTUP = True
        BCRYPT_ROUNDS = 4
        ADMIN_EMAIL = ADMIN_TEST_EMAIL
        DOCUMENT_PROCESSING_DELAY_SECONDS = 0.05
        DOCUMENT_WORKERS = 4

    app = create_app(TestConfig)
    yield app

    jobs.shutdown(wait=True)
    with app.app_context():
        db.session.remove()
        for engine in db.engines.values():
            engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


def register_and_login(client, email, full_name="Test User"):
    resp = client.post("/auth/register", json={"fullName": full_name, "email": email, "password": PASSWORD})
    assert resp.status_code == 201, resp.get_json()
    resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    return body["token"], body["user"]["id"]


@pytest.fixture
def user_auth(client):
    token, user_id = register_and_login(client, "client@barberia.test", "Ana Client")
    return {"headers": {"X-Auth-Token": token}, "user_id": user_id}


@pytest.fixture
def admin_auth(client):
    token, user_id = register_and_login(client, ADMIN_TEST_EMAIL, "Boss Admin")
    return {"headers": {"X-Auth-Token": token}, "user_id": user_id}


@pytest.fixture
def schedule(app):
    """One barber and three slots with capacities 1, 2 and 0."""
    base = datetime(2030, 5, 1, 10, 0, 0)
    with app.app_context():
        barber = Barber(name="Carlos Rivas", specialty="Fades")
        slots = [
            Slot(scheduled_at=base, total_capacity=1, reserved_count=0),
            Slot(scheduled_at=base + timedelta(hours=1), total_capacity=2, reserved_count=0),
            Slot(scheduled_at=base + timedelta(hours=2), total_capacity=0, reserved_count=0),
        ]
        db.session.add(barber)
        db.session.add_all(slots)
        db.session.commit()
        return {
            "barber_id": barber.id,
            "single": slots[0].id,
            "double": slots[1].id,
            "full": slots[2].id,
        }


def slot_state(app, slot_id):
    with app.app_context():
        slot = db.session.get(Slot, slot_id)
        return slot.reserved_count, slot.total_capacity


def status_of(app, attention_code):
    with app.app_context():
        row = Reservation.query.filter_by(attention_code=attention_code).first()
        return row.processing_status if row else None


def wait_for_status(app, attention_code, wanted, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if status_of(app, attention_code) == wanted:
            return True
        time.sleep(0.02)
    return False
