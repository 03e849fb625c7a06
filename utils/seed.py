from datetime import datetime, timedelta

from models import db
from models.barber import Barber
from models.slot import Slot
from models.user import Role

DEFAULT_ROLES = ["USER", "ADMIN"]

DEMO_BARBERS = [
    ("Carlos Rivas", "Classic cuts"),
    ("Marta Soto", "Beard styling"),
    ("Leo Fuentes", "Fades"),
]

def seed_roles():
    existing = {r.name for r in Role.query.all()}
    for name in DEFAULT_ROLES:
        if name not in existing:
            db.session.add(Role(name=name))
    db.session.commit()

def seed_demo_schedule(days: int = 3, capacity: int = 2):
    """Adds demo barbers and hourly slots (10:00-18:00) for the next few days."""
    if Barber.query.count() == 0:
        for name, specialty in DEMO_BARBERS:
            db.session.add(Barber(name=name, specialty=specialty))

    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    existing = {s.scheduled_at for s in Slot.query.all()}
    created = 0
    for d in range(1, days + 1):
        for hour in range(10, 18):
            at = today + timedelta(days=d, hours=hour)
            if at in existing:
                continue
            db.session.add(Slot(scheduled_at=at, total_capacity=capacity, reserved_count=0))
            created += 1
    db.session.commit()
    return created
