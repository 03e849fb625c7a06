from models import db
from models.barber import Barber
from services.errors import ValidationError


def list_barbers():
    return Barber.query.filter_by(is_active=True).order_by(Barber.name.asc()).all()


def create_barber(name: str, specialty: str = None) -> Barber:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Barber name required")

    barber = Barber(name=name, specialty=(specialty or "").strip() or None)
    db.session.add(barber)
    db.session.commit()
    return barber
