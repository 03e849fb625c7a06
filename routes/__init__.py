from .health import health_bp
from .auth import auth_bp
from .reservations import reservations_bp
from .admin import admin_bp
