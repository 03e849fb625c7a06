from functools import wraps
from flask import g

from services.errors import Forbidden, Unauthenticated

ADMIN_ROLE = "ADMIN"

def is_admin(user) -> bool:
    if user is None:
        return False
    return any(r.name == ADMIN_ROLE for r in user.roles)

def admin_required(fn):
    """
    Usage: @admin_required
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = getattr(g, "user", None)
        if user is None:
            raise Unauthenticated("Authentication required")
        if not is_admin(user):
            raise Forbidden("Forbidden")
        return fn(*args, **kwargs)
    return wrapper
