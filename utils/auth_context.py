from functools import wraps
from flask import g
from security.session import authenticate, token_from_request
from services.errors import Unauthenticated

def load_current_user():
    sess = authenticate(token_from_request())
    if not sess:
        g.user = None
        g.session = None
        return
    g.session = sess
    g.user = sess.user

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            raise Unauthenticated("Authentication required")
        return fn(*args, **kwargs)
    return wrapper
