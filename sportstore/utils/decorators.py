# ------- sportstore/utils/decorators.py -------
from functools import wraps

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from .. import messages as msg
from ..extensions import db
from ..model.user import User
from .api import err


def _load_user(uid):
    try:
        uid = int(uid)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, uid)


def current_user(optional=False):
    verify_jwt_in_request(optional=optional)
    uid = get_jwt_identity()
    return _load_user(uid) if uid else None


def login_required(fn):
    """JWT + an existing, non-blocked user; passes it as `user=`."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        u = current_user()
        if not u:
            return err(msg.UNAUTHORIZED, status_code=401)
        if u.status != "active":
            return err(msg.ACCOUNT_BLOCKED, status_code=403)
        return fn(*args, user=u, **kwargs)
    return wrapper


def role_required(*roles, message: str | None = None):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            u = current_user()
            if not u:
                return err(msg.UNAUTHORIZED, status_code=401)
            if u.status != "active":
                return err(msg.ACCOUNT_BLOCKED, status_code=403)
            if u.role not in roles:
                return err(message or msg.FORBIDDEN, status_code=403)
            return fn(*args, user=u, **kwargs)
        return wrapper
    return decorator


admin_required = role_required("admin")
