# Admin user management
from flask import Blueprint

bp = Blueprint("customer", __name__, url_prefix="/api/admin/users")

from . import routes  # noqa: E402,F401
