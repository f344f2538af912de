from flask import Blueprint

bp = Blueprint("question", __name__, url_prefix="/api/questions")

from . import routes  # noqa: E402,F401
