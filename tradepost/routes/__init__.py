from flask import Blueprint

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")
users_bp = Blueprint("users", __name__)

from . import auth, users  # noqa: E402,F401
