from functools import wraps

from flask import request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from email_validator import validate_email, EmailNotValidError

from ..extensions import db
from ..models.user import User
from . import auth_bp


def _payload():
    """JSON body or form data, whichever the client sent"""
    return request.get_json(silent=True) or request.form.to_dict()


@auth_bp.route("/register", methods=["POST"])
def register():
    data = _payload()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    name = (data.get("name") or "").strip()

    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return jsonify({"ok": False, "error": "Please enter a valid email address."}), 400

    if len(password) < 8:
        return jsonify({"ok": False, "error": "Password must be at least 8 characters."}), 400
    if len(name) < 2:
        return jsonify({"ok": False, "error": "Name must be at least 2 characters."}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({"ok": False, "error": "Email already registered"}), 409

    user = User(email=email, name=name)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    return jsonify({"ok": True, "user_id": user.id}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = _payload()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({"ok": False, "error": "Invalid credentials"}), 401

    login_user(user, remember=bool(data.get("remember")))
    return jsonify({"ok": True, "user": user.to_dict()})


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"ok": True})


def verified_required(view):
    """login_required + account verification, for buying and selling"""
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if not current_user.verified:
            return jsonify({"ok": False, "error": "Account verification required"}), 403
        return view(*args, **kwargs)

    return wrapper
