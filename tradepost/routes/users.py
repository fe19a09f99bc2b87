from flask import request, jsonify, current_app
from flask_login import login_required, current_user
from sqlalchemy import func

from ..extensions import db
from ..models.user import User
from ..models.listing import Listing
from ..models.review import Review
from ..models.transaction import COMPLETED
from ..helpers.payments import (
    PaymentError,
    create_connect_account,
    create_account_link,
    get_account_status,
)
from . import users_bp

PROFILE_FIELDS = {
    "name": 100,
    "phone": 30,
    "bio": 500,
    "location": 255,
}


@users_bp.route("/api/users/me")
@login_required
def get_profile():
    return jsonify({"ok": True, "user": current_user.to_dict()})


@users_bp.route("/api/users/me", methods=["PATCH"])
@login_required
def update_profile():
    data = request.get_json(silent=True) or {}

    updates = {}
    for field, max_len in PROFILE_FIELDS.items():
        if field not in data:
            continue
        raw = data.get(field)
        if raw is not None and not isinstance(raw, str):
            return jsonify({"ok": False, "error": f"{field} must be a string"}), 400
        value = (raw or "").strip()
        if len(value) > max_len:
            return jsonify({"ok": False, "error": f"{field} must be at most {max_len} characters"}), 400
        if field == "name" and len(value) < 2:
            return jsonify({"ok": False, "error": "Name must be at least 2 characters."}), 400
        updates[field] = value or None

    for field, value in updates.items():
        setattr(current_user, field, value)
    db.session.commit()
    return jsonify({"ok": True, "user": current_user.to_dict()})


@users_bp.route("/api/users/me/verification", methods=["POST"])
@login_required
def request_verification():
    """Store the identity document; review happens outside the app"""
    data = request.get_json(silent=True) or {}
    document_url = (data.get("document_url") or "").strip()
    if not document_url.startswith(("http://", "https://")):
        return jsonify({"ok": False, "error": "A valid document URL is required"}), 400

    current_user.verification_document = document_url
    db.session.commit()
    return jsonify({"ok": True})


@users_bp.route("/api/users/me/payments", methods=["POST"])
@login_required
def setup_payments():
    """Create the seller's Stripe account if needed and return an onboarding link"""
    data = request.get_json(silent=True) or {}
    return_url = (data.get("return_url") or "").strip()
    if not return_url.startswith(("http://", "https://")):
        return jsonify({"ok": False, "error": "A valid return_url is required"}), 400

    try:
        account_id = current_user.stripe_account_id
        if not account_id:
            account = create_connect_account(current_user.id, current_user.email)
            account_id = account["id"]
            current_user.stripe_account_id = account_id
            db.session.commit()

        link = create_account_link(account_id, return_url)
        return jsonify({"ok": True, "url": link.get("url")})
    except PaymentError as exc:
        db.session.rollback()
        current_app.logger.exception("Stripe onboarding failed")
        return jsonify({"ok": False, "error": str(exc)}), 502


@users_bp.route("/api/users/me/payments")
@login_required
def payment_status():
    if not current_user.stripe_account_id:
        return jsonify({"ok": True, "has_account": False, "is_verified": False})

    try:
        status = get_account_status(current_user.stripe_account_id)
    except PaymentError as exc:
        current_app.logger.exception("Stripe account status failed")
        return jsonify({"ok": False, "error": str(exc)}), 502

    if status["is_verified"] and not current_user.stripe_account_verified:
        current_user.stripe_account_verified = True
        db.session.commit()

    return jsonify({
        "ok": True,
        "has_account": True,
        "is_verified": status["is_verified"],
        "requirements": status["requirements"],
    })


@users_bp.route("/api/users/<int:user_id>")
def public_profile(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"ok": False, "error": "User not found"}), 404

    listings = (
        user.listings.filter(Listing.status == "ACTIVE")
        .order_by(Listing.created_at.desc())
        .limit(10)
        .all()
    )

    reviews = (
        user.reviews_received.order_by(Review.created_at.desc(), Review.id.desc())
        .limit(10)
        .all()
    )
    total_reviews, average_rating = (
        db.session.query(func.count(Review.id), func.avg(Review.rating))
        .filter(Review.reviewee_id == user.id)
        .one()
    )

    profile = user.to_public_dict()
    profile.update({
        "bio": user.bio,
        "location": user.location,
        "joined_at": user.joined_at.isoformat() if user.joined_at else None,
        "listings": [listing.to_dict() for listing in listings],
        "reviews": [
            dict(review.to_dict(), reviewer={"name": review.reviewer.name, "image": review.reviewer.image})
            for review in reviews
        ],
        # Over every review received, not just the ten returned
        "average_rating": round(float(average_rating), 2) if total_reviews else 0,
        "total_reviews": total_reviews,
    })
    return jsonify({"ok": True, "user": profile})


@users_bp.route("/api/users/me/stats")
@login_required
def user_stats():
    listings = current_user.listings
    return jsonify({
        "ok": True,
        "stats": {
            "total_listings": listings.count(),
            "active_listings": listings.filter(Listing.status == "ACTIVE").count(),
            "sold_listings": listings.filter(Listing.status == "SOLD").count(),
            "total_sales": current_user.sales.filter_by(status=COMPLETED).count(),
            "total_purchases": current_user.purchases.filter_by(status=COMPLETED).count(),
        },
    })
