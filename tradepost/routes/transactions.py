"""
Transaction Routes
Checkout, pickup confirmation and cancellation
"""
from datetime import timezone

from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from dateutil import parser as date_parser

from ..extensions import db
from ..models.listing import Listing
from ..models.review import Review, MIN_RATING, MAX_RATING
from ..models.transaction import (
    Transaction,
    InvalidTransitionError,
    COMPLETED,
    PAYMENT_COMPLETED,
)
from ..helpers.payments import (
    PaymentError,
    calculate_transaction_breakdown,
    create_payment_intent,
    create_refund,
    retrieve_payment_intent,
)
from .auth import verified_required

transactions_bp = Blueprint('transactions', __name__)

# Payment intent states that mean the buyer's money is on its way
PAID_INTENT_STATUSES = ("succeeded", "processing", "requires_capture")


def _participant_transaction_or_error(transaction_id, buyer_only=False):
    transaction = db.session.get(Transaction, transaction_id)
    if not transaction:
        return None, (jsonify({"ok": False, "error": "Transaction not found"}), 404)

    allowed = transaction.buyer_id == current_user.id if buyer_only else transaction.involves(current_user.id)
    if not allowed:
        return None, (jsonify({"ok": False, "error": "Forbidden"}), 403)
    return transaction, None


@transactions_bp.route("/api/transactions", methods=["POST"])
@verified_required
def create_transaction():
    data = request.get_json(silent=True) or {}
    listing_id = data.get("listing_id")

    listing = db.session.get(Listing, listing_id) if listing_id is not None else None
    if not listing:
        return jsonify({"ok": False, "error": "Listing not found"}), 404
    if listing.status != "ACTIVE":
        return jsonify({"ok": False, "error": "Listing is not available"}), 400
    if listing.user_id == current_user.id:
        return jsonify({"ok": False, "error": "Cannot buy your own listing"}), 400
    if not listing.seller.stripe_account_id:
        return jsonify({"ok": False, "error": "Seller has not set up payments"}), 400

    # Stripe works in minor units (paise)
    amount_minor = round(listing.price * 100)

    try:
        result = create_payment_intent(
            amount=amount_minor,
            stripe_account_id=listing.seller.stripe_account_id,
            listing_id=listing.id,
            buyer_id=current_user.id,
        )
    except PaymentError as exc:
        current_app.logger.exception("Payment intent creation failed")
        return jsonify({"ok": False, "error": str(exc)}), 502

    payment_intent = result["payment_intent"]

    transaction = Transaction(
        listing_id=listing.id,
        buyer_id=current_user.id,
        seller_id=listing.user_id,
        amount=listing.price,
        commission=result["commission"] / 100,
        seller_payout=result["seller_payout"] / 100,
        stripe_payment_intent_id=payment_intent.get("id"),
    )
    db.session.add(transaction)
    db.session.commit()

    return jsonify({
        "ok": True,
        "transaction": transaction.to_dict(),
        "client_secret": payment_intent.get("client_secret"),
    }), 201


@transactions_bp.route("/api/transactions/<int:transaction_id>/confirm", methods=["POST"])
@verified_required
def confirm_transaction(transaction_id):
    transaction, error = _participant_transaction_or_error(transaction_id, buyer_only=True)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    pickup_at = None
    if data.get("pickup_scheduled_at"):
        try:
            pickup_at = date_parser.isoparse(data["pickup_scheduled_at"])
        except (ValueError, TypeError):
            return jsonify({"ok": False, "error": "Invalid pickup_scheduled_at"}), 400
        if pickup_at.tzinfo:
            # Stored as naive UTC
            pickup_at = pickup_at.astimezone(timezone.utc).replace(tzinfo=None)

    if transaction.stripe_payment_intent_id:
        try:
            intent = retrieve_payment_intent(transaction.stripe_payment_intent_id)
        except PaymentError as exc:
            current_app.logger.exception("Payment intent lookup failed")
            return jsonify({"ok": False, "error": str(exc)}), 502
        if intent.get("status") not in PAID_INTENT_STATUSES:
            return jsonify({"ok": False, "error": "Payment has not been completed"}), 400

    try:
        transaction.mark_payment_completed(pickup_scheduled_at=pickup_at)
    except InvalidTransitionError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400

    db.session.commit()
    return jsonify({"ok": True, "transaction": transaction.to_dict()})


@transactions_bp.route("/api/transactions/<int:transaction_id>/complete", methods=["POST"])
@login_required
def complete_transaction(transaction_id):
    """Pickup happened: close the sale and take the listing off the market"""
    transaction, error = _participant_transaction_or_error(transaction_id)
    if error:
        return error

    try:
        transaction.complete()
    except InvalidTransitionError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400

    listing = transaction.listing
    listing.status = "SOLD"
    listing.sold_at = transaction.completed_at

    db.session.commit()
    return jsonify({"ok": True, "transaction": transaction.to_dict()})


@transactions_bp.route("/api/transactions/<int:transaction_id>/cancel", methods=["POST"])
@login_required
def cancel_transaction(transaction_id):
    transaction, error = _participant_transaction_or_error(transaction_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    reason = (data.get("reason") or "").strip()
    if not reason:
        return jsonify({"ok": False, "error": "reason is required"}), 400

    was_paid = transaction.status == PAYMENT_COMPLETED

    try:
        transaction.cancel(reason)
    except InvalidTransitionError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400

    if was_paid and transaction.stripe_payment_intent_id:
        try:
            create_refund(transaction.stripe_payment_intent_id, reason="requested_by_customer")
        except PaymentError as exc:
            db.session.rollback()
            current_app.logger.exception("Refund failed")
            return jsonify({"ok": False, "error": str(exc)}), 502

    db.session.commit()
    return jsonify({"ok": True, "transaction": transaction.to_dict()})


@transactions_bp.route("/api/transactions/<int:transaction_id>/review", methods=["POST"])
@login_required
def review_transaction(transaction_id):
    """Rate the other participant once the sale is completed"""
    transaction, error = _participant_transaction_or_error(transaction_id)
    if error:
        return error

    if transaction.status != COMPLETED:
        return jsonify({"ok": False, "error": "Only completed transactions can be reviewed"}), 400

    data = request.get_json(silent=True) or {}
    rating = data.get("rating")
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        return jsonify({"ok": False, "error": f"rating must be an integer {MIN_RATING}-{MAX_RATING}"}), 400

    comment = data.get("comment")
    if comment is not None and not isinstance(comment, str):
        return jsonify({"ok": False, "error": "comment must be a string"}), 400
    comment = (comment or "").strip() or None
    if comment and len(comment) > 1000:
        return jsonify({"ok": False, "error": "comment must be at most 1000 characters"}), 400

    if transaction.reviews.filter_by(reviewer_id=current_user.id).first():
        return jsonify({"ok": False, "error": "Already reviewed"}), 409

    reviewee_id = transaction.seller_id if current_user.id == transaction.buyer_id else transaction.buyer_id
    review = Review(
        transaction_id=transaction.id,
        reviewer_id=current_user.id,
        reviewee_id=reviewee_id,
        rating=rating,
        comment=comment,
    )
    db.session.add(review)
    db.session.commit()

    return jsonify({"ok": True, "review": review.to_dict()}), 201


@transactions_bp.route("/api/transactions/mine")
@login_required
def my_transactions():
    purchases = current_user.purchases.order_by(Transaction.created_at.desc()).all()
    sales = current_user.sales.order_by(Transaction.created_at.desc()).all()

    def serialize(transaction, counterpart):
        data = transaction.to_dict()
        data["listing"] = transaction.listing.to_dict() if transaction.listing else None
        data[counterpart] = getattr(transaction, counterpart).to_public_dict()
        return data

    return jsonify({
        "ok": True,
        "purchases": [serialize(t, "seller") for t in purchases],
        "sales": [serialize(t, "buyer") for t in sales],
    })


@transactions_bp.route("/api/transactions/<int:transaction_id>")
@login_required
def get_transaction(transaction_id):
    transaction, error = _participant_transaction_or_error(transaction_id)
    if error:
        return error

    data = transaction.to_dict()
    data["listing"] = transaction.listing.to_dict() if transaction.listing else None
    data["buyer"] = dict(transaction.buyer.to_public_dict(), email=transaction.buyer.email)
    data["seller"] = dict(transaction.seller.to_public_dict(), email=transaction.seller.email)
    return jsonify({"ok": True, "transaction": data})


@transactions_bp.route("/api/transactions/breakdown")
@login_required
def transaction_breakdown():
    amount = request.args.get("amount", type=float)
    if amount is None or amount <= 0:
        return jsonify({"ok": False, "error": "amount must be a positive number"}), 400
    return jsonify({"ok": True, "breakdown": calculate_transaction_breakdown(round(amount * 100))})
