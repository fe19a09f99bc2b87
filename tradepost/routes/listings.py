"""
Listing Routes
Create, edit and browse marketplace listings
"""
from datetime import datetime

from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from sqlalchemy import and_, or_

from ..extensions import db
from ..models.listing import (
    Listing,
    LISTING_CATEGORIES,
    LISTING_CONDITIONS,
    EDITABLE_STATUSES,
)
from ..models.moderation import ContentModerationLog
from ..helpers.listing_ai import generate_product_description, suggest_price, moderate_content
from .auth import verified_required

listings_bp = Blueprint('listings', __name__)

SORT_OPTIONS = ("recent", "price_asc", "price_desc")
MAX_IMAGES = 10


def _validate_text(data, key, min_len, max_len, errors, required=True):
    value = data.get(key)
    if value is None:
        if required:
            errors.append(f"{key} is required")
        return None
    value = str(value).strip()
    if len(value) < min_len or len(value) > max_len:
        errors.append(f"{key} must be {min_len}-{max_len} characters")
    return value


def _validate_price(raw, errors):
    try:
        price = float(raw)
    except (TypeError, ValueError):
        errors.append("price must be a number")
        return None
    if price <= 0:
        errors.append("price must be positive")
    return price


def _validate_images(raw, errors):
    if not isinstance(raw, list) or not 1 <= len(raw) <= MAX_IMAGES:
        errors.append(f"images must be a list of 1-{MAX_IMAGES} URLs")
        return []
    if not all(isinstance(url, str) and url.startswith(("http://", "https://")) for url in raw):
        errors.append("images must be URLs")
    return raw


def _owned_listing_or_error(listing_id):
    listing = db.session.get(Listing, listing_id)
    if not listing:
        return None, (jsonify({"ok": False, "error": "Listing not found"}), 404)
    if listing.user_id != current_user.id:
        return None, (jsonify({"ok": False, "error": "Forbidden"}), 403)
    return listing, None


@listings_bp.route("/api/listings", methods=["POST"])
@verified_required
def create_listing():
    data = request.get_json(silent=True) or {}
    errors = []

    title = _validate_text(data, "title", 5, 100, errors)
    description = _validate_text(data, "description", 20, 2000, errors)
    price = _validate_price(data.get("price"), errors)
    category = (data.get("category") or "").upper()
    condition = (data.get("condition") or "").upper()
    images = _validate_images(data.get("images"), errors)
    pickup_location = _validate_text(data, "pickup_location", 5, 255, errors)

    if category not in LISTING_CATEGORIES:
        errors.append("category is invalid")
    if condition not in LISTING_CONDITIONS:
        errors.append("condition is invalid")

    if errors:
        return jsonify({"ok": False, "error": "Invalid listing", "details": errors}), 400

    ai_generated = False
    suggested_price = price

    # AI failures keep the seller's own input
    if data.get("use_ai_description"):
        try:
            generated = generate_product_description(title, category, condition)
            if generated:
                description = generated
                ai_generated = True
        except Exception:
            current_app.logger.exception("AI description generation failed")

    if data.get("use_ai_pricing"):
        try:
            suggested_price = suggest_price(title, category, condition, description) or price
        except Exception:
            current_app.logger.exception("AI price suggestion failed")

    try:
        moderation = moderate_content(title, description)

        listing = Listing(
            user_id=current_user.id,
            title=title,
            description=description,
            price=price,
            suggested_price=suggested_price,
            category=category,
            condition=condition,
            images=images,
            pickup_location=pickup_location,
            pickup_instructions=(data.get("pickup_instructions") or "").strip() or None,
            ai_generated=ai_generated,
            ai_moderated=True,
            moderation_flags=moderation["flags"],
            status="ACTIVE" if moderation["safe"] else "FLAGGED",
            published_at=datetime.utcnow() if moderation["safe"] else None,
        )
        db.session.add(listing)

        if not moderation["safe"]:
            db.session.flush()
            db.session.add(ContentModerationLog(
                content_type="listing",
                content_id=listing.id,
                flags=moderation["flags"],
                confidence=moderation["confidence"],
                action="flagged",
            ))
            current_app.logger.warning(
                f"Listing {listing.id} flagged by moderation: {', '.join(moderation['flags'])}"
            )

        db.session.commit()

        return jsonify({"ok": True, "listing": listing.to_dict()}), 201
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Listing creation failed")
        return jsonify({"ok": False, "error": str(exc)}), 500


def _at_or_after(anchor, sort_by):
    """Keyset condition: rows at or after `anchor` in the given ordering"""
    if sort_by == "price_asc":
        return or_(
            Listing.price > anchor.price,
            and_(Listing.price == anchor.price, Listing.id >= anchor.id),
        )
    if sort_by == "price_desc":
        return or_(
            Listing.price < anchor.price,
            and_(Listing.price == anchor.price, Listing.id >= anchor.id),
        )
    return or_(
        Listing.created_at < anchor.created_at,
        and_(Listing.created_at == anchor.created_at, Listing.id <= anchor.id),
    )


@listings_bp.route("/api/listings/<int:listing_id>", methods=["PATCH"])
@login_required
def update_listing(listing_id):
    listing, error = _owned_listing_or_error(listing_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    errors = []

    if "title" in data:
        listing.title = _validate_text(data, "title", 5, 100, errors)
    if "description" in data:
        listing.description = _validate_text(data, "description", 20, 2000, errors)
    if "price" in data:
        listing.price = _validate_price(data.get("price"), errors)
    if "status" in data:
        status = (data.get("status") or "").upper()
        if status not in EDITABLE_STATUSES:
            errors.append("status is invalid")
        else:
            listing.status = status
            if status == "ACTIVE" and listing.published_at is None:
                listing.published_at = datetime.utcnow()
    if "pickup_location" in data:
        listing.pickup_location = _validate_text(data, "pickup_location", 5, 255, errors)
    if "pickup_instructions" in data:
        listing.pickup_instructions = (data.get("pickup_instructions") or "").strip() or None

    if errors:
        db.session.rollback()
        return jsonify({"ok": False, "error": "Invalid listing", "details": errors}), 400

    db.session.commit()
    return jsonify({"ok": True, "listing": listing.to_dict()})


@listings_bp.route("/api/listings/<int:listing_id>", methods=["DELETE"])
@login_required
def delete_listing(listing_id):
    listing, error = _owned_listing_or_error(listing_id)
    if error:
        return error

    if listing.transactions.count():
        return jsonify({"ok": False, "error": "Listing has transactions, mark it REMOVED instead"}), 409

    db.session.delete(listing)
    db.session.commit()
    return jsonify({"ok": True})


@listings_bp.route("/api/listings/<int:listing_id>")
def get_listing(listing_id):
    """Public listing page data; every fetch counts as a view"""
    listing = db.session.get(Listing, listing_id)
    if not listing:
        return jsonify({"ok": False, "error": "Listing not found"}), 404

    payload = listing.to_dict(include_seller=True)

    Listing.query.filter_by(id=listing_id).update(
        {Listing.views: Listing.views + 1}, synchronize_session=False
    )
    db.session.commit()

    return jsonify({"ok": True, "listing": payload})


@listings_bp.route("/api/listings")
def list_listings():
    args = request.args

    query = Listing.query.filter(Listing.status == "ACTIVE")

    category = (args.get("category") or "").upper()
    if category:
        query = query.filter(Listing.category == category)

    condition = (args.get("condition") or "").upper()
    if condition:
        query = query.filter(Listing.condition == condition)

    # Unparseable numbers fall back to "no filter"
    min_price = args.get("min_price", type=float)
    max_price = args.get("max_price", type=float)
    limit = args.get("limit", default=20, type=int)
    cursor = args.get("cursor", type=int)

    if min_price:
        query = query.filter(Listing.price >= min_price)
    if max_price:
        query = query.filter(Listing.price <= max_price)

    search = (args.get("search") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Listing.title.ilike(pattern), Listing.description.ilike(pattern)))

    sort_by = args.get("sort_by", "recent")
    if sort_by not in SORT_OPTIONS:
        return jsonify({"ok": False, "error": "Invalid sort_by"}), 400
    if not 1 <= limit <= 100:
        return jsonify({"ok": False, "error": "limit must be between 1 and 100"}), 400

    # Cursor is the id of the first listing of the next page. Pages continue
    # from its sort position even if it has since been sold or removed.
    if cursor:
        anchor = db.session.get(Listing, cursor)
        if anchor is None:
            return jsonify({"ok": False, "error": "Invalid cursor"}), 400
        query = query.filter(_at_or_after(anchor, sort_by))

    if sort_by == "price_asc":
        query = query.order_by(Listing.price.asc(), Listing.id.asc())
    elif sort_by == "price_desc":
        query = query.order_by(Listing.price.desc(), Listing.id.asc())
    else:
        query = query.order_by(Listing.created_at.desc(), Listing.id.desc())

    listings = query.limit(limit + 1).all()

    page = listings[:limit]
    next_cursor = listings[limit].id if len(listings) > limit else None

    return jsonify({
        "ok": True,
        "listings": [listing.to_dict(include_seller=True) for listing in page],
        "next_cursor": next_cursor,
    })


@listings_bp.route("/api/listings/mine")
@login_required
def my_listings():
    listings = current_user.listings.order_by(Listing.created_at.desc()).all()
    return jsonify({"ok": True, "listings": [listing.to_dict() for listing in listings]})


@listings_bp.route("/api/listings/generate-description", methods=["POST"])
@verified_required
def api_generate_description():
    data = request.get_json(silent=True) or {}
    try:
        description = generate_product_description(
            data.get("title", ""), data.get("category", ""), data.get("condition", "")
        )
    except Exception as exc:
        current_app.logger.exception("AI description generation failed")
        return jsonify({"ok": False, "error": str(exc)}), 502
    return jsonify({"ok": True, "description": description})


@listings_bp.route("/api/listings/suggest-price", methods=["POST"])
@verified_required
def api_suggest_price():
    data = request.get_json(silent=True) or {}
    try:
        price = suggest_price(
            data.get("title", ""), data.get("category", ""), data.get("condition", ""),
            data.get("description"),
        )
    except Exception as exc:
        current_app.logger.exception("AI price suggestion failed")
        return jsonify({"ok": False, "error": str(exc)}), 502
    return jsonify({"ok": True, "price": price})
