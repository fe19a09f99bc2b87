"""
Revenue Analytics Routes
Marketplace revenue analysis with AI-generated optimization insights
"""
import sys
import traceback

from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required

from ..extensions import db
from ..models.revenue import RevenueInsight, RevenueMetric
from ..helpers.revenue_store import SqlMarketplaceStore
from ..helpers.revenue_optimizer import RevenueOptimizer
from ..helpers.revenue_analytics import analyze_revenue, normalize_category

revenue_bp = Blueprint('revenue', __name__)


def log_revenue(msg):
    print(f"[REVENUE] {msg}", file=sys.stderr, flush=True)


@revenue_bp.route("/api/revenue/analyze", methods=["POST"])
@login_required
def analyze():
    """
    Run a revenue analysis, optionally for one category.
    Body: {"category": "ELECTRONICS"} or {"category": "all"} or nothing.
    """
    # Empty or invalid JSON means no filter
    data = request.get_json(silent=True)
    category = data.get("category") if isinstance(data, dict) else None
    if not isinstance(category, str):
        category = None

    try:
        normalize_category(category)
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400

    try:
        log_revenue(f"Starting analysis (category={category or 'all'})")

        result = analyze_revenue(
            SqlMarketplaceStore(db.session),
            RevenueOptimizer.from_config(current_app.config),
            category=category,
            atomic=current_app.config.get("REVENUE_ATOMIC_SNAPSHOTS", False),
        )

        log_revenue(
            f"✓ Analysis done: score={result['metrics']['optimizationScore']}, "
            f"potential gain={result['metrics']['potentialGain']}"
        )
        return jsonify({"ok": True, **result})

    except Exception as e:
        log_revenue(f"✗ Revenue analysis error: {e}")
        traceback.print_exc(file=sys.stderr)
        db.session.rollback()
        return jsonify({"ok": False, "error": "Failed to analyze revenue"}), 500


@revenue_bp.route("/api/revenue/insights")
@login_required
def active_insights():
    insights = (
        RevenueInsight.query.filter_by(is_active=True)
        .order_by(RevenueInsight.id.asc())
        .all()
    )
    return jsonify({"ok": True, "insights": [insight.to_dict() for insight in insights]})


@revenue_bp.route("/api/revenue/metrics")
@login_required
def metric_history():
    limit = request.args.get("limit", default=10, type=int)
    limit = max(1, min(limit, 100))

    metrics = (
        RevenueMetric.query.order_by(RevenueMetric.created_at.desc(), RevenueMetric.id.desc())
        .limit(limit)
        .all()
    )
    return jsonify({"ok": True, "metrics": [metric.to_dict() for metric in metrics]})
