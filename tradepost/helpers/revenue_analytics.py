"""
Revenue analytics: marketplace summary, advisory metrics and snapshot writes.

    summary = get_marketplace_data(store, category)
    result = analyze_revenue(store, optimizer, category)

`store` is a SqlMarketplaceStore (or any object with the same methods),
`optimizer` a RevenueOptimizer.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional, Sequence

from ..models.listing import LISTING_CATEGORIES

logger = logging.getLogger(__name__)

WINDOW_DAYS = 30
ALL_CATEGORIES = "all"

_IMPACT_AMOUNT_RE = re.compile(r"\$([0-9,]+)")


@dataclass(frozen=True)
class CategoryAggregate:
    revenue: float
    listings: int
    avg_price: float
    conversion: float

    def to_dict(self) -> Dict:
        return {
            "revenue": self.revenue,
            "listings": self.listings,
            "avgPrice": self.avg_price,
            "conversion": self.conversion,
        }


@dataclass(frozen=True)
class MarketplaceSummary:
    total_revenue: float
    total_listings: int
    active_users: int
    avg_order_value: float
    conversion_rate: float
    categories: Dict[str, CategoryAggregate] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "totalRevenue": self.total_revenue,
            "totalListings": self.total_listings,
            "activeUsers": self.active_users,
            "avgOrderValue": self.avg_order_value,
            "conversionRate": self.conversion_rate,
            "categories": {name: agg.to_dict() for name, agg in self.categories.items()},
        }


@dataclass(frozen=True)
class RevenueMetrics:
    projected_revenue: float
    revenue_increase: float
    optimization_score: int
    potential_gain: float

    def to_dict(self) -> Dict:
        return {
            "projectedRevenue": self.projected_revenue,
            "revenueIncrease": self.revenue_increase,
            "optimizationScore": self.optimization_score,
            "potentialGain": self.potential_gain,
        }


def normalize_category(category: Optional[str]) -> Optional[str]:
    """None for "no filter", otherwise the upper-case category code"""
    if category is None:
        return None
    value = category.strip()
    if not value or value.lower() == ALL_CATEGORIES:
        return None
    value = value.upper()
    if value not in LISTING_CATEGORIES:
        raise ValueError(f"Unknown category: {category}")
    return value


def conversion_percent(completed: int, views: int) -> float:
    return round(completed / max(views, 1) * 100, 2)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ==================== METRICS AGGREGATOR ====================

def get_marketplace_data(store, category: Optional[str] = None, now: Optional[datetime] = None) -> MarketplaceSummary:
    """
    Point-in-time marketplace summary over the trailing 30 days.

    Read-only. Store errors propagate unchanged; a partial summary is never
    returned.
    """
    category = normalize_category(category)
    since = (now or datetime.utcnow()) - timedelta(days=WINDOW_DAYS)

    amounts = store.completed_amounts(since, category)
    total_revenue = sum(amounts)
    avg_order_value = round(total_revenue / len(amounts), 2) if amounts else 0

    active_users = store.count_active_sellers(since)
    total_listings = store.count_active_listings(category)

    categories = {}
    for cat, listing_count, avg_price in store.active_category_groups():
        cat_amounts = store.completed_amounts(since, cat)
        categories[cat.lower()] = CategoryAggregate(
            revenue=sum(cat_amounts),
            listings=listing_count,
            avg_price=avg_price or 0,
            conversion=conversion_percent(len(cat_amounts), store.view_count(cat)),
        )

    return MarketplaceSummary(
        total_revenue=total_revenue,
        total_listings=total_listings,
        active_users=active_users,
        avg_order_value=avg_order_value,
        conversion_rate=conversion_percent(len(amounts), store.view_count(category)),
        categories=categories,
    )


# ==================== METRICS ====================

def parse_impact_amount(impact) -> int:
    """
    Dollar amount in an impact string: "+$1,200/month" -> 1200.
    Anything unparseable counts as 0.
    """
    if not isinstance(impact, str):
        return 0
    match = _IMPACT_AMOUNT_RE.search(impact)
    if not match:
        return 0
    digits = match.group(1).replace(",", "")
    return int(digits) if digits else 0


def compute_metrics(total_revenue: float, insights: Sequence) -> RevenueMetrics:
    """
    Projected revenue and the optimization score.

    The score is a bounded heuristic (60 + 5 per insight + % increase, max 100),
    not a statistical estimate.
    """
    potential_gain = sum(parse_impact_amount(insight.impact) for insight in insights)
    projected_revenue = total_revenue + potential_gain

    if total_revenue > 0:
        revenue_increase = round((projected_revenue - total_revenue) / total_revenue * 100, 2)
    else:
        revenue_increase = 0

    optimization_score = min(100, round_half_up(60 + len(insights) * 5 + revenue_increase))

    return RevenueMetrics(
        projected_revenue=projected_revenue,
        revenue_increase=revenue_increase,
        optimization_score=optimization_score,
        potential_gain=potential_gain,
    )


# ==================== SNAPSHOT WRITER ====================

def write_snapshot(store, summary: MarketplaceSummary, insights: Sequence, metrics: RevenueMetrics,
                   category: Optional[str] = None, atomic: bool = False) -> None:
    """
    Retire the active insight batch, store the new one and append a metric row.

    Default mode commits the deactivation on its own; if the insert then fails
    there are no active insights until the next successful run. With
    atomic=True everything is one transaction and any failure rolls back.
    """
    category = normalize_category(category)

    try:
        retired = store.deactivate_insights()
        if not atomic:
            store.commit()

        store.add_insights([insight.to_dict() for insight in insights])
        store.add_metric(
            total_revenue=summary.total_revenue,
            projected_revenue=metrics.projected_revenue,
            optimization_score=metrics.optimization_score,
            potential_gain=metrics.potential_gain,
            category=category,
        )
        store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info(f"Revenue snapshot written: retired {retired} insights, stored {len(insights)}")


def analyze_revenue(store, optimizer, category: Optional[str] = None, atomic: bool = False,
                    now: Optional[datetime] = None) -> Dict:
    """
    Full analysis run.

    Everything that can fail before persisting (aggregation, both generator
    calls) runs first, so a failed run writes nothing.
    """
    summary = get_marketplace_data(store, category, now=now)

    insights = optimizer.generate_insights(summary)
    recommendations = optimizer.generate_recommendations(insights)

    metrics = compute_metrics(summary.total_revenue, insights)

    write_snapshot(store, summary, insights, metrics, category=category, atomic=atomic)

    return {
        "metrics": metrics.to_dict(),
        "insights": [insight.to_dict() for insight in insights],
        "recommendations": [rec.to_dict() for rec in recommendations],
    }
