"""
Store access for revenue analytics.

The aggregation and snapshot code never touches `db.session` directly; it is
handed a store object with the methods below. `SqlMarketplaceStore` is the
SQLAlchemy implementation used by the app, tests can pass any object with the
same methods.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.listing import Listing
from ..models.transaction import Transaction, COMPLETED
from ..models.revenue import RevenueInsight, RevenueMetric


class SqlMarketplaceStore:
    """MarketplaceStore backed by a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    # ==================== READS ====================

    def completed_amounts(self, since: datetime, category: Optional[str] = None) -> List[float]:
        """Amounts of transactions completed at or after `since`"""
        query = (
            self.session.query(Transaction.amount)
            .filter(
                Transaction.status == COMPLETED,
                Transaction.completed_at >= since,
            )
        )
        if category:
            query = query.join(Listing, Listing.id == Transaction.listing_id).filter(Listing.category == category)
        return [float(amount or 0) for (amount,) in query.all()]

    def count_active_sellers(self, since: datetime) -> int:
        """Distinct users that created at least one listing since `since`"""
        return (
            self.session.query(func.count(func.distinct(Listing.user_id)))
            .filter(Listing.created_at >= since)
            .scalar()
        ) or 0

    def count_active_listings(self, category: Optional[str] = None) -> int:
        query = self.session.query(func.count(Listing.id)).filter(Listing.status == 'ACTIVE')
        if category:
            query = query.filter(Listing.category == category)
        return query.scalar() or 0

    def active_category_groups(self) -> List[Tuple[str, int, float]]:
        """(category, active listing count, average active price) per category"""
        rows = (
            self.session.query(Listing.category, func.count(Listing.id), func.avg(Listing.price))
            .filter(Listing.status == 'ACTIVE')
            .group_by(Listing.category)
            .order_by(Listing.category)
            .all()
        )
        return [(category, int(count), float(avg or 0)) for category, count, avg in rows]

    def view_count(self, category: Optional[str] = None) -> int:
        """Sum of views over every listing (any status) in `category`, or all listings"""
        query = self.session.query(func.coalesce(func.sum(Listing.views), 0))
        if category:
            query = query.filter(Listing.category == category)
        return int(query.scalar() or 0)

    # ==================== WRITES ====================

    def deactivate_insights(self) -> int:
        return (
            self.session.query(RevenueInsight)
            .filter(RevenueInsight.is_active.is_(True))
            .update({RevenueInsight.is_active: False}, synchronize_session=False)
        )

    def add_insights(self, insights: Iterable[dict]) -> None:
        self.session.add_all([RevenueInsight(is_active=True, **data) for data in insights])
        self.session.flush()

    def add_metric(self, **fields) -> None:
        self.session.add(RevenueMetric(**fields))
        self.session.flush()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
