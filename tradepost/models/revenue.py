"""
Revenue analytics persistence
Insight batches (one active batch at a time) and append-only metric snapshots
"""
from datetime import datetime
from ..extensions import db


class RevenueInsight(db.Model):
    """Advisory statement produced by one analysis run"""
    __tablename__ = 'revenue_insights'

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(20), nullable=False)  # high-impact, medium-impact, critical
    category = db.Column(db.String(50), nullable=False)  # Pricing, Inventory, Marketing...
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    impact = db.Column(db.String(50), nullable=False)  # "+$1,200/month"
    confidence = db.Column(db.Integer, nullable=False)

    # Soft-retired when the next run writes its batch
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'category': self.category,
            'title': self.title,
            'description': self.description,
            'impact': self.impact,
            'confidence': self.confidence,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class RevenueMetric(db.Model):
    """One row per analysis run, never updated"""
    __tablename__ = 'revenue_metrics'

    id = db.Column(db.Integer, primary_key=True)
    total_revenue = db.Column(db.Float, nullable=False)
    projected_revenue = db.Column(db.Float, nullable=False)
    optimization_score = db.Column(db.Integer, nullable=False)
    potential_gain = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(20), nullable=True)  # NULL = all categories
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'total_revenue': self.total_revenue,
            'projected_revenue': self.projected_revenue,
            'optimization_score': self.optimization_score,
            'potential_gain': self.potential_gain,
            'category': self.category,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
