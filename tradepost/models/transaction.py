from datetime import datetime
from ..extensions import db

PENDING = "PENDING"
PAYMENT_COMPLETED = "PAYMENT_COMPLETED"
COMPLETED = "COMPLETED"
CANCELLED = "CANCELLED"

TRANSACTION_STATUSES = (PENDING, PAYMENT_COMPLETED, COMPLETED, CANCELLED)

# PENDING -> PAYMENT_COMPLETED -> COMPLETED, CANCELLED from anything before COMPLETED
ALLOWED_TRANSITIONS = {
    PENDING: (PAYMENT_COMPLETED, CANCELLED),
    PAYMENT_COMPLETED: (COMPLETED, CANCELLED),
    COMPLETED: (),
    CANCELLED: (),
}


class InvalidTransitionError(ValueError):
    """Raised when a status change is not allowed by the transaction lifecycle"""


class Transaction(db.Model):
    """
    Purchase of a listing.
    Created PENDING when the buyer starts checkout, only ever mutated by
    status transitions and never deleted.
    """
    __tablename__ = "transactions"

    id = db.Column(db.Integer, primary_key=True)
    listing_id = db.Column(db.Integer, db.ForeignKey("listings.id"), nullable=False, index=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Money (major units)
    amount = db.Column(db.Float, nullable=False)
    commission = db.Column(db.Float, nullable=False, default=0)
    seller_payout = db.Column(db.Float, nullable=False, default=0)

    stripe_payment_intent_id = db.Column(db.String(255), nullable=True, index=True)

    status = db.Column(db.String(30), nullable=False, default=PENDING, index=True)

    pickup_scheduled_at = db.Column(db.DateTime, nullable=True)
    pickup_completed_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True, index=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    listing = db.relationship("Listing", backref=db.backref("transactions", lazy="dynamic"))
    buyer = db.relationship("User", foreign_keys=[buyer_id], backref=db.backref("purchases", lazy="dynamic"))
    seller = db.relationship("User", foreign_keys=[seller_id], backref=db.backref("sales", lazy="dynamic"))

    def _transition(self, new_status):
        current = self.status or PENDING
        if new_status not in ALLOWED_TRANSITIONS.get(current, ()):
            raise InvalidTransitionError(f"Cannot move transaction from {current} to {new_status}")
        self.status = new_status

    def mark_payment_completed(self, pickup_scheduled_at=None):
        self._transition(PAYMENT_COMPLETED)
        if pickup_scheduled_at is not None:
            self.pickup_scheduled_at = pickup_scheduled_at

    def complete(self, when=None):
        """Pickup done: the sale counts towards revenue from here on"""
        self._transition(COMPLETED)
        now = when or datetime.utcnow()
        self.pickup_completed_at = now
        self.completed_at = now

    def cancel(self, reason, when=None):
        self._transition(CANCELLED)
        self.cancelled_at = when or datetime.utcnow()
        self.cancellation_reason = reason

    def involves(self, user_id):
        return user_id in (self.buyer_id, self.seller_id)

    def to_dict(self):
        return {
            'id': self.id,
            'listing_id': self.listing_id,
            'buyer_id': self.buyer_id,
            'seller_id': self.seller_id,
            'amount': self.amount,
            'commission': self.commission,
            'seller_payout': self.seller_payout,
            'stripe_payment_intent_id': self.stripe_payment_intent_id,
            'status': self.status,
            'pickup_scheduled_at': self.pickup_scheduled_at.isoformat() if self.pickup_scheduled_at else None,
            'pickup_completed_at': self.pickup_completed_at.isoformat() if self.pickup_completed_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'cancelled_at': self.cancelled_at.isoformat() if self.cancelled_at else None,
            'cancellation_reason': self.cancellation_reason,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
