from datetime import datetime
from ..extensions import db

MIN_RATING = 1
MAX_RATING = 5


class Review(db.Model):
    """Rating one participant leaves the other after a completed transaction"""
    __tablename__ = "reviews"

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    reviewer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    reviewee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    rating = db.Column(db.Integer, nullable=False)  # 1-5
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    transaction = db.relationship("Transaction", backref=db.backref("reviews", lazy="dynamic"))
    reviewer = db.relationship("User", foreign_keys=[reviewer_id], backref=db.backref("reviews_given", lazy="dynamic"))
    reviewee = db.relationship("User", foreign_keys=[reviewee_id], backref=db.backref("reviews_received", lazy="dynamic"))

    __table_args__ = (
        db.UniqueConstraint('transaction_id', 'reviewer_id', name='uq_review_transaction_reviewer'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'transaction_id': self.transaction_id,
            'reviewer_id': self.reviewer_id,
            'reviewee_id': self.reviewee_id,
            'rating': self.rating,
            'comment': self.comment,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
