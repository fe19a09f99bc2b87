from datetime import datetime
from ..extensions import db

LISTING_CATEGORIES = (
    "CLOTHING",
    "JEWELRY",
    "WATCHES",
    "PURSES",
    "CROCKERY",
    "ELECTRONICS",
    "FURNITURE",
    "BOOKS",
    "TOYS",
    "SPORTS",
    "OTHER",
)

LISTING_CONDITIONS = ("NEW", "LIKE_NEW", "GOOD", "FAIR", "POOR")

LISTING_STATUSES = ("ACTIVE", "SOLD", "REMOVED", "DRAFT", "FLAGGED")

# Statuses an owner may set directly; FLAGGED is reserved for moderation
EDITABLE_STATUSES = ("DRAFT", "ACTIVE", "SOLD", "REMOVED")


class Listing(db.Model):
    """
    Item offered for sale by a user.
    `views` is bumped on every public fetch and feeds conversion analytics.
    """
    __tablename__ = "listings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=False)
    price = db.Column(db.Float, nullable=False)
    suggested_price = db.Column(db.Float, nullable=True)  # AI pricing hint
    category = db.Column(db.String(20), nullable=False, index=True)
    condition = db.Column(db.String(20), nullable=False)
    images = db.Column(db.JSON, nullable=False, default=list)

    # Pickup
    pickup_location = db.Column(db.String(255), nullable=False)
    pickup_instructions = db.Column(db.Text, nullable=True)

    # AI / moderation
    ai_generated = db.Column(db.Boolean, default=False)
    ai_moderated = db.Column(db.Boolean, default=False)
    moderation_flags = db.Column(db.JSON, nullable=False, default=list)

    status = db.Column(db.String(20), nullable=False, default='DRAFT', index=True)
    views = db.Column(db.Integer, nullable=False, default=0)

    published_at = db.Column(db.DateTime, nullable=True)
    sold_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index('idx_listing_category_status', 'category', 'status'),
    )

    def to_dict(self, include_seller=False):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'description': self.description,
            'price': self.price,
            'suggested_price': self.suggested_price,
            'category': self.category,
            'condition': self.condition,
            'images': self.images or [],
            'pickup_location': self.pickup_location,
            'pickup_instructions': self.pickup_instructions,
            'ai_generated': self.ai_generated,
            'moderation_flags': self.moderation_flags or [],
            'status': self.status,
            'views': self.views,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'sold_at': self.sold_at.isoformat() if self.sold_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_seller and self.seller is not None:
            data['seller'] = self.seller.to_public_dict()
        return data
