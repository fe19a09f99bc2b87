from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from ..extensions import db, login_manager


class User(UserMixin, db.Model):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    # Profile
    phone = db.Column(db.String(30), nullable=True)
    bio = db.Column(db.String(500), nullable=True)
    location = db.Column(db.String(255), nullable=True)
    image = db.Column(db.String, nullable=True)

    # Identity verification (required to sell and buy)
    verified = db.Column(db.Boolean, default=False, nullable=False)
    verified_at = db.Column(db.DateTime, nullable=True)
    verification_document = db.Column(db.String, nullable=True)

    # Stripe Connect (seller payouts)
    stripe_account_id = db.Column(db.String(255), nullable=True, index=True)
    stripe_account_verified = db.Column(db.Boolean, default=False, nullable=False)

    joined_at = db.Column(db.DateTime, default=datetime.utcnow)

    listings = db.relationship("Listing", backref="seller", lazy="dynamic", cascade="all, delete-orphan")

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_public_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'image': self.image,
            'verified': self.verified,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'image': self.image,
            'phone': self.phone,
            'bio': self.bio,
            'location': self.location,
            'verified': self.verified,
            'verified_at': self.verified_at.isoformat() if self.verified_at else None,
            'stripe_account_id': self.stripe_account_id,
            'stripe_account_verified': self.stripe_account_verified,
            'joined_at': self.joined_at.isoformat() if self.joined_at else None,
        }


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))
