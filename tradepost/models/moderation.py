from datetime import datetime
from ..extensions import db


class ContentModerationLog(db.Model):
    """Audit row for content the moderation check did not pass"""
    __tablename__ = "content_moderation_logs"

    id = db.Column(db.Integer, primary_key=True)
    content_type = db.Column(db.String(20), nullable=False)  # listing
    content_id = db.Column(db.Integer, nullable=False, index=True)
    flags = db.Column(db.JSON, nullable=False, default=list)
    confidence = db.Column(db.Float, nullable=False, default=0)
    action = db.Column(db.String(20), nullable=False)  # flagged
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'content_type': self.content_type,
            'content_id': self.content_id,
            'flags': self.flags or [],
            'confidence': self.confidence,
            'action': self.action,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
