from .user import User
from .listing import Listing
from .transaction import Transaction
from .review import Review
from .moderation import ContentModerationLog
from .revenue import RevenueInsight, RevenueMetric

__all__ = [
    'User',
    'Listing',
    'Transaction',
    'Review',
    'ContentModerationLog',
    'RevenueInsight',
    'RevenueMetric'
]
