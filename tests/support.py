"""
Shared Flask app + in-memory database fixture for route tests
"""
import unittest
from datetime import datetime, timedelta

from tradepost import create_app
from tradepost.config import TestConfig
from tradepost.extensions import db
from tradepost.models import User, Listing, Transaction

PASSWORD = 'password123'


class AppTestCase(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.app = create_app(TestConfig)

    def setUp(self):
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()
        self.client = self.app.test_client()
        self.now = datetime.utcnow()

        self.alice = self._user('alice@example.com', 'Alice Johnson')
        self.bob = self._user('bob@example.com', 'Bob Smith')
        self.carol = self._user('carol@example.com', 'Carol White')
        db.session.commit()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def _user(self, email, name, verified=True, stripe_account_id=None):
        user = User(email=email, name=name, verified=verified, stripe_account_id=stripe_account_id)
        user.set_password(PASSWORD)
        db.session.add(user)
        return user

    def _listing(self, owner, category='ELECTRONICS', price=100, status='ACTIVE', views=0,
                 age_days=1, title=None):
        listing = Listing(
            user_id=owner.id,
            title=title or f'{category.title()} item',
            description='A perfectly good secondhand item for sale.',
            price=price,
            category=category,
            condition='GOOD',
            images=['https://example.com/img.jpg'],
            pickup_location='Bandra, Mumbai',
            status=status,
            views=views,
            created_at=self.now - timedelta(days=age_days),
        )
        db.session.add(listing)
        db.session.flush()
        return listing

    def _sale(self, listing, buyer, amount, status='COMPLETED', age_days=1, payment_intent_id=None):
        transaction = Transaction(
            listing_id=listing.id,
            buyer_id=buyer.id,
            seller_id=listing.user_id,
            amount=amount,
            status=status,
            stripe_payment_intent_id=payment_intent_id,
            completed_at=self.now - timedelta(days=age_days) if status == 'COMPLETED' else None,
        )
        db.session.add(transaction)
        return transaction

    def _login(self, email='alice@example.com'):
        return self.client.post('/auth/login', json={'email': email, 'password': PASSWORD})
