"""
Tests for registration, login and profile routes
"""
import unittest
from unittest.mock import patch

from tradepost.extensions import db
from tradepost.helpers.payments import PaymentError
from tradepost.models import Review, User

from support import AppTestCase, PASSWORD


class TestAuth(AppTestCase):

    def test_register(self):
        response = self.client.post('/auth/register', json={
            'email': ' Erin@Example.com ', 'password': 'longenough', 'name': 'Erin Green',
        })

        self.assertEqual(response.status_code, 201)
        user = db.session.get(User, response.get_json()['user_id'])
        self.assertEqual(user.email, 'erin@example.com')
        self.assertFalse(user.verified)
        self.assertTrue(user.check_password('longenough'))

    def test_register_duplicate_email(self):
        response = self.client.post('/auth/register', json={
            'email': 'alice@example.com', 'password': 'longenough', 'name': 'Alice Again',
        })
        self.assertEqual(response.status_code, 409)

    def test_register_validation(self):
        bad_payloads = [
            {'email': 'not-an-email', 'password': 'longenough', 'name': 'Erin'},
            {'email': 'erin@example.com', 'password': 'short', 'name': 'Erin'},
            {'email': 'erin@example.com', 'password': 'longenough', 'name': 'E'},
        ]
        for payload in bad_payloads:
            response = self.client.post('/auth/register', json=payload)
            self.assertEqual(response.status_code, 400, payload)

    def test_login_and_logout(self):
        response = self._login()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['user']['email'], 'alice@example.com')

        self.assertEqual(self.client.get('/api/users/me').status_code, 200)
        self.client.post('/auth/logout')
        self.assertEqual(self.client.get('/api/users/me').status_code, 401)

    def test_login_wrong_password(self):
        response = self.client.post('/auth/login', json={'email': 'alice@example.com', 'password': 'nope'})
        self.assertEqual(response.status_code, 401)

    def test_login_with_form_data(self):
        response = self.client.post('/auth/login', data={'email': 'bob@example.com', 'password': PASSWORD})
        self.assertEqual(response.status_code, 200)


class TestProfile(AppTestCase):

    def test_update_profile(self):
        self._login()

        response = self.client.patch('/api/users/me', json={'bio': 'Collector of old cameras', 'phone': ''})

        self.assertEqual(response.status_code, 200)
        user = response.get_json()['user']
        self.assertEqual(user['bio'], 'Collector of old cameras')
        self.assertIsNone(user['phone'])

    def test_update_profile_rejects_long_values(self):
        self._login()

        response = self.client.patch('/api/users/me', json={'bio': 'x' * 501})

        self.assertEqual(response.status_code, 400)

    def test_update_profile_rejects_non_strings(self):
        self._login()

        response = self.client.patch('/api/users/me', json={'bio': 'Collector', 'phone': 12345})

        self.assertEqual(response.status_code, 400)
        self.assertIsNone(db.session.get(User, self.alice.id).bio)

    def test_verification_document(self):
        self._login()

        self.assertEqual(
            self.client.post('/api/users/me/verification', json={'document_url': 'ftp://x'}).status_code, 400
        )
        response = self.client.post('/api/users/me/verification', json={'document_url': 'https://docs.example.com/id.pdf'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(db.session.get(User, self.alice.id).verification_document, 'https://docs.example.com/id.pdf')

    def test_public_profile_hides_private_fields(self):
        self._listing(self.alice, 'BOOKS', 20)
        self._listing(self.alice, 'BOOKS', 30, status='SOLD')
        db.session.commit()

        response = self.client.get(f'/api/users/{self.alice.id}')

        profile = response.get_json()['user']
        self.assertNotIn('email', profile)
        self.assertEqual(len(profile['listings']), 1)
        self.assertEqual(self.client.get('/api/users/9999').status_code, 404)

    def test_public_profile_without_reviews(self):
        profile = self.client.get(f'/api/users/{self.alice.id}').get_json()['user']

        self.assertEqual(profile['reviews'], [])
        self.assertEqual(profile['average_rating'], 0)
        self.assertEqual(profile['total_reviews'], 0)

    def test_public_profile_averages_reviews(self):
        listing = self._listing(self.alice, 'BOOKS', 20, status='SOLD')
        first = self._sale(listing, self.bob, 20)
        second = self._sale(listing, self.carol, 20)
        db.session.flush()
        db.session.add(Review(transaction_id=first.id, reviewer_id=self.bob.id, reviewee_id=self.alice.id,
                              rating=5, comment='Great seller'))
        db.session.add(Review(transaction_id=second.id, reviewer_id=self.carol.id, reviewee_id=self.alice.id,
                              rating=4))
        # A review the seller gave does not count towards the seller's own rating
        db.session.add(Review(transaction_id=first.id, reviewer_id=self.alice.id, reviewee_id=self.bob.id,
                              rating=1))
        db.session.commit()

        profile = self.client.get(f'/api/users/{self.alice.id}').get_json()['user']

        self.assertEqual(profile['total_reviews'], 2)
        self.assertEqual(profile['average_rating'], 4.5)
        self.assertEqual({r['reviewer']['name'] for r in profile['reviews']}, {'Bob Smith', 'Carol White'})
        self.assertEqual(
            self.client.get(f'/api/users/{self.bob.id}').get_json()['user']['average_rating'], 1
        )

    def test_stats(self):
        listing = self._listing(self.alice, 'BOOKS', 20, status='SOLD')
        self._listing(self.alice, 'TOYS', 10)
        self._sale(listing, self.bob, 20)
        db.session.commit()
        self._login()

        stats = self.client.get('/api/users/me/stats').get_json()['stats']

        self.assertEqual(stats, {
            'total_listings': 2,
            'active_listings': 1,
            'sold_listings': 1,
            'total_sales': 1,
            'total_purchases': 0,
        })


class TestPaymentOnboarding(AppTestCase):

    @patch('tradepost.routes.users.create_account_link', return_value={'url': 'https://connect.stripe.com/setup/x'})
    @patch('tradepost.routes.users.create_connect_account', return_value={'id': 'acct_new'})
    def test_creates_account_once(self, mock_account, mock_link):
        self._login()

        for _ in range(2):
            response = self.client.post('/api/users/me/payments', json={'return_url': 'https://app.example.com/done'})
            self.assertEqual(response.get_json()['url'], 'https://connect.stripe.com/setup/x')

        mock_account.assert_called_once_with(self.alice.id, 'alice@example.com')
        self.assertEqual(mock_link.call_count, 2)
        self.assertEqual(db.session.get(User, self.alice.id).stripe_account_id, 'acct_new')

    def test_return_url_required(self):
        self._login()
        response = self.client.post('/api/users/me/payments', json={})
        self.assertEqual(response.status_code, 400)

    @patch('tradepost.routes.users.create_connect_account', side_effect=PaymentError('Stripe is down'))
    def test_stripe_failure(self, mock_account):
        self._login()

        response = self.client.post('/api/users/me/payments', json={'return_url': 'https://app.example.com/done'})

        self.assertEqual(response.status_code, 502)

    def test_status_without_account(self):
        self._login()

        data = self.client.get('/api/users/me/payments').get_json()

        self.assertFalse(data['has_account'])

    @patch('tradepost.routes.users.get_account_status',
           return_value={'is_complete': True, 'is_verified': True, 'requirements': None})
    def test_status_marks_account_verified(self, mock_status):
        self.alice.stripe_account_id = 'acct_alice'
        db.session.commit()
        self._login()

        data = self.client.get('/api/users/me/payments').get_json()

        self.assertTrue(data['is_verified'])
        self.assertTrue(db.session.get(User, self.alice.id).stripe_account_verified)


if __name__ == '__main__':
    unittest.main()
