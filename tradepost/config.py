import os
from datetime import timedelta


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=30)
    SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "False") == "True"  # True in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    REMEMBER_COOKIE_DURATION = timedelta(days=30)
    REMEMBER_COOKIE_SECURE = os.environ.get("REMEMBER_COOKIE_SECURE", "False") == "True"
    REMEMBER_COOKIE_HTTPONLY = True

    # PostgreSQL in production, local SQLite file otherwise
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///tradepost.db")

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_recycle': 3600,         # Recycle connections after 1 hour
        'pool_pre_ping': True,        # Verify connections before using
    }

    # OpenAI (revenue insights, listing copy, moderation)
    # Without OPENAI_API_KEY every AI helper falls back to offline behaviour
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
    OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")

    # Stripe Connect
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    STRIPE_COMMISSION_PERCENTAGE = float(os.environ.get("STRIPE_COMMISSION_PERCENTAGE", "10"))
    STRIPE_CURRENCY = os.environ.get("STRIPE_CURRENCY", "inr")
    STRIPE_COUNTRY = os.environ.get("STRIPE_COUNTRY", "IN")

    # Run insight rotation + metric insert inside a single DB transaction
    REVENUE_ATOMIC_SNAPSHOTS = os.environ.get("REVENUE_ATOMIC_SNAPSHOTS", "False") == "True"


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    OPENAI_API_KEY = None
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_COMMISSION_PERCENTAGE = 10.0
    REVENUE_ATOMIC_SNAPSHOTS = False
