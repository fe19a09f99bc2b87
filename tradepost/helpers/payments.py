"""
Stripe Connect Integration

Thin wrappers around Stripe's REST API for seller onboarding and
marketplace payments (destination charges with an application fee).
Payment intent lifecycle beyond creation is left to Stripe.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

import requests
from flask import current_app

API_BASE_URL = "https://api.stripe.com/v1"
REQUEST_TIMEOUT = 20

logger = logging.getLogger(__name__)


class PaymentError(RuntimeError):
    """Stripe request failed or returned an error payload"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def _flatten(params: Dict, prefix: str = "") -> Dict[str, str]:
    """Stripe expects nested params form-encoded as key[sub][...]=value"""
    flat = {}
    for key, value in params.items():
        if value is None:
            continue
        name = f"{prefix}[{key}]" if prefix else key
        if isinstance(value, dict):
            flat.update(_flatten(value, name))
        elif isinstance(value, bool):
            flat[name] = "true" if value else "false"
        else:
            flat[name] = str(value)
    return flat


def _request(method: str, path: str, params: Optional[Dict] = None) -> Dict:
    secret_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not secret_key:
        raise PaymentError("STRIPE_SECRET_KEY not configured")

    try:
        response = requests.request(
            method,
            f"{API_BASE_URL}{path}",
            auth=(secret_key, ""),
            data=_flatten(params or {}) if method != "GET" else None,
            params=_flatten(params or {}) if method == "GET" else None,
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        logger.error(f"Stripe request {method} {path} failed: {exc}")
        raise PaymentError(str(exc)) from exc

    try:
        payload = response.json()
    except ValueError:
        payload = {}

    if response.status_code >= 400:
        message = (payload.get("error") or {}).get("message") or response.text
        logger.error(f"Stripe {method} {path} -> {response.status_code}: {message}")
        raise PaymentError(message, status_code=response.status_code)

    return payload


def commission_percentage() -> float:
    return float(current_app.config.get("STRIPE_COMMISSION_PERCENTAGE", 10))


def calculate_transaction_breakdown(total_amount: int) -> Dict:
    """Split an amount in minor units into platform commission and seller payout"""
    percentage = commission_percentage()
    commission = round(total_amount * percentage / 100)
    return {
        "total_amount": total_amount,
        "commission": commission,
        "seller_payout": total_amount - commission,
        "commission_percentage": percentage,
    }


# ==================== CONNECT ACCOUNTS ====================

def create_connect_account(user_id: int, email: str) -> Dict:
    """Create an Express account for a seller"""
    return _request("POST", "/accounts", {
        "type": "express",
        "country": current_app.config.get("STRIPE_COUNTRY", "IN"),
        "email": email,
        "capabilities": {
            "card_payments": {"requested": True},
            "transfers": {"requested": True},
        },
        "business_type": "individual",
        "metadata": {"user_id": user_id},
    })


def create_account_link(account_id: str, return_url: str) -> Dict:
    """Onboarding link for an Express account"""
    return _request("POST", "/account_links", {
        "account": account_id,
        "refresh_url": f"{return_url}?refresh=true",
        "return_url": return_url,
        "type": "account_onboarding",
    })


def get_account_status(account_id: str) -> Dict:
    account = _request("GET", f"/accounts/{account_id}")
    return {
        "is_complete": bool(account.get("details_submitted")),
        "is_verified": bool(account.get("charges_enabled") and account.get("payouts_enabled")),
        "requirements": account.get("requirements"),
    }


# ==================== PAYMENTS ====================

def create_payment_intent(amount: int, stripe_account_id: str, listing_id: int, buyer_id: int) -> Dict:
    """
    Destination charge to the seller's account, platform keeps the commission.

    Returns dict with payment_intent, commission and seller_payout (minor units).
    """
    breakdown = calculate_transaction_breakdown(amount)

    payment_intent = _request("POST", "/payment_intents", {
        "amount": amount,
        "currency": current_app.config.get("STRIPE_CURRENCY", "inr"),
        "application_fee_amount": breakdown["commission"],
        "transfer_data": {"destination": stripe_account_id},
        "metadata": {"listing_id": listing_id, "buyer_id": buyer_id},
    })

    logger.info(f"Created payment intent {payment_intent.get('id')} for listing {listing_id}")

    return {
        "payment_intent": payment_intent,
        "commission": breakdown["commission"],
        "seller_payout": breakdown["seller_payout"],
    }


def retrieve_payment_intent(payment_intent_id: str) -> Dict:
    return _request("GET", f"/payment_intents/{payment_intent_id}")


def create_refund(payment_intent_id: str, reason: Optional[str] = None) -> Dict:
    return _request("POST", "/refunds", {
        "payment_intent": payment_intent_id,
        "reason": reason,
    })
