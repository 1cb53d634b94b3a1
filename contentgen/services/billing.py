import logging
from typing import Any

import stripe

from contentgen.models.user import User
from contentgen.utils.config import settings
from contentgen.utils.responses import UpstreamError


logger = logging.getLogger(__name__)


def _configure() -> None:
    if not settings.STRIPE_SECRET_KEY:
        raise UpstreamError("Payment provider is not configured")
    stripe.api_key = settings.STRIPE_SECRET_KEY


def create_checkout_session(user: User) -> Any:
    """One-off card payment for a premium period."""
    _configure()
    base = settings.FRONTEND_URL.rstrip("/")
    try:
        return stripe.checkout.Session.create(
            payment_method_types=["card"],
            line_items=[{
                "price_data": {
                    "currency": settings.PREMIUM_CURRENCY,
                    "product_data": {
                        "name": "Premium Subscription",
                        "description": "Unlimited AI content generation",
                    },
                    "unit_amount": settings.PREMIUM_PRICE_CENTS,
                },
                "quantity": 1,
            }],
            mode="payment",
            success_url=f"{base}/dashboard?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base}/subscription",
            customer_email=user.email,
            metadata={"userId": str(user.id)},
        )
    except stripe.StripeError as e:
        logger.error("Stripe checkout creation failed: %s", e)
        raise UpstreamError(f"Failed to create checkout: {e.user_message or str(e)}")


def construct_event(payload: bytes, sig_header: str) -> Any:
    """Verify a webhook payload; raises ValueError when it cannot be trusted."""
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise ValueError("Webhook secret is not configured")
    try:
        return stripe.Webhook.construct_event(
            payload=payload,
            sig_header=sig_header,
            secret=settings.STRIPE_WEBHOOK_SECRET,
        )
    except stripe.SignatureVerificationError as e:
        raise ValueError(f"Invalid signature: {e}")
