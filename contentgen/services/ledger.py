"""Premium subscription ledger: activate and cancel.

There is no state machine beyond ``active -> cancelled``; expiry is computed
on read by comparing ``end_date`` to the current time.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from contentgen.models.payment import Payment
from contentgen.models.subscription import Subscription, STATUS_ACTIVE, STATUS_CANCELLED
from contentgen.models.user import User
from contentgen.services.quota import effective_subscription
from contentgen.utils.config import settings


logger = logging.getLogger(__name__)


def activate(
    db: Session,
    user_id: int,
    payment_method: str = "Test Card",
    now: Optional[datetime] = None,
) -> Subscription:
    if db.get(User, user_id) is None:
        raise LookupError(f"User {user_id} not found")

    now = now or datetime.now()
    end = now + timedelta(days=settings.PREMIUM_PERIOD_DAYS)

    # Overwrite the current window instead of stacking a second active record.
    subscription = effective_subscription(db, user_id)
    if subscription is not None:
        subscription.start_date = now
        subscription.end_date = end
        subscription.status = STATUS_ACTIVE
        logger.info("Updated subscription %s for user %s", subscription.id, user_id)
    else:
        subscription = Subscription(
            user_id=user_id, status=STATUS_ACTIVE, start_date=now, end_date=end)
        db.add(subscription)
        db.flush()
        logger.info("Created subscription %s for user %s", subscription.id, user_id)

    db.add(Payment(
        subscription_id=subscription.id,
        amount=Decimal(settings.PREMIUM_PRICE_CENTS) / 100,
        method=payment_method,
        state="completed",
        paid_at=now,
    ))
    db.commit()
    db.refresh(subscription)
    return subscription


def cancel(db: Session, user_id: int) -> int:
    cancelled = (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id, Subscription.status == STATUS_ACTIVE)
        .update({Subscription.status: STATUS_CANCELLED}, synchronize_session=False)
    )
    db.commit()
    logger.info("Cancelled %s subscription(s) for user %s", cancelled, user_id)
    return cancelled
