"""Daily generation quota.

Entitlement is derived on every call from stored facts: the latest active
subscription's end date and the number of content rows the user created
today. Nothing here writes a counter or an expiry back to the database.

The day boundary is the server's local calendar day, not the user's.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from contentgen.models.content import Content
from contentgen.models.subscription import Subscription, STATUS_ACTIVE
from contentgen.utils.config import settings


logger = logging.getLogger(__name__)

TIER_FREE = "free"
TIER_PREMIUM = "premium"


@dataclass(frozen=True)
class QuotaStatus:
    allowed: bool
    used: int
    # None means unbounded (premium).
    limit: Optional[int]
    remaining: Optional[int]
    tier: str

    @property
    def is_premium(self) -> bool:
        return self.tier == TIER_PREMIUM


def day_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def effective_subscription(db: Session, user_id: int) -> Optional[Subscription]:
    """Latest active record by end date, whether or not it has lapsed."""
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id, Subscription.status == STATUS_ACTIVE)
        .order_by(Subscription.end_date.desc(), Subscription.id.desc())
        .first()
    )


def is_premium(subscription: Optional[Subscription], now: datetime) -> bool:
    return subscription is not None and subscription.end_date > now


def count_today(db: Session, user_id: int, now: Optional[datetime] = None) -> int:
    start, end = day_bounds(now or datetime.now())
    return (
        db.query(func.count(Content.id))
        .filter(
            Content.user_id == user_id,
            Content.created_at >= start,
            Content.created_at < end,
        )
        .scalar()
    ) or 0


def evaluate(db: Session, user_id: int, now: Optional[datetime] = None) -> QuotaStatus:
    now = now or datetime.now()

    if is_premium(effective_subscription(db, user_id), now):
        return QuotaStatus(allowed=True, used=count_today(db, user_id, now),
                           limit=None, remaining=None, tier=TIER_PREMIUM)

    limit = settings.FREE_DAILY_LIMIT
    used = count_today(db, user_id, now)
    status = QuotaStatus(
        allowed=used < limit,
        used=used,
        limit=limit,
        remaining=max(0, limit - used),
        tier=TIER_FREE,
    )
    logger.debug("quota user=%s used=%s/%s allowed=%s",
                 user_id, used, limit, status.allowed)
    return status
