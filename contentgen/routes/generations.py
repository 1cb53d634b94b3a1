from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from contentgen.models.user import User
from contentgen.services import quota
from contentgen.utils.config import settings
from contentgen.utils.responses import ok
from contentgen.utils.security import ensure_owner, get_current_user, get_db


router = APIRouter(prefix="/generations", tags=["generations"])


@router.get("/can-generate/{userId}")
def can_generate(
    userId: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, userId)
    status = quota.evaluate(db, userId)

    if status.is_premium:
        return ok(
            "Premium user has unlimited generations",
            canGenerate=True,
            subscriptionType=status.tier,
            used=status.used,
            limit=None,
            remaining="unlimited",
        )

    if status.allowed:
        message = f"You have {status.remaining} generations remaining today"
    else:
        message = "Daily limit reached. Upgrade to Premium for unlimited generations!"
    return ok(
        message,
        canGenerate=status.allowed,
        subscriptionType=status.tier,
        used=status.used,
        limit=status.limit,
        remaining=status.remaining,
    )


@router.get("/count/{userId}")
def count(
    userId: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, userId)
    used = quota.count_today(db, userId)
    limit = settings.FREE_DAILY_LIMIT
    return ok(count=used, limit=limit, remaining=max(0, limit - used))
