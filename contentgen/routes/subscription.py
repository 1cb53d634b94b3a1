import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Path, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from contentgen.models.user import User
from contentgen.routes.schemas import ActivateRequest, SubscriptionOut, UserIdRequest
from contentgen.services import billing, ledger, quota
from contentgen.utils.config import settings
from contentgen.utils.responses import ok
from contentgen.utils.security import ensure_owner, get_current_user, get_db


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.get("/user/{userId}")
def get_subscription(
    userId: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, userId)
    subscription = quota.effective_subscription(db, userId)
    premium = quota.is_premium(subscription, datetime.now())
    return ok(
        subscription=(SubscriptionOut.model_validate(subscription).model_dump(mode="json")
                      if subscription else None),
        isPremium=premium,
        subscriptionType=quota.TIER_PREMIUM if premium else quota.TIER_FREE,
    )


@router.post("/create-checkout")
def create_checkout(
    payload: UserIdRequest,
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, payload.userId)
    session = billing.create_checkout_session(current_user)
    return ok(
        sessionId=session.id,
        checkoutUrl=session.url,
        stripePublicKey=settings.STRIPE_PUBLISHABLE_KEY,
    )


@router.post("/activate")
def activate(
    payload: ActivateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, payload.userId)
    subscription = ledger.activate(
        db, payload.userId, payment_method=payload.paymentMethod or "Test Card")
    return ok(
        "Premium subscription activated successfully!",
        subscriptionId=subscription.id,
        endDate=subscription.end_date.isoformat(),
    )


@router.post("/cancel")
def cancel(
    payload: UserIdRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, payload.userId)
    cancelled = ledger.cancel(db, payload.userId)
    return ok("Subscription cancelled successfully", cancelled=cancelled)


@router.post("/webhook")
async def webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature", "")
    try:
        event = billing.construct_event(payload, sig_header)
    except ValueError as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Webhook Error: {e}")

    # Database work is blocking; keep it off the event loop.
    await run_in_threadpool(handle_event, db, event)
    return ok(received=True)


def handle_event(db: Session, event) -> None:
    if event["type"] != "checkout.session.completed":
        return

    session = event["data"]["object"]
    try:
        user_id = int(session["metadata"]["userId"])
    except (KeyError, TypeError, ValueError):
        logger.error("Checkout session in event %s carries no userId", event["id"])
        return

    try:
        ledger.activate(db, user_id, payment_method="Stripe")
        logger.info("Subscription activated for user %s", user_id)
    except LookupError:
        logger.error("Checkout completed for unknown user %s", user_id)
