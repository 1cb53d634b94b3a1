import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from contentgen.models.feedback import Feedback
from contentgen.models.user import User
from contentgen.routes.schemas import FeedbackOut, FeedbackRequest
from contentgen.utils.responses import ok
from contentgen.utils.security import get_db


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.get("")
def list_feedback(db: Session = Depends(get_db)):
    rows = db.query(Feedback).order_by(Feedback.id.desc()).all()
    return ok(feedback=[FeedbackOut.model_validate(r).model_dump(mode="json") for r in rows])


@router.post("/submit", status_code=status.HTTP_201_CREATED)
def submit(payload: FeedbackRequest, db: Session = Depends(get_db)):
    user_id = payload.userId
    # Anonymous feedback is allowed; drop ids that do not belong to anyone.
    if user_id is not None and db.get(User, user_id) is None:
        user_id = None

    feedback = Feedback(user_id=user_id, description=payload.message)
    db.add(feedback)
    db.commit()
    db.refresh(feedback)
    logger.info("Feedback %s submitted", feedback.id)
    return ok("Feedback submitted successfully", feedbackId=feedback.id)
