import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from contentgen.models.user import User
from contentgen.routes.schemas import UpdateProfileRequest, UserProfile
from contentgen.utils.responses import ok
from contentgen.utils.security import ensure_owner, get_current_user, get_db


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{id}")
def get_user(
    id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, id)
    user = db.get(User, id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return ok(user=UserProfile.model_validate(user).model_dump())


@router.put("/{id}")
def update_user(
    payload: UpdateProfileRequest,
    id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, id)

    if payload.email and payload.email != current_user.email:
        taken = db.query(User).filter(
            User.email == payload.email, User.id != id).first()
        if taken:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use")
        current_user.email = payload.email
    if payload.username:
        current_user.username = payload.username

    db.commit()
    logger.info("Updated profile for user %s", id)
    return ok("Profile updated successfully",
              user=UserProfile.model_validate(current_user).model_dump())
