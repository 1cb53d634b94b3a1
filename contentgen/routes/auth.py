import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from contentgen.models.user import User
from contentgen.routes.schemas import LoginRequest, RegisterRequest, UserProfile
from contentgen.services import quota
from contentgen.utils.config import settings
from contentgen.utils.limiter import limiter
from contentgen.utils.responses import ok
from contentgen.utils.security import (
    create_access_token,
    dummy_verify_password,
    get_current_user,
    get_db,
    hash_password,
    verify_password,
)


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials"


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_AUTH)
def register(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.email == payload.email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

    user = User(username=payload.username, email=payload.email,
                password_hash=hash_password(payload.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return ok("User registered successfully", userId=user.id)


@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_AUTH)
def login(request: Request, payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email).first()
    # Same answer and same hashing cost for unknown email and wrong password.
    if not user:
        dummy_verify_password()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

    status_ = quota.evaluate(db, user.id)
    profile = UserProfile.model_validate(user).model_dump()
    profile.update(
        subscriptionType=status_.tier,
        generationsLimit=status_.limit,
        generationsToday=status_.used,
    )
    token = create_access_token(user.id, user.email)
    return ok("Login successful", token=token, user=profile)


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return ok(user=UserProfile.model_validate(current_user).model_dump())
