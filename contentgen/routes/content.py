import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Request, status
from sqlalchemy.orm import Session

from contentgen.models.content import Content
from contentgen.models.user import User
from contentgen.routes.schemas import ContentOut, GenerateRequest, SaveContentRequest
from contentgen.services.dispatcher import GenerationDispatcher, get_dispatcher, make_title
from contentgen.utils.config import settings
from contentgen.utils.limiter import limiter
from contentgen.utils.responses import ok
from contentgen.utils.security import ensure_owner, get_current_user, get_db


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/content", tags=["content"])


@router.get("/user/{userId}")
def list_user_content(
    userId: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, userId)
    rows = (
        db.query(Content)
        .filter(Content.user_id == userId)
        .order_by(Content.created_at.desc(), Content.id.desc())
        .all()
    )
    return ok(content=[ContentOut.model_validate(r).model_dump(mode="json") for r in rows])


@router.post("/generate", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_GENERATE)
def generate(
    request: Request,
    payload: GenerateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher: GenerationDispatcher = Depends(get_dispatcher),
):
    ensure_owner(current_user, payload.userId)
    result = dispatcher.generate(db, payload.userId, payload.type, payload.description)
    return ok(
        "Content generated successfully",
        contentId=result.content_id,
        url=result.url,
        description=result.description,
        type=result.type,
    )


@router.post("/save", status_code=status.HTTP_201_CREATED)
def save(
    payload: SaveContentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, payload.userId)
    content = Content(
        user_id=payload.userId,
        type=payload.type,
        title=make_title(payload.description, payload.type),
        description=payload.description,
        url=payload.url,
    )
    db.add(content)
    db.commit()
    db.refresh(content)
    logger.info("Saved content %s for user %s", content.id, payload.userId)
    return ok("Content saved successfully", contentId=content.id)


@router.delete("/{id}")
def delete(
    id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    content = db.get(Content, id)
    if not content:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")
    ensure_owner(current_user, content.user_id)

    db.delete(content)
    db.commit()
    logger.info("Deleted content %s", id)
    return ok("Content deleted successfully")
