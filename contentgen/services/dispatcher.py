from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sqlalchemy.orm import Session

from contentgen.models.content import Content
from contentgen.services import quota
from contentgen.services.providers import ImageProvider, VideoProvider
from contentgen.services.storage import ArtifactStorage
from contentgen.utils.responses import QuotaExceeded


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    content_id: int
    url: str
    description: str
    type: str


TITLE_LENGTH = 100

# Descriptions arrive HTML-escaped; a bare "&" at the end is a cut entity.
_PARTIAL_ENTITY = re.compile(r"&[#A-Za-z0-9]*\Z")


def make_title(description: str, type_: str) -> str:
    if not description:
        return f"Generated {type_}"
    return _PARTIAL_ENTITY.sub("", description[:TITLE_LENGTH])


class GenerationDispatcher:
    """Turns an approved request into exactly one persisted Content row.

    Nothing is written unless the provider call (and, for images, the
    download and copy) succeeds, so failed generations never count
    against the daily quota.
    """

    def __init__(
        self,
        image_provider: ImageProvider,
        video_provider: VideoProvider,
        storage: ArtifactStorage,
    ):
        self.image_provider = image_provider
        self.video_provider = video_provider
        self.storage = storage

    def generate(self, db: Session, user_id: int, type_: str, description: str) -> GenerationResult:
        # The client checks first, but the server never trusts that.
        status = quota.evaluate(db, user_id)
        if not status.allowed:
            raise QuotaExceeded()

        logger.info("Generating %s for user %s", type_, user_id)
        if type_ == "image":
            url = self._generate_image(user_id, description)
        elif type_ == "video":
            url = self.video_provider.generate(description)
        else:
            raise ValueError(f"Unsupported content type: {type_}")

        content = Content(
            user_id=user_id,
            type=type_,
            title=make_title(description, type_),
            description=description,
            url=url,
        )
        db.add(content)
        db.commit()
        db.refresh(content)
        logger.info("Saved %s %s for user %s", type_, content.id, user_id)
        return GenerationResult(content_id=content.id, url=url,
                                description=description, type=type_)

    def _generate_image(self, user_id: int, description: str) -> str:
        remote_url = self.image_provider.generate(description)
        data = self.storage.download(remote_url)
        return self.storage.store(user_id, data, ext="png")


def get_dispatcher() -> GenerationDispatcher:
    return GenerationDispatcher(ImageProvider(), VideoProvider(), ArtifactStorage())
