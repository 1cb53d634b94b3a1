import logging
import os
import uuid
from typing import Any

import boto3
import requests
from botocore.client import Config

from contentgen.utils.config import settings
from contentgen.utils.responses import UpstreamError


logger = logging.getLogger(__name__)


def _log(event: str, **kwargs: Any) -> None:
    payload = {"event": event, **kwargs}
    logger.info("[STORAGE] %s", payload)


def is_mock_mode() -> bool:
    # Explicit mock flag wins
    if settings.MOCK_S3:
        return True
    # Missing any of the required credentials means mock
    required = [settings.AWS_ACCESS_KEY_ID,
                settings.AWS_SECRET_ACCESS_KEY, settings.AWS_S3_BUCKET]
    return not all(required)


def get_s3():
    """Create and return a configured boto3 S3 client.

    Note: Callers should consult is_mock_mode() before using the client.
    """
    session = boto3.session.Session(
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        region_name=settings.AWS_DEFAULT_REGION,
    )
    return session.client(
        "s3",
        endpoint_url=settings.AWS_S3_ENDPOINT or None,
        config=Config(s3={"addressing_style": "virtual"}),
    )


def storage_root() -> str:
    return os.path.abspath(settings.STORAGE_DIR)


CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "webp": "image/webp",
    "mp4": "video/mp4",
}


class ArtifactStorage:
    """Keeps a stable copy of generated assets.

    Provider URLs expire; the copy stored here does not.
    """

    def __init__(self, http: requests.Session | None = None):
        self.http = http or requests.Session()

    def download(self, url: str) -> bytes:
        try:
            resp = self.http.get(url, timeout=settings.PROVIDER_TIMEOUT_SECONDS)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            _log("download", ok=False, error=str(e))
            raise UpstreamError(f"Failed to download generated asset: {e}")
        if not resp.content:
            raise UpstreamError("Failed to download generated asset: empty body")
        return resp.content

    def store(self, user_id: int, data: bytes, ext: str = "png") -> str:
        filename = f"generated_{uuid.uuid4().hex}.{ext}"
        if is_mock_mode():
            return self._store_local(user_id, filename, data)
        return self._store_s3(user_id, filename, data, ext)

    def _store_local(self, user_id: int, filename: str, data: bytes) -> str:
        base_dir = os.path.join(storage_root(), str(user_id))
        os.makedirs(base_dir, exist_ok=True)
        with open(os.path.join(base_dir, filename), "wb") as out:
            out.write(data)
        url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/uploads/{user_id}/{filename}"
        _log("store", mock=True, user_id=user_id, url=url)
        return url

    def _store_s3(self, user_id: int, filename: str, data: bytes, ext: str) -> str:
        key = f"generated/{user_id}/{filename}"
        s3 = get_s3()
        try:
            s3.put_object(
                Bucket=settings.AWS_S3_BUCKET,
                Key=key,
                Body=data,
                ContentType=CONTENT_TYPES.get(ext, "application/octet-stream"),
            )
        except Exception as e:
            _log("store", ok=False, key=key, error=str(e))
            raise UpstreamError(f"Failed to store generated asset: {e}")
        if settings.AWS_S3_ENDPOINT:
            url = f"{settings.AWS_S3_ENDPOINT.rstrip('/')}/{settings.AWS_S3_BUCKET}/{key}"
        else:
            url = f"https://{settings.AWS_S3_BUCKET}.s3.{settings.AWS_DEFAULT_REGION}.amazonaws.com/{key}"
        _log("store", key=key, url=url)
        return url
