"""Clients for the external media-generation providers.

Both clients raise ``UpstreamError`` for every failure mode (transport
errors, error statuses, malformed bodies, video timeouts) so the dispatcher
can surface a single descriptive message.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from contentgen.utils.config import settings
from contentgen.utils.responses import UpstreamError


logger = logging.getLogger(__name__)


def _error_detail(exc: requests.exceptions.RequestException) -> str:
    """Prefer the provider's own error message over the transport one."""
    resp = getattr(exc, "response", None)
    if resp is not None:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            err = body.get("error")
            if isinstance(err, dict) and err.get("message"):
                return str(err["message"])
            if body.get("message"):
                return str(body["message"])
            if isinstance(err, str):
                return err
    return str(exc)


class ImageProvider:
    """Text-to-image via the OpenAI Images API."""

    def __init__(self, api_key: str | None = None, session: requests.Session | None = None):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.base_url = settings.OPENAI_BASE_URL.rstrip("/")
        self.model = settings.OPENAI_IMAGE_MODEL
        self.size = settings.OPENAI_IMAGE_SIZE
        self.session = session or requests.Session()

    def is_available(self) -> bool:
        return bool(self.api_key)

    def generate(self, prompt: str) -> str:
        """Return the (short-lived) URL of the generated image."""
        if not self.is_available():
            raise UpstreamError("Image generation failed: OpenAI API key is not configured")

        try:
            response = self.session.post(
                f"{self.base_url}/images/generations",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "prompt": prompt,
                    "n": 1,
                    "size": self.size,
                    "response_format": "url",
                },
                timeout=settings.PROVIDER_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error("OpenAI image request failed: %s", e)
            raise UpstreamError(f"Image generation failed: {_error_detail(e)}")
        except ValueError:
            raise UpstreamError("Image generation failed: Invalid response from OpenAI API")

        try:
            url = data["data"][0]["url"]
        except (KeyError, IndexError, TypeError):
            url = None
        if not url:
            raise UpstreamError("Image generation failed: Invalid response from OpenAI API")
        return url


class VideoProvider:
    """Text-to-video via Runway: submit a task, then poll until it settles."""

    def __init__(
        self,
        api_key: str | None = None,
        session: requests.Session | None = None,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key if api_key is not None else settings.RUNWAY_API_KEY
        self.base_url = settings.RUNWAY_BASE_URL.rstrip("/")
        self.session = session or requests.Session()
        self.poll_interval = (settings.VIDEO_POLL_INTERVAL_SECONDS
                              if poll_interval is None else poll_interval)
        self.max_attempts = (settings.VIDEO_POLL_MAX_ATTEMPTS
                             if max_attempts is None else max_attempts)
        self.sleep = sleep

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def generate(self, prompt: str) -> str:
        if not self.is_available():
            raise UpstreamError("Video generation failed: Runway API key is not configured")

        try:
            response = self.session.post(
                f"{self.base_url}/generate",
                headers=self._headers(),
                json={
                    "prompt": prompt,
                    "aspect_ratio": settings.VIDEO_ASPECT_RATIO,
                    "duration": settings.VIDEO_DURATION_SECONDS,
                    "model": settings.RUNWAY_MODEL,
                },
                timeout=settings.PROVIDER_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error("Runway submit failed: %s", e)
            raise UpstreamError(f"Video generation failed: {_error_detail(e)}")
        except ValueError:
            raise UpstreamError("Video generation failed: Invalid response from Runway API")

        if not isinstance(data, dict):
            raise UpstreamError("Video generation failed: Invalid response from Runway API")
        if data.get("task_id"):
            return self.wait_for(str(data["task_id"]))
        # Some API versions answer synchronously with the asset itself.
        if data.get("url"):
            return str(data["url"])
        raise UpstreamError("Video generation failed: Invalid response from Runway API")

    def wait_for(self, task_id: str) -> str:
        """Poll ``task_id`` every ``poll_interval`` seconds, at most ``max_attempts`` times."""
        logger.info("Polling Runway task %s (max %s attempts)", task_id, self.max_attempts)
        for attempt in range(1, self.max_attempts + 1):
            self.sleep(self.poll_interval)
            try:
                response = self.session.get(
                    f"{self.base_url}/tasks/{task_id}",
                    headers=self._headers(),
                    timeout=settings.PROVIDER_TIMEOUT_SECONDS,
                )
                response.raise_for_status()
                data: Dict[str, Any] = response.json()
            except (requests.exceptions.RequestException, ValueError) as e:
                # A failed status check only costs an attempt.
                logger.warning("Runway status check %s/%s failed: %s",
                               attempt, self.max_attempts, e)
                continue

            status = data.get("status") if isinstance(data, dict) else None
            logger.debug("Runway task %s status %s/%s: %s",
                         task_id, attempt, self.max_attempts, status)
            if status == "completed":
                url = _first_output(data.get("output"))
                if url:
                    return url
            elif status == "failed":
                raise UpstreamError(
                    f"Video generation failed: {data.get('error') or 'Unknown error'}")

        raise UpstreamError("Video generation timed out. Please try again.")


def _first_output(output: Any) -> Optional[str]:
    if isinstance(output, list):
        return str(output[0]) if output else None
    return str(output) if output else None
