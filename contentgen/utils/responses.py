"""JSON envelope helpers and the error types routes raise.

Every response body is ``{"success": bool, "message"?: str, ...payload}``.
The exception handlers in ``contentgen.main`` map errors onto that envelope.
"""
from typing import Any, Dict


class UpstreamError(Exception):
    """A generation or payment provider failed, timed out or answered garbage."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QuotaExceeded(Exception):
    def __init__(self, message: str = "Daily limit reached. Upgrade to Premium for unlimited generations!"):
        super().__init__(message)
        self.message = message


def ok(message: str | None = None, **payload: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    body.update(payload)
    return body


def fail(message: str, **payload: Any) -> Dict[str, Any]:
    return {"success": False, "message": message, **payload}
