"""
Caller Credentials Module

Platform calls made on behalf of a request carry the caller's own
Authorization header, so that the platform attributes makers and checkers
to the real user and applies that user's search template. Calls made
outside a request fall back to the service credentials.
"""

import base64
import binascii
import contextvars
from contextlib import contextmanager
from typing import Optional


_current_authorization = contextvars.ContextVar('current_authorization', default=None)


def get_current_authorization() -> Optional[str]:
    """Authorization header of the request being served, if any"""
    return _current_authorization.get()


@contextmanager
def authorization_context(authorization: Optional[str]):
    """Context manager forwarding the given credentials to the platform"""
    token = _current_authorization.set(authorization)
    try:
        yield
    finally:
        _current_authorization.reset(token)


def basic_authorization(username: str, password: str) -> str:
    encoded = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {encoded}"


def basic_username(authorization: Optional[str]) -> Optional[str]:
    """Username carried by a Basic Authorization header, else None"""
    if not authorization:
        return None
    scheme, _, value = authorization.strip().partition(" ")
    if scheme.lower() != "basic" or not value:
        return None
    try:
        decoded = base64.b64decode(value.strip(), validate=True).decode()
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, separator, _ = decoded.partition(":")
    if not separator or not username.strip():
        return None
    return username.strip()


async def credentials_middleware_func(request, call_next):
    """FastAPI middleware function capturing the caller's Authorization header"""
    authorization = (request.headers.get("authorization") or "").strip()
    with authorization_context(authorization or None):
        return await call_next(request)
