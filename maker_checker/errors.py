"""
Error Taxonomy Module

Every failure surfaced by the maker-checker layer is a MakerCheckerError
carrying a stable code, a human readable message and the HTTP status the
BFF answers with. Errors returned by the platform are normalized here from
the several payload formats it produces.
"""

import json
import re
from typing import Any, Dict, List, Optional


class MakerCheckerError(Exception):
    """Base class for all maker-checker errors"""

    code = "UNKNOWN_ERROR"
    http_status = 500

    def __init__(self, message: str, code: Optional[str] = None,
                 http_status: Optional[int] = None,
                 details: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if http_status:
            self.http_status = http_status
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Normalized error body"""
        result: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "httpStatus": self.http_status,
        }
        if self.details:
            result["details"] = self.details
        return result


class InvalidRequest(MakerCheckerError):
    """Malformed input, rejected before any upstream call"""
    code = "INVALID_REQUEST"
    http_status = 400


class Forbidden(MakerCheckerError):
    """Actor may not perform the operation on this entry"""
    code = "FORBIDDEN"
    http_status = 403


class EntryNotFound(MakerCheckerError):
    """No entry with the given audit id"""
    code = "NOT_FOUND"
    http_status = 404


class InvalidStateTransition(MakerCheckerError):
    """Entry is no longer pending"""
    code = "INVALID_STATE_TRANSITION"
    http_status = 409


class UpstreamUnavailable(MakerCheckerError):
    """Platform could not be reached"""
    code = "UPSTREAM_UNAVAILABLE"
    http_status = 500


class UnknownUpstreamError(MakerCheckerError):
    """Platform answered with an error we do not classify further"""
    code = "UNKNOWN_ERROR"
    http_status = 500


# Globalisation code fragments the platform uses for commands that were
# already checked by someone else.
_ALREADY_RESOLVED_MARKERS = ("already.processed", "already.checked", "already.approved",
                             "already.rejected", "not.awaiting.approval")

_HTML_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")


def _to_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _try_json(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    trimmed = value.strip()
    if (trimmed.startswith("{") and trimmed.endswith("}")) or \
            (trimmed.startswith("[") and trimmed.endswith("]")):
        try:
            return json.loads(trimmed)
        except ValueError:
            return value
    return value


def strip_html(text: str) -> str:
    """Collapse an HTML error page to plain text"""
    return _WHITESPACE.sub(" ", _HTML_TAG.sub(" ", text)).strip()


def _field_errors(errors: List[Any]) -> Dict[str, List[str]]:
    details: Dict[str, List[str]] = {}
    for item in errors:
        if not isinstance(item, dict):
            continue
        field = _to_str(item.get("parameterName")) or _to_str(item.get("field")) or "general"
        message = (_to_str(item.get("defaultUserMessage"))
                   or _to_str(item.get("message"))
                   or _to_str(item.get("developerMessage"))
                   or "Validation error")
        details.setdefault(field, []).append(message)
    return details


def _classify(status: int, code: str, message: str,
              details: Optional[Dict[str, List[str]]] = None) -> MakerCheckerError:
    lowered = code.lower()
    if status == 409 or any(marker in lowered for marker in _ALREADY_RESOLVED_MARKERS):
        return InvalidStateTransition(message, code=code, details=details)
    if status == 403:
        return Forbidden(message, code=code, details=details)
    if status == 404:
        return EntryNotFound(message, code=code, details=details)
    if status == 400 and details:
        return InvalidRequest(message, code=code, details=details)
    return UnknownUpstreamError(message, code=code, http_status=status or 500, details=details)


def map_upstream_error(status: int, payload: Any) -> MakerCheckerError:
    """Map a failed platform response to a MakerCheckerError.

    The upstream status code is kept unless the payload names a more
    specific one.
    """
    payload = _try_json(payload)

    if isinstance(payload, dict):
        # Global error: developerMessage/httpStatusCode plus a code or errors list
        if any(k in payload for k in ("developerMessage", "httpStatusCode", "errors")) and \
                any(k in payload for k in ("userMessageGlobalisationCode", "errors")):
            http_status = _to_int(payload.get("httpStatusCode")) or status or 500
            errors = payload.get("errors") if isinstance(payload.get("errors"), list) else []
            details = _field_errors(errors)
            first_error = next((e for e in errors if isinstance(e, dict)), {})
            code = (_to_str(payload.get("userMessageGlobalisationCode"))
                    or _to_str(first_error.get("userMessageGlobalisationCode"))
                    or f"HTTP_{http_status}")
            message = (_to_str(payload.get("defaultUserMessage"))
                       or _to_str(payload.get("developerMessage"))
                       or _to_str(first_error.get("defaultUserMessage"))
                       or "Request failed")
            return _classify(http_status, code, message, details)

        # Single parameter error
        if "userMessageGlobalisationCode" in payload and \
                ("parameterName" in payload or "defaultUserMessage" in payload):
            http_status = status or 400
            details = _field_errors([payload])
            code = _to_str(payload.get("userMessageGlobalisationCode")) or f"HTTP_{http_status}"
            message = next(iter(details.values()))[0]
            return _classify(http_status, code, message, details)

        if isinstance(payload.get("Exception"), str):
            return _classify(status or 500, "Exception", payload["Exception"])

        if isinstance(payload.get("error"), str):
            message = _to_str(payload.get("error_description")) or payload["error"]
            return _classify(status or 400, payload["error"], message)

        message = (_to_str(payload.get("message"))
                   or _to_str(payload.get("defaultUserMessage"))
                   or _to_str(payload.get("userMessage")))
        code = _to_str(payload.get("code"))
        if message or code:
            http_status = status or _to_int(payload.get("status")) or 500
            return _classify(http_status, code or f"HTTP_{http_status}", message or "Request failed")

    if isinstance(payload, str) and payload.strip():
        http_status = status or 500
        message = strip_html(payload)[:300] or "Request failed"
        return _classify(http_status, f"HTTP_{http_status}", message)

    http_status = status or 500
    return _classify(http_status, f"HTTP_{http_status}", "Unexpected error response")
