"""
Command Gate Module

Decides, at submission time, whether a command executes immediately or is
captured as a pending maker-checker entry. The global toggle and the
permission flag are both re-read on every submission.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .client import PlatformClient
from .errors import InvalidRequest
from .global_toggle import GlobalToggle
from .logging_config import get_logger, log_action
from .models import MakerCheckerEntry, ProcessingResult, SuperCheckerUser, normalize_int, normalize_string
from .permissions import PermissionRegistry

logger = get_logger("maker_checker.gate")

WRITE_METHODS = ("POST", "PUT", "DELETE")


def validate_platform_path(path: Any) -> str:
    """Only relative platform paths may be forwarded"""
    if not isinstance(path, str) or not path.startswith("/"):
        raise InvalidRequest("path must be a relative platform path starting with '/'")
    if "://" in path or path.startswith("//") or ".." in path.split("?")[0].split("/"):
        raise InvalidRequest("path must be a relative platform path")
    return path


class CommandGate:
    """Routes submitted commands through maker-checker when they are gated"""

    def __init__(self, global_toggle: GlobalToggle, registry: PermissionRegistry,
                 client: PlatformClient):
        self.global_toggle = global_toggle
        self.registry = registry
        self.client = client

    def requires_approval(self, action_name: str) -> bool:
        """True when the toggle is on and the permission is selected"""
        if not self.global_toggle.get_global_config().enabled:
            return False
        permission = self.registry.get_permission(action_name)
        return permission is not None and permission.selected

    @staticmethod
    def validate(action_name: Any, method: Any, path: Any) -> Tuple[str, str]:
        """Check a submission before anything is sent upstream.

        Returns:
            The normalized (method, path)
        """
        if not action_name or not isinstance(action_name, str):
            raise InvalidRequest("actionName is required")
        method = method.upper() if isinstance(method, str) else ""
        if method not in WRITE_METHODS:
            raise InvalidRequest(f"method must be one of: {', '.join(WRITE_METHODS)}")
        return method, validate_platform_path(path)

    def submit(self, actor: Optional[SuperCheckerUser], action_name: str,
               entity_name: Optional[str], method: str, path: str,
               payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Forward a command to the platform.

        Returns:
            {"executed": True, "result": ...} when the command ran, or
            {"executed": False, "entry": MakerCheckerEntry} when it awaits a checker
        """
        method, path = self.validate(action_name, method, path)

        gated = self.requires_approval(action_name)
        result = self.client.request(method, path, json=payload if method != "DELETE" else None)

        audit_id = normalize_int(result.get("commandId")) if isinstance(result, dict) else None
        actor_id = actor.id if actor else None

        if gated and audit_id:
            entry = MakerCheckerEntry(
                audit_id=audit_id,
                processing_result=ProcessingResult.PENDING,
                maker_id=actor_id,
                made_on_date=datetime.now(timezone.utc),
                resource_id=normalize_string(result.get("resourceId")),
                entity_name=entity_name,
                action_name=action_name,
                maker_name=actor.username if actor else None
            )
            log_action(
                logger, "info", f"{action_name} captured for approval as entry {audit_id}",
                user_id=actor_id,
                action="submit_command",
                resource=f"{entity_name}:{entry.resource_id}",
                extra={"auditId": audit_id, "gated": True}
            )
            return {"executed": False, "entry": entry}

        if gated:
            log_action(
                logger, "warning",
                f"{action_name} requires approval but the platform returned no commandId; "
                "reporting it as executed",
                user_id=actor_id,
                action="submit_command",
                resource=f"{entity_name}:{path}",
                extra={"gated": True, "missingCommandId": True}
            )
        else:
            log_action(
                logger, "info", f"{action_name} executed",
                user_id=actor_id,
                action="submit_command",
                resource=f"{entity_name}:{path}",
                extra={"gated": False}
            )
        return {"executed": True, "result": result}
