"""
Super-Checker Escalation Module

A super-checker may view and resolve entries of every entity type,
bypassing the search-template scoping applied to other checkers. The flag
lives on the platform user record and takes effect on the next
authorization check.
"""

from typing import List, Optional

from .client import PlatformClient
from .entries import EntryStore
from .errors import InvalidRequest
from .logging_config import get_logger, log_action
from .models import InboxFilters, MakerCheckerImpact, SuperCheckerUser
from .permissions import PermissionRegistry

logger = get_logger("maker_checker.super_checkers")

USERS_PATH = "/v1/users"


class SuperCheckerDirectory:
    """Platform users and their super-checker flag"""

    def __init__(self, client: PlatformClient):
        self.client = client

    def list_super_checkers(self) -> List[SuperCheckerUser]:
        """All platform users with their super-checker status"""
        response = self.client.get(USERS_PATH) or []
        return [SuperCheckerUser.from_dict(item) for item in response if isinstance(item, dict)]

    def find_user_by_username(self, username: Optional[str]) -> Optional[SuperCheckerUser]:
        if not username:
            return None
        for user in self.list_super_checkers():
            if user.username == username:
                return user
        return None

    def find_user_by_id(self, user_id: Optional[int]) -> Optional[SuperCheckerUser]:
        if user_id is None:
            return None
        for user in self.list_super_checkers():
            if user.id == user_id:
                return user
        return None

    def set_super_checker_status(self, user_id: int, is_super_checker: bool,
                                 actor: Optional[str] = None) -> None:
        """Grant or revoke super-checker rights"""
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise InvalidRequest("userId must be an integer")
        if not isinstance(is_super_checker, bool):
            raise InvalidRequest("isSuperChecker must be a boolean")

        self.client.put(f"{USERS_PATH}/{user_id}", json={"checkerSuperUser": is_super_checker})

        log_action(
            logger, "info",
            f"Super-checker {'granted to' if is_super_checker else 'revoked from'} user {user_id}",
            user_id=actor,
            action="set_super_checker_status",
            resource=f"user:{user_id}",
            extra={"isSuperChecker": is_super_checker}
        )


class ImpactReport:
    """Read-only overview of how far maker-checker reaches"""

    def __init__(self, registry: PermissionRegistry, directory: SuperCheckerDirectory,
                 entry_store: EntryStore):
        self.registry = registry
        self.directory = directory
        self.entry_store = entry_store

    def get_impact(self) -> MakerCheckerImpact:
        permissions = self.registry.list_permissions(maker_checkerable_only=True)
        users = self.directory.list_super_checkers()
        entries = self.entry_store.list_entries(InboxFilters(include_json=False))

        return MakerCheckerImpact(
            total_permissions=len(permissions),
            enabled_permissions=sum(1 for p in permissions if p.selected),
            total_users=len(users),
            super_checker_users=sum(1 for u in users if u.is_super_checker),
            pending_approvals=sum(1 for e in entries if e.is_pending)
        )
