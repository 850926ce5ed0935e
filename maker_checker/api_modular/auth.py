"""
Service container and request-scoped dependencies
"""

from typing import Optional

import httpx
import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..approvals import ApprovalStateMachine
from ..client import PlatformClient
from ..config import MakerCheckerConfig, get_config
from ..credentials import basic_username
from ..entries import EntryStore
from ..gate import CommandGate
from ..global_toggle import GlobalToggle
from ..inbox import InboxQueryEngine
from ..models import SuperCheckerUser
from ..permissions import PermissionRegistry
from ..search_template import SearchTemplateProvider
from ..super_checkers import ImpactReport, SuperCheckerDirectory


security = HTTPBearer(auto_error=False)


class MakerCheckerSystem:
    """Maker-checker components wired to one platform client"""

    def __init__(self, config: Optional[MakerCheckerConfig] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.config = config or get_config()

        self.client = PlatformClient(
            base_url=self.config.platform_base_url,
            username=self.config.platform_username,
            password=self.config.platform_password,
            timeout=self.config.platform_timeout,
            default_tenant=self.config.default_tenant,
            transport=transport
        )

        self.global_toggle = GlobalToggle(self.client)
        self.permission_registry = PermissionRegistry(self.client)
        self.entry_store = EntryStore(self.client)
        self.search_templates = SearchTemplateProvider(self.client)
        self.directory = SuperCheckerDirectory(self.client)

        self.inbox = InboxQueryEngine(self.entry_store, self.search_templates)
        self.approvals = ApprovalStateMachine(self.entry_store, self.search_templates)
        self.impact_report = ImpactReport(self.permission_registry, self.directory, self.entry_store)
        self.command_gate = CommandGate(self.global_toggle, self.permission_registry, self.client)

    def close(self):
        self.client.close()


# Global maker-checker system instance
maker_checker_system = MakerCheckerSystem()


def get_system() -> MakerCheckerSystem:
    return maker_checker_system


def get_current_username(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    system: MakerCheckerSystem = Depends(get_system)
) -> Optional[str]:
    """Username of the caller.

    With auth on this is the JWT subject. Otherwise it is the user of the
    Basic credentials forwarded to the platform, falling back to the actor
    header.
    """
    config = system.config
    if not config.auth_enabled:
        username = basic_username(request.headers.get("authorization"))
        if username:
            return username
        username = request.headers.get(config.actor_header)
        return username.strip() if username and username.strip() else None

    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = jwt.decode(credentials.credentials, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    username = payload.get("sub")
    if not username:
        raise HTTPException(status_code=401, detail="Invalid token")
    return username


def resolve_actor(system: MakerCheckerSystem, username: Optional[str]) -> Optional[SuperCheckerUser]:
    """Platform user behind the request; None when it cannot be resolved.

    Called by handlers once the request body has been validated, so a
    malformed request never reaches the platform.
    """
    return system.directory.find_user_by_username(username)
