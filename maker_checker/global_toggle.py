"""
Global Toggle Module

Single platform-wide switch enabling or disabling the whole maker-checker
mechanism, independent of the per-operation flags. The value is read from
the platform on every call so that a change is honored by the very next
gated submission.
"""

from typing import Any, Dict, List, Optional

from .client import PlatformClient
from .errors import InvalidRequest
from .logging_config import get_logger, log_action
from .models import GlobalConfig

logger = get_logger("maker_checker.global_toggle")

CONFIGURATION_NAME = "maker-checker"
CONFIGURATIONS_PATH = "/v1/configurations"


class GlobalToggle:
    """Reads and writes the platform's maker-checker configuration"""

    def __init__(self, client: PlatformClient):
        self.client = client

    def get_global_config(self) -> GlobalConfig:
        """Current state; a missing configuration entry reads as disabled"""
        response = self.client.get(CONFIGURATIONS_PATH) or {}
        entries: List[Dict[str, Any]] = []
        if isinstance(response, dict):
            entries = response.get("globalConfiguration") or []
        elif isinstance(response, list):
            entries = response

        for entry in entries:
            if isinstance(entry, dict) and entry.get("name") == CONFIGURATION_NAME:
                return GlobalConfig(enabled=entry.get("enabled") is True)
        return GlobalConfig(enabled=False)

    def set_global_config(self, enabled: bool, actor: Optional[str] = None) -> GlobalConfig:
        """Persist the new state on the platform"""
        if not isinstance(enabled, bool):
            raise InvalidRequest("enabled must be a boolean")

        self.client.put(f"{CONFIGURATIONS_PATH}/name/{CONFIGURATION_NAME}", json={"enabled": enabled})

        log_action(
            logger, "info", f"Maker-checker {'enabled' if enabled else 'disabled'} platform-wide",
            user_id=actor,
            action="set_global_config",
            resource=CONFIGURATION_NAME,
            extra={"enabled": enabled}
        )
        return GlobalConfig(enabled=enabled)
