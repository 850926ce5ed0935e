"""
Permission Registry Module

Gated-operation definitions live on the platform. Each permission code
carries a "selected" flag: when set (and the global toggle is on) the
operation is captured for checker approval instead of executing.

Bulk updates arrive in one of three historical shapes and are normalized at
the boundary into a single code -> selected mapping.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .client import PlatformClient
from .errors import InvalidRequest
from .logging_config import get_logger, log_action
from .models import Permission

logger = get_logger("maker_checker.permissions")

PERMISSIONS_PATH = "/v1/permissions"


@dataclass(frozen=True)
class CodeList:
    """["LOAN_APPROVE", ...]: every listed code becomes selected"""
    codes: Tuple[str, ...]


@dataclass(frozen=True)
class CodeSelectionList:
    """[{"code": "LOAN_APPROVE", "selected": true}, ...]"""
    pairs: Tuple[Tuple[str, bool], ...]


@dataclass(frozen=True)
class CodeSelectionMap:
    """{"LOAN_APPROVE": true, ...}"""
    selections: Tuple[Tuple[str, bool], ...]


PermissionUpdate = Union[CodeList, CodeSelectionList, CodeSelectionMap]


def _require_code(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequest("Permission code must be a non-empty string")
    return value.strip()


def _require_flag(code: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidRequest(f"selected for {code} must be a boolean")
    return value


def parse_permission_update(raw: Any) -> PermissionUpdate:
    """Classify a raw request body into one of the accepted update shapes.

    Raises:
        InvalidRequest: The body matches none of the shapes
    """
    if isinstance(raw, Mapping):
        return CodeSelectionMap(tuple(
            (_require_code(code), _require_flag(code, selected))
            for code, selected in raw.items()
        ))

    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        items = list(raw)
        if all(isinstance(item, str) for item in items):
            return CodeList(tuple(_require_code(item) for item in items))
        if all(isinstance(item, Mapping) for item in items):
            pairs = []
            for item in items:
                code = _require_code(item.get("code"))
                pairs.append((code, _require_flag(code, item.get("selected"))))
            return CodeSelectionList(tuple(pairs))
        raise InvalidRequest("Permission list must contain only codes or only {code, selected} objects")

    raise InvalidRequest("Permission update must be a list or an object")


def normalize_permission_update(update: PermissionUpdate) -> Dict[str, bool]:
    """Canonical code -> selected mapping; later duplicates win"""
    if isinstance(update, CodeList):
        return {code: True for code in update.codes}
    if isinstance(update, CodeSelectionList):
        return dict(update.pairs)
    if isinstance(update, CodeSelectionMap):
        return dict(update.selections)
    raise TypeError(f"Unsupported permission update: {type(update).__name__}")


# Display classification, first matching rule wins. Not an authorization boundary.
GROUPING_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("LOAN",), "Loans"),
    (("SAVINGS", "SAVING"), "Savings"),
    (("CLIENT",), "Clients"),
    (("PRODUCT", "DEPOSIT", "SHARE"), "Products"),
]
FALLBACK_GROUP = "System"


def classify_permission(code: str) -> str:
    """Display group for a permission code"""
    upper = (code or "").upper()
    for keywords, group in GROUPING_RULES:
        if any(keyword in upper for keyword in keywords):
            return group
    return FALLBACK_GROUP


def group_permissions(permissions: List[Permission]) -> Dict[str, Dict[str, Any]]:
    """Bucket permissions by display group with enabled/total counts"""
    groups: Dict[str, Dict[str, Any]] = {}
    for group in [g for _, g in GROUPING_RULES] + [FALLBACK_GROUP]:
        groups[group] = {"permissions": [], "enabled": 0, "total": 0}

    for permission in permissions:
        bucket = groups[classify_permission(permission.code)]
        bucket["permissions"].append(permission)
        bucket["total"] += 1
        if permission.selected:
            bucket["enabled"] += 1

    return {name: bucket for name, bucket in groups.items() if bucket["total"]}


class PermissionRegistry:
    """Reads and bulk-updates gated-operation permissions on the platform"""

    def __init__(self, client: PlatformClient):
        self.client = client

    def list_permissions(self, maker_checkerable_only: bool = False) -> List[Permission]:
        """All permissions, or only those that can be placed under maker-checker"""
        params = {"makerCheckerable": "true"} if maker_checkerable_only else None
        response = self.client.get(PERMISSIONS_PATH, params=params) or []
        return [Permission.from_dict(item) for item in response if isinstance(item, dict)]

    def get_permission(self, code: str) -> Optional[Permission]:
        for permission in self.list_permissions(maker_checkerable_only=True):
            if permission.code == code:
                return permission
        return None

    def update_permissions(self, updates: Union[PermissionUpdate, Any],
                           actor: Optional[str] = None) -> Dict[str, bool]:
        """Bulk-set the selected flag.

        Unknown codes are passed through; the platform decides.

        Returns:
            The canonical mapping that was submitted
        """
        if not isinstance(updates, (CodeList, CodeSelectionList, CodeSelectionMap)):
            updates = parse_permission_update(updates)
        selections = normalize_permission_update(updates)

        if not selections:
            return selections

        self.client.put(PERMISSIONS_PATH, json={"permissions": selections})

        log_action(
            logger, "info", f"Updated {len(selections)} maker-checker permissions",
            user_id=actor,
            action="update_permissions",
            resource="permissions",
            extra={"enabled": sorted(c for c, s in selections.items() if s),
                   "disabled": sorted(c for c, s in selections.items() if not s)}
        )
        return selections
