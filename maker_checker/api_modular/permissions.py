"""
Maker-checker permission endpoints
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from .auth import MakerCheckerSystem, get_current_username, get_system
from ..permissions import group_permissions


router = APIRouter()


@router.get("")
def list_permissions(
    maker_checkerable_only: bool = Query(False, alias="makerCheckerableOnly"),
    grouped: bool = False,
    system: MakerCheckerSystem = Depends(get_system)
):
    """List gated-operation permissions, optionally bucketed for display"""
    permissions = system.permission_registry.list_permissions(maker_checkerable_only=maker_checkerable_only)

    if not grouped:
        return [permission.to_dict() for permission in permissions]

    return {
        name: {
            "permissions": [permission.to_dict() for permission in bucket["permissions"]],
            "enabled": bucket["enabled"],
            "total": bucket["total"],
        }
        for name, bucket in group_permissions(permissions).items()
    }


@router.put("")
def update_permissions(
    body: Any = Body(...),
    username: Optional[str] = Depends(get_current_username),
    system: MakerCheckerSystem = Depends(get_system)
):
    """Bulk-set which operations require checker approval"""
    # Accept the platform's own {"permissions": ...} envelope as well
    if isinstance(body, dict) and set(body) == {"permissions"} and \
            isinstance(body["permissions"], (dict, list)):
        body = body["permissions"]

    selections = system.permission_registry.update_permissions(body, actor=username)
    return {"success": True, "permissions": selections}
