"""
Global maker-checker toggle endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends

from .auth import MakerCheckerSystem, get_current_username, get_system
from .schemas import GlobalConfigRequest


router = APIRouter()


@router.get("/global")
def get_global_config(system: MakerCheckerSystem = Depends(get_system)):
    """Read the platform-wide maker-checker switch"""
    return system.global_toggle.get_global_config().to_dict()


@router.put("/global")
def set_global_config(
    request: GlobalConfigRequest,
    username: Optional[str] = Depends(get_current_username),
    system: MakerCheckerSystem = Depends(get_system)
):
    """Enable or disable maker-checker platform-wide"""
    return system.global_toggle.set_global_config(request.enabled, actor=username).to_dict()
