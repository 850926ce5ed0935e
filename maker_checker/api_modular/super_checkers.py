"""
Super-checker and impact endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from .auth import MakerCheckerSystem, get_current_username, get_system
from .schemas import SuperCheckerRequest
from ..errors import InvalidRequest


router = APIRouter()


@router.get("/super-checkers")
def list_super_checkers(
    report_type: Optional[str] = Query(None, alias="type"),
    system: MakerCheckerSystem = Depends(get_system)
):
    """List users with their super-checker flag, or the impact report with type=impact"""
    if report_type == "impact":
        return system.impact_report.get_impact().to_dict()
    if report_type:
        raise InvalidRequest(f"Unsupported type: {report_type}")
    return [user.to_dict() for user in system.directory.list_super_checkers()]


@router.put("/super-checkers")
def set_super_checker(
    request: SuperCheckerRequest,
    username: Optional[str] = Depends(get_current_username),
    system: MakerCheckerSystem = Depends(get_system)
):
    """Grant or revoke super-checker rights"""
    system.directory.set_super_checker_status(request.user_id, request.is_super_checker, actor=username)
    return {"success": True, "userId": request.user_id, "isSuperChecker": request.is_super_checker}


@router.get("/impact")
def get_impact(system: MakerCheckerSystem = Depends(get_system)):
    """How far maker-checker currently reaches"""
    return system.impact_report.get_impact().to_dict()
