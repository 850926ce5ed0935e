"""
Gated command submission endpoint
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from .auth import MakerCheckerSystem, get_current_username, get_system, resolve_actor
from .schemas import SubmissionRequest


router = APIRouter()


@router.post("/submissions")
def submit_command(
    request: SubmissionRequest,
    username: Optional[str] = Depends(get_current_username),
    system: MakerCheckerSystem = Depends(get_system)
):
    """Execute a command, or capture it for approval when it is gated"""
    system.command_gate.validate(request.action_name, request.method, request.path)

    actor = resolve_actor(system, username)
    outcome = system.command_gate.submit(
        actor,
        action_name=request.action_name,
        entity_name=request.entity_name,
        method=request.method,
        path=request.path,
        payload=request.payload
    )

    if outcome["executed"]:
        return {"executed": True, "result": outcome["result"]}

    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={"executed": False, "entry": outcome["entry"].to_dict()}
    )
