"""
Maker-checker inbox endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from .auth import MakerCheckerSystem, get_current_username, get_system, resolve_actor
from .schemas import DeleteEntryRequest, ResolveEntryRequest
from ..approvals import parse_audit_id, parse_command
from ..errors import InvalidRequest
from ..inbox import parse_command_as_json, parse_processing_result, parse_scope
from ..models import InboxFilters


router = APIRouter()


@router.get("/inbox")
def get_inbox(
    scope: Optional[str] = None,
    processing_result: Optional[str] = Query(None, alias="processingResult"),
    q: Optional[str] = None,
    action_name: Optional[str] = Query(None, alias="actionName"),
    entity_name: Optional[str] = Query(None, alias="entityName"),
    resource_id: Optional[int] = Query(None, alias="resourceId"),
    maker_id: Optional[int] = Query(None, alias="makerId"),
    maker_date_time_from: Optional[str] = Query(None, alias="makerDateTimeFrom"),
    maker_date_time_to: Optional[str] = Query(None, alias="makerDateTimeTo"),
    office_id: Optional[int] = Query(None, alias="officeId"),
    client_id: Optional[int] = Query(None, alias="clientId"),
    loan_id: Optional[int] = Query(None, alias="loanId"),
    group_id: Optional[int] = Query(None, alias="groupId"),
    savings_account_id: Optional[int] = Query(None, alias="savingsAccountId"),
    include_json: bool = Query(False, alias="includeJson"),
    offset: Optional[int] = Query(None, ge=0),
    limit: Optional[int] = Query(None, ge=1),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    paged: Optional[bool] = None,
    username: Optional[str] = Depends(get_current_username),
    system: MakerCheckerSystem = Depends(get_system)
):
    """Entries the caller may see, newest first, with summary counts"""
    if sort_order and sort_order.upper() not in ("ASC", "DESC"):
        raise InvalidRequest("sortOrder must be ASC or DESC")
    scope = parse_scope(scope)
    wanted = parse_processing_result(processing_result)

    filters = InboxFilters(
        action_name=action_name,
        entity_name=entity_name,
        resource_id=resource_id,
        maker_id=maker_id,
        maker_date_time_from=maker_date_time_from,
        maker_date_time_to=maker_date_time_to,
        office_id=office_id,
        client_id=client_id,
        loan_id=loan_id,
        group_id=group_id,
        savings_account_id=savings_account_id,
        include_json=include_json,
        offset=offset,
        limit=limit,
        order_by=order_by,
        sort_order=sort_order.upper() if sort_order else None,
        paged=paged
    )

    actor = resolve_actor(system, username)
    view = system.inbox.get_inbox_view(
        filters, actor=actor, scope=scope, processing_result=wanted, q=q
    )
    result = view.to_dict()

    if include_json:
        for item, entry in zip(result["items"], view.items):
            item["command"] = parse_command_as_json(entry.command_as_json)

    return result


@router.post("/inbox")
def resolve_entry(
    request: ResolveEntryRequest,
    username: Optional[str] = Depends(get_current_username),
    system: MakerCheckerSystem = Depends(get_system)
):
    """Approve or reject a pending entry"""
    command = parse_command(request.command)
    audit_id = parse_audit_id(request.audit_id)

    actor = resolve_actor(system, username)
    entry = system.approvals.resolve(audit_id, command, actor)
    return {"success": True, "entry": entry.to_dict(include_json=False)}


@router.delete("/inbox")
def delete_entry(
    request: DeleteEntryRequest,
    username: Optional[str] = Depends(get_current_username),
    system: MakerCheckerSystem = Depends(get_system)
):
    """Delete a pending entry without resolving it"""
    audit_id = parse_audit_id(request.audit_id)

    actor = resolve_actor(system, username)
    system.approvals.delete(audit_id, actor)
    return {"success": True, "auditId": audit_id}


@router.get("/inbox/{audit_id}/can-approve")
def can_approve_entry(
    audit_id: int,
    username: Optional[str] = Depends(get_current_username),
    system: MakerCheckerSystem = Depends(get_system)
):
    """Whether the caller may resolve this entry"""
    actor = resolve_actor(system, username)
    return {"auditId": audit_id, "canApprove": system.approvals.can_approve_entry(audit_id, actor)}


@router.get("/searchtemplate")
def get_search_template(system: MakerCheckerSystem = Depends(get_system)):
    """Entity and action names the caller may check"""
    return system.search_templates.get_search_template().to_dict()
