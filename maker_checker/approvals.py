"""
Approval State Machine

    PENDING --approve--> APPROVED
    PENDING --reject---> REJECTED
    PENDING --delete---> (removed)

Terminal entries never move again. A checker must differ from the maker,
and must either be a super-checker or hold the entry's entity in their
search template. The platform performs the write; if another checker got
there first its rejection surfaces as InvalidStateTransition and is not
retried.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Union

from .entries import EntryStore
from .errors import EntryNotFound, Forbidden, InvalidRequest, InvalidStateTransition
from .logging_config import get_logger, log_action
from .models import MakerCheckerEntry, ResolveCommand, SuperCheckerUser
from .search_template import SearchTemplateProvider

logger = get_logger("maker_checker.approvals")


def parse_command(command: Union[str, ResolveCommand, None]) -> ResolveCommand:
    if isinstance(command, ResolveCommand):
        return command
    if isinstance(command, str):
        try:
            return ResolveCommand(command.strip().lower())
        except ValueError:
            pass
    raise InvalidRequest('command must be "approve" or "reject"')


def parse_audit_id(audit_id) -> int:
    if isinstance(audit_id, bool):
        raise InvalidRequest("auditId must be a positive integer")
    if isinstance(audit_id, str) and audit_id.strip().isdigit():
        audit_id = int(audit_id.strip())
    if not isinstance(audit_id, int) or audit_id <= 0:
        raise InvalidRequest("auditId must be a positive integer")
    return audit_id


class ApprovalStateMachine:
    """Resolves and deletes maker-checker entries on behalf of a checker"""

    def __init__(self, entry_store: EntryStore, template_provider: SearchTemplateProvider):
        self.entry_store = entry_store
        self.template_provider = template_provider

    def _check_scope(self, entry: MakerCheckerEntry, actor: SuperCheckerUser) -> None:
        if actor.is_super_checker:
            return
        template = self.template_provider.get_search_template()
        if not entry.entity_name or entry.entity_name not in template.entity_names:
            raise Forbidden(
                f"User {actor.username} may not check {entry.entity_name or 'unknown'} entries"
            )

    def _load(self, audit_id, actor: Optional[SuperCheckerUser]) -> MakerCheckerEntry:
        audit_id = parse_audit_id(audit_id)
        if actor is None:
            raise Forbidden("Acting user could not be resolved")
        return self.entry_store.get_entry(audit_id)

    def resolve(self, audit_id, command: Union[str, ResolveCommand],
                actor: Optional[SuperCheckerUser]) -> MakerCheckerEntry:
        """Approve or reject a pending entry.

        Returns:
            The entry in its terminal state, checked by the actor

        Raises:
            InvalidRequest: Bad auditId or command
            Forbidden: Actor is the maker, unresolved, or outside scope
            InvalidStateTransition: Entry is no longer pending
        """
        command = parse_command(command)
        entry = self._load(audit_id, actor)

        if entry.maker_id is not None and entry.maker_id == actor.id:
            raise Forbidden("A maker cannot check their own submission")
        self._check_scope(entry, actor)
        if not entry.is_pending:
            raise InvalidStateTransition(
                f"Entry {entry.audit_id} is already {entry.processing_result.value}"
            )

        self.entry_store.resolve(entry.audit_id, command)

        resolved = replace(
            entry,
            processing_result=command.outcome,
            checker_id=actor.id,
            checker_name=actor.username,
            checked_on_date=datetime.now(timezone.utc)
        )

        log_action(
            logger, "info", f"Entry {entry.audit_id} {resolved.processing_result.value}",
            user_id=actor.id,
            action=f"{command.value}_entry",
            resource=f"{entry.entity_name}:{entry.resource_id}",
            extra={"auditId": entry.audit_id, "makerId": entry.maker_id,
                   "actionName": entry.action_name}
        )
        return resolved

    def delete(self, audit_id, actor: Optional[SuperCheckerUser]) -> None:
        """Remove a pending entry without resolving it"""
        entry = self._load(audit_id, actor)

        self._check_scope(entry, actor)
        if not entry.is_pending:
            raise InvalidStateTransition(
                f"Entry {entry.audit_id} is already {entry.processing_result.value} and cannot be deleted"
            )

        self.entry_store.delete(entry.audit_id)

        log_action(
            logger, "info", f"Entry {entry.audit_id} deleted",
            user_id=actor.id,
            action="delete_entry",
            resource=f"{entry.entity_name}:{entry.resource_id}",
            extra={"auditId": entry.audit_id, "makerId": entry.maker_id}
        )

    def can_approve_entry(self, audit_id, actor: Optional[SuperCheckerUser]) -> bool:
        """Whether resolve() would pass its local checks for this actor"""
        try:
            entry = self._load(audit_id, actor)
            if entry.maker_id is not None and entry.maker_id == actor.id:
                return False
            self._check_scope(entry, actor)
        except (InvalidRequest, Forbidden, EntryNotFound):
            return False
        return entry.is_pending
