"""
Inbox Query Engine

Builds the checker inbox: entries fetched from the platform, scoped to what
the acting user may see, narrowed by processing result and free-text search,
and ordered newest first.

Scopes:
    pending  (default) super-checkers see every entry; other users only
             entries whose entity is in the search template
    mine     entries the acting user submitted
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from .entries import EntryStore
from .errors import InvalidRequest
from .models import (
    InboxFilters, MakerCheckerEntry, ProcessingResult, SearchTemplate,
    SuperCheckerUser, normalize_string
)
from .search_template import SearchTemplateProvider

SCOPE_PENDING = "pending"
SCOPE_MINE = "mine"
SCOPES = (SCOPE_PENDING, SCOPE_MINE)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def get_maker_checker_summary(entries: List[MakerCheckerEntry]) -> Dict[str, int]:
    """Counts by processing result"""
    summary = {"pending": 0, "approved": 0, "rejected": 0, "total": len(entries)}
    for entry in entries:
        if entry.processing_result is ProcessingResult.PENDING:
            summary["pending"] += 1
        elif entry.processing_result is ProcessingResult.APPROVED:
            summary["approved"] += 1
        elif entry.processing_result is ProcessingResult.REJECTED:
            summary["rejected"] += 1
    return summary


def filter_awaiting_entries(entries: List[MakerCheckerEntry]) -> List[MakerCheckerEntry]:
    return [entry for entry in entries if entry.is_pending]


def matches_query(entry: MakerCheckerEntry, query: Optional[str]) -> bool:
    """Case-insensitive substring match over the entry's identifying fields"""
    needle = (query or "").strip().lower()
    if not needle:
        return True

    haystack = [
        str(entry.audit_id) if entry.audit_id else "",
        entry.entity_name or "",
        entry.action_name or "",
        str(entry.maker_id) if entry.maker_id is not None else "",
        entry.resource_id or "",
        entry.maker_name or "",
        entry.office_name or "",
        entry.client_name or "",
    ]
    return any(needle in value.lower() for value in haystack if value)


def sort_entries(entries: List[MakerCheckerEntry]) -> List[MakerCheckerEntry]:
    """Newest first; equal timestamps by descending auditId"""
    return sorted(
        entries,
        key=lambda e: (e.made_on_date or _EPOCH, e.audit_id),
        reverse=True
    )


def parse_command_as_json(command_as_json: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode a captured command; None when absent or not a JSON object"""
    if not command_as_json:
        return None
    try:
        parsed = json.loads(command_as_json)
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None
    return {"actionName": normalize_string(parsed.get("actionName")), "payload": parsed}


def parse_scope(scope: Optional[str]) -> str:
    scope = (scope or SCOPE_PENDING).strip().lower()
    if scope not in SCOPES:
        raise InvalidRequest(f"scope must be one of: {', '.join(SCOPES)}")
    return scope


def parse_processing_result(
        processing_result: Optional[Union[str, ProcessingResult]]) -> Optional[ProcessingResult]:
    """None when no filter is asked for; unrecognised values are rejected"""
    if not processing_result:
        return None
    if isinstance(processing_result, ProcessingResult):
        return processing_result
    wanted = ProcessingResult.parse(processing_result)
    if wanted is ProcessingResult.UNKNOWN and str(processing_result).strip().lower() != "unknown":
        raise InvalidRequest(f"Unknown processingResult: {processing_result}")
    return wanted


def scope_entries(entries: List[MakerCheckerEntry], scope: str,
                  actor: Optional[SuperCheckerUser],
                  template: SearchTemplate) -> List[MakerCheckerEntry]:
    """Restrict fetched entries to what the actor may see"""
    if scope == SCOPE_MINE:
        if actor is None:
            return []
        return [entry for entry in entries if entry.maker_id == actor.id]

    if actor is not None and actor.is_super_checker:
        return list(entries)

    checkable = set(template.entity_names)
    return [entry for entry in entries if entry.entity_name and entry.entity_name in checkable]


@dataclass
class InboxView:
    """Everything the inbox screen renders"""
    items: List[MakerCheckerEntry]
    search_template: SearchTemplate
    summary: Dict[str, int]
    current_user: Optional[SuperCheckerUser] = None
    include_json: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict(include_json=self.include_json) for item in self.items],
            "searchTemplate": self.search_template.to_dict(),
            "summary": self.summary,
            "currentUser": self.current_user.to_dict() if self.current_user else None,
        }


class InboxQueryEngine:
    """Scoped, filtered and sorted views over maker-checker entries"""

    def __init__(self, entry_store: EntryStore, template_provider: SearchTemplateProvider):
        self.entry_store = entry_store
        self.template_provider = template_provider

    def get_inbox_view(self, filters: Optional[InboxFilters] = None,
                       actor: Optional[SuperCheckerUser] = None,
                       scope: Optional[str] = None,
                       processing_result: Optional[Union[str, ProcessingResult]] = None,
                       q: Optional[str] = None) -> InboxView:
        """Inbox for one actor.

        The summary counts the scoped entries before the processing-result
        and search filters are applied.
        """
        scope = parse_scope(scope)
        wanted = parse_processing_result(processing_result)

        filters = filters or InboxFilters()
        entries = self.entry_store.list_entries(filters)
        template = self.template_provider.get_search_template()

        scoped = scope_entries(entries, scope, actor, template)
        summary = get_maker_checker_summary(scoped)

        items = scoped
        if wanted is not None:
            items = [entry for entry in items if entry.processing_result is wanted]
        if q:
            items = [entry for entry in items if matches_query(entry, q)]

        return InboxView(
            items=sort_entries(items),
            search_template=template,
            summary=summary,
            current_user=actor,
            include_json=filters.include_json
        )

    def get_inbox(self, filters: Optional[InboxFilters] = None,
                  actor: Optional[SuperCheckerUser] = None,
                  scope: Optional[str] = None,
                  processing_result: Optional[Union[str, ProcessingResult]] = None,
                  q: Optional[str] = None) -> List[MakerCheckerEntry]:
        return self.get_inbox_view(filters, actor, scope, processing_result, q).items
