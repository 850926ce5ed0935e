"""
Entry Store Module

Remote access to maker-checker entries held by the platform: the inbox
listing, single entry lookup through the audit trail, and the checker
commands. The platform owns the single authoritative write path; a second
checker racing on the same entry is rejected there.
"""

from typing import Any, List, Optional

from .client import PlatformClient
from .models import InboxFilters, MakerCheckerEntry, ResolveCommand

MAKERCHECKERS_PATH = "/v1/makercheckers"
AUDITS_PATH = "/v1/audits"


def unwrap_entries(response: Any) -> List[MakerCheckerEntry]:
    """Normalize a list, pageItems or events payload; drop entries without an auditId"""
    if isinstance(response, list):
        items = response
    elif isinstance(response, dict):
        items = response.get("pageItems")
        if not isinstance(items, list):
            items = response.get("events")
        if not isinstance(items, list):
            items = []
    else:
        items = []

    entries = [MakerCheckerEntry.from_dict(item) for item in items if isinstance(item, dict)]
    return [entry for entry in entries if entry.audit_id]


class EntryStore:
    """Maker-checker entries on the platform"""

    def __init__(self, client: PlatformClient):
        self.client = client

    def list_entries(self, filters: Optional[InboxFilters] = None) -> List[MakerCheckerEntry]:
        filters = filters or InboxFilters()
        response = self.client.get(MAKERCHECKERS_PATH, params=filters.to_query())
        return unwrap_entries(response)

    def get_entry(self, audit_id: int) -> MakerCheckerEntry:
        """Current state of one entry, pending or resolved

        Raises:
            EntryNotFound: The platform has no such entry
        """
        response = self.client.get(f"{AUDITS_PATH}/{audit_id}")
        entry = MakerCheckerEntry.from_dict(response or {})
        if not entry.audit_id:
            entry.audit_id = audit_id
        return entry

    def resolve(self, audit_id: int, command: ResolveCommand) -> Any:
        return self.client.post(f"{MAKERCHECKERS_PATH}/{audit_id}", params={"command": command.value})

    def delete(self, audit_id: int) -> Any:
        return self.client.delete(f"{MAKERCHECKERS_PATH}/{audit_id}")
