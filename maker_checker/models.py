"""
Maker-Checker Data Model

Records exchanged with the platform: gated-operation permissions, the global
toggle, maker-checker entries, checker users and the derived impact report.
Payloads from the platform are loosely typed; every from_dict here tolerates
missing fields, numeric strings and the alternative field names the platform
uses across versions.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ProcessingResult(Enum):
    """Processing state of a maker-checker entry"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> 'ProcessingResult':
        """Map a platform processing result string to a state"""
        if isinstance(value, ProcessingResult):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        normalized = value.strip().lower()
        if normalized.startswith("processingresulttype."):
            normalized = normalized[len("processingresulttype."):]
        return _PROCESSING_RESULT_ALIASES.get(normalized, cls.UNKNOWN)

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingResult.APPROVED, ProcessingResult.REJECTED)


_PROCESSING_RESULT_ALIASES = {
    "awaiting.approval": ProcessingResult.PENDING,
    "awaiting_approval": ProcessingResult.PENDING,
    "pending": ProcessingResult.PENDING,
    "approved": ProcessingResult.APPROVED,
    "processed": ProcessingResult.APPROVED,
    "rejected": ProcessingResult.REJECTED,
}


class ResolveCommand(Enum):
    """Checker decision on a pending entry"""
    APPROVE = "approve"
    REJECT = "reject"

    @property
    def outcome(self) -> ProcessingResult:
        if self is ResolveCommand.APPROVE:
            return ProcessingResult.APPROVED
        return ProcessingResult.REJECTED


def normalize_string(value: Any) -> Optional[str]:
    """Trimmed string, numbers as text, anything else None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def normalize_int(value: Any) -> Optional[int]:
    """Integer from an int or a numeric string, else None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            return None
    return None


def parse_platform_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp or the platform's [y, m, d, H, M, S] array"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    elif isinstance(value, (list, tuple)) and len(value) >= 3:
        try:
            parsed = datetime(*[int(part) for part in value[:6]])
        except (TypeError, ValueError):
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class GlobalConfig:
    """Platform-wide maker-checker switch"""
    enabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled}


@dataclass
class Permission:
    """Gated operation definition"""
    code: str
    grouping: str = ""
    selected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "grouping": self.grouping, "selected": self.selected}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Permission':
        return cls(
            code=normalize_string(data.get("code")) or "",
            grouping=normalize_string(data.get("grouping")) or "",
            selected=bool(data.get("selected", False))
        )


@dataclass
class MakerCheckerEntry:
    """A captured command awaiting (or past) checker resolution"""
    audit_id: int
    processing_result: ProcessingResult
    maker_id: Optional[int] = None
    checker_id: Optional[int] = None
    made_on_date: Optional[datetime] = None
    checked_on_date: Optional[datetime] = None
    resource_id: Optional[str] = None
    entity_name: Optional[str] = None
    action_name: Optional[str] = None
    maker_name: Optional[str] = None
    checker_name: Optional[str] = None
    office_name: Optional[str] = None
    client_name: Optional[str] = None
    group_name: Optional[str] = None
    loan_account_no: Optional[str] = None
    savings_account_no: Optional[str] = None
    command_as_json: Optional[str] = None

    def __post_init__(self):
        # A pending entry has no checker yet
        if self.processing_result is ProcessingResult.PENDING:
            self.checker_id = None
            self.checker_name = None
            self.checked_on_date = None

    @property
    def is_pending(self) -> bool:
        return self.processing_result is ProcessingResult.PENDING

    def to_dict(self, include_json: bool = True) -> Dict[str, Any]:
        """Serialize using the platform's camelCase field names"""
        result = {
            "auditId": self.audit_id,
            "makerId": self.maker_id,
            "checkerId": self.checker_id,
            "madeOnDate": self.made_on_date.isoformat() if self.made_on_date else None,
            "checkedOnDate": self.checked_on_date.isoformat() if self.checked_on_date else None,
            "processingResult": self.processing_result.value,
            "resourceId": self.resource_id,
            "entityName": self.entity_name,
            "actionName": self.action_name,
            "makerName": self.maker_name,
            "checkerName": self.checker_name,
            "officeName": self.office_name,
            "clientName": self.client_name,
            "groupName": self.group_name,
            "loanAccountNo": self.loan_account_no,
            "savingsAccountNo": self.savings_account_no,
        }
        if include_json and self.command_as_json is not None:
            result["commandAsJson"] = self.command_as_json
        return {k: v for k, v in result.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MakerCheckerEntry':
        """Build an entry from a platform audit/maker-checker record"""
        command = data.get("commandAsJson")
        if isinstance(command, (dict, list)):
            command = json.dumps(command)

        return cls(
            audit_id=normalize_int(data.get("auditId", data.get("id"))) or 0,
            processing_result=ProcessingResult.parse(data.get("processingResult")),
            maker_id=normalize_int(data.get("makerId", data.get("maker"))),
            checker_id=normalize_int(data.get("checkerId", data.get("checker"))),
            made_on_date=parse_platform_datetime(data.get("madeOnDate")),
            checked_on_date=parse_platform_datetime(data.get("checkedOnDate")),
            resource_id=normalize_string(data.get("resourceId")),
            entity_name=normalize_string(data.get("entityName")),
            action_name=normalize_string(data.get("actionName")),
            maker_name=normalize_string(data.get("makerName")),
            checker_name=normalize_string(data.get("checkerName")),
            office_name=normalize_string(data.get("officeName")),
            client_name=normalize_string(data.get("clientName")),
            group_name=normalize_string(data.get("groupName")),
            loan_account_no=normalize_string(data.get("loanAccountNo")),
            savings_account_no=normalize_string(data.get("savingsAccountNo")),
            command_as_json=normalize_string(command)
        )


@dataclass
class SuperCheckerUser:
    """Platform user as seen by the super-checker screen"""
    id: int
    username: str
    is_super_checker: bool = False
    display_name: Optional[str] = None
    email: Optional[str] = None
    office_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "displayName": self.display_name,
            "email": self.email,
            "isSuperChecker": self.is_super_checker,
            "officeName": self.office_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SuperCheckerUser':
        """Build from a platform app-user record"""
        username = normalize_string(data.get("username")) or ""
        full_name = " ".join(
            part for part in (normalize_string(data.get("firstname")),
                              normalize_string(data.get("lastname"))) if part
        )
        office = data.get("office") if isinstance(data.get("office"), dict) else {}
        return cls(
            id=normalize_int(data.get("id")) or 0,
            username=username,
            is_super_checker=bool(data.get("checkerSuperUser", data.get("isSuperChecker", False))),
            display_name=normalize_string(data.get("displayName")) or full_name or username,
            email=normalize_string(data.get("email")) or "",
            office_name=normalize_string(data.get("officeName")) or normalize_string(office.get("name")) or ""
        )


@dataclass
class SearchTemplate:
    """Entity and action names the acting user may check"""
    entity_names: List[str] = field(default_factory=list)
    action_names: List[str] = field(default_factory=list)
    app_users: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entityNames": list(self.entity_names),
            "actionNames": list(self.action_names),
            "appUsers": list(self.app_users),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'SearchTemplate':
        data = data or {}
        users = []
        for user in data.get("appUsers") or []:
            if isinstance(user, dict):
                users.append({"id": normalize_int(user.get("id")), "username": normalize_string(user.get("username"))})
        return cls(
            entity_names=[name for name in (normalize_string(n) for n in data.get("entityNames") or []) if name],
            action_names=[name for name in (normalize_string(n) for n in data.get("actionNames") or []) if name],
            app_users=users
        )


@dataclass
class MakerCheckerImpact:
    """Derived counts for the maker-checker overview"""
    total_permissions: int = 0
    enabled_permissions: int = 0
    total_users: int = 0
    super_checker_users: int = 0
    pending_approvals: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPermissions": self.total_permissions,
            "enabledPermissions": self.enabled_permissions,
            "totalUsers": self.total_users,
            "superCheckerUsers": self.super_checker_users,
            "pendingApprovals": self.pending_approvals,
        }


@dataclass
class InboxFilters:
    """Upstream query filters for the maker-checker inbox"""
    action_name: Optional[str] = None
    entity_name: Optional[str] = None
    resource_id: Optional[int] = None
    maker_id: Optional[int] = None
    maker_date_time_from: Optional[str] = None
    maker_date_time_to: Optional[str] = None
    office_id: Optional[int] = None
    client_id: Optional[int] = None
    loan_id: Optional[int] = None
    group_id: Optional[int] = None
    savings_account_id: Optional[int] = None
    include_json: bool = False
    offset: Optional[int] = None
    limit: Optional[int] = None
    order_by: Optional[str] = None
    sort_order: Optional[str] = None
    paged: Optional[bool] = None

    def to_query(self) -> Dict[str, str]:
        """Platform query parameters; only supplied filters are sent"""
        query: Dict[str, str] = {}
        if self.action_name:
            query["actionName"] = self.action_name
        if self.entity_name:
            query["entityName"] = self.entity_name
        for key, value in (("resourceId", self.resource_id),
                           ("makerId", self.maker_id),
                           ("officeId", self.office_id),
                           ("clientId", self.client_id),
                           ("loanid", self.loan_id),
                           ("groupId", self.group_id),
                           ("savingsAccountId", self.savings_account_id),
                           ("offset", self.offset),
                           ("limit", self.limit)):
            if value is not None:
                query[key] = str(value)
        if self.maker_date_time_from:
            query["makerDateTimeFrom"] = self.maker_date_time_from
        if self.maker_date_time_to:
            query["makerDateTimeTo"] = self.maker_date_time_to
        if self.include_json:
            query["includeJson"] = "true"
        if self.order_by:
            query["orderBy"] = self.order_by
        if self.sort_order:
            query["sortOrder"] = self.sort_order
        if self.paged is not None:
            query["paged"] = "true" if self.paged else "false"
        return query
