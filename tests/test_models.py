"""
Tests for maker-checker records and payload normalization
"""

import json
from datetime import datetime, timezone

import pytest

from maker_checker.models import (
    InboxFilters, MakerCheckerEntry, MakerCheckerImpact, Permission, ProcessingResult,
    ResolveCommand, SearchTemplate, SuperCheckerUser, normalize_int, parse_platform_datetime
)


class TestProcessingResult:

    @pytest.mark.parametrize("raw,expected", [
        ("awaiting.approval", ProcessingResult.PENDING),
        ("processingResultType.awaiting.approval", ProcessingResult.PENDING),
        ("Pending", ProcessingResult.PENDING),
        ("approved", ProcessingResult.APPROVED),
        ("processed", ProcessingResult.APPROVED),
        ("REJECTED", ProcessingResult.REJECTED),
        ("something.else", ProcessingResult.UNKNOWN),
        (None, ProcessingResult.UNKNOWN),
    ])
    def test_parse(self, raw, expected):
        assert ProcessingResult.parse(raw) is expected

    def test_terminal_states(self):
        assert ProcessingResult.APPROVED.is_terminal
        assert ProcessingResult.REJECTED.is_terminal
        assert not ProcessingResult.PENDING.is_terminal

    def test_command_outcomes(self):
        assert ResolveCommand.APPROVE.outcome is ProcessingResult.APPROVED
        assert ResolveCommand.REJECT.outcome is ProcessingResult.REJECTED


class TestNormalization:

    def test_normalize_int(self):
        assert normalize_int("42") == 42
        assert normalize_int(7) == 7
        assert normalize_int(3.0) == 3
        assert normalize_int("abc") is None
        assert normalize_int(True) is None

    def test_parse_iso_datetime(self):
        parsed = parse_platform_datetime("2024-03-01T10:00:00Z")
        assert parsed == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_parse_array_datetime(self):
        assert parse_platform_datetime([2024, 3, 1, 10, 30, 5]) == \
            datetime(2024, 3, 1, 10, 30, 5, tzinfo=timezone.utc)
        assert parse_platform_datetime([2024, 3, 1]) == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_parse_invalid_datetime(self):
        assert parse_platform_datetime("not a date") is None
        assert parse_platform_datetime(None) is None


class TestMakerCheckerEntry:

    def test_from_platform_record(self):
        entry = MakerCheckerEntry.from_dict({
            "id": "101",
            "maker": "7",
            "checker": 9,
            "processingResult": "approved",
            "madeOnDate": "2024-03-01T10:00:00Z",
            "checkedOnDate": [2024, 3, 2, 9, 0, 0],
            "resourceId": 55,
            "entityName": "LOAN",
            "actionName": "APPROVE",
            "commandAsJson": {"note": "ok"},
        })

        assert entry.audit_id == 101
        assert entry.maker_id == 7
        assert entry.checker_id == 9
        assert entry.processing_result is ProcessingResult.APPROVED
        assert entry.resource_id == "55"
        assert json.loads(entry.command_as_json) == {"note": "ok"}

    def test_pending_entry_has_no_checker(self):
        entry = MakerCheckerEntry.from_dict({
            "auditId": 5, "processingResult": "awaiting.approval",
            "checkerId": 9, "checkedOnDate": "2024-03-02T09:00:00Z", "checkerName": "checker",
        })
        assert entry.checker_id is None
        assert entry.checked_on_date is None
        assert entry.checker_name is None

    def test_to_dict_omits_json_unless_requested(self):
        entry = MakerCheckerEntry(
            audit_id=1, processing_result=ProcessingResult.PENDING,
            maker_id=7, entity_name="LOAN", command_as_json='{"a": 1}'
        )
        assert "commandAsJson" not in entry.to_dict(include_json=False)
        assert entry.to_dict()["commandAsJson"] == '{"a": 1}'
        assert entry.to_dict()["processingResult"] == "pending"
        assert "checkerId" not in entry.to_dict()


class TestSuperCheckerUser:

    def test_from_platform_user(self):
        user = SuperCheckerUser.from_dict({
            "id": 9, "username": "checker", "firstname": "Chris", "lastname": "Checker",
            "checkerSuperUser": True, "office": {"id": 2, "name": "Branch A"},
        })
        assert user.is_super_checker is True
        assert user.display_name == "Chris Checker"
        assert user.office_name == "Branch A"
        assert user.to_dict()["isSuperChecker"] is True

    def test_display_name_falls_back_to_username(self):
        user = SuperCheckerUser.from_dict({"id": 3, "username": "ops"})
        assert user.display_name == "ops"
        assert user.is_super_checker is False


class TestSmallRecords:

    def test_permission_from_dict(self):
        permission = Permission.from_dict({"code": "LOAN_APPROVE", "grouping": "portfolio", "selected": True})
        assert permission.to_dict() == {"code": "LOAN_APPROVE", "grouping": "portfolio", "selected": True}

    def test_search_template(self):
        template = SearchTemplate.from_dict({
            "entityNames": ["LOAN", " ", "CLIENT"],
            "actionNames": ["APPROVE"],
            "appUsers": [{"id": "1", "username": "mifos"}],
        })
        assert template.entity_names == ["LOAN", "CLIENT"]
        assert template.app_users == [{"id": 1, "username": "mifos"}]

    def test_impact_to_dict(self):
        impact = MakerCheckerImpact(total_permissions=5, enabled_permissions=2, total_users=4,
                                    super_checker_users=1, pending_approvals=3)
        assert impact.to_dict() == {
            "totalPermissions": 5, "enabledPermissions": 2, "totalUsers": 4,
            "superCheckerUsers": 1, "pendingApprovals": 3,
        }


class TestInboxFilters:

    def test_only_supplied_filters_sent(self):
        assert InboxFilters().to_query() == {}

    def test_query_names(self):
        query = InboxFilters(
            action_name="APPROVE", entity_name="LOAN", loan_id=12, maker_id=7,
            maker_date_time_from="2024-03-01", include_json=True,
            offset=0, limit=20, order_by="madeOnDate", sort_order="DESC", paged=True
        ).to_query()

        assert query == {
            "actionName": "APPROVE",
            "entityName": "LOAN",
            "loanid": "12",
            "makerId": "7",
            "makerDateTimeFrom": "2024-03-01",
            "includeJson": "true",
            "offset": "0",
            "limit": "20",
            "orderBy": "madeOnDate",
            "sortOrder": "DESC",
            "paged": "true",
        }
