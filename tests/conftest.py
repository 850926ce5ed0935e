"""
Shared fixtures: an in-process fake of the banking core platform served
through httpx.MockTransport, and the service wired against it.
"""

import json
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient

from maker_checker.api_modular import app
from maker_checker.api_modular.auth import MakerCheckerSystem, get_system
from maker_checker.client import PlatformClient
from maker_checker.config import MakerCheckerConfig
from maker_checker.credentials import basic_authorization, basic_username

BASE_URL = "http://platform.test/fineract-provider/api"
API_PREFIX = "/fineract-provider/api"


def platform_error(status: int, code: str, message: str) -> httpx.Response:
    """Error body in the platform's global format"""
    return httpx.Response(status, json={
        "developerMessage": message,
        "httpStatusCode": str(status),
        "defaultUserMessage": message,
        "userMessageGlobalisationCode": code,
        "errors": [{
            "developerMessage": message,
            "defaultUserMessage": message,
            "userMessageGlobalisationCode": code,
            "parameterName": "id",
        }],
    })


class FakePlatform:
    """Minimal stateful stand-in for the platform's maker-checker API"""

    def __init__(self):
        self.global_enabled = False
        self.permissions: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[int, Dict[str, Any]] = {}
        self.entries: Dict[int, Dict[str, Any]] = {}
        self.entity_names: List[str] = ["LOAN", "CLIENT"]
        self.action_names: List[str] = ["APPROVE", "CREATE", "DISBURSE"]
        self.commands: Dict[tuple, Dict[str, str]] = {}
        self.requests: List[httpx.Request] = []
        self.templates: Dict[int, List[str]] = {}
        self.race_on_resolve = set()
        self._next_id = 1000

    # Seeding helpers

    def add_permission(self, code: str, grouping: str = "portfolio", selected: bool = False):
        self.permissions[code] = {"code": code, "grouping": grouping, "selected": selected}

    def add_user(self, user_id: int, username: str, super_checker: bool = False,
                 firstname: str = "", lastname: str = "", office: str = "Head Office"):
        self.users[user_id] = {
            "id": user_id,
            "username": username,
            "firstname": firstname,
            "lastname": lastname,
            "email": f"{username}@bank.test",
            "checkerSuperUser": super_checker,
            "office": {"id": 1, "name": office},
        }

    def add_entry(self, audit_id: int, entity_name: str, action_name: str, maker: int,
                  result: str = "awaiting.approval", checker: Optional[int] = None,
                  made_on: str = "2024-03-01T10:00:00Z", resource_id: Any = None,
                  command: Optional[Dict[str, Any]] = None, **extra):
        entry = {
            "id": audit_id,
            "entityName": entity_name,
            "actionName": action_name,
            "maker": maker,
            "madeOnDate": made_on,
            "processingResult": result,
            "resourceId": resource_id,
        }
        if checker is not None:
            entry["checker"] = checker
            entry["checkedOnDate"] = made_on
        if command is not None:
            entry["commandAsJson"] = json.dumps(command)
        entry.update(extra)
        self.entries[audit_id] = entry
        return entry

    def register_command(self, method: str, path: str, action_name: str, entity_name: str):
        """Declare which gated action a write path performs"""
        self.commands[(method.upper(), path)] = {"actionName": action_name, "entityName": entity_name}

    def user_id_for(self, username: str) -> Optional[int]:
        for user in self.users.values():
            if user["username"] == username:
                return user["id"]
        return None

    def authenticate(self, request: httpx.Request) -> Optional[int]:
        """Platform user behind the request's Basic or Bearer credentials"""
        authorization = request.headers.get("authorization")
        if authorization and authorization.lower().startswith("bearer "):
            claims = jwt.decode(authorization.split(" ", 1)[1], options={"verify_signature": False})
            return self.user_id_for(claims.get("sub"))
        return self.user_id_for(basic_username(authorization))

    def set_template(self, username: str, entity_names: List[str]):
        """Search template entity names for one user; others get entity_names"""
        self.templates[self.user_id_for(username)] = entity_names

    # Transport

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len(API_PREFIX):]
        params = {k: v[0] for k, v in parse_qs(request.url.query.decode()).items()}
        body = json.loads(request.content) if request.content else None
        method = request.method
        user_id = self.authenticate(request)
        if user_id is None:
            return platform_error(401, "error.msg.not.authenticated", "Unauthenticated. Please login.")

        if path == "/v1/configurations" and method == "GET":
            return httpx.Response(200, json={"globalConfiguration": [
                {"name": "amazon-S3", "enabled": False},
                {"name": "maker-checker", "enabled": self.global_enabled},
            ]})
        if path == "/v1/configurations/name/maker-checker" and method == "PUT":
            self.global_enabled = body["enabled"]
            return httpx.Response(200, json={"resourceId": 1, "changes": {"enabled": body["enabled"]}})

        if path == "/v1/permissions" and method == "GET":
            return httpx.Response(200, json=list(self.permissions.values()))
        if path == "/v1/permissions" and method == "PUT":
            for code, selected in body["permissions"].items():
                if code not in self.permissions:
                    return platform_error(400, "error.msg.permission.code.invalid", f"Unknown permission {code}")
            for code, selected in body["permissions"].items():
                self.permissions[code]["selected"] = selected
            return httpx.Response(200, json={"changes": {"permissions": body["permissions"]}})

        if path == "/v1/users" and method == "GET":
            return httpx.Response(200, json=list(self.users.values()))
        if path.startswith("/v1/users/") and method == "PUT":
            target_id = int(path.rsplit("/", 1)[1])
            if target_id not in self.users:
                return platform_error(404, "error.msg.user.id.invalid", f"User with identifier {target_id} does not exist")
            self.users[target_id]["checkerSuperUser"] = body["checkerSuperUser"]
            return httpx.Response(200, json={"resourceId": target_id})

        if path == "/v1/makercheckers/searchtemplate" and method == "GET":
            return httpx.Response(200, json={
                "entityNames": self.templates.get(user_id, self.entity_names),
                "actionNames": self.action_names,
                "appUsers": [{"id": u["id"], "username": u["username"]} for u in self.users.values()],
            })
        if path == "/v1/makercheckers" and method == "GET":
            entries = list(self.entries.values())
            if params.get("paged") == "true":
                return httpx.Response(200, json={"totalFilteredRecords": len(entries), "pageItems": entries})
            return httpx.Response(200, json=entries)
        if path.startswith("/v1/makercheckers/") and method == "POST":
            return self._resolve(int(path.rsplit("/", 1)[1]), params.get("command"), user_id)
        if path.startswith("/v1/makercheckers/") and method == "DELETE":
            audit_id = int(path.rsplit("/", 1)[1])
            if audit_id not in self.entries:
                return self._audit_not_found(audit_id)
            del self.entries[audit_id]
            return httpx.Response(200, json={"resourceId": audit_id})

        if path.startswith("/v1/audits/") and method == "GET":
            audit_id = int(path.rsplit("/", 1)[1])
            if audit_id not in self.entries:
                return self._audit_not_found(audit_id)
            return httpx.Response(200, json=self.entries[audit_id])

        command = self.commands.get((method, path))
        if command is not None:
            return self._execute(command, path, body, user_id)

        return httpx.Response(404, json={"message": f"No route for {method} {path}"})

    def _audit_not_found(self, audit_id: int) -> httpx.Response:
        return platform_error(404, "error.msg.audit.id.invalid", f"Audit with identifier {audit_id} does not exist")

    def _resolve(self, audit_id: int, command: Optional[str], user_id: int) -> httpx.Response:
        if audit_id not in self.entries:
            return self._audit_not_found(audit_id)
        entry = self.entries[audit_id]

        # Another checker gets there first
        if audit_id in self.race_on_resolve:
            entry["processingResult"] = "approved"
            entry["checker"] = 99

        if entry["processingResult"] != "awaiting.approval":
            return platform_error(
                400, "error.msg.command.already.processed",
                f"Command with id {audit_id} has already been processed"
            )
        entry["processingResult"] = "approved" if command == "approve" else "rejected"
        entry["checker"] = user_id
        entry["checkedOnDate"] = "2024-03-05T12:00:00Z"
        return httpx.Response(200, json={"resourceId": audit_id})

    def _execute(self, command: Dict[str, str], path: str, body: Any, user_id: int) -> httpx.Response:
        self._next_id += 1
        resource_id = path.rstrip("/").rsplit("/", 1)[-1]
        resource_id = int(resource_id) if resource_id.isdigit() else None
        gated = self.global_enabled and self.permissions.get(command["actionName"], {}).get("selected")
        if gated:
            self.add_entry(
                self._next_id, command["entityName"], command["actionName"].split("_", 1)[-1],
                maker=user_id, resource_id=resource_id, command=body
            )
            return httpx.Response(200, json={"commandId": self._next_id, "resourceId": resource_id,
                                             "rollbackTransaction": True})
        return httpx.Response(200, json={"resourceId": resource_id or self._next_id, "changes": body or {}})


def seed_platform(fake: FakePlatform) -> FakePlatform:
    fake.add_permission("LOAN_APPROVE", selected=True)
    fake.add_permission("LOAN_DISBURSE")
    fake.add_permission("CLIENT_CREATE")
    fake.add_permission("SAVINGSACCOUNT_APPROVE", grouping="transaction_savings")
    fake.add_permission("SAVINGSPRODUCT_CREATE", grouping="products")
    fake.add_permission("GLACCOUNT_CREATE", grouping="accounting")

    fake.add_user(1, "mifos", super_checker=True, firstname="App", lastname="Administrator")
    fake.add_user(7, "maker", firstname="Mary", lastname="Maker")
    fake.add_user(9, "checker", firstname="Chris", lastname="Checker", office="Branch A")
    fake.add_user(11, "auditor", super_checker=True)

    fake.add_entry(101, "LOAN", "APPROVE", maker=7, made_on="2024-03-01T10:00:00Z", resource_id=55,
                   command={"actionName": "APPROVE", "approvedOnDate": "01 March 2024"},
                   makerName="maker", officeName="Head Office", clientName="Alice Borrower")
    fake.add_entry(102, "CLIENT", "CREATE", maker=9, made_on="2024-03-02T09:00:00Z", resource_id="17")
    fake.add_entry(103, "LOAN", "DISBURSE", maker=7, result="approved", checker=9,
                   made_on="2024-02-28T08:30:00Z", resource_id=56)
    fake.add_entry(104, "GLACCOUNT", "CREATE", maker=9, result="rejected", checker=11,
                   made_on="2024-03-02T09:00:00Z")
    fake.add_entry(105, "GLACCOUNT", "UPDATE", maker=7, made_on="2024-03-03T16:45:00Z", resource_id=3)
    return fake


@pytest.fixture
def fake_platform():
    return seed_platform(FakePlatform())


@pytest.fixture
def transport(fake_platform):
    return httpx.MockTransport(fake_platform.handle)


@pytest.fixture
def platform_client(transport):
    client = PlatformClient(base_url=BASE_URL, transport=transport)
    yield client
    client.close()


@pytest.fixture
def config():
    return MakerCheckerConfig(platform_base_url=BASE_URL, auth_enabled=False)


@pytest.fixture
def system(config, transport):
    test_system = MakerCheckerSystem(config=config, transport=transport)
    yield test_system
    test_system.close()


@pytest.fixture
def client(system):
    """TestClient with the service wired to the fake platform"""
    app.dependency_overrides[get_system] = lambda: system
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
