"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import pytest
from postgrest.exceptions import APIError
from werkzeug.security import generate_password_hash

from code_scanner.adapters.supabase_credential_store import SupabaseCredentialStore
from code_scanner.adapters.supabase_scan_ledger import SupabaseScanLedger
from code_scanner.adapters.supabase_token_registry import SupabaseTokenRegistry
from code_scanner.domain.models import Identity
from code_scanner.errors import DuplicateCodeError, EmailTakenError, UsernameTakenError


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": [], "delete": []}
    )
    errors: dict[str, Exception] = field(default_factory=dict)
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        if action in self.errors:
            raise self.errors.pop(action)
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _identity() -> Identity:
    return Identity(id=uuid4(), username="demo", email="demo@example.com")


def test_credential_store_create_and_validate() -> None:
    client = FakeSupabaseClient()
    users = client.table("users")
    user_id = str(uuid4())
    users.queue(
        "insert", [{"id": user_id, "username": "demo", "email": "demo@example.com"}]
    )
    users.queue(
        "select",
        [
            {
                "id": user_id,
                "username": "demo",
                "email": "demo@example.com",
                "password_hash": generate_password_hash("demo123"),
            }
        ],
    )

    store = SupabaseCredentialStore(client)
    created = store.create("demo", "demo@example.com", "demo123")
    validated = store.validate("demo", "demo123")

    assert str(created.id) == user_id
    assert users.last_payload["password_hash"] != "demo123"
    assert validated == created


def test_credential_store_rejects_wrong_password() -> None:
    client = FakeSupabaseClient()
    client.table("users").queue(
        "select",
        [
            {
                "id": str(uuid4()),
                "username": "demo",
                "email": "demo@example.com",
                "password_hash": generate_password_hash("demo123"),
            }
        ],
    )

    store = SupabaseCredentialStore(client)

    assert store.validate("demo", "wrongpass") is None
    assert store.find_by_email("nobody@example.com") is None


def test_credential_store_matches_email_exactly() -> None:
    client = FakeSupabaseClient()
    users = client.table("users")

    store = SupabaseCredentialStore(client)
    store.find_by_email("John_Doe%@Example.com")

    assert users.last_filters == [("email", "john_doe%@example.com")]


def test_credential_store_maps_unique_violations() -> None:
    client = FakeSupabaseClient()
    users = client.table("users")
    store = SupabaseCredentialStore(client)

    users.errors["insert"] = APIError(
        {
            "code": "23505",
            "message": "duplicate key value violates unique constraint",
            "details": "Key (email)=(demo@example.com) already exists.",
            "hint": "",
        }
    )
    with pytest.raises(EmailTakenError):
        store.create("other", "Demo@example.com", "pw")

    users.errors["insert"] = APIError(
        {
            "code": "23505",
            "message": "duplicate key value violates unique constraint",
            "details": "Key (username)=(demo) already exists.",
            "hint": "",
        }
    )
    with pytest.raises(UsernameTakenError):
        store.create("demo", "fresh@example.com", "pw")
    assert users.last_payload["email"] == "fresh@example.com"


def test_token_registry_issue_resolve_revoke() -> None:
    client = FakeSupabaseClient()
    identity = _identity()
    registry = SupabaseTokenRegistry(client)

    grant = registry.issue(identity)
    tokens = client.table("auth_tokens")
    assert tokens.last_payload["user_id"] == str(identity.id)

    tokens.queue(
        "select",
        [
            {
                "token": grant.token,
                "user_id": str(identity.id),
                "issued_at": grant.issued_at.isoformat(),
            }
        ],
    )
    client.table("users").queue(
        "select",
        [{"id": str(identity.id), "username": "demo", "email": "demo@example.com"}],
    )
    resolved = registry.resolve(grant.token)

    assert resolved == grant
    registry.revoke(grant.token)
    assert ("token", grant.token) in tokens.last_filters
    assert registry.resolve("unknown") is None


def test_scan_ledger_records_and_maps_unique_violation() -> None:
    client = FakeSupabaseClient()
    scans = client.table("scans")
    owner = _identity()
    recorded_at = datetime.now(tz=UTC).isoformat()
    scan_id = str(uuid4())
    scans.queue(
        "insert",
        [
            {
                "id": scan_id,
                "code_value": "CODE-1",
                "owner_id": str(owner.id),
                "recorded_at": recorded_at,
            }
        ],
    )

    ledger = SupabaseScanLedger(client)
    record = ledger.record_if_absent("CODE-1", owner)

    assert str(record.id) == scan_id
    assert record.owner == owner.id

    scans.errors["insert"] = APIError(
        {"code": "23505", "message": "duplicate key value", "details": "", "hint": ""}
    )
    with pytest.raises(DuplicateCodeError):
        ledger.record_if_absent("CODE-1", owner)


def test_scan_ledger_reraises_other_api_errors() -> None:
    client = FakeSupabaseClient()
    client.table("scans").errors["insert"] = APIError(
        {"code": "42501", "message": "permission denied", "details": "", "hint": ""}
    )

    with pytest.raises(APIError):
        SupabaseScanLedger(client).record_if_absent("CODE-1", _identity())


def test_scan_ledger_contains_and_history() -> None:
    client = FakeSupabaseClient()
    scans = client.table("scans")
    owner = _identity()
    scans.queue("select", [{"id": str(uuid4())}])
    scans.queue(
        "select",
        [
            {
                "id": str(uuid4()),
                "code_value": "CODE-1",
                "owner_id": str(owner.id),
                "recorded_at": "2026-01-01T10:00:00+00:00",
            }
        ],
    )

    ledger = SupabaseScanLedger(client)

    assert ledger.contains("CODE-1")
    history = ledger.history(owner.id)
    assert [record.code_value for record in history] == ["CODE-1"]
    assert not ledger.contains("CODE-2")
