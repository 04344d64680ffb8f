"""In-memory credential store and token registry."""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from werkzeug.security import check_password_hash, generate_password_hash

from code_scanner.domain.models import Identity, TokenGrant
from code_scanner.errors import EmailTakenError, UsernameTakenError
from code_scanner.services.accounts import (
    CredentialStore,
    TokenRegistry,
    new_token,
)

DEMO_USERNAME = "demo"
DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo123"


@dataclass
class _UserRow:
    identity: Identity
    password_hash: str


@dataclass
class InMemoryCredentialStore(CredentialStore):
    """Credential store kept in process memory."""

    _users: dict[UUID, _UserRow] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def with_demo_user(cls) -> "InMemoryCredentialStore":
        """Return a store seeded with the demo account."""
        store = cls()
        store.create(DEMO_USERNAME, DEMO_EMAIL, DEMO_PASSWORD)
        return store

    def validate(self, username: str, password: str) -> Identity | None:
        """Return the identity when the password matches."""
        with self._lock:
            row = self._find(lambda identity: identity.username == username)
        if row is None or not check_password_hash(row.password_hash, password):
            return None
        return row.identity

    def find_by_username(self, username: str) -> Identity | None:
        with self._lock:
            row = self._find(lambda identity: identity.username == username)
        return row.identity if row else None

    def find_by_email(self, email: str) -> Identity | None:
        with self._lock:
            row = self._find(_same_email(email))
        return row.identity if row else None

    def create(self, username: str, email: str, password: str) -> Identity:
        """Create a user; the uniqueness check and insert share one lock."""
        password_hash = generate_password_hash(password)
        identity = Identity(id=uuid4(), username=username, email=email)
        with self._lock:
            if self._find(lambda existing: existing.username == username):
                raise UsernameTakenError("Username already taken")
            if self._find(_same_email(email)):
                raise EmailTakenError("Email already registered")
            self._users[identity.id] = _UserRow(
                identity=identity, password_hash=password_hash
            )
        return identity

    def _find(self, predicate: Callable[[Identity], bool]) -> _UserRow | None:
        # Caller holds the lock.
        for row in self._users.values():
            if predicate(row.identity):
                return row
        return None


def _same_email(email: str) -> Callable[[Identity], bool]:
    lowered = email.lower()
    return lambda identity: identity.email.lower() == lowered


@dataclass
class InMemoryTokenRegistry(TokenRegistry):
    """Token registry kept in process memory."""

    _grants: dict[str, TokenGrant] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def issue(self, identity: Identity) -> TokenGrant:
        grant = TokenGrant(
            token=new_token(), identity=identity, issued_at=datetime.now(tz=UTC)
        )
        with self._lock:
            self._grants[grant.token] = grant
        return grant

    def resolve(self, token: str) -> TokenGrant | None:
        with self._lock:
            return self._grants.get(token)

    def revoke(self, token: str) -> None:
        with self._lock:
            self._grants.pop(token, None)
