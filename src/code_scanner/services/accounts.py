"""Credential checks, registration and token bookkeeping."""

import logging
import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Protocol

from code_scanner.domain.models import Identity, TokenGrant
from code_scanner.errors import (
    EmailTakenError,
    InvalidCredentialsError,
    RegistrationError,
    ScannerError,
    TransientError,
    UsernameTakenError,
)

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Persistence interface for user credentials."""

    def validate(self, username: str, password: str) -> Identity | None:
        """Return the identity when the pair matches, otherwise None."""

    def find_by_username(self, username: str) -> Identity | None:
        """Return the identity for a username, if present."""

    def find_by_email(self, email: str) -> Identity | None:
        """Return the identity for an email address, if present."""

    def create(self, username: str, email: str, password: str) -> Identity:
        """Create and return a new identity.

        Raises ``UsernameTakenError`` or ``EmailTakenError`` when a row with
        the same username or email appears concurrently.
        """


class TokenRegistry(Protocol):
    """Issues session tokens and answers whether they are still valid."""

    def issue(self, identity: Identity) -> TokenGrant:
        """Mint a new token for the identity."""

    def resolve(self, token: str) -> TokenGrant | None:
        """Return the grant for a token the registry currently recognises."""

    def revoke(self, token: str) -> None:
        """Forget a token; unknown tokens are ignored."""


def new_token() -> str:
    """Return an opaque random session token."""
    return secrets.token_urlsafe(32)


@contextmanager
def _backend_call(action: str) -> Iterator[None]:
    """Re-raise collaborator faults as ``TransientError``; domain errors pass."""
    try:
        yield
    except ScannerError:
        raise
    except Exception as exc:
        logger.warning("Account backend failed to %s", action, exc_info=True)
        raise TransientError(f"Could not {action}") from exc


@dataclass
class AccountService:
    """Application service for account lifecycle actions.

    Emails are compared and stored lowercased. Backend failures surface as
    ``TransientError`` so callers can tell them apart from refusals.
    """

    credentials: CredentialStore
    tokens: TokenRegistry

    def authenticate(self, username: str, password: str) -> TokenGrant:
        """Check credentials and issue a token for the matching identity."""
        if not username.strip() or not password:
            raise InvalidCredentialsError("Username and password are required")
        with _backend_call("authenticate"):
            identity = self.credentials.validate(username.strip(), password)
            if identity is None:
                logger.info("Rejected login for %s", username)
                raise InvalidCredentialsError("Invalid username or password")
            return self.tokens.issue(identity)

    def register(self, username: str, email: str, password: str) -> Identity:
        """Create a new identity, refusing taken usernames and emails."""
        cleaned_username = username.strip()
        cleaned_email = email.strip().lower()
        if not cleaned_username or not cleaned_email or not password:
            raise RegistrationError("Username, email and password are required")
        with _backend_call("register"):
            if self.credentials.find_by_username(cleaned_username):
                raise UsernameTakenError("Username already taken")
            if self.credentials.find_by_email(cleaned_email):
                raise EmailTakenError("Email already registered")
            identity = self.credentials.create(
                cleaned_username, cleaned_email, password
            )
        logger.info("Registered identity %s", identity.id)
        return identity

    def verify(self, token: str) -> TokenGrant | None:
        """Return the grant for a token if it is currently valid."""
        if not token:
            return None
        with _backend_call("validate the session"):
            return self.tokens.resolve(token)

    def revoke(self, token: str) -> None:
        """Invalidate a token."""
        with _backend_call("revoke the session"):
            self.tokens.revoke(token)
