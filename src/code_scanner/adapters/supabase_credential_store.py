"""Supabase-backed credential store."""

from dataclasses import dataclass
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client
from werkzeug.security import check_password_hash, generate_password_hash

from code_scanner.domain.models import Identity
from code_scanner.errors import EmailTakenError, UsernameTakenError
from code_scanner.services.accounts import CredentialStore

# Postgres unique_violation; ``users.username`` and ``users.email`` are unique.
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseCredentialStore(CredentialStore):
    """Supabase implementation for user credentials.

    Emails are stored lowercased and matched exactly.
    """

    client: Client

    def validate(self, username: str, password: str) -> Identity | None:
        """Return the identity when the stored hash matches."""
        response = (
            self.client.table("users")
            .select("id, username, email, password_hash")
            .eq("username", username)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        if not check_password_hash(str(row["password_hash"]), password):
            return None
        return _identity(row)

    def find_by_username(self, username: str) -> Identity | None:
        """Return the user with this username, if present."""
        response = (
            self.client.table("users")
            .select("id, username, email")
            .eq("username", username)
            .limit(1)
            .execute()
        )
        return _identity(response.data[0]) if response.data else None

    def find_by_email(self, email: str) -> Identity | None:
        """Return the user with this email, if present."""
        response = (
            self.client.table("users")
            .select("id, username, email")
            .eq("email", email.lower())
            .limit(1)
            .execute()
        )
        return _identity(response.data[0]) if response.data else None

    def create(self, username: str, email: str, password: str) -> Identity:
        """Create a user row and return it."""
        try:
            response = (
                self.client.table("users")
                .insert(
                    {
                        "username": username,
                        "email": email.lower(),
                        "password_hash": generate_password_hash(password),
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code != _UNIQUE_VIOLATION:
                raise
            constraint = f"{exc.message or ''} {exc.details or ''}"
            if "email" in constraint:
                raise EmailTakenError("Email already registered") from exc
            raise UsernameTakenError("Username already taken") from exc
        if not response.data:
            raise RuntimeError("Failed to create user in Supabase")
        return _identity(response.data[0])


def _identity(row: dict[str, object]) -> Identity:
    return Identity(
        id=UUID(str(row["id"])),
        username=str(row["username"]),
        email=str(row["email"]),
    )
