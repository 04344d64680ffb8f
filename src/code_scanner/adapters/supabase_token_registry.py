"""Supabase-backed session token registry."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from code_scanner.domain.models import Identity, TokenGrant
from code_scanner.services.accounts import TokenRegistry, new_token


@dataclass
class SupabaseTokenRegistry(TokenRegistry):
    """Stores issued tokens in the ``auth_tokens`` table."""

    client: Client

    def issue(self, identity: Identity) -> TokenGrant:
        """Insert a fresh token row for the identity."""
        issued_at = datetime.now(tz=UTC)
        token = new_token()
        self.client.table("auth_tokens").insert(
            {
                "token": token,
                "user_id": str(identity.id),
                "issued_at": issued_at.isoformat(),
            }
        ).execute()
        return TokenGrant(token=token, identity=identity, issued_at=issued_at)

    def resolve(self, token: str) -> TokenGrant | None:
        """Return the grant for a stored token and its user."""
        response = (
            self.client.table("auth_tokens")
            .select("token, user_id, issued_at")
            .eq("token", token)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        users = (
            self.client.table("users")
            .select("id, username, email")
            .eq("id", row["user_id"])
            .limit(1)
            .execute()
        )
        if not users.data:
            return None
        user = users.data[0]
        return TokenGrant(
            token=row["token"],
            identity=Identity(
                id=UUID(user["id"]), username=user["username"], email=user["email"]
            ),
            issued_at=datetime.fromisoformat(row["issued_at"]),
        )

    def revoke(self, token: str) -> None:
        """Delete the token row."""
        self.client.table("auth_tokens").delete().eq("token", token).execute()
