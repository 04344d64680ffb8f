"""Client-side session lifecycle: login, restore and logout."""

import logging
from dataclasses import dataclass
from uuid import UUID

from pydantic import BaseModel, ValidationError

from code_scanner.domain.models import Identity, Session
from code_scanner.errors import (
    AuthError,
    InvalidSessionError,
    NoSessionError,
    TransientError,
)
from code_scanner.services.accounts import AccountService
from code_scanner.services.storage import ClientStorage

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = "auth_token"
USER_DATA_KEY = "user_data"


class StoredIdentity(BaseModel):
    """Serialized identity kept next to the session token."""

    id: UUID
    username: str
    email: str

    @classmethod
    def from_identity(cls, identity: Identity) -> "StoredIdentity":
        return cls(id=identity.id, username=identity.username, email=identity.email)

    def to_identity(self) -> Identity:
        return Identity(id=self.id, username=self.username, email=self.email)


@dataclass
class SessionManager:
    """Owns the single persisted session of this client.

    The token and the serialized identity are always written, read and
    cleared together through ``ClientStorage.set_many`` / ``get_many`` /
    ``remove_many``. Local
    state is never trusted on its own: every restore asks the account
    service whether the token is still recognised.
    """

    accounts: AccountService
    storage: ClientStorage

    async def login(self, username: str, password: str) -> Session:
        """Authenticate, persist the new session and return it."""
        grant = self.accounts.authenticate(username, password)
        stored = StoredIdentity.from_identity(grant.identity)
        try:
            self.storage.set_many(
                {
                    AUTH_TOKEN_KEY: grant.token,
                    USER_DATA_KEY: stored.model_dump_json(),
                }
            )
        except OSError as exc:
            logger.warning("Failed to persist session", exc_info=True)
            raise TransientError("Could not save the session") from exc
        logger.info("Logged in identity %s", grant.identity.id)
        return Session(
            token=grant.token, identity=grant.identity, issued_at=grant.issued_at
        )

    async def signup(self, username: str, email: str, password: str) -> Identity:
        """Register a new identity. The caller logs in separately."""
        return self.accounts.register(username, email, password)

    async def restore_session(self) -> Session:
        """Re-validate the persisted session with the account service."""
        try:
            persisted = self.storage.get_many([AUTH_TOKEN_KEY, USER_DATA_KEY])
        except OSError as exc:
            logger.warning("Failed to read persisted session", exc_info=True)
            raise TransientError("Could not read the session") from exc
        token = persisted.get(AUTH_TOKEN_KEY)
        user_data = persisted.get(USER_DATA_KEY)
        if not token or not user_data:
            if token or user_data:
                self._clear()
            raise NoSessionError("No persisted session")

        try:
            stored = StoredIdentity.model_validate_json(user_data)
        except ValidationError as exc:
            self._clear()
            raise InvalidSessionError("Persisted identity is unreadable") from exc

        grant = self.accounts.verify(token)
        if grant is None or grant.identity.id != stored.id:
            logger.info("Discarding invalid session for identity %s", stored.id)
            self._clear()
            raise InvalidSessionError("Session is no longer valid")
        return Session(
            token=grant.token, identity=grant.identity, issued_at=grant.issued_at
        )

    async def current_identity(self) -> Identity | None:
        """Return the identity of a currently valid session, if any."""
        try:
            session = await self.restore_session()
        except AuthError:
            return None
        return session.identity

    def logout(self) -> None:
        """Clear the persisted session. Safe to call repeatedly."""
        try:
            self._clear()
        except OSError:
            logger.warning("Failed to clear persisted session", exc_info=True)

    def _clear(self) -> None:
        self.storage.remove_many([AUTH_TOKEN_KEY, USER_DATA_KEY])
