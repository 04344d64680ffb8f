"""Domain models for identities, sessions and scans."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class Identity:
    """A uniquely identified principal."""

    id: UUID
    username: str
    email: str


@dataclass(frozen=True)
class TokenGrant:
    """A token currently recognised for an identity."""

    token: str
    identity: Identity
    issued_at: datetime


@dataclass(frozen=True)
class Session:
    """An authenticated session held by the client."""

    token: str
    identity: Identity
    issued_at: datetime


@dataclass(frozen=True)
class ScanRecord:
    """A code value recorded once in the ledger."""

    id: UUID
    code_value: str
    owner: UUID
    recorded_at: datetime


@dataclass(frozen=True)
class SubmissionAttempt:
    """A single scan submission in flight."""

    code_value: str
    requested_by: Identity
