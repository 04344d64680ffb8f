"""Request and response bodies for the REST API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from code_scanner.domain.models import Identity, ScanRecord


class UserPayload(BaseModel):
    id: UUID
    username: str
    email: str

    @classmethod
    def from_identity(cls, identity: Identity) -> "UserPayload":
        return cls(id=identity.id, username=identity.username, email=identity.email)


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: UserPayload


class SignupRequest(BaseModel):
    username: str
    email: str
    password: str


class ScanSubmitRequest(BaseModel):
    """Scan submission; ``timestamp`` is the client's clock, informational only."""

    data: str = Field(min_length=1)
    timestamp: datetime | None = None


class ScanPayload(BaseModel):
    id: UUID
    data: str
    scanned_at: datetime = Field(serialization_alias="scannedAt")
    user_id: UUID = Field(serialization_alias="userId")

    @classmethod
    def from_record(cls, record: ScanRecord) -> "ScanPayload":
        return cls(
            id=record.id,
            data=record.code_value,
            scanned_at=record.recorded_at,
            user_id=record.owner,
        )
