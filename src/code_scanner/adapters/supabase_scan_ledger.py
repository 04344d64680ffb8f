"""Supabase-backed scan ledger."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from code_scanner.domain.models import Identity, ScanRecord
from code_scanner.errors import DuplicateCodeError
from code_scanner.services.ledger import ScanLedger

# Postgres unique_violation; ``scans.code_value`` carries a unique index.
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseScanLedger(ScanLedger):
    """Ledger stored in the ``scans`` table."""

    client: Client

    def contains(self, code_value: str) -> bool:
        """Return whether a row exists for the code value."""
        response = (
            self.client.table("scans")
            .select("id")
            .eq("code_value", code_value)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    def record_if_absent(self, code_value: str, owner: Identity) -> ScanRecord:
        """Insert the code; the unique index rejects duplicates atomically."""
        try:
            response = (
                self.client.table("scans")
                .insert(
                    {
                        "code_value": code_value,
                        "owner_id": str(owner.id),
                        "recorded_at": datetime.now(tz=UTC).isoformat(),
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicateCodeError(code_value) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to record scan in Supabase")
        return _record(response.data[0])

    def history(self, owner_id: UUID) -> list[ScanRecord]:
        """Return the owner's scans, oldest first."""
        response = (
            self.client.table("scans")
            .select("id, code_value, owner_id, recorded_at")
            .eq("owner_id", str(owner_id))
            .order("recorded_at")
            .execute()
        )
        return [_record(row) for row in response.data or []]


def _record(row: dict[str, object]) -> ScanRecord:
    return ScanRecord(
        id=UUID(str(row["id"])),
        code_value=str(row["code_value"]),
        owner=UUID(str(row["owner_id"])),
        recorded_at=datetime.fromisoformat(str(row["recorded_at"])),
    )
