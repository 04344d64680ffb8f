"""Scan ledger interface."""

from typing import Protocol
from uuid import UUID

from code_scanner.domain.models import Identity, ScanRecord


class ScanLedger(Protocol):
    """Append-only record of scanned code values.

    Code values are unique across all owners. ``record_if_absent`` must
    check and insert as one indivisible step; implementations never split
    it into a lookup followed by a write.
    """

    def contains(self, code_value: str) -> bool:
        """Return whether the code value has ever been recorded."""

    def record_if_absent(self, code_value: str, owner: Identity) -> ScanRecord:
        """Record the code, raising ``DuplicateCodeError`` if it exists."""

    def history(self, owner_id: UUID) -> list[ScanRecord]:
        """Return the records owned by an identity, oldest first."""
