"""In-memory scan ledger."""

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from code_scanner.domain.models import Identity, ScanRecord
from code_scanner.errors import DuplicateCodeError
from code_scanner.services.ledger import ScanLedger


@dataclass
class InMemoryScanLedger(ScanLedger):
    """Ledger keyed by code value, serialised with a lock."""

    _records: dict[str, ScanRecord] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def contains(self, code_value: str) -> bool:
        with self._lock:
            return code_value in self._records

    def record_if_absent(self, code_value: str, owner: Identity) -> ScanRecord:
        """Insert the code unless any owner already recorded it."""
        with self._lock:
            if code_value in self._records:
                raise DuplicateCodeError(code_value)
            record = ScanRecord(
                id=uuid4(),
                code_value=code_value,
                owner=owner.id,
                recorded_at=datetime.now(tz=UTC),
            )
            self._records[code_value] = record
        return record

    def history(self, owner_id: UUID) -> list[ScanRecord]:
        with self._lock:
            records = [r for r in self._records.values() if r.owner == owner_id]
        return sorted(records, key=lambda record: record.recorded_at)
