"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import UUID

import pytest

from code_scanner.adapters.client_storage import InMemoryClientStorage
from code_scanner.adapters.memory_accounts import (
    InMemoryCredentialStore,
    InMemoryTokenRegistry,
)
from code_scanner.adapters.memory_scan_ledger import InMemoryScanLedger
from code_scanner.config import Settings
from code_scanner.containers import AppContainer, build_container
from code_scanner.domain.models import Identity, ScanRecord
from code_scanner.services.accounts import AccountService
from code_scanner.services.ledger import ScanLedger
from code_scanner.services.scan_machine import CameraDevice
from code_scanner.services.sessions import SessionManager
from code_scanner.services.submissions import ScanSubmissionPipeline


@dataclass
class FakeCamera(CameraDevice):
    """Camera that lets tests push decoded text and failures."""

    starts: int = 0
    stops: int = 0
    running: bool = False
    start_error: BaseException | None = None
    stop_error: BaseException | None = None
    _on_decoded: Callable[[str], None] | None = None
    _on_error: Callable[[BaseException | str], None] | None = None

    def start(self) -> None:
        self.starts += 1
        if self.start_error is not None:
            raise self.start_error
        self.running = True

    def stop(self) -> None:
        self.stops += 1
        if self.stop_error is not None:
            raise self.stop_error
        self.running = False

    def subscribe(
        self,
        on_decoded: Callable[[str], None],
        on_error: Callable[[BaseException | str], None],
    ) -> Callable[[], None]:
        self._on_decoded = on_decoded
        self._on_error = on_error

        def unsubscribe() -> None:
            self._on_decoded = None
            self._on_error = None

        return unsubscribe

    @property
    def subscribed(self) -> bool:
        return self._on_decoded is not None

    def decode(self, text: str) -> None:
        """Deliver a decoded frame, even if the camera was asked to stop."""
        if self._on_decoded is not None:
            self._on_decoded(text)

    def fail(self, error: BaseException | str) -> None:
        if self._on_error is not None:
            self._on_error(error)


@dataclass
class CountingLedger(ScanLedger):
    """Wraps a ledger and records write attempts."""

    inner: ScanLedger = field(default_factory=InMemoryScanLedger)
    writes: list[str] = field(default_factory=list)

    def contains(self, code_value: str) -> bool:
        return self.inner.contains(code_value)

    def record_if_absent(self, code_value: str, owner: Identity) -> ScanRecord:
        self.writes.append(code_value)
        return self.inner.record_if_absent(code_value, owner)

    def history(self, owner_id: UUID) -> list[ScanRecord]:
        return self.inner.history(owner_id)


class FailingLedger(ScanLedger):
    """Ledger whose backend is unreachable."""

    def contains(self, code_value: str) -> bool:
        raise ConnectionError("ledger offline")

    def record_if_absent(self, code_value: str, owner: Identity) -> ScanRecord:
        raise ConnectionError("ledger offline")

    def history(self, owner_id: UUID) -> list[ScanRecord]:
        raise ConnectionError("ledger offline")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        backend="memory",
        session_file=str(tmp_path / "session.json"),
        seed_demo_user=True,
    )


@pytest.fixture
def account_service() -> AccountService:
    return AccountService(
        credentials=InMemoryCredentialStore.with_demo_user(),
        tokens=InMemoryTokenRegistry(),
    )


@pytest.fixture
def storage() -> InMemoryClientStorage:
    return InMemoryClientStorage()


@pytest.fixture
def session_manager(
    account_service: AccountService, storage: InMemoryClientStorage
) -> SessionManager:
    return SessionManager(accounts=account_service, storage=storage)


@pytest.fixture
def ledger() -> CountingLedger:
    return CountingLedger()


@pytest.fixture
def pipeline(
    session_manager: SessionManager, ledger: CountingLedger
) -> ScanSubmissionPipeline:
    return ScanSubmissionPipeline(identity_source=session_manager, ledger=ledger)


@pytest.fixture
def camera() -> FakeCamera:
    return FakeCamera()


@pytest.fixture
def container(settings: Settings, storage: InMemoryClientStorage) -> AppContainer:
    return build_container(settings, storage=storage)
