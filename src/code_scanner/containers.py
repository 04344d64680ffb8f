"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from code_scanner.adapters.client_storage import JsonFileClientStorage
from code_scanner.adapters.memory_accounts import (
    InMemoryCredentialStore,
    InMemoryTokenRegistry,
)
from code_scanner.adapters.memory_scan_ledger import InMemoryScanLedger
from code_scanner.adapters.supabase_credential_store import SupabaseCredentialStore
from code_scanner.adapters.supabase_scan_ledger import SupabaseScanLedger
from code_scanner.adapters.supabase_token_registry import SupabaseTokenRegistry
from code_scanner.config import Settings, require_supabase
from code_scanner.domain.scanning import ScanState
from code_scanner.services.accounts import (
    AccountService,
    CredentialStore,
    TokenRegistry,
)
from code_scanner.services.ledger import ScanLedger
from code_scanner.services.scan_machine import CameraDevice, ScanStateMachine
from code_scanner.services.sessions import SessionManager
from code_scanner.services.storage import ClientStorage
from code_scanner.services.submissions import BearerIdentity, ScanSubmissionPipeline


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    account_service: AccountService
    scan_ledger: ScanLedger
    session_manager: SessionManager
    submission_pipeline: ScanSubmissionPipeline
    close_resources: Callable[[], Awaitable[None]]

    def pipeline_for_token(self, token: str | None) -> ScanSubmissionPipeline:
        """Build a pipeline that authenticates with a bearer token."""
        return ScanSubmissionPipeline(
            identity_source=BearerIdentity(self.account_service, token),
            ledger=self.scan_ledger,
        )

    def create_scanner(
        self,
        camera: CameraDevice,
        listener: Callable[[ScanState], None] | None = None,
    ) -> ScanStateMachine:
        """Create a scan screen bound to the local session."""
        return ScanStateMachine(
            camera=camera, pipeline=self.submission_pipeline, listener=listener
        )


def build_container(
    settings: Settings | None = None, storage: ClientStorage | None = None
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    credentials: CredentialStore
    tokens: TokenRegistry
    ledger: ScanLedger
    if resolved_settings.backend == "supabase":
        url, key = require_supabase(resolved_settings)
        supabase_client = create_client(url, key)
        credentials = SupabaseCredentialStore(supabase_client)
        tokens = SupabaseTokenRegistry(supabase_client)
        ledger = SupabaseScanLedger(supabase_client)
    else:
        credentials = (
            InMemoryCredentialStore.with_demo_user()
            if resolved_settings.seed_demo_user
            else InMemoryCredentialStore()
        )
        tokens = InMemoryTokenRegistry()
        ledger = InMemoryScanLedger()

    account_service = AccountService(credentials=credentials, tokens=tokens)
    session_manager = SessionManager(
        accounts=account_service,
        storage=storage or JsonFileClientStorage(Path(resolved_settings.session_file)),
    )
    submission_pipeline = ScanSubmissionPipeline(
        identity_source=session_manager, ledger=ledger
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=resolved_settings,
        account_service=account_service,
        scan_ledger=ledger,
        session_manager=session_manager,
        submission_pipeline=submission_pipeline,
        close_resources=close_resources,
    )
