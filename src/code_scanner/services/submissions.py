"""Scan submission pipeline."""

import logging
from dataclasses import dataclass
from typing import Protocol

from code_scanner.domain.models import Identity, ScanRecord, SubmissionAttempt
from code_scanner.domain.scanning import AcceptedScan, DuplicateScan, ScanOutcome
from code_scanner.errors import (
    DuplicateCodeError,
    NotAuthenticatedError,
    TransientError,
)
from code_scanner.services.accounts import AccountService
from code_scanner.services.ledger import ScanLedger

logger = logging.getLogger(__name__)


class IdentitySource(Protocol):
    """Answers who is currently signed in."""

    async def current_identity(self) -> Identity | None:
        """Return the identity of a currently valid session, if any."""


@dataclass
class BearerIdentity(IdentitySource):
    """Identity source backed by a bearer token presented with a request."""

    accounts: AccountService
    token: str | None

    async def current_identity(self) -> Identity | None:
        """Resolve the bearer token against the token registry."""
        if not self.token:
            return None
        grant = self.accounts.verify(self.token)
        return grant.identity if grant else None


@dataclass
class ScanSubmissionPipeline:
    """Records a scanned code for the signed-in identity."""

    identity_source: IdentitySource
    ledger: ScanLedger

    async def submit(self, code_value: str) -> ScanOutcome:
        """Submit a code once; duplicates are a result, not an error."""
        identity = await self._require_identity()
        attempt = SubmissionAttempt(code_value=code_value, requested_by=identity)
        try:
            record = self.ledger.record_if_absent(
                attempt.code_value, attempt.requested_by
            )
        except DuplicateCodeError:
            logger.info("Duplicate scan %r from %s", code_value, identity.id)
            return DuplicateScan(code_value=code_value)
        except Exception as exc:
            logger.warning("Ledger write failed for %r", code_value, exc_info=True)
            raise TransientError("Failed to submit scan") from exc
        logger.info("Recorded scan %s for %s", record.id, identity.id)
        return AcceptedScan(record=record)

    async def check(self, code_value: str) -> bool:
        """Return whether the code has already been recorded."""
        await self._require_identity()
        try:
            return self.ledger.contains(code_value)
        except Exception as exc:
            logger.warning("Ledger lookup failed for %r", code_value, exc_info=True)
            raise TransientError("Failed to check duplicate") from exc

    async def history(self) -> list[ScanRecord]:
        """Return the scans recorded by the signed-in identity."""
        identity = await self._require_identity()
        try:
            return self.ledger.history(identity.id)
        except Exception as exc:
            logger.warning("Ledger history failed for %s", identity.id, exc_info=True)
            raise TransientError("Failed to fetch scan history") from exc

    async def _require_identity(self) -> Identity:
        try:
            identity = await self.identity_source.current_identity()
        except TransientError:
            raise
        except Exception as exc:
            logger.warning("Identity lookup failed", exc_info=True)
            raise TransientError("Could not verify the session") from exc
        if identity is None:
            raise NotAuthenticatedError("User not authenticated")
        return identity
