"""Scan outcomes and the scan screen state machine values."""

from dataclasses import dataclass
from enum import StrEnum

from code_scanner.domain.models import ScanRecord

ACCEPTED_MESSAGE = "QR code scanned successfully"
DUPLICATE_MESSAGE = "This QR code has already been scanned"
REJECTED_MESSAGE = "Failed to submit scan"
NOT_SIGNED_IN_MESSAGE = "You are not signed in. Please log in and try again."


@dataclass(frozen=True)
class AcceptedScan:
    """The code was recorded for the first time."""

    record: ScanRecord
    message: str = ACCEPTED_MESSAGE


@dataclass(frozen=True)
class DuplicateScan:
    """The code had already been recorded by some user."""

    code_value: str
    message: str = DUPLICATE_MESSAGE


ScanOutcome = AcceptedScan | DuplicateScan


class CameraFailure(StrEnum):
    """Classified camera failure reasons."""

    PERMISSION_DENIED = "permission_denied"
    DEVICE_NOT_FOUND = "device_not_found"
    OTHER = "other"


CAMERA_FAILURE_MESSAGES = {
    CameraFailure.PERMISSION_DENIED: (
        "Camera access denied. Please allow camera access in your browser settings."
    ),
    CameraFailure.DEVICE_NOT_FOUND: "No camera found on this device.",
    CameraFailure.OTHER: "Failed to access camera. Please try again.",
}


# States


@dataclass(frozen=True)
class Scanning:
    """Camera is live and waiting for a decoded code."""


@dataclass(frozen=True)
class Processing:
    """A decoded code is being submitted."""

    code_value: str


@dataclass(frozen=True)
class Accepted:
    code_value: str
    message: str
    record: ScanRecord


@dataclass(frozen=True)
class Duplicate:
    code_value: str
    message: str


@dataclass(frozen=True)
class Rejected:
    """Submission failed; ``error`` is kept for diagnostics only."""

    code_value: str
    message: str
    error: BaseException


@dataclass(frozen=True)
class CameraError:
    failure: CameraFailure
    message: str


ScanState = Scanning | Processing | Accepted | Duplicate | Rejected | CameraError
TERMINAL_STATES = (Accepted, Duplicate, Rejected)


# Events


@dataclass(frozen=True)
class Decoded:
    """The camera decoded a code."""

    text: str


@dataclass(frozen=True)
class SubmissionSucceeded:
    outcome: ScanOutcome


@dataclass(frozen=True)
class SubmissionFailed:
    error: BaseException


@dataclass(frozen=True)
class CameraFailed:
    failure: CameraFailure


@dataclass(frozen=True)
class ScanAnother:
    """User asked to scan another code from a result screen."""


@dataclass(frozen=True)
class RetryCamera:
    """User asked to retry after a camera failure."""


ScanEvent = (
    Decoded
    | SubmissionSucceeded
    | SubmissionFailed
    | CameraFailed
    | ScanAnother
    | RetryCamera
)
