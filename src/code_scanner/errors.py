"""Exception hierarchy for code_scanner."""


class ScannerError(Exception):
    """Base exception for all code_scanner errors."""


class ConfigurationError(ScannerError):
    """Invalid or missing configuration."""


class AuthError(ScannerError):
    """Authentication or session failure."""


class InvalidCredentialsError(AuthError):
    """Username and password do not match a known identity."""


class NoSessionError(AuthError):
    """No persisted session exists."""


class InvalidSessionError(AuthError):
    """A persisted session exists but is no longer recognised."""


class RegistrationError(AuthError):
    """Signup was refused."""


class UsernameTakenError(RegistrationError):
    """Another identity already uses the username."""


class EmailTakenError(RegistrationError):
    """Another identity already uses the email address."""


class SubmissionError(ScannerError):
    """A scan submission could not be completed."""


class NotAuthenticatedError(SubmissionError):
    """A submission was attempted without a valid session."""


class TransientError(ScannerError):
    """A collaborator failed with an I/O or network error."""


class DuplicateCodeError(ScannerError):
    """The code value is already recorded in the ledger.

    This is an expected outcome rather than a fault; the submission
    pipeline turns it into a duplicate result.
    """

    def __init__(self, code_value: str) -> None:
        self.code_value = code_value
        super().__init__(f"Code already recorded: {code_value!r}")
