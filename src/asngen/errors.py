from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "ASN not found") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class InvalidASNError(UserError):
    """Raised when an ASN string does not match the configured format."""

    def __init__(self, message: str = "Invalid ASN") -> None:
        super().__init__(message)


class LookupDisabledError(UserError):
    """Raised when an ASN lookup is requested but no lookup URL is configured."""

    def __init__(self, message: str = "ASN lookup is disabled") -> None:
        super().__init__(message)


class ConfigurationDriftError(Exception):
    """Raised when the configuration changed incompatibly since the last run.

    Changing the prefix or the number of namespace digits would make
    previously issued ASNs unparseable, so the process must not start.
    """


class StoreError(Exception):
    """Base class for key-value store errors raised by this package."""


class StoreBusyError(StoreError):
    """Raised by a store backend when it is temporarily locked or busy.

    Transactions hitting this error are retried after a short delay.
    """


class TransactionRetriesExhaustedError(StoreError):
    """Raised when an atomic transaction could not be committed within the attempt limit."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Atomic transaction not committed after {attempts} attempts")
        self.attempts = attempts
