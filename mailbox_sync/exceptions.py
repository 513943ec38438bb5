"""
Custom exceptions for the mailbox sync application.

Synchronizers raise subclasses of ``SyncFailure``; each carries the
``FailureKind`` the status translator uses to classify it. Everything else
raised during a mailbox sync is treated as an internal error.
"""

from .enums import FailureKind


class MailboxSyncError(Exception):
    """Base exception for all errors in the mailbox sync app."""

    pass


class SyncFailure(MailboxSyncError):
    """A classified failure reported by a mailbox synchronizer."""

    kind = FailureKind.OTHER


class IoError(SyncFailure):
    """Raised for network or transport failures talking to the mail server."""

    kind = FailureKind.IO_ERROR


class AuthError(SyncFailure):
    """Raised when the mail server rejects the account credentials."""

    kind = FailureKind.AUTH_FAILED


class ServerError(SyncFailure):
    """Raised when the server answers a command with an error response."""

    kind = FailureKind.SERVER_ERROR


class InternalError(SyncFailure):
    """Raised for failures that fit no other category."""

    kind = FailureKind.OTHER


class NotSyncable(MailboxSyncError):
    """Raised when a mailbox never loads its contents from the server."""

    pass


class DataIntegrityError(MailboxSyncError):
    """Raised when a referenced mailbox or account row is missing."""

    pass


class ConfigurationError(MailboxSyncError):
    """Raised for invalid or missing configuration."""

    pass
