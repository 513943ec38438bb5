from django.db import models


class Protocol(models.TextChoices):
    IMAP = "imap", "IMAP"
    POP3 = "pop3", "POP3"


class AccountStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    ERROR = "error", "Error"


class MailboxType(models.TextChoices):
    INBOX = "inbox", "Inbox"
    DRAFTS = "drafts", "Drafts"
    OUTBOX = "outbox", "Outbox"
    SENT = "sent", "Sent"
    TRASH = "trash", "Trash"
    SEARCH = "search", "Search"
    OTHER = "other", "Other"


class SyncStatus(models.IntegerChoices):
    """Bit flags stored in ``Mailbox.sync_status``; NONE means idle."""

    NONE = 0, "Idle"
    USER = 1, "User refresh"
    BACKGROUND = 4, "Background sync"


class LastSyncResult(models.IntegerChoices):
    SUCCESS = 0, "Success"
    CONNECTION_ERROR = 1, "Connection error"
    AUTH_ERROR = 2, "Authentication error"
    INTERNAL_ERROR = 5, "Internal error"
    SERVER_ERROR = 6, "Server error"


class FailureKind(models.TextChoices):
    """Failure categories reported by mailbox synchronizers."""

    NONE = "none", "None"
    IO_ERROR = "io_error", "I/O error"
    AUTH_FAILED = "auth_failed", "Authentication failed"
    SERVER_ERROR = "server_error", "Server error"
    OTHER = "other", "Other"


class SyncOutcome(models.TextChoices):
    SUCCESS = "success", "Success"
    IO_ERROR = "io_error", "I/O error"
    AUTH_ERROR = "auth_error", "Authentication error"
    SERVER_ERROR = "server_error", "Server error"
    INTERNAL_ERROR = "internal_error", "Internal error"
    SKIPPED_NOT_SYNCABLE = "skipped_not_syncable", "Skipped (not syncable)"
    DATA_INTEGRITY_ERROR = "data_integrity_error", "Data integrity error"


class ServiceStatus(models.TextChoices):
    """Progress states published while a mailbox syncs."""

    IN_PROGRESS = "in_progress", "In progress"
    SUCCESS = "success", "Success"
    FAILURE = "failure", "Failure"
