"""Domain-focused models for the ``mailbox_sync`` app.

Each concept (accounts, mailboxes, messages, schedules, run logs) lives in
its own module; the concrete model classes are re-exported here so that
``from mailbox_sync.models import Mailbox`` works everywhere.
"""

from __future__ import annotations

from .accounts import MailAccount
from .logs import SyncRunRecord
from .mailboxes import Mailbox
from .messages import MailMessage, PendingUpdate
from .schedules import PeriodicSyncRegistration

__all__ = [
    "MailAccount",
    "Mailbox",
    "MailMessage",
    "PendingUpdate",
    "PeriodicSyncRegistration",
    "SyncRunRecord",
]
