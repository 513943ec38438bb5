"""Mailbox sync services package.

The orchestration core (``router``, ``orchestrator``, ``mailbox_task``,
``intervals``, ``status_translator``) depends only on the capabilities in
``interfaces``. The Django-backed implementations of those capabilities
live in the remaining modules.
"""

from .intervals import AddInterval, RemoveInterval, apply_instructions, normalize
from .mailbox_task import MailboxSyncTask, ensure_syncable, loads_from_server
from .orchestrator import AccountSyncOrchestrator
from .router import SyncRequestRouter, build_router, parse_trigger
from .run_log import MailboxSyncEntry, SyncRequest, SyncRunLog
from .status_translator import decode_sync_value, encode_sync_value, translate

__all__ = [
    "AccountSyncOrchestrator",
    "AddInterval",
    "MailboxSyncEntry",
    "MailboxSyncTask",
    "RemoveInterval",
    "SyncRequest",
    "SyncRequestRouter",
    "SyncRunLog",
    "apply_instructions",
    "build_router",
    "decode_sync_value",
    "encode_sync_value",
    "ensure_syncable",
    "loads_from_server",
    "normalize",
    "parse_trigger",
    "translate",
]
