"""mailbox_sync.tasks

Celery tasks for the mailbox sync app.
"""

from .sync import dispatch_periodic_syncs, sync_account

__all__ = ["sync_account", "dispatch_periodic_syncs"]
