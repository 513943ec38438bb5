from django.db import models

from ..enums import LastSyncResult, MailboxType, SyncStatus
from .accounts import MailAccount

__all__ = ["Mailbox"]


class Mailbox(models.Model):
    account = models.ForeignKey(
        MailAccount, on_delete=models.CASCADE, related_name="mailboxes",
    )
    server_id = models.CharField(
        max_length=255, help_text="Folder name on the remote server",
    )
    display_name = models.CharField(max_length=255)
    mailbox_type = models.CharField(
        max_length=20, choices=MailboxType.choices, default=MailboxType.OTHER,
    )

    # Sync state, written only by the mailbox sync task
    sync_status = models.IntegerField(
        choices=SyncStatus.choices, default=SyncStatus.NONE,
    )
    last_sync_result = models.IntegerField(default=LastSyncResult.SUCCESS)
    last_sync_time = models.DateTimeField(null=True, blank=True)

    # Highest server UID stored locally (IMAP) or message count seen (POP3)
    last_seen_uid = models.BigIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "mailboxes"
        ordering = ["account", "display_name"]
        unique_together = ["account", "server_id"]
        indexes = [
            models.Index(fields=["account", "mailbox_type"]),
        ]

    def __str__(self):
        return f"{self.display_name} ({self.get_mailbox_type_display()})"

    @property
    def is_syncing(self):
        return self.sync_status != SyncStatus.NONE
