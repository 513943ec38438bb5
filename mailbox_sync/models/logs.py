from django.db import models

from .accounts import MailAccount

__all__ = ["SyncRunRecord"]


class SyncRunRecord(models.Model):
    account = models.ForeignKey(
        MailAccount,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sync_runs",
    )
    account_name = models.CharField(max_length=200, blank=True)
    upload = models.BooleanField(default=False)
    sync_automatically = models.BooleanField(default=False)
    note = models.CharField(max_length=200, blank=True)
    failure = models.TextField(blank=True)
    entries = models.JSONField(default=list)
    request = models.JSONField(default=dict)
    periodic_syncs = models.JSONField(default=list)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "mail_sync_runs"
        ordering = ["-created_at"]

    def __str__(self):
        kind = "Upload" if self.upload else "Sync"
        return f"{kind} {self.account_name} - {len(self.entries)} mailboxes"
