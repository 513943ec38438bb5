from django.db import models

from .accounts import MailAccount
from .mailboxes import Mailbox

__all__ = ["MailMessage", "PendingUpdate"]


class MailMessage(models.Model):
    account = models.ForeignKey(
        MailAccount, on_delete=models.CASCADE, related_name="messages",
    )
    mailbox = models.ForeignKey(
        Mailbox, on_delete=models.CASCADE, related_name="messages",
    )
    server_uid = models.CharField(max_length=255, blank=True)
    message_id = models.CharField(max_length=255, blank=True)

    from_email = models.CharField(max_length=255, blank=True)
    to_emails = models.JSONField(default=list, blank=True)
    subject = models.CharField(max_length=500, blank=True)
    raw_message = models.TextField(blank=True)

    is_read = models.BooleanField(default=False)
    is_flagged = models.BooleanField(default=False)
    is_sent = models.BooleanField(default=False)

    received_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "mail_messages"
        ordering = ["-received_at"]
        indexes = [
            models.Index(fields=["mailbox", "server_uid"]),
        ]

    def __str__(self):
        return self.subject or self.message_id or f"Message {self.pk}"


class PendingUpdate(models.Model):
    """A local change to a message that has not been pushed to the server yet."""

    account = models.ForeignKey(
        MailAccount, on_delete=models.CASCADE, related_name="pending_updates",
    )
    mailbox = models.ForeignKey(
        Mailbox, on_delete=models.CASCADE, related_name="pending_updates",
    )
    message = models.ForeignKey(
        MailMessage,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="pending_updates",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "mail_pending_updates"
        ordering = ["id"]

    def __str__(self):
        return f"Pending update for mailbox {self.mailbox_id}"
