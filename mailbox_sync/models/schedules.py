from django.db import models

from .accounts import MailAccount

__all__ = ["PeriodicSyncRegistration"]


class PeriodicSyncRegistration(models.Model):
    account = models.ForeignKey(
        MailAccount, on_delete=models.CASCADE, related_name="periodic_syncs",
    )
    key = models.CharField(max_length=100, unique=True)
    interval_minutes = models.PositiveIntegerField()
    last_triggered_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "mail_periodic_syncs"
        ordering = ["id"]

    def __str__(self):
        return f"Every {self.interval_minutes} min ({self.account.email_address})"
