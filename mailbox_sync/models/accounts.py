from django.db import models

from ..config import get_config
from ..enums import AccountStatus, Protocol

__all__ = ["MailAccount"]


class MailAccount(models.Model):
    name = models.CharField(max_length=200)
    display_name = models.CharField(max_length=200, blank=True)
    email_address = models.EmailField(unique=True)
    status = models.CharField(
        max_length=20, choices=AccountStatus.choices, default=AccountStatus.ACTIVE,
    )

    # Incoming Email Configuration
    protocol = models.CharField(
        max_length=10, choices=Protocol.choices, default=Protocol.IMAP,
    )
    incoming_server = models.CharField(max_length=200)
    incoming_port = models.IntegerField(
        null=True, blank=True, help_text="Defaults to the protocol's standard port",
    )
    incoming_use_ssl = models.BooleanField(default=True)
    incoming_username = models.CharField(max_length=200)
    incoming_password = models.CharField(max_length=200)

    # SMTP Configuration
    smtp_server = models.CharField(max_length=200, blank=True)
    smtp_port = models.IntegerField(default=get_config("SMTP_DEFAULT_PORT"))
    smtp_use_tls = models.BooleanField(default=True)
    smtp_use_ssl = models.BooleanField(default=False)
    smtp_username = models.CharField(max_length=200, blank=True)
    smtp_password = models.CharField(max_length=200, blank=True)

    # Sync Configuration
    sync_enabled = models.BooleanField(
        default=True, help_text="Sync automatically on the periodic schedule",
    )
    sync_interval_minutes = models.IntegerField(
        default=get_config("SYNC_INTERVAL_MINUTES"),
        help_text="Periodic sync interval in minutes; 0 disables periodic sync",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "mail_accounts"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.email_address})"

    @property
    def label(self):
        """Name shown in run logs and notifications."""
        return self.display_name or self.name or self.email_address

    def save(self, *args, **kwargs):
        if self.incoming_port is None:
            self.incoming_port = self.default_incoming_port()
        super().save(*args, **kwargs)

    def default_incoming_port(self):
        if self.protocol == Protocol.POP3:
            return get_config("POP3_DEFAULT_PORT")
        return get_config("IMAP_DEFAULT_PORT")

    def get_credentials(self):
        """Return connection settings grouped by direction."""
        return {
            "incoming": {
                "username": self.incoming_username,
                "password": self.incoming_password,
                "server": self.incoming_server,
                "port": self.incoming_port or self.default_incoming_port(),
                "use_ssl": self.incoming_use_ssl,
                "protocol": self.protocol,
            },
            "smtp": {
                "username": self.smtp_username,
                "password": self.smtp_password,
                "server": self.smtp_server,
                "port": self.smtp_port,
                "use_tls": self.smtp_use_tls,
                "use_ssl": self.smtp_use_ssl,
            },
        }
