from django.apps import AppConfig


class MailboxSyncConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "mailbox_sync"
    verbose_name = "Mailbox Sync"

    def ready(self):
        # Register signal handlers
        from . import signals  # noqa: F401
