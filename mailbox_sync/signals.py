from django.db.models.signals import post_save
from django.dispatch import receiver

from mailsync_core.utils.logging import ContextLogger

from .models import MailAccount
from .services.scheduler import ModelSyncScheduler

logger = ContextLogger(__name__)


@receiver(post_save, sender=MailAccount)
def register_initial_periodic_sync(sender, instance, created, **kwargs):
    """
    Register the account's periodic sync when it is first created.

    Later interval changes are reconciled by the sync router on the next run.
    """
    if not created or kwargs.get("raw"):
        return
    if not instance.sync_interval_minutes or instance.sync_interval_minutes <= 0:
        logger.debug(
            "Periodic sync disabled for new account", extra={"account_id": instance.pk}
        )
        return
    ModelSyncScheduler().register(instance.pk, instance.sync_interval_minutes)
