"""
Periodic sync registrations stored as ``PeriodicSyncRegistration`` rows.

Celery beat runs ``dispatch_periodic_syncs`` every minute; it enqueues a
sync for each registration whose interval has elapsed.
"""

import uuid
from datetime import timedelta

from django.utils import timezone

from mailsync_core.utils.logging import ContextLogger

from ..enums import AccountStatus
from ..models import PeriodicSyncRegistration
from .interfaces import SyncScheduler
from .intervals import AddInterval, RemoveInterval

logger = ContextLogger(__name__)


class ModelSyncScheduler(SyncScheduler):
    def list_registered_intervals(self, account_id):
        return [
            (registration.interval_minutes, registration.key)
            for registration in PeriodicSyncRegistration.objects.filter(
                account_id=account_id
            ).order_by("id")
        ]

    def apply_instruction(self, account_id, instruction):
        if isinstance(instruction, RemoveInterval):
            PeriodicSyncRegistration.objects.filter(
                account_id=account_id, key=instruction.key
            ).delete()
        elif isinstance(instruction, AddInterval):
            self.register(account_id, instruction.minutes)
        else:
            raise TypeError(f"Unknown scheduler instruction: {instruction!r}")

    def register(self, account_id, minutes):
        registration = PeriodicSyncRegistration.objects.create(
            account_id=account_id,
            interval_minutes=minutes,
            key=f"sync-{account_id}-{uuid.uuid4().hex[:12]}",
        )
        logger.info(
            "Registered periodic sync",
            extra={"account_id": account_id, "minutes": minutes, "key": registration.key},
        )
        return registration

    def due_registrations(self, now=None):
        """Registrations whose interval has elapsed since they last fired."""
        now = now or timezone.now()
        due = []
        for registration in PeriodicSyncRegistration.objects.select_related(
            "account"
        ).filter(account__sync_enabled=True).exclude(
            account__status=AccountStatus.INACTIVE
        ):
            last = registration.last_triggered_at
            if last is None or now - last >= timedelta(
                minutes=registration.interval_minutes
            ):
                due.append(registration)
        return due
