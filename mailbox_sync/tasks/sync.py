from celery import shared_task
from django.utils import timezone

from mailsync_core.utils.logging import ContextLogger, with_request_id

from ..models import PeriodicSyncRegistration
from ..services.router import build_router
from ..services.scheduler import ModelSyncScheduler

logger = ContextLogger(__name__)


@shared_task(bind=True)
@with_request_id
def sync_account(self, trigger, _request_id=None):
    """Run one sync trigger for an account and return its run log.

    The router records every failure in the run log, so this task is never
    retried; the next periodic trigger picks up where this one stopped.
    """
    logger.set_context(
        request_id=_request_id,
        task_id=self.request.id,
        task_name="sync_account",
        account=trigger.get("account") or trigger.get("account_id"),
    )

    try:
        logger.info("Starting mailbox sync task")
        run_log = build_router().handle(trigger)
        return run_log.to_dict()
    except Exception as e:
        logger.exception("Unexpected error in sync task", extra={"error": str(e)})
        return {"request": dict(trigger), "failure": "unhandled_task_error"}
    finally:
        logger.clear_context()


@shared_task
@with_request_id
def dispatch_periodic_syncs(_request_id=None):
    """Enqueue ``sync_account`` for every periodic registration that is due."""
    now = timezone.now()
    logger.set_context(
        request_id=_request_id,
        task_name="dispatch_periodic_syncs",
        batch_start_time=now.isoformat(),
    )

    scheduled = []
    errors = 0
    for registration in ModelSyncScheduler().due_registrations(now):
        try:
            with logger.context(
                account_id=registration.account_id, key=registration.key
            ):
                result = sync_account.delay({"account_id": registration.account_id})
                PeriodicSyncRegistration.objects.filter(pk=registration.pk).update(
                    last_triggered_at=now
                )
                logger.info("Scheduled periodic sync")
                scheduled.append(
                    {
                        "account_id": registration.account_id,
                        "key": registration.key,
                        "task_id": result.id,
                    }
                )
        except Exception as e:
            errors += 1
            logger.exception(
                "Failed to schedule periodic sync",
                extra={"account_id": registration.account_id, "error": str(e)},
            )

    logger.info(
        "Periodic sync dispatch completed",
        extra={"scheduled": len(scheduled), "errors": errors},
    )
    logger.clear_context()
    return {"scheduled": scheduled, "errors": errors}
