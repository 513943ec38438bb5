"""Emission of finished sync run logs."""

from mailsync_core.utils.logging import ContextLogger

from ..models import MailAccount, SyncRunRecord
from .interfaces import SyncLogger

logger = ContextLogger(__name__)


class ContextSyncLogger(SyncLogger):
    """Writes each run log as one structured log line and a ``SyncRunRecord``."""

    def __init__(self, persist=True):
        self.persist = persist

    def emit(self, run_log):
        payload = run_log.to_dict()
        level = logger.warning if run_log.failure else logger.info
        level("Mailbox sync run", extra={"sync_run": payload})

        if not self.persist:
            return None

        account = None
        if run_log.account_id is not None:
            account = MailAccount.objects.filter(pk=run_log.account_id).first()
        return SyncRunRecord.objects.create(
            account=account,
            account_name=run_log.account_name,
            upload=run_log.upload,
            sync_automatically=run_log.sync_automatically,
            note=run_log.note,
            failure=run_log.failure,
            entries=payload["entries"],
            request=payload["request"],
            periodic_syncs=payload["periodic_syncs"],
        )
