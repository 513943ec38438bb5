"""
Account-level sync pass.

Resolves which mailboxes a request covers, runs a ``MailboxSyncTask`` for
each one in order and collects the outcomes into a ``SyncRunLog``. A new
orchestrator is built for every request; it keeps no state between passes.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, List, Optional

from mailsync_core.utils.logging import ContextLogger

from ..enums import MailboxType, SyncOutcome
from ..exceptions import DataIntegrityError
from .interfaces import FolderListRefresher, MailStore, SyncStatusPublisher
from .mailbox_task import MailboxSyncTask
from .run_log import MailboxSyncEntry, SyncRequest, SyncRunLog
from .status_translator import classify

logger = ContextLogger(__name__)

NO_PENDING_UPDATES = "no pending updates"
NO_MAILBOXES = "no mailboxes to sync"
NO_ACCOUNT = "account is null"


def request_parameters(request: SyncRequest) -> dict:
    """Plain-data view of a request for the run log."""
    account = request.account
    return {
        "account": getattr(account, "email_address", None),
        "mailbox_ids": list(request.mailbox_ids),
        "upload": request.upload_only,
        "expedited": request.expedited,
        "delta_message_count": request.delta_message_count,
        "extras": dict(request.raw),
    }


class AccountSyncOrchestrator:
    """Runs one sync request for one account. ``run`` never raises."""

    def __init__(
        self,
        store: MailStore,
        folder_refresher: FolderListRefresher,
        synchronizer_factory: Callable,
        publisher: Optional[SyncStatusPublisher] = None,
    ):
        self.store = store
        self.folder_refresher = folder_refresher
        self.task = MailboxSyncTask(store, synchronizer_factory, publisher)

    def run(self, request: SyncRequest, run_log: Optional[SyncRunLog] = None) -> SyncRunLog:
        if run_log is None:
            run_log = SyncRunLog()
        run_log.upload = request.upload_only

        account = request.account
        if account is None:
            logger.warning("Sync request without an account")
            run_log.failure = NO_ACCOUNT
            run_log.request = request_parameters(request)
            return run_log
        run_log.account_id = account.id

        with logger.context(account_id=account.id, upload=request.upload_only):
            try:
                if request.upload_only:
                    logger.info("Upload sync request", extra={"account": account.label})
                    mailbox_ids = self.store.list_mailboxes_with_pending_updates(account.id)
                    if not mailbox_ids:
                        run_log.note = NO_PENDING_UPDATES
                        return run_log
                    # Uploads are background work with the default fetch window
                    task_request = replace(
                        request, expedited=False, delta_message_count=0
                    )
                else:
                    logger.info("Sync request", extra={"account": account.label})
                    # Folder structure is refreshed on every pull pass
                    self.folder_refresher.refresh(account.id)
                    mailbox_ids = self._resolve_pull_mailboxes(account, request)
                    if not mailbox_ids:
                        run_log.note = NO_MAILBOXES
                    task_request = request

                for mailbox_id in mailbox_ids:
                    self._sync_mailbox(mailbox_id, task_request, run_log)

            except Exception as e:
                logger.exception("Sync pass aborted", extra={"error": str(e)})
                run_log.failure = str(e) or e.__class__.__name__
                run_log.failure_kind = str(classify(e))

            finally:
                run_log.account_name = account.label
                run_log.request = request_parameters(request)

        logger.info(
            "Sync pass completed",
            extra={
                "account_id": account.id,
                "mailboxes": len(run_log.entries),
                "outcomes": [str(outcome) for outcome in run_log.outcomes()],
            },
        )
        return run_log

    def _resolve_pull_mailboxes(self, account, request: SyncRequest) -> List[int]:
        if request.mailbox_ids:
            return list(request.mailbox_ids)
        inbox_id = self.store.find_mailbox_of_type(account.id, MailboxType.INBOX)
        return [inbox_id] if inbox_id is not None else []

    def _load(self, mailbox_id: int):
        mailbox = self.store.load_mailbox(mailbox_id)
        if mailbox is None:
            raise DataIntegrityError("mailbox is null")
        account = self.store.load_account(mailbox.account_id)
        if account is None:
            raise DataIntegrityError(NO_ACCOUNT)
        return mailbox, account

    def _sync_mailbox(self, mailbox_id: int, request: SyncRequest, run_log: SyncRunLog):
        try:
            mailbox, account = self._load(mailbox_id)
        except DataIntegrityError as e:
            logger.warning(
                "Skipping mailbox with missing data",
                extra={"mailbox_id": mailbox_id, "error": str(e)},
            )
            run_log.add(
                MailboxSyncEntry(
                    mailbox_id=mailbox_id,
                    outcome=SyncOutcome.DATA_INTEGRITY_ERROR,
                    failure=str(e),
                )
            )
            return

        try:
            self.task.run(mailbox, account, request, run_log)
        except Exception as e:
            # Reached only when the store itself fails around the attempt
            logger.exception(
                "Mailbox sync task failed", extra={"mailbox_id": mailbox_id},
            )
            run_log.add(
                MailboxSyncEntry(
                    mailbox_id=mailbox_id,
                    outcome=SyncOutcome.INTERNAL_ERROR,
                    name=mailbox.display_name,
                    mailbox_type=str(mailbox.mailbox_type),
                    failure=str(e) or e.__class__.__name__,
                )
            )
