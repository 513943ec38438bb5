"""
Synchronization of a single mailbox.

The task owns the mailbox's sync state for the length of one attempt:

    Idle -> InProgress -> Succeeded | Failed -> Idle

``sync_status`` is persisted as USER or BACKGROUND before the synchronizer
is called and is always put back to NONE, with ``last_sync_time`` and
``last_sync_result`` stamped, however the attempt ends.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from django.utils import timezone

from mailsync_core.utils.logging import ContextLogger

from ..enums import (
    FailureKind,
    MailboxType,
    Protocol,
    ServiceStatus,
    SyncOutcome,
    SyncStatus,
)
from ..exceptions import NotSyncable
from .interfaces import MailStore, NullStatusPublisher, SyncStatusPublisher
from .run_log import MailboxSyncEntry, SyncRequest, SyncRunLog
from .status_translator import classify, result_code, translate

logger = ContextLogger(__name__)

IMAP_LOCAL_ONLY_TYPES = frozenset(
    {MailboxType.DRAFTS, MailboxType.OUTBOX, MailboxType.SEARCH}
)


def loads_from_server(protocol, mailbox_type) -> bool:
    """Whether a mailbox of ``mailbox_type`` gets its contents from the server."""
    try:
        protocol = Protocol(protocol)
    except ValueError:
        return False
    if protocol == Protocol.IMAP:
        return mailbox_type not in IMAP_LOCAL_ONLY_TYPES
    if protocol == Protocol.POP3:
        return mailbox_type == MailboxType.INBOX
    return False


def ensure_syncable(account, mailbox) -> None:
    """Raise ``NotSyncable`` for mailboxes that are never synced from the server."""
    if mailbox.mailbox_type == MailboxType.OUTBOX:
        return
    if not loads_from_server(account.protocol, mailbox.mailbox_type):
        raise NotSyncable(
            f"{mailbox.mailbox_type} mailbox {mailbox.id} "
            f"does not load from a {account.protocol} server"
        )


class _Attempt:
    """Mutable result of one attempt, filled in while the state is held."""

    def __init__(self, urgency: int):
        self.outcome = SyncOutcome.INTERNAL_ERROR
        self.code = result_code(SyncOutcome.INTERNAL_ERROR, urgency)
        self.status: Optional[int] = None
        self.failure = ""


class MailboxSyncTask:
    """Runs one sync attempt for one mailbox."""

    def __init__(
        self,
        store: MailStore,
        synchronizer_factory: Callable,
        publisher: Optional[SyncStatusPublisher] = None,
    ):
        self.store = store
        self.synchronizer_factory = synchronizer_factory
        self.publisher = publisher or NullStatusPublisher()

    def run(
        self,
        mailbox,
        account,
        request: SyncRequest,
        run_log: Optional[SyncRunLog] = None,
    ) -> SyncOutcome:
        entry = self._sync(mailbox, account, request)
        if run_log is not None:
            run_log.add(entry)
        return entry.outcome

    def _sync(self, mailbox, account, request: SyncRequest) -> MailboxSyncEntry:
        entry = MailboxSyncEntry(
            mailbox_id=mailbox.id,
            outcome=SyncOutcome.SKIPPED_NOT_SYNCABLE,
            name=mailbox.display_name,
            mailbox_type=str(mailbox.mailbox_type),
        )

        try:
            ensure_syncable(account, mailbox)
        except NotSyncable as e:
            # Updates queued for a local-only mailbox can never be uploaded
            discarded = self.store.delete_pending_updates(mailbox.id)
            logger.info(
                "Skipping mailbox that does not sync from the server",
                extra={"mailbox_id": mailbox.id, "discarded_updates": discarded},
            )
            entry.failure = str(e)
            return entry

        urgency = SyncStatus.USER if request.expedited else SyncStatus.BACKGROUND
        logger.info(
            "About to sync mailbox",
            extra={
                "mailbox_id": mailbox.id,
                "mailbox": mailbox.display_name,
                "urgency": urgency.label,
            },
        )

        with self._in_progress(mailbox, account, urgency) as attempt:
            try:
                synchronizer = self.synchronizer_factory(account)
                if mailbox.mailbox_type == MailboxType.OUTBOX:
                    attempt.status = synchronizer.sync_outbound(account)
                else:
                    attempt.status = synchronizer.sync_inbound(
                        account, mailbox, request.delta_message_count, request.expedited,
                    )
                attempt.outcome, attempt.code = translate(
                    FailureKind.NONE, urgency
                )
            except Exception as e:
                attempt.outcome, attempt.code = translate(classify(e), urgency)
                attempt.failure = str(e) or e.__class__.__name__
                if attempt.outcome == SyncOutcome.INTERNAL_ERROR:
                    logger.exception(
                        "Unexpected error syncing mailbox",
                        extra={"mailbox_id": mailbox.id},
                    )
                else:
                    logger.warning(
                        "Mailbox sync failed",
                        extra={
                            "mailbox_id": mailbox.id,
                            "outcome": str(attempt.outcome),
                            "error": attempt.failure,
                        },
                    )

        entry.outcome = attempt.outcome
        entry.status = attempt.status
        entry.last_sync_result = attempt.code
        entry.failure = attempt.failure
        return entry

    @contextmanager
    def _in_progress(self, mailbox, account, urgency) -> Iterator[_Attempt]:
        """Hold the mailbox in progress; always release it back to NONE."""
        attempt = _Attempt(urgency)
        self.store.update_mailbox_sync_state(mailbox.id, urgency)
        self._publish(account, mailbox, ServiceStatus.IN_PROGRESS, None)
        try:
            yield attempt
        finally:
            self.store.update_mailbox_sync_state(
                mailbox.id,
                SyncStatus.NONE,
                last_result=attempt.code,
                last_sync_time=timezone.now(),
            )
            final_status = (
                ServiceStatus.SUCCESS
                if attempt.outcome == SyncOutcome.SUCCESS
                else ServiceStatus.FAILURE
            )
            self._publish(account, mailbox, final_status, attempt.code)

    def _publish(self, account, mailbox, status, last_sync_result):
        # Progress notifications must never change the sync outcome
        try:
            self.publisher.publish(account.id, mailbox.id, status, last_sync_result)
        except Exception:
            logger.exception(
                "Failed to publish mailbox sync status",
                extra={"mailbox_id": mailbox.id, "status": str(status)},
            )
