"""
Entry point for sync triggers.

A trigger is the plain mapping a Celery task or management command receives:

    {
        "account": "user@example.com",   # or "account_id": 12
        "mailbox_ids": [5, 7],           # optional; default is the inbox
        "upload": False,                 # push queued local changes only
        "expedited": True,               # user-initiated refresh
        "delta_message_count": 50,       # fetch this many extra messages
    }

The router parses it, reconciles the account's periodic sync registrations,
hands the request to a fresh ``AccountSyncOrchestrator`` and always emits
the resulting run log.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Tuple

from mailsync_core.utils.logging import ContextLogger

from .. import config
from ..enums import AccountStatus, FailureKind, SyncOutcome
from ..channels.adapters.factory import get_synchronizer
from .folders import AdapterFolderListRefresher
from .interfaces import (
    FolderListRefresher,
    MailStore,
    SyncLogger,
    SyncScheduler,
    SyncStatusPublisher,
)
from .intervals import apply_instructions, normalize
from .orchestrator import AccountSyncOrchestrator
from .run_log import SyncRequest, SyncRunLog

logger = ContextLogger(__name__)

ACCOUNT_NOT_FOUND = "account not found"

TRUE_VALUES = ("1", "true", "yes", "on")


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)


def _as_count(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _as_ids(value: Any) -> Tuple[int, ...]:
    if value in (None, ""):
        return ()
    if isinstance(value, (str, int)):
        value = str(value).split(",")
    ids = []
    for item in value:
        try:
            ids.append(int(item))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid mailbox id", extra={"mailbox_id": item})
    return tuple(ids)


def parse_trigger(trigger: Mapping[str, Any], account) -> SyncRequest:
    """Build a ``SyncRequest`` for ``account`` from a raw trigger mapping."""
    return SyncRequest(
        account=account,
        mailbox_ids=_as_ids(trigger.get("mailbox_ids")),
        upload_only=_as_bool(trigger.get("upload", False)),
        expedited=_as_bool(trigger.get("expedited", False)),
        delta_message_count=_as_count(trigger.get("delta_message_count", 0)),
        raw=dict(trigger),
    )


class SyncRequestRouter:
    """Parses sync triggers and dispatches them to the orchestrator."""

    def __init__(
        self,
        store: MailStore,
        scheduler: SyncScheduler,
        sync_logger: SyncLogger,
        publisher: Optional[SyncStatusPublisher] = None,
        synchronizer_factory: Callable = get_synchronizer,
        folder_refresher: Optional[FolderListRefresher] = None,
    ):
        self.store = store
        self.scheduler = scheduler
        self.sync_logger = sync_logger
        self.publisher = publisher
        self.synchronizer_factory = synchronizer_factory
        self.folder_refresher = folder_refresher or AdapterFolderListRefresher(
            store, synchronizer_factory
        )

    def handle(self, trigger: Mapping[str, Any]) -> SyncRunLog:
        run_log = SyncRunLog()
        try:
            account = self._resolve_account(trigger)
            if account is None:
                logger.warning(
                    "Sync trigger for unknown account",
                    extra={"account": trigger.get("account") or trigger.get("account_id")},
                )
                run_log.note = ACCOUNT_NOT_FOUND
                run_log.request = dict(trigger)
                return run_log

            request = parse_trigger(trigger, account)
            run_log.account_name = account.label
            run_log.sync_automatically = bool(account.sync_enabled)
            self._reconcile_periodic_syncs(account, run_log)

            orchestrator = AccountSyncOrchestrator(
                self.store,
                self.folder_refresher,
                self.synchronizer_factory,
                self.publisher,
            )
            orchestrator.run(request, run_log)
            self._update_account_status(account, run_log)
            return run_log

        except Exception as e:
            logger.exception("Failed to handle sync trigger", extra={"error": str(e)})
            run_log.failure = str(e) or e.__class__.__name__
            if not run_log.request:
                run_log.request = dict(trigger)
            return run_log

        finally:
            self._emit(run_log)

    def _resolve_account(self, trigger):
        account_id = trigger.get("account_id")
        if account_id is not None:
            return self.store.load_account(_as_count(account_id))
        return self.store.find_account(trigger.get("account"))

    def _reconcile_periodic_syncs(self, account, run_log: SyncRunLog) -> None:
        desired = account.sync_interval_minutes
        if desired is None:
            desired = config.get_config("SYNC_INTERVAL_MINUTES")
        current = list(self.scheduler.list_registered_intervals(account.id))
        run_log.periodic_syncs = [{"period": minutes, "key": key} for minutes, key in current]

        instructions = normalize(current, desired)
        if instructions:
            apply_instructions(self.scheduler, account.id, instructions)

    def _update_account_status(self, account, run_log: SyncRunLog) -> None:
        """Mark the account ERROR on rejected credentials, ACTIVE again on success."""
        current = getattr(account, "status", None)
        outcomes = run_log.outcomes()
        if (
            SyncOutcome.AUTH_ERROR in outcomes
            or run_log.failure_kind == FailureKind.AUTH_FAILED
        ):
            status = AccountStatus.ERROR
        elif current == AccountStatus.ERROR and SyncOutcome.SUCCESS in outcomes:
            status = AccountStatus.ACTIVE
        else:
            return
        if status == current:
            return

        try:
            self.store.update_account_status(account.id, status)
        except Exception:
            logger.exception(
                "Failed to update account status",
                extra={"account_id": account.id, "status": str(status)},
            )

    def _emit(self, run_log: SyncRunLog) -> None:
        try:
            self.sync_logger.emit(run_log)
        except Exception:
            logger.exception("Failed to emit sync run log")


def build_router() -> SyncRequestRouter:
    """Router wired to the Django-backed collaborators."""
    from .publisher import ChannelLayerStatusPublisher
    from .scheduler import ModelSyncScheduler
    from .store import DjangoMailStore
    from .sync_logger import ContextSyncLogger

    return SyncRequestRouter(
        store=DjangoMailStore(),
        scheduler=ModelSyncScheduler(),
        sync_logger=ContextSyncLogger(),
        publisher=ChannelLayerStatusPublisher(),
    )
