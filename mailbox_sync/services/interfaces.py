"""mailbox_sync.services.interfaces

Capabilities the sync orchestrator consumes. The orchestrator, the mailbox
task and the router only talk to these abstract classes; the Django-backed
implementations live next to them (``store``, ``scheduler``, ``sync_logger``,
``publisher``, ``folders``) and tests swap in mocks built with
``mock.MagicMock(spec=...)``.
"""

from __future__ import annotations

import abc
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Iterator, List, Optional, Sequence, Tuple


class MailStore(abc.ABC):
    """Read and write access to accounts, mailboxes and pending updates."""

    @abc.abstractmethod
    def load_mailbox(self, mailbox_id: int) -> Optional[Any]:
        """Return the mailbox or ``None`` when it does not exist."""
        raise NotImplementedError

    @abc.abstractmethod
    def load_account(self, account_id: int) -> Optional[Any]:
        """Return the account or ``None`` when it does not exist."""
        raise NotImplementedError

    @abc.abstractmethod
    def find_account(self, email_address: str) -> Optional[Any]:
        raise NotImplementedError

    @abc.abstractmethod
    def find_mailbox_of_type(self, account_id: int, mailbox_type: str) -> Optional[int]:
        """Return the id of the account's first mailbox of ``mailbox_type``."""
        raise NotImplementedError

    @abc.abstractmethod
    def update_mailbox_sync_state(
        self,
        mailbox_id: int,
        status: int,
        last_result: Optional[int] = None,
        last_sync_time: Optional[datetime] = None,
    ) -> None:
        """Persist sync state; ``None`` arguments leave the field unchanged."""
        raise NotImplementedError

    @abc.abstractmethod
    def pending_updates(self, account_id: int) -> AbstractContextManager[Iterator[int]]:
        """Context manager yielding the mailbox id of every pending update.

        The underlying cursor is released when the ``with`` block exits.
        """
        raise NotImplementedError

    def list_mailboxes_with_pending_updates(self, account_id: int) -> List[int]:
        """Distinct mailbox ids with pending updates, in first-seen order."""
        mailbox_ids: List[int] = []
        with self.pending_updates(account_id) as rows:
            for mailbox_id in rows:
                if mailbox_id not in mailbox_ids:
                    mailbox_ids.append(mailbox_id)
        return mailbox_ids

    @abc.abstractmethod
    def delete_pending_updates(self, mailbox_id: int) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def update_account_status(self, account_id: int, status: str) -> None:
        """Persist the account's ``AccountStatus``."""
        raise NotImplementedError


class FolderListRefresher(abc.ABC):
    @abc.abstractmethod
    def refresh(self, account_id: int) -> None:
        """Bring the account's mailbox list in line with the server."""
        raise NotImplementedError


class SyncScheduler(abc.ABC):
    """Registry of recurring sync triggers."""

    @abc.abstractmethod
    def list_registered_intervals(self, account_id: int) -> Sequence[Tuple[int, str]]:
        """Return ``(minutes, key)`` for every registration of the account."""
        raise NotImplementedError

    @abc.abstractmethod
    def apply_instruction(self, account_id: int, instruction: Any) -> None:
        raise NotImplementedError


class SyncLogger(abc.ABC):
    @abc.abstractmethod
    def emit(self, run_log) -> None:
        raise NotImplementedError


class SyncStatusPublisher(abc.ABC):
    """Pushes mailbox sync progress to whoever is watching (UI, websockets)."""

    @abc.abstractmethod
    def publish(
        self,
        account_id: int,
        mailbox_id: int,
        status: str,
        last_sync_result: Optional[int] = None,
    ) -> None:
        raise NotImplementedError


class NullStatusPublisher(SyncStatusPublisher):
    """Publisher that drops every notification."""

    def publish(self, account_id, mailbox_id, status, last_sync_result=None):
        return None
