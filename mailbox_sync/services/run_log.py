"""Value types passed between the sync router, orchestrator and tasks."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, List, Optional, Tuple

from ..enums import SyncOutcome


@dataclass(frozen=True)
class SyncRequest:
    """One parsed sync trigger for a single account."""

    account: Any
    mailbox_ids: Tuple[int, ...] = ()
    upload_only: bool = False
    expedited: bool = False
    delta_message_count: int = 0
    raw: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.delta_message_count < 0:
            raise ValueError("delta_message_count must be >= 0")


@dataclass
class MailboxSyncEntry:
    """Outcome of one mailbox within a sync pass."""

    mailbox_id: int
    outcome: SyncOutcome
    name: str = ""
    mailbox_type: str = ""
    status: Optional[int] = None
    last_sync_result: Optional[int] = None
    failure: str = ""

    @property
    def succeeded(self) -> bool:
        return self.outcome == SyncOutcome.SUCCESS


@dataclass
class SyncRunLog:
    """Append-only record of a single sync request."""

    account_name: str = ""
    upload: bool = False
    sync_automatically: bool = False
    entries: List[MailboxSyncEntry] = field(default_factory=list)
    request: dict = field(default_factory=dict)
    periodic_syncs: List[dict] = field(default_factory=list)
    note: str = ""
    failure: str = ""
    failure_kind: str = ""
    account_id: Optional[int] = None

    def add(self, entry: MailboxSyncEntry) -> MailboxSyncEntry:
        self.entries.append(entry)
        return entry

    def outcomes(self) -> List[SyncOutcome]:
        return [entry.outcome for entry in self.entries]

    def to_dict(self) -> dict:
        data = asdict(self)
        for entry in data["entries"]:
            entry["outcome"] = str(entry["outcome"])
        return data
