"""Protocol synchronizers used by the mailbox sync task."""

from .base import MailboxSynchronizer
from .factory import SYNCHRONIZER_REGISTRY, get_synchronizer

__all__ = ["MailboxSynchronizer", "SYNCHRONIZER_REGISTRY", "get_synchronizer"]
