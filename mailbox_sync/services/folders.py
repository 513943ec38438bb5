"""Folder list refresh through the account's synchronizer."""

from mailsync_core.utils.logging import ContextLogger

from ..channels.adapters.factory import get_synchronizer
from ..exceptions import DataIntegrityError
from .interfaces import FolderListRefresher, MailStore

logger = ContextLogger(__name__)


class AdapterFolderListRefresher(FolderListRefresher):
    """Refreshes mailbox rows with the synchronizer's ``update_folder_list``."""

    def __init__(self, store: MailStore, synchronizer_factory=get_synchronizer):
        self.store = store
        self.synchronizer_factory = synchronizer_factory

    def refresh(self, account_id):
        account = self.store.load_account(account_id)
        if account is None:
            raise DataIntegrityError("account is null")

        mailboxes = self.synchronizer_factory(account).update_folder_list(account)
        logger.debug(
            "Folder list refreshed",
            extra={"account_id": account_id, "mailboxes": len(mailboxes)},
        )
        return mailboxes
