"""Django ORM implementation of the ``MailStore`` capability."""

from contextlib import contextmanager

from mailsync_core.utils.logging import ContextLogger

from ..models import MailAccount, Mailbox, PendingUpdate
from .interfaces import MailStore

logger = ContextLogger(__name__)


class DjangoMailStore(MailStore):
    """MailStore backed by the app's models."""

    def load_mailbox(self, mailbox_id):
        return Mailbox.objects.filter(pk=mailbox_id).first()

    def load_account(self, account_id):
        return MailAccount.objects.filter(pk=account_id).first()

    def find_account(self, email_address):
        if not email_address:
            return None
        return MailAccount.objects.filter(email_address__iexact=email_address).first()

    def find_mailbox_of_type(self, account_id, mailbox_type):
        return (
            Mailbox.objects.filter(account_id=account_id, mailbox_type=mailbox_type)
            .order_by("id")
            .values_list("id", flat=True)
            .first()
        )

    def update_mailbox_sync_state(
        self, mailbox_id, status, last_result=None, last_sync_time=None
    ):
        fields = {"sync_status": int(status)}
        if last_result is not None:
            fields["last_sync_result"] = int(last_result)
        if last_sync_time is not None:
            fields["last_sync_time"] = last_sync_time
        # Only the sync fields are written; the synchronizer saves the rest
        updated = Mailbox.objects.filter(pk=mailbox_id).update(**fields)
        if not updated:
            logger.warning(
                "Sync state update matched no mailbox", extra={"mailbox_id": mailbox_id},
            )

    @contextmanager
    def pending_updates(self, account_id):
        rows = (
            PendingUpdate.objects.filter(account_id=account_id)
            .order_by("id")
            .values_list("mailbox_id", flat=True)
            .iterator()
        )
        try:
            yield rows
        finally:
            rows.close()

    def delete_pending_updates(self, mailbox_id):
        deleted, _ = PendingUpdate.objects.filter(mailbox_id=mailbox_id).delete()
        return deleted

    def update_account_status(self, account_id, status):
        MailAccount.objects.filter(pk=account_id).update(status=status)
        logger.info(
            "Account status changed", extra={"account_id": account_id, "status": str(status)},
        )
