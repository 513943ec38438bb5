"""
POP3 synchronizer implementation.

POP3 only exposes the inbox and has no server-side flags, so queued local
changes are discarded and a pull fetches the headers of messages whose
UIDL has not been stored yet.
"""

import poplib
import socket
import ssl
from typing import List

from mailsync_core.utils.logging import ContextLogger

from ...enums import MailboxType
from ...exceptions import AuthError, IoError, ServerError
from ...models import MailAccount, Mailbox, MailMessage, PendingUpdate
from .. import utils
from .base import MailboxSynchronizer

logger = ContextLogger(__name__)


class Pop3Synchronizer(MailboxSynchronizer):
    """
    POP3 synchronizer for fetching message headers from a POP3 server.

    This synchronizer handles the connection to the POP3 server,
    authentication, and header retrieval for the account's inbox.
    """

    def connect(self) -> poplib.POP3:
        """
        Establish and authenticate a connection to the POP3 server.

        Raises:
            IoError: If unable to connect to the server
            AuthError: If authentication fails
        """
        credentials = self.account.get_credentials()["incoming"]
        logger.info(
            "Connecting to POP3 server",
            extra={
                "server": credentials["server"],
                "port": credentials["port"],
                "secure": credentials["use_ssl"],
            },
        )
        try:
            if credentials["use_ssl"]:
                server = poplib.POP3_SSL(
                    credentials["server"], credentials["port"], timeout=self.timeout,
                )
            else:
                server = poplib.POP3(
                    credentials["server"], credentials["port"], timeout=self.timeout,
                )
        except (socket.error, ssl.SSLError, poplib.error_proto) as e:
            raise IoError(f"Failed to connect to POP3 server: {e}") from e

        try:
            server.user(credentials["username"])
            server.pass_(credentials["password"])
        except poplib.error_proto as e:
            self.disconnect(server)
            raise AuthError(f"POP3 authentication failed: {e}") from e
        except socket.error as e:
            self.disconnect(server)
            raise IoError(f"POP3 connection lost during login: {e}") from e
        return server

    def disconnect(self, server) -> None:
        try:
            server.quit()
        except (poplib.error_proto, socket.error) as e:
            logger.warning(f"Error disconnecting from POP3 server: {e}")

    def sync_inbound(self, account, mailbox, delta_hint, expedited) -> int:
        # Flags cannot be stored on a POP3 server
        discarded, _ = PendingUpdate.objects.filter(mailbox=mailbox).delete()
        if discarded:
            logger.debug(
                "Discarded pending updates for POP3 mailbox",
                extra={"mailbox_id": mailbox.id, "discarded": discarded},
            )

        server = self.connect()
        try:
            _, listings, _ = server.uidl()
            known = set(
                MailMessage.objects.filter(mailbox=mailbox).values_list(
                    "server_uid", flat=True
                )
            )
            new = []
            for listing in listings:
                number, uid = listing.decode("utf-8", errors="replace").split(" ", 1)
                if uid not in known:
                    new.append((int(number), uid))

            stored = 0
            for number, uid in new[-self.fetch_window(delta_hint):]:
                # TOP n 0 returns only the headers
                _, lines, _ = server.top(number, 0)
                utils.store_message(mailbox, uid, b"\r\n".join(lines))
                stored += 1

            mailbox.last_seen_uid = len(listings)
            mailbox.save(update_fields=["last_seen_uid", "updated_at"])
            logger.info(
                "Pulled new POP3 messages",
                extra={"mailbox_id": mailbox.id, "stored": stored, "available": len(new)},
            )
            return stored

        except poplib.error_proto as e:
            raise ServerError(f"Error fetching messages from POP3 server: {e}") from e
        except socket.error as e:
            raise IoError(f"POP3 connection failed: {e}") from e
        finally:
            self.disconnect(server)

    def update_folder_list(self, account: MailAccount) -> List[Mailbox]:
        """POP3 has a single remote folder; make sure it and the outbox exist."""
        inbox, _ = Mailbox.objects.get_or_create(
            account=account,
            server_id="INBOX",
            defaults={"display_name": "Inbox", "mailbox_type": MailboxType.INBOX},
        )
        return [inbox, utils.ensure_outbox(account)]
