"""
IMAP synchronizer implementation.

Connects with imaplib, pushes queued flag changes for a mailbox, then pulls
the headers of messages newer than the mailbox's UID watermark.
"""

import imaplib
import re
import ssl
from typing import List

from mailsync_core.utils.logging import ContextLogger

from ...exceptions import AuthError, IoError, ServerError
from ...models import MailAccount, Mailbox, PendingUpdate
from .. import utils
from .base import MailboxSynchronizer

logger = ContextLogger(__name__)

FLAGS_RESPONSE = re.compile(rb"FLAGS \((?P<flags>[^)]*)\)")


class ImapSynchronizer(MailboxSynchronizer):
    """
    IMAP protocol synchronizer.

    Every public call opens its own connection and always logs out, so a
    failed sync never leaves a session behind.
    """

    def connect(self) -> imaplib.IMAP4:
        """
        Open and authenticate an IMAP connection.

        Raises:
            IoError: If the server cannot be reached
            AuthError: If the server rejects the credentials
        """
        credentials = self.account.get_credentials()["incoming"]
        logger.info(
            "Connecting to IMAP server",
            extra={"account_id": self.account_id, "server": credentials["server"]},
        )
        try:
            if credentials["use_ssl"]:
                server = imaplib.IMAP4_SSL(
                    credentials["server"],
                    credentials["port"],
                    ssl_context=ssl.create_default_context(),
                    timeout=self.timeout,
                )
            else:
                server = imaplib.IMAP4(
                    credentials["server"], credentials["port"], timeout=self.timeout,
                )
        except (imaplib.IMAP4.abort, OSError) as e:
            raise IoError(f"IMAP connection failed: {e}") from e

        try:
            server.login(credentials["username"], credentials["password"])
        except imaplib.IMAP4.abort as e:
            self.disconnect(server)
            raise IoError(f"IMAP connection lost during login: {e}") from e
        except imaplib.IMAP4.error as e:
            self.disconnect(server)
            raise AuthError(f"IMAP authentication failed: {e}") from e
        except OSError as e:
            self.disconnect(server)
            raise IoError(f"IMAP connection failed: {e}") from e
        return server

    def disconnect(self, server) -> None:
        try:
            server.logout()
        except (imaplib.IMAP4.error, OSError) as e:
            logger.warning("Error logging out from IMAP server", extra={"error": str(e)})

    def sync_inbound(self, account, mailbox, delta_hint, expedited) -> int:
        server = self.connect()
        try:
            status, _ = server.select(self._quote(mailbox.server_id))
            self._check(status, f"select {mailbox.server_id}")

            self._upload_pending_updates(server, mailbox)
            return self._pull_new_messages(server, mailbox, self.fetch_window(delta_hint))

        except imaplib.IMAP4.abort as e:
            raise IoError(f"IMAP connection lost: {e}") from e
        except imaplib.IMAP4.error as e:
            raise ServerError(f"IMAP command failed: {e}") from e
        except OSError as e:
            raise IoError(f"IMAP connection failed: {e}") from e
        finally:
            self.disconnect(server)

    def update_folder_list(self, account: MailAccount) -> List[Mailbox]:
        server = self.connect()
        try:
            status, lines = server.list()
            self._check(status, "list")
        except imaplib.IMAP4.abort as e:
            raise IoError(f"IMAP connection lost: {e}") from e
        except imaplib.IMAP4.error as e:
            raise ServerError(f"IMAP LIST failed: {e}") from e
        except OSError as e:
            raise IoError(f"IMAP connection failed: {e}") from e
        finally:
            self.disconnect(server)

        mailboxes = []
        for line in lines or []:
            parsed = utils.parse_list_response(line)
            if parsed is None:
                continue
            name, flags = parsed
            if "\\noselect" in flags:
                continue
            mailbox, _ = Mailbox.objects.update_or_create(
                account=account,
                server_id=name,
                defaults={
                    "display_name": name.rsplit("/", 1)[-1],
                    "mailbox_type": utils.mailbox_type_for(name, flags),
                },
            )
            mailboxes.append(mailbox)

        mailboxes.append(utils.ensure_outbox(account))
        logger.info(
            "IMAP folder list refreshed",
            extra={"account_id": account.id, "mailboxes": len(mailboxes)},
        )
        return mailboxes

    def _upload_pending_updates(self, server, mailbox) -> int:
        updates = list(
            PendingUpdate.objects.filter(mailbox=mailbox)
            .select_related("message")
            .order_by("id")
        )
        uploaded = 0
        for update in updates:
            message = update.message
            if message is None or not message.server_uid:
                continue
            flags = []
            if message.is_read:
                flags.append("\\Seen")
            if message.is_flagged:
                flags.append("\\Flagged")
            status, _ = server.uid(
                "STORE", message.server_uid, "FLAGS.SILENT", f"({' '.join(flags)})",
            )
            self._check(status, f"store flags for uid {message.server_uid}")
            uploaded += 1

        if updates:
            PendingUpdate.objects.filter(pk__in=[u.pk for u in updates]).delete()
            logger.debug(
                "Uploaded pending updates",
                extra={"mailbox_id": mailbox.id, "uploaded": uploaded},
            )
        return uploaded

    def _pull_new_messages(self, server, mailbox, window: int) -> int:
        status, data = server.uid("SEARCH", None, f"UID {mailbox.last_seen_uid + 1}:*")
        self._check(status, "search")

        # "n:*" always matches the newest message, even below the watermark
        uids = sorted(
            int(uid) for uid in (data[0] or b"").split() if int(uid) > mailbox.last_seen_uid
        )
        if not uids:
            return 0

        # Keep the newest messages when the backlog exceeds the window
        to_fetch = uids[-window:] if window else uids
        stored = 0
        for uid in to_fetch:
            status, parts = server.uid("FETCH", str(uid), "(FLAGS BODY.PEEK[HEADER])")
            self._check(status, f"fetch uid {uid}")
            for part in parts:
                if isinstance(part, tuple) and len(part) > 1:
                    match = FLAGS_RESPONSE.search(part[0])
                    flags = match.group("flags") if match else b""
                    utils.store_message(
                        mailbox, uid, part[1], is_read=b"\\Seen" in flags,
                    )
                    stored += 1
                    break

        mailbox.last_seen_uid = uids[-1]
        mailbox.save(update_fields=["last_seen_uid", "updated_at"])
        logger.info(
            "Pulled new IMAP messages",
            extra={"mailbox_id": mailbox.id, "stored": stored, "available": len(uids)},
        )
        return stored

    def _check(self, status, command):
        if status != "OK":
            raise ServerError(f"IMAP {command} returned {status}")

    @staticmethod
    def _quote(name: str) -> str:
        if name.upper() == "INBOX" or re.fullmatch(r"[\w.\-/]+", name):
            return name
        return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'
