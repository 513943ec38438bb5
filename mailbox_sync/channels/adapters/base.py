"""mailbox_sync.channels.adapters.base

Protocol adapters that move mail between the server and the local store.
The sync orchestrator only knows the ``MailboxSynchronizer`` interface; the
factory picks the concrete class from the account's ``Protocol``.

Contract for implementations:
• ``sync_inbound`` and ``sync_outbound`` block until done and raise a
  ``SyncFailure`` subclass (``IoError``, ``AuthError``, ``ServerError``,
  ``InternalError``) on failure.
• Adapters never touch ``Mailbox.sync_status``; the mailbox sync task owns it.
"""

from __future__ import annotations

import abc
import smtplib
import socket
import ssl
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import Any, List

from django.utils import timezone

from mailsync_core.utils.logging import ContextLogger

from ... import config
from ...enums import MailboxType
from ...exceptions import AuthError, IoError, ServerError
from ...models import MailAccount, Mailbox, MailMessage

logger = ContextLogger(__name__)


class MailboxSynchronizer(abc.ABC):
    """Base class for protocol-specific mailbox synchronizers."""

    def __init__(self, account: MailAccount):
        if not account:
            raise ValueError("MailAccount must be provided")
        self.account = account
        self.timeout = config.get_config("DEFAULT_TIMEOUT")

    def __repr__(self) -> str:  # pragma: no cover – cosmetic
        return f"<{self.__class__.__name__} account={self.account_id}>"

    @property
    def account_id(self) -> Any:  # noqa: ANN401
        return getattr(self.account, "id", None)

    @abc.abstractmethod
    def sync_inbound(
        self, account: MailAccount, mailbox: Mailbox, delta_hint: int, expedited: bool
    ) -> int:
        """Upload queued changes for ``mailbox`` and pull new messages.

        Returns:
            Number of new messages stored locally.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def update_folder_list(self, account: MailAccount) -> List[Mailbox]:
        """Create or update local mailbox rows to match the server."""
        raise NotImplementedError

    def fetch_window(self, delta_hint: int) -> int:
        """Messages to fetch for one pull; the delta hint widens the default."""
        extra = min(max(delta_hint, 0), config.get_config("MAX_DELTA_MESSAGES"))
        return config.get_config("MAX_MESSAGES_PER_SYNC") + extra

    def sync_outbound(self, account: MailAccount) -> int:
        """Send every unsent message queued in the account's outbox over SMTP.

        Returns:
            Number of messages sent.
        """
        queued = list(
            MailMessage.objects.filter(
                account=account,
                mailbox__mailbox_type=MailboxType.OUTBOX,
                is_sent=False,
            ).order_by("created_at")
        )
        if not queued:
            return 0

        sent = 0
        server = self._open_smtp(account)
        try:
            for message in queued:
                try:
                    server.send_message(self._build_message(account, message))
                except smtplib.SMTPRecipientsRefused as e:
                    # One bad recipient list should not hold up the rest
                    logger.warning(
                        "Recipients refused for queued message",
                        extra={"message_pk": message.pk, "error": str(e)},
                    )
                    continue
                except smtplib.SMTPServerDisconnected as e:
                    raise IoError(f"SMTP server disconnected: {e}") from e
                except smtplib.SMTPException as e:
                    raise ServerError(f"SMTP send failed: {e}") from e

                message.is_sent = True
                message.sent_at = timezone.now()
                message.save(update_fields=["is_sent", "sent_at", "updated_at"])
                sent += 1
        finally:
            try:
                server.quit()
            except (smtplib.SMTPException, OSError) as e:
                logger.warning("Error closing SMTP connection", extra={"error": str(e)})

        logger.info(
            "Outbox upload completed",
            extra={"account_id": account.id, "sent": sent, "queued": len(queued)},
        )
        return sent

    def _open_smtp(self, account: MailAccount) -> smtplib.SMTP:
        credentials = account.get_credentials()["smtp"]
        try:
            if credentials["use_ssl"]:
                server = smtplib.SMTP_SSL(
                    credentials["server"], credentials["port"], timeout=self.timeout,
                )
            else:
                server = smtplib.SMTP(
                    credentials["server"], credentials["port"], timeout=self.timeout,
                )
                if credentials["use_tls"]:
                    server.starttls(context=ssl.create_default_context())
            if credentials["username"]:
                server.login(credentials["username"], credentials["password"])
            return server
        except smtplib.SMTPAuthenticationError as e:
            raise AuthError(f"SMTP authentication failed: {e}") from e
        except (
            socket.error,
            smtplib.SMTPConnectError,
            smtplib.SMTPServerDisconnected,
        ) as e:
            raise IoError(f"SMTP connection failed: {e}") from e
        except smtplib.SMTPException as e:
            raise ServerError(f"SMTP handshake failed: {e}") from e

    def _build_message(self, account: MailAccount, message: MailMessage) -> EmailMessage:
        email_message = EmailMessage()
        email_message["From"] = account.email_address
        email_message["To"] = ", ".join(message.to_emails)
        email_message["Subject"] = message.subject
        email_message["Date"] = formatdate(localtime=True)
        email_message["Message-ID"] = message.message_id or make_msgid()
        email_message.set_content(message.raw_message or "")
        return email_message
