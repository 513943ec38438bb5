"""Utility functions shared by the protocol adapters.

Header decoding, IMAP LIST parsing and the local bookkeeping every adapter
needs (storing fetched headers, making sure the local outbox exists).
"""

import email
import re
from email.header import decode_header
from email.utils import getaddresses, parsedate_to_datetime

from django.utils import timezone

from ..enums import MailboxType
from ..models import Mailbox, MailMessage

OUTBOX_SERVER_ID = "__outbox__"

LIST_RESPONSE = re.compile(
    r'\((?P<flags>[^)]*)\)\s+(?P<delimiter>"[^"]*"|NIL)\s+(?P<name>.+)'
)

SPECIAL_USE_TYPES = {
    "\\drafts": MailboxType.DRAFTS,
    "\\sent": MailboxType.SENT,
    "\\trash": MailboxType.TRASH,
}


def decode_header_value(value) -> str:
    """Decode an RFC 2047 encoded header into a plain string."""
    if not value:
        return ""

    decoded_parts = []
    for part, encoding in decode_header(str(value)):
        if isinstance(part, bytes):
            decoded_parts.append(part.decode(encoding or "utf-8", errors="replace"))
        else:
            decoded_parts.append(part)
    return "".join(decoded_parts).strip()


def parse_list_response(line):
    """Parse one IMAP LIST response line.

    Args:
        line: Raw line, e.g. ``b'(\\HasNoChildren \\Drafts) "/" "Drafts"'``

    Returns:
        ``(name, flags)`` or ``None`` when the line cannot be parsed
    """
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    match = LIST_RESPONSE.match(line.strip())
    if not match:
        return None
    name = match.group("name").strip()
    if name.startswith('"') and name.endswith('"'):
        name = name[1:-1]
    flags = {flag.lower() for flag in match.group("flags").split()}
    return name, flags


def mailbox_type_for(name: str, flags) -> str:
    """Infer the mailbox type from its name and special-use flags."""
    if name.upper() == "INBOX":
        return MailboxType.INBOX
    for flag, mailbox_type in SPECIAL_USE_TYPES.items():
        if flag in flags:
            return mailbox_type
    return MailboxType.OTHER


def ensure_outbox(account) -> Mailbox:
    """Return the account's local outbox, creating it if needed."""
    mailbox, _ = Mailbox.objects.get_or_create(
        account=account,
        server_id=OUTBOX_SERVER_ID,
        defaults={"display_name": "Outbox", "mailbox_type": MailboxType.OUTBOX},
    )
    return mailbox


def store_message(mailbox, server_uid, raw_headers: bytes, is_read=False) -> MailMessage:
    """Store (or refresh) a fetched message's headers in ``mailbox``."""
    parsed = email.message_from_bytes(raw_headers or b"")
    date_str = parsed.get("Date")
    try:
        received_at = parsedate_to_datetime(date_str) if date_str else timezone.now()
        if timezone.is_naive(received_at):
            received_at = timezone.make_aware(received_at)
    except (TypeError, ValueError):
        received_at = timezone.now()

    message, _ = MailMessage.objects.update_or_create(
        mailbox=mailbox,
        server_uid=str(server_uid),
        defaults={
            "account": mailbox.account,
            "message_id": decode_header_value(parsed.get("Message-ID")),
            "from_email": decode_header_value(parsed.get("From")),
            "to_emails": [
                address for _, address in getaddresses(parsed.get_all("To", []))
            ],
            "subject": decode_header_value(parsed.get("Subject"))[:500],
            "is_read": is_read,
            "received_at": received_at,
        },
    )
    return message
