"""
Factory module for creating the synchronizer that matches an account.

Synchronizer classes are registered per ``Protocol``; the sync core never
compares protocol strings itself.
"""

from typing import Dict, Type

from mailsync_core.utils.logging import ContextLogger

from ...enums import Protocol
from ...exceptions import ConfigurationError
from .base import MailboxSynchronizer
from .imap import ImapSynchronizer
from .pop3 import Pop3Synchronizer

logger = ContextLogger(__name__)

SYNCHRONIZER_REGISTRY: Dict[Protocol, Type[MailboxSynchronizer]] = {
    Protocol.IMAP: ImapSynchronizer,
    Protocol.POP3: Pop3Synchronizer,
}


def get_synchronizer(account) -> MailboxSynchronizer:
    """
    Create and return the synchronizer for an account's protocol.

    Args:
        account: MailAccount instance

    Returns:
        Configured synchronizer instance

    Raises:
        ConfigurationError: If the account is missing or its protocol unknown
    """
    if not account:
        raise ConfigurationError("Account is missing or invalid")

    try:
        synchronizer_class = SYNCHRONIZER_REGISTRY[Protocol(account.protocol)]
    except (ValueError, KeyError):
        logger.error(
            "No synchronizer for protocol",
            extra={"account_id": account.id, "protocol": account.protocol},
        )
        raise ConfigurationError(
            f"Could not determine synchronizer for account {account.id}"
        )

    logger.debug(
        "Created mailbox synchronizer",
        extra={"account_id": account.id, "synchronizer": synchronizer_class.__name__},
    )
    return synchronizer_class(account)
