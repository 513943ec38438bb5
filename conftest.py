"""
Global pytest configuration and fixtures.
"""

from types import SimpleNamespace
from unittest import mock

import pytest

from mailbox_sync.enums import AccountStatus, MailboxType, Protocol
from mailbox_sync.services.interfaces import (
    FolderListRefresher,
    MailStore,
    SyncLogger,
    SyncScheduler,
    SyncStatusPublisher,
)
from mailbox_sync.tests.factories import MailAccountFactory, MailboxFactory


@pytest.fixture
def mock_request_id():
    """Return a consistent request ID for testing."""
    return "test-request-id-12345"


@pytest.fixture
def mail_account(db):
    """Create and return a test IMAP account."""
    return MailAccountFactory(email_address="test@example.com", name="Test User")


@pytest.fixture
def inbox(mail_account):
    """Create and return the test account's inbox."""
    return MailboxFactory(account=mail_account, inbox=True)


@pytest.fixture
def account_stub():
    """An in-memory account for tests that do not touch the database."""
    return SimpleNamespace(
        id=1,
        label="Test User",
        email_address="test@example.com",
        protocol=Protocol.IMAP,
        status=AccountStatus.ACTIVE,
        sync_enabled=True,
        sync_interval_minutes=15,
    )


@pytest.fixture
def mailbox_stub():
    """Build in-memory mailboxes belonging to ``account_stub``."""

    def make(mailbox_id=10, mailbox_type=MailboxType.INBOX, account_id=1, name=None):
        return SimpleNamespace(
            id=mailbox_id,
            account_id=account_id,
            display_name=name or f"Mailbox {mailbox_id}",
            mailbox_type=mailbox_type,
        )

    return make


@pytest.fixture
def mock_store():
    store = mock.MagicMock(spec=MailStore)
    store.list_mailboxes_with_pending_updates.return_value = []
    store.find_mailbox_of_type.return_value = None
    return store


@pytest.fixture
def mock_refresher():
    return mock.MagicMock(spec=FolderListRefresher)


@pytest.fixture
def mock_scheduler():
    scheduler = mock.MagicMock(spec=SyncScheduler)
    scheduler.list_registered_intervals.return_value = []
    return scheduler


@pytest.fixture
def mock_sync_logger():
    return mock.MagicMock(spec=SyncLogger)


@pytest.fixture
def mock_publisher():
    return mock.MagicMock(spec=SyncStatusPublisher)


@pytest.fixture
def mock_synchronizer():
    """A synchronizer double returned by ``synchronizer_factory``."""
    synchronizer = mock.MagicMock()
    synchronizer.sync_inbound.return_value = 3
    synchronizer.sync_outbound.return_value = 1
    return synchronizer


@pytest.fixture
def synchronizer_factory(mock_synchronizer):
    return mock.MagicMock(return_value=mock_synchronizer)
