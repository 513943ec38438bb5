"""Integration tests for the IMAP synchronizer.

These tests drive the synchronizer against a mock IMAP server that mimics
the ``imaplib`` client API.
"""

import imaplib
from unittest import mock

import pytest
from django.test import TestCase

from ..channels.adapters.imap import ImapSynchronizer
from ..channels.utils import OUTBOX_SERVER_ID
from ..enums import MailboxType
from ..exceptions import AuthError, IoError, ServerError
from ..models import Mailbox, MailMessage, PendingUpdate
from .factories import MailAccountFactory, MailboxFactory, MailMessageFactory, PendingUpdateFactory


def header_block(uid):
    return (
        f"From: sender{uid}@example.com\r\n"
        f"To: test@example.com\r\n"
        f"Subject: Message {uid}\r\n"
        f"Date: Mon, 05 Oct 2026 10:0{uid % 10}:00 +0000\r\n"
        f"Message-ID: <msg-{uid}@example.com>\r\n\r\n"
    ).encode()


class MockIMAPServer:
    """Mock implementation of the imaplib client for testing."""

    def __init__(self, uids=None, folders=None, should_fail=False, auth_fail=False):
        self.uids = list(uids or [])
        self.seen = set()
        self.folders = folders or [
            b'(\\HasNoChildren) "/" "INBOX"',
            b'(\\HasNoChildren \\Sent) "/" "Sent Items"',
            b'(\\HasNoChildren \\Drafts) "/" "Drafts"',
            b'(\\Noselect \\HasChildren) "/" "[Gmail]"',
        ]
        self.should_fail = should_fail
        self.auth_fail = auth_fail
        self.select_status = "OK"
        self.fail_fetch = None
        self.fail_login = None
        self.stored_flags = {}
        self.logged_out = False

        # Track method calls for verification
        self.calls = []

    def _record_call(self, method, *args):
        self.calls.append({"method": method, "args": args})

    def __call__(self, host, port=993, ssl_context=None, timeout=None):
        """Called when instantiating an IMAP4 or IMAP4_SSL connection."""
        self._record_call("__call__", host, port, timeout)
        if self.should_fail:
            raise OSError(f"Failed to connect to {host}:{port}")
        return self

    def login(self, username, password):
        self._record_call("login", username)
        if self.fail_login is not None:
            raise self.fail_login
        if self.auth_fail:
            raise imaplib.IMAP4.error("[AUTHENTICATIONFAILED] Invalid credentials")
        return "OK", [b"Logged in"]

    def select(self, mailbox):
        self._record_call("select", mailbox)
        return self.select_status, [str(len(self.uids)).encode()]

    def list(self):
        self._record_call("list")
        return "OK", list(self.folders)

    def uid(self, command, *args):
        self._record_call(command, *args)
        if command == "SEARCH":
            start = int(args[1].split()[1].split(":")[0])
            matches = [uid for uid in self.uids if uid >= start]
            # "n:*" always includes the highest UID
            if not matches and self.uids:
                matches = [self.uids[-1]]
            return "OK", [" ".join(str(uid) for uid in matches).encode()]
        if command == "FETCH":
            uid = int(args[0])
            if self.fail_fetch is not None:
                raise self.fail_fetch
            flags = "\\Seen" if uid in self.seen else ""
            return "OK", [
                (f"1 (UID {uid} FLAGS ({flags}) BODY[HEADER] {{100}}".encode(), header_block(uid)),
                b")",
            ]
        if command == "STORE":
            self.stored_flags[args[0]] = args[2]
            return "OK", [b"done"]
        return "BAD", [b"unknown command"]

    def logout(self):
        self._record_call("logout")
        self.logged_out = True
        return "BYE", [b"Logging out"]


class ImapSynchronizerTest(TestCase):
    """Test the IMAP synchronizer with a mock server."""

    def setUp(self):
        self.account = MailAccountFactory(
            email_address="test@example.com", incoming_server="imap.example.com",
        )
        self.inbox = MailboxFactory(account=self.account, inbox=True)
        self.mock_server = MockIMAPServer(uids=[1, 2, 3])
        self.mock_server.seen.add(2)

        self.imap_ssl_patcher = mock.patch("imaplib.IMAP4_SSL", self.mock_server)
        self.imap_ssl_patcher.start()

        self.synchronizer = ImapSynchronizer(self.account)

    def tearDown(self):
        self.imap_ssl_patcher.stop()

    def test_connect_success(self):
        self.synchronizer.connect()

        assert self.mock_server.calls[0]["args"][:2] == ("imap.example.com", 993)
        assert self.mock_server.calls[1] == {"method": "login", "args": ("test@example.com",)}

    def test_connect_auth_error(self):
        self.mock_server.auth_fail = True

        with pytest.raises(AuthError):
            self.synchronizer.connect()

        assert self.mock_server.logged_out

    def test_connection_dropped_during_login(self):
        self.mock_server.fail_login = imaplib.IMAP4.abort("socket closed")

        with pytest.raises(IoError):
            self.synchronizer.connect()

        assert self.mock_server.logged_out

    def test_connection_error(self):
        self.mock_server.should_fail = True

        with pytest.raises(IoError):
            self.synchronizer.connect()

    def test_pull_stores_new_headers(self):
        stored = self.synchronizer.sync_inbound(self.account, self.inbox, 0, False)

        assert stored == 3
        self.inbox.refresh_from_db()
        assert self.inbox.last_seen_uid == 3
        message = MailMessage.objects.get(mailbox=self.inbox, server_uid="2")
        assert message.subject == "Message 2"
        assert message.from_email == "sender2@example.com"
        assert message.to_emails == ["test@example.com"]
        assert message.is_read
        assert self.mock_server.logged_out

    def test_pull_only_fetches_above_watermark(self):
        self.inbox.last_seen_uid = 3
        self.inbox.save()
        self.mock_server.uids.append(4)

        stored = self.synchronizer.sync_inbound(self.account, self.inbox, 0, False)

        assert stored == 1
        fetched = [c["args"][0] for c in self.mock_server.calls if c["method"] == "FETCH"]
        assert fetched == ["4"]

    def test_pull_with_nothing_new(self):
        self.inbox.last_seen_uid = 3
        self.inbox.save()

        assert self.synchronizer.sync_inbound(self.account, self.inbox, 0, False) == 0
        assert not MailMessage.objects.exists()

    @mock.patch("mailbox_sync.channels.adapters.base.config.get_config")
    def test_window_keeps_newest_messages(self, get_config):
        get_config.side_effect = lambda key, default=None: {
            "MAX_MESSAGES_PER_SYNC": 1,
            "MAX_DELTA_MESSAGES": 1,
        }.get(key, 30)

        stored = self.synchronizer.sync_inbound(self.account, self.inbox, 5, False)

        assert stored == 2
        assert set(
            MailMessage.objects.values_list("server_uid", flat=True)
        ) == {"2", "3"}

    def test_pending_flag_changes_are_uploaded_first(self):
        message = MailMessageFactory(
            mailbox=self.inbox, server_uid="1", is_read=True, is_flagged=True,
        )
        PendingUpdateFactory(message=message)

        self.synchronizer.sync_inbound(self.account, self.inbox, 0, False)

        assert self.mock_server.stored_flags == {"1": "(\\Seen \\Flagged)"}
        assert not PendingUpdate.objects.exists()
        methods = [c["method"] for c in self.mock_server.calls]
        assert methods.index("STORE") < methods.index("SEARCH")

    def test_select_failure_is_server_error(self):
        self.mock_server.select_status = "NO"

        with pytest.raises(ServerError):
            self.synchronizer.sync_inbound(self.account, self.inbox, 0, False)
        assert self.mock_server.logged_out

    def test_connection_lost_is_io_error(self):
        self.mock_server.fail_fetch = imaplib.IMAP4.abort("socket closed")

        with pytest.raises(IoError):
            self.synchronizer.sync_inbound(self.account, self.inbox, 0, False)
        assert self.mock_server.logged_out

    def test_update_folder_list(self):
        mailboxes = self.synchronizer.update_folder_list(self.account)

        by_server_id = {m.server_id: m for m in mailboxes}
        assert set(by_server_id) == {"INBOX", "Sent Items", "Drafts", OUTBOX_SERVER_ID}
        assert by_server_id["INBOX"].pk == self.inbox.pk
        assert by_server_id["Sent Items"].mailbox_type == MailboxType.SENT
        assert by_server_id["Drafts"].mailbox_type == MailboxType.DRAFTS
        assert by_server_id[OUTBOX_SERVER_ID].mailbox_type == MailboxType.OUTBOX

        # A second refresh does not duplicate rows
        self.synchronizer.update_folder_list(self.account)
        assert Mailbox.objects.filter(account=self.account).count() == 4

    def test_quote_mailbox_names(self):
        assert ImapSynchronizer._quote("INBOX") == "INBOX"
        assert ImapSynchronizer._quote("Archive/2026") == "Archive/2026"
        assert ImapSynchronizer._quote("Sent Items") == '"Sent Items"'
