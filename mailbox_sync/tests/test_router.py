"""Tests for trigger parsing and routing."""

import pytest

from mailbox_sync.enums import AccountStatus, MailboxType, SyncOutcome
from mailbox_sync.exceptions import AuthError, IoError
from mailbox_sync.services.intervals import AddInterval, RemoveInterval
from mailbox_sync.services.orchestrator import NO_PENDING_UPDATES
from mailbox_sync.services.router import (
    ACCOUNT_NOT_FOUND,
    SyncRequestRouter,
    parse_trigger,
)


@pytest.fixture
def router(
    mock_store,
    mock_scheduler,
    mock_sync_logger,
    mock_publisher,
    mock_refresher,
    synchronizer_factory,
):
    return SyncRequestRouter(
        store=mock_store,
        scheduler=mock_scheduler,
        sync_logger=mock_sync_logger,
        publisher=mock_publisher,
        synchronizer_factory=synchronizer_factory,
        folder_refresher=mock_refresher,
    )


@pytest.fixture(autouse=True)
def known_account(mock_store, account_stub, mailbox_stub):
    mock_store.find_account.side_effect = (
        lambda email: account_stub if email == account_stub.email_address else None
    )
    mock_store.load_account.side_effect = (
        lambda account_id: account_stub if account_id == account_stub.id else None
    )
    mock_store.load_mailbox.side_effect = lambda mailbox_id: mailbox_stub(mailbox_id)
    mock_store.find_mailbox_of_type.return_value = 10


def emitted(mock_sync_logger):
    mock_sync_logger.emit.assert_called_once()
    return mock_sync_logger.emit.call_args.args[0]


def test_parse_trigger_defaults(account_stub):
    request = parse_trigger({"account": "test@example.com"}, account_stub)

    assert request.mailbox_ids == ()
    assert request.upload_only is False
    assert request.expedited is False
    assert request.delta_message_count == 0


@pytest.mark.parametrize("delta", [-5, "abc", None])
def test_parse_trigger_clamps_bad_delta(account_stub, delta):
    request = parse_trigger({"delta_message_count": delta}, account_stub)

    assert request.delta_message_count == 0


def test_parse_trigger_reads_flags_and_ids(account_stub):
    request = parse_trigger(
        {
            "upload": "true",
            "expedited": 1,
            "mailbox_ids": "4,2",
            "delta_message_count": "25",
        },
        account_stub,
    )

    assert request.upload_only is True
    assert request.expedited is True
    assert request.mailbox_ids == (4, 2)
    assert request.delta_message_count == 25


def test_unknown_account_is_logged(router, mock_sync_logger, mock_scheduler, mock_refresher):
    run_log = router.handle({"account": "nobody@example.com"})

    assert run_log is emitted(mock_sync_logger)
    assert run_log.note == ACCOUNT_NOT_FOUND
    assert run_log.entries == []
    mock_scheduler.list_registered_intervals.assert_not_called()
    mock_refresher.refresh.assert_not_called()


def test_pull_trigger_syncs_inbox_and_emits(router, mock_sync_logger, account_stub):
    run_log = router.handle({"account": "test@example.com", "expedited": True})

    assert run_log is emitted(mock_sync_logger)
    assert run_log.account_name == account_stub.label
    assert run_log.sync_automatically is True
    assert run_log.outcomes() == [SyncOutcome.SUCCESS]
    assert run_log.request["expedited"] is True


def test_account_id_trigger(router, mock_store, account_stub):
    run_log = router.handle({"account_id": account_stub.id, "mailbox_ids": [3, 4]})

    mock_store.find_account.assert_not_called()
    assert [entry.mailbox_id for entry in run_log.entries] == [3, 4]


def test_upload_trigger_without_pending_updates(router, mock_sync_logger):
    run_log = router.handle({"account": "test@example.com", "upload": True})

    assert run_log.upload is True
    assert run_log.note == NO_PENDING_UPDATES
    assert emitted(mock_sync_logger) is run_log


def test_sync_automatically_follows_account(router, account_stub):
    account_stub.sync_enabled = False

    run_log = router.handle({"account": "test@example.com"})

    assert run_log.sync_automatically is False


def test_interval_change_is_applied(router, mock_scheduler, account_stub):
    account_stub.sync_interval_minutes = 30
    mock_scheduler.list_registered_intervals.return_value = [(15, "old")]

    run_log = router.handle({"account": "test@example.com"})

    assert [call.args for call in mock_scheduler.apply_instruction.call_args_list] == [
        (account_stub.id, RemoveInterval("old")),
        (account_stub.id, AddInterval(30)),
    ]
    assert run_log.periodic_syncs == [{"period": 15, "key": "old"}]


def test_matching_interval_is_left_alone(router, mock_scheduler):
    mock_scheduler.list_registered_intervals.return_value = [(15, "current")]

    router.handle({"account": "test@example.com"})

    mock_scheduler.apply_instruction.assert_not_called()


def test_unexpected_error_is_recorded_and_emitted(
    router, mock_scheduler, mock_sync_logger, mock_refresher
):
    mock_scheduler.list_registered_intervals.side_effect = RuntimeError("scheduler down")

    run_log = router.handle({"account": "test@example.com"})

    assert run_log.failure == "scheduler down"
    assert emitted(mock_sync_logger) is run_log
    mock_refresher.refresh.assert_not_called()


def test_emit_failure_does_not_raise(router, mock_sync_logger):
    mock_sync_logger.emit.side_effect = RuntimeError("disk full")

    run_log = router.handle({"account": "test@example.com"})

    assert run_log.outcomes() == [SyncOutcome.SUCCESS]


def test_each_trigger_gets_a_fresh_run_log(router, mock_sync_logger, mock_store):
    mock_store.find_mailbox_of_type.return_value = 10

    first = router.handle({"account": "test@example.com"})
    second = router.handle({"account": "test@example.com"})

    assert first is not second
    assert len(second.entries) == 1
    mock_store.find_mailbox_of_type.assert_called_with(1, MailboxType.INBOX)


def test_rejected_credentials_mark_account_error(router, mock_store, mock_synchronizer):
    mock_synchronizer.sync_inbound.side_effect = AuthError("invalid credentials")

    run_log = router.handle({"account": "test@example.com"})

    assert run_log.outcomes() == [SyncOutcome.AUTH_ERROR]
    mock_store.update_account_status.assert_called_once_with(1, AccountStatus.ERROR)


def test_login_failure_during_folder_refresh_marks_account_error(
    router, mock_store, mock_refresher
):
    mock_refresher.refresh.side_effect = AuthError("invalid credentials")

    run_log = router.handle({"account": "test@example.com"})

    assert run_log.entries == []
    assert run_log.failure_kind == "auth_failed"
    mock_store.update_account_status.assert_called_once_with(1, AccountStatus.ERROR)


def test_successful_sync_reactivates_account(router, mock_store, account_stub):
    account_stub.status = AccountStatus.ERROR

    router.handle({"account": "test@example.com"})

    mock_store.update_account_status.assert_called_once_with(1, AccountStatus.ACTIVE)


@pytest.mark.parametrize(
    "status, failure",
    [
        (AccountStatus.ACTIVE, None),
        (AccountStatus.ACTIVE, IoError("timeout")),
        (AccountStatus.ERROR, IoError("timeout")),
        (AccountStatus.INACTIVE, None),
    ],
)
def test_account_status_unchanged(
    router, mock_store, mock_synchronizer, account_stub, status, failure
):
    account_stub.status = status
    mock_synchronizer.sync_inbound.side_effect = failure

    router.handle({"account": "test@example.com"})

    mock_store.update_account_status.assert_not_called()


def test_status_update_failure_keeps_run_log(router, mock_store, mock_synchronizer):
    mock_synchronizer.sync_inbound.side_effect = AuthError("invalid credentials")
    mock_store.update_account_status.side_effect = RuntimeError("database is locked")

    run_log = router.handle({"account": "test@example.com"})

    assert run_log.failure == ""
    assert run_log.outcomes() == [SyncOutcome.AUTH_ERROR]
