"""Tests for sync result classification and the packed sync value."""

import pytest

from mailbox_sync.enums import FailureKind, LastSyncResult, SyncOutcome, SyncStatus
from mailbox_sync.exceptions import (
    AuthError,
    DataIntegrityError,
    InternalError,
    IoError,
    ServerError,
)
from mailbox_sync.services.status_translator import (
    classify,
    decode_sync_value,
    encode_sync_value,
    translate,
)


@pytest.mark.parametrize(
    "kind, outcome, result",
    [
        (FailureKind.NONE, SyncOutcome.SUCCESS, LastSyncResult.SUCCESS),
        (FailureKind.IO_ERROR, SyncOutcome.IO_ERROR, LastSyncResult.CONNECTION_ERROR),
        (FailureKind.AUTH_FAILED, SyncOutcome.AUTH_ERROR, LastSyncResult.AUTH_ERROR),
        (FailureKind.SERVER_ERROR, SyncOutcome.SERVER_ERROR, LastSyncResult.SERVER_ERROR),
        (FailureKind.OTHER, SyncOutcome.INTERNAL_ERROR, LastSyncResult.INTERNAL_ERROR),
    ],
)
@pytest.mark.parametrize("urgency", [SyncStatus.USER, SyncStatus.BACKGROUND])
def test_translate_packs_urgency_and_result(kind, outcome, result, urgency):
    translated_outcome, code = translate(kind, urgency)

    assert translated_outcome == outcome
    assert code == urgency | (result << 4)
    assert decode_sync_value(code) == (urgency, result)


def test_translate_accepts_raw_values():
    assert translate("io_error", SyncStatus.USER) == (SyncOutcome.IO_ERROR, 1 | (1 << 4))


@pytest.mark.parametrize("kind", ["bogus", None, 42])
def test_unknown_failure_kind_is_internal_error(kind):
    outcome, code = translate(kind, SyncStatus.BACKGROUND)

    assert outcome == SyncOutcome.INTERNAL_ERROR
    assert code == encode_sync_value(SyncStatus.BACKGROUND, LastSyncResult.INTERNAL_ERROR)


def test_background_auth_error_code():
    # BACKGROUND (4) with AUTH_ERROR (2) in the high bits
    assert translate(FailureKind.AUTH_FAILED, SyncStatus.BACKGROUND)[1] == 36


@pytest.mark.parametrize(
    "exc, kind",
    [
        (IoError("timed out"), FailureKind.IO_ERROR),
        (AuthError("bad password"), FailureKind.AUTH_FAILED),
        (ServerError("NO"), FailureKind.SERVER_ERROR),
        (InternalError("?"), FailureKind.OTHER),
        (DataIntegrityError("mailbox is null"), FailureKind.OTHER),
        (RuntimeError("boom"), FailureKind.OTHER),
    ],
)
def test_classify(exc, kind):
    assert classify(exc) == kind
