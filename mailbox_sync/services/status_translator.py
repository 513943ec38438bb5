"""
Translation of synchronizer failures into sync outcomes and result codes.

The numeric value persisted in ``Mailbox.last_sync_result`` packs two
independent axes: the urgency of the sync (``SyncStatus`` bits in the low
nibble) and the result (``LastSyncResult`` shifted left by four bits).
"""

from typing import Tuple

from ..enums import FailureKind, LastSyncResult, SyncOutcome, SyncStatus
from ..exceptions import SyncFailure

RESULT_SHIFT = 4
STATUS_MASK = (1 << RESULT_SHIFT) - 1

OUTCOME_BY_FAILURE = {
    FailureKind.NONE: SyncOutcome.SUCCESS,
    FailureKind.IO_ERROR: SyncOutcome.IO_ERROR,
    FailureKind.AUTH_FAILED: SyncOutcome.AUTH_ERROR,
    FailureKind.SERVER_ERROR: SyncOutcome.SERVER_ERROR,
    FailureKind.OTHER: SyncOutcome.INTERNAL_ERROR,
}

RESULT_BY_OUTCOME = {
    SyncOutcome.SUCCESS: LastSyncResult.SUCCESS,
    SyncOutcome.IO_ERROR: LastSyncResult.CONNECTION_ERROR,
    SyncOutcome.AUTH_ERROR: LastSyncResult.AUTH_ERROR,
    SyncOutcome.SERVER_ERROR: LastSyncResult.SERVER_ERROR,
    SyncOutcome.INTERNAL_ERROR: LastSyncResult.INTERNAL_ERROR,
}


def encode_sync_value(status: int, result: int) -> int:
    """Pack a sync status and a last-sync result into one integer."""
    return int(status) | (int(result) << RESULT_SHIFT)


def decode_sync_value(value: int) -> Tuple[SyncStatus, LastSyncResult]:
    """Split a packed value back into ``(SyncStatus, LastSyncResult)``."""
    return SyncStatus(value & STATUS_MASK), LastSyncResult(value >> RESULT_SHIFT)


def classify(exc: BaseException) -> FailureKind:
    """Return the failure kind carried by ``exc``; unclassified errors are OTHER."""
    if isinstance(exc, SyncFailure):
        return exc.kind
    return FailureKind.OTHER


def outcome_for(failure_kind) -> SyncOutcome:
    try:
        return OUTCOME_BY_FAILURE[FailureKind(failure_kind)]
    except (ValueError, KeyError, TypeError):
        return SyncOutcome.INTERNAL_ERROR


def result_code(outcome: SyncOutcome, urgency: int) -> int:
    """Numeric ``last_sync_result`` for an outcome at the given urgency."""
    result = RESULT_BY_OUTCOME.get(outcome, LastSyncResult.INTERNAL_ERROR)
    return encode_sync_value(urgency, result)


def translate(failure_kind, requested_urgency) -> Tuple[SyncOutcome, int]:
    """Classify a synchronizer result.

    Args:
        failure_kind: ``FailureKind`` (or its value) reported by the synchronizer
        requested_urgency: ``SyncStatus.USER`` or ``SyncStatus.BACKGROUND``

    Returns:
        ``(SyncOutcome, numeric code)``; unknown kinds give INTERNAL_ERROR.
    """
    outcome = outcome_for(failure_kind)
    return outcome, result_code(outcome, requested_urgency)
