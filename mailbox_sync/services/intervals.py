"""
Reconciliation of an account's periodic sync registrations.

``normalize`` is pure: it compares what is registered with the interval the
account wants and returns the instructions that make them agree. Applying
the instructions is the scheduler's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from mailsync_core.utils.logging import ContextLogger

logger = ContextLogger(__name__)


@dataclass(frozen=True)
class AddInterval:
    minutes: int


@dataclass(frozen=True)
class RemoveInterval:
    key: str


Instruction = Union[AddInterval, RemoveInterval]


def normalize(
    current_intervals: Iterable[Tuple[int, str]], desired_minutes: int
) -> List[Instruction]:
    """Return the instructions that bring ``current_intervals`` to ``desired_minutes``.

    Every registration with a different interval is removed. When the
    desired interval is positive and nothing is registered for it yet, a
    single registration is added after the removals; this also restores
    periodic sync for an account that had it switched off. A non-positive
    desired interval means periodic sync is off, so only removals are emitted.
    """
    current = list(current_intervals)
    instructions: List[Instruction] = [
        RemoveInterval(key) for minutes, key in current if minutes != desired_minutes
    ]
    already_registered = any(minutes == desired_minutes for minutes, _ in current)
    if desired_minutes > 0 and not already_registered:
        instructions.append(AddInterval(desired_minutes))
    return instructions


def apply_instructions(
    scheduler, account_id: int, instructions: Sequence[Instruction]
) -> None:
    """Hand each instruction to ``scheduler`` in order."""
    for instruction in instructions:
        logger.info(
            "Applying periodic sync instruction",
            extra={"account_id": account_id, "instruction": repr(instruction)},
        )
        scheduler.apply_instruction(account_id, instruction)
