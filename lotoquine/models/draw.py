"""
Called-number log.

The CalledNumberSequence is the single source of truth for the game:
progress and wins are always derived from it.

INVARIANTS:
- A number appears at most once.
- `order` is dense and 1-based: the n-th call has order n.
- The log is append-only; the only removal is of the last call (undo).
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from lotoquine.models.card import is_valid_loto_number
from lotoquine.models.failure import CallRejectedError, FailureKind


class CallSource(str, Enum):
    """How a number entered the game."""

    MANUAL = "manual"
    VOICE = "voice"


@dataclass(frozen=True, slots=True)
class CalledNumber:
    """One called ball."""

    number: int
    order: int
    source: CallSource
    timestamp: datetime


@dataclass(frozen=True)
class CalledNumberSequence:
    """
    Immutable ordered log of called numbers.

    Mutators return a new sequence, so before/after snapshots are just
    two values and can never drift from each other.
    """

    calls: tuple[CalledNumber, ...] = field(default_factory=tuple)

    def append(
        self,
        number: int,
        source: CallSource = CallSource.MANUAL,
        timestamp: datetime | None = None,
    ) -> "CalledNumberSequence":
        """
        Return a new sequence with `number` called last.

        Raises:
            CallRejectedError: If the number is out of range or already called
        """
        if not is_valid_loto_number(number):
            raise CallRejectedError(
                number,
                FailureKind.INVALID_NUMBER,
                f"{number} is not a loto number (1-90).",
            )
        if number in self:
            raise CallRejectedError(
                number,
                FailureKind.DUPLICATE_CALL,
                f"{number} has already been called.",
            )

        call = CalledNumber(
            number=number,
            order=len(self.calls) + 1,
            source=source,
            timestamp=timestamp or datetime.now(UTC),
        )
        return CalledNumberSequence(calls=(*self.calls, call))

    def without_last(self) -> "CalledNumberSequence":
        """Return the sequence minus its last call (no-op when empty)."""
        return CalledNumberSequence(calls=self.calls[:-1])

    @property
    def last(self) -> CalledNumber | None:
        return self.calls[-1] if self.calls else None

    def numbers(self) -> frozenset[int]:
        """Called numbers as a set, for progress computation."""
        return frozenset(call.number for call in self.calls)

    def ordered_numbers(self) -> list[int]:
        return [call.number for call in self.calls]

    def __contains__(self, number: object) -> bool:
        return any(call.number == number for call in self.calls)

    def __len__(self) -> int:
        return len(self.calls)
