"""
Failure taxonomy: Typed Outcomes for Routine and Exceptional Failures.

Four classes of failure exist in the game engine:

- ValidationFailure: a card cannot be built from the given numbers.
  RETURNED, never raised. Routine outcome of noisy OCR; a human corrects it.
- Low confidence: not a failure at all. Parsers return a normal result
  carrying a `Confidence` signal and the caller decides what to do.
- External service failure: OCR or scraping returned nothing. Adapters
  degrade to empty input, which card digitising reports as EMPTY_INPUT;
  parsers never see transport errors.
- Invariant violation: a programming fault. Raises in debug mode,
  logs and continues in production.

INVARIANT: No transport-specific exception (httpx, JSON decoding) crosses
into parsing or game-logic code.
"""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from lotoquine.config import settings

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Card validation failures
    WRONG_COUNT = "wrong_count"
    DUPLICATE_NUMBERS = "duplicate_numbers"
    OUT_OF_RANGE = "out_of_range"
    COLUMN_OVERFLOW = "column_overflow"
    COLUMN_MISMATCH = "column_mismatch"

    # Called-number failures
    DUPLICATE_CALL = "duplicate_call"
    INVALID_NUMBER = "invalid_number"
    NOTHING_TO_UNDO = "nothing_to_undo"

    # Input failures
    EMPTY_INPUT = "empty_input"

    # Internal errors
    INVARIANT_VIOLATION = "invariant_violation"


class Confidence(str, Enum):
    """How much a parse result can be trusted without human review."""

    HIGH = "high"
    LOW = "low"
    NONE = "none"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ValidationFailure(BaseModel):
    """
    Typed failure returned when a card cannot be built.

    Carries every problem found, not just the first one, so the
    correction screen can show them all at once.
    """

    problems: list[FailureDetail] = Field(default_factory=list)
    numbers: list[int] = Field(
        default_factory=list,
        description="The numbers that were submitted",
    )

    @property
    def kinds(self) -> set[FailureKind]:
        return {p.kind for p in self.problems}

    @property
    def message(self) -> str:
        return "; ".join(p.message for p in self.problems)

    def __bool__(self) -> bool:
        # A failure is never truthy, so `if result:` reads naturally for cards
        return False


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Raised by model-level mutators; session code converts them into
    typed results with `to_detail()`.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class CallRejectedError(KnownError):
    """A number could not be appended to the called-number sequence."""

    def __init__(self, number: int, kind: FailureKind, message: str):
        self.number = number
        super().__init__(kind=kind, message=message, detail=f"number={number}")


class InvariantViolationError(Exception):
    """Raised in debug mode when an internal invariant does not hold."""


def report_invariant_violation(message: str, **context: Any) -> None:
    """
    Report a broken internal invariant.

    Fails loudly when `settings.debug` is set. In production the violation
    is logged and ignored: derived state is always recomputed from the
    called-number log, so a skipped correction cannot corrupt it.
    """
    if settings.debug:
        raise InvariantViolationError(message)

    logger.error(
        "invariant_violation",
        extra={"violation": message, **context},
    )
