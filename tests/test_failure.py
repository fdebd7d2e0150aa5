"""
Tests for the failure taxonomy.

Validation failures are returned values, call rejections are exceptions
converted at the session boundary, and invariant violations depend on
the debug setting.
"""

import logging

import pytest

from lotoquine.models.failure import (
    CallRejectedError,
    FailureDetail,
    FailureKind,
    InvariantViolationError,
    KnownError,
    ValidationFailure,
    report_invariant_violation,
)


class TestValidationFailure:
    def test_is_falsy(self) -> None:
        failure = ValidationFailure(
            problems=[FailureDetail(kind=FailureKind.WRONG_COUNT, message="14 numbers found, 15 expected.")],
            numbers=list(range(1, 15)),
        )

        assert not failure

    def test_collects_every_problem(self) -> None:
        failure = ValidationFailure(
            problems=[
                FailureDetail(kind=FailureKind.WRONG_COUNT, message="Too few numbers."),
                FailureDetail(kind=FailureKind.DUPLICATE_NUMBERS, message="12 appears twice."),
            ]
        )

        assert failure.kinds == {FailureKind.WRONG_COUNT, FailureKind.DUPLICATE_NUMBERS}
        assert failure.message == "Too few numbers.; 12 appears twice."

    def test_serializes_kinds_as_strings(self) -> None:
        failure = ValidationFailure(problems=[FailureDetail(kind=FailureKind.OUT_OF_RANGE, message="95")])

        dumped = failure.model_dump(mode="json")

        assert dumped["problems"][0]["kind"] == "out_of_range"


class TestKnownError:
    def test_to_detail(self) -> None:
        error = KnownError(
            kind=FailureKind.EMPTY_INPUT,
            message="Nothing was read.",
            suggestion="Retake the photo.",
        )

        detail = error.to_detail()

        assert detail.kind is FailureKind.EMPTY_INPUT
        assert detail.message == "Nothing was read."
        assert detail.suggestion == "Retake the photo."
        assert str(error) == "Nothing was read."

    def test_call_rejected_carries_number(self) -> None:
        error = CallRejectedError(42, FailureKind.DUPLICATE_CALL, "42 has already been called.")

        assert isinstance(error, KnownError)
        assert error.number == 42
        assert error.to_detail().detail == "number=42"


class TestInvariantViolation:
    @pytest.mark.usefixtures("debug_mode")
    def test_raises_in_debug(self) -> None:
        with pytest.raises(InvariantViolationError, match="ledger out of sync"):
            report_invariant_violation("ledger out of sync", card_id="card-1")

    @pytest.mark.usefixtures("production_mode")
    def test_logged_in_production(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="lotoquine.models.failure"):
            report_invariant_violation("ledger out of sync", card_id="card-1")

        record = next(r for r in caplog.records if r.getMessage() == "invariant_violation")
        assert record.violation == "ledger out of sync"
        assert record.card_id == "card-1"
