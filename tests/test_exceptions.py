"""Tests for the error hierarchy and handler."""

import pytest

from courtsched.config.error_aggregator import init_error_aggregator
from courtsched.config.logging_config import ErrorAggregationConfig
from courtsched.error_codes import ErrorCode
from courtsched.exceptions import (
    CourtNotFoundError,
    SchedulingError,
    SlotUnavailableError,
    handle_errors,
)


@pytest.fixture
def aggregator():
    return init_error_aggregator(
        ErrorAggregationConfig(enabled=True, error_threshold=100, time_threshold=3600),
        start_reporter=False
    )


class TestErrors:
    def test_codes_and_details(self):
        error = SlotUnavailableError("taken", ["10:00-11:30"])
        assert isinstance(error, SchedulingError)
        assert error.code == ErrorCode.SLOT_UNAVAILABLE
        assert error.conflicting_windows == ["10:00-11:30"]
        assert "taken" in str(error)

    def test_not_found_carries_id(self):
        error = CourtNotFoundError("c9")
        assert error.code == ErrorCode.COURT_NOT_FOUND
        assert "c9" in str(error)


class TestHandleErrors:
    def test_reraises_and_aggregates(self, aggregator):
        with pytest.raises(CourtNotFoundError):
            with handle_errors(SchedulingError, "scheduling", "lookup"):
                raise CourtNotFoundError("c9")
        assert sum(aggregator.pending().values()) == 1

    def test_unexpected_errors_propagate(self, aggregator):
        with pytest.raises(KeyError):
            with handle_errors(SchedulingError, "scheduling", "lookup"):
                raise KeyError("x")
        assert sum(aggregator.pending().values()) == 1

    def test_fallback_swallows(self):
        calls = []
        with handle_errors(SchedulingError, "scheduling", "lookup", fallback=lambda: calls.append(1)):
            raise CourtNotFoundError("c9")
        assert calls == [1]
