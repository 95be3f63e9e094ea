"""Tests for error aggregation."""

import logging

from courtsched.config.error_aggregator import (
    aggregate_error,
    get_error_aggregator,
    init_error_aggregator,
)
from courtsched.config.logging_config import ErrorAggregationConfig


def make_aggregator(**overrides):
    params = {'enabled': True, 'error_threshold': 3, 'time_threshold': 3600}
    params.update(overrides)
    return init_error_aggregator(ErrorAggregationConfig(**params), start_reporter=False)


class TestErrorAggregator:
    def test_groups_by_message(self):
        aggregator = make_aggregator()
        aggregate_error("slot taken", "scheduling")
        aggregate_error("slot taken", "scheduling")
        aggregate_error("court missing", "scheduling")
        assert aggregator.pending() == {"slot taken": 2, "court missing": 1}

    def test_reports_at_threshold(self, caplog):
        aggregator = make_aggregator()
        with caplog.at_level(logging.ERROR, logger='error_aggregator'):
            for _ in range(3):
                aggregate_error("slot taken", "scheduling")
        assert aggregator.pending() == {}
        assert caplog.records[0].error_count == 3

    def test_flush(self, caplog):
        aggregator = make_aggregator()
        aggregate_error("slot taken", "scheduling")
        with caplog.at_level(logging.ERROR, logger='error_aggregator'):
            aggregator.flush()
        assert aggregator.pending() == {}
        assert [r.getMessage() for r in caplog.records] == ["slot taken"]

    def test_disabled(self):
        aggregator = make_aggregator(enabled=False)
        aggregate_error("slot taken", "scheduling")
        assert aggregator.pending() == {}

    def test_noop_without_aggregator(self):
        assert get_error_aggregator() is None
        aggregate_error("slot taken", "scheduling")
