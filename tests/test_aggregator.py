"""Unit tests for the aggregation logic."""

from __future__ import annotations

import math
from datetime import datetime

from models.metrics import EC, TDS
from models.records import Reading
from services.aggregator import Aggregator, MetricSummary


def _reading(ec: float | None, tds: float | None = None) -> Reading:
    """Helper to build deterministic sensor readings."""

    return Reading(timestamp=datetime(2024, 1, 1), device="sensor-a", ec=ec, tds=tds)


def test_aggregate_empty_iterable_returns_zero_summary() -> None:
    aggregator = Aggregator()

    summary = aggregator.aggregate([], EC)

    assert summary == MetricSummary(avg=0, min=0, max=0, count=0)
    assert summary.empty


def test_aggregate_computes_statistics() -> None:
    aggregator = Aggregator()
    readings = [_reading(10.0), _reading(30.0), _reading(20.0)]

    summary = aggregator.aggregate(readings, EC)

    assert summary.count == 3
    assert summary.min == 10.0
    assert summary.max == 30.0
    assert summary.avg == 20.0


def test_aggregate_skips_zero_negative_missing_and_non_finite_values() -> None:
    aggregator = Aggregator()
    readings = [
        _reading(0.0),
        _reading(-5.0),
        _reading(None),
        _reading(math.nan),
        _reading(math.inf),
        _reading(40.0),
    ]

    summary = aggregator.aggregate(readings, "ec")

    assert summary == MetricSummary(avg=40.0, min=40.0, max=40.0, count=1)


def test_aggregate_with_only_sentinels_is_empty() -> None:
    summary = Aggregator().aggregate([_reading(0.0), _reading(None)], EC)

    assert summary == MetricSummary()


def test_summarize_per_metric() -> None:
    readings = [_reading(100.0, 50.0), _reading(300.0, 0.0)]

    summaries = Aggregator().summarize(readings, [EC, TDS])

    assert summaries["ec"].avg == 200.0
    assert summaries["tds"] == MetricSummary(avg=50.0, min=50.0, max=50.0, count=1)
