"""Aggregation logic for sensor readings."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence

from models.metrics import MetricSpec
from models.records import Reading


@dataclass(frozen=True)
class MetricSummary:
    """Min/avg/max of one metric over a window; all zero when empty."""

    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0
    count: int = 0

    @property
    def empty(self) -> bool:
        return self.count == 0


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, readings: Iterable[Reading], metric: MetricSpec | str) -> MetricSummary:
        key = metric if isinstance(metric, str) else metric.key
        total = 0.0
        count = 0
        minimum: float | None = None
        maximum: float | None = None

        for reading in readings:
            value = reading.value(key)
            # Zero is the "no data" sentinel, not a measurement.
            if value is None or not math.isfinite(value) or value <= 0:
                continue
            count += 1
            total += value
            if minimum is None or value < minimum:
                minimum = value
            if maximum is None or value > maximum:
                maximum = value

        if not count:
            return MetricSummary()
        return MetricSummary(avg=total / count, min=minimum, max=maximum, count=count)

    def summarize(
        self, readings: Sequence[Reading], metrics: Iterable[MetricSpec]
    ) -> Dict[str, MetricSummary]:
        return {metric.key: self.aggregate(readings, metric) for metric in metrics}
