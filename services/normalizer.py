"""Mapping of raw store records onto canonical readings."""

from __future__ import annotations

import random
from datetime import timezone, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from models.metrics import DEFAULT_LIVE_METRICS, EC, METRICS, TDS, MetricSpec
from models.records import Reading
from services.timestamps import parse_timestamp
from services.validator import to_optional_int, validate_metric

PLACEHOLDER_VALUE = 0.0


class PlaceholderPolicy(Protocol):
    def fill(self, metric: MetricSpec, value: Optional[float]) -> Optional[float]:
        ...


class NoPlaceholders:
    """Leaves validated values untouched."""

    def fill(self, metric: MetricSpec, value: Optional[float]) -> Optional[float]:
        return value


class RandomDemoPlaceholders:
    """Substitutes demo values for live metrics that report nothing.

    A value that is absent or exactly zero is replaced with an integer drawn
    uniformly from the metric's demo range.
    """

    DEFAULT_RANGES: Dict[str, Tuple[int, int]] = {
        EC.key: (300, 800),
        TDS.key: (150, 400),
    }

    def __init__(
        self,
        ranges: Optional[Mapping[str, Tuple[int, int]]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.ranges = dict(self.DEFAULT_RANGES if ranges is None else ranges)
        self._rng = rng or random.Random()

    def fill(self, metric: MetricSpec, value: Optional[float]) -> Optional[float]:
        bounds = self.ranges.get(metric.key)
        if bounds is None or value:
            return value
        low, high = bounds
        return float(self._rng.randint(low, high))


class Normalizer:
    """Turns raw records into :class:`Reading` objects."""

    def __init__(
        self,
        policy: Optional[PlaceholderPolicy] = None,
        live_metrics: Iterable[str] = DEFAULT_LIVE_METRICS,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self.policy = policy if policy is not None else RandomDemoPlaceholders()
        self.live_metrics = frozenset(live_metrics)
        self.tz = tz

    def normalize(self, raw: Mapping[str, Any]) -> Reading:
        values: Dict[str, Optional[float]] = {}
        for metric in METRICS:
            if metric.key in self.live_metrics:
                values[metric.key] = self._live_value(metric, raw)
            else:
                values[metric.key] = PLACEHOLDER_VALUE

        signal = raw.get("wifi_rssi")
        if signal is None:
            signal = raw.get("rssi")

        return Reading(
            timestamp=parse_timestamp(raw.get("timestamp"), self.tz),
            device=str(raw.get("device") or ""),
            signal_strength=to_optional_int(signal),
            signal_noise_ratio=to_optional_int(raw.get("snr")),
            **values,
        )

    def normalize_all(self, records: Iterable[Mapping[str, Any]]) -> List[Reading]:
        return [self.normalize(record) for record in records]

    def _live_value(self, metric: MetricSpec, raw: Mapping[str, Any]) -> Optional[float]:
        value = validate_metric(metric, raw.get(metric.raw_field))
        return self.policy.fill(metric, value)
