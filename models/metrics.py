"""Catalogue of the water-quality metrics the dashboard understands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class MetricSpec:
    """Static description of one sensor metric."""

    key: str
    raw_field: str
    label: str
    unit: Optional[str]
    minimum: float
    maximum: float
    decimals: int
    csv_header: str

    @property
    def chart_label(self) -> str:
        if self.unit:
            return f"{self.label} ({self.unit})"
        return self.label

    @property
    def zero_text(self) -> str:
        return f"{0:.{self.decimals}f}"

    def format(self, value: Optional[float]) -> str:
        if value is None:
            return self.zero_text
        return f"{value:.{self.decimals}f}"


PH = MetricSpec("ph", "ph", "pH", None, 0, 14, 2, "pH")
EC = MetricSpec("ec", "ec_uS_cm", "EC", "µS/cm", 0, 100000, 0, "EC(µS/cm)")
DO = MetricSpec("do", "do_mg_L", "DO", "mg/L", 0, 50, 2, "DO(mg/L)")
ORP = MetricSpec("orp", "orp_mV", "ORP", "mV", -2000, 2000, 0, "ORP(mV)")
TURBIDITY = MetricSpec("turbidity", "turbidity_NTU", "Turbidity", "NTU", 0, 4000, 1, "Turbidity(NTU)")
TDS = MetricSpec("tds", "tds_ppm", "TDS", "ppm", 0, 50000, 0, "TDS(ppm)")
TEMP = MetricSpec("temp", "temp_C", "Temp", "°C", -50, 150, 1, "Temp(°C)")

METRICS: Tuple[MetricSpec, ...] = (PH, EC, DO, ORP, TURBIDITY, TDS, TEMP)
METRICS_BY_KEY: Dict[str, MetricSpec] = {metric.key: metric for metric in METRICS}

DEFAULT_LIVE_METRICS = frozenset({EC.key, TDS.key})


def get_metric(key: str) -> MetricSpec:
    try:
        return METRICS_BY_KEY[key]
    except KeyError as exc:
        raise KeyError(f"Unknown metric {key!r}.") from exc


def resolve_live_metrics(keys: Iterable[str]) -> frozenset[str]:
    """Validate configured metric keys, dropping anything not in the catalogue."""
    return frozenset(key for key in keys if key in METRICS_BY_KEY)
