"""Builds the dashboard views from a filtered, newest-first reading sequence."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, List, Optional, Sequence

from app.schemas import (
    ChartDataset,
    ChartSeries,
    CsvExport,
    KpiTile,
    KpiView,
    SummaryMetric,
    SummaryView,
    TableRow,
)
from models.metrics import DEFAULT_LIVE_METRICS, METRICS, MetricSpec
from models.records import Reading
from services.aggregator import Aggregator
from services.filtering import filter_instants
from services.timestamps import NO_DATA, format_time

CSV_HEADER = ["Time", "Device"] + [metric.csv_header for metric in METRICS]
EMPTY_SUMMARY_MESSAGE = "No data in the selected range."
UNKNOWN_DEVICE = "Unknown"

_FILENAME_TIME_FORMAT = "%Y-%m-%d_%H-%M"


class Presenter:
    def __init__(
        self,
        aggregator: Optional[Aggregator] = None,
        live_metrics: Iterable[str] = DEFAULT_LIVE_METRICS,
        tz: tzinfo = timezone.utc,
        table_limit: int = 60,
    ) -> None:
        self.aggregator = aggregator or Aggregator()
        self.live_metrics = frozenset(live_metrics)
        self.tz = tz
        self.table_limit = table_limit

    def is_live(self, metric: MetricSpec) -> bool:
        return metric.key in self.live_metrics

    def format_metric(self, metric: MetricSpec, value: Optional[float]) -> str:
        if not self.is_live(metric):
            return metric.zero_text
        return metric.format(value)

    def kpis(self, readings: Sequence[Reading]) -> KpiView:
        if not readings:
            return KpiView(
                has_data=False,
                time=NO_DATA,
                device=NO_DATA,
                signal_strength=NO_DATA,
                signal_noise_ratio=NO_DATA,
                tiles=[
                    KpiTile(
                        key=metric.key,
                        label=metric.label,
                        unit=metric.unit,
                        value=NO_DATA,
                        live=self.is_live(metric),
                    )
                    for metric in METRICS
                ],
            )

        latest = readings[0]
        return KpiView(
            has_data=True,
            time=format_time(latest.timestamp, self.tz),
            device=latest.device or NO_DATA,
            signal_strength=_optional_text(latest.signal_strength),
            signal_noise_ratio=_optional_text(latest.signal_noise_ratio),
            tiles=[
                KpiTile(
                    key=metric.key,
                    label=metric.label,
                    unit=metric.unit,
                    value=self.format_metric(metric, latest.value(metric.key)),
                    live=self.is_live(metric),
                )
                for metric in METRICS
            ],
        )

    def chart(self, readings: Sequence[Reading], points: int) -> ChartSeries:
        window = list(readings[:points])
        window.reverse()
        return ChartSeries(
            labels=[format_time(reading.timestamp, self.tz, "%H:%M") for reading in window],
            time_labels=[
                format_time(reading.timestamp, self.tz, "%d/%m/%Y %H:%M:%S") for reading in window
            ],
            devices=[reading.device or UNKNOWN_DEVICE for reading in window],
            datasets=[
                ChartDataset(
                    key=metric.key,
                    label=metric.chart_label,
                    data=[reading.value(metric.key) for reading in window],
                    hidden=not self.is_live(metric),
                )
                for metric in METRICS
            ],
        )

    def table(self, readings: Sequence[Reading]) -> List[TableRow]:
        return [self._table_row(reading) for reading in readings[: self.table_limit]]

    def summary(self, readings: Sequence[Reading]) -> SummaryView:
        if not readings:
            return SummaryView(empty=True, message=EMPTY_SUMMARY_MESSAGE)

        live = [metric for metric in METRICS if self.is_live(metric)]
        summaries = self.aggregator.summarize(readings, live)
        metrics = []
        for metric in live:
            stats = summaries[metric.key]
            metrics.append(
                SummaryMetric(
                    key=metric.key,
                    label=metric.label,
                    unit=metric.unit,
                    avg=stats.avg,
                    min=stats.min,
                    max=stats.max,
                    count=stats.count,
                    avg_text=metric.format(stats.avg),
                    min_text=metric.format(stats.min),
                    max_text=metric.format(stats.max),
                )
            )
        return SummaryView(empty=False, metrics=metrics)

    def export_csv(
        self,
        cache: Sequence[Reading],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        device: Optional[str] = None,
        fallback_start: Optional[date] = None,
        fallback_end: Optional[date] = None,
    ) -> CsvExport:
        """Render the cache as CSV for an instant range and export device.

        Naive bounds are taken in the display timezone. Raises ``ValueError``
        when ``start`` is after ``end``.
        """
        start = self._localize(start)
        end = self._localize(end)
        if start is not None and end is not None and start > end:
            raise ValueError("Export start must not be after export end.")

        rows = filter_instants(cache, device=device, start=start, end=end)

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for reading in rows:
            writer.writerow(self._csv_fields(reading))

        start_label = self._filename_part(start, fallback_start, "start")
        end_label = self._filename_part(end, fallback_end, "end")
        filename = f"water-quality-{device or 'all'}-{start_label}_to_{end_label}.csv"
        return CsvExport(filename=filename, content=buffer.getvalue(), row_count=len(rows))

    def _table_row(self, reading: Reading) -> TableRow:
        return TableRow(
            time=format_time(reading.timestamp, self.tz),
            device=reading.device,
            values={
                metric.key: self.format_metric(metric, reading.value(metric.key))
                for metric in METRICS
            },
        )

    def _csv_fields(self, reading: Reading) -> List[str]:
        fields = [format_time(reading.timestamp, self.tz), reading.device]
        fields.extend(
            self.format_metric(metric, reading.value(metric.key)) for metric in METRICS
        )
        return fields

    def _localize(self, moment: Optional[datetime]) -> Optional[datetime]:
        if moment is None:
            return None
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self.tz)
        return moment

    def _filename_part(
        self, moment: Optional[datetime], fallback: Optional[date], default: str
    ) -> str:
        if moment is not None:
            return moment.astimezone(self.tz).strftime(_FILENAME_TIME_FORMAT)
        if fallback is not None:
            return fallback.isoformat()
        return default


def _optional_text(value: Optional[int]) -> str:
    return NO_DATA if value is None else str(value)
