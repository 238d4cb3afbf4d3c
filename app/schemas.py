"""Pydantic schemas for the dashboard views and the HTTP API layer."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

MAX_POINT_COUNT = 10000

class RefreshMode(str, Enum):
    """How the dashboard is currently kept up to date."""

    idle = "idle"
    polling = "polling"
    push = "push"


class FilterState(BaseModel):
    """Main dashboard filter controls."""

    device: Optional[str] = Field(default=None, description="Device id, or all devices when empty.")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    points: int = Field(
        default=100, ge=1, le=MAX_POINT_COUNT, description="Chart and summary window size."
    )

    @field_validator("device")
    @classmethod
    def _blank_device_means_all(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        candidate = value.strip()
        return candidate or None

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "FilterState":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            self.end_date = self.start_date
        return self

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None


class KpiTile(BaseModel):
    key: str
    label: str
    unit: Optional[str] = None
    value: str
    live: bool = False


class KpiView(BaseModel):
    """Headline values of the latest reading."""

    has_data: bool
    time: str
    device: str
    signal_strength: str
    signal_noise_ratio: str
    tiles: List[KpiTile] = Field(default_factory=list)


class ChartDataset(BaseModel):
    key: str
    label: str
    data: List[Optional[float]] = Field(default_factory=list)
    hidden: bool = False


class ChartSeries(BaseModel):
    """Chronological series for the line chart."""

    labels: List[str] = Field(default_factory=list)
    time_labels: List[str] = Field(default_factory=list)
    devices: List[str] = Field(default_factory=list)
    datasets: List[ChartDataset] = Field(default_factory=list)


class TableRow(BaseModel):
    time: str
    device: str
    values: Dict[str, str] = Field(default_factory=dict)


class SummaryMetric(BaseModel):
    key: str
    label: str
    unit: Optional[str] = None
    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0
    count: int = Field(default=0, ge=0)
    avg_text: str
    min_text: str
    max_text: str


class SummaryView(BaseModel):
    empty: bool
    message: Optional[str] = None
    metrics: List[SummaryMetric] = Field(default_factory=list)


class CsvExport(BaseModel):
    filename: str
    content: str
    row_count: int = Field(..., ge=0)


class DashboardSnapshot(BaseModel):
    """Everything the dashboard shows after one pipeline run."""

    run_id: int = Field(..., ge=0)
    mode: RefreshMode
    generated_at: datetime
    updated: str
    filters: FilterState
    devices: List[str] = Field(default_factory=list)
    reading_count: int = Field(default=0, ge=0)
    kpi: KpiView
    chart: ChartSeries
    summary: SummaryView
    table: List[TableRow] = Field(default_factory=list)


class StatusResponse(BaseModel):
    mode: RefreshMode
    issued_runs: int
    applied_run: int
    cached_readings: int
    devices: List[str] = Field(default_factory=list)
