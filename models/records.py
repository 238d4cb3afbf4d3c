"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class Reading:
    """A single normalized sensor observation."""

    timestamp: Optional[datetime]
    device: str
    ph: Optional[float] = None
    ec: Optional[float] = None
    do: Optional[float] = None
    orp: Optional[float] = None
    turbidity: Optional[float] = None
    tds: Optional[float] = None
    temp: Optional[float] = None
    signal_strength: Optional[int] = None
    signal_noise_ratio: Optional[int] = None

    def value(self, metric_key: str) -> Optional[float]:
        return getattr(self, metric_key)
