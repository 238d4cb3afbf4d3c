"""Unit tests for range validation."""

from __future__ import annotations

import math

import pytest

from models.metrics import METRICS
from services.validator import (
    to_optional_int,
    validate,
    validate_ec,
    validate_orp,
    validate_ph,
    validate_temp,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (7.123, 7.12),
        ("6.5", 6.5),
        (-3, 0),
        (20, 14),
        (14, 14),
        (0, 0),
    ],
)
def test_validate_ph_clamps_and_rounds(value, expected) -> None:
    assert validate_ph(value) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "abc", math.nan, math.inf, -math.inf, True, [1]])
def test_validate_returns_none_for_missing_or_non_finite(value) -> None:
    assert validate(value, 0, 100) is None


def test_validate_matches_round_of_clamp_for_finite_inputs() -> None:
    samples = [-1e9, -2500.555, -0.004, 0.005, 1.234567, 999.999, 2000.001, 1e12]
    for metric in METRICS:
        for sample in samples:
            result = validate(sample, metric.minimum, metric.maximum)
            assert result is not None
            assert metric.minimum <= result <= metric.maximum
            assert result == round(min(max(sample, metric.minimum), metric.maximum), 2)


def test_metric_specific_ranges() -> None:
    assert validate_ec(250000) == 100000
    assert validate_orp(-5000) == -2000
    assert validate_temp(-80) == -50
    assert validate_temp("151.2") == 150


def test_to_optional_int() -> None:
    assert to_optional_int("-67") == -67
    assert to_optional_int(7.9) == 7
    assert to_optional_int(None) is None
    assert to_optional_int("n/a") is None
