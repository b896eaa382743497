# bms_dashboard/tests/test_statistics.py

import random

import pytest

from bms_dashboard.errors import EmptySeries
from bms_dashboard.models.snapshot import TempStats, VoltageStats
from bms_dashboard.services.statistics import (
    combine_temp,
    combine_voltage,
    temp_stats,
    voltage_stats,
    with_extremes,
)


def test_voltage_stats_truncates_average():
    stats = voltage_stats([3700, 3701, 3701])
    assert stats == VoltageStats(avg=3700, min=3700, max=3701, delta=1)


def test_voltage_stats_sub_range():
    samples = [1, 2, 3, 100, 200]
    assert voltage_stats(samples, 0, 3) == VoltageStats(avg=2, min=1, max=3, delta=2)
    assert voltage_stats(samples, 3) == VoltageStats(avg=150, min=100, max=200, delta=100)


def test_temp_stats_uses_true_division():
    stats = temp_stats([20.0, 21.0])
    assert stats.avg == pytest.approx(20.5)
    assert stats.min == 20.0
    assert stats.max == 21.0
    assert stats.delta == pytest.approx(1.0)


def test_single_sample_has_zero_spread():
    assert voltage_stats([3650]) == VoltageStats(avg=3650, min=3650, max=3650, delta=0)


def test_empty_series_raises():
    with pytest.raises(EmptySeries):
        voltage_stats([])
    with pytest.raises(EmptySeries):
        temp_stats([25.0], 1)


def test_random_series_properties():
    rng = random.Random(1234)
    for _ in range(200):
        samples = [rng.randint(0, 5000) for _ in range(rng.randint(1, 50))]
        stats = voltage_stats(samples)
        assert stats.delta == stats.max - stats.min
        assert stats.min <= stats.avg <= stats.max
        assert stats.min == min(samples)
        assert stats.max == max(samples)


def test_combine_is_union_of_groups():
    right = VoltageStats(avg=3700, min=3650, max=3750, delta=100)
    left = VoltageStats(avg=3720, min=3690, max=3800, delta=110)
    overall = combine_voltage(right, left, avg=3710)
    assert overall == VoltageStats(avg=3710, min=3650, max=3800, delta=150)

    t_overall = combine_temp(
        TempStats(avg=22.0, min=20.0, max=24.0, delta=4.0),
        TempStats(avg=26.0, min=25.0, max=27.5, delta=2.5),
        avg=24.0,
    )
    assert t_overall.min == 20.0
    assert t_overall.max == 27.5
    assert t_overall.delta == pytest.approx(7.5)


def test_with_extremes_keeps_inner_average_and_type():
    stats = with_extremes(VoltageStats(avg=3700, min=0, max=5000, delta=5000), 3695, 4100)
    assert stats == VoltageStats(avg=3700, min=3695, max=4100, delta=405)


def test_with_extremes_clamps_average_into_new_bounds():
    below = with_extremes(VoltageStats(avg=3417, min=3100, max=3720, delta=620), 3700, 3720)
    above = with_extremes(TempStats(avg=41.0, min=20.0, max=44.0, delta=24.0), 22.0, 30.0)

    assert below == VoltageStats(avg=3700, min=3700, max=3720, delta=20)
    assert above.avg == 30.0
    assert above.min <= above.avg <= above.max
