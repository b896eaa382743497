# bms_dashboard/services/statistics.py

from __future__ import annotations

from itertools import islice
from typing import Iterable, Optional, Sequence, Tuple

from bms_dashboard.errors import EmptySeries
from bms_dashboard.models.snapshot import TempStats, VoltageStats


def _running(samples: Iterable, what: str) -> Tuple:
    lo = hi = None
    total = 0
    count = 0
    for v in samples:
        if lo is None or v < lo:
            lo = v
        if hi is None or v > hi:
            hi = v
        total += v
        count += 1
    if count == 0:
        raise EmptySeries(what)
    return lo, hi, total, count


def voltage_stats(samples: Sequence[int], start: int = 0, stop: Optional[int] = None) -> VoltageStats:
    """Min/max/avg/delta over ``samples[start:stop]`` in mV; avg is truncated."""
    lo, hi, total, count = _running(islice(samples, start, stop), "cell voltage series")
    return VoltageStats(avg=total // count, min=lo, max=hi, delta=hi - lo)


def temp_stats(samples: Sequence[float], start: int = 0, stop: Optional[int] = None) -> TempStats:
    lo, hi, total, count = _running(islice(samples, start, stop), "cell temperature series")
    return TempStats(avg=total / count, min=lo, max=hi, delta=hi - lo)


def combine_voltage(right: VoltageStats, left: VoltageStats, avg: int) -> VoltageStats:
    hi = max(right.max, left.max)
    lo = min(right.min, left.min)
    return VoltageStats(avg=avg, min=lo, max=hi, delta=hi - lo)


def combine_temp(right: TempStats, left: TempStats, avg: float) -> TempStats:
    hi = max(right.max, left.max)
    lo = min(right.min, left.min)
    return TempStats(avg=avg, min=lo, max=hi, delta=hi - lo)


def with_extremes(stats, lo, hi):
    """Return a copy of ``stats`` reporting the given bounds instead.

    The average is clamped into ``[lo, hi]`` so it never falls outside the
    reported extremes.
    """
    avg = min(max(stats.avg, lo), hi)
    return type(stats)(avg=avg, min=lo, max=hi, delta=hi - lo)
