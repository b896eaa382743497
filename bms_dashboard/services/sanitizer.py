# bms_dashboard/services/sanitizer.py
"""
Display-safety filter for glitching cell taps.

The controller's sensor bus occasionally reports saturated or zeroed values
on a dead tap. Samples outside the plausible fence are replaced by the series
average so the displayed spread stays meaningful. This is not a measurement
correction and can be switched off to see the raw controller output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from bms_dashboard.errors import EmptySeries

Number = Union[int, float]


@dataclass(frozen=True)
class Fence:
    lo: Optional[Number] = None
    hi: Optional[Number] = None
    inclusive: bool = True

    def contains(self, value: Number) -> bool:
        if self.inclusive:
            if self.lo is not None and value < self.lo:
                return False
            if self.hi is not None and value > self.hi:
                return False
        else:
            if self.lo is not None and value <= self.lo:
                return False
            if self.hi is not None and value >= self.hi:
                return False
        return True


@dataclass(frozen=True)
class SanitizePolicy:
    """Replacement fence plus the optional bound fence used for reported min/max."""

    fence: Fence
    bound: Optional[Fence] = None
    integer: bool = True


def average(samples: List[Number], integer: bool = True) -> Number:
    if not samples:
        raise EmptySeries("sanitizer input")
    total = sum(samples)
    if integer:
        return int(total) // len(samples)
    return total / len(samples)


def sanitize(samples: List[Number], fence: Fence, integer: bool = True) -> Number:
    """
    Replace every sample outside ``fence`` with the raw average, in place.

    The average is taken over all samples before any replacement and is
    returned to the caller.
    """
    avg = average(samples, integer=integer)
    for i, v in enumerate(samples):
        if not fence.contains(v):
            samples[i] = avg
    return avg


def bounded_extremes(
    samples: List[Number],
    bound: Fence,
    start: int = 0,
    stop: Optional[int] = None,
) -> Optional[Tuple[Number, Number]]:
    """
    Min and max of ``samples[start:stop]`` restricted to the bound fence.

    Returns None when no sample lies inside the fence.
    """
    lo = hi = None
    for v in samples[start:stop]:
        if not bound.contains(v):
            continue
        if lo is None or v < lo:
            lo = v
        if hi is None or v > hi:
            hi = v
    if lo is None:
        return None
    return lo, hi
