# bms_dashboard/services/legs.py
"""
The three independent fetch → extract → decode → sanitize → aggregate pipelines.

Each leg owns its request and its buffers and builds its own result; legs
never look at each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from bms_dashboard.models.snapshot import (
    CellTemperatureReport,
    CellVoltageReport,
    MainReading,
)
from bms_dashboard.services.decoder import (
    CELL_TEMPERATURE_PLAN,
    CELL_VOLTAGE_PLAN,
    MAIN_PLAN,
    TOPOLOGY_PLAN,
    decode_array,
    decode_fields,
)
from bms_dashboard.services.extractor import extract
from bms_dashboard.services.fetcher import EndpointFetcher
from bms_dashboard.services.sanitizer import (
    Fence,
    SanitizePolicy,
    average,
    bounded_extremes,
    sanitize,
)
from bms_dashboard.services.statistics import (
    combine_temp,
    combine_voltage,
    temp_stats,
    voltage_stats,
    with_extremes,
)

logger = logging.getLogger(__name__)

MAIN_PAGE = "main_data.shtml"
UCELL_PAGE = "ucell.shtml"
TCELL_PAGE = "tcell.shtml"


# ============================================================================
# Per-leg settings
# ============================================================================

@dataclass(frozen=True)
class ArraySettings:
    policy: SanitizePolicy
    split: Optional[int] = None   # None → halves


def _default_voltage() -> ArraySettings:
    return ArraySettings(policy=SanitizePolicy(fence=Fence(3000, 4200), integer=True), split=72)


def _default_temperature() -> ArraySettings:
    return ArraySettings(policy=SanitizePolicy(fence=Fence(15.0, 45.0), integer=False), split=8)


@dataclass(frozen=True)
class AcquisitionSettings:
    voltage: ArraySettings = field(default_factory=_default_voltage)
    temperature: ArraySettings = field(default_factory=_default_temperature)


# ============================================================================
# Grouped statistics
# ============================================================================

def split_point(n: int, split: Optional[int]) -> Optional[int]:
    k = n // 2 if split is None else split
    return k if 0 < k < n else None


def _grouped(
    samples: List,
    settings: ArraySettings,
    avg,
    stats_fn: Callable,
    combine_fn: Callable,
    bounded: bool,
) -> Tuple:
    """Return (overall, right, left); right/left are None without a partition."""
    bound = settings.policy.bound if bounded else None

    def _bound(stats, start, stop):
        if bound is None:
            return stats
        extremes = bounded_extremes(samples, bound, start, stop)
        if extremes is None:
            return stats
        return with_extremes(stats, *extremes)

    k = split_point(len(samples), settings.split)
    if k is None:
        overall = replace(stats_fn(samples), avg=avg)
        return _bound(overall, 0, None), None, None

    right = _bound(stats_fn(samples, 0, k), 0, k)
    left = _bound(stats_fn(samples, k), k, None)
    overall = combine_fn(right, left, avg)
    if bound is not None:
        overall = with_extremes(overall, overall.min, overall.max)
    return overall, right, left


def _sanitized(samples: List, settings: ArraySettings, enabled: bool, label: str):
    """Raw average of ``samples``; replaces outliers in place when enabled."""
    policy = settings.policy
    if not enabled:
        return average(samples, integer=policy.integer)

    outliers = sum(1 for v in samples if not policy.fence.contains(v))
    avg = sanitize(samples, policy.fence, integer=policy.integer)
    if outliers:
        logger.debug("%s: replaced %d outlier(s) with average %s", label, outliers, avg)
    return avg


# ============================================================================
# Legs
# ============================================================================

def main_leg(fetcher: EndpointFetcher, address: str) -> MainReading:
    text = fetcher.get(address, MAIN_PAGE)
    values = decode_fields(extract(text, MAIN_PLAN.key), MAIN_PLAN)
    return MainReading(**values)


def cell_voltage_leg(
    fetcher: EndpointFetcher,
    address: str,
    sanitize_enabled: bool,
    settings: ArraySettings,
) -> CellVoltageReport:
    text = fetcher.get(address, UCELL_PAGE)

    voltage = decode_array(extract(text, CELL_VOLTAGE_PLAN.key), CELL_VOLTAGE_PLAN)
    avg = _sanitized(voltage, settings, sanitize_enabled, "cell voltage")
    overall, right, left = _grouped(
        voltage, settings, avg, voltage_stats, combine_voltage, bounded=sanitize_enabled
    )

    topology = decode_fields(extract(text, TOPOLOGY_PLAN.key), TOPOLOGY_PLAN)
    logger.debug("cell voltage: %d cells, topology %s", len(voltage), topology)

    return CellVoltageReport(
        **topology,
        overall=overall,
        right=right,
        left=left,
        cell_voltage=tuple(voltage),
    )


def cell_temperature_leg(
    fetcher: EndpointFetcher,
    address: str,
    sanitize_enabled: bool,
    settings: ArraySettings,
) -> CellTemperatureReport:
    text = fetcher.get(address, TCELL_PAGE)

    temp = decode_array(extract(text, CELL_TEMPERATURE_PLAN.key), CELL_TEMPERATURE_PLAN)
    avg = _sanitized(temp, settings, sanitize_enabled, "cell temperature")
    overall, right, left = _grouped(
        temp, settings, avg, temp_stats, combine_temp, bounded=sanitize_enabled
    )

    return CellTemperatureReport(overall=overall, right=right, left=left, temp=tuple(temp))
