# bms_dashboard/services/output_formatter.py

from __future__ import annotations

import json
from dataclasses import asdict
from typing import List, Optional

from bms_dashboard.errors import AcquisitionError, UnexpectedFailure
from bms_dashboard.models.snapshot import Snapshot


def snapshot_to_dict(snapshot: Snapshot) -> dict:
    return asdict(snapshot)


def error_to_dict(error: AcquisitionError) -> dict:
    return {
        "kind": "unexpected" if isinstance(error, UnexpectedFailure) else "fetch",
        "leg": error.leg,
        "error": type(error.cause).__name__,
        "message": str(error.cause),
    }


def emit_json(snapshot: Optional[Snapshot], error: Optional[AcquisitionError] = None) -> None:
    payload = {
        "snapshot": snapshot_to_dict(snapshot) if snapshot else None,
        "error": error_to_dict(error) if error else None,
    }
    print(json.dumps(payload, indent=2, allow_nan=False))


def _stats_line(label: str, stats, fmt: str) -> str:
    if stats is None:
        return f"  {label:<8} -"
    return (
        f"  {label:<8} avg={stats.avg:{fmt}} min={stats.min:{fmt}} "
        f"max={stats.max:{fmt}} delta={stats.delta:{fmt}}"
    )


def _cell_rows(values, per_row: int, fmt: str) -> List[str]:
    per_row = per_row if per_row > 0 else 9
    rows = []
    for i in range(0, len(values), per_row):
        chunk = values[i:i + per_row]
        rows.append(f"  {i // per_row + 1:>3} | " + " ".join(f"{v:{fmt}}" for v in chunk))
    return rows


def format_snapshot(snapshot: Snapshot) -> str:
    main = snapshot.main
    ucell = snapshot.ucell
    tcell = snapshot.tcell

    lines = [
        "=== PACK ===",
        f"  voltage={main.voltage:.3f}V current={main.current:g} soc={main.state_of_charge:.1f}%",
        f"  temp avg={main.temp_avg:.1f}C min={main.temp_min:.1f}C "
        f"max={main.temp_max:.1f}C master={main.temp_master:.1f}C",
        "",
        "=== TOPOLOGY ===",
        f"  slaves={ucell.num_slaves} cells={ucell.num_cells} "
        f"cells/slave={ucell.num_cells_per_slave} temp sensors={ucell.num_temp_sensors} "
        f"safety resistors={ucell.num_safety_resistors}",
        "",
        "=== CELL VOLTAGE (mV) ===",
        _stats_line("overall", ucell.overall, "d"),
        _stats_line("right", ucell.right, "d"),
        _stats_line("left", ucell.left, "d"),
    ]
    lines.extend(_cell_rows(ucell.cell_voltage, ucell.num_cells_per_slave, "4d"))
    lines += [
        "",
        "=== CELL TEMPERATURE (C) ===",
        _stats_line("overall", tcell.overall, ".1f"),
        _stats_line("right", tcell.right, ".1f"),
        _stats_line("left", tcell.left, ".1f"),
    ]
    lines.extend(_cell_rows(tcell.temp, 8, "5.1f"))
    return "\n".join(lines)


def format_error(error: AcquisitionError) -> str:
    if isinstance(error, UnexpectedFailure):
        return f"Unexpected error ({error.leg} leg): {error.cause!r}"
    return f"Could not fetch data ({error.leg} leg):\n {error.cause}"


def emit_human(snapshot: Optional[Snapshot], error: Optional[AcquisitionError] = None) -> None:
    if snapshot is not None:
        print(format_snapshot(snapshot))
    if error is not None:
        print(format_error(error))
