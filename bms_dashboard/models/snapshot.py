# bms_dashboard/models/snapshot.py
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class MainReading:
    voltage: float        # V
    current: float        # raw controller unit, unscaled
    state_of_charge: float  # %
    temp_avg: float       # °C
    temp_min: float
    temp_max: float
    temp_master: float


@dataclass(frozen=True)
class VoltageStats:
    # all in mV
    avg: int
    min: int
    max: int
    delta: int


@dataclass(frozen=True)
class TempStats:
    # all in °C
    avg: float
    min: float
    max: float
    delta: float


@dataclass(frozen=True)
class CellVoltageReport:
    num_slaves: int
    num_cells: int
    num_cells_per_slave: int
    num_temp_sensors: int
    num_safety_resistors: int

    overall: VoltageStats
    # right = cells [0, split), left = cells [split, n); None when unpartitioned
    right: Optional[VoltageStats]
    left: Optional[VoltageStats]

    cell_voltage: Tuple[int, ...]


@dataclass(frozen=True)
class CellTemperatureReport:
    overall: TempStats
    right: Optional[TempStats]
    left: Optional[TempStats]

    temp: Tuple[float, ...]


@dataclass(frozen=True)
class Snapshot:
    main: MainReading
    ucell: CellVoltageReport
    tcell: CellTemperatureReport
