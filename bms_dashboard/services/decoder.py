# bms_dashboard/services/decoder.py

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type, Union

from bms_dashboard.errors import FieldMissing, FieldUnparseable

Number = Union[int, float]


# ============================================================================
# Decode plans
# ============================================================================

@dataclass(frozen=True)
class FieldSpec:
    name: str
    skip: int = 0                 # unlabeled separators discarded before this field
    kind: Type = float
    scale: Optional[float] = None  # raw value is divided by this
    signed: bool = False


@dataclass(frozen=True)
class DecodePlan:
    key: str
    fields: Tuple[FieldSpec, ...]


@dataclass(frozen=True)
class ArrayPlan:
    key: str
    name: str
    skip: int = 0
    kind: Type = int
    scale: Optional[float] = None
    signed: bool = False


# Observed S3 controller firmware.
MAIN_PLAN = DecodePlan(
    key="Parametersatz",
    fields=(
        FieldSpec("voltage", skip=1, scale=1000),
        FieldSpec("current", skip=2, signed=True),
        FieldSpec("state_of_charge", skip=2, scale=10),
        FieldSpec("temp_avg", skip=2, scale=10, signed=True),
        FieldSpec("temp_min", skip=2, scale=10, signed=True),
        FieldSpec("temp_max", skip=2, scale=10, signed=True),
        FieldSpec("temp_master", skip=2, scale=10, signed=True),
    ),
)

TOPOLOGY_PLAN = DecodePlan(
    key="PSet0",
    fields=(
        FieldSpec("num_slaves", kind=int),
        FieldSpec("num_cells", kind=int),
        FieldSpec("num_cells_per_slave", kind=int),
        FieldSpec("num_temp_sensors", kind=int),
        FieldSpec("num_safety_resistors", kind=int),
    ),
)

CELL_VOLTAGE_PLAN = ArrayPlan(key="PSet", name="cell_voltage", skip=2, kind=int)

CELL_TEMPERATURE_PLAN = ArrayPlan(key="PSet", name="cell_temp", skip=1, kind=int, scale=10, signed=True)


# ============================================================================
# Decoding
# ============================================================================

# Plain ASCII decimals only: no sign unless the field is signed, no exponent,
# no digit separators, no nan/inf.
_INT_TEXT = {False: re.compile(r"[0-9]+"), True: re.compile(r"-?[0-9]+")}
_FLOAT_TEXT = {
    False: re.compile(r"[0-9]+(?:\.[0-9]+)?"),
    True: re.compile(r"-?[0-9]+(?:\.[0-9]+)?"),
}


def _parse(raw: str, kind: Type, signed: bool, index: int, name: str) -> Number:
    text = raw.strip()
    pattern = (_INT_TEXT if kind is int else _FLOAT_TEXT)[signed]
    if not pattern.fullmatch(text):
        raise FieldUnparseable(index, name, raw)
    value = kind(text)
    if kind is not int and not math.isfinite(value):
        raise FieldUnparseable(index, name, raw)
    return value


def _scaled(value: Number, scale: Optional[float]) -> Number:
    if scale is None:
        return value
    return value / scale


def decode_fields(payload: str, plan: DecodePlan) -> Dict[str, Number]:
    parts = payload.split(",")
    values: Dict[str, Number] = {}
    pos = 0
    for spec in plan.fields:
        pos += spec.skip
        if pos >= len(parts):
            raise FieldMissing(pos, spec.name)
        values[spec.name] = _scaled(_parse(parts[pos], spec.kind, spec.signed, pos, spec.name), spec.scale)
        pos += 1
    return values


def decode_array(payload: str, plan: ArrayPlan) -> List[Number]:
    """Decode every field after the leading skips as one sample."""
    parts = payload.split(",")
    if len(parts) < plan.skip:
        raise FieldMissing(len(parts), f"{plan.name} header")

    body = parts[plan.skip:]
    if body and not body[-1].strip():
        body = body[:-1]  # trailing comma

    return [
        _scaled(_parse(raw, plan.kind, plan.signed, plan.skip + i, f"{plan.name}[{i}]"), plan.scale)
        for i, raw in enumerate(body)
    ]
