"""
Dated samples as a tagged union, and the mapping from date tables to records.

Three table layouts are accepted (column order matters, names do not):

* single curve:  ``id, age, error, depth``
* mixed curves:  ``id, age, error, depth, cc [, delta.R, delta.STD [, t.a, t.b]]``
* Pb-210 combined: ``id, age, error, depth, delta.R, delta.STD, t.a, t.b, cc``

Curve selector codes: 0 calendar scale, 1-4 radiocarbon curves, 5 Pb-210
activity.
"""

from __future__ import annotations

import math
from typing import Annotated, Any, List, Literal, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from ..utils.exceptions import ConfigurationError
from ..utils.validators import validate_t_parameters

CALENDAR_CODE = 0
PB_ACTIVITY_CODE = 5
RADIOCARBON_CODES = (1, 2, 3, 4)


class _DateBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str = Field(description="Sample identifier.")
    mean: float = Field(description="Reported measurement (14C BP, cal BP or activity).")
    error: float = Field(gt=0, description="Reported 1-sigma measurement error.")
    depth: float
    t_a: Optional[float] = None
    t_b: Optional[float] = None

    @model_validator(mode="after")
    def _check_t(self) -> Any:
        if (self.t_a is None) != (self.t_b is None):
            raise ConfigurationError(f"date {self.label}: t.a and t.b must be given together")
        if self.t_a is not None:
            validate_t_parameters(self.t_a, self.t_b)
        return self


class RadiocarbonDate(_DateBase):
    kind: Literal["radiocarbon"] = "radiocarbon"
    cc: int = Field(ge=1, le=4, description="Curve selector 1..4.")
    delta_r: Optional[float] = None
    delta_std: Optional[float] = Field(default=None, ge=0)


class CalendarDate(_DateBase):
    kind: Literal["calendar"] = "calendar"


class PbActivityDate(_DateBase):
    kind: Literal["pb_activity"] = "pb_activity"


DateRecord = Annotated[
    Union[RadiocarbonDate, CalendarDate, PbActivityDate],
    Field(discriminator="kind"),
]

DATE_RECORD = TypeAdapter(DateRecord)


def _opt(value: Any) -> Optional[float]:
    if value is None:
        return None
    v = float(value)
    return None if math.isnan(v) else v


def _selector(value: Any, label: str) -> int:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"date {label}: curve selector {value!r} is not a number") from None
    if math.isnan(v) or v != int(v) or not CALENDAR_CODE <= int(v) <= PB_ACTIVITY_CODE:
        raise ConfigurationError(f"date {label}: curve selector {value!r} must be one of 0..5")
    return int(v)


def make_record(
    label: Any,
    mean: float,
    error: float,
    depth: float,
    cc: Any,
    delta_r: Any = None,
    delta_std: Any = None,
    t_a: Any = None,
    t_b: Any = None,
) -> DateRecord:
    """Build the record variant selected by curve code ``cc``.

    Reservoir offsets only apply to radiocarbon dates and are ignored otherwise.
    """
    label = str(label)
    code = _selector(cc, label)
    common = dict(label=label, mean=float(mean), error=float(error), depth=float(depth), t_a=_opt(t_a), t_b=_opt(t_b))
    if code == CALENDAR_CODE:
        return CalendarDate(**common)
    if code == PB_ACTIVITY_CODE:
        return PbActivityDate(**common)
    return RadiocarbonDate(cc=code, delta_r=_opt(delta_r), delta_std=_opt(delta_std), **common)


def detect_layout(df: pd.DataFrame) -> str:
    """Return ``"single"``, ``"mixed"`` or ``"plum"`` from the table's shape.

    Nine-column tables are ambiguous; they are read as the Pb-210 layout when
    the last column is named ``cc``.
    """
    n = df.shape[1]
    if n == 4:
        return "single"
    if n in (5, 7):
        return "mixed"
    if n == 9:
        last = str(df.columns[-1]).strip().strip('"').lower()
        return "plum" if last == "cc" else "mixed"
    raise ConfigurationError(f"dates table has {n} columns; expected 4, 5, 7 or 9")


def records_from_table(df: pd.DataFrame, default_cc: int = 1, layout: str = "auto") -> List[DateRecord]:
    """Map each table row to a ``DateRecord``, preserving row order."""
    if layout == "auto":
        layout = detect_layout(df)
    if layout not in ("single", "mixed", "plum"):
        raise ConfigurationError(f"unknown dates table layout {layout!r}")

    records: List[DateRecord] = []
    for row in df.itertuples(index=False, name=None):
        label, mean, error, depth = row[:4]
        if layout == "single":
            records.append(make_record(label, mean, error, depth, default_cc))
        elif layout == "mixed":
            extra = list(row[5:9]) + [None] * (4 - len(row[5:9]))
            records.append(make_record(label, mean, error, depth, row[4], *extra))
        else:
            d_r, d_std, t_a, t_b, cc = row[4:9]
            records.append(make_record(label, mean, error, depth, cc, d_r, d_std, t_a, t_b))
    return records
