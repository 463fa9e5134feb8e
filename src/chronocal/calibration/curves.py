"""
Calibration curves: loading, mixing, postbomb splicing and identity curves.

A curve is a table of (calendar age in cal BP, expected measurement,
measurement error), normally with descending calendar ages. Standard curves
and postbomb curves are resolved by enumerated identifiers; anything else must
name a custom curve file in the configured curve directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np

from ..config import CurvesConfig
from ..io import read_curve_file, write_curve_file
from ..utils.exceptions import ConfigurationError, CurveNotFoundError, DomainError
from ..utils.validators import validate_numeric_range

log = logging.getLogger(__name__)

POSTBOMB_STEP = 0.1
IDENTITY_STEP = 5.0
IDENTITY_SPAN = 5.0  # in measurement errors either side of the mean
IDENTITY_MIN_POINTS = 5
IDENTITY_MAX_POINTS = 100


class CurveId(IntEnum):
    """Curve selector codes as used in date tables."""

    NONE = 0  # calendar-scale dates, identity curve
    INTCAL20 = 1
    MARINE20 = 2
    SHCAL20 = 3
    CUSTOM = 4


class PostbombId(IntEnum):
    NH1 = 1
    NH2 = 2
    NH3 = 3
    SH1_2 = 4
    SH3 = 5

    @property
    def base_curve(self) -> CurveId:
        """Northern zones extend IntCal20, southern zones SHCal20."""
        return CurveId.INTCAL20 if self.value < 4 else CurveId.SHCAL20


STANDARD_FILES: Dict[CurveId, str] = {
    CurveId.INTCAL20: "3Col_intcal20.14C",
    CurveId.MARINE20: "3Col_marine20.14C",
    CurveId.SHCAL20: "3Col_shcal20.14C",
}

STANDARD_NAMES: Dict[str, CurveId] = {
    "intcal20": CurveId.INTCAL20,
    "marine20": CurveId.MARINE20,
    "shcal20": CurveId.SHCAL20,
    "none": CurveId.NONE,
}

POSTBOMB_FILES: Dict[PostbombId, str] = {
    PostbombId.NH1: "postbomb_NH1.14C",
    PostbombId.NH2: "postbomb_NH2.14C",
    PostbombId.NH3: "postbomb_NH3.14C",
    PostbombId.SH1_2: "postbomb_SH1-2.14C",
    PostbombId.SH3: "postbomb_SH3.14C",
}

NO_CUSTOM_CURVE = "ConstCal"

CurveRef = Union[CurveId, int, str]


def curve_id(value: CurveRef) -> CurveId:
    """Total lookup from codes or standard names to ``CurveId``; fails closed."""
    if isinstance(value, CurveId):
        return value
    if isinstance(value, str):
        key = value.strip().strip('"').lower()
        if key in STANDARD_NAMES:
            return STANDARD_NAMES[key]
        raise CurveNotFoundError(f"calibration curve {value!r} doesn't exist")
    try:
        code = int(value)
        if code != value:
            raise ValueError(value)
        return CurveId(code)
    except (TypeError, ValueError):
        raise CurveNotFoundError(f"calibration curve {value!r} doesn't exist") from None


def postbomb_id(value: Union[PostbombId, int]) -> PostbombId:
    try:
        return PostbombId(int(value))
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"cannot find postbomb curve #{value} (use values of 1 to 5 only)"
        ) from None


@dataclass(frozen=True)
class CalibrationCurve:
    """Immutable (cal BP, measurement, error) table."""

    cal_bp: np.ndarray
    mean: np.ndarray
    error: np.ndarray
    name: str = "curve"

    def __post_init__(self) -> None:
        cols = []
        for attr in ("cal_bp", "mean", "error"):
            arr = np.array(getattr(self, attr), dtype=float)
            if arr.ndim != 1:
                raise DomainError(f"curve column {attr} must be one-dimensional")
            arr.setflags(write=False)
            object.__setattr__(self, attr, arr)
            cols.append(arr)
        if not (len(cols[0]) == len(cols[1]) == len(cols[2])):
            raise DomainError("curve columns must have equal length")
        if len(cols[0]) == 0:
            raise DomainError("curve is empty")

    @classmethod
    def from_array(cls, arr: np.ndarray, name: str = "curve") -> "CalibrationCurve":
        arr = np.asarray(arr, dtype=float)
        if arr.ndim != 2 or arr.shape[1] < 3:
            raise DomainError(f"curve array must be (n, 3), got {arr.shape}")
        return cls(arr[:, 0], arr[:, 1], arr[:, 2], name=name)

    def __len__(self) -> int:
        return len(self.cal_bp)

    def to_array(self) -> np.ndarray:
        return np.column_stack([self.cal_bp, self.mean, self.error])

    def age_range(self) -> Tuple[float, float]:
        return float(self.cal_bp.min()), float(self.cal_bp.max())

    def interpolate(self, ages: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Linear interpolation of mean and error at ``ages``, clamped at the ends."""
        order = np.argsort(self.cal_bp, kind="stable")
        x = self.cal_bp[order]
        ages = np.asarray(ages, dtype=float)
        return np.interp(ages, x, self.mean[order]), np.interp(ages, x, self.error[order])

    def sorted_descending(self) -> "CalibrationCurve":
        order = np.argsort(-self.cal_bp, kind="stable")
        return CalibrationCurve(self.cal_bp[order], self.mean[order], self.error[order], self.name)


def _seq_by(start: float, stop: float, step: float) -> np.ndarray:
    """``start, start+step, ...`` up to and including ``stop`` (step may be negative)."""
    n = int(np.floor((stop - start) / step + 1e-10))
    return start + step * np.arange(max(n, 0) + 1)


def identity_curve(mean: float, error: float) -> CalibrationCurve:
    """1:1 curve for dates already on the calendar (or activity) scale.

    Spans ``mean ± 5·error`` at a 5-year step, switching to 100 evenly spaced
    points when the step would give fewer than 5 or more than 100.
    """
    lo = mean - IDENTITY_SPAN * error
    hi = mean + IDENTITY_SPAN * error
    x = _seq_by(lo, hi, IDENTITY_STEP)
    if len(x) < IDENTITY_MIN_POINTS or len(x) > IDENTITY_MAX_POINTS:
        x = np.linspace(lo, hi, IDENTITY_MAX_POINTS)
    return CalibrationCurve(x, x, np.zeros_like(x), name="identity")


def mix_curves(
    curve1: CalibrationCurve,
    curve2: CalibrationCurve,
    proportion: float = 0.5,
    offset: Tuple[float, float] = (0.0, 0.0),
) -> CalibrationCurve:
    """Blend two curves on ``curve1``'s calendar grid.

    ``curve2`` is interpolated (clamped at its ends) onto ``curve1``'s ages,
    shifted by ``offset[0]`` and has ``offset[1]`` added to its error in
    quadrature. Means and errors are then combined as proportion-weighted
    sums. The error combination is a plain weighted sum, not a variance
    combination.
    """
    validate_numeric_range(proportion, 0.0, 1.0, name="proportion")
    mu2, err2 = curve2.interpolate(curve1.cal_bp)
    mu2 = mu2 + offset[0]
    err2 = np.sqrt(err2 ** 2 + offset[1] ** 2)
    mu = proportion * curve1.mean + (1 - proportion) * mu2
    error = proportion * curve1.error + (1 - proportion) * err2
    log.debug(
        "mixed curves",
        extra={"curve1": curve1.name, "curve2": curve2.name, "proportion": proportion, "offset": list(offset)},
    )
    return CalibrationCurve(curve1.cal_bp, mu, error, name=f"mix({curve1.name},{curve2.name})")


def splice_postbomb(curve: CalibrationCurve, bomb: CalibrationCurve) -> CalibrationCurve:
    """Resample ``bomb`` on a 0.1-year grid and put it in front of ``curve``.

    Base-curve points inside the postbomb age range are replaced; the result
    runs from old to young (descending cal BP).
    """
    lo, hi = bomb.age_range()
    x = _seq_by(hi, lo, -POSTBOMB_STEP)
    y, z = bomb.interpolate(x)
    keep = (curve.cal_bp > hi) | (curve.cal_bp < lo)
    spliced = CalibrationCurve(
        np.concatenate([x, curve.cal_bp[keep]]),
        np.concatenate([y, curve.mean[keep]]),
        np.concatenate([z, curve.error[keep]]),
        name=f"{curve.name}+{bomb.name}",
    )
    return spliced.sorted_descending()


def write_curve(curve: CalibrationCurve, path: Union[str, Path], sep: str = "\t") -> Path:
    """Persist a curve as a headerless 3-column table."""
    return write_curve_file(curve.to_array(), path, sep=sep)


class CurveStore:
    """Resolves curve identifiers to files under ``cfg.curve_dir`` and caches them."""

    def __init__(self, cfg: Optional[CurvesConfig] = None) -> None:
        self.cfg = cfg or CurvesConfig()
        self.curve_dir = Path(self.cfg.curve_dir)
        self._cache: Dict[Tuple[str, int], CalibrationCurve] = {}

    def _slot_name(self, cid: CurveId) -> str:
        return {
            CurveId.INTCAL20: self.cfg.cc1,
            CurveId.MARINE20: self.cfg.cc2,
            CurveId.SHCAL20: self.cfg.cc3,
            CurveId.CUSTOM: self.cfg.cc4,
        }[cid]

    def _read_standard(self, cid: CurveId) -> CalibrationCurve:
        name = self._slot_name(cid).strip('"')
        if cid == CurveId.CUSTOM:
            if name == NO_CUSTOM_CURVE:
                raise CurveNotFoundError("no custom calibration curve configured (curves.cc4)")
            return CalibrationCurve.from_array(read_curve_file(self.curve_dir / name), name=name)
        if name.lower() == cid.name.lower():
            return CalibrationCurve.from_array(read_curve_file(self.curve_dir / STANDARD_FILES[cid]), name=name)
        # a replacement curve for this slot, in the comma-separated layout
        return CalibrationCurve.from_array(
            read_curve_file(self.curve_dir / f"{name}.14C", csv_variant=True), name=name
        )

    def _read_named(self, name: str) -> CalibrationCurve:
        plain = self.curve_dir / name
        if plain.is_file():
            return CalibrationCurve.from_array(read_curve_file(plain), name=name)
        csv = self.curve_dir / f"{name}.14C"
        if csv.is_file():
            return CalibrationCurve.from_array(read_curve_file(csv, csv_variant=True), name=name)
        raise CurveNotFoundError(f"calibration curve {name!r} doesn't exist in {self.curve_dir}")

    def load(
        self,
        curve: CurveRef,
        postbomb: Optional[int] = None,
        mean: Optional[float] = None,
        error: Optional[float] = None,
    ) -> CalibrationCurve:
        """Return the curve for ``curve``, spliced with a postbomb curve when applicable.

        ``postbomb`` defaults to the configured value; 0 disables splicing. A
        postbomb zone is only applied to the curve it belongs to.
        ``CurveId.NONE`` gives the identity curve around ``mean`` and ``error``,
        which are required for it; identity curves are not cached.
        """
        pb = self.cfg.postbomb if postbomb is None else int(postbomb)
        if pb != 0:
            postbomb_id(pb)
        if isinstance(curve, str) and curve.strip('"').lower() not in STANDARD_NAMES:
            key = (curve, 0)
            if key not in self._cache:
                self._cache[key] = self._read_named(curve)
            return self._cache[key]

        cid = curve_id(curve)
        if cid == CurveId.NONE:
            if mean is None or error is None:
                raise ConfigurationError("the identity curve (cc 0) needs the date's mean and error")
            return identity_curve(float(mean), float(error))
        if pb != 0 and postbomb_id(pb).base_curve != cid:
            pb = 0
        key = (cid.name, pb)
        if key not in self._cache:
            base = self._read_standard(cid)
            if pb != 0:
                base = self.splice_postbomb(base, pb)
            log.info("loaded calibration curve", extra={"curve": base.name, "points": len(base), "postbomb": pb})
            self._cache[key] = base
        return self._cache[key]

    def load_postbomb(self, pb: Union[PostbombId, int]) -> CalibrationCurve:
        pid = postbomb_id(pb)
        fname = POSTBOMB_FILES[pid]
        return CalibrationCurve.from_array(read_curve_file(self.curve_dir / fname), name=fname)

    def splice_postbomb(self, curve: CalibrationCurve, pb: Union[PostbombId, int]) -> CalibrationCurve:
        return splice_postbomb(curve, self.load_postbomb(pb))

    def mix(
        self,
        curve1: Union[CurveRef, CalibrationCurve],
        curve2: Union[CurveRef, CalibrationCurve],
        proportion: float = 0.5,
        offset: Tuple[float, float] = (0.0, 0.0),
    ) -> CalibrationCurve:
        c1 = curve1 if isinstance(curve1, CalibrationCurve) else self.load(curve1, postbomb=0)
        c2 = curve2 if isinstance(curve2, CalibrationCurve) else self.load(curve2, postbomb=0)
        return mix_curves(c1, c2, proportion, offset)


def load_curve(curve: CurveRef, curve_dir: Union[str, Path] = "curves", postbomb: int = 0) -> CalibrationCurve:
    """One-off curve lookup without keeping a store around."""
    return CurveStore(CurvesConfig(curve_dir=str(curve_dir), postbomb=postbomb)).load(curve)
