"""
Calibration of a single measurement against a curve.

The measurement likelihood is evaluated at every curve point, either with a
Gaussian or with the Student-t model of Christen & Pérez (2009), normalised
into a discrete probability mass over calendar ages and trimmed to the points
that carry meaningful probability.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from scipy.stats import norm

from ..utils.exceptions import CurveCoverageWarning, DomainError, warn
from ..utils.validators import validate_numeric_range, validate_t_parameters
from .curves import CalibrationCurve

log = logging.getLogger(__name__)

DEFAULT_CUTOFF = 0.001
MIN_SUPPORT_POINTS = 5
RESAMPLE_POINTS = 100


@dataclass(frozen=True)
class NoiseModel:
    """Measurement noise: Gaussian when ``normal`` else Student-t(t_a, t_b)."""

    normal: bool = False
    t_a: float = 3.0
    t_b: float = 4.0

    def __post_init__(self) -> None:
        validate_t_parameters(self.t_a, self.t_b)

    def log_likelihood(self, measurement: float, curve_mean: np.ndarray, total_var: np.ndarray) -> np.ndarray:
        if self.normal:
            return norm.logpdf(measurement, loc=curve_mean, scale=np.sqrt(total_var))
        return -(self.t_a + 0.5) * np.log(self.t_b + (measurement - curve_mean) ** 2 / (2.0 * total_var))


@dataclass(frozen=True)
class CalibratedDistribution:
    """Discrete calendar-age PMF of one dated sample."""

    ages: np.ndarray
    probs: np.ndarray
    depth: float = float("nan")
    label: str = ""

    def __len__(self) -> int:
        return len(self.ages)

    def mean(self) -> float:
        return float(np.sum(self.ages * self.probs))

    def std(self) -> float:
        mu = self.mean()
        return float(np.sqrt(np.sum(self.probs * (self.ages - mu) ** 2)))

    def quantile(self, q: float) -> float:
        """Age at cumulative mass ``q``, linearly interpolated."""
        validate_numeric_range(q, 0.0, 1.0, name="q")
        cdf = np.cumsum(self.probs)
        return float(np.interp(q, cdf, self.ages))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "label": self.label,
                "depth": self.depth,
                "cal_bp": self.ages,
                "prob": self.probs,
            }
        )


def _restrict_support(ages: np.ndarray, probs: np.ndarray, cutoff: float):
    keep = probs > cutoff
    if np.count_nonzero(keep) > MIN_SUPPORT_POINTS:
        ages, probs = ages[keep], probs[keep]
    else:
        # very precise dates would collapse onto a handful of curve points
        grid = np.linspace(ages.min(), ages.max(), RESAMPLE_POINTS)
        probs = np.interp(grid, ages, probs)
        ages = grid
    return ages, probs / probs.sum()


def calibrate_one(
    curve: CalibrationCurve,
    mean: float,
    variance: float,
    noise_model: Optional[NoiseModel] = None,
    cutoff: float = DEFAULT_CUTOFF,
    depth: float = float("nan"),
    label: str = "",
) -> CalibratedDistribution:
    """Calibrate ``mean`` (with measurement ``variance``) against ``curve``.

    ``variance`` already includes any reservoir-offset spread; ``mean`` has
    any reservoir offset already subtracted.
    """
    noise_model = noise_model or NoiseModel()
    order = np.argsort(curve.cal_bp, kind="stable")
    ages, first = np.unique(curve.cal_bp[order], return_index=True)
    cmean = curve.mean[order][first]
    cerr = curve.error[order][first]

    total_var = cerr ** 2 + float(variance)
    if np.any(total_var <= 0):
        raise DomainError(f"date {label or mean!r}: total variance must be positive (error and curve error are 0)")

    if mean < cmean.min() or mean > cmean.max():
        warn(
            f"date {label or mean!r} lies outside the range of curve {curve.name}",
            CurveCoverageWarning,
            log,
            curve=curve.name,
            measurement=float(mean),
        )

    ll = noise_model.log_likelihood(float(mean), cmean, total_var)
    probs = np.exp(ll - ll.max())
    probs = probs / probs.sum()
    ages, probs = _restrict_support(ages, probs, cutoff)
    return CalibratedDistribution(ages=ages, probs=probs, depth=float(depth), label=str(label))
