"""
Kernel density and credible-interval summaries of posterior samples.

The density follows the conventions of R's ``density()``: a Gaussian kernel
with Silverman's rule-of-thumb bandwidth (``bw.nrd0``) evaluated on 512
equally spaced points, from a fixed lower bound (0 for rates and fluxes) to
``max + 3·bw`` unless an upper bound is given.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Sequence

import numpy as np
import pandas as pd
from scipy.stats import norm

from ..utils.exceptions import DomainError
from ..utils.validators import validate_probability

N_GRID = 512
BW_CUT = 3.0
MIN_DENSITY_SAMPLES = 3
_CHUNK = 2048


def bw_nrd0(x: np.ndarray) -> float:
    """Silverman's rule of thumb with R's fallbacks for degenerate samples."""
    x = np.asarray(x, dtype=float)
    if len(x) < 2:
        raise DomainError("need at least 2 samples to select a bandwidth")
    hi = float(np.std(x, ddof=1))
    q75, q25 = np.quantile(x, [0.75, 0.25])
    lo = min(hi, (q75 - q25) / 1.34)
    if not lo:
        lo = hi or abs(float(x[0])) or 1.0
    return 0.9 * lo * len(x) ** -0.2


def kde(
    x: np.ndarray,
    lower: Optional[float] = 0.0,
    upper: Optional[float] = None,
    n: int = N_GRID,
    bw: Optional[float] = None,
):
    """Gaussian kernel density of ``x`` on ``n`` points over ``[lower, upper]``.

    ``lower``/``upper`` of None extend ``3·bw`` beyond the sample range.
    Returns ``(grid, density)``.
    """
    x = np.asarray(x, dtype=float)
    bw = bw_nrd0(x) if bw is None else float(bw)
    lo = x.min() - BW_CUT * bw if lower is None else float(lower)
    hi = x.max() + BW_CUT * bw if upper is None else float(upper)
    grid = np.linspace(lo, hi, n)
    dens = np.zeros(n)
    for start in range(0, len(x), _CHUNK):
        chunk = x[start : start + _CHUNK]
        dens += norm.pdf((grid[None, :] - chunk[:, None]) / bw).sum(axis=0)
    return grid, dens / (len(x) * bw)


def credible_range(x: np.ndarray, prob: float):
    """Two-tailed range holding ``prob`` of the samples (linear quantiles)."""
    validate_probability(prob)
    lo, hi = np.quantile(x, [(1 - prob) / 2, 1 - (1 - prob) / 2])
    return float(lo), float(hi)


class PointSummary(NamedTuple):
    x: np.ndarray
    y: np.ndarray
    lower: float
    upper: float
    mean: float
    n: int


def summarize_samples(
    samples: np.ndarray,
    prob: float,
    lower: Optional[float] = 0.0,
    upper: Optional[float] = None,
    shift_min: bool = False,
) -> PointSummary:
    """Density, credible range and mean of the finite ``samples``.

    Fewer than three samples give an empty density and NaN summaries.
    ``shift_min`` moves the density down so its minimum is zero.
    """
    s = np.asarray(samples, dtype=float)
    s = s[np.isfinite(s)]
    if len(s) < MIN_DENSITY_SAMPLES:
        return PointSummary(np.empty(0), np.empty(0), np.nan, np.nan, np.nan, len(s))
    x, y = kde(s, lower=lower, upper=upper)
    if shift_min:
        y = y - y.min()
    lo, hi = credible_range(s, prob)
    return PointSummary(x, y, lo, hi, float(s.mean()), len(s))


@dataclass(frozen=True)
class DensityField:
    """Per-point densities and summaries, jointly scaled to a shared peak."""

    kind: str
    points: np.ndarray
    x: List[np.ndarray]
    y: List[np.ndarray]
    lower: np.ndarray
    upper: np.ndarray
    mean: np.ndarray
    n_samples: np.ndarray
    value_limit: float = float("nan")
    prob: float = 0.95
    meta: dict = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.points)

    def max_density(self) -> float:
        return max((float(y.max()) for y in self.y if len(y)), default=0.0)

    def summary_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                self.kind: self.points,
                "lower": self.lower,
                "upper": self.upper,
                "mean": self.mean,
                "n": self.n_samples,
            }
        )

    def density_frame(self) -> pd.DataFrame:
        """Long format: one row per (point, value) with its scaled density."""
        frames = [
            pd.DataFrame({self.kind: p, "value": x, "density": y})
            for p, x, y in zip(self.points, self.x, self.y)
            if len(x)
        ]
        if not frames:
            return pd.DataFrame(columns=[self.kind, "value", "density"])
        return pd.concat(frames, ignore_index=True)


def assemble_field(
    kind: str,
    points: Sequence[float],
    summaries: Sequence[PointSummary],
    prob: float,
    dark: float = 1.0,
    value_limit: float = float("nan"),
    meta: Optional[dict] = None,
) -> DensityField:
    """Scale all densities by the global peak and cap them at ``dark``."""
    peak = max((float(s.y.max()) for s in summaries if len(s.y)), default=0.0)
    ys = []
    for s in summaries:
        y = s.y
        if len(y) and peak > 0:
            y = np.minimum(y / peak, dark)
        ys.append(y)
    return DensityField(
        kind=kind,
        points=np.asarray(points, dtype=float),
        x=[s.x for s in summaries],
        y=ys,
        lower=np.array([s.lower for s in summaries], dtype=float),
        upper=np.array([s.upper for s in summaries], dtype=float),
        mean=np.array([s.mean for s in summaries], dtype=float),
        n_samples=np.array([s.n for s in summaries], dtype=int),
        value_limit=float(value_limit),
        prob=float(prob),
        meta=dict(meta or {}),
    )
