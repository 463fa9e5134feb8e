"""
Posterior age-depth ensemble.

Each row of ``output`` is one MCMC iteration: the age at the top of the core
followed by one accumulation rate (time per depth unit) for each of the ``K``
segments that start at ``elbows``. Extra trailing sampler columns (memory,
log posterior, ...) are carried along and ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Sequence, Union

import numpy as np
import pandas as pd

from ..io import read_ensemble_file
from ..utils.exceptions import DomainError
from ..utils.validators import as_float_vector, validate_probability


@dataclass(frozen=True)
class PosteriorEnsemble:
    output: np.ndarray
    elbows: np.ndarray
    thickness: float

    def __post_init__(self) -> None:
        output = np.array(self.output, dtype=float)
        elbows = as_float_vector(self.elbows, name="elbows").copy()
        if output.ndim != 2:
            raise DomainError(f"ensemble output must be 2-D, got shape {output.shape}")
        if len(elbows) == 0:
            raise DomainError("ensemble needs at least one elbow")
        if np.any(np.diff(elbows) <= 0):
            raise DomainError("elbows must be strictly increasing")
        if output.shape[1] < len(elbows) + 1:
            raise DomainError(
                f"ensemble output has {output.shape[1]} columns; need start age plus {len(elbows)} rates"
            )
        if not self.thickness > 0:
            raise DomainError(f"segment thickness must be positive, got {self.thickness}")
        output.setflags(write=False)
        elbows.setflags(write=False)
        object.__setattr__(self, "output", output)
        object.__setattr__(self, "elbows", elbows)
        object.__setattr__(self, "thickness", float(self.thickness))

    @classmethod
    def from_file(
        cls, path: Union[str, Path], elbows: Sequence[float], thickness: float
    ) -> "PosteriorEnsemble":
        """Load whitespace separated sampler output (one iteration per line)."""
        elbows = np.asarray(elbows, dtype=float)
        return cls(read_ensemble_file(path, n_columns=len(elbows) + 1), elbows, thickness)

    @property
    def n_segments(self) -> int:
        return len(self.elbows)

    @property
    def n_iterations(self) -> int:
        return self.output.shape[0]

    @property
    def start_ages(self) -> np.ndarray:
        return self.output[:, 0]

    @property
    def rates(self) -> np.ndarray:
        """``(n_iterations, K)`` accumulation rates."""
        return self.output[:, 1 : self.n_segments + 1]

    @cached_property
    def depths(self) -> np.ndarray:
        """Segment boundaries: the elbows plus the base of the last segment."""
        return np.append(self.elbows, self.elbows[-1] + self.thickness)

    @cached_property
    def trajectories(self) -> np.ndarray:
        """``(n_iterations, K + 1)`` ages at each segment boundary."""
        cum = np.cumsum(self.rates * self.thickness, axis=1)
        return np.column_stack([self.start_ages, self.start_ages[:, None] + cum])

    def age_at_depth(self, depth: float) -> np.ndarray:
        """Per-iteration age at ``depth`` by linear interpolation; NaN outside the core."""
        d = self.depths
        if depth < d[0] or depth > d[-1]:
            return np.full(self.n_iterations, np.nan)
        i = min(int(np.searchsorted(d, depth, side="right")) - 1, self.n_segments - 1)
        frac = (depth - d[i]) / self.thickness
        traj = self.trajectories
        return traj[:, i] + frac * (traj[:, i + 1] - traj[:, i])

    def age_ranges(self, prob: float = 0.95) -> pd.DataFrame:
        """Credible age ranges, median and mean at every segment boundary."""
        validate_probability(prob)
        traj = self.trajectories
        lo, med, hi = np.quantile(traj, [(1 - prob) / 2, 0.5, 1 - (1 - prob) / 2], axis=0)
        return pd.DataFrame(
            {"depth": self.depths, "lower": lo, "upper": hi, "median": med, "mean": traj.mean(axis=0)}
        )

    def age_grid(self, n: int, prob: float = 0.95, inset: float = 0.0) -> np.ndarray:
        """``n`` ages across the credible age range, ``inset`` years in from each end."""
        ranges = self.age_ranges(prob)
        return np.linspace(ranges["lower"].min() + inset, ranges["upper"].max() - inset, int(n))
