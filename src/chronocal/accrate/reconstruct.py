"""Accumulation rates at a depth or at an age, across all posterior iterations."""

from __future__ import annotations

import logging

import numpy as np

from ..calibration.conversions import bcad_to_calbp
from ..utils.exceptions import AgeRangeWarning, warn
from .ensemble import PosteriorEnsemble

log = logging.getLogger(__name__)


def accrate_at_depth(depth: float, ensemble: PosteriorEnsemble, cmyr: bool = False) -> np.ndarray:
    """Rates of the segment containing ``depth``; empty (with a warning) outside the elbows.

    Rates are in time per depth unit, or depth per time unit with ``cmyr``.
    """
    elbows = ensemble.elbows
    if not elbows[0] <= depth <= elbows[-1]:
        warn(
            f"depth {depth} outside the elbows {elbows[0]:g}..{elbows[-1]:g}",
            AgeRangeWarning,
            log,
            depth=float(depth),
            depth_min=float(elbows[0]),
            depth_max=float(elbows[-1]),
        )
        return np.empty(0)
    idx = int(np.flatnonzero(elbows <= depth).max())
    accs = ensemble.rates[:, idx].copy()
    return 1.0 / accs if cmyr else accs


def accrate_at_age(
    age: float, ensemble: PosteriorEnsemble, cmyr: bool = False, bcad: bool = False
) -> np.ndarray:
    """Rates of every iteration's segment that strictly brackets ``age``.

    Iterations whose trajectory never reaches ``age`` contribute nothing, so
    the result length varies with the age. With ``bcad`` the age is read on
    the BC/AD scale.
    """
    if bcad:
        age = bcad_to_calbp(age)
    ages = ensemble.trajectories
    if age < ages.min() or age > ages.max():
        warn(
            f"age {age} outside the core's age range",
            AgeRangeWarning,
            log,
            age=float(age),
            age_min=float(ages.min()),
            age_max=float(ages.max()),
        )
    inside = (ages[:, :-1] < age) & (ages[:, 1:] > age)
    # segment-major order: all iterations of the top segment first
    accs = ensemble.rates.T[inside.T]
    return 1.0 / accs if cmyr else accs
