"""
Pb-210 forward model: the activity a sediment slice should show given an
age model, the unsupported Pb-210 influx and the supported activity.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np

from ..accrate.density import DensityField, assemble_field, summarize_samples
from ..utils.exceptions import ConfigurationError, DomainError
from ..utils.validators import validate_probability

log = logging.getLogger(__name__)

# Pb-210 decay constant, 1/yr
PB210_LAMBDA = 0.03114
UNIT_FACTORS = {"dpm/g": 500.0, "Bq/kg": 10.0}

ArrayLike = Union[float, np.ndarray]
AgeModel = Callable[[float], ArrayLike]


def unit_factor(unit: str) -> float:
    try:
        return UNIT_FACTORS[unit]
    except KeyError:
        raise ConfigurationError(f"unknown Pb-210 unit {unit!r}; use one of {sorted(UNIT_FACTORS)}") from None


def modelled_activity(
    depth_top: float,
    depth_bottom: float,
    density: float,
    influx: ArrayLike,
    supported: ArrayLike,
    age_model: AgeModel,
    reference_age: float = 0.0,
    unit: str = "dpm/g",
) -> ArrayLike:
    """Modelled Pb-210 activity of the slice between ``depth_top`` and ``depth_bottom``.

    ``age_model`` maps a depth to one age or to an array of per-iteration
    ages; ``influx`` and ``supported`` broadcast against those ages. Ages
    are counted from ``reference_age`` (the age at the time of sampling).
    """
    if depth_top >= depth_bottom:
        raise DomainError(f"depth_top ({depth_top}) should be above depth_bottom ({depth_bottom})")
    mult = unit_factor(unit)
    t_top = np.asarray(age_model(depth_top), dtype=float) - reference_age
    t_bottom = np.asarray(age_model(depth_bottom), dtype=float) - reference_age
    decay = np.exp(-PB210_LAMBDA * t_top) - np.exp(-PB210_LAMBDA * t_bottom)
    return np.asarray(supported, dtype=float) + np.asarray(influx, dtype=float) / (PB210_LAMBDA * mult * density) * decay


def activity_density(
    slices: Sequence[Tuple[float, float, float]],
    age_model: AgeModel,
    influx: ArrayLike,
    supported: ArrayLike,
    reference_age: float = 0.0,
    unit: str = "dpm/g",
    prob: float = 0.95,
    dark: float = 1.0,
) -> DensityField:
    """Density, credible range and mean of modelled activity for each slice.

    ``slices`` holds ``(depth, thickness, density)`` per measured slice,
    with ``depth`` the bottom of the slice.
    """
    validate_probability(prob)
    depths, summaries = [], []
    for depth, thickness, dens in slices:
        acts = np.atleast_1d(
            modelled_activity(depth - thickness, depth, dens, influx, supported, age_model, reference_age, unit)
        )
        summaries.append(summarize_samples(acts, prob, lower=None))
        depths.append(depth)
    value_limit: Optional[float] = max((float(s.x.max()) for s in summaries if len(s.x)), default=np.nan)
    log.info("modelled Pb-210 densities", extra={"n_slices": len(depths), "unit": unit})
    return assemble_field("depth", depths, summaries, prob, dark=dark, value_limit=value_limit, meta={"unit": unit})
