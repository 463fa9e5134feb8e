"""
Ghost summaries: accumulation-rate densities along depth or calendar age.

Every query point is summarised independently, so the per-point work goes
through ``run_parallel``; results are collected by index and the joint
scaling happens afterwards.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Optional, Sequence

import numpy as np

from ..calibration.conversions import bcad_to_calbp, calbp_to_bcad
from ..utils.exceptions import ConfigurationError
from ..utils.parallel import run_parallel
from ..utils.validators import as_float_vector, validate_probability
from .density import DensityField, PointSummary, assemble_field, summarize_samples
from .ensemble import PosteriorEnsemble
from .flux import ghost_flux
from .reconstruct import accrate_at_age, accrate_at_depth

log = logging.getLogger(__name__)


def _depth_point(depth: float, ensemble: PosteriorEnsemble, cmyr: bool, prob: float, limit) -> PointSummary:
    return summarize_samples(accrate_at_depth(depth, ensemble, cmyr=cmyr), prob, upper=limit)


def _age_point(age: float, ensemble: PosteriorEnsemble, cmyr: bool, prob: float, limit) -> PointSummary:
    return summarize_samples(accrate_at_age(age, ensemble, cmyr=cmyr), prob, upper=limit)


def ghost_depth(
    ensemble: PosteriorEnsemble,
    depths: Optional[Sequence[float]] = None,
    prob: float = 0.95,
    cmyr: bool = False,
    dark: float = 1.0,
    acc_limit: Optional[float] = None,
    workers: Optional[int] = None,
) -> DensityField:
    """Accumulation-rate density at each depth (default: the elbows)."""
    validate_probability(prob)
    depths = ensemble.elbows if depths is None else as_float_vector(depths, name="depths")
    fn = partial(_depth_point, ensemble=ensemble, cmyr=cmyr, prob=prob, limit=acc_limit)
    summaries = run_parallel(fn, list(depths), workers=workers)
    if acc_limit is None:
        acc_limit = max((float(s.x.max()) for s in summaries if len(s.x)), default=np.nan)
    log.info("accrate depth ghost", extra={"n_points": len(depths), "cmyr": cmyr, "prob": prob})
    return assemble_field("depth", depths, summaries, prob, dark=dark, value_limit=acc_limit, meta={"cmyr": cmyr})


def ghost_age(
    ensemble: PosteriorEnsemble,
    ages: Optional[Sequence[float]] = None,
    age_res: int = 200,
    prob: float = 0.95,
    cmyr: bool = False,
    bcad: bool = False,
    dark: float = 1.0,
    upper: float = 0.99,
    acc_limit: Optional[float] = None,
    workers: Optional[int] = None,
) -> DensityField:
    """Accumulation-rate density at each calendar age.

    Default ages span the ensemble's credible age range at ``age_res``
    points. With ``bcad`` given ages are read, and all points reported, on
    the BC/AD scale.
    """
    validate_probability(prob)
    validate_probability(upper, "upper")
    if ages is None:
        calbp = ensemble.age_grid(age_res, prob, inset=1.0)
    else:
        ages = as_float_vector(ages, name="ages")
        calbp = bcad_to_calbp(ages) if bcad else ages

    fn = partial(_age_point, ensemble=ensemble, cmyr=cmyr, prob=prob, limit=acc_limit)
    summaries = run_parallel(fn, list(calbp), workers=workers)
    if acc_limit is None:
        all_x = [s.x for s in summaries if len(s.x)]
        acc_limit = 1.1 * float(np.quantile(np.concatenate(all_x), upper)) if all_x else np.nan
    points = calbp_to_bcad(calbp) if bcad else calbp
    log.info("accrate age ghost", extra={"n_points": len(points), "cmyr": cmyr, "bcad": bcad, "prob": prob})
    return assemble_field(
        "age", points, summaries, prob, dark=dark, value_limit=acc_limit, meta={"cmyr": cmyr, "bcad": bcad}
    )


def ghost_density(
    query_points: Optional[Sequence[float]],
    ensemble: PosteriorEnsemble,
    prob: Optional[float] = None,
    kind: str = "depth",
    flux_profile: Optional[np.ndarray] = None,
    **kwargs,
) -> DensityField:
    """Dispatch to the depth, age or flux ghost summary.

    ``kind`` is ``"depth"``, ``"age"`` or ``"flux"``; a given ``flux_profile``
    implies ``"flux"``. ``prob`` of None keeps each variant's default.
    """
    if flux_profile is not None:
        kind = "flux"
    if prob is not None:
        kwargs["prob"] = prob
    if kind == "depth":
        return ghost_depth(ensemble, depths=query_points, **kwargs)
    if kind == "age":
        return ghost_age(ensemble, ages=query_points, **kwargs)
    if kind == "flux":
        if flux_profile is None:
            raise ConfigurationError("flux ghost needs a flux_profile (depth, concentration)")
        return ghost_flux(ensemble, flux_profile, ages=query_points, **kwargs)
    raise ConfigurationError(f"unknown ghost kind {kind!r}; use depth, age or flux")
