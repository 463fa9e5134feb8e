"""
Proxy flux through time.

A concentration profile (amount per volume, against depth) divided by the
accumulation rate (time per depth) gives a flux (amount per area per time).
Each posterior iteration maps calendar ages to depths through its own
trajectory, so every age collects one flux value per iteration that reaches
it.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Optional, Sequence

import numpy as np

from ..calibration.conversions import bcad_to_calbp, calbp_to_bcad
from ..utils.exceptions import DomainError
from ..utils.parallel import run_parallel
from ..utils.validators import as_float_vector, ensure_shape, validate_probability
from .density import DensityField, PointSummary, assemble_field, summarize_samples
from .ensemble import PosteriorEnsemble

log = logging.getLogger(__name__)


def flux_matrix(ensemble: PosteriorEnsemble, flux_profile: np.ndarray, ages: np.ndarray) -> np.ndarray:
    """``(n_iterations, len(ages))`` fluxes; NaN where an iteration or the profile doesn't reach."""
    profile = np.asarray(flux_profile, dtype=float)
    ensure_shape(profile, (-1, 2), name="flux_profile")
    if len(profile) < 2:
        raise DomainError("flux profile needs at least two depths")
    profile = profile[np.argsort(profile[:, 0], kind="stable")]
    pdepth, pconc = profile[:, 0], profile[:, 1]

    traj = ensemble.trajectories
    rates = ensemble.rates
    depths = ensemble.depths
    last = ensemble.n_segments - 1
    out = np.full((ensemble.n_iterations, len(ages)), np.nan)
    for i in range(ensemble.n_iterations):
        row = traj[i]
        d = np.interp(ages, row, depths, left=np.nan, right=np.nan)
        ok = np.isfinite(d)
        conc = np.full(len(ages), np.nan)
        conc[ok] = np.interp(d[ok], pdepth, pconc, left=np.nan, right=np.nan)
        seg = np.clip(np.searchsorted(row, ages, side="right") - 1, 0, last)
        out[i] = conc / rates[i, seg]
    return out


def _flux_point(column: np.ndarray, prob: float, limit: float) -> PointSummary:
    return summarize_samples(column, prob, upper=limit, shift_min=True)


def ghost_flux(
    ensemble: PosteriorEnsemble,
    flux_profile: np.ndarray,
    ages: Optional[Sequence[float]] = None,
    age_res: int = 200,
    prob: float = 0.8,
    upper: float = 0.95,
    dark: float = 1.0,
    bcad: bool = False,
    flux_limit: Optional[float] = None,
    workers: Optional[int] = None,
) -> DensityField:
    """Flux densities, credible ranges and means at each calendar age.

    The density range runs from 0 to ``flux_limit``, by default the ``upper``
    quantile of all finite fluxes.
    """
    validate_probability(prob)
    validate_probability(upper, "upper")
    if ages is None:
        calbp = ensemble.age_grid(age_res, 0.95)
    else:
        ages = as_float_vector(ages, name="ages")
        calbp = bcad_to_calbp(ages) if bcad else ages

    fluxes = flux_matrix(ensemble, flux_profile, calbp)
    finite = fluxes[np.isfinite(fluxes)]
    if flux_limit is None:
        flux_limit = float(np.quantile(finite, upper)) if len(finite) else np.nan
    limit = flux_limit if np.isfinite(flux_limit) else None

    fn = partial(_flux_point, prob=prob, limit=limit)
    summaries = run_parallel(fn, [fluxes[:, j] for j in range(fluxes.shape[1])], workers=workers)
    points = calbp_to_bcad(calbp) if bcad else calbp
    log.info("flux age ghost", extra={"n_points": len(points), "n_finite": int(len(finite)), "prob": prob})
    return assemble_field("age", points, summaries, prob, dark=dark, value_limit=flux_limit, meta={"bcad": bcad})
