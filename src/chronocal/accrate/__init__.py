"""Accumulation rates and flux summaries from a posterior age-depth ensemble."""

from .density import DensityField, bw_nrd0, credible_range, kde, summarize_samples
from .ensemble import PosteriorEnsemble
from .flux import flux_matrix, ghost_flux
from .ghost import ghost_age, ghost_density, ghost_depth
from .reconstruct import accrate_at_age, accrate_at_depth

__all__ = [
    "DensityField",
    "PosteriorEnsemble",
    "accrate_at_age",
    "accrate_at_depth",
    "bw_nrd0",
    "credible_range",
    "flux_matrix",
    "ghost_age",
    "ghost_density",
    "ghost_depth",
    "ghost_flux",
    "kde",
    "summarize_samples",
]
