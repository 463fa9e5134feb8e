"""
chronocal: calendar-age calibration of radiocarbon, Pb-210 and calendar dates,
and accumulation-rate and flux summaries of posterior age-depth ensembles.
"""

__version__ = "0.1.0"

from .accrate import (
    DensityField,
    PosteriorEnsemble,
    accrate_at_age,
    accrate_at_depth,
    ghost_age,
    ghost_density,
    ghost_depth,
    ghost_flux,
)
from .calibration import (
    CalibratedDistribution,
    CalibrationCurve,
    CurveId,
    CurveStore,
    NoiseModel,
    PostbombId,
    calibrate_batch,
    calibrate_one,
    identity_curve,
    load_curve,
    mix_curves,
    records_from_table,
    splice_postbomb,
)
from .config import ChronoConfig
from .pb210 import activity_density, modelled_activity

__all__ = [
    "__version__",
    "CalibratedDistribution",
    "CalibrationCurve",
    "ChronoConfig",
    "CurveId",
    "CurveStore",
    "DensityField",
    "NoiseModel",
    "PostbombId",
    "PosteriorEnsemble",
    "accrate_at_age",
    "accrate_at_depth",
    "activity_density",
    "calibrate_batch",
    "calibrate_one",
    "ghost_age",
    "ghost_density",
    "ghost_depth",
    "ghost_flux",
    "identity_curve",
    "load_curve",
    "mix_curves",
    "modelled_activity",
    "records_from_table",
    "splice_postbomb",
]
