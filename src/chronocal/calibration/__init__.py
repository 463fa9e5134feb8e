"""
Date calibration: curves, single-date and batch calibration, table records
and pMC conversions.
"""

from .batch import calibrate_batch
from .calibrate import CalibratedDistribution, NoiseModel, calibrate_one
from .conversions import age_pmc, bcad_to_calbp, calbp_to_bcad, pmc_age
from .curves import (
    CalibrationCurve,
    CurveId,
    CurveStore,
    PostbombId,
    identity_curve,
    load_curve,
    mix_curves,
    splice_postbomb,
    write_curve,
)
from .records import (
    CalendarDate,
    DateRecord,
    PbActivityDate,
    RadiocarbonDate,
    make_record,
    records_from_table,
)

__all__ = [
    "CalibratedDistribution",
    "CalibrationCurve",
    "CalendarDate",
    "CurveId",
    "CurveStore",
    "DateRecord",
    "NoiseModel",
    "PbActivityDate",
    "PostbombId",
    "RadiocarbonDate",
    "age_pmc",
    "bcad_to_calbp",
    "calbp_to_bcad",
    "calibrate_batch",
    "calibrate_one",
    "identity_curve",
    "load_curve",
    "make_record",
    "mix_curves",
    "pmc_age",
    "records_from_table",
    "splice_postbomb",
    "write_curve",
]
