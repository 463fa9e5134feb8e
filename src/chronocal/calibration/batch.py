"""Calibrate a whole sequence of dated samples with per-record or global settings."""

from __future__ import annotations

import logging
import math
from typing import List, NamedTuple, Optional, Sequence

from ..config import CalibrationConfig, CurvesConfig
from ..utils.parallel import run_parallel
from .calibrate import CalibratedDistribution, NoiseModel, calibrate_one
from .curves import CalibrationCurve, CurveId, CurveStore
from .records import DateRecord, RadiocarbonDate

log = logging.getLogger(__name__)


class _Task(NamedTuple):
    curve: CalibrationCurve
    mean: float
    variance: float
    noise: NoiseModel
    cutoff: float
    depth: float
    label: str


def _run_task(task: _Task) -> CalibratedDistribution:
    return calibrate_one(
        task.curve,
        task.mean,
        task.variance,
        noise_model=task.noise,
        cutoff=task.cutoff,
        depth=task.depth,
        label=task.label,
    )


def _prepare(record: DateRecord, cfg: CalibrationConfig, store: CurveStore) -> _Task:
    if record.t_a is not None:
        noise = NoiseModel(normal=cfg.normal, t_a=record.t_a, t_b=record.t_b)
    else:
        noise = NoiseModel(normal=cfg.normal, t_a=cfg.t_a, t_b=cfg.t_b)

    # global offsets apply to every row; only radiocarbon rows can override them
    delta_r, delta_std = cfg.delta_r, cfg.delta_std
    if isinstance(record, RadiocarbonDate):
        delta_r = delta_r if record.delta_r is None else record.delta_r
        delta_std = delta_std if record.delta_std is None else record.delta_std
    mean = record.mean - delta_r
    variance = record.error ** 2 + delta_std ** 2

    if isinstance(record, RadiocarbonDate):
        curve = store.load(record.cc)
    else:
        curve = store.load(CurveId.NONE, mean=mean, error=math.sqrt(variance))
    return _Task(curve, mean, variance, noise, cfg.cutoff, record.depth, record.label)


def calibrate_batch(
    records: Sequence[DateRecord],
    calibration: Optional[CalibrationConfig] = None,
    curves: Optional[CurvesConfig] = None,
    store: Optional[CurveStore] = None,
    workers: Optional[int] = None,
) -> List[CalibratedDistribution]:
    """Calibrate ``records`` in order; the i-th distribution belongs to the i-th record.

    Curves are resolved once up front (through ``store`` or a store built from
    ``curves``); the per-record likelihood work may then run in a process pool.
    """
    cfg = calibration or CalibrationConfig()
    store = store or CurveStore(curves or CurvesConfig())
    workers = cfg.workers if workers is None else workers

    tasks = [_prepare(r, cfg, store) for r in records]
    out = run_parallel(_run_task, tasks, workers=workers)
    log.info("calibrated dates", extra={"n_dates": len(out), "workers": workers, "normal": cfg.normal})
    return out
