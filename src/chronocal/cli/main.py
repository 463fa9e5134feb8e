"""
chronocal command line: calibrate dates, mix curves, query accumulation rates,
build ghost summary tables, model Pb-210 activity and convert pMC values.

Every command loads an optional YAML config, applies its own options on top,
initialises logging and logs a ``cli_call`` event before doing any work.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional

import numpy as np
import pandas as pd
import typer
from pydantic import ValidationError

from .. import __version__
from ..accrate import PosteriorEnsemble, accrate_at_age, accrate_at_depth, ghost_density
from ..calibration import CurveStore, age_pmc, calibrate_batch, pmc_age, records_from_table, write_curve
from ..config import ChronoConfig
from ..io import read_dates_table, read_flux_table, read_slices_table, save_frame
from ..logging import init_logging, log_cli_call, log_event
from ..pb210 import activity_density
from ..utils.exceptions import ChronoCalError, ConfigurationError, DomainError

app = typer.Typer(add_completion=False, help="chronocal: radiocarbon/Pb-210 calibration and accumulation rates")
log = logging.getLogger(__name__)


def _load_config(config: Optional[Path], patch: Dict[str, Dict[str, Any]]) -> ChronoConfig:
    cfg = ChronoConfig.from_yaml(config) if config else ChronoConfig()
    patch = {g: {k: v for k, v in vals.items() if v is not None} for g, vals in patch.items()}
    return cfg.merge({g: vals for g, vals in patch.items() if vals})


def _start(command: str, args: Dict[str, Any], cfg: ChronoConfig) -> None:
    init_logging(cfg.logging)
    log_cli_call(command, {k: str(v) if isinstance(v, Path) else v for k, v in args.items()}, __version__)


def _fail(e: Exception) -> NoReturn:
    typer.echo(f"[ERROR] {e}", err=True)
    raise typer.Exit(1)


def _ensemble(path: Path, d_min: float, thick: float, k: int) -> PosteriorEnsemble:
    elbows = d_min + thick * np.arange(k)
    return PosteriorEnsemble.from_file(path, elbows, thick)


@app.command("calibrate")
def calibrate(
    dates: Path = typer.Argument(..., help="Dates table (CSV with header)"),
    out: Path = typer.Option(Path("calibrated.csv"), "--out", "-o", help="Long-format output CSV"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="chronocal YAML config"),
    cc: Optional[int] = typer.Option(None, "--cc", help="Default curve for single-curve tables (0-4)"),
    curve_dir: Optional[str] = typer.Option(None, "--curve-dir", help="Directory holding the curve files"),
    postbomb: Optional[int] = typer.Option(None, "--postbomb", help="Postbomb curve 1-5 (0 = none)"),
    normal: Optional[bool] = typer.Option(None, "--normal/--student-t", help="Gaussian or Student-t model"),
    delta_r: Optional[float] = typer.Option(None, "--delta-r", help="Default reservoir offset"),
    delta_std: Optional[float] = typer.Option(None, "--delta-std", help="Default reservoir offset error"),
    layout: str = typer.Option("auto", "--layout", help="auto, single, mixed or plum"),
    workers: Optional[int] = typer.Option(None, "--workers", "-j", help="Worker processes"),
) -> None:
    """Calibrate every date in a table and write the distributions."""
    try:
        cfg = _load_config(
            config,
            {
                "curves": {"cc": cc, "curve_dir": curve_dir, "postbomb": postbomb},
                "calibration": {"normal": normal, "delta_r": delta_r, "delta_std": delta_std, "workers": workers},
            },
        )
        _start("calibrate", {"dates": dates, "out": out, "layout": layout}, cfg)
        records = records_from_table(read_dates_table(dates), default_cc=cfg.curves.cc, layout=layout)
        dists = calibrate_batch(records, cfg.calibration, store=CurveStore(cfg.curves))
    except (ChronoCalError, ValidationError, FileNotFoundError) as e:
        _fail(e)
    frame = pd.concat([d.to_frame() for d in dists], ignore_index=True)
    save_frame(frame, out)
    log_event("calibrate.complete", {"n_dates": len(dists), "output": str(out)})
    typer.echo(f"calibrated {len(dists)} dates -> {out}")


@app.command("mix-curves")
def mix_curves(
    curve1: str = typer.Argument(..., help="First curve (IntCal20, Marine20, SHCal20 or a custom name)"),
    curve2: str = typer.Argument(..., help="Second curve"),
    out: Path = typer.Option(Path("mixed.14C"), "--out", "-o", help="Output curve file"),
    proportion: float = typer.Option(0.5, "--proportion", "-p", help="Weight of the first curve"),
    offset_mean: float = typer.Option(0.0, "--offset-mean", help="Offset added to the second curve"),
    offset_error: float = typer.Option(0.0, "--offset-error", help="Error of that offset"),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
    curve_dir: Optional[str] = typer.Option(None, "--curve-dir"),
) -> None:
    """Blend two curves and write the result as a 3-column table."""
    try:
        cfg = _load_config(config, {"curves": {"curve_dir": curve_dir}})
        _start("mix-curves", {"curve1": curve1, "curve2": curve2, "proportion": proportion, "out": out}, cfg)
        store = CurveStore(cfg.curves)
        mixed = store.mix(curve1, curve2, proportion, (offset_mean, offset_error))
    except (ChronoCalError, FileNotFoundError) as e:
        _fail(e)
    write_curve(mixed, out)
    typer.echo(f"mixed curve ({len(mixed)} points) -> {out}")


@app.command("accrate")
def accrate(
    ensemble_file: Path = typer.Argument(..., help="Sampler output, one iteration per line"),
    d_min: float = typer.Option(..., "--d-min", help="Depth of the first elbow"),
    thick: float = typer.Option(..., "--thick", help="Segment thickness"),
    k: int = typer.Option(..., "--k", help="Number of segments"),
    depth: Optional[float] = typer.Option(None, "--depth", help="Query depth"),
    age: Optional[float] = typer.Option(None, "--age", help="Query age"),
    cmyr: Optional[bool] = typer.Option(None, "--cmyr/--yrcm", help="Report depth/time instead of time/depth"),
    bcad: Optional[bool] = typer.Option(None, "--bcad/--calbp", help="Age given in BC/AD"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the rate samples to CSV"),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
) -> None:
    """Accumulation rates of all iterations at one depth or one age."""
    if (depth is None) == (age is None):
        typer.echo("[ERROR] give exactly one of --depth or --age", err=True)
        raise typer.Exit(2)
    try:
        cfg = _load_config(config, {"accrate": {"cmyr": cmyr, "bcad": bcad}})
        _start("accrate", {"ensemble": ensemble_file, "depth": depth, "age": age}, cfg)
        ens = _ensemble(ensemble_file, d_min, thick, k)
        if depth is not None:
            accs = accrate_at_depth(depth, ens, cmyr=cfg.accrate.cmyr)
        else:
            accs = accrate_at_age(age, ens, cmyr=cfg.accrate.cmyr, bcad=cfg.accrate.bcad)
    except (ChronoCalError, FileNotFoundError) as e:
        _fail(e)
    if out is not None:
        save_frame(pd.DataFrame({"accrate": accs}), out)
    if len(accs) == 0:
        typer.echo("n=0 (outside the core)")
        return
    lo, hi = np.quantile(accs, [(1 - cfg.accrate.prob) / 2, 1 - (1 - cfg.accrate.prob) / 2])
    typer.echo(f"n={len(accs)} mean={accs.mean():.4g} range[{cfg.accrate.prob:g}]={lo:.4g}..{hi:.4g}")


@app.command("ghost")
def ghost(
    ensemble_file: Path = typer.Argument(..., help="Sampler output, one iteration per line"),
    d_min: float = typer.Option(..., "--d-min", help="Depth of the first elbow"),
    thick: float = typer.Option(..., "--thick", help="Segment thickness"),
    k: int = typer.Option(..., "--k", help="Number of segments"),
    kind: str = typer.Option("depth", "--kind", help="depth, age or flux"),
    flux: Optional[Path] = typer.Option(None, "--flux", help="Flux CSV (depth then concentration columns)"),
    proxy: int = typer.Option(1, "--proxy", help="Concentration column after the depth column"),
    out: Path = typer.Option(Path("ghost.csv"), "--out", "-o", help="Summary table CSV"),
    densities: Optional[Path] = typer.Option(None, "--densities", help="Also write the long-format densities"),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
    workers: Optional[int] = typer.Option(None, "--workers", "-j"),
) -> None:
    """Density, credible range and mean per depth or age."""
    try:
        cfg = _load_config(config, {"accrate": {"workers": workers}})
        _start("ghost", {"ensemble": ensemble_file, "kind": kind, "flux": flux, "out": out}, cfg)
        ens = _ensemble(ensemble_file, d_min, thick, k)
        acc = cfg.accrate
        if flux is not None or kind == "flux":
            if flux is None:
                raise ConfigurationError("--kind flux needs --flux")
            field = ghost_density(
                None, ens, prob=acc.flux_prob, flux_profile=read_flux_table(flux, proxy),
                age_res=acc.age_res, upper=acc.flux_upper, dark=acc.dark, bcad=acc.bcad, workers=acc.workers,
            )
        elif kind == "age":
            field = ghost_density(
                None, ens, prob=acc.prob, kind="age", age_res=acc.age_res, cmyr=acc.cmyr,
                bcad=acc.bcad, dark=acc.dark, upper=acc.upper, workers=acc.workers,
            )
        else:
            field = ghost_density(None, ens, prob=acc.prob, kind=kind, cmyr=acc.cmyr, dark=acc.dark, workers=acc.workers)
    except (ChronoCalError, FileNotFoundError) as e:
        _fail(e)
    save_frame(field.summary_frame(), out)
    if densities is not None:
        save_frame(field.density_frame(), densities)
    log_event("ghost.complete", {"kind": field.kind, "n_points": len(field), "value_limit": field.value_limit})
    typer.echo(f"{len(field)} {field.kind} points -> {out}")


@app.command("pb210")
def pb210(
    ensemble_file: Path = typer.Argument(..., help="Sampler output, one iteration per line"),
    slices: Path = typer.Argument(..., help="Slices CSV: depth (slice bottom), thickness, density"),
    d_min: float = typer.Option(..., "--d-min", help="Depth of the first elbow"),
    thick: float = typer.Option(..., "--thick", help="Segment thickness"),
    k: int = typer.Option(..., "--k", help="Number of segments"),
    influx_col: int = typer.Option(..., "--influx-col", help="Sampler output column holding the Pb-210 influx"),
    supported_col: int = typer.Option(..., "--supported-col", help="Sampler output column holding supported activity"),
    unit: Optional[str] = typer.Option(None, "--unit", help="dpm/g or Bq/kg"),
    reference_age: Optional[float] = typer.Option(None, "--reference-age", help="Age of the sampling surface"),
    out: Path = typer.Option(Path("pb210.csv"), "--out", "-o", help="Summary table CSV"),
    densities: Optional[Path] = typer.Option(None, "--densities", help="Also write the long-format densities"),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
) -> None:
    """Modelled Pb-210 activity per slice: density, credible range and mean."""
    try:
        cfg = _load_config(config, {"pb210": {"unit": unit, "reference_age": reference_age}})
        _start("pb210", {"ensemble": ensemble_file, "slices": slices, "out": out}, cfg)
        ens = _ensemble(ensemble_file, d_min, thick, k)
        n_cols = ens.output.shape[1]
        for col in (influx_col, supported_col):
            if not 0 <= col < n_cols:
                raise DomainError(f"column {col} not in sampler output ({n_cols} columns)")
        field = activity_density(
            [tuple(row) for row in read_slices_table(slices)],
            ens.age_at_depth,
            ens.output[:, influx_col],
            ens.output[:, supported_col],
            reference_age=cfg.pb210.reference_age,
            unit=cfg.pb210.unit,
            prob=cfg.accrate.prob,
            dark=cfg.accrate.dark,
        )
    except (ChronoCalError, FileNotFoundError) as e:
        _fail(e)
    save_frame(field.summary_frame(), out)
    if densities is not None:
        save_frame(field.density_frame(), densities)
    log_event("pb210.complete", {"n_slices": len(field), "unit": cfg.pb210.unit})
    typer.echo(f"{len(field)} slices ({cfg.pb210.unit}) -> {out}")


@app.command("pmc")
def pmc(
    value: float = typer.Argument(..., help="pMC value, or 14C age with --to-pmc"),
    error: float = typer.Argument(..., help="Its error"),
    to_pmc: bool = typer.Option(False, "--to-pmc", help="Convert a 14C age to pMC instead"),
    ratio: float = typer.Option(100.0, "--ratio", help="100 for percent, 1 for fractions"),
    decimals: Optional[int] = typer.Option(None, "--decimals"),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
) -> None:
    """Convert between percent modern carbon and radiocarbon age."""
    try:
        cfg = _load_config(config, {})
    except (ChronoCalError, FileNotFoundError) as e:
        _fail(e)
    _start("pmc", {"value": value, "error": error, "to_pmc": to_pmc, "ratio": ratio}, cfg)
    if to_pmc:
        y, sd = age_pmc(value, error, ratio=ratio, decimals=3 if decimals is None else decimals)
        typer.echo(f"pMC {y:g} ± {sd:g}")
    else:
        y, sd = pmc_age(value, error, ratio=ratio, decimals=0 if decimals is None else decimals)
        typer.echo(f"14C age {y:g} ± {sd:g}")


if __name__ == "__main__":  # pragma: no cover
    app()
