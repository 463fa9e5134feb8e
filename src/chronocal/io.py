"""File readers and writers for curves, date tables, flux profiles and sampler output.

Only the on-disk shapes are handled here; the readers return plain numpy
arrays or pandas frames and leave interpretation to the calibration and
accrate packages.
"""

import os
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd

from .utils.exceptions import DomainError

PathLike = Union[str, Path]

# The comma-separated curve variant carries a fixed-size header block.
CSV_CURVE_HEADER_LINES = 11


def ensure_dir(path: PathLike) -> None:
    os.makedirs(path, exist_ok=True)


def read_curve_file(path: PathLike, csv_variant: bool = False) -> np.ndarray:
    """Read a 3-column curve (cal BP, measurement, error) as an ``(n, 3)`` array.

    The default layout is whitespace separated without a header; the
    comma-separated variant skips the header block and keeps the first three
    columns.
    """
    if csv_variant:
        df = pd.read_csv(path, header=None, skiprows=CSV_CURVE_HEADER_LINES)
    else:
        df = pd.read_csv(path, header=None, sep=r"\s+", comment="#")
    if df.shape[1] < 3:
        raise DomainError(f"{path}: expected at least 3 columns, found {df.shape[1]}")
    return df.iloc[:, :3].to_numpy(dtype=float)


def write_curve_file(arr: np.ndarray, path: PathLike, sep: str = "\t") -> Path:
    """Write an ``(n, 3)`` curve array without header or index."""
    path = Path(path)
    ensure_dir(path.parent)
    pd.DataFrame(np.asarray(arr, dtype=float)).to_csv(path, sep=sep, header=False, index=False)
    return path


def read_dates_table(path: PathLike) -> pd.DataFrame:
    """Read a comma-separated dates table with a header row.

    Column order carries the meaning (see ``calibration.records``); the
    header names are kept only for reporting.
    """
    df = pd.read_csv(path, skipinitialspace=True)
    df.columns = [str(c).strip().strip('"') for c in df.columns]
    return df


def read_flux_table(path: PathLike, proxy: int = 1) -> np.ndarray:
    """Return ``(n, 2)`` depth/concentration pairs for one proxy column.

    ``proxy`` counts columns after the depth column, starting at 1. Rows with
    a missing concentration are dropped.
    """
    df = pd.read_csv(path)
    if proxy < 1 or proxy >= df.shape[1]:
        raise DomainError(f"{path}: proxy column {proxy} not available ({df.shape[1] - 1} proxies)")
    sub = df.iloc[:, [0, proxy]].apply(pd.to_numeric, errors="coerce")
    sub = sub[sub.iloc[:, 1].notna()]
    return sub.to_numpy(dtype=float)


def read_ensemble_file(path: PathLike, n_columns: Optional[int] = None) -> np.ndarray:
    """Read whitespace separated sampler output, one iteration per row."""
    df = pd.read_csv(path, header=None, sep=r"\s+")
    arr = df.to_numpy(dtype=float)
    if n_columns is not None and arr.shape[1] < n_columns:
        raise DomainError(f"{path}: expected at least {n_columns} columns, found {arr.shape[1]}")
    return arr


def save_frame(df: pd.DataFrame, path: PathLike, index: bool = False) -> Path:
    path = Path(path)
    ensure_dir(path.parent)
    df.to_csv(path, index=index)
    return path


def read_slices_table(path: PathLike) -> np.ndarray:
    """Return ``(n, 3)`` depth/thickness/density rows of a Pb-210 slices CSV.

    ``depth`` is the bottom of each slice; further columns (measured
    activity, its error) are ignored.
    """
    df = pd.read_csv(path)
    if df.shape[1] < 3:
        raise DomainError(f"{path}: expected depth, thickness and density columns, found {df.shape[1]}")
    return df.iloc[:, :3].to_numpy(dtype=float)
