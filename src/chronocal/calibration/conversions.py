"""Percent-modern-carbon and calendar-scale conversions."""

from __future__ import annotations

from typing import Tuple, Union

import numpy as np

# Libby mean life of radiocarbon, in years
LIBBY_MEAN_LIFE = 8033.0
AD_1950 = 1950.0

ArrayLike = Union[float, np.ndarray]


def _out(x: np.ndarray) -> ArrayLike:
    return float(x) if np.ndim(x) == 0 else x


def _signif(x: np.ndarray, digits: int) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    with np.errstate(divide="ignore"):
        mag = np.floor(np.log10(np.abs(x)))
    mag = np.where(np.isfinite(mag), mag, 0.0)
    factor = 10.0 ** (digits - 1 - mag)
    return np.round(x * factor) / factor


def pmc_age(mn: ArrayLike, sdev: ArrayLike, ratio: float = 100, decimals: int = 0) -> Tuple[ArrayLike, ArrayLike]:
    """Radiocarbon age and error from pMC values; above 100 pMC ages are negative."""
    mn = np.asarray(mn, dtype=float)
    y = -LIBBY_MEAN_LIFE * np.log(mn / ratio)
    sd = y - (-LIBBY_MEAN_LIFE * np.log((mn + np.asarray(sdev, dtype=float)) / ratio))
    return _out(np.round(y, decimals)), _out(np.round(sd, decimals))


def age_pmc(mn: ArrayLike, sdev: ArrayLike, ratio: float = 100, decimals: int = 3) -> Tuple[ArrayLike, ArrayLike]:
    """pMC value and error from radiocarbon ages, to ``decimals`` significant digits."""
    mn = np.asarray(mn, dtype=float)
    y = np.exp(-mn / LIBBY_MEAN_LIFE)
    sd = y - np.exp(-(mn + np.asarray(sdev, dtype=float)) / LIBBY_MEAN_LIFE)
    return _out(_signif(ratio * y, decimals)), _out(_signif(ratio * sd, decimals))


def calbp_to_bcad(x: ArrayLike) -> ArrayLike:
    return _out(AD_1950 - np.asarray(x, dtype=float))


def bcad_to_calbp(x: ArrayLike) -> ArrayLike:
    return _out(AD_1950 - np.asarray(x, dtype=float))
