import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure src is on sys.path so `import chronocal` works without installing
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from chronocal.accrate import PosteriorEnsemble  # noqa: E402
from chronocal.config import CurvesConfig  # noqa: E402


def _write_3col(path: Path, cal_bp, mean, error) -> None:
    np.savetxt(path, np.column_stack([cal_bp, mean, error]), fmt="%.4f", delimiter="\t")


@pytest.fixture
def curve_dir(tmp_path: Path) -> Path:
    """Synthetic standard, postbomb and custom curves (descending ages)."""
    d = tmp_path / "curves"
    d.mkdir()
    cal = np.arange(5000.0, -1.0, -10.0)
    base = 0.95 * cal + 50.0
    _write_3col(d / "3Col_intcal20.14C", cal, base, 15.0 + 0.002 * cal)
    _write_3col(d / "3Col_marine20.14C", cal, base + 400.0, 20.0 + 0.002 * cal)
    _write_3col(d / "3Col_shcal20.14C", cal, base - 40.0, 15.0 + 0.002 * cal)

    bomb = np.arange(-1.0, -60.5, -0.5)
    for name in ("postbomb_NH1.14C", "postbomb_NH2.14C", "postbomb_NH3.14C", "postbomb_SH1-2.14C", "postbomb_SH3.14C"):
        _write_3col(d / name, bomb, 20.0 * bomb, np.full_like(bomb, 8.0))

    _write_3col(d / "mycurve", cal, base + 100.0, np.full_like(cal, 25.0))
    header = "".join(f"# header line {i}\n" for i in range(11))
    rows = "".join(f"{c:.1f},{m:.2f},{e:.2f},extra\n" for c, m, e in zip(cal, base + 200.0, np.full_like(cal, 30.0)))
    (d / "altcurve.14C").write_text(header + rows)
    return d


@pytest.fixture
def curves_cfg(curve_dir: Path) -> CurvesConfig:
    return CurvesConfig(curve_dir=str(curve_dir))


def make_ensemble(n: int = 400, k: int = 10, thick: float = 5.0, seed: int = 42, trailing: int = 2) -> PosteriorEnsemble:
    rng = np.random.default_rng(seed)
    start = 50.0 + rng.normal(0.0, 5.0, size=n)
    rates = rng.gamma(shape=20.0, scale=1.0, size=(n, k))
    extra = rng.normal(size=(n, trailing))
    elbows = np.arange(k) * thick
    return PosteriorEnsemble(np.column_stack([start, rates, extra]), elbows, thick)


@pytest.fixture
def ensemble() -> PosteriorEnsemble:
    """Seeded 400-iteration ensemble, 10 segments of 5 depth units, 2 trailing columns."""
    return make_ensemble()


@pytest.fixture
def tiny_ensemble() -> PosteriorEnsemble:
    """Two iterations whose trajectories are easy to follow by hand.

    Iteration 0: ages 0, 10, 30 at depths 0, 10, 20.
    Iteration 1: ages 10, 20, 30 at depths 0, 10, 20.
    """
    output = np.array([[0.0, 1.0, 2.0], [10.0, 1.0, 1.0]])
    return PosteriorEnsemble(output, np.array([0.0, 10.0]), 10.0)
