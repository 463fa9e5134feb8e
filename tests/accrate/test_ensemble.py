import numpy as np
import pytest

from chronocal.accrate import PosteriorEnsemble
from chronocal.utils.exceptions import DomainError


def test_trajectories_and_depths(tiny_ensemble):
    np.testing.assert_allclose(tiny_ensemble.trajectories, [[0, 10, 30], [10, 20, 30]])
    np.testing.assert_allclose(tiny_ensemble.depths, [0, 10, 20])
    assert tiny_ensemble.n_segments == 2
    assert tiny_ensemble.n_iterations == 2


def test_trailing_columns_are_ignored(ensemble):
    assert ensemble.output.shape[1] == 1 + 10 + 2
    assert ensemble.rates.shape == (400, 10)


def test_age_at_depth_interpolates(tiny_ensemble):
    np.testing.assert_allclose(tiny_ensemble.age_at_depth(0.0), [0, 10])
    np.testing.assert_allclose(tiny_ensemble.age_at_depth(15.0), [20, 25])
    np.testing.assert_allclose(tiny_ensemble.age_at_depth(20.0), [30, 30])
    assert np.isnan(tiny_ensemble.age_at_depth(25.0)).all()


def test_age_ranges_bracket_the_median(ensemble):
    ranges = ensemble.age_ranges(0.95)
    assert list(ranges.columns) == ["depth", "lower", "upper", "median", "mean"]
    assert len(ranges) == ensemble.n_segments + 1
    assert (ranges["lower"] <= ranges["median"]).all()
    assert (ranges["median"] <= ranges["upper"]).all()
    assert ranges["mean"].is_monotonic_increasing


def test_age_grid_insets(ensemble):
    ranges = ensemble.age_ranges()
    grid = ensemble.age_grid(50, inset=1.0)
    assert len(grid) == 50
    assert grid[0] == pytest.approx(ranges["lower"].min() + 1)
    assert grid[-1] == pytest.approx(ranges["upper"].max() - 1)


@pytest.mark.parametrize(
    "output,elbows,thick",
    [
        (np.zeros(5), [0.0], 1.0),
        (np.zeros((3, 2)), [0.0, 1.0], 1.0),
        (np.zeros((3, 3)), [1.0, 0.0], 1.0),
        (np.zeros((3, 3)), [0.0, 1.0], 0.0),
    ],
)
def test_malformed_ensembles(output, elbows, thick):
    with pytest.raises(DomainError):
        PosteriorEnsemble(output, np.asarray(elbows), thick)


def test_ensemble_is_immutable(tiny_ensemble):
    with pytest.raises(ValueError):
        tiny_ensemble.output[0, 0] = 5.0


def test_from_file(tmp_path, ensemble):
    path = tmp_path / "core_20.out"
    np.savetxt(path, ensemble.output, fmt="%.10f", delimiter=" ")
    loaded = PosteriorEnsemble.from_file(path, ensemble.elbows, ensemble.thickness)
    np.testing.assert_allclose(loaded.rates, ensemble.rates, rtol=1e-8)


def test_from_file_too_few_columns(tmp_path):
    path = tmp_path / "short.out"
    np.savetxt(path, np.ones((4, 2)))
    with pytest.raises(DomainError):
        PosteriorEnsemble.from_file(path, [0.0, 5.0, 10.0], 5.0)
