import numpy as np
import pytest

from chronocal.accrate import ghost_age, ghost_density, ghost_depth
from chronocal.utils.exceptions import AgeRangeWarning, ConfigurationError


def test_depth_ghost_defaults_to_elbows(ensemble):
    field = ghost_depth(ensemble)
    np.testing.assert_array_equal(field.points, ensemble.elbows)
    assert field.kind == "depth"
    assert field.max_density() == pytest.approx(1.0)
    assert np.all(field.lower <= field.mean)
    assert np.all(field.mean <= field.upper)
    assert field.value_limit == pytest.approx(max(x.max() for x in field.x))


def test_depth_ghost_outside_core(ensemble):
    with pytest.warns(AgeRangeWarning):
        field = ghost_depth(ensemble, depths=[-10.0, 20.0])
    assert len(field.x[0]) == 0
    assert np.isnan(field.mean[0])
    assert field.n_samples[1] == ensemble.n_iterations


def test_depth_ghost_summary_frame(ensemble):
    frame = ghost_depth(ensemble, prob=0.9).summary_frame()
    assert list(frame.columns) == ["depth", "lower", "upper", "mean", "n"]
    assert len(frame) == ensemble.n_segments


def test_age_ghost_default_range(ensemble):
    field = ghost_age(ensemble, age_res=25)
    ranges = ensemble.age_ranges(0.95)
    assert len(field) == 25
    assert field.points[0] == pytest.approx(ranges["lower"].min() + 1)
    assert field.points[-1] == pytest.approx(ranges["upper"].max() - 1)
    populated = field.n_samples >= 20
    assert populated.any()
    assert np.all(field.lower[populated] <= field.mean[populated])
    assert np.all(field.mean[populated] <= field.upper[populated])
    assert field.max_density() == pytest.approx(1.0)
    assert field.value_limit > 0


def test_age_ghost_bcad_points(ensemble):
    calbp = np.array([200.0, 400.0, 600.0])
    plain = ghost_age(ensemble, ages=calbp)
    bcad = ghost_age(ensemble, ages=1950.0 - calbp, bcad=True)
    np.testing.assert_allclose(bcad.points, 1950.0 - calbp)
    np.testing.assert_allclose(bcad.mean, plain.mean)


def test_parallel_matches_serial(ensemble):
    serial = ghost_age(ensemble, age_res=12, workers=1)
    parallel = ghost_age(ensemble, age_res=12, workers=2)
    np.testing.assert_allclose(serial.mean, parallel.mean)
    for a, b in zip(serial.y, parallel.y):
        np.testing.assert_allclose(a, b)


def test_dispatcher(ensemble):
    by_depth = ghost_density([5.0, 10.0], ensemble)
    by_age = ghost_density([300.0], ensemble, prob=0.9, kind="age")
    assert by_depth.kind == "depth" and len(by_depth) == 2
    assert by_age.kind == "age" and by_age.prob == 0.9
    with pytest.raises(ConfigurationError):
        ghost_density(None, ensemble, kind="pollen")
    with pytest.raises(ConfigurationError):
        ghost_density(None, ensemble, kind="flux")


def test_invalid_probability(ensemble):
    with pytest.raises(ConfigurationError):
        ghost_depth(ensemble, prob=1.5)


def test_density_frame_long_format(ensemble):
    field = ghost_depth(ensemble, depths=[5.0, 10.0])
    frame = field.density_frame()
    assert list(frame.columns) == ["depth", "value", "density"]
    assert len(frame) == 2 * 512
