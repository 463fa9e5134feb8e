import numpy as np
import pytest

from chronocal.pb210 import PB210_LAMBDA, activity_density, modelled_activity
from chronocal.utils.exceptions import ConfigurationError, DomainError


def _linear_age(rate):
    return lambda d: rate * d


@pytest.mark.parametrize("top,bottom", [(5.0, 5.0), (6.0, 5.0)])
def test_inverted_slice_is_a_domain_error(top, bottom):
    with pytest.raises(DomainError):
        modelled_activity(top, bottom, 0.5, 100.0, 2.0, _linear_age(10.0))


def test_forward_model_value():
    got = modelled_activity(1.0, 2.0, 0.4, 150.0, 1.5, _linear_age(10.0), unit="dpm/g")
    expected = 1.5 + 150.0 / (PB210_LAMBDA * 500 * 0.4) * (np.exp(-PB210_LAMBDA * 10) - np.exp(-PB210_LAMBDA * 20))
    assert float(got) == pytest.approx(expected)


def test_unit_factor():
    dpm = modelled_activity(1.0, 2.0, 0.4, 150.0, 0.0, _linear_age(10.0), unit="dpm/g")
    bq = modelled_activity(1.0, 2.0, 0.4, 150.0, 0.0, _linear_age(10.0), unit="Bq/kg")
    assert float(bq) == pytest.approx(50.0 * float(dpm))


def test_unknown_unit():
    with pytest.raises(ConfigurationError):
        modelled_activity(1.0, 2.0, 0.4, 150.0, 0.0, _linear_age(10.0), unit="pCi/g")


def test_reference_age_shifts_both_ends():
    shifted = modelled_activity(1.0, 2.0, 0.4, 150.0, 0.0, lambda d: 10.0 * d - 60.0, reference_age=-60.0)
    plain = modelled_activity(1.0, 2.0, 0.4, 150.0, 0.0, _linear_age(10.0))
    assert float(shifted) == pytest.approx(float(plain))


def test_activity_decays_with_depth():
    shallow = modelled_activity(0.0, 1.0, 0.4, 150.0, 1.0, _linear_age(10.0))
    deep = modelled_activity(10.0, 11.0, 0.4, 150.0, 1.0, _linear_age(10.0))
    assert shallow > deep > 1.0


def test_broadcasts_over_iterations(ensemble):
    rng = np.random.default_rng(3)
    influx = rng.gamma(50.0, 2.0, ensemble.n_iterations)
    supported = rng.normal(2.0, 0.1, ensemble.n_iterations)
    acts = modelled_activity(2.0, 3.0, 0.3, influx, supported, ensemble.age_at_depth)
    assert acts.shape == (ensemble.n_iterations,)
    assert np.all(acts > supported)


def test_activity_density(ensemble):
    rng = np.random.default_rng(4)
    influx = rng.gamma(50.0, 2.0, ensemble.n_iterations)
    supported = rng.normal(2.0, 0.1, ensemble.n_iterations)
    slices = [(1.0, 1.0, 0.3), (5.0, 1.0, 0.35), (9.0, 1.0, 0.4)]
    field = activity_density(slices, ensemble.age_at_depth, influx, supported, prob=0.9)
    np.testing.assert_allclose(field.points, [1.0, 5.0, 9.0])
    assert field.max_density() == pytest.approx(1.0)
    assert np.all(field.lower <= field.upper)
    assert field.mean[0] > field.mean[-1]
