import numpy as np
import pytest

from chronocal.calibration.calibrate import CalibratedDistribution, NoiseModel, calibrate_one
from chronocal.calibration.curves import CalibrationCurve, CurveStore, identity_curve
from chronocal.utils.exceptions import ConfigurationError, CurveCoverageWarning, DomainError


@pytest.mark.parametrize("normal", [True, False])
def test_probabilities_sum_to_one(curves_cfg, normal):
    cc = CurveStore(curves_cfg).load(1)
    dist = calibrate_one(cc, 2000.0, 30.0 ** 2, NoiseModel(normal=normal))
    assert dist.probs.sum() == pytest.approx(1.0)
    assert np.all(np.diff(dist.ages) > 0)
    assert len(dist) > 5


@pytest.mark.parametrize("t_a,t_b", [(3, 5), (2, 2), (4, 3)])
def test_t_parameters_must_differ_by_one(t_a, t_b):
    with pytest.raises(ConfigurationError):
        NoiseModel(normal=True, t_a=t_a, t_b=t_b)


def test_identity_calibration_centred_with_matching_spread():
    mean, err = 1000.0, 50.0
    dist = calibrate_one(identity_curve(mean, err), mean, err ** 2, NoiseModel(normal=True))
    assert dist.mean() == pytest.approx(mean, abs=1.0)
    assert 0.8 * err < dist.std() < 1.2 * err


def test_student_t_has_heavier_tails(curves_cfg):
    cc = CurveStore(curves_cfg).load(1)
    gauss = calibrate_one(cc, 2000.0, 30.0 ** 2, NoiseModel(normal=True))
    student = calibrate_one(cc, 2000.0, 30.0 ** 2, NoiseModel(normal=False))
    assert student.std() > gauss.std()
    assert student.mean() == pytest.approx(gauss.mean(), abs=10.0)


def test_support_respects_cutoff(curves_cfg):
    cc = CurveStore(curves_cfg).load(1)
    dist = calibrate_one(cc, 2000.0, 30.0 ** 2, NoiseModel(normal=True), cutoff=0.01)
    # renormalisation after trimming can only raise the retained masses
    assert np.all(dist.probs > 0.01)


def test_precise_date_resampled_onto_100_points():
    ages = np.arange(0.0, 1000.0, 10.0)
    cc = CalibrationCurve(ages[::-1], ages[::-1], np.zeros_like(ages))
    dist = calibrate_one(cc, 500.0, 1.0, NoiseModel(normal=True))
    assert len(dist) == 100
    assert dist.ages[0] == pytest.approx(0.0)
    assert dist.ages[-1] == pytest.approx(990.0)
    assert dist.probs.sum() == pytest.approx(1.0)


def test_far_outside_curve_warns_and_still_normalises(curves_cfg):
    cc = CurveStore(curves_cfg).load(1)
    with pytest.warns(CurveCoverageWarning):
        dist = calibrate_one(cc, 1.0e6, 20.0 ** 2, NoiseModel(normal=True))
    assert np.isfinite(dist.probs).all()
    assert dist.probs.sum() == pytest.approx(1.0)


def test_zero_total_variance_is_a_domain_error():
    ages = np.arange(0.0, 100.0, 10.0)
    cc = CalibrationCurve(ages, ages, np.zeros_like(ages))
    with pytest.raises(DomainError):
        calibrate_one(cc, 50.0, 0.0)


def test_distribution_helpers():
    dist = CalibratedDistribution(
        ages=np.array([10.0, 20.0, 30.0]), probs=np.array([0.25, 0.5, 0.25]), depth=12.5, label="UBA-1"
    )
    assert dist.mean() == pytest.approx(20.0)
    assert dist.std() == pytest.approx(np.sqrt(50.0))
    assert dist.quantile(0.5) == pytest.approx(15.0)
    frame = dist.to_frame()
    assert list(frame.columns) == ["label", "depth", "cal_bp", "prob"]
    assert (frame["label"] == "UBA-1").all()
    assert frame["prob"].sum() == pytest.approx(1.0)


def test_depth_and_label_travel_with_distribution():
    dist = calibrate_one(identity_curve(300.0, 20.0), 300.0, 400.0, depth=42.0, label="cal-1")
    assert dist.depth == 42.0
    assert dist.label == "cal-1"
