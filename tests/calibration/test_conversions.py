import numpy as np
import pytest

from chronocal.calibration.conversions import age_pmc, bcad_to_calbp, calbp_to_bcad, pmc_age


def test_pmc_above_100_gives_negative_age():
    age, _ = pmc_age(110, 0.5)
    assert age < 0
    age, err = pmc_age(80, 0.5)
    assert age > 0
    assert err > 0


def test_pmc_age_values():
    age, err = pmc_age(80, 0.5)
    assert age == round(-8033 * np.log(0.8))
    assert err == round(-8033 * np.log(0.8) + 8033 * np.log(0.805))


def test_fraction_ratio():
    assert pmc_age(0.8, 0.005, ratio=1) == pmc_age(80, 0.5)


def test_round_trip_pmc_to_age_and_back():
    age, err = pmc_age(80, 0.5, decimals=6)
    back, back_err = age_pmc(age, err)
    assert back == pytest.approx(80.0, abs=0.05)
    assert back_err == pytest.approx(0.5, abs=0.01)


def test_round_trip_age_to_pmc_and_back():
    pmc, err = age_pmc(-2000, 20, decimals=8)
    age, age_err = pmc_age(pmc, err)
    assert age == pytest.approx(-2000, abs=1)
    assert age_err == pytest.approx(20, abs=1)


def test_age_pmc_significant_digits():
    pmc, _ = age_pmc(-2000, 20)
    assert pmc == pytest.approx(128.0)


def test_vectorised_input():
    ages, errs = pmc_age(np.array([80.0, 90.0, 110.0]), np.array([0.5, 0.5, 0.5]))
    assert ages.shape == (3,)
    assert ages[2] < 0 < ages[0]


def test_calendar_scale():
    assert calbp_to_bcad(0) == 1950
    assert calbp_to_bcad(2000) == -50
    assert bcad_to_calbp(calbp_to_bcad(1234.5)) == pytest.approx(1234.5)
