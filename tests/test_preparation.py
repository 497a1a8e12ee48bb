import math

import numpy as np
import pytest

from picardcheby.constants import MU, PI
from picardcheby.kepler import f_and_g, rv_to_elements
from picardcheby.preparation import prepare_segment_times

TOL = 1e-12
R0 = np.array([7000.0, 0.0, 0.0])
V_ECC = np.array([0.0, 8.5, 0.0])


def _circular_velocity():
    return np.array([0.0, math.sqrt(MU / 7000.0), 0.0])


def test_start_at_perigee_keeps_full_segments():
    times = prepare_segment_times(R0, V_ECC, 0.0, TOL, 5)
    assert times.prep_hs == -1
    assert times.t_orig.shape == (6,)
    assert times.t_orig[0] == 0.0
    np.testing.assert_array_equal(times.tvec, times.t_orig)


def test_last_break_completes_one_orbit():
    times = prepare_segment_times(R0, V_ECC, 0.0, TOL, 5)
    state = np.concatenate([R0, V_ECC])
    assert times.t_orig[-1] == pytest.approx(times.period, rel=1e-9)
    np.testing.assert_allclose(f_and_g(state, times.t_orig[-1]), state, atol=1e-5)


def test_breaks_equally_spaced_in_true_anomaly():
    segments = 5
    times = prepare_segment_times(R0, V_ECC, 0.0, TOL, segments)
    state = np.concatenate([R0, V_ECC])
    for i in range(1, segments):
        moved = f_and_g(state, times.t_orig[i])
        anomaly = rv_to_elements(moved[:3], moved[3:], TOL).true_anomaly
        assert anomaly == pytest.approx(i * 2.0 * PI / segments, abs=1e-6)


def test_circular_orbit_breaks_equally_spaced_in_time():
    times = prepare_segment_times(R0, _circular_velocity(), 0.0, TOL, 5)
    np.testing.assert_allclose(np.diff(times.t_orig), times.period / 5, rtol=1e-6)


def test_offset_start_shortens_first_orbit():
    times = prepare_segment_times(R0, V_ECC, 1000.0, TOL, 5)
    assert times.prep_hs == 0
    assert times.tvec[-1] == pytest.approx(1000.0, abs=1e-6)
    assert np.all(np.diff(times.tvec) >= 0.0)
    positive = times.tvec > 0.0
    np.testing.assert_allclose(
        np.diff(times.tvec[positive]), np.diff(times.t_orig[positive]), rtol=1e-9
    )


def test_tiny_perigee_time_treated_as_perigee():
    times = prepare_segment_times(R0, V_ECC, 1e-6, TOL, 3)
    assert times.prep_hs == -1
    np.testing.assert_array_equal(times.tvec, times.t_orig)


def test_invalid_segment_count_rejected():
    with pytest.raises(ValueError):
        prepare_segment_times(R0, V_ECC, 0.0, TOL, 0)


def test_hyperbolic_orbit_rejected():
    with pytest.raises(ValueError):
        prepare_segment_times(R0, np.array([0.0, 12.0, 0.0]), 0.0, TOL, 3)