import math

import numpy as np
import pytest

from picardcheby.chebyshev import integration_operators
from picardcheby.egm2008 import GravityField
from picardcheby.perturbed_gravity import VariableFidelityGravity
from picardcheby.preparation import prepare_segment_times
from picardcheby.propagator import propagate
from picardcheby.segmentation import SegmentScheme

R0 = np.array([7000.0, 0.0, 0.0])
V0 = np.array([0.0, 8.003798178945150, 0.0])
TOL = 1e-9
C20 = -4.841651437908150e-04


def _gravity():
    c = np.zeros((3, 3))
    c[2, 0] = C20
    return VariableFidelityGravity(GravityField(c, np.zeros((3, 3))), 2.0, TOL)


def _setup(degree):
    times = prepare_segment_times(R0, V0, 0.0, TOL, 3)
    scheme = SegmentScheme(segments=3, degree=degree, perigee_time=0.0, period=times.period)
    return scheme, times, integration_operators(degree)


def _value_at(coefficients, tau):
    basis = np.cos(np.arange(coefficients.shape[0]) * math.acos(tau))
    return basis @ coefficients


def test_single_short_segment():
    scheme, times, operators = _setup(10)
    result = propagate(R0, V0, 600.0, scheme, times, operators, _gravity(), TOL)
    assert result.total_segments == 1
    np.testing.assert_allclose(result.segment_times, [0.0, 600.0])
    np.testing.assert_allclose(result.w1, [300.0])
    np.testing.assert_allclose(result.w2, [300.0])
    assert result.alpha.shape == (1, 11, 3)
    assert result.beta.shape == (1, 10, 3)
    np.testing.assert_allclose(_value_at(result.alpha[0], -1.0), R0, atol=1e-8)
    np.testing.assert_allclose(_value_at(result.beta[0], -1.0), V0, atol=1e-10)


def test_segments_join_continuously():
    scheme, times, operators = _setup(20)
    t_final = float(times.tvec[1]) + 100.0
    result = propagate(R0, V0, t_final, scheme, times, operators, _gravity(), TOL)
    assert result.total_segments == 2
    assert result.segment_times[1] == pytest.approx(times.tvec[1])
    assert result.segment_times[-1] == pytest.approx(t_final)
    end_first = _value_at(result.alpha[0], 1.0)
    start_second = _value_at(result.alpha[1], -1.0)
    np.testing.assert_allclose(start_second, end_first, atol=1e-7)
    np.testing.assert_allclose(
        _value_at(result.beta[1], -1.0), _value_at(result.beta[0], 1.0), atol=1e-10
    )


def test_full_orbit_reosculates():
    scheme, times, operators = _setup(20)
    t_final = 1.05 * times.period
    result = propagate(R0, V0, t_final, scheme, times, operators, _gravity(), TOL)
    assert result.total_segments == 4
    assert np.all(np.diff(result.segment_times) > 0.0)
    assert result.segment_times[-1] == pytest.approx(t_final)
    assert abs(result.segment_times[3] - times.period) < 60.0


def test_degree_mismatch_rejected():
    scheme, times, _ = _setup(10)
    with pytest.raises(ValueError):
        propagate(R0, V0, 600.0, scheme, times, integration_operators(12), _gravity(), TOL)


def test_non_positive_final_time_rejected():
    scheme, times, operators = _setup(10)
    with pytest.raises(ValueError):
        propagate(R0, V0, 0.0, scheme, times, operators, _gravity(), TOL)