import math

import numpy as np
import pytest

from picardcheby.constants import OMEGA, PI
from picardcheby.frames import ecef_to_eci, eci_to_ecef


def test_position_unchanged_at_epoch():
    x = np.array([7000.0, -1200.0, 350.0])
    position, _ = eci_to_ecef(0.0, x, [1.0, 2.0, 3.0])
    np.testing.assert_allclose(position, x, rtol=0, atol=0)


def test_quarter_turn_rotates_x_axis():
    t = (PI / 2.0) / OMEGA
    position, _ = eci_to_ecef(t, [1.0, 0.0, 0.0], [0.0, 0.0, 0.0])
    np.testing.assert_allclose(position, [0.0, -1.0, 0.0], atol=1e-12)


def test_velocity_summing_to_zero_is_dropped():
    _, velocity = eci_to_ecef(100.0, [7000.0, 10.0, 0.0], [1.0, -1.0, 0.0])
    np.testing.assert_array_equal(velocity, np.zeros(3))


def test_velocity_gets_rotation_correction():
    _, velocity = eci_to_ecef(0.0, [0.0, 2.0, 0.0], [1.0, 0.0, 0.0])
    np.testing.assert_allclose(velocity, [1.0 + 2.0 * OMEGA, 0.0, 0.0])


@pytest.mark.parametrize("t", [0.0, 17.5, 3600.0, 86400.0])
def test_round_trip(t):
    x = np.array([6500.0, 2100.0, -900.0])
    body, _ = eci_to_ecef(t, x, [0.0, 7.5, 1.0])
    np.testing.assert_allclose(ecef_to_eci(t, body), x, rtol=1e-13)


def test_rotation_preserves_norm_and_z():
    a = np.array([1e-3, -4e-3, 2e-3])
    rotated = ecef_to_eci(5000.0, a)
    assert math.isclose(np.linalg.norm(rotated), np.linalg.norm(a), rel_tol=1e-14)
    assert rotated[2] == a[2]


def test_rejects_wrong_shape():
    with pytest.raises(ValueError):
        ecef_to_eci(0.0, [1.0, 2.0])