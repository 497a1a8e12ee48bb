import math

import numpy as np
import pytest

from picardcheby.constants import MU, OMEGA
from picardcheby.egm2008 import GravityField, jacobi_integral, legendre
from picardcheby.kepler import f_and_g


def point_mass(size=5):
    return GravityField(np.zeros((size, size)), np.zeros((size, size)))


def perturbed_field():
    c = np.zeros((5, 5))
    s = np.zeros((5, 5))
    c[2, 0] = -4.84e-4
    c[2, 2] = 2.4e-6
    s[2, 2] = -1.4e-6
    c[3, 1] = 2.0e-6
    s[4, 3] = 1.0e-6
    return GravityField(c, s)


def test_legendre_seeds_at_equator():
    p, scale = legendre(0.0, 3)
    assert p.shape == (6, 6)
    assert p[0, 0] == 1.0
    assert p[1, 1] == pytest.approx(math.sqrt(3.0))
    assert p[1, 0] == pytest.approx(0.0, abs=1e-15)
    assert scale[1, 0] == 1.0


@pytest.mark.parametrize("phi", [-1.2, -0.3, 0.0, 0.45, 1.1])
def test_legendre_addition_theorem(phi):
    p, _ = legendre(phi, 6)
    for n in range(p.shape[0]):
        assert np.sum(p[n, : n + 1] ** 2) == pytest.approx(2 * n + 1, rel=1e-12)


def test_legendre_scale_zero_on_diagonal():
    _, scale = legendre(0.7, 4)
    diagonal = np.diag(scale)
    assert diagonal.shape == (7,)
    np.testing.assert_array_equal(diagonal, np.zeros(7))
    assert scale[1, 0] == 1.0
    assert scale[2, 0] == pytest.approx(math.sqrt(3.0), rel=1e-15)


def test_point_mass_acceleration():
    position = np.array([7000.0, 1500.0, -2200.0])
    r = np.linalg.norm(position)
    acc = point_mass().acceleration(position, 4)
    np.testing.assert_allclose(acc, -MU * position / r**3, rtol=1e-12)


def test_point_mass_potential():
    position = np.array([7000.0, 1500.0, -2200.0])
    assert point_mass().potential(position, 4) == pytest.approx(MU / np.linalg.norm(position), rel=1e-14)


def test_low_degree_ignores_coefficients():
    position = np.array([6900.0, -800.0, 3000.0])
    field = perturbed_field()
    np.testing.assert_allclose(
        field.acceleration(position, 1), point_mass().acceleration(position, 1), rtol=1e-14
    )
    assert field.potential(position, 0) == pytest.approx(MU / np.linalg.norm(position), rel=1e-14)


def test_degree_is_truncated():
    position = np.array([7100.0, 900.0, 1800.0])
    field = perturbed_field()
    np.testing.assert_array_equal(field.acceleration(position, 2.9), field.acceleration(position, 2))


def test_acceleration_is_gradient_of_potential():
    field = perturbed_field()
    position = np.array([7000.0, 1200.0, 2500.0])
    h = 1e-2
    gradient = np.empty(3)
    for axis in range(3):
        step = np.zeros(3)
        step[axis] = h
        gradient[axis] = (
            field.potential(position + step, 4) - field.potential(position - step, 4)
        ) / (2 * h)
    np.testing.assert_allclose(field.acceleration(position, 4), gradient, atol=1e-9)


def test_zonal_field_is_axisymmetric():
    c = np.zeros((5, 5))
    c[2, 0] = -4.84e-4
    c[4, 0] = 5.4e-7
    field = GravityField(c, np.zeros((5, 5)))
    position = np.array([7000.0, 0.0, 1500.0])
    angle = 0.8
    rotation = np.array([
        [math.cos(angle), -math.sin(angle), 0.0],
        [math.sin(angle), math.cos(angle), 0.0],
        [0.0, 0.0, 1.0],
    ])
    np.testing.assert_allclose(
        field.acceleration(rotation @ position, 4),
        rotation @ field.acceleration(position, 4),
        rtol=1e-10,
        atol=1e-15,
    )


def test_zonal_even_field_has_no_vertical_pull_at_equator():
    c = np.zeros((3, 3))
    c[2, 0] = -4.84e-4
    acc = GravityField(c, np.zeros((3, 3))).acceleration([6000.0, 4000.0, 0.0], 2)
    assert acc[2] == pytest.approx(0.0, abs=1e-15)


def test_jacobi_integral_at_rest():
    r = 7000.0
    value = jacobi_integral(point_mass(), 0.0, [r, 0.0, 0.0, 0.0, 0.0, 0.0], 2)
    assert value == pytest.approx(-MU / r - 0.5 * OMEGA**2 * r**2, rel=1e-14)


def test_jacobi_integral_conserved_for_point_mass():
    field = point_mass()
    state0 = np.array([7000.0, 0.0, 0.0, 0.0, 6.5, 3.5])
    values = [jacobi_integral(field, t, f_and_g(state0, t), 3) for t in (0.0, 600.0, 1800.0, 3600.0)]
    for value in values[1:]:
        assert value == pytest.approx(values[0], rel=1e-10)


def test_degree_beyond_field_rejected():
    with pytest.raises(ValueError):
        point_mass(3).acceleration([7000.0, 0.0, 100.0], 3)


def test_negative_degree_rejected():
    with pytest.raises(ValueError):
        point_mass().potential([7000.0, 0.0, 100.0], -1)


def test_mismatched_coefficients_rejected():
    with pytest.raises(ValueError):
        GravityField(np.zeros((4, 4)), np.zeros((3, 3)))


def test_bad_position_rejected():
    with pytest.raises(ValueError):
        point_mass().acceleration([7000.0, 0.0], 2)