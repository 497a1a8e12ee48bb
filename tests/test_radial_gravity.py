import numpy as np
import pytest

from picardcheby.constants import DU
from picardcheby.radial_gravity import radial_gravity_degree


def test_near_surface_tight_tolerance_capped():
    position = [1.016 * DU, 0.0, 0.0]
    assert radial_gravity_degree(position, 1e-15, 70.0) == 70.0


def test_near_surface_loose_tolerance():
    position = [1.016 * DU, 0.0, 0.0]
    assert radial_gravity_degree(position, 1e-2, 70.0) == 2.0
    assert radial_gravity_degree(position, 1e-4, 70.0) == 9.0


def test_far_radius_uses_last_used_row():
    position = [0.0, 0.0, 10.0 * DU]
    assert radial_gravity_degree(position, 1e-15, 100.0) == 9.0


def test_cap_never_exceeded():
    for radius in np.linspace(1.02, 9.9, 40):
        degree = radial_gravity_degree([radius * DU, 0.0, 0.0], 1e-12, 30.0)
        assert 0.0 <= degree <= 30.0


def test_degree_non_increasing_with_radius():
    radii = np.linspace(1.017, 9.99, 200)
    degrees = [radial_gravity_degree([0.0, r * DU, 0.0], 1e-10, 100.0) for r in radii]
    assert all(a >= b for a, b in zip(degrees, degrees[1:]))


def test_degree_non_decreasing_with_tighter_tolerance():
    position = [1.5 * DU, 0.3 * DU, 0.2 * DU]
    tolerances = [10.0 ** -k for k in range(2, 16)]
    degrees = [radial_gravity_degree(position, tol, 100.0) for tol in tolerances]
    assert all(a <= b for a, b in zip(degrees, degrees[1:]))


def test_below_table_raises():
    with pytest.raises(ValueError):
        radial_gravity_degree([DU, 0.0, 0.0], 1e-10, 70.0)


@pytest.mark.parametrize("tol", [1e-1, 1e-16, 0.0, -1e-5])
def test_bad_tolerance_raises(tol):
    with pytest.raises(ValueError):
        radial_gravity_degree([2.0 * DU, 0.0, 0.0], tol, 70.0)


def test_bad_shape_raises():
    with pytest.raises(ValueError):
        radial_gravity_degree([2.0 * DU, 0.0], 1e-10, 70.0)