"""Spherical harmonic gravity: acceleration, potential and the Jacobi integral."""

from __future__ import annotations

import math

import numpy as np

from .constants import MU, OMEGA, PI, REQ
from .frames import eci_to_ecef

MAX_DEGREE = 210
"""Largest degree and order the series evaluation supports."""


def legendre(phi: float, degree: int) -> tuple[np.ndarray, np.ndarray]:
    """Fully normalised associated Legendre functions at geocentric latitude phi.

    Returns ``(P, scale)``, both of shape (degree+3, degree+3) and indexed
    ``[n, m]`` for n up to degree+2. ``scale`` holds the factors that turn
    ``P[n, m+1]`` into the latitude derivative of ``P[n, m]``.
    """
    degree = int(degree)
    if degree < 0:
        raise ValueError(f"degree must be non-negative, got {degree}")
    size = degree + 3
    p = np.zeros((size, size))
    scale = np.zeros((size, size))

    cphi = math.cos(0.5 * PI - phi)
    sphi = math.sin(0.5 * PI - phi)

    p[0, 0] = 1.0
    p[1, 0] = math.sqrt(3.0) * cphi
    scale[1, 0] = 1.0
    p[1, 1] = math.sqrt(3.0) * sphi

    for n in range(2, degree + 3):
        for m in range(n + 1):
            if n == m:
                p[n, n] = math.sqrt(2 * n + 1.0) / math.sqrt(2.0 * n) * sphi * p[n - 1, n - 1]
            elif m == 0:
                p[n, 0] = (math.sqrt(2 * n + 1.0) / n) * (
                    math.sqrt(2 * n - 1.0) * cphi * p[n - 1, 0]
                    - (n - 1) / math.sqrt(2 * n - 3.0) * p[n - 2, 0]
                )
                scale[n, 0] = math.sqrt((n + 1) * n / 2.0)
            else:
                p[n, m] = math.sqrt(2 * n + 1.0) / (math.sqrt(n + m) * math.sqrt(n - m)) * (
                    math.sqrt(2 * n - 1.0) * cphi * p[n - 1, m]
                    - math.sqrt(n + m - 1.0) * math.sqrt(n - m - 1.0)
                    / math.sqrt(2 * n - 3.0) * p[n - 2, m]
                )
                scale[n, m] = math.sqrt((n + m + 1.0) * (n - m))
    return p, scale


def _position(values) -> np.ndarray:
    position = np.asarray(values, dtype=float)
    if position.shape != (3,):
        raise ValueError(f"position must be a 3-vector, got shape {position.shape}")
    return position


def _longitude_terms(x: float, y: float, degree: int) -> tuple[np.ndarray, np.ndarray]:
    """sin(m*lambda) and cos(m*lambda) for m = 0..degree, by recursion."""
    lam = math.atan2(y, x)
    while lam < 0:
        lam += 2 * PI
    while lam >= 2 * PI:
        lam -= 2 * PI
    s1, c1 = math.sin(lam), math.cos(lam)
    count = max(degree + 1, 2)
    sm = np.zeros(count)
    cm = np.zeros(count)
    cm[0] = 1.0
    sm[1] = s1
    cm[1] = c1
    for m in range(2, degree + 1):
        sm[m] = 2.0 * c1 * sm[m - 1] - sm[m - 2]
        cm[m] = 2.0 * c1 * cm[m - 1] - cm[m - 2]
    return sm, cm


class GravityField:
    """A spherical harmonic gravity model from normalised coefficients.

    ``c`` and ``s`` are 2-D arrays indexed ``[n, m]``; terms of degree 0 and 1
    are ignored (the central term is always included).
    """

    def __init__(self, c, s):
        c = np.array(c, dtype=float)
        s = np.array(s, dtype=float)
        if c.ndim != 2 or c.shape != s.shape:
            raise ValueError(f"c and s must be 2-D arrays of equal shape, got {c.shape} and {s.shape}")
        c.setflags(write=False)
        s.setflags(write=False)
        self.c = c
        self.s = s

    @property
    def max_degree(self) -> int:
        """Highest degree the coefficient arrays cover."""
        return min(self.c.shape) - 1

    def _check_degree(self, degree) -> int:
        value = int(degree)
        if value < 0:
            raise ValueError(f"degree must be non-negative, got {degree}")
        if value > MAX_DEGREE:
            raise ValueError(f"degree {value} exceeds the supported maximum {MAX_DEGREE}")
        if value >= 2 and value > self.max_degree:
            raise ValueError(f"degree {value} exceeds the field's maximum {self.max_degree}")
        return value

    def _setup(self, position, degree):
        degree = self._check_degree(degree)
        x, y, z = (np.float64(v) for v in _position(position))
        r = math.sqrt(x * x + y * y + z * z)
        phic = math.asin(z / r)
        sm, cm = _longitude_terms(x, y, degree)
        p, scale = legendre(phic, degree)
        return degree, x, y, z, r, sm, cm, p, scale

    def acceleration(self, position, degree) -> np.ndarray:
        """Gravitational acceleration [km/s^2] at an Earth-fixed position [km]."""
        degree, x, y, z, r, sm, cm, p, scale = self._setup(position, degree)
        ratio = REQ / r
        ratio_n = ratio

        with np.errstate(divide="ignore", invalid="ignore"):
            rho = np.sqrt(x * x + y * y)
            z_over_rho = z / rho
            sum_r = 1.0
            sum_phi = 0.0
            sum_lambda = 0.0
            for n in range(2, degree + 1):
                ratio_n *= ratio
                orders = np.arange(n + 1)
                pn = p[n, : n + 1]
                cn = self.c[n, : n + 1]
                sn = self.s[n, : n + 1]
                cos_m = cm[: n + 1]
                sin_m = sm[: n + 1]
                term = cn * cos_m + sn * sin_m
                part_r = pn @ term
                part_phi = (p[n, 1 : n + 2] * scale[n, : n + 1] - z_over_rho * orders * pn) @ term
                part_lambda = (orders * pn) @ (sn * cos_m - cn * sin_m)
                sum_r += part_r * ratio_n * (n + 1)
                sum_phi += part_phi * ratio_n
                sum_lambda += part_lambda * ratio_n

            du_dr = -MU / (r * r) * sum_r
            du_dphi = MU / r * sum_phi
            du_dlambda = MU / r * sum_lambda

            radial = (1.0 / r) * du_dr - (z / (r * r * rho)) * du_dphi
            along = du_dlambda / (x * x + y * y)
            return np.array([
                radial * x - along * y,
                radial * y + along * x,
                (1.0 / r) * du_dr * z + (rho / (r * r)) * du_dphi,
            ], dtype=float)

    def potential(self, position, degree) -> float:
        """Magnitude of the gravitational potential [km^2/s^2] at an Earth-fixed position."""
        degree, x, y, z, r, sm, cm, p, _ = self._setup(position, degree)
        ratio = REQ / r
        ratio_n = ratio
        total = 1.0
        for n in range(2, degree + 1):
            ratio_n *= ratio
            term = self.c[n, : n + 1] * cm[: n + 1] + self.s[n, : n + 1] * sm[: n + 1]
            total += (p[n, : n + 1] @ term) * ratio_n
        return float(abs(MU / r * total))


def jacobi_integral(field: GravityField, t: float, state, degree) -> float:
    """Jacobi integral of an inertial state [r, v] at time t, in the rotating frame."""
    values = np.asarray(state, dtype=float)
    if values.shape != (6,):
        raise ValueError(f"state must have 6 components, got shape {values.shape}")
    position, velocity = eci_to_ecef(t, values[:3], values[3:])
    kinetic = 0.5 * float(velocity @ velocity)
    potential = -field.potential(position, degree)
    rotation = 0.5 * OMEGA * OMEGA * (position[0] ** 2 + position[1] ** 2)
    return potential + kinetic - rotation


__all__ = ["MAX_DEGREE", "GravityField", "jacobi_integral", "legendre"]