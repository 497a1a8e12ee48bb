"""Two-body Keplerian tools: orbital elements, F&G propagation and perigee search."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .constants import MU, PI

NEWTON_MAX_ITERATIONS = 300
"""Iteration cap for the Kepler equation solver."""

NEWTON_TOL = 1e-13
"""Relative convergence threshold for the Kepler equation solver."""

_PERIGEE_MATCH = 1e-10


@dataclass(frozen=True)
class OrbitalElements:
    """Classical orbital elements; angles in radians, lengths in km.

    ``special`` holds the longitude of perigee for elliptical equatorial
    orbits or the argument of latitude for circular inclined ones, and is
    NaN otherwise. Undefined quantities are NaN.
    """

    p: float
    a: float
    e: float
    inc: float
    raan: float
    argp: float
    true_anomaly: float
    eccentric_anomaly: float
    mean_anomaly: float
    special: float


def _vector(values, size: int, name: str) -> np.ndarray:
    vector = np.asarray(values, dtype=float)
    if vector.shape != (size,):
        raise ValueError(f"{name} must have {size} components, got shape {vector.shape}")
    return vector


def rv_to_elements(r, v, tol: float) -> OrbitalElements:
    """Convert a position [km] and velocity [km/s] into orbital elements."""
    r = _vector(r, 3, "r")
    v = _vector(v, 3, "v")
    two_pi = 2.0 * PI

    with np.errstate(all="ignore"):
        r_mag = np.linalg.norm(r)
        v_mag = np.linalg.norm(v)

        h = np.cross(r, v)
        h_mag = np.linalg.norm(h)

        nvec = np.cross(np.array([0.0, 0.0, 1.0]), h)
        n_mag = np.linalg.norm(nvec)

        rv = np.float64(r @ v)
        evec = ((v_mag**2 - MU / r_mag) * r - rv * v) / MU
        e = np.linalg.norm(evec)

        energy = v_mag**2 / 2.0 - MU / r_mag

        if abs(1.0 - e) <= tol:
            a = np.float64(np.inf)
            p = h_mag**2 / MU
        else:
            a = -MU / 2.0 / energy
            p = a * (1.0 - e**2)

        inc = np.arccos(h[2] / h_mag)

        raan = argp = np.float64(np.nan)
        if abs(inc) >= tol:
            raan = np.arccos(nvec[0] / n_mag)
            if nvec[2] < 0:
                raan = two_pi - raan
            argp = np.arccos((nvec @ evec) / n_mag / e)
            if evec[2] < 0:
                argp = two_pi - argp
        elif abs(inc) < tol:
            raan = np.float64(0.0)
            argp = np.float64(0.0)

        cos_f = (evec @ r) / r_mag / e
        f = np.float64(np.nan)
        if abs(cos_f - 1.0) <= tol:
            f = np.float64(0.0)
        elif abs(cos_f - 1.0) > tol:
            f = np.arccos(cos_f)
        if rv < 0:
            f = two_pi - f

        big_e = 2.0 * np.arctan2(np.sqrt(1.0 - e) * np.tan(f / 2.0), np.sqrt(1.0 + e))
        if big_e < 0:
            big_e = two_pi + big_e
        mean = big_e - e * np.sin(big_e)
        if mean < 0:
            mean = two_pi + mean

        special = np.float64(np.nan)
        if inc < tol and e >= tol:
            special = np.arccos(evec[0] / e)
            if evec[1] < 0:
                special = two_pi - special
        elif inc >= tol and e < tol:
            special = np.arccos((nvec @ r) / r_mag / n_mag)
            if r[2] < 0:
                special = two_pi - special

    return OrbitalElements(
        p=float(p),
        a=float(a),
        e=float(e),
        inc=float(inc),
        raan=float(raan),
        argp=float(argp),
        true_anomaly=float(f),
        eccentric_anomaly=float(big_e),
        mean_anomaly=float(mean),
        special=float(special),
    )


def _relative_step(step: float, value: float) -> float:
    if value == 0.0:
        return math.inf if step != 0.0 else math.nan
    return step / value


def newton_f_and_g(a: float, dt: float, r_mag: float, sig0: float, tol: float = NEWTON_TOL) -> float:
    """Solve Kepler's equation for the change in eccentric anomaly over dt."""
    if a <= 0.0:
        raise ValueError(f"semimajor axis must be positive for an elliptical orbit, got {a}")
    sqrt_a = math.sqrt(a)
    mean_motion_dt = math.sqrt(MU) / (a * sqrt_a) * dt
    radial = 1.0 - r_mag / a
    sigma = sig0 / sqrt_a

    e_hat = PI
    step = 1.0
    for _ in range(NEWTON_MAX_ITERATIONS + 1):
        if not abs(_relative_step(step, e_hat)) > tol:
            break
        fx = mean_motion_dt - e_hat + radial * math.sin(e_hat) + sigma * (math.cos(e_hat) - 1.0)
        dfx = -1.0 + (radial * math.cos(e_hat) - sigma * math.sin(e_hat))
        step = -fx / dfx
        e_hat += step
    return e_hat


def f_and_g(state, dt: float) -> np.ndarray:
    """Propagate a two-body state [r, v] by dt seconds with the F&G solution."""
    z0 = _vector(state, 6, "state")
    r0, v0 = z0[:3], z0[3:]

    r_mag = math.sqrt(float(r0 @ r0))
    v_sq = float(v0 @ v0)
    a = 1.0 / (2.0 / r_mag - v_sq / MU)
    if a <= 0.0:
        raise ValueError("F&G propagation requires an elliptical orbit")
    sig0 = float(r0 @ v0) / math.sqrt(MU)
    e_hat = newton_f_and_g(a, dt, r_mag, sig0, NEWTON_TOL)

    sin_e, cos_e = math.sin(e_hat), math.cos(e_hat)
    r = a + (r_mag - a) * cos_e + math.sqrt(a) * sig0 * sin_e
    f = 1.0 - a / r_mag * (1.0 - cos_e)
    g = dt + math.sqrt(a**3 / MU) * (sin_e - e_hat)
    f_dot = -math.sqrt(a * MU) * sin_e / (r * r_mag)
    g_dot = 1.0 - a / r * (1.0 - cos_e)

    return np.concatenate([f * r0 + g * v0, f_dot * r0 + g_dot * v0])


def perigee_approx(states, radii, times) -> tuple[np.ndarray, np.ndarray, float, int]:
    """Pick the sampled state closest to perigee.

    ``states`` holds one [r, v] row per sample. Returns the perigee position,
    velocity, time and the index of the first sample within 1e-10 km of the
    smallest radius.
    """
    states = np.asarray(states, dtype=float)
    radii = np.asarray(radii, dtype=float)
    if radii.size == 0:
        raise ValueError("no samples given")
    if states.ndim != 2 or states.shape[0] < radii.size or states.shape[1] < 6:
        raise ValueError(f"states must have one row of 6 values per radius, got {states.shape}")

    smallest = radii[0]
    for radius in radii:
        if radius < smallest:
            smallest = radius

    for index, radius in enumerate(radii):
        if abs(radius - smallest) < _PERIGEE_MATCH:
            break
    else:
        raise ValueError("no finite minimum radius among the samples")

    row = states[index]
    return row[:3].copy(), row[3:6].copy(), float(times[index]), index


__all__ = [
    "NEWTON_MAX_ITERATIONS",
    "NEWTON_TOL",
    "OrbitalElements",
    "f_and_g",
    "newton_f_and_g",
    "perigee_approx",
    "rv_to_elements",
]