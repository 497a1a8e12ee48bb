"""Conversions between the inertial (ECI) and Earth-fixed (ECEF) frames."""

from __future__ import annotations

import math

import numpy as np

from .constants import OMEGA


def _vector3(values, name: str) -> np.ndarray:
    vector = np.asarray(values, dtype=float)
    if vector.shape != (3,):
        raise ValueError(f"{name} must be a 3-vector, got shape {vector.shape}")
    return vector


def _angle(t: float) -> tuple[float, float]:
    theta = t * OMEGA
    return math.cos(theta), math.sin(theta)


def eci_to_ecef(t: float, position, velocity) -> tuple[np.ndarray, np.ndarray]:
    """Rotate an inertial state into the Earth-fixed frame at time t [s].

    The velocity is corrected for the frame rotation only; a velocity whose
    components sum to zero is treated as absent and returned as zeros.
    """
    x = _vector3(position, "position")
    v = _vector3(velocity, "velocity")
    c, s = _angle(t)

    body_position = np.array([c * x[0] + s * x[1], -s * x[0] + c * x[1], x[2]])
    if v[0] + v[1] + v[2] != 0.0:
        body_velocity = np.array([v[0] + OMEGA * x[1], v[1] - OMEGA * x[0], v[2]])
    else:
        body_velocity = np.zeros(3)
    return body_position, body_velocity


def ecef_to_eci(t: float, vector) -> np.ndarray:
    """Rotate an Earth-fixed vector (e.g. an acceleration) into the inertial frame."""
    a = _vector3(vector, "vector")
    c, s = _angle(t)
    return np.array([c * a[0] - s * a[1], s * a[0] + c * a[1], a[2]])


__all__ = ["ecef_to_eci", "eci_to_ecef"]