"""Picard-Chebyshev iteration over one trajectory segment."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .chebyshev import IntegrationOperators
from .constants import DU, TU
from .feedback import error_feedback
from .frames import ecef_to_eci, eci_to_ecef
from .perturbed_gravity import VariableFidelityGravity

MAX_ITERATIONS = 30
"""Number of sweeps after which the iteration stops regardless of the error."""

INITIAL_ERROR = 10.0
"""Starting error for a warm-started segment."""

HOT_START_ERROR = 1e-2
"""Starting error for a hot-started segment; skips the low-fidelity J2-J6 sweeps."""

FEEDBACK_THRESHOLD = 1e-13
"""Below this error the linear error feedback is added to the coefficients."""


@dataclass(frozen=True)
class SegmentSolution:
    """Converged state of one segment.

    ``positions`` and ``velocities`` hold one row per sample node,
    ``alpha`` (N+1 x 3) and ``beta`` (N x 3) the Chebyshev coefficients of
    position and velocity, ``error`` the last non-dimensional update and
    ``iterations`` the number of sweeps over the nodes.
    """

    positions: np.ndarray
    velocities: np.ndarray
    alpha: np.ndarray
    beta: np.ndarray
    error: float
    iterations: int


def _vector3(values, name: str) -> np.ndarray:
    vector = np.asarray(values, dtype=float)
    if vector.shape != (3,):
        raise ValueError(f"{name} must be a 3-vector, got shape {vector.shape}")
    return vector


def _node_accelerations(times, positions, velocities, gravity, err, samples) -> np.ndarray:
    """Inertial gravity at every node, evaluated in the Earth-fixed frame."""
    accelerations = np.empty_like(positions)
    for node, (t, x, v) in enumerate(zip(times, positions, velocities)):
        x_ecef, _ = eci_to_ecef(t, x, v)
        a_ecef = gravity.evaluate(x_ecef, err, node, samples)
        accelerations[node] = ecef_to_eci(t, a_ecef)
    return accelerations


def _feedback_accelerations(times, new_positions, new_velocities, old_positions) -> np.ndarray:
    """Linear acceleration corrections for the change in position at each node."""
    corrections = np.empty_like(new_positions)
    for node, (t, x_new, v_new, x_old) in enumerate(
        zip(times, new_positions, new_velocities, old_positions)
    ):
        x_ecef, _ = eci_to_ecef(t, x_new, v_new)
        corrections[node] = ecef_to_eci(t, error_feedback(x_ecef, x_new - x_old))
    return corrections


def picard_iteration(
    r_init,
    v_init,
    positions,
    velocities,
    times,
    operators: IntegrationOperators,
    gravity: VariableFidelityGravity,
    hot,
    tol,
) -> SegmentSolution:
    """Iterate a warm-started segment until the update falls below ``tol``.

    ``positions``/``velocities`` are the inertial warm start at the cosine
    sample ``times``; ``r_init``/``v_init`` the state at the segment start.
    """
    r_init = _vector3(r_init, "r_init")
    v_init = _vector3(v_init, "v_init")
    x = np.array(positions, dtype=float)
    v = np.array(velocities, dtype=float)
    t = np.asarray(times, dtype=float)

    samples = operators.samples
    nodes = samples + 1
    if x.shape != (nodes, 3) or v.shape != (nodes, 3):
        raise ValueError(f"positions and velocities must have shape {(nodes, 3)}")
    if t.shape != (nodes,):
        raise ValueError(f"times must have {nodes} entries, got shape {t.shape}")

    degree = operators.degree
    w2 = (t[-1] - t[0]) / 2.0
    alpha = np.zeros((degree + 1, 3))
    beta = np.zeros((degree, 3))

    gravity.start(hot)
    err = HOT_START_ERROR if hot else INITIAL_ERROR

    while err > tol:
        accelerations = _node_accelerations(t, x, v, gravity, err, samples)

        beta_raw = w2 * (operators.p1 @ (operators.a @ accelerations))
        beta_raw[0] += v_init
        v_orig = operators.t1 @ beta_raw

        alpha_raw = w2 * (operators.p2 @ beta_raw)
        alpha_raw[0] += r_init
        x_orig = operators.t2 @ alpha_raw

        corrections = _feedback_accelerations(t, x_orig, v_orig, x)
        gamma = w2 * (operators.p1 @ (operators.a @ corrections))
        kappa = w2 * (operators.p2 @ gamma)

        if err < FEEDBACK_THRESHOLD:
            beta = beta_raw + gamma
            alpha = alpha_raw + kappa
        else:
            beta = beta_raw
            alpha = alpha_raw

        v_new = operators.t1 @ beta
        x_new = operators.t2 @ alpha

        position_error = np.max(np.abs(x_new - x)) / DU
        velocity_error = np.max(np.abs(v_new - v)) / DU * TU
        err = float(max(position_error, velocity_error))

        x, v = x_new, v_new

        if gravity.iteration >= MAX_ITERATIONS:
            break

    return SegmentSolution(
        positions=x,
        velocities=v,
        alpha=alpha,
        beta=beta,
        error=float(err),
        iterations=gravity.iteration,
    )


__all__ = [
    "FEEDBACK_THRESHOLD",
    "HOT_START_ERROR",
    "INITIAL_ERROR",
    "MAX_ITERATIONS",
    "SegmentSolution",
    "picard_iteration",
]