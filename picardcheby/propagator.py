"""Segment-by-segment Picard-Chebyshev propagation from t0 to the final time."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .chebyshev import IntegrationOperators
from .constants import PI
from .kepler import f_and_g
from .perturbed_gravity import VariableFidelityGravity
from .picard_iteration import picard_iteration
from .preparation import SegmentTimes
from .reosculation import reosculate_perigee
from .segmentation import SegmentScheme

FINAL_TIME_TOL = 1e-12
"""Relative distance to the final time at which propagation stops."""


@dataclass(frozen=True)
class Propagation:
    """Chebyshev coefficients of every segment.

    ``alpha`` (segments x N+1 x 3) and ``beta`` (segments x N x 3) hold the
    position and velocity coefficients, ``segment_times`` the segment
    boundaries, ``w1``/``w2`` each segment's time midpoint and half-width.
    """

    alpha: np.ndarray
    beta: np.ndarray
    segment_times: np.ndarray
    w1: np.ndarray
    w2: np.ndarray

    @property
    def total_segments(self) -> int:
        """Number of propagated segments."""
        return int(self.w1.size)


def _vector3(values, name: str) -> np.ndarray:
    vector = np.array(values, dtype=float)
    if vector.shape != (3,):
        raise ValueError(f"{name} must be a 3-vector, got shape {vector.shape}")
    return vector


def propagate(
    r0,
    v0,
    t_final,
    scheme: SegmentScheme,
    segment_times: SegmentTimes,
    operators: IntegrationOperators,
    gravity: VariableFidelityGravity,
    tol,
) -> Propagation:
    """Propagate the initial state to ``t_final`` one segment after another."""
    if not t_final > 0.0:
        raise ValueError(f"final time must be positive, got {t_final}")
    if operators.degree != scheme.degree:
        raise ValueError(
            f"operators of degree {operators.degree} do not match scheme degree {scheme.degree}"
        )
    segments = scheme.segments
    tvec = np.array(segment_times.tvec, dtype=float)
    t_orig = np.array(segment_times.t_orig, dtype=float)
    if tvec.size != segments + 1 or t_orig.size != segments + 1:
        raise ValueError(f"segment breaks must have {segments + 1} entries")
    prep_hs = segment_times.prep_hs

    r = _vector3(r0, "r0")
    v = _vector3(v0, "v0")
    samples = operators.samples
    tau = -np.cos(np.arange(samples + 1) * PI / samples)

    k = 0
    alphas, betas, w1s, w2s = [], [], [], []
    boundaries = [0.0]

    while True:
        while True:
            if k + 1 >= tvec.size:
                raise RuntimeError("segment schedule ended before the final time")
            t0 = float(tvec[k])
            tf = float(tvec[k + 1])
            if tf != 0.0:
                break
            k += 1
        tf = min(tf, float(t_final))
        w1 = (tf + t0) / 2.0
        w2 = (tf - t0) / 2.0
        times = tau * w2 + w1

        z0 = np.concatenate([r, v])
        warm = np.array([f_and_g(z0, t - t0) for t in times])
        solution = picard_iteration(
            r, v, warm[:, :3], warm[:, 3:], times, operators, gravity, False, tol
        )

        finished = abs(tf - t_final) / tf < FINAL_TIME_TOL

        result = reosculate_perigee(
            solution.positions,
            solution.velocities,
            times,
            solution.alpha,
            solution.beta,
            tf,
            t_final,
            t_orig,
            k,
            segments,
            prep_hs,
            tol,
            tvec,
        )
        tvec = result.tvec
        prep_hs = result.prep_hs
        k = result.k + 1
        r = np.array(result.r0, dtype=float)
        v = np.array(result.v0, dtype=float)

        alphas.append(solution.alpha)
        betas.append(solution.beta)
        w1s.append(w1)
        w2s.append(w2)
        boundaries.append(result.orb_end if result.orbit_ended else tf)

        if finished:
            break

    return Propagation(
        alpha=np.array(alphas),
        beta=np.array(betas),
        segment_times=np.array(boundaries),
        w1=np.array(w1s),
        w2=np.array(w2s),
    )


__all__ = ["FINAL_TIME_TOL", "Propagation", "propagate"]