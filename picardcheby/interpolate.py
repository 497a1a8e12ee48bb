"""Evaluation of segment Chebyshev coefficients at regularly spaced output times."""

from __future__ import annotations

import math
from itertools import accumulate, repeat

import numpy as np


def output_times(t0: float, tf: float, dt: float) -> np.ndarray:
    """Output times t0, t0+dt, ... with ceil(tf/dt)+1 entries, built by repeated addition."""
    if dt <= 0.0:
        raise ValueError(f"output interval must be positive, got {dt}")
    count = max(math.ceil(tf / dt), 0)
    return np.fromiter(accumulate(repeat(dt, count), initial=t0), dtype=float, count=count + 1)


def interpolate(alpha, beta, degree: int, segment_times, w1, w2, t0: float, tf: float, dt: float) -> np.ndarray:
    """Evaluate the solution at the output times, one segment after another.

    ``alpha`` has shape (segments, N+1, 3) with position coefficients and
    ``beta`` shape (segments, N, 3) with velocity coefficients.
    ``segment_times`` gives the segment boundaries; ``w1``/``w2`` the time
    midpoint and half-width of each segment. Returns rows of
    [x, y, z, vx, vy, vz]. An output time on a segment boundary appears once
    for each segment it bounds.
    """
    alpha = np.asarray(alpha, dtype=float)
    beta = np.asarray(beta, dtype=float)
    segment_times = np.asarray(segment_times, dtype=float)
    w1 = np.asarray(w1, dtype=float)
    w2 = np.asarray(w2, dtype=float)

    total = w1.size
    if w2.size != total:
        raise ValueError("w1 and w2 must have one entry per segment")
    if alpha.shape != (total, degree + 1, 3):
        raise ValueError(f"alpha must have shape {(total, degree + 1, 3)}, got {alpha.shape}")
    if beta.shape != (total, degree, 3):
        raise ValueError(f"beta must have shape {(total, degree, 3)}, got {beta.shape}")
    if segment_times.size < total + 1:
        raise ValueError("segment_times needs one more entry than there are segments")

    times = output_times(t0, tf, dt)
    orders = np.arange(degree + 1)
    blocks = []
    for index, (start, end, mid, half) in enumerate(
        zip(segment_times[:-1], segment_times[1:], w1, w2)
    ):
        taus = []
        for t in times:
            if t == start:
                taus.append(-1.0)
            if t == end:
                taus.append(1.0)
            if start < t < end:
                taus.append((t - mid) / half)

        tau = np.clip(np.array(taus, dtype=float), -1.0, 1.0)
        position_basis = np.cos(np.outer(np.arccos(tau), orders))
        velocity_basis = position_basis[:, :degree]
        blocks.append(
            np.hstack([position_basis @ alpha[index], velocity_basis @ beta[index]])
        )

    if not blocks:
        return np.empty((0, 6))
    return np.vstack(blocks)


__all__ = ["interpolate", "output_times"]