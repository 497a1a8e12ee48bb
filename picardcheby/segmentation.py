"""Choice of segments per orbit and Chebyshev degree for a required accuracy."""

from __future__ import annotations

import math
from dataclasses import dataclass
from itertools import accumulate, repeat

import numpy as np

from .chebyshev import lsq_chebyshev_fit
from .constants import MU, PI
from .kepler import f_and_g, perigee_approx, rv_to_elements
from .perturbed_gravity import VariableFidelityGravity

MIN_SEGMENTS = 3
"""Fewest segments per orbit tried."""

TRAILING_COEFFICIENTS = 3
"""How many coefficients must fall below the tolerance to accept a fit."""

TRIAL_DEGREES = (10, 20, 40)
"""Polynomial degrees tried for each segmentation, each doubling the last."""

MAX_SEGMENTS = 1001
"""Safeguard against a fit that never reaches the tolerance."""

_SAMPLES = 100
_FINE_DIVISIONS = 99


@dataclass(frozen=True)
class SegmentScheme:
    """Segments per orbit, polynomial degree, perigee passage time [s] and period [s]."""

    segments: int
    degree: int
    perigee_time: float
    period: float


def _orbit(r0, v0, tol):
    elements = rv_to_elements(r0, v0, tol)
    if not (elements.a > 0.0 and math.isfinite(elements.a)):
        raise ValueError("an elliptical orbit is required")
    return elements, 2.0 * PI * math.sqrt(elements.a**3 / MU)


def _find_perigee(state, period):
    """Approximate perigee state and time, refining around the coarse minimum."""
    half = period / 2.0
    times = -np.cos(np.arange(_SAMPLES + 1) * PI / _SAMPLES) * half + half
    states = np.array([f_and_g(state, t) for t in times])
    radii = np.linalg.norm(states[:, :3], axis=1)
    rp, vp, tp, index = perigee_approx(states, radii, times)

    if index != 0:
        upper = times[index + 1] if index + 1 < times.size else 0.0
        step = (upper - times[index - 1]) / _FINE_DIVISIONS
        fine = np.fromiter(
            accumulate(repeat(step, _SAMPLES), initial=times[index - 1]),
            dtype=float,
            count=_SAMPLES + 1,
        )
        # The first row keeps the coarse sample, as in the refined search grid.
        for row, t in enumerate(fine[1:], start=1):
            states[row] = f_and_g(state, t)
            radii[row] = math.sqrt(float(states[row, :3] @ states[row, :3]))
        rp, vp, tp, index = perigee_approx(states, radii, fine)

    return np.concatenate([rp, vp]), tp


def _segment_duration(e, period, segments):
    """Time from perigee to a true anomaly of one segment's share of the orbit."""
    f = 2.0 * PI / segments
    big_e = 2.0 * math.atan2(math.tan(0.5 * f) * math.sqrt(1.0 - e), math.sqrt(1.0 + e))
    if big_e < 0.0:
        big_e += 2.0 * PI
    mean = big_e - e * math.sin(big_e)
    return mean / (2.0 * PI / period)


def polydegree_segments(r0, v0, gravity: VariableFidelityGravity, tol) -> SegmentScheme:
    """Find segments per orbit and a polynomial degree that fit gravity to ``tol``."""
    elements, period = _orbit(r0, v0, tol)
    e = elements.e
    coeff_tol = tol / 100.0

    state = np.concatenate([np.asarray(r0, dtype=float), np.asarray(v0, dtype=float)])
    perigee_state, perigee_time = _find_perigee(state, period)

    def sample(tau, w1, w2):
        return gravity.full(f_and_g(perigee_state, tau * w2 + w1)[:3])

    fit_check = 0
    segments = MIN_SEGMENTS
    degree = 0
    while fit_check <= TRAILING_COEFFICIENTS:
        if segments > MAX_SEGMENTS:
            raise RuntimeError(f"no fit reached tolerance {tol} with up to {MAX_SEGMENTS} segments")
        duration = _segment_duration(e, period, segments)
        w1 = duration / 2.0
        w2 = duration / 2.0

        previous = None
        for n in TRIAL_DEGREES:
            if previous is None:
                values = np.array(
                    [sample(-math.cos(cnt * PI / n), w1, w2) for cnt in range(n + 1)]
                )
            else:
                values = np.empty((n + 1, 3))
                values[0::2] = previous
                values[1::2] = [
                    sample(-math.cos(cnt * PI / n), w1, w2) for cnt in range(1, n + 1, 2)
                ]
            previous = values

            _, lsq = lsq_chebyshev_fit(1.0, n - 1, n)
            coefficients = lsq @ values
            for i, row in enumerate(coefficients, start=1):
                degree = i
                if np.max(np.abs(row)) < coeff_tol:
                    fit_check += 1
                    if fit_check == TRAILING_COEFFICIENTS:
                        break

        segments += 2
        if fit_check == TRAILING_COEFFICIENTS:
            break
    segments -= 2

    return SegmentScheme(
        segments=segments,
        degree=degree,
        perigee_time=float(perigee_time),
        period=float(period),
    )


__all__ = [
    "MAX_SEGMENTS",
    "MIN_SEGMENTS",
    "SegmentScheme",
    "TRAILING_COEFFICIENTS",
    "TRIAL_DEGREES",
    "polydegree_segments",
]