"""Segment break times for one orbit, spaced evenly in true anomaly."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .constants import MU, PI
from .kepler import rv_to_elements

PERIGEE_OFFSET_TOL = 1e-5
"""Perigee times [s] above this mean the start is not at a segment break."""


@dataclass
class SegmentTimes:
    """Segment break times for the propagation.

    ``t_orig`` holds the breaks of an orbit starting at perigee, ``tvec``
    the breaks for the first orbit (shortened when the start is not at
    perigee, with breaks before the start set to zero), ``prep_hs`` the hot
    start state (-1 at perigee, 0 otherwise) and ``period`` the Keplerian
    period [s].
    """

    t_orig: np.ndarray
    tvec: np.ndarray
    prep_hs: int
    period: float


def prepare_segment_times(r0, v0, perigee_time, tol, segments) -> SegmentTimes:
    """Break an orbit into ``segments`` arcs of equal true anomaly from perigee."""
    segments = int(segments)
    if segments < 1:
        raise ValueError(f"at least one segment is required, got {segments}")
    elements = rv_to_elements(r0, v0, tol)
    if not (elements.a > 0.0 and math.isfinite(elements.a)):
        raise ValueError("an elliptical orbit is required")
    e = elements.e
    period = 2.0 * PI * math.sqrt(elements.a**3 / MU)
    mean_motion = 2.0 * PI / period

    t_orig = np.zeros(segments + 1)
    step = 2.0 * PI / segments
    f = 0.0
    for i in range(1, segments + 1):
        f += step
        big_e = 2.0 * math.atan2(math.tan(0.5 * f) * math.sqrt(1.0 - e), math.sqrt(1.0 + e))
        if big_e < 0.0:
            big_e += 2.0 * PI
        t_orig[i] = (big_e - e * math.sin(big_e)) / mean_motion

    tvec = t_orig.copy()
    prep_hs = -1
    if abs(perigee_time) > PERIGEE_OFFSET_TOL:
        shift = period - perigee_time
        tvec = np.where(t_orig < shift, 0.0, t_orig - shift)
        prep_hs = 0

    return SegmentTimes(t_orig=t_orig, tvec=tvec, prep_hs=prep_hs, period=float(period))


__all__ = ["PERIGEE_OFFSET_TOL", "SegmentTimes", "prepare_segment_times"]