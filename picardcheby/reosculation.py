"""Re-osculation of the segment schedule to the Keplerian perigee after each orbit."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .constants import PI
from .kepler import rv_to_elements

CIRCULAR_ECCENTRICITY = 1e-6
"""Below this eccentricity perigee is undefined and is not searched for."""

MAX_SECANT_ITERATIONS = 10
"""Secant steps taken at most when locating perigee."""


@dataclass(frozen=True)
class ReosculationResult:
    """Schedule and state after a segment.

    ``tvec`` holds the segment breaks to use next, ``k`` the segment counter
    (-1 after an orbit ends, so that the next segment is the first),
    ``prep_hs`` the hot start state, ``orb_end`` the time the orbit ended
    (0.0 when it did not), and ``r0``/``v0`` the state the next segment
    starts from.
    """

    tvec: np.ndarray
    k: int
    prep_hs: int
    orb_end: float
    r0: np.ndarray
    v0: np.ndarray

    @property
    def orbit_ended(self) -> bool:
        """Whether this segment closed an orbit and the schedule was renewed."""
        return self.orb_end != 0.0


def _secant_perigee(alpha, beta, w1, w2, tau_old, tau, f_old, tol):
    """Find the segment time of zero true anomaly from the segment coefficients."""
    degree = alpha.shape[0] - 1
    orders = np.arange(degree + 1)
    tau_old = np.float64(tau_old)
    tau = np.float64(tau)
    f_old = np.float64(f_old)
    iterations = 0
    err = 10.0
    r = v = None
    tf = tau * w2 + w1

    with np.errstate(all="ignore"):
        while err > tol:
            basis = np.cos(orders * np.arccos(np.clip(tau, -1.0, 1.0)))
            r = basis @ alpha
            v = basis[:degree] @ beta
            tf = tau * w2 + w1

            f_new = np.float64(rv_to_elements(r, v, tol).true_anomaly)
            if f_new > PI:
                f_new -= 2.0 * PI

            slope = (f_new - f_old) / (tau - tau_old)
            if slope == 0:
                break
            tau_new = tau + (0.0 - f_new) / slope
            if tau_new > 1.0:
                break

            err = abs(f_new)
            f_old = f_new
            tau_old = tau
            tau = tau_new
            iterations += 1
            if iterations > MAX_SECANT_ITERATIONS:
                break

    return r, v, float(tf)


def reosculate_perigee(
    positions,
    velocities,
    times,
    alpha,
    beta,
    tf,
    t_final,
    t_orig,
    k,
    segments,
    prep_hs,
    tol,
    tvec,
) -> ReosculationResult:
    """Renew the segment schedule at the end of an orbit.

    When segment ``k`` is the last of an orbit (or the short first segment
    of a start away from perigee), the perigee passage inside the segment is
    located by a secant search on the true anomaly and the next orbit's
    breaks are laid out from there. Otherwise the schedule is unchanged and
    the next segment starts from the last sample.
    """
    x = np.asarray(positions, dtype=float)
    v = np.asarray(velocities, dtype=float)
    t = np.asarray(times, dtype=float)
    alpha = np.asarray(alpha, dtype=float)
    beta = np.asarray(beta, dtype=float)
    t_orig = np.asarray(t_orig, dtype=float)
    tvec = np.array(tvec, dtype=float)

    nodes = t.size
    if x.shape != (nodes, 3) or v.shape != (nodes, 3):
        raise ValueError(f"positions and velocities must have shape {(nodes, 3)}")
    degree = alpha.shape[0] - 1
    if alpha.shape != (degree + 1, 3) or beta.shape != (degree, 3):
        raise ValueError("alpha must be (N+1) x 3 and beta N x 3")
    if t_orig.size != segments + 1 or tvec.size != segments + 1:
        raise ValueError(f"segment breaks must have {segments + 1} entries")

    r0 = x[-1].copy()
    v0 = v[-1].copy()

    elements = [rv_to_elements(r, vel, tol) for r, vel in zip(x, v)]
    anomalies = [el.true_anomaly for el in elements]
    e = elements[-1].e

    orbit_end = k == segments - 1 or (k == prep_hs and abs(tf - t_final) / tf > tol)
    if not orbit_end:
        return ReosculationResult(tvec=tvec, k=k, prep_hs=prep_hs, orb_end=0.0, r0=r0, v0=v0)

    found = False
    if abs(e) > CIRCULAR_ECCENTRICITY:
        w1 = (t[-1] + t[0]) / 2.0
        w2 = (t[-1] - t[0]) / 2.0
        for index in range(2, nodes):
            if anomalies[index] < anomalies[index - 1]:
                r, vel, tf = _secant_perigee(
                    alpha,
                    beta,
                    w1,
                    w2,
                    (t[index - 1] - w1) / w2,
                    (t[index] - w1) / w2,
                    anomalies[index - 1],
                    tol,
                )
                r0 = np.asarray(r, dtype=float)
                v0 = np.asarray(vel, dtype=float)
                found = True
                break

    new_tvec = t_orig + tf
    if not found and not math.isfinite(float(tf)):
        raise ValueError("segment end time is not finite")
    return ReosculationResult(
        tvec=new_tvec,
        k=-1,
        prep_hs=-1,
        orb_end=float(new_tvec[0]),
        r0=r0,
        v0=v0,
    )


__all__ = [
    "CIRCULAR_ECCENTRICITY",
    "MAX_SECANT_ITERATIONS",
    "ReosculationResult",
    "reosculate_perigee",
]