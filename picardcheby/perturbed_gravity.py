"""Variable-fidelity gravity: a J2-J6 model corrected by the full field when needed."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .chebyshev import N_MAX
from .constants import MU, REQ
from .egm2008 import GravityField
from .radial_gravity import radial_gravity_degree

J2 = 1082.63e-6
J3 = -2.52e-6
J4 = -1.61e-6
J5 = -0.15e-6
J6 = 0.57e-6


@dataclass
class EvaluationCounter:
    """Running cost of gravity evaluations.

    ``full`` accumulates (used degree / requested degree)^2 per full-field
    evaluation; ``approx`` counts J2-J6 evaluations.
    """

    full: float = 0.0
    approx: float = 0.0


def _position(values) -> np.ndarray:
    x = np.asarray(values, dtype=float)
    if x.shape != (3,):
        raise ValueError(f"position must be a 3-vector, got shape {x.shape}")
    return x


def j2_j6_acceleration(position) -> np.ndarray:
    """Two-body plus zonal J2..J6 acceleration [km/s^2] at an Earth-fixed position [km]."""
    x = _position(position)
    r = math.sqrt(float(x @ x))
    xr, yr, zr = x / r
    z2, z3, z4, z5, z6 = (zr**k for k in range(2, 7))
    base = MU / r**2
    q = REQ / r

    two_body = -(MU / r**3) * x

    c2 = -1.5 * J2 * base * q**2
    a2 = np.array([c2 * (1.0 - 5.0 * z2) * xr, c2 * (1.0 - 5.0 * z2) * yr, c2 * (3.0 - 5.0 * z2) * zr])

    c3 = 0.5 * J3 * base * q**3
    h3 = 5.0 * (7.0 * z3 - 3.0 * zr)
    a3 = np.array([c3 * h3 * xr, c3 * h3 * yr, c3 * 3.0 * (1.0 - 10.0 * z2 + 35.0 / 3.0 * z4)])

    c4 = 5.0 / 8.0 * J4 * base * q**4
    h4 = 3.0 - 42.0 * z2 + 63.0 * z4
    a4 = np.array([c4 * h4 * xr, c4 * h4 * yr, c4 * (15.0 - 70.0 * z2 + 63.0 * z4) * zr])

    c5 = J5 / 8.0 * base * q**5
    h5 = 3.0 * (35.0 * zr - 210.0 * z3 + 231.0 * z5)
    a5 = np.array([c5 * h5 * xr, c5 * h5 * yr, c5 * (693.0 * z6 - 945.0 * z4 + 315.0 * z2 - 15.0)])

    c6 = -J6 / 16.0 * base * q**6
    h6 = 35.0 - 945.0 * z2 + 3465.0 * z4 - 3003.0 * z6
    a6 = np.array([c6 * h6 * xr, c6 * h6 * yr, c6 * (245.0 - 2205.0 * z2 + 4851.0 * z4 - 3003.0 * z6) * zr])

    return two_body + a2 + a3 + a4 + a5 + a6


class VariableFidelityGravity:
    """Gravity whose fidelity follows the Picard iteration error.

    While the iteration is far from converged the cheap J2-J6 model is used;
    at chosen iterations the full field is evaluated and the difference is
    stored per sample node, to correct the cheap model afterwards.
    """

    def __init__(self, field: GravityField, degree, tol: float, counter: EvaluationCounter | None = None):
        self.field = field
        self.degree = degree
        self.tol = tol
        self.counter = counter if counter is not None else EvaluationCounter()
        self._correction = np.zeros((N_MAX + 1, 3))
        self._hot = False
        self._iteration = 0
        self._marks = [0, 0, 0, 0]
        self._model = 0
        self._last = np.zeros(3)

    @property
    def iteration(self) -> int:
        """Number of completed sweeps over the sample nodes since start()."""
        return self._iteration

    def approx(self, position) -> np.ndarray:
        """J2-J6 acceleration, counted as one cheap evaluation."""
        acceleration = j2_j6_acceleration(position)
        self.counter.approx += 1.0
        return acceleration

    def full(self, position) -> np.ndarray:
        """Full-field acceleration at the radially adapted degree."""
        x = _position(position)
        used = radial_gravity_degree(x, self.tol, self.degree)
        acceleration = self.field.acceleration(x, int(used))
        self.counter.full += used**2 / self.degree**2
        return acceleration

    def start(self, hot: bool = False) -> None:
        """Begin a new Picard iteration; ``hot`` marks a hot-started segment."""
        self._hot = bool(hot)
        self._iteration = 0
        self._reset()

    def _reset(self) -> None:
        mark = -1 if self._hot else 0
        self._marks = [mark] * 4
        self._model = 0

    def _refresh(self, position, node: int) -> np.ndarray:
        acceleration = self.full(position)
        self._correction[node] = acceleration - self.approx(position)
        self._model += 3
        return acceleration

    def _corrected(self, position, node: int) -> np.ndarray:
        return self.approx(position) + self._correction[node]

    def evaluate(self, position, err: float, node: int, samples: int) -> np.ndarray:
        """Acceleration at sample ``node`` (0..samples) for the current iteration error."""
        if not 0 < samples <= N_MAX:
            raise ValueError(f"samples must lie in 1..{N_MAX}, got {samples}")
        if not 0 <= node <= samples:
            raise ValueError(f"node {node} outside 0..{samples}")
        if self._iteration == 0:
            self._reset()

        itr = self._iteration
        last = node == samples
        marks = self._marks
        result = None

        if err > 1.0e-1:
            result = self.approx(position)
            if last:
                self._marks = [itr] * 4
        elif 1.0e-4 < err <= 1.0e-1 and marks[0] == itr - 1:
            result = self._refresh(position, node)
        elif 1.0e-4 < err <= 1.0e-1:
            result = self._corrected(position, node)
            if last:
                marks[1] = itr
        elif 1.0e-7 < err <= 1.0e-4:
            result = self._corrected(position, node)
            if last:
                marks[2] = itr
        elif 1.0e-10 < err <= 1.0e-7 and marks[2] == itr - 1:
            result = self._refresh(position, node)
        elif 1.0e-10 < err <= 1.0e-7:
            result = self._corrected(position, node)
            if last:
                marks[3] = itr
        elif self._model == 3 and err > self.tol:
            result = self._refresh(position, node)
        elif err > self.tol:
            result = self._corrected(position, node)

        if result is not None:
            self._last = np.asarray(result, dtype=float)
        if last:
            self._iteration += 1
        return self._last.copy()


__all__ = [
    "EvaluationCounter",
    "VariableFidelityGravity",
    "j2_j6_acceleration",
]