"""Linear two-body correction of the acceleration for a position error."""

from __future__ import annotations

import numpy as np

from .constants import MU


def error_feedback(position, delta) -> np.ndarray:
    """Acceleration correction from the two-body gravity gradient at ``position``."""
    x = np.asarray(position, dtype=float)
    dx = np.asarray(delta, dtype=float)
    if x.shape != (3,) or dx.shape != (3,):
        raise ValueError("position and delta must be 3-vectors")
    r = np.linalg.norm(x)
    r3 = r**3
    r5 = r**5
    gradient = 3.0 * MU * np.outer(x, x) / r5 - (MU / r3) * np.eye(3)
    return gradient.T @ dx


__all__ = ["error_feedback"]