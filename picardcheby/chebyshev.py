"""Chebyshev polynomials, least-squares fits and Picard integration operators."""

from __future__ import annotations

from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path

import numpy as np

from .constants import PI

N_MIN = 10
"""Smallest polynomial degree with precomputed operators."""

N_MAX = 80
"""Largest polynomial degree with precomputed operators."""

_TABLE_FILES = {
    "t2": "T2_matrices.bin",
    "p2": "P2_matrices.bin",
    "t1": "T1_matrices.bin",
    "p1": "P1_matrices.bin",
    "ta": "Ta_matrices.bin",
    "a": "A_matrices.bin",
}

_DTYPE = np.dtype("<f8")


@dataclass(frozen=True)
class IntegrationOperators:
    """Constant matrices for second-order Clenshaw-Curtis Picard iteration.

    t2: Chebyshev position matrix, (M+1) x (N+1)
    p2: velocity-to-position integration operator, (N+1) x N
    t1: Chebyshev velocity matrix, (M+1) x N
    p1: acceleration-to-velocity integration operator, N x (N-1)
    ta: Chebyshev acceleration matrix, (M+1) x (N-1)
    a:  least-squares operator, (N-1) x (M+1)
    """

    degree: int
    t2: np.ndarray
    p2: np.ndarray
    t1: np.ndarray
    p1: np.ndarray
    ta: np.ndarray
    a: np.ndarray

    def __post_init__(self) -> None:
        for name in _TABLE_FILES:
            getattr(self, name).setflags(write=False)

    @property
    def samples(self) -> int:
        """Number of sample intervals M (there are M+1 nodes)."""
        return self.t2.shape[0] - 1


def _check_samples(samples: int) -> None:
    if samples < 1:
        raise ValueError(f"at least one sample interval is required, got {samples}")


def cosine_nodes(sign: float, samples: int) -> np.ndarray:
    """Return the M+1 cosine sample points ``sign * cos(i*pi/M)``."""
    _check_samples(samples)
    return sign * np.cos(np.arange(samples + 1) * PI / samples)


def chebyshev_matrix(sign: float, degree: int, samples: int, recursive: bool = False) -> np.ndarray:
    """Chebyshev polynomials of the first kind evaluated at cosine nodes.

    Returns an (M+1) x (N+1) matrix whose column j holds T_j at each node.
    The recursive and trigonometric formulations agree up to rounding.
    """
    if degree < 0:
        raise ValueError(f"polynomial degree must be non-negative, got {degree}")
    tau = cosine_nodes(sign, samples)
    if not recursive:
        return np.cos(np.outer(np.arccos(tau), np.arange(degree + 1)))
    table = np.empty((samples + 1, degree + 1))
    table[:, 0] = 1.0
    if degree >= 1:
        table[:, 1] = tau
    for j in range(2, degree + 1):
        table[:, j] = 2.0 * tau * table[:, j - 1] - table[:, j - 2]
    return table


def lsq_chebyshev_fit(sign: float, degree: int, samples: int) -> tuple[np.ndarray, np.ndarray]:
    """Chebyshev matrix T and least-squares operator A for a degree-N fit.

    T is (M+1) x (N+1); A is (N+1) x (M+1) so that ``A @ values`` gives the
    Chebyshev coefficients of data sampled at the cosine nodes.
    """
    table = chebyshev_matrix(sign, degree, samples, recursive=False)

    weights = np.eye(samples + 1)
    weights[0, 0] = 0.5
    weights[samples, samples] = 0.5

    scale = np.eye(degree + 1) * (2.0 / samples)
    if samples == degree:
        scale[0, 0] = 1.0 / samples
        scale[degree, degree] = 1.0 / samples
    elif samples > degree:
        scale[0, 0] = 1.0 / samples

    return table, scale @ (table.T @ weights)


def _picard_operator(size: int) -> np.ndarray:
    """Integration operator mapping size-1 coefficients to size coefficients.

    The integral is fixed so that it vanishes at tau = -1.
    """
    diagonal = np.diag([1.0] + [1.0 / (2.0 * i) for i in range(1, size)])
    body = np.zeros((size, size - 1))
    body[1:, :] = np.eye(size - 1) - np.eye(size - 1, k=2)
    s_matrix = diagonal @ body
    s_matrix[0, 0] = 0.25
    s_matrix[1, 0] = 1.0

    boundary = np.zeros((size, size))
    boundary[0, :] = np.cos(np.arange(size) * np.arccos(-1.0))
    return (np.eye(size) - boundary) @ s_matrix


def clenshaw_curtis_ivp2(degree: int, samples: int) -> IntegrationOperators:
    """Build the constant matrices for a second-order initial value problem."""
    if degree < 2:
        raise ValueError(f"polynomial degree must be at least 2, got {degree}")
    _check_samples(samples)
    ta, a = lsq_chebyshev_fit(-1.0, degree - 2, samples)
    return IntegrationOperators(
        degree=degree,
        t2=chebyshev_matrix(-1.0, degree, samples),
        p2=_picard_operator(degree + 1),
        t1=chebyshev_matrix(-1.0, degree - 1, samples),
        p1=_picard_operator(degree),
        ta=ta,
        a=a,
    )


def _check_table_degree(degree: int) -> None:
    if not N_MIN <= degree <= N_MAX:
        raise ValueError(f"polynomial degree {degree} outside supported range {N_MIN}..{N_MAX}")


@lru_cache(maxsize=None)
def integration_operators(degree: int) -> IntegrationOperators:
    """Operators for degree N with N+1 sample points, for N in N_MIN..N_MAX."""
    _check_table_degree(degree)
    return clenshaw_curtis_ivp2(degree, degree)


def save_operator_tables(path, n_min: int = N_MIN, n_max: int = N_MAX) -> list[Path]:
    """Write the operator tables for degrees n_min..n_max as binary files.

    Each file holds one (n_max+1) x (n_max+1) column-major block of
    little-endian doubles per degree, zero padded. Returns the written paths.
    """
    if n_min < 2 or n_max < n_min:
        raise ValueError(f"invalid degree range {n_min}..{n_max}")
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)

    stride = n_max + 1
    count = n_max - n_min + 1
    tables = {name: np.zeros((count, stride, stride)) for name in _TABLE_FILES}
    for index, degree in enumerate(range(n_min, n_max + 1)):
        operators = clenshaw_curtis_ivp2(degree, degree)
        for name, table in tables.items():
            matrix = getattr(operators, name)
            rows, cols = matrix.shape
            table[index, :rows, :cols] = matrix

    written = []
    for name, filename in _TABLE_FILES.items():
        target = directory / filename
        with target.open("wb") as handle:
            tables[name].transpose(0, 2, 1).astype(_DTYPE).tofile(handle)
        written.append(target)
    return written


def load_operator_tables(path) -> dict[int, IntegrationOperators]:
    """Read tables written by save_operator_tables for degrees N_MIN..N_MAX."""
    directory = Path(path)
    stride = N_MAX + 1
    count = N_MAX - N_MIN + 1
    expected = count * stride * stride

    blocks = {}
    for name, filename in _TABLE_FILES.items():
        data = np.fromfile(directory / filename, dtype=_DTYPE)
        if data.size != expected:
            raise ValueError(
                f"{filename} contains {data.size} values, expected {expected}"
            )
        blocks[name] = data.reshape(count, stride, stride).transpose(0, 2, 1)

    result = {}
    for index, n in enumerate(range(N_MIN, N_MAX + 1)):
        m = n
        shapes = {
            "t2": (m + 1, n + 1),
            "p2": (n + 1, n),
            "t1": (m + 1, n),
            "p1": (n, n - 1),
            "ta": (m + 1, n - 1),
            "a": (n - 1, m + 1),
        }
        matrices = {
            name: np.array(blocks[name][index, :rows, :cols])
            for name, (rows, cols) in shapes.items()
        }
        result[n] = IntegrationOperators(degree=n, **matrices)
    return result


__all__ = [
    "N_MAX",
    "N_MIN",
    "IntegrationOperators",
    "chebyshev_matrix",
    "clenshaw_curtis_ivp2",
    "cosine_nodes",
    "integration_operators",
    "load_operator_tables",
    "lsq_chebyshev_fit",
    "save_operator_tables",
]

# Keep dataclass field names and table files in step.
assert {f.name for f in fields(IntegrationOperators)} - {"degree"} == set(_TABLE_FILES)