"""Adaptive Picard-Chebyshev integration of a perturbed orbit, and its command line."""

from __future__ import annotations

import argparse
import math
import time
from pathlib import Path

import numpy as np

from .chebyshev import integration_operators
from .egm2008 import GravityField, jacobi_integral
from .interpolate import interpolate
from .perturbed_gravity import EvaluationCounter, VariableFidelityGravity
from .preparation import prepare_segment_times
from .propagator import propagate
from .segmentation import polydegree_segments

DEFAULT_R0 = (7000.0, 0.0, 0.0)
DEFAULT_V0 = (0.0, 8.003798178945150, 0.0)
DEFAULT_TF = 3.0 * 7.121081577578024e03


def adaptive_picard_chebyshev(r0, v0, t0, tf, dt, field: GravityField, degree, tol, counter=None) -> np.ndarray:
    """Integrate from t0 to tf and return [x, y, z, vx, vy, vz] rows every dt seconds.

    The polynomial degree and segments per orbit are chosen to meet ``tol``;
    gravity evaluations are added to ``counter`` when one is given.
    """
    if not dt > 0.0:
        raise ValueError(f"output interval must be positive, got {dt}")
    if not tf > 0.0:
        raise ValueError(f"final time must be positive, got {tf}")
    r0 = np.array(r0, dtype=float)
    v0 = np.array(v0, dtype=float)
    if counter is None:
        counter = EvaluationCounter()
    gravity = VariableFidelityGravity(field, degree, tol, counter)

    scheme = polydegree_segments(r0, v0, gravity, tol)
    segment_times = prepare_segment_times(r0, v0, scheme.perigee_time, tol, scheme.segments)
    operators = integration_operators(scheme.degree)
    result = propagate(r0, v0, tf, scheme, segment_times, operators, gravity, tol)
    return interpolate(
        result.alpha,
        result.beta,
        scheme.degree,
        result.segment_times,
        result.w1,
        result.w2,
        t0,
        tf,
        dt,
    )


def _read_field(path: Path) -> GravityField:
    """Read normalised coefficients, one ``n m C S`` row per line."""
    rows = []
    with open(path, encoding="utf-8") as handle:
        for number, line in enumerate(handle, start=1):
            fields = line.split("#", 1)[0].replace(",", " ").split()
            if not fields:
                continue
            if len(fields) != 4:
                raise ValueError(f"{path}:{number}: expected 'n m C S', got {line.strip()!r}")
            n, m = int(fields[0]), int(fields[1])
            if n < 0 or not 0 <= m <= n:
                raise ValueError(f"{path}:{number}: invalid degree/order {n}, {m}")
            rows.append((n, m, float(fields[2]), float(fields[3])))
    if not rows:
        raise ValueError(f"{path}: no coefficients found")
    size = max(row[0] for row in rows) + 1
    c = np.zeros((size, size))
    s = np.zeros((size, size))
    for n, m, c_nm, s_nm in rows:
        c[n, m] = c_nm
        s[n, m] = s_nm
    return GravityField(c, s)


def main(argv=None) -> int:
    """Run a propagation test case and write [t, r, v, Jacobi deviation] rows."""
    parser = argparse.ArgumentParser(
        prog="picardcheby",
        description="Propagate an orbit with adaptive Picard-Chebyshev iteration.",
    )
    parser.add_argument("coefficients", type=Path, help="file of 'n m C S' gravity coefficients")
    parser.add_argument("--r0", nargs=3, type=float, default=list(DEFAULT_R0), help="initial position [km]")
    parser.add_argument("--v0", nargs=3, type=float, default=list(DEFAULT_V0), help="initial velocity [km/s]")
    parser.add_argument("--t0", type=float, default=0.0, help="initial time [s]")
    parser.add_argument("--tf", type=float, default=DEFAULT_TF, help="final time [s]")
    parser.add_argument("--dt", type=float, default=30.0, help="output interval [s]")
    parser.add_argument("--degree", type=float, default=70.0, help="gravity degree")
    parser.add_argument("--tol", type=float, default=1.0e-15, help="tolerance")
    parser.add_argument("--output", type=Path, default=Path("output.txt"), help="output file")
    args = parser.parse_args(argv)

    field = _read_field(args.coefficients)
    counter = EvaluationCounter()

    start = time.perf_counter()
    solution = adaptive_picard_chebyshev(
        args.r0, args.v0, args.t0, args.tf, args.dt, field, args.degree, args.tol, counter
    )
    elapsed = time.perf_counter() - start
    print(f"Elapsed time: {elapsed:f} s\t", end="")

    total = math.ceil(counter.full + counter.approx * 6.0**2 / args.degree**2)
    print(f"Func Evals: {total}\t", end="")

    soln_size = int(1.1 * (args.tf / args.dt))
    if soln_size == 1:
        soln_size = 2

    lines = []
    h0 = None
    h_max = 0.0
    t_curr = args.t0
    for row in solution[:soln_size]:
        h = jacobi_integral(field, t_curr, row, args.degree)
        if h0 is None:
            h0 = h
        deviation = abs((h - h0) / h0)
        h_max = max(h_max, deviation)
        lines.append("".join(f"{value:1.16E}\t" for value in (t_curr, *row, deviation)))
        t_curr += args.dt
        if t_curr > args.tf:
            break
    args.output.write_text("\n".join(lines), encoding="utf-8")

    print(f"Hmax {h_max:1.16E}")
    return 0


__all__ = ["adaptive_picard_chebyshev", "main"]