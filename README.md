# picardcheby

Adaptive Picard-Chebyshev numerical integration for perturbed two-body
orbits around the Earth.

The integrator splits each orbit into segments of equal true-anomaly span,
fits position and velocity on each segment with Chebyshev polynomials, and
refines the fit by Picard iteration with a linear error-feedback correction.
Gravity is evaluated with variable fidelity: a cheap J2–J6 zonal model while
the iteration is far from converged, and a full spherical harmonic series
(degree chosen from the orbital radius and the requested tolerance) as it
closes in. After every orbit the segment breaks are re-aligned to the
osculating perigee so that the segmentation stays valid.

Units throughout are kilometres, seconds and radians.

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Command line

The package installs the `picardcheby` command (it runs
`picardcheby.integrator.main`). It needs one argument, a file of gravity
coefficients:

```
picardcheby coefficients.txt
```

The coefficient file holds one `n m C S` row per line: degree, order and the
fully normalised C and S coefficients. Fields may be separated by spaces or
commas; anything after `#` is ignored. Terms of degree 0 and 1 are not used.

Options:

| option | default | meaning |
| --- | --- | --- |
| `--r0 X Y Z` | `7000 0 0` | initial position [km] |
| `--v0 VX VY VZ` | `0 8.003798178945150 0` | initial velocity [km/s] |
| `--t0` | `0` | initial time [s] |
| `--tf` | three periods of the default orbit | final time [s] |
| `--dt` | `30` | output interval [s] |
| `--degree` | `70` | highest gravity degree to use |
| `--tol` | `1e-15` | tolerance |
| `--output` | `output.txt` | output file |

The command prints the elapsed time, the equivalent number of full gravity
evaluations and the largest relative deviation of the Jacobi integral. The
output file has one tab-separated row per output time:
`t x y z vx vy vz |ΔH/H0|`, where H is the Jacobi integral in the
Earth-fixed frame.

## Using the library

```python
import numpy as np

from picardcheby.egm2008 import GravityField
from picardcheby.integrator import adaptive_picard_chebyshev
from picardcheby.perturbed_gravity import EvaluationCounter

c = np.zeros((3, 3))
s = np.zeros((3, 3))
c[2, 0] = -4.84165e-4          # normalised C(2,0)
field = GravityField(c, s)

counter = EvaluationCounter()
solution = adaptive_picard_chebyshev(
    (7000.0, 0.0, 0.0), (0.0, 8.0, 0.0),
    t0=0.0, tf=6000.0, dt=60.0,
    field=field, degree=2, tol=1e-12, counter=counter,
)
# solution has rows [x, y, z, vx, vy, vz]
```

`adaptive_picard_chebyshev(r0, v0, t0, tf, dt, field, degree, tol, counter=None)`
chooses the polynomial degree and segments per orbit, propagates, and
returns the solution at `t0, t0+dt, ...` up to `ceil(tf/dt)` steps. An output
time that falls exactly on a segment boundary appears once for each segment
it bounds. The field must cover every degree up to `degree`.
`counter.full` accumulates (used degree / requested degree)² per full-field
evaluation and `counter.approx` counts J2–J6 evaluations.

Building blocks:

- `picardcheby.constants`: `MU`, `REQ`, `OMEGA`, `PI` and the canonical
  units `DU` and `TU`.
- `picardcheby.chebyshev`: `cosine_nodes`, `chebyshev_matrix`,
  `lsq_chebyshev_fit`, `clenshaw_curtis_ivp2` and the cached
  `integration_operators(degree)` (degrees `N_MIN`=10 to `N_MAX`=80), all
  returning `IntegrationOperators`; `save_operator_tables` /
  `load_operator_tables` write and read the operators as binary tables.
- `picardcheby.kepler`: `rv_to_elements` (returns `OrbitalElements`),
  `newton_f_and_g`, the F and G propagator `f_and_g`, and `perigee_approx`.
- `picardcheby.frames`: `eci_to_ecef` and `ecef_to_eci`.
- `picardcheby.feedback`: `error_feedback`, the two-body gravity-gradient
  correction.
- `picardcheby.egm2008`: `legendre`, `GravityField.acceleration`,
  `GravityField.potential` and `jacobi_integral`.
- `picardcheby.radial_gravity`: `radial_gravity_degree`, the gravity degree
  needed at a radius for a tolerance between 1e-2 and 1e-15.
- `picardcheby.perturbed_gravity`: `j2_j6_acceleration`,
  `EvaluationCounter` and `VariableFidelityGravity`.
- `picardcheby.segmentation` (`polydegree_segments`, `SegmentScheme`),
  `picardcheby.preparation` (`prepare_segment_times`, `SegmentTimes`),
  `picardcheby.picard_iteration` (`picard_iteration`, `SegmentSolution`),
  `picardcheby.reosculation` (`reosculate_perigee`, `ReosculationResult`),
  `picardcheby.propagator` (`propagate`, `Propagation`) and
  `picardcheby.interpolate` (`output_times`, `interpolate`): the stages of
  the integrator, usable one by one.

## What the package does not do

- It ships no gravity model coefficients. You supply the normalised C and S
  coefficients yourself, to `GravityField` or in a file for the command.
- Only elliptical orbits are handled; hyperbolic or parabolic states are
  rejected.
- Segments are always warm-started from the two-body F and G solution; the
  propagator does not hot-start later orbits from earlier ones.
- Integration operators are computed in memory when first needed; the
  integrator does not read the tables written by `save_operator_tables`.