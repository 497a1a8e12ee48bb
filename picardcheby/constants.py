"""Physical constants and canonical units used throughout the integrator."""

import math

PI = 3.1415926535897932
"""Pi, as used by every angular computation in the package."""

MU = 3.986004418e5
"""Earth's gravitational parameter [km^3/s^2]."""

MU_CANONICAL = 1.0
"""Gravitational parameter in canonical units."""

OMEGA = 7292115.0e-11
"""Angular speed of the Earth [rad/s]."""

REQ = 6378.137
"""Equatorial radius of the Earth [km]."""

DU = REQ
"""Canonical distance unit [km]."""

TU = math.sqrt(DU**3 / MU)
"""Canonical time unit [s]."""