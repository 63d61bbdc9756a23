"""
ASTROCONSTS
Astronomical constants and solver settings relevant for Orbital Mechanics
All values in SI units: [m], [s], [rad]
"""

# pylint: disable=pointless-string-statement
"""
EARTH CONSTANTS
"""
EARTH_MU = 3.986004418e14  # [m3/s2] Earth Gravitational Parameter
EARTH_RAD = 6_378_137.0  # [m] Earth Equatorial Radius
EARTH_ATMO_ALT = 100_000.0  # [m] Karman line used as atmosphere ceiling

"""
SUN CONSTANTS
"""
SUN_MU = 1.32712440018e20  # [m3/s2] Sun gravitational parameter
SUN_RAD = 6.957e8  # [m] Sun radius
AU = 149_597_870_700.0  # [m] conversion of 1AU to m

"""
MISC PLANETARY PARAMETERS
"""
MARS_MU = 4.282837e13  # [m3/s2] Mars gravitational parameter
MARS_RAD = 3_396_200.0  # [m] Mars equatorial radius
MARS_ATMO_ALT = 125_000.0  # [m]

JUPITER_MU = 1.26686534e17  # [m3/s2] Jupiter gravitational parameter
JUPITER_RAD = 71_492_000.0  # [m] Jupiter equatorial radius

"""
NUMERICAL SETTINGS
"""
ECC_EPSILON = 1e-12  # [~] replaces an exactly circular eccentricity
INC_EPSILON = 1e-12  # [rad] replaces an exactly equatorial inclination
PARABOLIC_NUDGE = 1e-10  # [~] pushes e == 1 onto the hyperbolic branch
EQUAL_RADII_RTOL = 1e-9  # [~] separation applied to equal Lambert radii
TRANSFER_ANGLE_NUDGE = 1e-3  # [rad] keeps Lambert transfer angles off 0, pi, 2pi

KEPLER_ANOMALY_TOL = 1e-6  # [rad] mean -> true anomaly Newton correction
KEPLER_MAX_ITER = 500

PROPAGATION_TIME_TOL = 1.0  # [s]
PROPAGATION_ANOMALY_TOL = 1e-12  # [rad] final Newton polish
PROPAGATION_MAX_ITER = 500

LAMBERT_TIME_TOL = 1.0  # [s]
LAMBERT_MAX_ITER = 100
