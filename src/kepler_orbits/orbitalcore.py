"""
orbitalcore
Core module for orbital elements, state vectors and the conversions between them
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple, Tuple, Union

import numpy as np

from . import astroconsts as ast
from .common import (
    K_HAT,
    ApsisPolicy,
    NodePolicy,
    apsis_policy,
    clamped_arccos,
    node_policy,
    perifocal_to_inertial,
    rotate_2d,
    unit,
    wrap_two_pi,
)

# pylint: disable=W0105

logger = logging.getLogger(__name__)

"""
ORBITAL CLASSES
"""


@dataclass(frozen=True)
class CentralBody:
    """
    Numeric projection of the body being orbited

    Args:
        mu (float): gravitational parameter [m3/s2]
        radius (float): physical radius [m]
        atmosphere_alt (float): altitude of the top of the atmosphere [m]
        name (str): label used in reports
    """

    mu: float
    radius: float
    atmosphere_alt: float = 0.0
    name: str = ""

    def radius_to_alt(self, radius: float) -> float:
        """
        Altitude above the surface of a radius from the body center
        """
        return radius - self.radius

    def alt_to_radius(self, altitude: float) -> float:
        """
        Radius from the body center of an altitude above the surface
        """
        return altitude + self.radius

    def alt_above_atmosphere_to_radius(self, altitude: float) -> float:
        """
        Radius from the body center of an altitude above the atmosphere
        """
        return altitude + self.radius + self.atmosphere_alt


EARTH = CentralBody(ast.EARTH_MU, ast.EARTH_RAD, ast.EARTH_ATMO_ALT, "Earth")


@dataclass
class OrbitElements:
    # pylint: disable=R0902
    """
    Classical orbital elements of a single orbit about a central body

    The body is borrowed, never copied; it does not take part in equality.
    Exactly circular or equatorial inputs are nudged by a small epsilon so
    that node and eccentricity vectors stay defined, and the true anomaly is
    always kept in [0, 2pi).

    Args:
        semi_major (float): semi-major axis [m], negative for hyperbolas
        ecc (float): eccentricity [-]
        inc_rad (float): inclination [rad]
        raan_rad (float): right ascension of ascending node [rad]
        arg_peri_rad (float): argument of periapsis [rad]
        theta_rad (float): true anomaly [rad]
        body (CentralBody): body being orbited. Defaults to Earth.

    Returns:
        OrbitElements: object with user-supplied parameters
    """

    semi_major: float
    ecc: float
    inc_rad: float
    raan_rad: float
    arg_peri_rad: float
    theta_rad: float
    body: CentralBody = field(default=EARTH, repr=False, compare=False)

    def __post_init__(self):
        # only exact zeros are nudged; NaN and regular values pass through
        if self.ecc == 0:
            self.ecc = ast.ECC_EPSILON

        if self.inc_rad == 0:
            self.inc_rad = ast.INC_EPSILON

        self.theta_rad = wrap_two_pi(self.theta_rad)

    @property
    def mu(self) -> float:
        """
        Gravitational parameter of the central body [m3/s2]
        """
        return self.body.mu

    @property
    def semi_latus(self) -> float:
        """
        Semi-latus rectum [m]
        """
        return self.semi_major * (1 - self.ecc**2)

    @property
    def h(self) -> float:
        """
        Specific angular momentum [m2/s]
        """
        return np.sqrt(self.mu * self.semi_latus)

    def __str__(self) -> str:
        return (
            f"Central Body: {self.body.name}\n"
            f"Semi-Major Axis [m]: {self.semi_major}\n"
            f"Eccentricity [~]: {self.ecc}\n"
            f"Inclination [rad]: {self.inc_rad}\n"
            f"RAAN [rad]: {self.raan_rad}\n"
            f"Argument of Periapsis [rad]: {self.arg_peri_rad}\n"
            f"True Anomaly [rad]: {self.theta_rad}\n"
            f"Periapsis [m]: {periapsis(self)}\n"
            f"Apoapsis [m]: {apoapsis(self)}\n"
        )

    def __eq__(self, other):
        rtol = 1e-3
        atol = 1e-3
        if isinstance(other, OrbitElements):
            return bool(
                np.isclose(self.semi_major, other.semi_major, rtol=rtol, atol=atol)
                and np.isclose(self.ecc, other.ecc, rtol=rtol, atol=atol)
                and np.isclose(self.inc_rad, other.inc_rad, rtol=rtol, atol=atol)
                and np.isclose(self.raan_rad, other.raan_rad, rtol=rtol, atol=atol)
                and np.isclose(
                    self.arg_peri_rad, other.arg_peri_rad, rtol=rtol, atol=atol
                )
                and np.isclose(self.theta_rad, other.theta_rad, rtol=rtol, atol=atol)
            )

        return False

    def to_arr(self) -> np.ndarray:
        """
        Method to convert object into numpy array

        Returns:
            np.ndarray: array of elements:
                [semi_major, ecc, inc_rad, raan_rad, arg_peri_rad, theta_rad]
        """
        return np.array(
            [
                self.semi_major,
                self.ecc,
                self.inc_rad,
                self.raan_rad,
                self.arg_peri_rad,
                self.theta_rad,
            ]
        )

    @staticmethod
    def from_arr(elements: np.ndarray, body: CentralBody = EARTH):
        """
        Method to create OrbitElements object from array.
        Requires array to be exactly 6 elements in the correct order (see below)

        Args:
            elements (np.ndarray): array of elements:
                [semi_major, ecc, inc_rad, raan_rad, arg_peri_rad, theta_rad]
            body (CentralBody): body being orbited. Defaults to Earth.

        Returns:
            OrbitElements: orbit described by the array
        """
        if len(elements) != 6:
            raise ValueError(
                "Invalid number of elements. Must be 6 in the correct order: "
                "[semi_major, ecc, inc_rad, raan_rad, arg_peri_rad, theta_rad]"
            )
        return OrbitElements(*elements, body=body)


@dataclass
class StateVector:
    """
    Position and velocity of a single orbit in the reference frame

    Args:
        r (np.ndarray): position [m]
        v (np.ndarray): velocity [m/s]
    """

    r: np.ndarray
    v: np.ndarray

    def __post_init__(self):
        self.r = np.asarray(self.r, dtype=float)
        self.v = np.asarray(self.v, dtype=float)
        if self.r.shape != (3,) or self.v.shape != (3,):
            raise ValueError("Position and velocity must be 3-element vectors")

    def to_arr(self) -> np.ndarray:
        """
        Method to convert StateVector into array [Rx, Ry, Rz, Vx, Vy, Vz]
        """
        return np.array([*self.r, *self.v])

    @staticmethod
    def from_arr(arr: Union[List, np.ndarray]):
        """
        Method to convert array into StateVector type
        Array must be of length 6 and in the following order:
        [Rx, Ry, Rz, Vx, Vy, Vz]
        """
        if len(arr) != 6:
            raise ValueError("Improper length for state vector in 3-D")
        return StateVector(arr[:3], arr[3:])

    def __eq__(self, other):
        """
        Method to check if two state vectors are equivalent
        """
        if isinstance(other, StateVector):
            return bool(
                np.allclose(self.r, other.r) and np.allclose(self.v, other.v)
            )

        return False

    def __str__(self) -> str:
        return f"{self.to_arr()}"


"""
CONSTRUCTION
"""


def from_elements(
    semi_major: float,
    ecc: float,
    inc: float,
    raan: float,
    arg_peri: float,
    theta: float,
    body: CentralBody = EARTH,
) -> OrbitElements:
    """
    Construct an orbit from classical orbital elements.
    Exactly zero eccentricity and inclination are nudged to 1e-12.

    Args:
        semi_major (float): semi-major axis [m]
        ecc (float): eccentricity [-]
        inc (float): inclination [rad]
        raan (float): right ascension of ascending node [rad]
        arg_peri (float): argument of periapsis [rad]
        theta (float): true anomaly [rad]
        body (CentralBody): body being orbited. Defaults to Earth.

    Returns:
        OrbitElements: constructed orbit
    """
    return OrbitElements(semi_major, ecc, inc, raan, arg_peri, theta, body)


def from_apsides(
    apsis1: float, apsis2: float, inc: float, body: CentralBody = EARTH
) -> OrbitElements:
    """
    Construct an orbit from its two apsis radii; the order of the apsides does
    not matter. RAAN, argument of periapsis and true anomaly are not given by
    this construction and are set to zero.

    Args:
        apsis1 (float): radius of first apsis [m]
        apsis2 (float): radius of second apsis [m]
        inc (float): inclination [rad]
        body (CentralBody): body being orbited. Defaults to Earth.

    Returns:
        OrbitElements: constructed orbit
    """
    apo, peri = max(apsis1, apsis2), min(apsis1, apsis2)
    semi_major = (apo + peri) / 2
    ecc = (apo - peri) / (apo + peri)

    return OrbitElements(semi_major, ecc, inc, 0.0, 0.0, 0.0, body)


class _Geometry(NamedTuple):
    """
    Vectors derived from a state vector that orient an orbit
    """

    r: np.ndarray
    v: np.ndarray
    h_vec: np.ndarray
    ecc_vec: np.ndarray
    node_vec: np.ndarray


def _plane_inclined(geo: _Geometry) -> Tuple[float, float]:
    n_hat = unit(geo.node_vec)
    raan = clamped_arccos(n_hat[0])
    if n_hat[1] < 0:
        raan = 2 * np.pi - raan

    inc = clamped_arccos(np.dot(K_HAT, unit(geo.h_vec)))
    return raan, inc


def _plane_equatorial(geo: _Geometry) -> Tuple[float, float]:
    # RAAN undefined: fix it at zero and pick prograde/retrograde from h
    inc = 0.0 if np.dot(K_HAT, unit(geo.h_vec)) > 0 else np.pi
    return 0.0, inc


def _periapsis_inclined(geo: _Geometry) -> float:
    arg = clamped_arccos(np.dot(unit(geo.node_vec), unit(geo.ecc_vec)))
    if geo.ecc_vec[2] < 0:
        arg = 2 * np.pi - arg
    return arg


def _periapsis_equatorial(geo: _Geometry) -> float:
    arg = clamped_arccos(unit(geo.ecc_vec)[0])
    if geo.h_vec[2] * geo.ecc_vec[1] > 0:
        return arg
    return 2 * np.pi - arg


def _periapsis_circular(geo: _Geometry) -> float:
    # pylint: disable=W0613
    return 0.0


def _anomaly_from_periapsis(geo: _Geometry) -> float:
    theta = clamped_arccos(np.dot(unit(geo.ecc_vec), unit(geo.r)))
    if np.dot(geo.r, geo.v) < 0:
        theta = 2 * np.pi - theta
    return theta


def _anomaly_from_node(geo: _Geometry) -> float:
    # argument of latitude
    theta = clamped_arccos(np.dot(unit(geo.node_vec), unit(geo.r)))
    if geo.r[2] < 0:
        theta = 2 * np.pi - theta
    return theta


def _anomaly_from_x_axis(geo: _Geometry) -> float:
    # true longitude, measured in the direction of motion
    theta = clamped_arccos(unit(geo.r)[0])
    if geo.h_vec[2] * geo.r[1] < 0:
        theta = 2 * np.pi - theta
    return theta


# (plane, periapsis, anomaly) rules for each degenerate combination
ORIENTATION_RULES: Dict[
    Tuple[NodePolicy, ApsisPolicy],
    Tuple[Callable, Callable, Callable],
] = {
    (NodePolicy.INCLINED, ApsisPolicy.ECCENTRIC): (
        _plane_inclined,
        _periapsis_inclined,
        _anomaly_from_periapsis,
    ),
    (NodePolicy.INCLINED, ApsisPolicy.CIRCULAR): (
        _plane_inclined,
        _periapsis_circular,
        _anomaly_from_node,
    ),
    (NodePolicy.EQUATORIAL, ApsisPolicy.ECCENTRIC): (
        _plane_equatorial,
        _periapsis_equatorial,
        _anomaly_from_periapsis,
    ),
    (NodePolicy.EQUATORIAL, ApsisPolicy.CIRCULAR): (
        _plane_equatorial,
        _periapsis_circular,
        _anomaly_from_x_axis,
    ),
}


def orientation_from_vectors(
    r: np.ndarray, v: np.ndarray, h_vec: np.ndarray, ecc_vec: np.ndarray
) -> Tuple[float, float, float, float]:
    """
    Resolve RAAN, inclination, argument of periapsis and true anomaly through
    the degenerate-geometry rule table

    Args:
        r (np.ndarray): position [m]
        v (np.ndarray): velocity [m/s]
        h_vec (np.ndarray): specific angular momentum vector [m2/s]
        ecc_vec (np.ndarray): eccentricity vector [-]

    Returns:
        tuple[float, float, float, float]: raan, inc, arg_peri, theta [rad]
    """
    node_vec = np.cross(K_HAT, h_vec)
    geo = _Geometry(r, v, h_vec, ecc_vec, node_vec)
    plane, peri, anomaly = ORIENTATION_RULES[
        (node_policy(node_vec), apsis_policy(ecc_vec))
    ]

    raan, inc = plane(geo)
    return wrap_two_pi(raan), inc, wrap_two_pi(peri(geo)), wrap_two_pi(anomaly(geo))


def from_statevector(
    r: Union[List, np.ndarray],
    v: Union[List, np.ndarray],
    body: CentralBody = EARTH,
) -> OrbitElements:
    """
    Calculate Classical Orbital Elements from State Vector
    Adapted from Algorithm 9: "Fundamentals of Astrodynamics and Applications", Vallado

    Args:
        r (np.ndarray): position [m]
        v (np.ndarray): velocity [m/s]
        body (CentralBody): body being orbited. Defaults to Earth.

    Returns:
        OrbitElements: orbit passing through the state
    """
    r = np.asarray(r, dtype=float)
    v = np.asarray(v, dtype=float)
    mu = body.mu

    r_mag = np.linalg.norm(r)
    v_mag = np.linalg.norm(v)

    semi_major = 1 / (2 / r_mag - v_mag**2 / mu)
    h_vec = np.cross(r, v)
    ecc_vec = np.cross(v, h_vec) / mu - r / r_mag

    raan, inc, arg, theta = orientation_from_vectors(r, v, h_vec, ecc_vec)

    return from_elements(
        semi_major, np.linalg.norm(ecc_vec), inc, raan, arg, theta, body
    )


"""
ORBIT CALCULATIONS
"""


def flight_path_angle(ecc: float, theta: float) -> float:
    """
    Flight path angle above the local horizontal
    Adapted from Eqn. 2.51 in "Orbital Mechanics for Engineering Students", Curtis

    Args:
        ecc (float): eccentricity [-]
        theta (float): true anomaly [rad]

    Returns:
        float: flight path angle [rad]
    """
    return float(np.arctan(ecc * np.sin(theta) / (1 + ecc * np.cos(theta))))


def orbital_speed(orbit: OrbitElements, radius: float) -> float:
    """
    Vis-viva speed at a radius on the orbit [m/s]
    """
    return float(np.sqrt(orbit.mu * (2 / radius - 1 / orbit.semi_major)))


def periapsis(orbit: OrbitElements) -> float:
    """
    Periapsis radius [m]
    """
    return orbit.semi_major * (1 - orbit.ecc)


def apoapsis(orbit: OrbitElements) -> float:
    """
    Apoapsis radius [m]; infinite for open orbits
    """
    if orbit.ecc >= 1:
        return np.inf
    return orbit.semi_major * (1 + orbit.ecc)


def velocity_2d(
    r_mag: float, v_mag: float, theta: float, gamma: float
) -> np.ndarray:
    """
    Perifocal velocity from speed and flight path angle

    Args:
        r_mag (float): radius [m]
        v_mag (float): speed [m/s]
        theta (float): true anomaly [rad]
        gamma (float): flight path angle [rad]

    Returns:
        np.ndarray: 2-element perifocal velocity [m/s]
    """
    r_vec = r_mag * np.array([np.cos(theta), np.sin(theta)])

    # local horizontal is the radial direction turned by +90 deg, gamma tips it outward
    horizontal = np.array([-r_vec[1], r_vec[0]])
    vel = rotate_2d(horizontal, -gamma)

    return v_mag * vel / np.linalg.norm(vel)


def to_statevector(orbit: OrbitElements) -> StateVector:
    """
    Convert orbital elements to State Vector: R, V
    Adapted from Alg. 4.5 from "Orbital Mechanics for Engineering Students", Curtis

    Args:
        orbit (OrbitElements): orbit to convert

    Returns:
        StateVector: position and velocity in the reference frame
    """
    ecc = orbit.ecc
    theta = orbit.theta_rad

    gamma = flight_path_angle(ecc, theta)
    r_mag = orbit.semi_latus / (1 + ecc * np.cos(theta))
    v_mag = orbital_speed(orbit, r_mag)

    p_r = r_mag * np.array([np.cos(theta), np.sin(theta), 0])
    p_v = np.array([*velocity_2d(r_mag, v_mag, theta, gamma), 0])

    q_bar = perifocal_to_inertial(orbit.raan_rad, orbit.inc_rad, orbit.arg_peri_rad)

    return StateVector(q_bar @ p_r, q_bar @ p_v)


"""
ANOMALY CONVERSIONS
"""


def eccentric_anomaly(ecc: float, theta: float) -> float:
    """
    Eccentric anomaly in (-pi, pi] of an elliptic orbit from true anomaly
    """
    return float(2 * np.arctan(np.sqrt((1 - ecc) / (1 + ecc)) * np.tan(theta / 2)))


def hyperbolic_anomaly(ecc: float, theta: float) -> float:
    """
    Unsigned hyperbolic anomaly of an open orbit from true anomaly.
    NaN when theta lies beyond the asymptotes.
    """
    with np.errstate(invalid="ignore"):
        return float(
            np.arccosh((ecc + np.cos(theta)) / (1 + ecc * np.cos(theta)))
        )


def true_anomaly_from_eccentric(ecc: float, ecc_anom: float) -> float:
    """
    True anomaly in [0, 2pi) from eccentric anomaly
    """
    return wrap_two_pi(
        2
        * np.arctan2(
            np.sqrt(1 + ecc) * np.sin(ecc_anom / 2),
            np.sqrt(1 - ecc) * np.cos(ecc_anom / 2),
        )
    )


def true_anomaly_from_hyperbolic(ecc: float, hyp_anom: float) -> float:
    """
    True anomaly in [0, 2pi) from signed hyperbolic anomaly
    """
    return wrap_two_pi(
        2 * np.arctan(np.sqrt((ecc + 1) / (ecc - 1)) * np.tanh(hyp_anom / 2))
    )


def true_anomaly_from_mean_anomaly(
    orbit: OrbitElements,
    mean_anom: float,
    tol: float = ast.KEPLER_ANOMALY_TOL,
    max_iter: int = ast.KEPLER_MAX_ITER,
) -> float:
    """
    Solve Kepler's Equation for the true anomaly using Newton's Iteration
    Adapted from Alg. 3.1 and 3.2 from "Orbital Mechanics for Engineering Students", Curtis

    Args:
        orbit (OrbitElements): orbit supplying the eccentricity
        mean_anom (float): mean anomaly [rad]
        tol (float): Newton correction at which to stop [rad]. Defaults to 1e-6
        max_iter (int): iteration cap. Defaults to 500

    Returns:
        float: true anomaly [rad]
    """
    ecc = orbit.ecc
    hyperbolic = ecc >= 1

    if hyperbolic:
        anom = np.arcsinh(mean_anom / ecc)
    else:
        anom = mean_anom

    # functions to compute anomaly using Newton's Iteration
    def f(x: float) -> float:
        if hyperbolic:
            return ecc * np.sinh(x) - x - mean_anom
        return x - ecc * np.sin(x) - mean_anom

    def fp(x: float) -> float:
        if hyperbolic:
            return ecc * np.cosh(x) - 1
        return 1 - ecc * np.cos(x)

    err = 1.0
    count = 0
    while err > tol and count < max_iter:
        step = f(anom) / fp(anom)
        anom = anom - step
        err = np.abs(step)
        count += 1

    if err > tol:
        logger.warning(
            "Kepler's equation did not converge after %d iterations (M=%.6f, e=%.6f)",
            count,
            mean_anom,
            ecc,
        )

    if hyperbolic:
        return true_anomaly_from_hyperbolic(ecc, anom)
    return true_anomaly_from_eccentric(ecc, anom)
