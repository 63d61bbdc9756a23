"""
maneuvers
Impulsive maneuver delta-v: apsis changes, Hohmann transfers and
insertion from hyperbolic approach
"""

import logging
from typing import NamedTuple

import numpy as np

from .orbitalcore import EARTH, CentralBody, from_apsides, orbital_speed

logger = logging.getLogger(__name__)


class HohmannTransfer(NamedTuple):
    """
    Two-impulse transfer between coplanar circular orbits

    Args:
        duration (float): time of flight, half the transfer orbit period [s]
        dv_departure (float): delta-v at the initial orbit [m/s]
        dv_arrival (float): delta-v at the target orbit [m/s]
    """

    duration: float
    dv_departure: float
    dv_arrival: float


def apsis_maneuver_dv(
    static_apsis: float,
    initial_apsis: float,
    new_apsis: float,
    body: CentralBody = EARTH,
) -> float:
    """
    Delta-v of a burn at one apsis that moves the opposite apsis

    Args:
        static_apsis (float): radius of the apsis where the burn happens [m]
        initial_apsis (float): radius of the opposite apsis before the burn [m]
        new_apsis (float): radius of the opposite apsis after the burn [m]
        body (CentralBody): body being orbited. Defaults to Earth.

    Returns:
        float: delta-v magnitude [m/s]
    """
    initial_orbit = from_apsides(static_apsis, initial_apsis, 0, body)
    new_orbit = from_apsides(static_apsis, new_apsis, 0, body)

    v0 = orbital_speed(initial_orbit, static_apsis)
    v1 = orbital_speed(new_orbit, static_apsis)

    return float(np.abs(v1 - v0))


def hohmann_transfer(r0: float, r1: float, body: CentralBody = EARTH) -> HohmannTransfer:
    """
    Hohmann transfer between circular orbits of radius r0 and r1
    Adapted from Section 6.2 of "Orbital Mechanics for Engineering Students", Curtis

    Args:
        r0 (float): radius of the initial circular orbit [m]
        r1 (float): radius of the target circular orbit [m]
        body (CentralBody): body being orbited. Defaults to Earth.

    Returns:
        HohmannTransfer: duration and both delta-v's
    """
    semi_major = (r0 + r1) / 2
    duration = np.pi * np.sqrt(semi_major**3 / body.mu)

    dv_dep = apsis_maneuver_dv(r0, r0, r1, body)
    dv_arr = apsis_maneuver_dv(r1, r0, r1, body)

    logger.debug(
        "Hohmann transfer: r0=%.0f m, r1=%.0f m, dv_dep=%.1f m/s, dv_arr=%.1f m/s",
        r0,
        r1,
        dv_dep,
        dv_arr,
    )
    return HohmannTransfer(float(duration), dv_dep, dv_arr)


def dv_circ(body: CentralBody, periapsis_alt: float, vinf: float) -> float:
    """
    Delta-v to drop from a hyperbolic approach into a circular orbit at periapsis

    Args:
        body (CentralBody): body being approached
        periapsis_alt (float): altitude of periapsis above the surface [m]
        vinf (float): hyperbolic excess speed [m/s]

    Returns:
        float: delta-v [m/s]
    """
    rp = body.alt_to_radius(periapsis_alt)
    return float(np.sqrt(2 * body.mu / rp + vinf**2) - np.sqrt(body.mu / rp))


def dv_capture(body: CentralBody, periapsis_alt: float, vinf: float) -> float:
    """
    Delta-v to be captured (parabolic speed) from a hyperbolic approach at periapsis

    Args:
        body (CentralBody): body being approached
        periapsis_alt (float): altitude of periapsis above the surface [m]
        vinf (float): hyperbolic excess speed [m/s]

    Returns:
        float: delta-v [m/s]
    """
    rp = body.alt_to_radius(periapsis_alt)
    return float(np.sqrt(2 * body.mu / rp + vinf**2) - np.sqrt(2 * body.mu / rp))
