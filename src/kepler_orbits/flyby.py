"""
flyby
Hyperbolic departure, arrival and flyby geometry from heliocentric velocities

All velocity vectors are given in the same inertial frame; the excess
velocities are taken relative to the velocity of the body.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np

from .common import K_HAT, angle_between, unit, wrap_two_pi
from .orbitalcore import CentralBody

logger = logging.getLogger(__name__)

Vector = Union[List, np.ndarray]


class HyperbolaType(Enum):
    """
    Kind of hyperbolic trajectory about a body
    """

    DEPARTURE = "departure"
    ARRIVAL = "arrival"
    FLYBY = "flyby"


@dataclass
class HyperbolaLeg:
    """
    Orientation of one asymptote of a hyperbola

    Args:
        decl (float): declination of the excess velocity above the reference plane [rad]
        bplane_angle (float): angle of the excess velocity's reference-plane
            projection from the x axis [rad]
        bvazi (float, Optional): B-vector azimuth from the projected negative
            pole, flybys only [rad]
    """

    decl: float
    bplane_angle: float
    bvazi: Optional[float] = None


@dataclass
class HyperbolaParameters:
    """
    Parameters of a departure, arrival or flyby hyperbola

    Args:
        type (HyperbolaType): kind of hyperbola
        rp (float): periapsis radius [m]
        c3_energy (float): characteristic energy [m2/s2]
        incoming (HyperbolaLeg, Optional): incoming leg; None for departures
        outgoing (HyperbolaLeg, Optional): outgoing leg; None for arrivals
    """

    # pylint: disable=W0622
    type: HyperbolaType
    rp: float
    c3_energy: float
    incoming: Optional[HyperbolaLeg] = None
    outgoing: Optional[HyperbolaLeg] = None


def excess_velocities(
    v_arr: Vector, v_dep: Vector, v_body: Vector
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Hyperbolic excess velocities of the incoming and outgoing legs [m/s]
    """
    v_body = np.asarray(v_body, dtype=float)
    return (
        np.asarray(v_arr, dtype=float) - v_body,
        np.asarray(v_dep, dtype=float) - v_body,
    )


def flyby_periapsis(
    v_arr: Vector, v_dep: Vector, v_body: Vector, body: CentralBody
) -> float:
    """
    Periapsis radius of the flyby hyperbola that turns the incoming excess
    velocity onto the outgoing one

    beta is half the angle between the asymptotes, i.e. (pi - turn angle) / 2,
    and cos(beta) = 1 / e.

    Args:
        v_arr (np.ndarray): velocity on arrival [m/s]
        v_dep (np.ndarray): velocity on departure [m/s]
        v_body (np.ndarray): velocity of the body [m/s]
        body (CentralBody): body flown by

    Returns:
        float: periapsis radius [m]
    """
    vinf_in, vinf_out = excess_velocities(v_arr, v_dep, v_body)
    beta = (np.pi - angle_between(vinf_in, vinf_out)) / 2

    return float((1 / np.cos(beta) - 1) * body.mu / np.dot(vinf_in, vinf_in))


def flyby_inclination(v_arr: Vector, v_dep: Vector, v_body: Vector) -> float:
    """
    Inclination of the flyby plane (spanned by both excess velocities)
    against the reference plane

    Args:
        v_arr (np.ndarray): velocity on arrival [m/s]
        v_dep (np.ndarray): velocity on departure [m/s]
        v_body (np.ndarray): velocity of the body [m/s]

    Returns:
        float: inclination [rad]
    """
    vinf_in, vinf_out = excess_velocities(v_arr, v_dep, v_body)
    return angle_between(np.cross(vinf_in, vinf_out), K_HAT)


def _bvector_azimuth(vinf: np.ndarray, h_hat: np.ndarray) -> float:
    s_hat = unit(vinf)
    b_hat = unit(np.cross(s_hat, h_hat))

    # negative pole projected into the B-plane
    ref = unit(-K_HAT + np.dot(K_HAT, s_hat) * s_hat)
    azimuth = angle_between(ref, b_hat)

    if h_hat[2] < 0:
        azimuth = -azimuth
    return azimuth


def _leg(vinf: np.ndarray, h_hat: Optional[np.ndarray] = None) -> HyperbolaLeg:
    decl = float(np.arcsin(np.clip(unit(vinf)[2], -1.0, 1.0)))
    bplane_angle = wrap_two_pi(np.arctan2(vinf[1], vinf[0]))

    bvazi = None if h_hat is None else _bvector_azimuth(vinf, h_hat)
    return HyperbolaLeg(decl, bplane_angle, bvazi)


def hyperbola_parameters(
    v_arr: Optional[Vector],
    v_dep: Optional[Vector],
    v_body: Vector,
    body: CentralBody,
    periapsis_alt: float,
    hyp_type: HyperbolaType,
) -> HyperbolaParameters:
    """
    Parameters of a hyperbola about a body.
    The arrival velocity is ignored for departures, the departure velocity for
    arrivals, and the periapsis altitude for flybys (it follows from the turn).

    Args:
        v_arr (np.ndarray): velocity on arrival [m/s]
        v_dep (np.ndarray): velocity on departure [m/s]
        v_body (np.ndarray): velocity of the body [m/s]
        body (CentralBody): body of the hyperbola
        periapsis_alt (float): altitude of periapsis above the surface [m]
        hyp_type (HyperbolaType): kind of hyperbola

    Returns:
        HyperbolaParameters: periapsis, C3 and leg orientation
    """
    v_body = np.asarray(v_body, dtype=float)

    if hyp_type is HyperbolaType.DEPARTURE:
        vinf_out = np.asarray(v_dep, dtype=float) - v_body
        return HyperbolaParameters(
            hyp_type,
            body.alt_to_radius(periapsis_alt),
            float(np.dot(vinf_out, vinf_out)),
            outgoing=_leg(vinf_out),
        )

    if hyp_type is HyperbolaType.ARRIVAL:
        vinf_in = np.asarray(v_arr, dtype=float) - v_body
        return HyperbolaParameters(
            hyp_type,
            body.alt_to_radius(periapsis_alt),
            float(np.dot(vinf_in, vinf_in)),
            incoming=_leg(vinf_in),
        )

    vinf_in, vinf_out = excess_velocities(v_arr, v_dep, v_body)
    h_hat = unit(np.cross(vinf_in, vinf_out))
    rp = flyby_periapsis(v_arr, v_dep, v_body, body)

    logger.debug(
        "Flyby hyperbola: periapsis alt=%.0f m, vinf_in=%.1f m/s, vinf_out=%.1f m/s",
        body.radius_to_alt(rp),
        np.linalg.norm(vinf_in),
        np.linalg.norm(vinf_out),
    )
    return HyperbolaParameters(
        hyp_type,
        rp,
        float(np.dot(vinf_in, vinf_in)),
        incoming=_leg(vinf_in, h_hat),
        outgoing=_leg(vinf_out, h_hat),
    )


def is_flyby_viable(
    v_arr: Vector,
    v_dep: Vector,
    v_body: Vector,
    body: CentralBody,
    precision: float,
) -> bool:
    """
    A flyby is viable when the excess speed is conserved within precision and
    the periapsis clears the surface and atmosphere of the body

    Args:
        v_arr (np.ndarray): velocity on arrival [m/s]
        v_dep (np.ndarray): velocity on departure [m/s]
        v_body (np.ndarray): velocity of the body [m/s]
        body (CentralBody): body flown by
        precision (float): allowed excess speed mismatch [m/s]

    Returns:
        bool: True if the flyby can be flown
    """
    vinf_in, vinf_out = excess_velocities(v_arr, v_dep, v_body)
    if np.abs(np.linalg.norm(vinf_in) - np.linalg.norm(vinf_out)) >= precision:
        return False

    rp = flyby_periapsis(v_arr, v_dep, v_body, body)
    return bool(rp > body.alt_above_atmosphere_to_radius(0.0))
