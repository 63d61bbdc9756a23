"""
common
Vector and angle helpers shared across the orbital modules
"""

from enum import Enum
from typing import List, Union

import numpy as np

# pylint: disable=W0105

K_HAT = np.array([0.0, 0.0, 1.0])  # reference pole
I_HAT = np.array([1.0, 0.0, 0.0])  # reference direction in the reference plane

"""
ROTATIONS
"""


def rot_z(theta: float) -> np.ndarray:
    """
    Rotation about Z Axis
    Adapted from Section 1.3.1 "Spacecraft Dynamics and Control", de Ruiter

    Args:
        theta (float): angle to rotate through [rad]

    Returns:
        np.ndarray: Rotation matrix about Z axis
    """
    return np.array(
        [
            [np.cos(theta), -np.sin(theta), 0],
            [np.sin(theta), np.cos(theta), 0],
            [0, 0, 1],
        ]
    )


def rot_x(theta: float) -> np.ndarray:
    """
    Rotation about X Axis
    Adapted from Section 1.3.1 "Spacecraft Dynamics and Control", de Ruiter

    Args:
        theta (float): angle to rotate through [rad]

    Returns:
        np.ndarray: Rotation matrix about X axis
    """
    return np.array(
        [
            [1, 0, 0],
            [0, np.cos(theta), -np.sin(theta)],
            [0, np.sin(theta), np.cos(theta)],
        ]
    )


def perifocal_to_inertial(raan: float, inc: float, arg_peri: float) -> np.ndarray:
    """
    3-1-3 rotation taking perifocal vectors into the reference frame
    Adapted from Eqn. 4.49 in "Orbital Mechanics for Engineering Students", Curtis

    Args:
        raan (float): right ascension of ascending node [rad]
        inc (float): inclination [rad]
        arg_peri (float): argument of periapsis [rad]

    Returns:
        np.ndarray: 3x3 rotation matrix
    """
    return rot_z(raan) @ rot_x(inc) @ rot_z(arg_peri)


def rotate_2d(vec: Union[List, np.ndarray], theta: float) -> np.ndarray:
    """
    Rotate planar vector counter-clockwise by theta [rad]
    """
    c, s = np.cos(theta), np.sin(theta)
    return np.array([c * vec[0] - s * vec[1], s * vec[0] + c * vec[1]])


"""
ANGLES
"""


def unit(vec: Union[List, np.ndarray]) -> np.ndarray:
    """
    Unit vector along vec; zero vectors are returned unchanged
    """
    vec = np.asarray(vec, dtype=float)
    mag = np.linalg.norm(vec)
    if mag == 0:
        return vec
    return vec / mag


def clamped_arccos(val: float) -> float:
    """
    arccos with its argument clamped into [-1, 1] to absorb rounding overshoot
    """
    return float(np.arccos(np.clip(val, -1.0, 1.0)))


def angle_between(vec_a: Union[List, np.ndarray], vec_b: Union[List, np.ndarray]) -> float:
    """
    Unsigned angle between two vectors

    Args:
        vec_a (np.ndarray): first vector
        vec_b (np.ndarray): second vector

    Returns:
        float: angle in [0, pi] [rad]
    """
    return clamped_arccos(np.dot(unit(vec_a), unit(vec_b)))


def wrap_two_pi(ang: float) -> float:
    """
    Normalize angle to [0, 2pi)
    """
    ang = float(np.mod(ang, 2 * np.pi))
    # np.mod can round up to exactly 2pi for tiny negative inputs
    return 0.0 if ang >= 2 * np.pi else ang


def wrap_pi(ang: float) -> float:
    """
    Normalize angle to [-pi, pi)
    """
    return wrap_two_pi(ang + np.pi) - np.pi


"""
DEGENERATE GEOMETRY POLICIES
"""


class NodePolicy(Enum):
    """
    How the line of nodes is obtained for an orbital plane
    """

    INCLINED = "inclined"  # node vector defined, RAAN measured to it
    EQUATORIAL = "equatorial"  # node vector vanishes, RAAN fixed at 0


class ApsisPolicy(Enum):
    """
    How the periapsis direction is obtained for an orbit
    """

    ECCENTRIC = "eccentric"  # eccentricity vector defines periapsis
    CIRCULAR = "circular"  # no periapsis, anomaly measured from the node line


def node_policy(node_vec: Union[List, np.ndarray]) -> NodePolicy:
    """
    Classify a node vector (pole x orbit normal)

    Args:
        node_vec (np.ndarray): node vector

    Returns:
        NodePolicy: EQUATORIAL when the vector is exactly zero, else INCLINED
    """
    if np.linalg.norm(node_vec) == 0:
        return NodePolicy.EQUATORIAL
    return NodePolicy.INCLINED


def apsis_policy(ecc_vec: Union[List, np.ndarray]) -> ApsisPolicy:
    """
    Classify an eccentricity vector

    Args:
        ecc_vec (np.ndarray): eccentricity vector

    Returns:
        ApsisPolicy: CIRCULAR when the vector is exactly zero, else ECCENTRIC
    """
    if np.linalg.norm(ecc_vec) == 0:
        return ApsisPolicy.CIRCULAR
    return ApsisPolicy.ECCENTRIC
