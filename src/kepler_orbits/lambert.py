"""
lambert
Lambert (two-point boundary value) transfer solvers in the plane and in space
"""

import bisect
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np

from . import astroconsts as ast
from .common import (
    I_HAT,
    K_HAT,
    NodePolicy,
    angle_between,
    clamped_arccos,
    node_policy,
    unit,
    wrap_pi,
    wrap_two_pi,
)
from .orbitalcore import (
    EARTH,
    CentralBody,
    OrbitElements,
    from_elements,
    to_statevector,
)
from .propagation import orbital_period, time_since_periapsis

# pylint: disable=W0105

logger = logging.getLogger(__name__)

"""
LAMBERT CLASSES
"""


class LambertStatus(Enum):
    """
    Outcome of a Lambert solve
    """

    SUCCESS = "success"  # converged within tolerance
    IMPRECISION = "imprecision"  # guesses stopped changing; approximate result
    MAX_ITERATIONS = "max_iterations"  # iteration cap reached
    FAIL_NAN = "fail_nan"  # transfer time left its domain; discard result
    FAIL_ECC = "fail_ecc"  # negative eccentricity; geometry unreachable


@dataclass
class LambertSolution2D:
    """
    Planar Lambert solution

    Args:
        orbit (OrbitElements): transfer orbit; None when the solve failed on eccentricity
        ta0 (float): true anomaly at the first radius [rad]
        ta1 (float): true anomaly at the second radius [rad]
        status (LambertStatus): solver outcome
    """

    orbit: Optional[OrbitElements]
    ta0: float
    ta1: float
    status: LambertStatus


@dataclass
class LambertSolution3D:
    """
    Spatial Lambert solution: state at both ends of the transfer

    Args:
        r0 (np.ndarray): initial position [m]
        v0 (np.ndarray): initial velocity [m/s]
        r1 (np.ndarray): final position [m]
        v1 (np.ndarray): final velocity [m/s]
        status (LambertStatus): solver outcome
    """

    r0: np.ndarray
    v0: np.ndarray
    r1: np.ndarray
    v1: np.ndarray
    status: LambertStatus


class _TransferSamples:
    """
    Ordered (ta0, transfer time error) samples of a single Lambert solve.
    The error grows monotonically from the zero-time bound to the
    infinite-time bound, so exactly one adjacent pair brackets the root.
    """

    def __init__(self, zero_bound: float, infinite_bound: float, target_dt: float):
        self.samples: List[Tuple[float, float]] = sorted(
            [(zero_bound, -target_dt), (infinite_bound, np.inf)]
        )
        self._kept_side: Optional[bool] = None
        self._streak = 0

    def bracket(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """
        Adjacent samples whose errors change sign
        """
        for left, right in zip(self.samples, self.samples[1:]):
            if (left[1] < 0) != (right[1] < 0):
                return left, right
        return self.samples[0], self.samples[-1]

    def has(self, ta0: float) -> bool:
        """
        Whether ta0 was already sampled
        """
        return any(ta0 == sample[0] for sample in self.samples)

    def add(self, ta0: float, err: float):
        """
        Record a sample and remember which end of the bracket survived it
        """
        bisect.insort(self.samples, (ta0, err))

        # a negative error replaces the short end, keeping the long end
        kept_side = err < 0
        self._streak = self._streak + 1 if kept_side == self._kept_side else 1
        self._kept_side = kept_side

    def next_guess(self) -> float:
        """
        Interpolate the bracket linearly; bisect while one end is unbounded or
        the same end has survived two updates in a row
        """
        (x0, f0), (x1, f1) = self.bracket()
        if not (np.isfinite(f0) and np.isfinite(f1)) or self._streak >= 2:
            return 0.5 * (x0 + x1)
        return x0 - f0 * (x1 - x0) / (f1 - f0)


"""
PLANAR GEOMETRY
"""


def nudge_transfer_angle(delta_ta: float) -> float:
    """
    Normalize a transfer angle to [0, 2pi) and push it 0.001 rad away from
    the singular transfer angles 0, pi and 2pi

    Args:
        delta_ta (float): transfer angle [rad]

    Returns:
        float: usable transfer angle [rad]
    """
    nudge = ast.TRANSFER_ANGLE_NUDGE
    delta_ta = wrap_two_pi(delta_ta)

    if delta_ta < nudge:
        return delta_ta + nudge
    if np.abs(delta_ta - np.pi) < nudge:
        return delta_ta + nudge if delta_ta >= np.pi else delta_ta - nudge
    if 2 * np.pi - delta_ta < nudge:
        return delta_ta - nudge
    return delta_ta


def _arc_passes_apoapsis(ta0: float, delta_ta: float) -> bool:
    start = wrap_two_pi(ta0)
    end = start + delta_ta
    return start <= np.pi <= end or end >= 3 * np.pi


def true_anomaly_bounds(r0: float, r1: float, delta_ta: float) -> Tuple[float, float]:
    """
    Limits of the initial true anomaly for single-revolution transfers.

    Every conic through both radii has e = |r1 - r0| / (c cos(ta0 - phi)),
    with c the chord and phi its direction angle (turned by pi when r1 < r0).
    The parabola whose arc would pass apoapsis marks the infinite-time limit.
    The zero-time limit is the rectilinear conic (ta0 - phi = +-pi/2) for
    transfers shorter than pi, and the conic grazing the focus
    (ta0 = -delta_ta / 2) for longer ones.

    Args:
        r0 (float): first radius [m]
        r1 (float): second radius [m]
        delta_ta (float): transfer angle in (0, 2pi) [rad]

    Returns:
        tuple[float, float]: zero-time bound, infinite-time bound [rad]
    """
    chord = np.sqrt(r0**2 + r1**2 - 2 * r0 * r1 * np.cos(delta_ta))
    phi = np.arctan2(r1 * np.sin(delta_ta), r0 - r1 * np.cos(delta_ta))
    if r1 < r0:
        phi += np.pi

    psi_parabolic = clamped_arccos(np.abs(r1 - r0) / chord)
    side = 1 if _arc_passes_apoapsis(phi + psi_parabolic, delta_ta) else -1

    infinite_bound = phi + side * psi_parabolic
    if delta_ta < np.pi:
        zero_bound = phi - side * np.pi / 2
    else:
        zero_bound = phi + wrap_pi(-delta_ta / 2 - phi)

    return float(zero_bound), float(infinite_bound)


def transfer_time(
    r0: float, r1: float, ta0: float, delta_ta: float, body: CentralBody = EARTH
) -> Tuple[float, Optional[OrbitElements]]:
    """
    Time to travel from r0 at ta0 to r1 at ta0 + delta_ta on the unique conic
    through both points with periapsis along the perifocal x axis

    Args:
        r0 (float): first radius [m]
        r1 (float): second radius [m]
        ta0 (float): true anomaly at r0 [rad]
        delta_ta (float): transfer angle [rad]
        body (CentralBody): body being orbited. Defaults to Earth.

    Returns:
        tuple[float, OrbitElements]: transfer time [s] (NaN when undefined) and
            the planar orbit at ta0; the orbit is None if eccentricity is negative
    """
    ta1 = ta0 + delta_ta

    with np.errstate(divide="ignore", invalid="ignore"):
        ecc = (r1 - r0) / (r0 * np.cos(ta0) - r1 * np.cos(ta1))

    if ecc < 0:
        return np.nan, None

    # parabolas are not evaluated separately
    if ecc == 1:
        ecc += ast.PARABOLIC_NUDGE

    semi_latus = r0 * (1 + ecc * np.cos(ta0))
    with np.errstate(divide="ignore", invalid="ignore"):
        semi_major = semi_latus / (1 - ecc**2)

    orbit0 = OrbitElements(semi_major, ecc, 0.0, 0.0, 0.0, ta0, body)
    orbit1 = replace(orbit0, theta_rad=ta1)

    dt = time_since_periapsis(orbit1) - time_since_periapsis(orbit0)
    if ecc < 1 and dt < 0:
        dt += orbital_period(orbit0)

    return dt, orbit0


"""
SOLVERS
"""


def solve_lambert_2d(
    r0: float,
    r1: float,
    delta_ta: float,
    target_dt: float,
    body: CentralBody = EARTH,
    tol: float = ast.LAMBERT_TIME_TOL,
    max_iter: int = ast.LAMBERT_MAX_ITER,
) -> LambertSolution2D:
    """
    Planar Lambert solver:
        Find the orbit that carries a body from radius r0 to radius r1 through
        a transfer angle delta_ta in target_dt seconds

    The initial true anomaly is searched between its zero-time and
    infinite-time bounds with an interpolating root finder.

    Args:
        r0 (float): first radius [m]
        r1 (float): second radius [m]
        delta_ta (float): transfer angle [rad]
        target_dt (float): desired transfer time [s]
        body (CentralBody): body being orbited. Defaults to Earth.
        tol (float): accepted transfer time error [s]. Defaults to 1 s
        max_iter (int): iteration cap. Defaults to 100

    Returns:
        LambertSolution2D: planar orbit, true anomalies at both ends and status
    """
    delta_ta = nudge_transfer_angle(delta_ta)

    # equal radii collapse the family of conics onto the circle
    if np.isclose(r0, r1, rtol=ast.EQUAL_RADII_RTOL, atol=0):
        r1 = r0 * (1 + ast.EQUAL_RADII_RTOL)

    zero_bound, infinite_bound = true_anomaly_bounds(r0, r1, delta_ta)
    samples = _TransferSamples(zero_bound, infinite_bound, target_dt)

    status = LambertStatus.MAX_ITERATIONS
    orbit: Optional[OrbitElements] = None
    ta0 = np.nan
    count = 0

    while count < max_iter:
        count += 1
        guess = samples.next_guess()

        if samples.has(guess):
            status = LambertStatus.IMPRECISION
            break

        dt, trial = transfer_time(r0, r1, guess, delta_ta, body)

        if trial is None:
            status = LambertStatus.FAIL_ECC
            orbit, ta0 = None, np.nan
            break

        orbit, ta0 = trial, guess

        if np.isnan(dt):
            status = LambertStatus.FAIL_NAN
            break

        samples.add(guess, dt - target_dt)

        if np.abs(target_dt - dt) < tol:
            status = LambertStatus.SUCCESS
            break

    if status in (LambertStatus.FAIL_ECC, LambertStatus.FAIL_NAN):
        logger.warning(
            "Lambert 2D failed (%s): r0=%.0f m, r1=%.0f m, dta=%.4f rad, dt=%.0f s",
            status.value,
            r0,
            r1,
            delta_ta,
            target_dt,
        )
    else:
        logger.debug("Lambert 2D %s after %d iterations", status.value, count)

    if orbit is None:
        return LambertSolution2D(None, np.nan, np.nan, status)

    return LambertSolution2D(
        orbit, wrap_two_pi(ta0), wrap_two_pi(ta0 + delta_ta), status
    )


def transfer_angle(r0: Union[List, np.ndarray], r1: Union[List, np.ndarray]) -> float:
    """
    Prograde transfer angle from r0 to r1: the angle between them, measured
    the long way round when their cross product points below the reference plane

    Args:
        r0 (np.ndarray): initial position [m]
        r1 (np.ndarray): final position [m]

    Returns:
        float: transfer angle in [0, 2pi) [rad]
    """
    angle = angle_between(r0, r1)
    if np.dot(np.cross(r0, r1), K_HAT) < 0:
        angle = 2 * np.pi - angle
    return angle


def _collinear_normal(r0: np.ndarray) -> np.ndarray:
    # any plane holds a collinear pair; pick one that contains r0
    if r0[2] == 0:
        return K_HAT

    normal = np.cross(r0, K_HAT)
    if np.linalg.norm(normal) == 0:
        normal = np.cross(r0, I_HAT)
    return normal


def transfer_plane_orientation(
    r0: Union[List, np.ndarray], r1: Union[List, np.ndarray]
) -> Tuple[float, float, np.ndarray, np.ndarray]:
    """
    Orientation of the plane through the origin, r0 and r1

    The plane normal is taken with a non-negative pole component so that the
    in-plane up vector (perpendicular to the line of nodes, inside the
    transfer plane) never points below the reference plane. Collinear
    positions take the plane through r0 and the pole (or through r0 and the
    x axis when r0 lies on the pole); only collinear positions inside the
    reference plane keep the reference plane itself. A transfer plane lying
    in the reference plane uses the x axis as its line of nodes.

    Args:
        r0 (np.ndarray): initial position [m]
        r1 (np.ndarray): final position [m]

    Returns:
        tuple: raan [rad], inclination [rad], unit node line, unit in-plane up vector
    """
    normal = np.cross(r0, r1)
    if np.linalg.norm(normal) == 0:
        normal = _collinear_normal(np.asarray(r0, dtype=float))
    normal = unit(normal)
    if normal[2] < 0:
        normal = -normal

    node = np.cross(K_HAT, normal)
    if node_policy(node) is NodePolicy.EQUATORIAL:
        node = I_HAT
    node = unit(node)
    up = np.cross(normal, node)

    raan = wrap_two_pi(np.arctan2(node[1], node[0]))
    inc = float(np.arctan2(up[2], normal[2]))

    return raan, inc, node, up


def solve_lambert_3d(
    r0: Union[List, np.ndarray],
    r1: Union[List, np.ndarray],
    target_dt: float,
    body: CentralBody = EARTH,
    tol: float = ast.LAMBERT_TIME_TOL,
    max_iter: int = ast.LAMBERT_MAX_ITER,
) -> LambertSolution3D:
    """
    Lambert's Problem Solver:
        Solve for Velocity at Time 1, V0, and at Time 2, V1
        Given Position at Time 1, R0, and at Time 2, R1, and delta-T

    The orbit shape comes from the planar solver; the transfer plane
    orientation is rebuilt from the two position vectors. Transfers are
    always prograde about the reference pole.

    Args:
        r0 (np.ndarray): position at time 1 [m]
        r1 (np.ndarray): position at time 2 [m]
        target_dt (float): time between r0, r1 [s]
        body (CentralBody): body being orbited. Defaults to Earth.
        tol (float): accepted transfer time error [s]. Defaults to 1 s
        max_iter (int): iteration cap. Defaults to 100

    Returns:
        LambertSolution3D: position and velocity at both ends and solver status
            (velocities are NaN when the planar solve produced no orbit)
    """
    r0 = np.asarray(r0, dtype=float)
    r1 = np.asarray(r1, dtype=float)

    delta_ta = transfer_angle(r0, r1)
    planar = solve_lambert_2d(
        np.linalg.norm(r0),
        np.linalg.norm(r1),
        delta_ta,
        target_dt,
        body,
        tol=tol,
        max_iter=max_iter,
    )

    # failed or stopped before any transfer orbit was evaluated
    if planar.orbit is None:
        return LambertSolution3D(
            r0, np.full(3, np.nan), r1, np.full(3, np.nan), planar.status
        )

    raan, inc, node, up = transfer_plane_orientation(r0, r1)

    # argument of latitude of r0, measured from the node line towards up
    arg_lat0 = np.arctan2(np.dot(r0, up), np.dot(r0, node))
    arg_peri = wrap_two_pi(arg_lat0 - planar.ta0)

    orbit = from_elements(
        planar.orbit.semi_major,
        planar.orbit.ecc,
        inc,
        raan,
        arg_peri,
        planar.ta0,
        body,
    )
    state0 = to_statevector(orbit)
    state1 = to_statevector(replace(orbit, theta_rad=planar.ta1))

    return LambertSolution3D(state0.r, state0.v, state1.r, state1.v, planar.status)
