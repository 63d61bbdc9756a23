"""
propagation
Keplerian (two-body) time propagation of orbits and state vectors
"""

import logging
from dataclasses import replace
from typing import Callable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from scipy.integrate import solve_ivp
from scipy.integrate._ivp.ivp import OdeResult

from . import astroconsts as ast
from .orbitalcore import (
    EARTH,
    CentralBody,
    OrbitElements,
    StateVector,
    eccentric_anomaly,
    from_statevector,
    hyperbolic_anomaly,
    to_statevector,
    true_anomaly_from_eccentric,
    true_anomaly_from_hyperbolic,
)

# pylint: disable=W0105

logger = logging.getLogger(__name__)

STATE_LABELS = ["RX", "RY", "RZ", "VX", "VY", "VZ"]

"""
TIMING
"""


def mean_motion(orbit: OrbitElements) -> float:
    """
    Mean motion of the orbit [rad/s]
    """
    return float(np.sqrt(orbit.mu / np.abs(orbit.semi_major) ** 3))


def orbital_period(orbit: OrbitElements) -> float:
    """
    Orbital period [s]; infinite for parabolic and hyperbolic orbits
    """
    if orbit.ecc >= 1:
        return np.inf
    return 2 * np.pi / mean_motion(orbit)


def time_since_periapsis(orbit: OrbitElements) -> float:
    """
    Time elapsed since periapsis passage
    Adapted from Sections 3.4 and 3.5 of "Orbital Mechanics for Engineering Students", Curtis

    Elliptic orbits report a time in [0, T); hyperbolic orbits report a
    negative time before periapsis (true anomaly beyond pi) and NaN beyond
    the asymptotes.

    Args:
        orbit (OrbitElements): orbit at its current true anomaly

    Returns:
        float: time since periapsis [s]
    """
    ecc = orbit.ecc
    theta = orbit.theta_rad
    n = mean_motion(orbit)

    if ecc < 1:
        ecc_anom = eccentric_anomaly(ecc, theta)
        t = (ecc_anom - ecc * np.sin(ecc_anom)) / n
        if t < 0:
            t += orbital_period(orbit)
        return t

    hyp_anom = hyperbolic_anomaly(ecc, theta)
    t = (ecc * np.sinh(hyp_anom) - hyp_anom) / n
    if theta > np.pi:
        t = -t
    return t


"""
PROPAGATION
"""


def _solve_kepler_time(
    kepler: Callable[[float], float],
    kepler_prime: Callable[[float], float],
    mean_target: float,
    seed: float,
    n: float,
    tol: float,
    max_iter: int,
) -> Tuple[float, float, int]:
    """
    Newton's Iteration on a Kepler equation, judged in the time domain.
    A trial step that leaves the function's domain (NaN/overflow) is halved
    and retried instead of ending the search.

    Returns:
        tuple[float, float, int]: anomaly, residual time [s], iterations used
    """
    anom = seed
    err = (kepler(anom) - mean_target) / n
    correction = np.inf
    scale = 1.0
    count = 0

    while (
        np.abs(err) > tol or np.abs(correction) > ast.PROPAGATION_ANOMALY_TOL
    ) and count < max_iter:
        count += 1
        correction = scale * (kepler(anom) - mean_target) / kepler_prime(anom)
        trial = anom - correction

        with np.errstate(over="ignore", invalid="ignore"):
            trial_err = (kepler(trial) - mean_target) / n

        if not np.isfinite(trial_err):
            scale /= 2
            continue

        anom, err, scale = trial, trial_err, 1.0

    return anom, err, count


def propagate_by_time(
    orbit: OrbitElements,
    dt: float,
    tol: float = ast.PROPAGATION_TIME_TOL,
    max_iter: int = ast.PROPAGATION_MAX_ITER,
) -> OrbitElements:
    """
    Move an orbit forward (or backward, dt < 0) in time along its conic.
    The inverse Kepler problem is solved per branch (eccentric anomaly for
    ellipses, hyperbolic anomaly for hyperbolas) until the time residual is
    below tol. If max_iter is reached the best estimate is returned.

    Args:
        orbit (OrbitElements): initial orbit
        dt (float): time to propagate [s]
        tol (float): time residual accepted [s]. Defaults to 1 s
        max_iter (int): iteration cap. Defaults to 500

    Returns:
        OrbitElements: orbit with updated true anomaly
    """
    ecc = orbit.ecc
    n = mean_motion(orbit)
    target = time_since_periapsis(orbit) + dt

    if np.isnan(target):
        logger.warning("Cannot propagate orbit outside its valid anomaly range")
        return replace(orbit, theta_rad=np.nan)

    if ecc < 1:
        target = np.mod(target, orbital_period(orbit))
        mean_target = n * target
        seed = mean_target + ecc / 2 if mean_target < np.pi else mean_target - ecc / 2

        def kepler(x: float) -> float:
            return x - ecc * np.sin(x)

        def kepler_prime(x: float) -> float:
            return 1 - ecc * np.cos(x)

    else:
        mean_target = n * target
        seed = np.arcsinh(mean_target / ecc)

        def kepler(x: float) -> float:
            return ecc * np.sinh(x) - x

        def kepler_prime(x: float) -> float:
            return ecc * np.cosh(x) - 1

    anom, err, count = _solve_kepler_time(
        kepler, kepler_prime, mean_target, seed, n, tol, max_iter
    )

    if np.abs(err) > tol:
        logger.warning(
            "Propagation stopped after %d iterations with %.3f s residual",
            count,
            err,
        )

    if ecc < 1:
        theta = true_anomaly_from_eccentric(ecc, anom)
    else:
        theta = true_anomaly_from_hyperbolic(ecc, anom)

    return replace(orbit, theta_rad=theta)


def propagate_by_true_anomaly(orbit: OrbitElements, delta_theta: float) -> OrbitElements:
    """
    Move an orbit along its conic by a change in true anomaly [rad]
    """
    return replace(orbit, theta_rad=orbit.theta_rad + delta_theta)


def propagate_statevector_by_time(
    state: StateVector, body: CentralBody, dt: float
) -> StateVector:
    """
    Propagate a state vector by dt seconds

    Args:
        state (StateVector): initial state
        body (CentralBody): body being orbited
        dt (float): time to propagate [s]

    Returns:
        StateVector: propagated state
    """
    orbit = from_statevector(state.r, state.v, body)
    return to_statevector(propagate_by_time(orbit, dt))


def propagate_statevector_by_true_anomaly(
    state: StateVector, body: CentralBody, delta_theta: float
) -> StateVector:
    """
    Propagate a state vector by a change in true anomaly

    Args:
        state (StateVector): initial state
        body (CentralBody): body being orbited
        delta_theta (float): change in true anomaly [rad]

    Returns:
        StateVector: propagated state
    """
    orbit = from_statevector(state.r, state.v, body)
    return to_statevector(propagate_by_true_anomaly(orbit, delta_theta))


"""
TRAJECTORIES
"""


def kepler_trajectory(
    orbit: OrbitElements, times: Union[List, np.ndarray]
) -> pd.DataFrame:
    """
    Sample the analytic two-body trajectory at times relative to the orbit's
    epoch. Output layout matches `solve_two_body`.

    Args:
        orbit (OrbitElements): orbit at time zero
        times (np.ndarray): sample times [s]

    Returns:
        pd.DataFrame: TIME, RX, RY, RZ, VX, VY, VZ columns
    """
    rows = [to_statevector(propagate_by_time(orbit, t)).to_arr() for t in times]
    frame = pd.DataFrame(rows, columns=STATE_LABELS)
    frame.insert(0, "TIME", np.asarray(times, dtype=float))
    return frame


def two_body(time: float, state: np.ndarray, mu: float = ast.EARTH_MU) -> np.ndarray:
    """
    Basic Two-Body Propagation; to be used in ODE function
    Args:
        time[float]: time argument for ODE
        state[np.ndarray]: state vector of two body propagation
            in form of [Rx, Ry, Rz, Vx, Vy, Vz]
        mu[float, Optional]: gravitational parameter of central body.
            Defaults to EarthMU

    Returns:
        np.ndarray: derivative of state vector in two-body orbit
    """
    # pylint: disable=W0613
    _r_vec = state[:3]
    _v_vec = state[3:]
    _r_norm = np.linalg.norm(_r_vec)
    _a_vec = -mu * _r_vec / (_r_norm**3)

    return np.array([*_v_vec, *_a_vec])


def solve_two_body(
    state0: Union[np.ndarray, StateVector],
    tspan: Union[List, np.ndarray],
    body: CentralBody = EARTH,
    t_eval: Optional[np.ndarray] = None,
    atol: float = 1e-8,
    rtol: float = 1e-8,
) -> pd.DataFrame:
    """
    Numerically integrate the two-body problem; reference for the analytic
    propagator. Formats output into dataframe for simple extraction; can be
    extracted with `frame.TIME, frame.RX, frame.RY, etc.`

    Args:
        state0 (Union[np.ndarray, StateVector]): initial state either as 6-element
            vector or StateVector class
        tspan (np.ndarray): 2-element vector for initial and final time [s]
        body (CentralBody): body being orbited. Defaults to Earth.
        t_eval (np.ndarray, Optional): times at which to store the solution
        atol (float): Absolute tolerance for the integrator. Defaults to 1e-8
        rtol (float): Relative tolerance for the integrator. Defaults to 1e-8

    Returns:
        pd.DataFrame: dataframe of time and state history of orbit given conditions
    """
    # convert to array if in state vector form
    if isinstance(state0, StateVector):
        state0 = state0.to_arr()

    ode_sol: OdeResult = solve_ivp(
        two_body,
        tspan,
        state0,
        args=(body.mu,),
        t_eval=t_eval,
        method="DOP853",
        atol=atol,
        rtol=rtol,
    )

    if not ode_sol.success:
        logger.warning("Two-body integration failed: %s", ode_sol.message)

    data = {"TIME": ode_sol["t"]}
    for label, values in zip(STATE_LABELS, ode_sol["y"]):
        data[label] = values

    return pd.DataFrame(data)
