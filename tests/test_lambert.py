"""
test_lambert
Test cases for the planar and spatial Lambert solvers
"""
import pytest
import numpy as np

from kepler_orbits import lambert
from kepler_orbits import orbitalcore as core
from kepler_orbits import propagation as prop
from kepler_orbits.common import angle_between
from kepler_orbits.lambert import LambertSolution2D, LambertStatus

# pylint: disable=C0103

# Curtis examples use mu = 398600 km3/s2
CURTIS_EARTH = core.CentralBody(398_600e9, 6378e3, name="Earth (Curtis)")


class TestTransferAngle:
    """
    Transfer angle handling
    """

    @pytest.mark.parametrize(
        "delta_ta, expect",
        [
            (0.0, 1e-3),
            (1.0, 1.0),
            (np.pi, np.pi + 1e-3),
            (np.pi - 5e-4, np.pi - 1.5e-3),
            (2 * np.pi - 5e-4, 2 * np.pi - 1.5e-3),
            (-0.5, 2 * np.pi - 0.5),
        ],
    )
    def test_nudge(self, delta_ta, expect):
        assert np.isclose(lambert.nudge_transfer_angle(delta_ta), expect)

    def test_prograde_angle(self):
        assert np.isclose(lambert.transfer_angle([1, 0, 0], [0, 1, 0]), np.pi / 2)
        assert np.isclose(lambert.transfer_angle([1, 0, 0], [0, -1, 0]), 1.5 * np.pi)

    def test_plane_equatorial(self):
        raan, inc, node, up = lambert.transfer_plane_orientation([1, 0, 0], [0, 1, 0])
        assert raan == 0
        assert inc == 0
        assert np.isclose(node, [1, 0, 0]).all()
        assert np.isclose(up, [0, 1, 0]).all()

    def test_plane_inclined(self):
        r1 = [0, np.cos(0.5), np.sin(0.5)]
        raan, inc, node, up = lambert.transfer_plane_orientation([1, 0, 0], r1)
        assert np.isclose(raan, 0)
        assert np.isclose(inc, 0.5)
        assert np.isclose(node, [1, 0, 0]).all()
        assert np.isclose(up, r1).all()

    @pytest.mark.parametrize("r0", [[1, 0, 1], [0, 0, 1], [0, 0, -1], [1, 2, 0]])
    def test_plane_collinear(self, r0):
        """
        Opposite positions still get a plane that contains them
        """
        r0 = np.array(r0, dtype=float)
        _, _, node, up = lambert.transfer_plane_orientation(r0, -2 * r0)

        assert np.isclose(np.dot(np.cross(node, up), r0), 0)
        assert np.isclose(np.linalg.norm(node), 1)
        assert np.isclose(np.dot(node, up), 0)

    def test_plane_collinear_inclined(self):
        raan, inc, node, up = lambert.transfer_plane_orientation([1, 0, 1], [-2, 0, -2])
        assert np.isclose(raan, 0)
        assert np.isclose(inc, np.pi / 2)
        assert np.isclose(node, [1, 0, 0]).all()
        assert np.isclose(up, [0, 0, 1]).all()


class TestPlanarGeometry:
    """
    Bounds on the initial true anomaly and the transfer time between them
    """

    r0 = 1e7
    r1 = 2e7
    delta_ta = np.pi / 2

    def test_bounds(self):
        zero_bound, infinite_bound = lambert.true_anomaly_bounds(
            self.r0, self.r1, self.delta_ta
        )
        phi = np.arctan2(2, 1)
        assert np.isclose(zero_bound, phi - np.pi / 2)
        assert np.isclose(infinite_bound, 2 * phi)

    def test_time_grows_between_bounds(self):
        zero_bound, infinite_bound = lambert.true_anomaly_bounds(
            self.r0, self.r1, self.delta_ta
        )
        guesses = np.linspace(zero_bound, infinite_bound, 7)[1:-1]
        times = [
            lambert.transfer_time(self.r0, self.r1, ta0, self.delta_ta)[0]
            for ta0 in guesses
        ]

        assert np.isfinite(times).all()
        assert (np.diff(times) > 0).all()

    def test_transfer_orbit_passes_radii(self):
        dt, orbit = lambert.transfer_time(self.r0, self.r1, 0.8, self.delta_ta)
        r_start = orbit.semi_latus / (1 + orbit.ecc * np.cos(0.8))
        r_end = orbit.semi_latus / (1 + orbit.ecc * np.cos(0.8 + self.delta_ta))

        assert dt > 0
        assert np.isclose(r_start, self.r0)
        assert np.isclose(r_end, self.r1)

    def test_negative_eccentricity(self):
        phi = np.arctan2(self.r1 * np.sin(self.delta_ta), self.r0 - self.r1 * np.cos(self.delta_ta))
        dt, orbit = lambert.transfer_time(self.r0, self.r1, phi + np.pi, self.delta_ta)
        assert np.isnan(dt)
        assert orbit is None


class TestLambert2D:
    """
    Recover a known planar orbit from its transfer time
    """

    @pytest.mark.parametrize("ta0, delta_ta", [(0.5, 2.0), (4.0, 4.0), (5.5, 0.7)])
    def test_self_consistent(self, ta0, delta_ta):
        """
        Time of flight taken from propagation along the source orbit
        """
        semi, ecc = 2e7, 0.3
        source = core.from_elements(semi, ecc, 0, 0, 0, ta0)
        arrival = prop.propagate_by_true_anomaly(source, delta_ta)

        r0 = np.linalg.norm(core.to_statevector(source).r)
        r1 = np.linalg.norm(core.to_statevector(arrival).r)

        dt = prop.time_since_periapsis(arrival) - prop.time_since_periapsis(source)
        if dt < 0:
            dt += prop.orbital_period(source)

        sol = lambert.solve_lambert_2d(r0, r1, delta_ta, dt)

        assert sol.status is LambertStatus.SUCCESS
        assert np.isclose(sol.orbit.ecc, ecc, rtol=1e-3, atol=0)
        assert np.isclose(sol.orbit.semi_major, semi, rtol=1e-3, atol=0)
        assert np.isclose(sol.ta0, ta0, atol=5e-3)
        assert np.isclose(sol.ta1, np.mod(ta0 + delta_ta, 2 * np.pi), atol=5e-3)

    def test_equal_radii(self):
        sol = lambert.solve_lambert_2d(1e7, 1e7, 1.0, 1500.0)
        assert sol.status not in (LambertStatus.FAIL_ECC, LambertStatus.FAIL_NAN)
        assert sol.orbit is not None

    def test_iteration_cap(self):
        sol = lambert.solve_lambert_2d(1e7, 2e7, np.pi / 2, 5000.0, max_iter=1)
        assert sol.status is LambertStatus.MAX_ITERATIONS


class TestLambert3D:
    """
    Spatial Lambert solutions
    """

    def test_curtis_example(self):
        """
        Example 5.2 in Curtis
        """
        r0 = np.array([5000e3, 10000e3, 2100e3])
        r1 = np.array([-14600e3, 2500e3, 7000e3])

        sol = lambert.solve_lambert_3d(r0, r1, 3600.0, CURTIS_EARTH)

        assert sol.status is LambertStatus.SUCCESS
        assert np.isclose(sol.v0, [-5992.5, 1925.4, 3245.6], rtol=5e-3, atol=20).all()
        assert np.isclose(sol.v1, [-3312.5, -4196.6, -385.29], rtol=5e-3, atol=20).all()

    def test_recovers_propagated_orbit(self):
        orbit = core.from_elements(2e7, 0.3, 0.6, 1.0, 0.4, 0.5)
        dt = 5000.0
        start = core.to_statevector(orbit)
        end = core.to_statevector(prop.propagate_by_time(orbit, dt))

        sol = lambert.solve_lambert_3d(start.r, end.r, dt)

        assert sol.status is LambertStatus.SUCCESS
        assert np.isclose(sol.r0, start.r, rtol=1e-3).all()
        assert np.isclose(sol.r1, end.r, rtol=1e-3).all()
        assert np.isclose(sol.v0, start.v, rtol=5e-3, atol=5).all()
        assert np.isclose(sol.v1, end.v, rtol=5e-3, atol=5).all()

    def test_eccentricity_failure(self, monkeypatch):
        def failed_2d(*args, **kwargs):
            return LambertSolution2D(None, np.nan, np.nan, LambertStatus.FAIL_ECC)

        monkeypatch.setattr(lambert, "solve_lambert_2d", failed_2d)

        r0 = np.array([7e6, 0, 0])
        r1 = np.array([0, 8e6, 0])
        sol = lambert.solve_lambert_3d(r0, r1, 3000.0)

        assert sol.status is LambertStatus.FAIL_ECC
        assert np.isnan(sol.v0).all()
        assert np.isnan(sol.v1).all()
        assert np.equal(sol.r0, r0).all()

    def test_opposite_positions_out_of_plane(self):
        """
        Positions half a turn apart keep the plane that contains them
        """
        r0 = np.array([1e7, 0, 5e6])
        r1 = -1.5 * r0

        sol = lambert.solve_lambert_3d(r0, r1, 20_000.0)

        assert sol.status is LambertStatus.SUCCESS
        assert np.isclose(sol.r0, r0, rtol=1e-6, atol=1e-3).all()

        # r1 is reached through the nudged transfer angle
        assert np.isclose(np.linalg.norm(sol.r1), np.linalg.norm(r1), rtol=1e-6)
        assert angle_between(sol.r1, r1) < 2e-3

        # both ends and velocities stay in the x-z plane
        assert np.isclose([sol.r1[1], sol.v0[1], sol.v1[1]], 0, atol=1e-3).all()

    def test_no_iterations(self):
        r0 = np.array([7e6, 0, 0])
        r1 = np.array([0, 8e6, 0])
        sol = lambert.solve_lambert_3d(r0, r1, 3000.0, max_iter=0)

        assert sol.status is LambertStatus.MAX_ITERATIONS
        assert np.isnan(sol.v0).all()
        assert np.isnan(sol.v1).all()
