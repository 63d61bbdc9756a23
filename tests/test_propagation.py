"""
test_propagation
Test cases for Keplerian propagation against closed-form timing and
numerical integration of the two-body problem
"""
import pytest
import numpy as np

from kepler_orbits import astroconsts as ast
from kepler_orbits import orbitalcore as core
from kepler_orbits import propagation as prop

# pylint: disable=C0103


@pytest.fixture
def ellipse() -> core.OrbitElements:
    return core.from_elements(1e7, 0.2, 0.5, 1.0, 2.0, 0.3)


@pytest.fixture
def hyperbola() -> core.OrbitElements:
    return core.from_elements(-2e7, 1.5, 0.6, 1.0, 2.0, 0.4)


class TestTiming:
    """
    Period and time since periapsis
    """

    def test_period(self, ellipse):
        expect = 2 * np.pi * np.sqrt(1e7**3 / ast.EARTH_MU)
        assert np.isclose(prop.orbital_period(ellipse), expect)

    def test_open_orbit_period(self, hyperbola):
        assert prop.orbital_period(hyperbola) == np.inf

    def test_time_at_apsides(self, ellipse):
        period = prop.orbital_period(ellipse)

        at_peri = core.from_elements(1e7, 0.2, 0.5, 1.0, 2.0, 0.0)
        at_apo = core.from_elements(1e7, 0.2, 0.5, 1.0, 2.0, np.pi)

        assert np.isclose(prop.time_since_periapsis(at_peri), 0, atol=1e-6)
        assert np.isclose(prop.time_since_periapsis(at_apo), period / 2)

    def test_time_in_second_half(self):
        """
        Elliptic times are reported in [0, T)
        """
        orbit = core.from_elements(1e7, 0.2, 0.5, 1.0, 2.0, 5.0)
        t = prop.time_since_periapsis(orbit)
        assert prop.orbital_period(orbit) / 2 < t < prop.orbital_period(orbit)

    def test_hyperbolic_before_periapsis(self, hyperbola):
        incoming = core.from_elements(-2e7, 1.5, 0.6, 1.0, 2.0, -0.4)
        t_out = prop.time_since_periapsis(hyperbola)
        t_in = prop.time_since_periapsis(incoming)

        assert t_out > 0
        assert np.isclose(t_in, -t_out)


class TestPropagation:
    """
    Analytic time propagation
    """

    @pytest.mark.parametrize("dt", [600.0, 5000.0, 25_000.0, -3000.0])
    def test_reversible(self, ellipse, dt):
        there = prop.propagate_by_time(ellipse, dt)
        back = prop.propagate_by_time(there, -dt)
        assert np.isclose(back.theta_rad, ellipse.theta_rad, atol=1e-4)

    def test_hyperbolic_reversible(self, hyperbola):
        there = prop.propagate_by_time(hyperbola, 4000.0)
        back = prop.propagate_by_time(there, -4000.0)
        assert there.theta_rad > hyperbola.theta_rad
        assert np.isclose(back.theta_rad, hyperbola.theta_rad, atol=1e-4)

    def test_full_period(self, ellipse):
        test = prop.propagate_by_time(ellipse, prop.orbital_period(ellipse))
        assert np.isclose(test.theta_rad, ellipse.theta_rad, atol=1e-4)

    def test_shape_unchanged(self, ellipse):
        test = prop.propagate_by_time(ellipse, 1234.0)
        assert np.isclose(test.to_arr()[:5], ellipse.to_arr()[:5]).all()
        assert test.body is ellipse.body

    def test_outside_asymptotes(self):
        orbit = core.from_elements(-2e7, 1.5, 0.6, 1.0, 2.0, np.pi)
        test = prop.propagate_by_time(orbit, 100.0)
        assert np.isnan(test.theta_rad)

    def test_by_true_anomaly(self, ellipse):
        test = prop.propagate_by_true_anomaly(ellipse, 2 * np.pi + 0.5)
        assert np.isclose(test.theta_rad, ellipse.theta_rad + 0.5)

    def test_statevector_by_true_anomaly(self, ellipse):
        sv = core.to_statevector(ellipse)
        test = prop.propagate_statevector_by_true_anomaly(sv, core.EARTH, 2 * np.pi)
        assert np.isclose(test.r, sv.r, rtol=1e-6).all()
        assert np.isclose(test.v, sv.v, rtol=1e-6).all()


class TestAgainstIntegration:
    """
    Analytic propagation should agree with the numerically integrated
    two-body problem
    """

    def test_two_body_derivative(self):
        state = np.array([7e6, 0, 0, 0, 7500, 0])
        deriv = prop.two_body(0, state)
        assert np.isclose(deriv[:3], state[3:]).all()
        assert np.isclose(deriv[3], -ast.EARTH_MU / 7e6**2)

    def test_elliptic(self, ellipse):
        dt = 3000.0
        expect = prop.propagate_statevector_by_time(
            core.to_statevector(ellipse), core.EARTH, dt
        )

        frame = prop.solve_two_body(
            core.to_statevector(ellipse), [0, dt], t_eval=np.array([dt])
        )
        last = frame.iloc[-1]

        assert np.isclose(last.TIME, dt)
        assert np.isclose(last[prop.STATE_LABELS[:3]], expect.r, rtol=1e-4, atol=1).all()
        assert np.isclose(last[prop.STATE_LABELS[3:]], expect.v, rtol=1e-4, atol=1e-3).all()

    def test_hyperbolic(self, hyperbola):
        dt = 2000.0
        expect = core.to_statevector(prop.propagate_by_time(hyperbola, dt))

        frame = prop.solve_two_body(
            core.to_statevector(hyperbola), [0, dt], t_eval=np.array([dt])
        )
        last = frame.iloc[-1]

        assert np.isclose(last[prop.STATE_LABELS[:3]], expect.r, rtol=1e-4, atol=1).all()
        assert np.isclose(last[prop.STATE_LABELS[3:]], expect.v, rtol=1e-4, atol=1e-3).all()

    def test_kepler_trajectory(self, ellipse):
        times = np.linspace(0, 6000, 7)
        frame = prop.kepler_trajectory(ellipse, times)

        assert list(frame.columns) == ["TIME", *prop.STATE_LABELS]
        assert len(frame) == len(times)

        first = core.to_statevector(ellipse)
        assert np.isclose(frame.iloc[0][prop.STATE_LABELS].to_numpy(), first.to_arr()).all()

        # radius stays between the apsides
        radius = np.linalg.norm(frame[["RX", "RY", "RZ"]].to_numpy(), axis=1)
        assert (radius >= core.periapsis(ellipse) * (1 - 1e-9)).all()
        assert (radius <= core.apoapsis(ellipse) * (1 + 1e-9)).all()
