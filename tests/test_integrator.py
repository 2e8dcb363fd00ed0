import logging
import math

import numpy as np
import pytest

from trajectory_simulation.aerodynamics import AIR_VISCOSITY, GRAVITY, drag_coefficient, reynolds_number, vortex_factor
from trajectory_simulation.atmosphere import dynamic_viscosity
from trajectory_simulation.errors import InvalidInputError, NonConvergenceError
from trajectory_simulation.integrator import (
    TERMINATION_GROUND,
    TERMINATION_STEPS,
    TERMINATION_TARGET,
    TERMINATION_TIME,
    IntegratorSettings,
    TrajectoryIntegrator,
)
from trajectory_simulation.models import BallProperties, BallState, Environment, SpinState
from trajectory_simulation.vector import length, vec3

PROPS = BallProperties()
ENV = Environment()


def launch(speed=50.0, angle_deg=14.0, rpm=2500.0, axis=(0.0, 0.0, 1.0), height=0.0):
    angle = math.radians(angle_deg)
    return BallState(
        position=vec3(0.0, height, 0.0),
        velocity=vec3(speed * math.cos(angle), speed * math.sin(angle), 0.0),
        spin=SpinState(rate=rpm, axis=vec3(*axis)),
        mass=PROPS.mass,
    )


class TestSettings:
    def test_defaults(self):
        settings = IntegratorSettings()
        assert settings.dt == 0.01
        assert not settings.adaptive
        assert settings.min_dt <= settings.dt

    @pytest.mark.parametrize(
        "kwargs",
        [{"dt": 0.0}, {"dt": float("nan")}, {"tolerance": -1.0}, {"min_dt": 0.1}, {"max_steps": 0}],
    )
    def test_rejects_bad_settings(self, kwargs):
        with pytest.raises(InvalidInputError):
            IntegratorSettings(**kwargs)


def test_rk4_matches_quadratic_drag_free_fall():
    # no spin and low speed keep the drag coefficient constant
    integrator = TrajectoryIntegrator()
    context = integrator.context(ENV, PROPS)
    state = BallState(position=vec3(), velocity=vec3(), spin=SpinState(rate=0.0), mass=PROPS.mass)

    dt = 0.01
    for _ in range(200):
        state = integrator.rk4_step(state, dt, context)

    cd = drag_coefficient(0.0) * (1 + 0.1 * vortex_factor(0.0))
    k = 0.5 * context.density * PROPS.area * cd / PROPS.mass
    vt = math.sqrt(GRAVITY / k)
    t = state.time
    assert t == pytest.approx(2.0)
    assert state.velocity[1] == pytest.approx(-vt * math.tanh(GRAVITY * t / vt), abs=1e-6)
    assert state.position[1] == pytest.approx(-(vt ** 2 / GRAVITY) * math.log(math.cosh(GRAVITY * t / vt)), abs=1e-6)


def test_rk4_step_keeps_spin_and_input_untouched():
    integrator = TrajectoryIntegrator()
    context = integrator.context(ENV, PROPS)
    state = launch()
    position = state.position.copy()
    stepped = integrator.rk4_step(state, 0.01, context)
    assert stepped is not state
    assert stepped.spin is state.spin
    np.testing.assert_array_equal(state.position, position)
    assert stepped.time == pytest.approx(0.01)


def test_adaptive_step_reports_step_used():
    integrator = TrajectoryIntegrator(IntegratorSettings(adaptive=True))
    context = integrator.context(ENV, PROPS)
    state, used, converged = integrator.adaptive_step(launch(), 0.01, context)
    assert converged
    assert 0 < used <= 0.01
    assert state.time == pytest.approx(used)


def test_flight_lands_on_launch_plane():
    result = TrajectoryIntegrator().integrate(launch(), ENV, PROPS)

    assert result.termination == TERMINATION_GROUND
    assert result.final.position[1] == pytest.approx(0.0, abs=1e-9)
    times = [s.time for s in result.samples]
    assert times[0] == 0.0
    assert all(a < b for a, b in zip(times, times[1:]))
    assert all(s.position[1] >= -1e-9 for s in result.samples)

    metrics = result.metrics
    assert metrics.total_distance > 0
    assert metrics.apex_height > 0
    assert metrics.flight_time == pytest.approx(result.final.time)
    assert metrics.landing_angle > 0


def test_ground_is_launch_height_not_zero():
    result = TrajectoryIntegrator().integrate(launch(height=2.0), ENV, PROPS)
    assert result.final.position[1] == pytest.approx(2.0, abs=1e-9)


def test_stops_at_target_distance():
    result = TrajectoryIntegrator().integrate(launch(), ENV, PROPS, target_distance=30.0)
    assert result.termination == TERMINATION_TARGET
    assert result.metrics.total_distance == pytest.approx(30.0, abs=1e-4)
    assert result.final.position[1] > 0


def test_rejects_non_positive_target():
    with pytest.raises(InvalidInputError):
        TrajectoryIntegrator().integrate(launch(), ENV, PROPS, target_distance=0.0)


def test_time_budget():
    integrator = TrajectoryIntegrator(IntegratorSettings(max_time=0.5))
    result = integrator.integrate(launch(), ENV, PROPS)
    assert result.termination == TERMINATION_TIME
    assert result.metrics.flight_time == pytest.approx(0.5, abs=1e-9)


def test_step_budget():
    integrator = TrajectoryIntegrator(IntegratorSettings(max_steps=10))
    result = integrator.integrate(launch(), ENV, PROPS)
    assert result.termination == TERMINATION_STEPS
    assert len(result.samples) == 11


def test_backspin_holds_the_ball_up():
    settings = IntegratorSettings(max_steps=100)
    initial = launch(rpm=3000.0)
    spun = TrajectoryIntegrator(settings).integrate(initial, ENV, PROPS)
    plain = TrajectoryIntegrator(settings).integrate(launch(rpm=0.0), ENV, PROPS)
    assert spun.final.position[1] > plain.final.position[1]
    assert initial.spin.rate == 3000.0


def test_adaptive_agrees_with_fine_fixed_step():
    # one drag band and one circulation band for the whole second, fixed axis
    initial = launch(speed=30.0, angle_deg=12.0, rpm=1000.0)
    fine = TrajectoryIntegrator(IntegratorSettings(dt=2e-4, max_time=1.0, axis_precession_rate=0.0))
    adaptive = TrajectoryIntegrator(
        IntegratorSettings(dt=0.01, adaptive=True, tolerance=1e-6, max_time=1.0, axis_precession_rate=0.0)
    )

    reference = fine.integrate(initial, ENV, PROPS)
    result = adaptive.integrate(initial, ENV, PROPS)

    assert reference.termination == result.termination == TERMINATION_TIME
    assert result.warnings == ()
    assert length(result.final.position - reference.final.position) < 1e-5
    assert length(result.final.velocity - reference.final.velocity) < 1e-5


def test_adaptive_driver_launch_agrees_with_fine_fixed_step():
    # falls through most of the drag table; 1950 rpm stays in the lowest circulation band
    initial = launch(speed=70.0, angle_deg=11.0, rpm=1950.0)
    settings = IntegratorSettings(adaptive=True, max_time=3.0)
    fine = TrajectoryIntegrator(IntegratorSettings(dt=1e-4, max_time=3.0))

    reference = fine.integrate(initial, ENV, PROPS)
    result = TrajectoryIntegrator(settings).integrate(initial, ENV, PROPS)

    context = fine.context(ENV, PROPS)
    reynolds = [reynolds_number(length(s.velocity), context.density, context.viscosity, PROPS.diameter)
                for s in result.samples]
    assert max(reynolds) > 170_000
    assert min(reynolds) < 130_000

    assert result.warnings == ()
    assert result.termination == reference.termination
    steps = len(result.samples) - 1
    assert length(result.final.position - reference.final.position) < settings.tolerance * steps


def test_precision_floor_attaches_warning(caplog):
    settings = IntegratorSettings(adaptive=True, tolerance=1e-15, min_dt=0.01, max_steps=5)
    with caplog.at_level(logging.WARNING, logger="trajectory_simulation.integrator"):
        result = TrajectoryIntegrator(settings).integrate(launch(), ENV, PROPS)

    assert result.termination == TERMINATION_STEPS
    assert len(result.warnings) == 1
    assert "minimum step" in result.warnings[0]
    assert "minimum step" in caplog.text


def test_strict_precision_raises():
    settings = IntegratorSettings(adaptive=True, tolerance=1e-15, min_dt=0.01, strict_precision=True)
    with pytest.raises(NonConvergenceError):
        TrajectoryIntegrator(settings).integrate(launch(), ENV, PROPS)


def test_batch_preserves_input_order():
    integrator = TrajectoryIntegrator()
    states = [launch(speed=60.0), launch(speed=30.0, rpm=1500.0), launch(speed=45.0, angle_deg=20.0)]

    batch = integrator.integrate_batch(states, ENV, PROPS)
    singles = [integrator.integrate(state, ENV, PROPS) for state in states]

    assert len(batch) == 3
    for got, expected in zip(batch, singles):
        assert got.termination == expected.termination
        assert len(got.samples) == len(expected.samples)
        np.testing.assert_allclose(got.final.position, expected.final.position)
    distances = [r.metrics.total_distance for r in batch]
    assert distances[0] > distances[1]


def test_adaptive_batch_shares_timestep():
    integrator = TrajectoryIntegrator(IntegratorSettings(adaptive=True, max_steps=20))
    batch = integrator.integrate_batch([launch(speed=70.0), launch(speed=20.0)], ENV, PROPS)
    first, second = ([s.time for s in r.samples] for r in batch)
    assert first == second


def test_mass_mismatch_is_rejected():
    state = BallState(position=vec3(), velocity=vec3(40.0, 10.0, 0.0), spin=SpinState(rate=2000.0), mass=0.05)
    with pytest.raises(InvalidInputError):
        TrajectoryIntegrator().integrate(state, ENV, PROPS)


def test_wind_acts_through_relative_velocity():
    integrator = TrajectoryIntegrator()
    wind = vec3(-5.0, 0.0, 3.0)
    still = integrator.context(ENV, PROPS)
    windy = integrator.context(Environment(wind=wind), PROPS)
    spin = SpinState(rate=2500.0)
    velocity = vec3(40.0, 8.0, 0.0)
    # the environment's wind is the wind at 10 m
    position = vec3(20.0, 10.0, 0.0)
    np.testing.assert_allclose(
        integrator.acceleration(position, velocity, spin, windy),
        integrator.acceleration(position, velocity - wind, spin, still),
    )
    on_ground = vec3(0.0, 0.0, 0.0)
    np.testing.assert_allclose(
        integrator.acceleration(on_ground, velocity, spin, windy),
        integrator.acceleration(on_ground, velocity, spin, still),
    )


def test_wind_strengthens_with_height():
    context = TrajectoryIntegrator().context(Environment(wind=vec3(-5.0, 0.0, 3.0)), PROPS)
    np.testing.assert_array_equal(context.wind_at(0.0), vec3())
    np.testing.assert_array_equal(context.wind_at(-2.0), vec3())
    np.testing.assert_allclose(context.wind_at(10.0), context.wind)
    np.testing.assert_allclose(context.wind_at(40.0), context.wind * 4.0 ** 0.143)
    assert length(context.wind_at(2.0)) < length(context.wind) < length(context.wind_at(40.0))


def test_context_viscosity_follows_the_air():
    integrator = TrajectoryIntegrator()
    context = integrator.context(ENV, PROPS)
    assert context.viscosity == pytest.approx(dynamic_viscosity(20.0, 0.5))
    assert integrator.context(Environment(temperature=35.0), PROPS).viscosity > context.viscosity


def test_viscosity_moves_the_drag_band():
    # just under the first band edge with the fixed 20 °C dry-air viscosity, just over it with humid air
    integrator = TrajectoryIntegrator()
    context = integrator.context(ENV, PROPS)
    speed = 38.7
    assert drag_coefficient(reynolds_number(speed, context.density, AIR_VISCOSITY, PROPS.diameter)) == 0.235
    assert drag_coefficient(reynolds_number(speed, context.density, context.viscosity, PROPS.diameter)) == 0.230

    acceleration = integrator.acceleration(vec3(0.0, 5.0, 0.0), vec3(speed, 0.0, 0.0),
                                           SpinState(rate=0.0), context)
    drag = 0.5 * context.density * PROPS.area * 0.230 * 1.1 * speed ** 2
    assert acceleration[0] == pytest.approx(-drag / PROPS.mass)


def test_headwind_shortens_carry():
    integrator = TrajectoryIntegrator()
    calm = integrator.integrate(launch(), ENV, PROPS)
    into = integrator.integrate(launch(), Environment(wind=vec3(-8.0, 0.0, 0.0)), PROPS)
    assert into.metrics.total_distance < calm.metrics.total_distance


def test_result_samples_are_read_only():
    result = TrajectoryIntegrator(IntegratorSettings(max_steps=3)).integrate(launch(), ENV, PROPS)
    with pytest.raises(ValueError):
        result.samples[1].position[0] = 0.0
