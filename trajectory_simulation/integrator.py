"""Runge-Kutta trajectory integration.

A run advances one or more ball states in lockstep with a shared timestep.
Every accepted step produces a fresh, immutable BallState. The run stops when
the ball drops back through its launch height, reaches the target distance,
or uses up the step or time budget.
"""

import logging
from dataclasses import dataclass, fields
from typing import List, Optional, Sequence

import numpy as np

from .aerodynamics import compute_forces
from .atmosphere import air_density, dynamic_viscosity
from .errors import InvalidInputError, NonConvergenceError
from .flightDataCalculation import get_trajectory_metrics
from .models import BallProperties, BallState, Environment, Sample, SpinState, TrajectoryResult
from .spin_dynamics import AXIS_PRECESSION_RATE, evolve_spin, precess_axis
from .vector import horizontal, length, vec3

logger = logging.getLogger(__name__)

TERMINATION_GROUND = "ground"
TERMINATION_TARGET = "target_distance"
TERMINATION_TIME = "time_budget"
TERMINATION_STEPS = "step_budget"

_TIME_EPSILON = 1e-9

WIND_REFERENCE_HEIGHT = 10.0  # m, the environment's wind is measured here
WIND_SHEAR_EXPONENT = 0.143   # power-law profile over open ground


@dataclass(frozen=True)
class IntegratorSettings:
    dt: float = 0.01            # s
    adaptive: bool = False
    tolerance: float = 1e-6     # on max(|Δposition|, |Δvelocity|) per step
    min_dt: float = 1e-6        # s, adaptive halving floor
    max_time: float = 15.0      # s
    max_steps: int = 100_000
    strict_precision: bool = False
    axis_precession_rate: float = AXIS_PRECESSION_RATE

    def __post_init__(self):
        for name in ("dt", "tolerance", "min_dt", "max_time"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise InvalidInputError(f"{name} must be a positive finite number", params={name: value})
        if self.min_dt > self.dt:
            raise InvalidInputError("min_dt must not exceed dt", params={"min_dt": self.min_dt, "dt": self.dt})
        if self.max_steps <= 0:
            raise InvalidInputError("max_steps must be positive", params={"max_steps": self.max_steps})
        if self.axis_precession_rate < 0:
            raise InvalidInputError("axis_precession_rate must not be negative",
                                    params={"axis_precession_rate": self.axis_precession_rate})

    @classmethod
    def from_config(cls, config, section="Integrator"):
        defaults = {f.name: f.default for f in fields(cls)}
        return cls(
            dt=config.getfloat(section, "dt", fallback=defaults["dt"]),
            adaptive=config.getboolean(section, "adaptive", fallback=defaults["adaptive"]),
            tolerance=config.getfloat(section, "tolerance", fallback=defaults["tolerance"]),
            min_dt=config.getfloat(section, "min_dt", fallback=defaults["min_dt"]),
            max_time=config.getfloat(section, "max_time", fallback=defaults["max_time"]),
            max_steps=config.getint(section, "max_steps", fallback=defaults["max_steps"]),
            strict_precision=config.getboolean(section, "strict_precision",
                                               fallback=defaults["strict_precision"]),
            axis_precession_rate=config.getfloat(section, "axis_precession_rate",
                                                 fallback=defaults["axis_precession_rate"]),
        )


@dataclass(frozen=True)
class FlightContext:
    """Per-run constants: the environment, the ball and the air's density and viscosity."""

    environment: Environment
    properties: BallProperties
    density: float
    viscosity: float

    @property
    def wind(self):
        return self.environment.wind

    def wind_at(self, height):
        """Wind at ``height`` metres above the ground; none at or below it."""
        if height <= 0:
            return vec3()
        return self.wind * (height / WIND_REFERENCE_HEIGHT) ** WIND_SHEAR_EXPONENT


class _Flight:
    """Bookkeeping for one ball inside a run."""

    def __init__(self, state: BallState):
        self.state = state
        self.launch = state.position
        self.start_time = state.time
        self.samples = [Sample(state.position, state.velocity, state.time)]
        self.termination = None
        self.precision_misses = 0
        self.first_miss_time = None

    @property
    def done(self):
        return self.termination is not None

    def elapsed(self):
        return self.state.time - self.start_time

    def distance_from_launch(self, position):
        return length(horizontal(position - self.launch))


class TrajectoryIntegrator:
    def __init__(self, settings: Optional[IntegratorSettings] = None):
        self.settings = settings or IntegratorSettings()

    def context(self, environment: Environment, properties: BallProperties) -> FlightContext:
        return FlightContext(environment, properties, air_density(environment),
                             dynamic_viscosity(environment.temperature, environment.humidity))

    def acceleration(self, position, velocity, spin, context: FlightContext):
        air_velocity = velocity - context.wind_at(position[1])
        forces = compute_forces(air_velocity, spin, context.density, context.properties, context.viscosity)
        return forces.total / context.properties.mass

    def _precessed(self, spin, dt):
        """``spin`` with its axis carried ``dt`` seconds along the precession; the rate is held."""
        rate = self.settings.axis_precession_rate
        if rate == 0 or dt == 0:
            return spin
        return SpinState(spin.rate, precess_axis(spin.axis, dt, rate))

    def _rk4(self, position, velocity, spin, dt, context):
        # the axis precesses in closed form, so each stage sees it at its own time
        mid_spin = self._precessed(spin, 0.5 * dt)
        end_spin = self._precessed(spin, dt)

        a1 = self.acceleration(position, velocity, spin, context)
        v2 = velocity + 0.5 * dt * a1
        a2 = self.acceleration(position + 0.5 * dt * velocity, v2, mid_spin, context)
        v3 = velocity + 0.5 * dt * a2
        a3 = self.acceleration(position + 0.5 * dt * v2, v3, mid_spin, context)
        v4 = velocity + dt * a3
        a4 = self.acceleration(position + dt * v3, v4, end_spin, context)

        new_position = position + (dt / 6.0) * (velocity + 2.0 * v2 + 2.0 * v3 + v4)
        new_velocity = velocity + (dt / 6.0) * (a1 + 2.0 * a2 + 2.0 * a3 + a4)
        return new_position, new_velocity

    def _step_error(self, position, velocity, spin, dt, context):
        full_pos, full_vel = self._rk4(position, velocity, spin, dt, context)
        mid_pos, mid_vel = self._rk4(position, velocity, spin, dt / 2.0, context)
        half_pos, half_vel = self._rk4(mid_pos, mid_vel, self._precessed(spin, dt / 2.0), dt / 2.0, context)
        error = max(length(full_pos - half_pos), length(full_vel - half_vel))
        return (half_pos, half_vel), error

    def _adaptive_round(self, states: Sequence[BallState], dt, context):
        """
        Halve ``dt`` until every state's full step agrees with its two half
        steps within tolerance. Returns the half-step proposals, the dt that
        was used and whether tolerance was met before the min_dt floor.
        """
        while True:
            proposals = []
            worst = 0.0
            for state in states:
                proposal, error = self._step_error(state.position, state.velocity, state.spin, dt, context)
                proposals.append(proposal)
                worst = max(worst, error)
            if worst <= self.settings.tolerance:
                return proposals, dt, True
            if dt / 2.0 < self.settings.min_dt:
                return proposals, dt, False
            dt /= 2.0

    def rk4_step(self, state: BallState, dt: float, context: FlightContext) -> BallState:
        """One classic RK4 step. The returned state carries the input spin unchanged."""
        position, velocity = self._rk4(state.position, state.velocity, state.spin, dt, context)
        return BallState(position, velocity, state.spin, state.mass, state.time + dt)

    def adaptive_step(self, state: BallState, dt: float, context: FlightContext):
        """Returns ``(new_state, dt_used, converged)``. The spin state is carried over."""
        (proposal,), used, converged = self._adaptive_round([state], dt, context)
        position, velocity = proposal
        return BallState(position, velocity, state.spin, state.mass, state.time + used), used, converged

    def _accept(self, flight: _Flight, position, velocity, dt, context, target_distance):
        old = flight.state
        fraction = 1.0
        termination = None

        launch_height = flight.launch[1]
        if position[1] < launch_height:
            fraction = (old.position[1] - launch_height) / (old.position[1] - position[1])
            termination = TERMINATION_GROUND

        if target_distance is not None:
            new_distance = flight.distance_from_launch(position)
            if new_distance >= target_distance:
                old_distance = flight.distance_from_launch(old.position)
                target_fraction = (target_distance - old_distance) / (new_distance - old_distance)
                if target_fraction < fraction:
                    fraction = target_fraction
                    termination = TERMINATION_TARGET

        if termination is not None:
            fraction = min(max(fraction, 0.0), 1.0)
            position = old.position + fraction * (position - old.position)
            velocity = old.velocity + fraction * (velocity - old.velocity)
            dt = fraction * dt

        air_velocity = old.velocity - context.wind_at(old.position[1])
        spin = evolve_spin(old.spin, context.properties, context.environment, air_velocity, dt,
                           precession_rate=self.settings.axis_precession_rate, density=context.density)
        state = BallState(position, velocity, spin, old.mass, old.time + dt)
        flight.state = state
        flight.samples.append(Sample(state.position, state.velocity, state.time))

        if termination is None and flight.elapsed() >= self.settings.max_time - _TIME_EPSILON:
            termination = TERMINATION_TIME
        flight.termination = termination

    def _check_state(self, state: BallState, properties: BallProperties):
        if not np.isclose(state.mass, properties.mass, rtol=1e-9, atol=0.0):
            raise InvalidInputError("initial state mass does not match the ball properties",
                                    params={"state_mass": state.mass, "ball_mass": properties.mass})

    def _result(self, flight: _Flight) -> TrajectoryResult:
        warnings = ()
        if flight.precision_misses:
            message = (f"adaptive step reached the minimum step of {self.settings.min_dt:g} s without meeting "
                       f"tolerance {self.settings.tolerance:g} on {flight.precision_misses} step(s), "
                       f"first at t={flight.first_miss_time:.4f} s")
            logger.warning(message)
            warnings = (message,)
        return TrajectoryResult(
            samples=tuple(flight.samples),
            metrics=get_trajectory_metrics(flight.samples),
            termination=flight.termination,
            warnings=warnings,
        )

    def integrate_batch(self, initial_states: Sequence[BallState], environment: Environment,
                        properties: BallProperties, target_distance: Optional[float] = None) -> List[TrajectoryResult]:
        """
        Integrate several initial states with a shared timestep.

        Results come back in the same order as ``initial_states``.
        """
        if target_distance is not None and (not np.isfinite(target_distance) or target_distance <= 0):
            raise InvalidInputError("target distance must be a positive finite number",
                                    params={"target_distance": target_distance})
        for state in initial_states:
            self._check_state(state, properties)

        settings = self.settings
        context = self.context(environment, properties)
        flights = [_Flight(state) for state in initial_states]
        logger.debug("integrating %d trajectories (adaptive=%s, dt=%g, rho=%.4f)",
                     len(flights), settings.adaptive, settings.dt, context.density)

        steps = 0
        while True:
            active = [f for f in flights if not f.done]
            if not active:
                break
            if steps >= settings.max_steps:
                for flight in active:
                    flight.termination = TERMINATION_STEPS
                break

            remaining = min(settings.max_time - f.elapsed() for f in active)
            dt = min(settings.dt, remaining)
            states = [f.state for f in active]

            if settings.adaptive:
                proposals, dt, converged = self._adaptive_round(states, dt, context)
                if not converged:
                    if settings.strict_precision:
                        raise NonConvergenceError(
                            "adaptive step failed to meet tolerance above the minimum step",
                            params={"time": states[0].time, "dt": dt, "tolerance": settings.tolerance},
                        )
                    for flight in active:
                        flight.precision_misses += 1
                        if flight.first_miss_time is None:
                            flight.first_miss_time = flight.state.time
            else:
                proposals = [self._rk4(s.position, s.velocity, s.spin, dt, context) for s in states]

            for flight, (position, velocity) in zip(active, proposals):
                self._accept(flight, position, velocity, dt, context, target_distance)
            steps += 1

        results = [self._result(flight) for flight in flights]
        logger.debug("finished %d trajectories after %d steps", len(results), steps)
        return results

    def integrate(self, initial_state: BallState, environment: Environment, properties: BallProperties,
                  target_distance: Optional[float] = None) -> TrajectoryResult:
        return self.integrate_batch([initial_state], environment, properties, target_distance)[0]
