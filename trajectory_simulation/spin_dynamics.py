"""Spin-rate decay and spin-axis precession.

The decay law is exponential in time. Its rate constant is fitted so that a
3000 rpm ball at 44.7 m/s in standard air keeps about 92 % of its spin after
one second and about 66 % after five. Faster flight, warmer air and denser
air decay spin faster. Humid air decays it slower.
"""

import math

import numpy as np

from .atmosphere import air_density
from .models import SpinState
from .vector import horizontal, length, unit, vec3

REFERENCE_SPEED = 44.7        # m/s
VELOCITY_SCALE = 45.0         # m/s
REFERENCE_TEMPERATURE = 20.0  # °C
REFERENCE_HUMIDITY = 0.5
TEMPERATURE_SENSITIVITY = 0.01  # per °C
HUMIDITY_SENSITIVITY = 0.1
DENSITY_EXPONENT = 0.8
AXIS_PRECESSION_RATE = 0.05   # 1/s

# air density of the default Environment: 20 °C, 101325 Pa, 50 % humidity, sea level
REFERENCE_DENSITY = 1.19884  # kg/m^3

_UP = vec3(0.0, 1.0, 0.0)
_DOWN = vec3(0.0, -1.0, 0.0)


def _velocity_factor(speed):
    return (1.0 + (speed / VELOCITY_SCALE) ** 2) / (1.0 + (REFERENCE_SPEED / VELOCITY_SCALE) ** 2)


def decay_constant(properties, environment, speed, density=None):
    """Exponential decay constant k (1/s) for the current flight conditions."""
    if density is None:
        density = air_density(environment)
    temperature_factor = math.exp(TEMPERATURE_SENSITIVITY * (environment.temperature - REFERENCE_TEMPERATURE))
    humidity_factor = 1.0 - HUMIDITY_SENSITIVITY * (environment.humidity - REFERENCE_HUMIDITY)
    density_factor = (density / REFERENCE_DENSITY) ** DENSITY_EXPONENT
    return (properties.spin_decay_rate * _velocity_factor(speed)
            * temperature_factor * humidity_factor * density_factor)


def decay_spin_rate(rate, k, dt):
    return max(0.0, rate * math.exp(-k * dt))


def precess_axis(axis, dt, precession_rate=AXIS_PRECESSION_RATE):
    """
    Turn ``axis`` toward the nearer vertical over ``dt`` seconds.

    The tilt from vertical follows d(tilt)/dt = -rate * sin(tilt), whose
    solution shrinks tan(tilt / 2) by exp(-rate * dt). Two steps of dt/2 land
    where one step of dt does.
    """
    axis = unit(axis)
    target = _UP if axis[1] >= 0 else _DOWN
    side = horizontal(axis)
    sin_tilt = length(side)
    if sin_tilt == 0:
        return np.array(target)
    tilt = math.atan2(sin_tilt, abs(axis[1]))
    tilt = 2.0 * math.atan(math.tan(0.5 * tilt) * math.exp(-precession_rate * dt))
    return math.cos(tilt) * target + (math.sin(tilt) / sin_tilt) * side


def evolve_spin(spin, properties, environment, velocity, dt,
                precession_rate=AXIS_PRECESSION_RATE, density=None):
    """
    Advance ``spin`` by ``dt`` seconds and return a new SpinState.

    ``velocity`` is the ball's air-relative velocity. The returned axis is
    unit length. SpinState raises DegenerateSpinAxisError rather than
    normalise a zero axis.
    """
    k = decay_constant(properties, environment, length(velocity), density)
    rate = decay_spin_rate(spin.rate, k, dt)
    axis = precess_axis(spin.axis, dt, precession_rate)
    return SpinState(rate=rate, axis=axis)
