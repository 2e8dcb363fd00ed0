"""Launch-monitor shot data to an initial ball state."""

import math
from typing import Optional

import numpy as np

from spin.spinAxis import calculate_spin_axis, spin_axis_vector

from .errors import InvalidInputError
from .integrator import TrajectoryIntegrator
from .models import BallProperties, BallState, Environment, SpinState
from .vector import normalized, vec3

MPH_TO_MPS = 0.44704


def rotation_matrix(axis, angle):
    axis = normalized(axis)
    x, y, z = axis
    c = np.cos(angle)
    s = np.sin(angle)
    C = 1 - c
    return np.array([
        [x*x*C + c,   x*y*C - z*s, x*z*C + y*s],
        [y*x*C + z*s, y*y*C + c,   y*z*C - x*s],
        [z*x*C - y*s, z*y*C + x*s, z*z*C + c  ],
    ])


def _number(data, key):
    try:
        value = float(data[key])
    except KeyError:
        raise InvalidInputError(f"shot data is missing '{key}'", params={"key": key}) from None
    except (TypeError, ValueError):
        raise InvalidInputError(f"shot data '{key}' is not a number", params={key: data[key]}) from None
    if not math.isfinite(value):
        raise InvalidInputError(f"shot data '{key}' must be finite", params={key: value})
    return value


def initial_state_from_launch(data: dict, properties: Optional[BallProperties] = None) -> BallState:
    """
    Build the launch state from GSPro-style shot data: ``Speed`` (mph),
    ``VLA`` and ``HLA`` (degrees), ``TotalSpin`` (rpm) and ``SpinAxis``
    (degrees). ``SpinAxis`` may be replaced by ``BackSpin`` and ``SideSpin``.
    """
    properties = properties or BallProperties()

    speed = _number(data, "Speed") * MPH_TO_MPS
    if speed < 0:
        raise InvalidInputError("ball speed must not be negative", params={"Speed": data["Speed"]})
    v = vec3(speed, 0.0, 0.0)
    Rz = rotation_matrix(vec3(0.0, 0.0, 1.0), np.radians(_number(data, "VLA")))
    # loft about z, then aim about the vertical; positive HLA is to the right (-z)
    Ry = rotation_matrix(vec3(0.0, 1.0, 0.0), np.radians(_number(data, "HLA")))
    velocity = Ry @ (Rz @ v)

    if "SpinAxis" in data:
        axis_deg = _number(data, "SpinAxis")
    elif "BackSpin" in data and "SideSpin" in data:
        axis_deg = calculate_spin_axis(_number(data, "BackSpin"), _number(data, "SideSpin"))
    else:
        axis_deg = 0.0

    if "TotalSpin" in data:
        total_spin = _number(data, "TotalSpin")
    elif "BackSpin" in data and "SideSpin" in data:
        total_spin = math.hypot(_number(data, "BackSpin"), _number(data, "SideSpin"))
    else:
        raise InvalidInputError("shot data is missing 'TotalSpin'", params={"key": "TotalSpin"})

    spin = SpinState(rate=total_spin, axis=spin_axis_vector(axis_deg))
    return BallState(position=vec3(), velocity=velocity, spin=spin, mass=properties.mass)


def simulate_shot(data, integrator=None, environment=None, properties=None, target_distance=None):
    """Fly a shot described by launch-monitor data and return its TrajectoryResult."""
    integrator = integrator or TrajectoryIntegrator()
    environment = environment or Environment()
    properties = properties or BallProperties()
    state = initial_state_from_launch(data, properties)
    return integrator.integrate(state, environment, properties, target_distance=target_distance)
