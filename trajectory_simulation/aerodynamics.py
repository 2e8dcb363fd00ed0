"""Aerodynamic forces on a spinning golf ball.

Drag and lift coefficients come from stepped tables. Drag is keyed by
Reynolds number, circulation by spin rate. A vortex-shedding correction
scales drag by flight speed. Lift acts along ``spin_axis x velocity`` and
doubles as the Magnus force.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from .models import Forces, SurfaceTexture
from .vector import cross, length, vec3

GRAVITY = 9.81           # m/s^2
AIR_VISCOSITY = 1.81e-5  # kg/(m·s), dry air near 20 °C
BALL_DIAMETER = 0.0427   # m, regulation ball
REFERENCE_DRAG_COEFFICIENT = 0.235


@dataclass(frozen=True)
class BandTable:
    """
    Ordered ``(threshold, value)`` pairs.

    ``lookup(x)`` returns the value paired with the first threshold that is
    greater than or equal to ``x``. Anything past the last threshold (and
    NaN) gets the last value.
    """

    bands: Tuple[Tuple[float, float], ...]

    def __post_init__(self):
        bands = tuple((float(t), float(v)) for t, v in self.bands)
        if not bands:
            raise ValueError("a band table needs at least one band")
        thresholds = [t for t, _ in bands]
        if thresholds != sorted(thresholds):
            raise ValueError("band thresholds must be ascending")
        object.__setattr__(self, "bands", bands)

    def lookup(self, x: float) -> float:
        for threshold, value in self.bands:
            if x <= threshold:
                return value
        return self.bands[-1][1]


DRAG_TABLE = BandTable((
    (110_000, 0.235),
    (120_000, 0.230),
    (130_000, 0.225),
    (140_000, 0.220),
    (150_000, 0.215),
    (160_000, 0.210),
    (170_000, 0.205),
    (math.inf, 0.200),
))

# flow-regime transition, keyed by speed in the velocity's units
VORTEX_TABLE = BandTable((
    (120, 1.0),
    (140, 0.8),
    (160, 0.6),
    (math.inf, 0.4),
))

# circulation multiplier keyed by spin rate in rpm
CIRCULATION_TABLE = BandTable((
    (2000, 1.00),
    (2500, 1.25),
    (3000, 1.50),
    (3500, 1.75),
    (math.inf, 2.00),
))

TEXTURE_MODIFIERS = {
    SurfaceTexture.SMOOTH: (1.00, 1.00),
    SurfaceTexture.TEXTURED: (1.05, 1.10),
    SurfaceTexture.ROUGH: (1.15, 1.20),
}

TYPICAL_DIMPLE_COVERAGE = 0.75
TYPICAL_DIMPLE_DEPTH = 0.2  # mm
DIMPLE_DEPTH_SCALE = 0.1    # mm


def reynolds_number(speed, air_density, air_viscosity=AIR_VISCOSITY, ball_diameter=BALL_DIAMETER):
    return (air_density * speed * ball_diameter) / air_viscosity


def drag_coefficient(reynolds):
    return DRAG_TABLE.lookup(reynolds)


def vortex_factor(speed):
    return VORTEX_TABLE.lookup(speed)


def circulation(spin_rate):
    return CIRCULATION_TABLE.lookup(spin_rate)


def lift_coefficient(spin_rate, base=0.21):
    return base * circulation(spin_rate)


def surface_modifiers(surface):
    """Return the ``(drag, lift)`` multipliers for a surface profile."""
    if surface is None:
        return 1.0, 1.0

    coverage = surface.dimple_coverage - TYPICAL_DIMPLE_COVERAGE
    drag = 1.0 - coverage * 0.5
    lift = 1.0 + coverage * 0.3

    depth = (surface.dimple_depth - TYPICAL_DIMPLE_DEPTH) / DIMPLE_DEPTH_SCALE
    drag *= 1.0 - depth * 0.2
    lift *= 1.0 + depth * 0.15

    texture_drag, texture_lift = TEXTURE_MODIFIERS[surface.texture]
    return drag * texture_drag, lift * texture_lift


def compute_forces(velocity, spin, air_density, properties, air_viscosity=AIR_VISCOSITY):
    """
    Forces on the ball for one instant.

    ``velocity`` is the air-relative velocity. At zero speed (or zero spin
    for lift) the direction is undefined and the force is zero.
    """
    gravity = vec3(0.0, -GRAVITY * properties.mass, 0.0)
    speed = length(velocity)
    if speed == 0:
        return Forces(drag=vec3(), lift=vec3(), gravity=gravity)

    re = reynolds_number(speed, air_density, air_viscosity, properties.diameter)
    cd = drag_coefficient(re) * (properties.drag_coefficient / REFERENCE_DRAG_COEFFICIENT)
    cd *= 1.0 + 0.1 * vortex_factor(speed)
    cl = lift_coefficient(spin.rate, properties.lift_coefficient)

    drag_mod, lift_mod = surface_modifiers(properties.surface)
    cd *= drag_mod
    cl *= lift_mod

    q = 0.5 * air_density * properties.area * speed * speed
    drag = -(q * cd / speed) * velocity

    lift = vec3()
    if spin.rate > 0:
        direction = cross(spin.axis, velocity)
        norm = length(direction)
        if norm > 0:
            lift = (q * cl / norm) * direction

    return Forces(drag=drag, lift=lift, gravity=gravity)
