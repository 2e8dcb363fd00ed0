"""Value types threaded through the flight simulation.

Every type here is a frozen dataclass. Vector fields are read-only numpy
triples, so a state handed out by the integrator can never be changed under
the feet of whoever holds it.
"""

import enum
import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .atmosphere import air_density
from .errors import DegenerateSpinAxisError, InvalidInputError
from .vector import frozen_vec3, unit, vec3

MIN_ALTITUDE = -500.0
MAX_ALTITUDE = 9000.0


def _require_finite(name, value):
    if not np.all(np.isfinite(value)):
        raise InvalidInputError(f"{name} must be finite", params={name: np.asarray(value).tolist()})


def _require_positive(name, value):
    _require_finite(name, value)
    if value <= 0:
        raise InvalidInputError(f"{name} must be positive", params={name: value})


class SurfaceTexture(str, enum.Enum):
    SMOOTH = "smooth"
    TEXTURED = "textured"
    ROUGH = "rough"


@dataclass(frozen=True)
class SurfaceProfile:
    dimple_coverage: float = 0.75  # fraction of the surface covered by dimples
    dimple_depth: float = 0.2      # mm
    texture: SurfaceTexture = SurfaceTexture.SMOOTH

    def __post_init__(self):
        _require_finite("dimple_coverage", self.dimple_coverage)
        _require_finite("dimple_depth", self.dimple_depth)
        if not 0.0 <= self.dimple_coverage <= 1.0:
            raise InvalidInputError("dimple_coverage must be within [0, 1]",
                                    params={"dimple_coverage": self.dimple_coverage})
        if self.dimple_depth < 0:
            raise InvalidInputError("dimple_depth must not be negative",
                                    params={"dimple_depth": self.dimple_depth})
        object.__setattr__(self, "texture", SurfaceTexture(self.texture))


@dataclass(frozen=True, eq=False)
class Environment:
    temperature: float = 20.0   # °C
    pressure: float = 101325.0  # Pa, sea-level referenced
    humidity: float = 0.5       # 0-1
    altitude: float = 0.0       # m
    wind: np.ndarray = field(default_factory=vec3)  # m/s, horizontal only

    def __post_init__(self):
        _require_finite("temperature", self.temperature)
        _require_positive("pressure", self.pressure)
        _require_finite("humidity", self.humidity)
        _require_finite("altitude", self.altitude)
        if not 0.0 <= self.humidity <= 1.0:
            raise InvalidInputError("humidity must be within [0, 1]", params={"humidity": self.humidity})
        if self.temperature <= -273.15:
            raise InvalidInputError("temperature is below absolute zero",
                                    params={"temperature": self.temperature})
        if not MIN_ALTITUDE <= self.altitude <= MAX_ALTITUDE:
            raise InvalidInputError(f"altitude must be within [{MIN_ALTITUDE}, {MAX_ALTITUDE}] m",
                                    params={"altitude": self.altitude})
        wind = np.array(self.wind, dtype=float).reshape(3)
        _require_finite("wind", wind)
        # vertical wind is zero by convention
        wind[1] = 0.0
        object.__setattr__(self, "wind", frozen_vec3(wind))

        # hot saturated air at low pressure has more vapour pressure than total pressure
        density = air_density(self)
        if not math.isfinite(density) or density <= 0:
            raise InvalidInputError("conditions give a non-positive air density",
                                    params={"temperature": self.temperature, "pressure": self.pressure,
                                            "humidity": self.humidity, "altitude": self.altitude,
                                            "density": density})


@dataclass(frozen=True)
class BallProperties:
    mass: float = 0.0459             # kg
    radius: float = 0.0214           # m
    drag_coefficient: float = 0.235  # low-Reynolds ceiling of the drag table
    lift_coefficient: float = 0.21   # lift at unit circulation
    spin_decay_rate: float = 0.0834  # 1/s under standard conditions
    surface: Optional[SurfaceProfile] = None

    def __post_init__(self):
        _require_positive("mass", self.mass)
        _require_positive("radius", self.radius)
        _require_positive("drag_coefficient", self.drag_coefficient)
        _require_finite("lift_coefficient", self.lift_coefficient)
        _require_finite("spin_decay_rate", self.spin_decay_rate)
        if self.lift_coefficient < 0:
            raise InvalidInputError("lift_coefficient must not be negative",
                                    params={"lift_coefficient": self.lift_coefficient})
        if self.spin_decay_rate < 0:
            raise InvalidInputError("spin_decay_rate must not be negative",
                                    params={"spin_decay_rate": self.spin_decay_rate})

    @property
    def area(self):
        return math.pi * self.radius ** 2

    @property
    def diameter(self):
        return 2.0 * self.radius


@dataclass(frozen=True, eq=False)
class SpinState:
    rate: float                                   # rpm
    axis: np.ndarray = field(default_factory=lambda: vec3(0.0, 0.0, 1.0))

    def __post_init__(self):
        _require_finite("spin rate", self.rate)
        if self.rate < 0:
            raise InvalidInputError("spin rate must not be negative", params={"rate": self.rate})
        axis = np.array(self.axis, dtype=float).reshape(3)
        _require_finite("spin axis", axis)
        try:
            axis = unit(axis)
        except ZeroDivisionError as exc:
            raise DegenerateSpinAxisError("spin axis has zero length", params={"axis": axis.tolist()}) from exc
        object.__setattr__(self, "axis", frozen_vec3(axis))

    @property
    def rad_per_s(self):
        return self.rate * math.pi / 30.0


@dataclass(frozen=True, eq=False)
class BallState:
    position: np.ndarray
    velocity: np.ndarray
    spin: SpinState
    mass: float = 0.0459
    time: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "position", frozen_vec3(self.position))
        object.__setattr__(self, "velocity", frozen_vec3(self.velocity))
        _require_finite("position", self.position)
        _require_finite("velocity", self.velocity)
        _require_positive("mass", self.mass)
        _require_finite("time", self.time)


@dataclass(frozen=True, eq=False)
class Forces:
    drag: np.ndarray
    lift: np.ndarray
    gravity: np.ndarray

    @property
    def magnus(self):
        # the Magnus force is the lift force in this model
        return self.lift

    @property
    def total(self):
        return self.drag + self.lift + self.gravity


@dataclass(frozen=True, eq=False)
class Sample:
    position: np.ndarray
    velocity: np.ndarray
    time: float


@dataclass(frozen=True)
class TrajectoryMetrics:
    total_distance: float     # m
    apex_height: float        # m above the launch point
    flight_time: float        # s
    lateral_deviation: float  # m, signed
    landing_angle: float      # degrees, positive when descending


@dataclass(frozen=True, eq=False)
class TrajectoryResult:
    samples: Tuple[Sample, ...]
    metrics: TrajectoryMetrics
    termination: str
    warnings: Tuple[str, ...] = ()

    @property
    def points(self):
        return self.samples

    @property
    def final(self):
        return self.samples[-1]
