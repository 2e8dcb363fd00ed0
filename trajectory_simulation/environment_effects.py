"""Closed-form distance adjustments for callers that need no full flight.

Each effect is a delta in the unit of the target distance, and the adjusted
yardage is how far the ball actually travels: target plus the total effect.
Thin air, altitude, warm air and humid air all add distance. Air denser than
the 1.225 kg/m^3 ISA sea-level value takes it away.
"""

import math
from dataclasses import asdict, dataclass

from .atmosphere import STANDARD_AIR_DENSITY, air_density
from .errors import InvalidInputError

DENSITY_SCALE = 10.0          # per kg/m^3
ALTITUDE_SCALE = 1000.0       # m per unit of distance
TEMPERATURE_SCALE = 0.2       # per °C
HUMIDITY_SCALE = 0.1          # per percentage point
BASELINE_TEMPERATURE = 15.0   # °C, ISA sea level
BASELINE_HUMIDITY = 50.0      # %


@dataclass(frozen=True)
class DistanceAdjustment:
    density_effect: float
    altitude_effect: float
    temperature_effect: float
    humidity_effect: float
    total_effect: float
    adjusted_yardage: float

    def to_dict(self):
        return asdict(self)


def density_effect(environment):
    return (air_density(environment) - STANDARD_AIR_DENSITY) * DENSITY_SCALE


def altitude_effect(environment):
    return environment.altitude / ALTITUDE_SCALE


def temperature_effect(environment):
    return (environment.temperature - BASELINE_TEMPERATURE) * TEMPERATURE_SCALE


def humidity_effect(environment):
    return (environment.humidity * 100.0 - BASELINE_HUMIDITY) * HUMIDITY_SCALE


def calculate_adjustment(target_distance, environment) -> DistanceAdjustment:
    if not math.isfinite(target_distance) or target_distance <= 0:
        raise InvalidInputError("target distance must be a positive finite number",
                                params={"target_distance": target_distance})

    effects = (
        density_effect(environment),
        altitude_effect(environment),
        temperature_effect(environment),
        humidity_effect(environment),
    )
    total = sum(effects)
    return DistanceAdjustment(*effects, total_effect=total, adjusted_yardage=target_distance + total)
