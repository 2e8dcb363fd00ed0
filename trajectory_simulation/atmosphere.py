import math

R_DRY_AIR = 287.058      # J/(kg·K)
R_WATER_VAPOR = 461.495  # J/(kg·K)
STANDARD_GRAVITY = 9.80665
LAPSE_RATE = 0.0065      # K/m
SEA_LEVEL_TEMPERATURE_K = 288.15
STANDARD_AIR_DENSITY = 1.225  # kg/m^3, ISA sea level


def saturation_vapor_pressure(temperature_c: float) -> float:
    """Saturation vapour pressure over water in Pa (Buck)."""
    return 611.21 * math.exp((17.502 * temperature_c) / (240.97 + temperature_c))


def altitude_density_ratio(altitude_m: float) -> float:
    """Standard-atmosphere pressure ratio at ``altitude_m`` relative to sea level."""
    base = 1.0 - LAPSE_RATE * altitude_m / SEA_LEVEL_TEMPERATURE_K
    return base ** (STANDARD_GRAVITY / (R_DRY_AIR * LAPSE_RATE))


def sea_level_air_density(temperature_c: float, pressure_pa: float, humidity: float) -> float:
    """
    Moist-air density from the ideal gas law for the dry air and water vapour
    partial pressures. ``humidity`` is a 0-1 fraction.
    """
    t_k = temperature_c + 273.15
    e = humidity * saturation_vapor_pressure(temperature_c)
    rho_dry = (pressure_pa - e) / (R_DRY_AIR * t_k)
    rho_vapor = e / (R_WATER_VAPOR * t_k)
    return rho_dry + rho_vapor


def air_density(environment) -> float:
    """Air density in kg/m^3 at the environment's altitude."""
    rho = sea_level_air_density(environment.temperature, environment.pressure, environment.humidity)
    return rho * altitude_density_ratio(environment.altitude)


REFERENCE_VISCOSITY = 1.81e-5   # kg/(m·s), dry air at 20 °C
REFERENCE_VISCOSITY_TEMPERATURE_K = 293.15
SUTHERLAND_CONSTANT = 110.4     # K


def dynamic_viscosity(temperature_c: float, humidity: float) -> float:
    """
    Dynamic viscosity of moist air in kg/(m·s).

    Sutherland's law for dry air, scaled down slightly for water vapour.
    ``humidity`` is a 0-1 fraction.
    """
    t_k = temperature_c + 273.15
    dry = (REFERENCE_VISCOSITY * (t_k / REFERENCE_VISCOSITY_TEMPERATURE_K) ** 1.5
           * (REFERENCE_VISCOSITY_TEMPERATURE_K + SUTHERLAND_CONSTANT) / (t_k + SUTHERLAND_CONSTANT))
    return dry * (1.0 - 0.032 * humidity - 0.002 * humidity * humidity)
