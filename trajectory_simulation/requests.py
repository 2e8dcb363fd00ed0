"""Validated request payloads accepted by the engine and the web adapter."""

import json
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import InvalidInputError
from .models import (
    MAX_ALTITUDE,
    MIN_ALTITUDE,
    BallProperties,
    BallState,
    Environment,
    SpinState,
    SurfaceProfile,
    SurfaceTexture,
)
from .vector import vec3


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    @classmethod
    def parse(cls, data):
        """Validate ``data`` (a mapping or an instance) or raise InvalidInputError."""
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise InvalidInputError(
                f"invalid {cls.__name__}: {exc.error_count()} validation error(s)",
                params=exc.errors(include_url=False, include_context=False, include_input=False),
            ) from exc


class Vector3DModel(_Strict):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_domain(self):
        return vec3(self.x, self.y, self.z)


class EnvironmentModel(_Strict):
    temperature: float = Field(20.0, ge=-60, le=60, description="Air temperature in °C")
    pressure: float = Field(101325.0, ge=80_000, le=110_000, description="Sea-level referenced pressure in Pa")
    humidity: float = Field(0.5, ge=0, le=1, description="Relative humidity as a 0-1 fraction")
    altitude: float = Field(0.0, ge=MIN_ALTITUDE, le=MAX_ALTITUDE, description="Altitude in metres")
    wind: Vector3DModel = Field(default_factory=Vector3DModel, description="Wind in m/s; y is ignored")

    def to_domain(self):
        return Environment(
            temperature=self.temperature,
            pressure=self.pressure,
            humidity=self.humidity,
            altitude=self.altitude,
            wind=self.wind.to_domain(),
        )


class SurfaceProfileModel(_Strict):
    dimple_coverage: float = Field(0.75, ge=0, le=1)
    dimple_depth: float = Field(0.2, ge=0, description="Dimple depth in mm")
    texture: SurfaceTexture = SurfaceTexture.SMOOTH

    def to_domain(self):
        return SurfaceProfile(self.dimple_coverage, self.dimple_depth, self.texture)


class BallPropertiesModel(_Strict):
    mass: float = Field(0.0459, gt=0, description="kg")
    radius: float = Field(0.0214, gt=0, description="m")
    drag_coefficient: float = Field(0.235, gt=0)
    lift_coefficient: float = Field(0.21, ge=0)
    spin_decay_rate: float = Field(0.0834, ge=0, description="1/s")
    surface: Optional[SurfaceProfileModel] = None

    def to_domain(self):
        return BallProperties(
            mass=self.mass,
            radius=self.radius,
            drag_coefficient=self.drag_coefficient,
            lift_coefficient=self.lift_coefficient,
            spin_decay_rate=self.spin_decay_rate,
            surface=self.surface.to_domain() if self.surface else None,
        )


class SpinStateModel(_Strict):
    rate: float = Field(..., ge=0, description="rpm")
    axis: Vector3DModel = Field(default_factory=lambda: Vector3DModel(z=1.0))

    @field_validator("axis")
    @classmethod
    def _axis_not_zero(cls, axis):
        if axis.x == 0 and axis.y == 0 and axis.z == 0:
            raise ValueError("spin axis must not be the zero vector")
        return axis

    def to_domain(self):
        return SpinState(rate=self.rate, axis=self.axis.to_domain())


class BallStateModel(_Strict):
    position: Vector3DModel = Field(default_factory=Vector3DModel)
    velocity: Vector3DModel
    spin: SpinStateModel
    mass: Optional[float] = Field(None, gt=0, description="kg; defaults to the ball's mass")
    time: float = 0.0

    def to_domain(self, properties: BallProperties):
        return BallState(
            position=self.position.to_domain(),
            velocity=self.velocity.to_domain(),
            spin=self.spin.to_domain(),
            mass=self.mass if self.mass is not None else properties.mass,
            time=self.time,
        )


class SimulationRequest(_Strict):
    target_distance: float = Field(..., gt=0, description="m")
    environment: EnvironmentModel = Field(default_factory=EnvironmentModel)
    properties: BallPropertiesModel = Field(default_factory=BallPropertiesModel)
    initial_state: BallStateModel

    @model_validator(mode="after")
    def _mass_matches(self):
        mass = self.initial_state.mass
        if mass is not None and abs(mass - self.properties.mass) > 1e-12:
            raise ValueError("initial_state.mass must match properties.mass")
        return self

    def cache_key(self):
        return "trajectory:" + json.dumps(self.model_dump(mode="json"), sort_keys=True)

    def to_domain(self):
        """Return ``(initial_state, environment, properties)`` domain objects."""
        properties = self.properties.to_domain()
        return self.initial_state.to_domain(properties), self.environment.to_domain(), properties


class AdjustmentRequest(_Strict):
    target_distance: float = Field(..., gt=0, description="yards or metres; effects use the same unit")
    environment: EnvironmentModel = Field(default_factory=EnvironmentModel)
