"""Façade tying request validation, the result cache and the integrator together."""

import logging
from typing import Optional

from storage.result_cache import TrajectoryCache

from .environment_effects import DistanceAdjustment, calculate_adjustment
from .integrator import IntegratorSettings, TrajectoryIntegrator
from .models import TrajectoryResult
from .requests import AdjustmentRequest, SimulationRequest

logger = logging.getLogger(__name__)


def result_to_dict(result: TrajectoryResult) -> dict:
    """Plain JSON-ready view of a TrajectoryResult."""
    metrics = result.metrics
    return {
        "points": [
            {"position": s.position.tolist(), "velocity": s.velocity.tolist(), "time": s.time}
            for s in result.samples
        ],
        "metrics": {
            "total_distance": metrics.total_distance,
            "apex_height": metrics.apex_height,
            "flight_time": metrics.flight_time,
            "lateral_deviation": metrics.lateral_deviation,
            "landing_angle": metrics.landing_angle,
        },
        "termination": result.termination,
        "warnings": list(result.warnings),
    }


class PhysicsEngine:
    def __init__(self, integrator: Optional[TrajectoryIntegrator] = None,
                 cache: Optional[TrajectoryCache] = None):
        self.integrator = integrator or TrajectoryIntegrator()
        self.cache = cache if cache is not None else TrajectoryCache()

    @classmethod
    def from_config(cls, config):
        return cls(
            integrator=TrajectoryIntegrator(IntegratorSettings.from_config(config)),
            cache=TrajectoryCache.from_config(config),
        )

    @staticmethod
    def cache_key(request) -> str:
        return SimulationRequest.parse(request).cache_key()

    def calculate_trajectory(self, request) -> TrajectoryResult:
        """
        Simulate a validated request, or a mapping that validates as one.

        Identical requests inside the cache TTL return the very same result
        object without touching the integrator.
        """
        request = SimulationRequest.parse(request)
        key = request.cache_key()
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("trajectory cache hit")
            return cached

        logger.debug("trajectory cache miss; integrating")
        initial_state, environment, properties = request.to_domain()
        result = self.integrator.integrate(initial_state, environment, properties,
                                           target_distance=request.target_distance)
        self.cache.set(key, result)
        logger.info("simulated trajectory: %.2f m in %.2f s (%s)",
                    result.metrics.total_distance, result.metrics.flight_time, result.termination)
        return result

    def calculate_adjustment(self, request) -> DistanceAdjustment:
        request = AdjustmentRequest.parse(request)
        return calculate_adjustment(request.target_distance, request.environment.to_domain())
