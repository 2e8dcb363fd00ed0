import numpy as np

from .models import TrajectoryMetrics


def calculate_descending_angle(samples):
    """Descent angle at the last sample.

    Parameters
    ----------
    samples : sequence of Sample
        Trajectory samples in time order.

    Returns
    -------
    float
        Angle below the horizon in degrees. Positive while the ball is coming
        down, negative while it is still climbing.
    """
    if not samples:
        return 0.0
    velocity = samples[-1].velocity
    horizontal_speed = np.linalg.norm(velocity[[0, 2]])
    if horizontal_speed == 0 and velocity[1] == 0:
        return 0.0
    return float(np.degrees(np.arctan2(-velocity[1], horizontal_speed)))


def get_trajectory_metrics(samples):
    """
    Summary metrics computed from the trajectory samples alone, so they always
    agree with the samples a caller sees.

    Parameters
    ----------
    samples : sequence of Sample
        Trajectory samples in time order, the first one at launch.

    Returns
    -------
    TrajectoryMetrics
        Distances in metres, time in seconds, landing angle in degrees.
    """
    if not samples:
        return TrajectoryMetrics(0.0, 0.0, 0.0, 0.0, 0.0)

    positions = np.array([s.position for s in samples])
    first, last = positions[0], positions[-1]

    total_distance = float(np.linalg.norm((last - first)[[0, 2]]))
    apex_height = float(positions[:, 1].max() - first[1])
    flight_time = float(samples[-1].time - samples[0].time)
    lateral_deviation = float(last[2] - first[2])

    return TrajectoryMetrics(
        total_distance=total_distance,
        apex_height=apex_height,
        flight_time=flight_time,
        lateral_deviation=lateral_deviation,
        landing_angle=calculate_descending_angle(samples),
    )
