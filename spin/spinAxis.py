import math

import numpy as np


def calculate_spin_axis(backspin_rpm, sidespin_rpm):
    """Spin-axis tilt in degrees. Positive tilts right (fade), negative left (draw)."""
    if backspin_rpm == 0 and sidespin_rpm == 0:
        return 0.0
    return math.degrees(math.atan2(sidespin_rpm, backspin_rpm))


def spin_axis_vector(axis_deg):
    """Unit spin axis for a tilt angle: +z (pure backspin) rotated by -axis_deg about x."""
    angle = math.radians(axis_deg)
    return np.array([0.0, math.sin(angle), math.cos(angle)], dtype=float)
