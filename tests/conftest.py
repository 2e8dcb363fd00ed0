import pytest


@pytest.fixture
def simulation_payload():
    return {
        "target_distance": 400.0,
        "environment": {
            "temperature": 20.0,
            "pressure": 101325.0,
            "humidity": 0.5,
            "altitude": 0.0,
            "wind": {"x": 0.0, "y": 0.0, "z": 0.0},
        },
        "properties": {"mass": 0.0459, "radius": 0.0214},
        "initial_state": {
            "position": {"x": 0.0, "y": 0.0, "z": 0.0},
            "velocity": {"x": 48.5, "y": 12.1, "z": 0.0},
            "spin": {"rate": 2800.0, "axis": {"x": 0.0, "y": 0.0, "z": 1.0}},
        },
    }
