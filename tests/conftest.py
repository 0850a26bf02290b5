import math

import numpy as np
import pytest

from marker_pipeline.ip_types import MarkerObservation


def rot_x(deg):
    a = math.radians(deg)
    c, s = math.cos(a), math.sin(a)
    return np.array([[1, 0, 0], [0, c, -s], [0, s, c]], dtype=np.float64)


def rot_y(deg):
    a = math.radians(deg)
    c, s = math.cos(a), math.sin(a)
    return np.array([[c, 0, s], [0, 1, 0], [-s, 0, c]], dtype=np.float64)


def rot_z(deg):
    a = math.radians(deg)
    c, s = math.cos(a), math.sin(a)
    return np.array([[c, -s, 0], [s, c, 0], [0, 0, 1]], dtype=np.float64)


def obs(marker_id, translation, rotation=None):
    """Shorthand for a MarkerObservation with identity rotation by default."""
    if rotation is None:
        rotation = np.eye(3)
    return MarkerObservation(marker_id, np.asarray(rotation, dtype=np.float64),
                             np.asarray(translation, dtype=np.float64))


@pytest.fixture
def right_angle_chain():
    """Three markers forming a 90 degree joint at marker 1."""
    return [
        obs(0, [1.0, 0.0, 0.0]),
        obs(1, [0.0, 0.0, 0.0]),
        obs(2, [0.0, 1.0, 0.0]),
    ]
