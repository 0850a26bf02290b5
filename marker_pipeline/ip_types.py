from dataclasses import dataclass
from typing import Any

import numpy as np

@dataclass
class Frame:
    idx: int
    ts_iso: str
    image: Any  # numpy array

@dataclass
class Detection:
    marker_id: int
    corners: Any  # (1,4,2) ndarray

@dataclass
class Pose:
    rvec: Any
    tvec: Any

@dataclass
class MarkerObservation:
    """One marker seen in the current frame, already pose-estimated."""
    marker_id: int
    rotation: np.ndarray  # (3,3) orthonormal
    translation: np.ndarray  # (3,)
