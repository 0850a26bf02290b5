"""Rotation utilities for ArUco marker poses."""

import math
from dataclasses import dataclass

import numpy as np
import cv2

from marker_pipeline.ip_types import MarkerObservation


# Empirical pole threshold on R[1][0]; keep the exact value so output stays
# comparable with recordings made by earlier versions of the tracker.
GIMBAL_LOCK_THRESHOLD = 0.998


@dataclass
class Orientation:
    """X-Y-Z Tait-Bryan angles in degrees."""

    bank: float
    heading: float
    attitude: float

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.bank, self.heading, self.attitude)


def rvec_to_rotation(rvec: np.ndarray) -> np.ndarray:
    """
    Convert a Rodrigues rotation vector to a 3x3 rotation matrix.

    Args:
        rvec: Rotation vector (3,), (3,1) or (1,3)

    Returns:
        3x3 rotation matrix
    """
    rvec = np.asarray(rvec, dtype=np.float64).reshape(3)
    R, _ = cv2.Rodrigues(rvec)
    return R


def pose_to_observation(marker_id: int, rvec, tvec) -> MarkerObservation:
    """Build a MarkerObservation from an rvec/tvec pair as returned by the localizer."""
    return MarkerObservation(
        int(marker_id),
        rvec_to_rotation(rvec),
        np.asarray(tvec, dtype=np.float64).reshape(3),
    )


def rotation_to_euler(R: np.ndarray) -> Orientation:
    """
    Decompose a rotation matrix into bank/heading/attitude (X-Y-Z Tait-Bryan).

    The two gimbal-lock singularities (R[1][0] close to +1 or -1) pin bank to
    zero and attitude to +/-90 degrees; heading is then taken from R[0][2]
    and R[2][2].

    Args:
        R: 3x3 orthonormal rotation matrix

    Returns:
        Orientation in degrees
    """
    R = np.asarray(R, dtype=np.float64)
    m00, m02 = R[0, 0], R[0, 2]
    m10, m11, m12 = R[1, 0], R[1, 1], R[1, 2]
    m20, m22 = R[2, 0], R[2, 2]

    if m10 > GIMBAL_LOCK_THRESHOLD:  # north pole
        bank = 0.0
        attitude = math.pi / 2
        heading = math.atan2(m02, m22)
    elif m10 < -GIMBAL_LOCK_THRESHOLD:  # south pole
        bank = 0.0
        attitude = -math.pi / 2
        heading = math.atan2(m02, m22)
    else:
        bank = math.atan2(-m12, m11)
        attitude = math.asin(m10)
        heading = math.atan2(-m20, m00)

    return Orientation(
        math.degrees(bank),
        math.degrees(heading),
        math.degrees(attitude),
    )
