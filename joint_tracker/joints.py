"""Per-frame projection of marker observations onto the joint chain.

Joint ``i`` is the angle at slot ``i + 1`` between the arms reaching to slots
``i`` and ``i + 2``. ``num_joints`` joints therefore need ``num_joints + 2``
slots. Everything here is rebuilt from the current frame only.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from marker_pipeline.ip_types import MarkerObservation

from .transforms import Orientation, rotation_to_euler


@dataclass
class JointSlot:
    translation: np.ndarray  # (3,)
    rotation: np.ndarray  # (3,3)


@dataclass
class JointAngle:
    value: float  # degrees, nan when not detected
    detected: bool


@dataclass
class FrameResult:
    slots: list[Optional[JointSlot]]
    angles: list[JointAngle]
    orientations: list[Optional[Orientation]]

    @property
    def markers_seen(self) -> int:
        return sum(1 for s in self.slots if s is not None)

    @property
    def joints_detected(self) -> int:
        return sum(1 for a in self.angles if a.detected)


def slot_count(num_joints: int) -> int:
    return num_joints + 2


def aggregate(
    observations: Iterable[MarkerObservation], num_joints: int
) -> list[Optional[JointSlot]]:
    """Slot this frame's observations by marker id.

    Ids outside ``0 .. num_joints + 1`` are ignored. If an id shows up more
    than once, the last observation wins.
    """
    slots: list[Optional[JointSlot]] = [None] * slot_count(num_joints)
    for obs in observations:
        mid = int(obs.marker_id)
        if 0 <= mid < len(slots):
            slots[mid] = JointSlot(
                np.asarray(obs.translation, dtype=np.float64).reshape(3),
                np.asarray(obs.rotation, dtype=np.float64),
            )
    return slots


def angle_at(slots: list[Optional[JointSlot]], i: int) -> JointAngle:
    """Bend angle of joint ``i`` in degrees, vertex at slot ``i + 1``."""
    if i < 0 or i + 2 >= len(slots):
        raise IndexError(f"joint index {i} out of range for {len(slots)} slots")

    a, vertex, b = slots[i], slots[i + 1], slots[i + 2]
    if a is None or vertex is None or b is None:
        return JointAngle(float("nan"), False)

    v1 = a.translation - vertex.translation
    v2 = b.translation - vertex.translation
    n1 = float(np.linalg.norm(v1))
    n2 = float(np.linalg.norm(v2))
    if n1 == 0.0 or n2 == 0.0:
        return JointAngle(float("nan"), False)

    cos = float(np.dot(v1, v2)) / (n1 * n2)
    cos = min(1.0, max(-1.0, cos))
    return JointAngle(math.degrees(math.acos(cos)), True)


def joint_angles(slots: list[Optional[JointSlot]], num_joints: int) -> list[JointAngle]:
    return [angle_at(slots, i) for i in range(num_joints)]


def slot_orientations(slots: list[Optional[JointSlot]]) -> list[Optional[Orientation]]:
    return [None if s is None else rotation_to_euler(s.rotation) for s in slots]


def evaluate_frame(
    observations: Iterable[MarkerObservation], num_joints: int
) -> FrameResult:
    slots = aggregate(observations, num_joints)
    return FrameResult(
        slots,
        joint_angles(slots, num_joints),
        slot_orientations(slots),
    )
