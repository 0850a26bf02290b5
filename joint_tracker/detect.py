from __future__ import annotations

from typing import Optional

import cv2

from marker_pipeline.ip_types import Frame, MarkerObservation
from marker_pipeline.services.calib import load_calib
from marker_pipeline.strategies.detect_aruco import ArucoDetect
from marker_pipeline.strategies.localize_pnp import PnPLocalize

from .config import TrackerConfig
from .transforms import pose_to_observation


class MarkerPoseEstimator:
    """Detection plus per-marker pose for one frame.

    Without a localizer (no calibration file) markers are still detected but
    no observations come out, so every joint reads as missing.
    """

    def __init__(self, detector: ArucoDetect, localizer: Optional[PnPLocalize] = None):
        self.detector = detector
        self.localizer = localizer
        self.last_detection_count = 0
        self.last_pose_failures = 0

    @property
    def estimates_pose(self) -> bool:
        return self.localizer is not None

    def estimate(self, frame: Frame) -> list[MarkerObservation]:
        dets = self.detector.detect(frame)
        self.last_detection_count = len(dets)
        self.last_pose_failures = 0
        if self.localizer is None or not dets:
            return []
        observations = []
        for det in dets:
            # a marker whose pose cannot be solved is dropped; the rest of the frame stands
            try:
                poses = self.localizer.estimate([det])
            except (RuntimeError, cv2.error):
                self.last_pose_failures += 1
                continue
            for pose in poses:
                observations.append(pose_to_observation(det.marker_id, pose.rvec, pose.tvec))
        return observations


def build_estimator(config: TrackerConfig) -> MarkerPoseEstimator:
    detector = ArucoDetect(
        config.aruco_dict,
        params_path=config.detector_params_path,
        corner_refinement=config.corner_refinement,
    )
    localizer = None
    if config.calibration_path:
        K, dist, _ = load_calib(config.calibration_path)
        localizer = PnPLocalize(K, dist, config.marker_length_m)
    return MarkerPoseEstimator(detector, localizer)
