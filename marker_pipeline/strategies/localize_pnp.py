import cv2, numpy as np
from ..ip_types import Detection, Pose

class PnPLocalize:
    def __init__(self, K, dist, marker_length_m: float):
        self.K, self.dist, self.L = K, dist, marker_length_m

    def _object_points(self) -> np.ndarray:
        h = self.L / 2.0
        # marker corner order: top-left, top-right, bottom-right, bottom-left
        return np.array(
            [[-h, h, 0.0], [h, h, 0.0], [h, -h, 0.0], [-h, -h, 0.0]],
            dtype=np.float32,
        )

    def _estimate_one(self, corners) -> Pose:
        if hasattr(cv2.aruco, "estimatePoseSingleMarkers"):
            rvec, tvec, _ = cv2.aruco.estimatePoseSingleMarkers([corners], self.L, self.K, self.dist)
            return Pose(rvec[0], tvec[0])
        # Removed from newer OpenCV builds; same square-marker solve via solvePnP
        img_pts = np.asarray(corners, dtype=np.float32).reshape(4, 2)
        ok, rvec, tvec = cv2.solvePnP(
            self._object_points(), img_pts, self.K, self.dist, flags=cv2.SOLVEPNP_IPPE_SQUARE
        )
        if not ok:
            raise RuntimeError("solvePnP failed")
        return Pose(rvec.reshape(1, 3), tvec.reshape(1, 3))

    def estimate(self, detections: list[Detection]) -> list[Pose]:
        poses = []
        if self.L <= 0 or not detections: return poses
        for det in detections:
            poses.append(self._estimate_one(det.corners))
        return poses
