from pathlib import Path

import cv2
from ..ip_types import Frame, Detection

# Index order matches the numeric dictionary codes accepted on the command line.
DICT_NAMES = [
    "4x4_50", "4x4_100", "4x4_250", "4x4_1000",
    "5x5_50", "5x5_100", "5x5_250", "5x5_1000",
    "6x6_50", "6x6_100", "6x6_250", "6x6_1000",
    "7x7_50", "7x7_100", "7x7_250", "7x7_1000",
    "aruco_original",
    "apriltag_16h5", "apriltag_25h9", "apriltag_36h10", "apriltag_36h11",
]

CORNER_REFINEMENTS = ("none", "subpix", "contour", "apriltag")

# Keys readable from a detector parameters file
DETECTOR_PARAM_KEYS = {
    "adaptiveThreshWinSizeMin": int,
    "adaptiveThreshWinSizeMax": int,
    "adaptiveThreshWinSizeStep": int,
    "adaptiveThreshConstant": float,
    "minMarkerPerimeterRate": float,
    "maxMarkerPerimeterRate": float,
    "polygonalApproxAccuracyRate": float,
    "minCornerDistanceRate": float,
    "minDistanceToBorder": int,
    "minMarkerDistanceRate": float,
    "cornerRefinementMethod": int,
    "cornerRefinementWinSize": int,
    "cornerRefinementMaxIterations": int,
    "cornerRefinementMinAccuracy": float,
    "markerBorderBits": int,
    "perspectiveRemovePixelPerCell": int,
    "perspectiveRemoveIgnoredMarginPerCell": float,
    "maxErroneousBitsInBorderRate": float,
    "minOtsuStdDev": float,
    "errorCorrectionRate": float,
}


def normalize_dict_name(name) -> str:
    """
    Accepts "4x4_50", "DICT_4X4_50" or the numeric index ("0".."20").
    Raises ValueError for anything else.
    """
    if isinstance(name, int):
        key = str(name)
    else:
        key = (name or "").strip()
    if key.isdigit():
        idx = int(key)
        if idx >= len(DICT_NAMES):
            raise ValueError(f"Unknown ArUco dictionary index: {idx}")
        return DICT_NAMES[idx]
    key = key.lower()
    if key.startswith("dict_"):
        key = key[5:]
    if key not in DICT_NAMES:
        raise ValueError(f"Unknown ArUco dictionary: {name}")
    return key


def get_dict(name):
    """
    Dictionary resolver for ArUco and AprilTag families.
    Works on OpenCV 4.12 (getPredefinedDictionary) and older (Dictionary_get).
    """
    key = normalize_dict_name(name)
    if key.startswith("apriltag_"):
        attr = "DICT_APRILTAG_" + key[len("apriltag_"):]  # e.g. DICT_APRILTAG_36h11
    else:
        attr = f"DICT_{key.upper()}"
    code = getattr(cv2.aruco, attr)

    if hasattr(cv2.aruco, "getPredefinedDictionary"):           # OpenCV >= 4.7
        return cv2.aruco.getPredefinedDictionary(code)
    return cv2.aruco.Dictionary_get(code)                        # Older OpenCV

def _make_params():
    """Create detector parameters across OpenCV versions."""
    if hasattr(cv2.aruco, "DetectorParameters_create"):
        return cv2.aruco.DetectorParameters_create()
    return cv2.aruco.DetectorParameters()


def load_detector_params(path: str, params=None):
    """Fill detector parameters from an OpenCV FileStorage (YAML/XML) file.

    Keys absent from the file keep their OpenCV defaults.
    """
    if not Path(path).exists():
        raise FileNotFoundError(f"Detector parameters file not found: {path}")
    if params is None:
        params = _make_params()
    fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_READ)
    if not fs.isOpened():
        raise RuntimeError(f"Invalid detector parameters file: {path}")
    try:
        for key, cast in DETECTOR_PARAM_KEYS.items():
            node = fs.getNode(key)
            if node.empty():
                continue
            setattr(params, key, cast(node.real()))
    finally:
        fs.release()
    return params


class ArucoDetect:
    """
    Strategy: detect ArUco markers in a frame.
    Returns a list[Detection] with (marker_id, corners).
    Pose is estimated later by the Localize strategy.
    """
    def __init__(self, dict_name="4x4_50", params_path=None, corner_refinement=None):
        self.dictionary = get_dict(dict_name)
        if params_path:
            self.params = load_detector_params(params_path)
        else:
            self.params = _make_params()
        if corner_refinement is not None:
            # overrides whatever the parameters file said
            self.params.cornerRefinementMethod = int(corner_refinement)
        self._detector = None
        # Prefer the newer ArucoDetector API if present
        if hasattr(cv2.aruco, "ArucoDetector"):
            self._detector = cv2.aruco.ArucoDetector(self.dictionary, self.params)

    @property
    def corner_refinement(self) -> int:
        return int(self.params.cornerRefinementMethod)

    def detect(self, f: Frame) -> list[Detection]:
        if self._detector is not None:
            corners, ids, _rej = self._detector.detectMarkers(f.image)
        else:
            corners, ids, _rej = cv2.aruco.detectMarkers(
                f.image, self.dictionary, parameters=self.params
            )

        dets: list[Detection] = []
        if ids is not None and len(ids) > 0:
            for i, mid in enumerate(ids.flatten()):
                dets.append(Detection(int(mid), corners[i]))
        return dets
