from pathlib import Path
from typing import Tuple

import cv2, numpy as np

def load_calib(path: str) -> Tuple[np.ndarray, np.ndarray, tuple[int,int]]:
    """Read camera matrix, distortion coefficients and image size from an OpenCV FileStorage file."""
    if not Path(path).exists():
        raise FileNotFoundError(f"Calibration file not found: {path}")
    fs = cv2.FileStorage(path, cv2.FILE_STORAGE_READ)
    if not fs.isOpened():
        raise RuntimeError(f"Invalid camera file: {path}")
    K = fs.getNode("camera_matrix").mat()
    dist_node = fs.getNode("distortion_coefficients")
    if dist_node.empty():
        dist_node = fs.getNode("dist_coeffs")
    dist = dist_node.mat()
    w = int(fs.getNode("image_width").real()); h = int(fs.getNode("image_height").real())
    fs.release()
    if K is None or dist is None:
        raise RuntimeError(f"Invalid camera file: {path}")
    return K, dist, (w, h)
