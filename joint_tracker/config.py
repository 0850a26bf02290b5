from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Optional

from marker_pipeline.strategies.detect_aruco import CORNER_REFINEMENTS, normalize_dict_name

from .sampling import collection_interval


@dataclass
class TrackerConfig:
    session_name: str = "tracker"
    num_joints: int = 1
    collection_rate: float = 0.0  # rows per second, 0 = every frame
    aruco_dict: str = "4x4_50"
    camera_id: int | str = 0
    camera_fps: Optional[int] = None  # requested from the camera driver
    frame_width: Optional[int] = None
    frame_height: Optional[int] = None
    video_path: Optional[str] = None  # read from file instead of camera
    calibration_path: Optional[str] = None  # no calibration -> no poses
    marker_length_m: float = 0.1
    detector_params_path: Optional[str] = None
    corner_refinement: Optional[int] = None  # overrides detector params file
    output_path: Optional[str] = None  # None -> first unused outputN.csv
    output_dir: str = "."
    log_path: Optional[str] = None
    max_frames: Optional[int] = None
    duration_sec: Optional[float] = None
    dry_run: bool = False

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def apply_overrides(self, **kwargs: Any) -> "TrackerConfig":
        for key, value in kwargs.items():
            if value is not None and hasattr(self, key):
                setattr(self, key, value)
        return self

    @property
    def from_file(self) -> bool:
        return bool(self.video_path)

    def collection_interval(self) -> float:
        return collection_interval(self.collection_rate, self.from_file)

    def validate(self) -> "TrackerConfig":
        if self.num_joints < 0:
            raise ValueError(f"num_joints must be >= 0, got {self.num_joints}")
        if self.collection_rate < 0:
            raise ValueError(f"collection_rate must be >= 0, got {self.collection_rate}")
        if self.marker_length_m <= 0:
            raise ValueError(f"marker_length_m must be > 0, got {self.marker_length_m}")
        if self.corner_refinement is not None and not (
            0 <= self.corner_refinement < len(CORNER_REFINEMENTS)
        ):
            raise ValueError(
                f"corner_refinement must be 0..{len(CORNER_REFINEMENTS) - 1}, "
                f"got {self.corner_refinement}"
            )
        if self.max_frames is not None and self.max_frames < 0:
            raise ValueError(f"max_frames must be >= 0, got {self.max_frames}")
        for name in ("camera_fps", "frame_width", "frame_height"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")
        if self.duration_sec is not None and self.duration_sec < 0:
            raise ValueError(f"duration_sec must be >= 0, got {self.duration_sec}")
        self.aruco_dict = normalize_dict_name(self.aruco_dict)
        return self


def _optional(value: Any, cast):
    if value is None:
        return None
    return cast(value)


def _load_yaml(path: Path) -> dict[str, Any]:
    import yaml

    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML config root must be a mapping")
    return data


def load_config(path: str | Path) -> TrackerConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")

    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = _load_yaml(p)
    else:
        with p.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)

    if not isinstance(raw, dict):
        raise ValueError("Config root must be a JSON/YAML object")

    cfg = TrackerConfig()
    cfg.session_name = str(raw.get("session_name", cfg.session_name))
    cfg.num_joints = int(raw.get("num_joints", cfg.num_joints))
    cfg.collection_rate = float(raw.get("collection_rate", cfg.collection_rate))
    cfg.aruco_dict = str(raw.get("aruco_dict", cfg.aruco_dict))
    cfg.camera_id = raw.get("camera_id", cfg.camera_id)
    cfg.camera_fps = _optional(raw.get("camera_fps", cfg.camera_fps), int)
    cfg.frame_width = _optional(raw.get("frame_width", cfg.frame_width), int)
    cfg.frame_height = _optional(raw.get("frame_height", cfg.frame_height), int)
    cfg.video_path = _optional(raw.get("video_path", cfg.video_path), str)
    cfg.calibration_path = _optional(raw.get("calibration_path", cfg.calibration_path), str)
    cfg.marker_length_m = float(raw.get("marker_length_m", cfg.marker_length_m))
    cfg.detector_params_path = _optional(
        raw.get("detector_params_path", cfg.detector_params_path), str
    )
    cfg.corner_refinement = _optional(raw.get("corner_refinement", cfg.corner_refinement), int)
    cfg.output_path = _optional(raw.get("output_path", cfg.output_path), str)
    cfg.output_dir = str(raw.get("output_dir", cfg.output_dir))
    cfg.log_path = _optional(raw.get("log_path", cfg.log_path), str)
    cfg.max_frames = _optional(raw.get("max_frames", cfg.max_frames), int)
    cfg.duration_sec = _optional(raw.get("duration_sec", cfg.duration_sec), float)
    cfg.dry_run = bool(raw.get("dry_run", cfg.dry_run))

    return cfg
