"""Joint angle tracking from ArUco markers."""

from .config import TrackerConfig
from .worker import JointTrackerWorker

__all__ = ["TrackerConfig", "JointTrackerWorker"]
