import time
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

import cv2
import numpy as np

from marker_pipeline.ip_types import Frame


class BaseCapture(ABC):
    @abstractmethod
    def start(self) -> None: ...

    @abstractmethod
    def next_frame(self) -> Frame | None: ...

    @abstractmethod
    def stop(self) -> None: ...


class OpenCVCapture(BaseCapture):
    """Camera index, /dev/videoN path or video file through cv2.VideoCapture.

    ``next_frame`` returns None once the stream is exhausted.
    """

    def __init__(
        self,
        source: int | str,
        fps: Optional[int] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ):
        self.source = source
        self.fps = fps
        self.width = width
        self.height = height
        self.cap: Any = None
        self.idx = 0

    @property
    def is_file(self) -> bool:
        return isinstance(self.source, str) and not re.match(r"^(/dev/video)?\d+$", self.source)

    def start(self) -> None:
        if isinstance(self.source, int):
            self.cap = cv2.VideoCapture(self.source)
        else:
            src = str(self.source)
            match = re.match(r"^(?:/dev/video)?(\d+)$", src)
            if match:
                self.cap = cv2.VideoCapture(int(match.group(1)))
            else:
                self.cap = cv2.VideoCapture(src)

        if not self.is_file:
            if self.width:
                self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            if self.height:
                self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
            if self.fps:
                self.cap.set(cv2.CAP_PROP_FPS, self.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open video source: {self.source}")

    def next_frame(self) -> Frame | None:
        ok, img = self.cap.read()
        if not ok:
            return None
        self.idx += 1
        ts = time.strftime("%Y-%m-%dT%H:%M:%S")
        return Frame(self.idx, ts, img)

    def stop(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None


class SyntheticCapture(BaseCapture):
    def __init__(self, fps: int = 30, width: int = 640, height: int = 480):
        self.fps = fps
        self.width = width
        self.height = height
        self.idx = 0
        self._last = 0.0

    def start(self) -> None:
        self._last = time.time()

    def next_frame(self) -> Frame | None:
        now = time.time()
        if self.fps > 0:
            wait = max(0.0, (1.0 / self.fps) - (now - self._last))
            if wait > 0:
                time.sleep(wait)
        self._last = time.time()
        self.idx += 1
        img = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        ts = time.strftime("%Y-%m-%dT%H:%M:%S")
        return Frame(self.idx, ts, img)

    def stop(self) -> None:
        return None
