from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence

from marker_pipeline.services.csv_writer import JointCsvWriter

from .joints import JointAngle
from .transforms import Orientation

MAX_OUTPUT_INDEX = 2**31 - 1


def next_indexed_path(
    directory: str | Path = ".",
    stem: str = "output",
    suffix: str = ".csv",
    max_index: int = MAX_OUTPUT_INDEX,
) -> Path:
    """First ``<stem>N<suffix>`` (N from 1) that does not exist yet in ``directory``."""
    d = Path(directory)
    for idx in range(1, max_index + 1):
        p = d / f"{stem}{idx}{suffix}"
        if not p.exists():
            return p
    raise RuntimeError("Maximum number of indexed output files used")


class OutputSink(ABC):
    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def write_sample(
        self,
        elapsed: float,
        angles: Sequence[JointAngle],
        orientations: Sequence[Optional[Orientation]],
    ) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class CsvOutput(OutputSink):
    """Joint angle CSV. Refuses to overwrite an existing file."""

    def __init__(self, path: str | Path, num_joints: int):
        self.path = Path(path)
        self.num_joints = num_joints
        self._writer: Optional[JointCsvWriter] = None

    def open(self) -> None:
        if self.path.exists():
            raise FileExistsError(f"File {self.path} already exists")
        self._writer = JointCsvWriter(str(self.path), self.num_joints)
        self._writer.open()
        self._writer.flush()

    def write_sample(
        self,
        elapsed: float,
        angles: Sequence[JointAngle],
        orientations: Sequence[Optional[Orientation]],
    ) -> None:
        if self._writer is None:
            return
        self._writer.append(elapsed, angles, orientations)
        # flushed per row
        self._writer.flush()

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None


class NullOutput(OutputSink):
    def open(self) -> None:
        return None

    def write_sample(
        self,
        elapsed: float,
        angles: Sequence[JointAngle],
        orientations: Sequence[Optional[Orientation]],
    ) -> None:
        return None

    def close(self) -> None:
        return None
