import csv
import io
import math


def _fmt(value: float) -> str:
    # six significant digits; +0.0 folds negative zero
    return f"{float(value) + 0.0:g}"


class JointCsvWriter:
    """Writes one row per emitted sample: elapsed time, joint angles, marker rotations."""

    def __init__(self, csv_path: str, num_joints: int):
        self.csv_path = csv_path
        self.num_joints = num_joints
        self._opened = False
        self._fh = None
        self._w = None

    @staticmethod
    def header(num_joints: int) -> list[str]:
        cols = ["Total Time"]
        cols += [f"Joint {i} Angle" for i in range(1, num_joints + 1)]
        cols += [f"Marker {i} Rotation" for i in range(num_joints + 2)]
        return cols

    def open(self):
        self._fh = open(self.csv_path, "x", newline="")
        self._w = csv.writer(self._fh, lineterminator="\n")
        self._w.writerow(self.header(self.num_joints))
        self._opened = True

    @staticmethod
    def to_row(elapsed, angles, orientations) -> list[str]:
        """
        Format one sample.

        Args:
            elapsed: seconds since the first processed frame
            angles: JointAngle per joint
            orientations: Orientation (or None) per slot

        Returns:
            List of string fields; missing data is an empty string.
        """
        row = [_fmt(elapsed)]
        for angle in angles:
            if angle.detected and not math.isnan(angle.value):
                row.append(_fmt(angle.value))
            else:
                row.append("")
        for ori in orientations:
            if ori is None:
                row.append("")
            else:
                row.append(",".join(_fmt(v) for v in (ori.bank, ori.heading, ori.attitude)))
        return row

    def append(self, elapsed, angles, orientations):
        self._w.writerow(self.to_row(elapsed, angles, orientations))

    @classmethod
    def to_csv_line(cls, elapsed, angles, orientations):
        buf = io.StringIO()
        w = csv.writer(buf, lineterminator="\n")
        w.writerow(cls.to_row(elapsed, angles, orientations))
        return buf.getvalue().strip()

    def flush(self):
        if self._opened and self._fh:
            self._fh.flush()

    def close(self):
        if self._opened and self._fh:
            self._fh.close()
            self._opened = False
            self._fh = None
            self._w = None
