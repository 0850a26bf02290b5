from __future__ import annotations


def should_emit(
    elapsed: float, last_emitted: float, interval: float, is_first_frame: bool
) -> bool:
    """True on the first frame, or once ``interval`` seconds have passed since the last row."""
    if is_first_frame:
        return True
    return elapsed - last_emitted >= interval


def collection_interval(rate: float, from_file: bool = False) -> float:
    """
    Seconds between emitted rows.

    Pre-recorded video is drained as fast as it decodes, and a rate of 0
    means every frame is written, live camera included.
    """
    if rate < 0:
        raise ValueError(f"collection rate must be >= 0, got {rate}")
    if from_file or rate == 0:
        return 0.0
    return 1.0 / rate


class SamplingScheduler:
    """Decides which frames become rows. Skipped frames are dropped, never back-filled."""

    def __init__(self, interval: float):
        if interval < 0:
            raise ValueError(f"collection interval must be >= 0, got {interval}")
        self.interval = float(interval)
        self.last_emitted = 0.0
        self.first_frame = True

    def tick(self, elapsed: float) -> bool:
        emit = should_emit(elapsed, self.last_emitted, self.interval, self.first_frame)
        self.first_frame = False
        if emit:
            self.last_emitted = elapsed
        return emit
