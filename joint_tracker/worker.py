from __future__ import annotations

import time
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .capture import BaseCapture, OpenCVCapture, SyntheticCapture
from .config import TrackerConfig
from .detect import MarkerPoseEstimator, build_estimator
from .joints import evaluate_frame
from .logging_utils import add_file_handler, setup_logger
from .output import CsvOutput, OutputSink, next_indexed_path
from .sampling import SamplingScheduler

# detection timing is logged every this many frames
TIMING_LOG_EVERY = 30


@dataclass
class SessionSummary:
    output_path: str
    frames_processed: int
    rows_written: int
    log_path: str
    avg_fps: float
    errors: int


class NoDetect:
    def estimate(self, frame) -> list:
        return []


class JointTrackerWorker:
    def __init__(
        self,
        config: TrackerConfig,
        logger=None,
        outputs: Optional[list[OutputSink]] = None,
        capture: Optional[BaseCapture] = None,
        estimator: Optional[MarkerPoseEstimator] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.config = config.validate()
        self.logger = logger or setup_logger(config.session_name)
        self.capture = capture
        self.estimator = estimator
        self.clock = clock
        self._stop_event = threading.Event()

        if outputs is None:
            if config.output_path:
                self.output_path = Path(config.output_path)
            else:
                self.output_path = next_indexed_path(config.output_dir)
            outputs = [CsvOutput(self.output_path, config.num_joints)]
        else:
            self.output_path = Path(config.output_path) if config.output_path else None
        self.outputs = outputs

    def stop(self) -> None:
        self._stop_event.set()

    def _build_capture(self) -> BaseCapture:
        if self.capture is not None:
            return self.capture
        if self.config.dry_run:
            return SyntheticCapture()
        if self.config.video_path:
            return OpenCVCapture(self.config.video_path)
        return OpenCVCapture(
            self.config.camera_id,
            fps=self.config.camera_fps,
            width=self.config.frame_width,
            height=self.config.frame_height,
        )

    def _build_estimator(self):
        if self.estimator is not None:
            return self.estimator
        if self.config.dry_run:
            return NoDetect()
        return build_estimator(self.config)

    def _close_outputs(self) -> None:
        for out in self.outputs:
            try:
                out.close()
            except Exception as e:
                self.logger.warning("Failed to close output: %s", e)

    def run(self) -> SessionSummary:
        cfg = self.config
        if not cfg.log_path:
            return self._run("")

        log_file = str(cfg.log_path)
        handler = add_file_handler(self.logger, cfg.session_name, log_file)
        try:
            return self._run(log_file)
        finally:
            self.logger.removeHandler(handler)
            handler.close()

    def _run(self, log_file: str) -> SessionSummary:
        cfg = self.config
        estimator = self._build_estimator()
        if isinstance(estimator, MarkerPoseEstimator):
            self.logger.info("corner refinement method: %d", estimator.detector.corner_refinement)
            if not estimator.estimates_pose:
                self.logger.warning("no calibration file given; joint angles will not be estimated")

        opened: list[OutputSink] = []
        try:
            for out in self.outputs:
                out.open()
                opened.append(out)
        except Exception:
            for out in opened:
                out.close()
            raise
        if self.output_path is not None:
            self.logger.info("File \"%s\" opened successfully", self.output_path)

        scheduler = SamplingScheduler(cfg.collection_interval())
        self.logger.info("session started: %s", cfg.session_name)
        self.logger.info("config: %s", cfg.as_dict())

        cap = self._build_capture()
        t0 = self.clock()
        t_first: Optional[float] = None
        frames = 0
        rows = 0
        errors = 0
        detection_total = 0.0

        try:
            cap.start()
            t0 = self.clock()
            while True:
                if self._stop_event.is_set():
                    break
                if cfg.duration_sec and (self.clock() - t0) >= cfg.duration_sec:
                    break
                if cfg.max_frames and frames >= cfg.max_frames:
                    break

                f = cap.next_frame()
                if f is None:
                    break
                if t_first is None:
                    t_first = self.clock()

                tick = self.clock()
                try:
                    observations = estimator.estimate(f)
                except Exception as e:
                    self.logger.warning("frame=%d marker estimation failed: %s", f.idx, e)
                    errors += 1
                    observations = []
                detection_ms = (self.clock() - tick) * 1000.0
                detection_total += detection_ms
                frames += 1

                if frames % TIMING_LOG_EVERY == 0:
                    self.logger.info(
                        "Detection Time = %.3f ms (Mean = %.3f ms)",
                        detection_ms,
                        detection_total / frames,
                    )

                result = evaluate_frame(observations, cfg.num_joints)
                elapsed = self.clock() - t_first

                if scheduler.tick(elapsed):
                    for out in self.outputs:
                        out.write_sample(elapsed, result.angles, result.orientations)
                    rows += 1

                self.logger.debug(
                    "frame=%d markers=%d joints=%d/%d pose_failures=%d",
                    f.idx,
                    result.markers_seen,
                    result.joints_detected,
                    cfg.num_joints,
                    getattr(estimator, "last_pose_failures", 0),
                )

        finally:
            try:
                cap.stop()
            except Exception as e:
                self.logger.warning("Failed to stop capture: %s", e)
            self._close_outputs()

        avg = frames / max(1e-6, (self.clock() - t0))
        self.logger.info(
            "summary frames=%d rows=%d avg_fps=%.2f errors=%d", frames, rows, avg, errors
        )

        return SessionSummary(
            str(self.output_path) if self.output_path is not None else "",
            frames,
            rows,
            log_file,
            avg,
            errors,
        )
