import argparse
import signal
import sys

from .config import TrackerConfig, load_config
from .worker import JointTrackerWorker


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Track joint angles from ArUco markers")
    ap.add_argument("--config", help="Path to JSON/YAML config")

    ap.add_argument("-d", "--dict", help="Dictionary name (4x4_50, apriltag_36h11, ...) or index 0-20")
    ap.add_argument("-v", "--video", help="Input video file; camera is used if omitted")
    ap.add_argument("--ci", "--camera-id", dest="camera_id", help="Camera id when not reading a file")
    ap.add_argument("--fps", type=int, help="Requested camera frame rate")
    ap.add_argument("--width", type=int, help="Requested camera frame width")
    ap.add_argument("--height", type=int, help="Requested camera frame height")
    ap.add_argument("-c", "--calib", help="Camera intrinsic parameters, needed for marker pose")
    ap.add_argument("-l", "--marker-length", type=float, help="Marker side length in meters")
    ap.add_argument("--dp", "--detector-params", dest="detector_params", help="Detector parameters file")
    ap.add_argument(
        "--refine", type=int, choices=range(4),
        help="Corner refinement: 0=none, 1=subpix, 2=contour, 3=apriltag",
    )
    ap.add_argument("-o", "--output", help="Output CSV; indexed outputN.csv if omitted")
    ap.add_argument("--cr", "--collection-rate", dest="collection_rate", type=float,
                    help="Rows per second (live camera only)")
    ap.add_argument("-j", "--joints", type=int, help="Number of joints to track")
    ap.add_argument("--max-frames", type=int)
    ap.add_argument("--duration", type=float)
    ap.add_argument("--log-file")
    ap.add_argument("--dry-run", action="store_true")

    return ap


def _apply_args(cfg: TrackerConfig, args: argparse.Namespace) -> TrackerConfig:
    camera_id = args.camera_id
    if isinstance(camera_id, str) and camera_id.isdigit():
        camera_id = int(camera_id)

    cfg.apply_overrides(
        aruco_dict=args.dict,
        video_path=args.video,
        camera_id=camera_id,
        camera_fps=args.fps,
        frame_width=args.width,
        frame_height=args.height,
        calibration_path=args.calib,
        marker_length_m=args.marker_length,
        detector_params_path=args.detector_params,
        corner_refinement=args.refine,
        output_path=args.output,
        collection_rate=args.collection_rate,
        num_joints=args.joints,
        max_frames=args.max_frames,
        duration_sec=args.duration,
        log_path=args.log_file,
        dry_run=args.dry_run if args.dry_run else None,
    )
    return cfg


def main(argv=None) -> int:
    ap = _build_parser()
    args = ap.parse_args(argv)

    try:
        cfg = load_config(args.config) if args.config else TrackerConfig()
        cfg = _apply_args(cfg, args)
        worker = JointTrackerWorker(cfg)
    except (ValueError, FileNotFoundError, RuntimeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    def _handle_signal(_sig, _frame):
        worker.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handle_signal)

    try:
        summary = worker.run()
    except (FileExistsError, FileNotFoundError, RuntimeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    print(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
