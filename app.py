import argparse
import logging
import sys
from dataclasses import replace

from ml.classifier import MaskClassifier
from ml.config import DEFAULT_MODEL_PATH
from trust.config import LockScope, StabilizerConfig, apply_env_overrides, load_config
from trust.face_registry import FaceStatusRegistry
from trust.status_stabilizer import StatusStabilizer
from ui.camera_loop import CameraLoop
from vision.face_detector import DEFAULT_CASCADE, HaarFaceDetector

PROJECT_NAME = "Face Mask Detector"
PROJECT_VERSION = "1.0.0"

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ["debug", "info", "warning", "error"]

logger = logging.getLogger("app")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="face-mask-detector",
        description="Realtime face mask detection with anti-flicker status locking.",
        epilog="examples: -i 1 (camera 1), -i video.mp4, -i 0 -o output.avi",
    )
    parser.add_argument("-c", "--config", help="INI file with a [stabilizer] section")
    parser.add_argument("-i", "--input", default="0",
                        help="Camera index or video file path (default: 0)")
    parser.add_argument("-o", "--output", help="Record the annotated video to this file")
    parser.add_argument("-S", "--save-output", action="store_true",
                        help="Start with recording enabled (toggle with 's')")
    parser.add_argument("--model", default=DEFAULT_MODEL_PATH, help="ONNX mask classifier")
    parser.add_argument("--cascade", default=DEFAULT_CASCADE, help="Haar cascade for faces")
    parser.add_argument("--lock-scope", choices=[s.value for s in LockScope],
                        help="Lock ownership across faces (overrides config)")
    parser.add_argument("--fps", type=float,
                        help="Expected frame rate; rescales lock durations")
    parser.add_argument("--gpu", action="store_true", help="Run the classifier on CUDA")
    parser.add_argument("-q", "--quiet", action="store_true", help="Disable the preview window")
    parser.add_argument("--no-display", action="store_true", help="Disable GUI display")
    parser.add_argument("--log-file", help="Append log records to this file")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="info",
                        help="Log level (default: info)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging, same as --log-level debug")
    parser.add_argument("--version", action="version",
                        version=f"{PROJECT_NAME} {PROJECT_VERSION}")
    return parser


def setup_logging(level="info", log_file=None):
    level = getattr(logging, level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)

    if log_file:
        try:
            handler = logging.FileHandler(log_file, mode="a")
        except OSError as e:
            logger.warning("Could not open log file %s: %s", log_file, e)
            return
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


def resolve_config(args, environ=None) -> StabilizerConfig:
    """File, then environment, then command line."""
    config = load_config(args.config) if args.config else StabilizerConfig()
    config = apply_env_overrides(config, environ)
    if args.lock_scope:
        config = replace(config, lock_scope=LockScope(args.lock_scope))
    if args.fps is not None:
        config = config.for_frame_rate(args.fps)
    return config


def build_loop(args, detector, classifier, config, **kwargs) -> CameraLoop:
    """Wire the frame loop from parsed arguments."""
    save_output = args.save_output or bool(args.output)
    if save_output and not args.output:
        logger.warning("--save-output given without --output, nothing will be recorded")

    registry = FaceStatusRegistry(StatusStabilizer(config))
    return CameraLoop(
        detector, classifier,
        registry=registry,
        source=args.input,
        output_path=args.output,
        save_output=save_output,
        show_display=not (args.quiet or args.no_display),
        **kwargs,
    )


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging("debug" if args.verbose else args.log_level, args.log_file)

    try:
        config = resolve_config(args)
        detector = HaarFaceDetector(cascade=args.cascade)
        classifier = MaskClassifier(args.model, use_gpu=args.gpu)
    except (FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        return 1

    logger.info("Stabilizer: %s", config)
    loop = build_loop(args, detector, classifier, config)
    return 0 if loop.run() else 1


if __name__ == "__main__":
    sys.exit(main())
