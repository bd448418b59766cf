import logging
import time

import cv2

from domain.models import FaceDetection, MaskStatus
from trust.config import NOMINAL_FPS
from trust.face_registry import FaceStatusRegistry
from ui.overlay_renderer import OverlayRenderer

logger = logging.getLogger(__name__)

WINDOW_NAME = "Face Mask Detector"
KEY_ESC = 27

# Camera capture properties
CAMERA_WIDTH = 640
CAMERA_HEIGHT = 480

OUTPUT_FOURCC = "XVID"
MAX_READ_FAILURES = 100  # Consecutive failed camera reads before giving up


def parse_source(value):
    """
    Interpret an input argument as a camera index or a video file path.

    Short digit strings ("0", "12") are camera indices; anything else is a path.
    """
    if isinstance(value, int):
        return value
    value = str(value).strip()
    if value.isdigit() and len(value) <= 2:
        return int(value)
    return value


class CameraLoop:
    """
    Frame loop: detect faces, classify each one, stabilize its status, draw.

    Face slots are detection indices; a slot is dropped as soon as a frame
    has fewer faces than its index.

    The source is a camera index or a video file path. A video file ends the
    loop at its last frame; a camera read failure is logged and retried.
    """

    def __init__(self, face_detector, classifier, registry=None, source=0,
                 renderer=None, window_name=WINDOW_NAME, output_path=None,
                 save_output=False, show_display=True,
                 capture_factory=cv2.VideoCapture, writer_factory=cv2.VideoWriter):
        self.face_detector = face_detector
        self.classifier = classifier
        self.registry = registry or FaceStatusRegistry()
        self.source = parse_source(source)
        self.renderer = renderer or OverlayRenderer()
        self.window_name = window_name
        self.output_path = output_path
        self.save_output = save_output
        self.show_display = show_display
        self.capture_factory = capture_factory
        self.writer_factory = writer_factory

        self.running = False
        self.frame_count = 0
        self.last_faces = []
        self.writer = None
        self.source_fps = NOMINAL_FPS

        self.fps_start = time.time()
        self.fps_n = 0
        self.fps = 0.0

    @property
    def is_file(self):
        return isinstance(self.source, str)

    def _update_fps(self):
        self.fps_n += 1
        dt = time.time() - self.fps_start
        if dt >= 1.0:
            self.fps = self.fps_n / dt
            self.fps_n = 0
            self.fps_start = time.time()

    def _classify(self, frame, bbox):
        try:
            status, conf = self.classifier.classify(frame, bbox)
        except (cv2.error, ValueError) as e:
            logger.error("Mask classification failed: %s", e)
            return MaskStatus.UNKNOWN, 0.0
        return status, float(conf)

    def process_frame(self, frame):
        """
        Run detection, classification and stabilization on one frame.

        Returns:
            List of FaceDetection with raw and stabilized statuses
        """
        self.frame_count += 1
        boxes = self.face_detector.detect(frame)

        faces = []
        for slot, bbox in enumerate(boxes):
            raw_status, conf = self._classify(frame, bbox)
            status = self.registry.update(slot, raw_status)
            faces.append(FaceDetection(
                bbox=tuple(int(v) for v in bbox),
                raw_status=raw_status,
                mask_status=status,
                mask_confidence=conf,
                slot=slot,
            ))

        self.registry.retain(range(len(boxes)))
        self.last_faces = faces
        return faces

    def render(self, frame, faces):
        states = {slot: self.registry.get(slot) for slot in self.registry.face_ids()}
        return self.renderer.render(frame, faces, fps=self.fps, states=states)

    def handle_key(self, key):
        """Apply a keyboard command; returns False when the loop should stop."""
        if key < 0:
            return self.running
        key &= 0xFF
        if key in (ord("q"), KEY_ESC):
            self.running = False
        elif key in (ord("r"), ord("R")):
            self.registry.reset()
            logger.info("Stabilizer state reset")
        elif key in (ord("v"), ord("V")):
            root = logging.getLogger()
            verbose = root.level != logging.DEBUG
            root.setLevel(logging.DEBUG if verbose else logging.INFO)
            logger.info("Verbose mode %s", "enabled" if verbose else "disabled")
        elif key in (ord("d"), ord("D")):
            self.renderer.show_debug = not self.renderer.show_debug
        elif key in (ord("s"), ord("S")):
            self.save_output = not self.save_output
            logger.info("Output saving %s", "enabled" if self.save_output else "disabled")
            if self.save_output and not self.output_path:
                logger.warning("No output path given, nothing will be recorded")
        return self.running

    def _open_capture(self):
        cap = self.capture_factory(self.source)
        if not cap.isOpened():
            if self.is_file:
                logger.error("Failed to open video file: %s", self.source)
            else:
                logger.error("Failed to open camera with index: %s", self.source)
            return None

        if self.is_file:
            logger.info("Opened video file: %s", self.source)
        else:
            logger.info("Opened camera with index: %s", self.source)
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, CAMERA_WIDTH)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CAMERA_HEIGHT)
            cap.set(cv2.CAP_PROP_FPS, NOMINAL_FPS)

        fps = cap.get(cv2.CAP_PROP_FPS)
        self.source_fps = fps if fps and fps > 0 else NOMINAL_FPS
        return cap

    def write_frame(self, frame):
        """Append a drawn frame to the output video, opening it on first use."""
        if not self.save_output or not self.output_path:
            return
        if self.writer is None:
            h, w = frame.shape[:2]
            fourcc = cv2.VideoWriter_fourcc(*OUTPUT_FOURCC)
            writer = self.writer_factory(self.output_path, fourcc, self.source_fps, (w, h))
            if not writer.isOpened():
                logger.warning("Failed to initialize video writer for: %s", self.output_path)
                self.save_output = False
                return
            logger.info("Initialized video writer: %s", self.output_path)
            self.writer = writer
        self.writer.write(frame)

    def run(self):
        """
        Process the source until it ends or the user quits.

        Returns:
            False when the source could not be opened, True otherwise
        """
        cap = self._open_capture()
        if cap is None:
            return False

        if self.show_display:
            logger.info("Press 'q' or ESC to exit.")
            cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
        self.running = True
        failures = 0

        try:
            while self.running:
                ret, frame = cap.read()
                if not ret or frame is None:
                    if self.is_file:
                        logger.info("Reached end of video file")
                        break
                    failures += 1
                    logger.error("Failed to capture frame from camera")
                    if failures >= MAX_READ_FAILURES:
                        logger.error("Camera stopped delivering frames, giving up")
                        break
                    continue
                failures = 0

                self._update_fps()
                faces = self.process_frame(frame)
                drawn = self.render(frame, faces)
                if self.show_display:
                    cv2.imshow(self.window_name, drawn)
                    self.handle_key(cv2.waitKey(1))
                self.write_frame(drawn)

        except KeyboardInterrupt:
            logger.info("Interrupted, stopping")
        finally:
            self.running = False
            cap.release()
            if self.writer is not None:
                self.writer.release()
                self.writer = None
            if self.show_display:
                cv2.destroyAllWindows()
            logger.info("Processed %d frames, capture released", self.frame_count)
        return True
