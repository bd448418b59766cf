"""Haar cascade face detection with a fallback cascade."""

import logging
import os
from typing import List, Optional, Tuple

import cv2
import numpy as np

from vision.bbox_detector import clamp_bbox_xyxy, xywh_to_xyxy

logger = logging.getLogger(__name__)

MAX_FACES = 20
DEFAULT_CASCADE = "haarcascade_frontalface_alt.xml"
BACKUP_CASCADE = "haarcascade_frontalface_default.xml"


def cascade_path(name: str) -> str:
    """Resolve a cascade file name against OpenCV's bundled data dir."""
    if os.path.exists(name):
        return name
    return os.path.join(cv2.data.haarcascades, name)


def _load_cascade(path: str) -> Optional[cv2.CascadeClassifier]:
    cascade = cv2.CascadeClassifier(path)
    if cascade.empty():
        return None
    return cascade


class HaarFaceDetector:
    """Detects frontal faces; tries a backup cascade when the primary finds none."""

    def __init__(self, cascade: str = DEFAULT_CASCADE,
                 backup_cascade: Optional[str] = BACKUP_CASCADE,
                 max_faces: int = MAX_FACES):
        primary_path = cascade_path(cascade)
        self.cascade = _load_cascade(primary_path)
        if self.cascade is None:
            raise FileNotFoundError(f"Could not load face cascade: {primary_path}")

        self.backup = None
        if backup_cascade:
            self.backup = _load_cascade(cascade_path(backup_cascade))
            if self.backup is None:
                logger.warning("Backup cascade unavailable: %s", backup_cascade)
        self.max_faces = max_faces
        self._last_count = -1

    def detect(self, frame_bgr: np.ndarray) -> List[Tuple[int, int, int, int]]:
        """
        Detect faces in a BGR frame.

        Returns:
            Up to max_faces boxes as (x1, y1, x2, y2), clamped to the frame
        """
        H, W = frame_bgr.shape[:2]
        gray = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2GRAY)
        gray = cv2.equalizeHist(gray)

        rects = self.cascade.detectMultiScale(
            gray, scaleFactor=1.05, minNeighbors=2,
            flags=cv2.CASCADE_SCALE_IMAGE, minSize=(24, 24), maxSize=(300, 300)
        )
        if len(rects) == 0 and self.backup is not None:
            rects = self.backup.detectMultiScale(
                gray, scaleFactor=1.1, minNeighbors=3, minSize=(30, 30)
            )

        boxes = []
        for rect in list(rects)[:self.max_faces]:
            clamped = clamp_bbox_xyxy(xywh_to_xyxy(rect), W, H)
            if clamped is not None:
                boxes.append(clamped)

        if len(boxes) != self._last_count:
            logger.debug("Detected %d faces (max=%d)", len(boxes), self.max_faces)
            self._last_count = len(boxes)
        return boxes
