import logging
import os
from typing import Tuple

import cv2
import numpy as np

from domain.models import MaskStatus
from ml.config import CLASSES, CROP_PADDING, IMG_SIZE, MEAN, SCALE

logger = logging.getLogger(__name__)


def crop_face(frame_bgr: np.ndarray, bbox, padding: int = CROP_PADDING) -> np.ndarray:
    """Crop bbox (x1, y1, x2, y2) plus padding, clipped to the frame."""
    H, W = frame_bgr.shape[:2]
    x1, y1, x2, y2 = map(int, bbox)
    x1 = max(0, x1 - padding); y1 = max(0, y1 - padding)
    x2 = min(W, x2 + padding); y2 = min(H, y2 + padding)
    return frame_bgr[y1:y2, x1:x2]


def interpret_output(output) -> Tuple[MaskStatus, float]:
    """
    Map raw two-class network scores to a status.

    Args:
        output: Network output holding [no_mask, mask] scores

    Returns:
        (status, confidence) tuple; ties go to WITHOUT_MASK
    """
    scores = np.asarray(output, dtype=np.float32).ravel()
    if scores.size < len(CLASSES):
        raise ValueError(f"Expected at least {len(CLASSES)} scores, got {scores.size}")
    no_mask_conf, mask_conf = float(scores[0]), float(scores[1])
    if mask_conf > no_mask_conf:
        return CLASSES[1], mask_conf
    return CLASSES[0], no_mask_conf


class MaskClassifier:
    """ONNX mask/no-mask classifier run through OpenCV's dnn module."""

    def __init__(self, model_path: str, use_gpu: bool = False):
        if not os.path.exists(model_path):
            raise FileNotFoundError(f"Model file not found: {model_path}")

        self.net = cv2.dnn.readNetFromONNX(model_path)
        if use_gpu:
            self.net.setPreferableBackend(cv2.dnn.DNN_BACKEND_CUDA)
            self.net.setPreferableTarget(cv2.dnn.DNN_TARGET_CUDA)
        logger.info("Loaded mask model: %s", model_path)

    def predict(self, face_bgr: np.ndarray) -> Tuple[MaskStatus, float]:
        blob = cv2.dnn.blobFromImage(
            face_bgr, SCALE, (IMG_SIZE, IMG_SIZE), MEAN, swapRB=True, crop=False
        )
        self.net.setInput(blob)
        return interpret_output(self.net.forward())

    def classify(self, frame_bgr: np.ndarray, bbox) -> Tuple[MaskStatus, float]:
        roi = crop_face(frame_bgr, bbox)
        if roi.size == 0:
            return MaskStatus.UNKNOWN, 0.0
        return self.predict(roi)
