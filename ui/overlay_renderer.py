"""Overlay rendering for face boxes, stabilized mask status and debug info."""

import cv2
import numpy as np
from typing import Dict, List, Optional

from domain.models import FaceDetection, MaskStatus
from trust.status_stabilizer import StabilizerState

# BGR
STATUS_COLORS = {
    MaskStatus.WITH_MASK: (0, 255, 0),  # Green
    MaskStatus.WITHOUT_MASK: (0, 0, 255),  # Red
    MaskStatus.INCORRECT_MASK: (0, 165, 255),  # Orange
    MaskStatus.UNKNOWN: (255, 255, 0),  # Yellow
}


def status_color(status: MaskStatus):
    return STATUS_COLORS.get(status, STATUS_COLORS[MaskStatus.UNKNOWN])


def face_label(face: FaceDetection) -> str:
    return f"{face.mask_status.short_label} ({face.mask_confidence:.2f})"


class OverlayRenderer:
    """Renders face overlays on camera frames."""

    def __init__(self, show_debug: bool = False):
        self.show_debug = show_debug
        self.font = cv2.FONT_HERSHEY_SIMPLEX

    def render(self, frame: np.ndarray, faces: List[FaceDetection],
               fps: Optional[float] = None,
               states: Optional[Dict[int, StabilizerState]] = None) -> np.ndarray:
        """
        Render all overlays on a copy of the frame.

        Args:
            frame: Input frame (BGR)
            faces: Stabilized detections for this frame
            fps: Measured frame rate, drawn top-right when given
            states: Stabilizer states by face slot, used by the debug line

        Returns:
            Frame with overlays rendered
        """
        overlay = frame.copy()
        H, W = overlay.shape[:2]

        for face in faces:
            self._render_face(overlay, face)

        cv2.putText(overlay, f"Faces: {len(faces)}", (10, 30),
                    self.font, 0.8, (255, 255, 255), 2)

        if fps is not None:
            cv2.putText(overlay, f"FPS: {fps:.1f}", (W - 140, 30),
                        self.font, 0.7, (255, 255, 0), 2, cv2.LINE_AA)

        if self.show_debug and states:
            self._render_debug(overlay, faces, states, H)

        return overlay

    def _render_face(self, frame: np.ndarray, face: FaceDetection):
        x1, y1, x2, y2 = face.bbox
        color = status_color(face.mask_status)
        cv2.rectangle(frame, (x1, y1), (x2, y2), color, 2)

        text = face_label(face)
        (tw, th), baseline = cv2.getTextSize(text, self.font, 0.6, 2)

        # Label above the box, or below when it would leave the frame
        label_y = y1 - 10
        if label_y < th:
            label_y = y2 + th + 5

        cv2.rectangle(frame, (x1, label_y - th - baseline),
                      (x1 + tw, label_y + baseline), color, -1)
        cv2.putText(frame, text, (x1, label_y), self.font, 0.6,
                    (255, 255, 255), 2)

    def _render_debug(self, frame: np.ndarray, faces: List[FaceDetection],
                      states: Dict[int, StabilizerState], H: int):
        lines = []
        for face in faces:
            state = states.get(face.slot)
            if state is None:
                continue
            lines.append(
                f"#{face.slot} raw={face.raw_status.short_label} "
                f"{state.phase.value} left={state.lock_frames_remaining} "
                f"streak={state.same_result_streak}"
            )

        y_start = H - 10 - 20 * (len(lines[:4]) - 1)
        for i, line in enumerate(lines[:4]):
            cv2.putText(frame, line, (10, y_start + i * 20),
                        self.font, 0.5, (200, 200, 200), 1, cv2.LINE_AA)
