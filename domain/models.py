"""
Domain models for mask statuses and face detections.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class MaskStatus(Enum):
    """Per-face mask classification."""
    UNKNOWN = 0
    WITH_MASK = 1
    WITHOUT_MASK = 2
    INCORRECT_MASK = 3

    @property
    def display_name(self) -> str:
        """Human readable name, e.g. for logs."""
        return DISPLAY_NAMES[self]

    @property
    def short_label(self) -> str:
        """Compact label drawn next to a face box."""
        return SHORT_LABELS[self]


DISPLAY_NAMES = {
    MaskStatus.UNKNOWN: "Unknown",
    MaskStatus.WITH_MASK: "With Mask",
    MaskStatus.WITHOUT_MASK: "Without Mask",
    MaskStatus.INCORRECT_MASK: "Incorrect Mask",
}

SHORT_LABELS = {
    MaskStatus.UNKNOWN: "Unknown",
    MaskStatus.WITH_MASK: "Mask",
    MaskStatus.WITHOUT_MASK: "No Mask",
    MaskStatus.INCORRECT_MASK: "Incorrect",
}


@dataclass
class FaceDetection:
    """One face found in a frame, with raw and stabilized mask status."""
    bbox: Tuple[int, int, int, int]  # (x1, y1, x2, y2)
    raw_status: MaskStatus = MaskStatus.UNKNOWN
    mask_status: MaskStatus = MaskStatus.UNKNOWN
    mask_confidence: float = 0.0
    confidence: float = 1.0  # Haar cascades give no detector score
    slot: Optional[int] = None

    @property
    def is_unknown(self) -> bool:
        """Check if the stabilized status is unknown."""
        return self.mask_status == MaskStatus.UNKNOWN

    @property
    def width(self) -> int:
        return self.bbox[2] - self.bbox[0]

    @property
    def height(self) -> int:
        return self.bbox[3] - self.bbox[1]
