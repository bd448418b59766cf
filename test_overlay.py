"""Unit tests for overlay rendering."""

import numpy as np

from domain.models import FaceDetection, MaskStatus
from trust.status_stabilizer import StatusStabilizer
from ui.overlay_renderer import OverlayRenderer, face_label, status_color


def test_status_colors():
    assert status_color(MaskStatus.WITH_MASK) == (0, 255, 0)
    assert status_color(MaskStatus.WITHOUT_MASK) == (0, 0, 255)
    assert status_color(MaskStatus.INCORRECT_MASK) == (0, 165, 255)
    assert status_color(MaskStatus.UNKNOWN) == (255, 255, 0)


def test_face_label():
    face = FaceDetection(bbox=(0, 0, 10, 10), mask_status=MaskStatus.WITHOUT_MASK,
                         mask_confidence=0.8)
    assert face_label(face) == "No Mask (0.80)"


def test_render_draws_box_in_status_color():
    """Box edges take the stabilized status color; input frame is untouched."""
    frame = np.zeros((200, 200, 3), dtype=np.uint8)
    face = FaceDetection(bbox=(20, 40, 80, 100), mask_status=MaskStatus.WITH_MASK,
                         raw_status=MaskStatus.WITHOUT_MASK, mask_confidence=0.9)

    out = OverlayRenderer().render(frame, [face], fps=29.7)

    assert out.shape == frame.shape
    assert not frame.any(), "Render works on a copy"
    assert tuple(int(v) for v in out[70, 20]) == (0, 255, 0), "Left edge is green"


def test_render_label_below_box_at_top_edge():
    frame = np.zeros((200, 200, 3), dtype=np.uint8)
    face = FaceDetection(bbox=(40, 0, 120, 60), mask_status=MaskStatus.WITHOUT_MASK)

    out = OverlayRenderer().render(frame, [face])

    assert out[60:90, 40:120].any(), "Label is drawn under the box"


def test_render_debug_lines():
    stabilizer = StatusStabilizer(diagnostics=None)
    state = stabilizer.new_state()
    stabilizer.update(state, MaskStatus.WITH_MASK)

    frame = np.zeros((200, 300, 3), dtype=np.uint8)
    face = FaceDetection(bbox=(100, 50, 160, 110), mask_status=MaskStatus.WITH_MASK, slot=0)

    plain = OverlayRenderer().render(frame, [face])
    debug = OverlayRenderer(show_debug=True).render(frame, [face], states={0: state})

    assert not plain[180:, :90].any()
    assert debug[180:, :90].any(), "Debug line is drawn at the bottom"
