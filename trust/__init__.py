"""Status stabilization layer for the face-mask detector."""

from trust.config import LockScope, StabilizerConfig, load_config, apply_env_overrides
from trust.status_stabilizer import (
    LockState, StabilizerState, StabilizerPhase, StabilizerDiagnostic,
    StatusStabilizer, stabilize_sequence,
)
from trust.face_registry import FaceStatusRegistry

__all__ = [
    "LockScope",
    "StabilizerConfig",
    "load_config",
    "apply_env_overrides",
    "LockState",
    "StabilizerState",
    "StabilizerPhase",
    "StabilizerDiagnostic",
    "StatusStabilizer",
    "stabilize_sequence",
    "FaceStatusRegistry",
]
