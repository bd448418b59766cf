"""Per-face stabilizer states keyed by face slot."""

import logging
from typing import Dict, Hashable, Iterable, Optional

from domain.models import MaskStatus
from trust.config import LockScope
from trust.status_stabilizer import LockState, StabilizerState, StatusStabilizer

logger = logging.getLogger(__name__)


class FaceStatusRegistry:
    """
    Owns one StabilizerState per face slot.

    With LockScope.SHARED every face points at the same LockState, so one
    face's streak and lock affect all others. Seed snapshots stay per face.
    """

    def __init__(self, stabilizer: Optional[StatusStabilizer] = None,
                 lock_scope: Optional[LockScope] = None):
        """
        Args:
            stabilizer: StatusStabilizer driving all faces (creates one if None)
            lock_scope: Lock ownership; defaults to the stabilizer config's scope
        """
        self.stabilizer = stabilizer or StatusStabilizer()
        self.lock_scope = LockScope(lock_scope or self.stabilizer.config.lock_scope)
        self._states: Dict[Hashable, StabilizerState] = {}
        self._shared_lock = LockState()

    @property
    def shared_lock(self) -> Optional[LockState]:
        return self._shared_lock if self.lock_scope == LockScope.SHARED else None

    def state_for(self, face_id: Hashable) -> StabilizerState:
        """Get the face's state, creating it the first time the face is seen."""
        state = self._states.get(face_id)
        if state is None:
            state = self.stabilizer.new_state(lock=self.shared_lock)
            self._states[face_id] = state
            logger.debug("New face slot %r (%s lock)", face_id, self.lock_scope.value)
        return state

    def get(self, face_id: Hashable) -> Optional[StabilizerState]:
        return self._states.get(face_id)

    def update(self, face_id: Hashable, raw_status) -> MaskStatus:
        """Stabilize one raw status for a face and return the reported status."""
        return self.stabilizer.update(self.state_for(face_id), raw_status)

    def discard(self, face_id: Hashable):
        """Forget a face slot (no-op if unknown)."""
        if self._states.pop(face_id, None) is not None:
            logger.debug("Dropped face slot %r", face_id)

    def retain(self, face_ids: Iterable[Hashable]):
        """Drop every slot not listed, e.g. faces that left the frame."""
        keep = set(face_ids)
        for face_id in [f for f in self._states if f not in keep]:
            self.discard(face_id)

    def reset(self):
        """Drop all slots and start from a fresh shared lock."""
        self._states.clear()
        self._shared_lock = LockState()

    def face_ids(self):
        return list(self._states)

    def __len__(self):
        return len(self._states)

    def __contains__(self, face_id):
        return face_id in self._states
