"""Status stabilizer: lock/hold/switch logic over noisy per-frame mask statuses."""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Iterable, List, Optional

from domain.models import MaskStatus
from trust.config import HISTORY_SIZE, StabilizerConfig

logger = logging.getLogger(__name__)

# A lock on UNKNOWN is indistinguishable from no lock at all
NO_LOCK = MaskStatus.UNKNOWN


class StabilizerPhase(Enum):
    """Lock phase of a stabilizer state."""
    UNLOCKED = "UNLOCKED"
    LOCKED_ACTIVE = "LOCKED_ACTIVE"
    LOCKED_EXPIRED = "LOCKED_EXPIRED"


@dataclass
class LockState:
    """Lock fields; may be shared by several faces (see LockScope.SHARED)."""
    locked_status: MaskStatus = NO_LOCK
    lock_frames_remaining: int = 0
    same_result_streak: int = 0
    previous_raw_result: MaskStatus = MaskStatus.UNKNOWN

    @property
    def is_locked(self) -> bool:
        return self.locked_status != NO_LOCK

    @property
    def phase(self) -> StabilizerPhase:
        if not self.is_locked:
            return StabilizerPhase.UNLOCKED
        if self.lock_frames_remaining > 0:
            return StabilizerPhase.LOCKED_ACTIVE
        return StabilizerPhase.LOCKED_EXPIRED


@dataclass
class StabilizerState:
    """Per-face stabilizer state, mutated in place by StatusStabilizer.update."""
    lock: LockState = field(default_factory=LockState)
    initialized: bool = False
    stable_status: MaskStatus = MaskStatus.UNKNOWN
    stable_count: int = 0
    history: Deque[MaskStatus] = field(default_factory=lambda: deque(maxlen=HISTORY_SIZE))

    @property
    def locked_status(self) -> MaskStatus:
        return self.lock.locked_status

    @property
    def lock_frames_remaining(self) -> int:
        return self.lock.lock_frames_remaining

    @property
    def same_result_streak(self) -> int:
        return self.lock.same_result_streak

    @property
    def previous_raw_result(self) -> MaskStatus:
        return self.lock.previous_raw_result

    @property
    def phase(self) -> StabilizerPhase:
        return self.lock.phase


@dataclass
class StabilizerDiagnostic:
    """Periodic snapshot for logging; has no effect on decisions."""
    invocation: int
    raw_status: MaskStatus
    streak: int
    locked_status: Optional[MaskStatus] = None
    frames_remaining: Optional[int] = None

    def format(self) -> str:
        text = f"Detection status: {self.raw_status.display_name} (count: {self.streak})"
        if self.locked_status is not None:
            text += (f" | Locked to: {self.locked_status.display_name}, "
                     f"frames left: {self.frames_remaining}")
        return text


def log_diagnostic(diagnostic: StabilizerDiagnostic):
    """Default diagnostics sink."""
    logger.info(diagnostic.format())


class StatusStabilizer:
    """
    Turns a noisy raw MaskStatus stream into a stable reported status.

    One instance can drive many StabilizerState objects; the diagnostic
    counter is per instance, not per face. It counts every update call,
    including the seed call of a newly seen face.
    """

    def __init__(self, config: Optional[StabilizerConfig] = None,
                 diagnostics: Optional[Callable[[StabilizerDiagnostic], None]] = log_diagnostic):
        """
        Args:
            config: Stabilizer tunables (defaults when None)
            diagnostics: Sink for periodic diagnostic records, None to disable
        """
        self.config = config or StabilizerConfig()
        self.diagnostics = diagnostics
        self.invocations = 0

    def new_state(self, lock: Optional[LockState] = None) -> StabilizerState:
        """Create an unseeded state, optionally bound to an existing lock."""
        state = StabilizerState(history=deque(maxlen=self.config.history_size))
        if lock is not None:
            state.lock = lock
        return state

    def update(self, state: StabilizerState, raw_status) -> MaskStatus:
        """
        Feed one frame's raw status for a face.

        Args:
            state: The face's state (mutated in place)
            raw_status: MaskStatus (or its integer value) from the classifier

        Returns:
            Status to present for this frame
        """
        raw = raw_status if isinstance(raw_status, MaskStatus) else MaskStatus(raw_status)
        self.invocations += 1

        if not state.initialized:
            reported = self._seed(state, raw)
        else:
            lock = state.lock
            if raw == lock.previous_raw_result:
                lock.same_result_streak += 1
            else:
                lock.same_result_streak = 1
                lock.previous_raw_result = raw
            reported = self._decide(state, raw)
            state.history.append(raw)

        if self.diagnostics is not None and self.invocations % self.config.diagnostic_interval == 0:
            self.diagnostics(self._snapshot(state, raw))

        return reported

    def lock_duration_for(self, status: MaskStatus) -> int:
        if status == MaskStatus.WITH_MASK:
            return self.config.mask_lock_frames
        return self.config.lock_frames

    def _seed(self, state: StabilizerState, raw: MaskStatus) -> MaskStatus:
        state.history.clear()
        state.history.extend([raw] * self.config.history_size)
        state.stable_status = raw
        state.stable_count = 1
        state.initialized = True
        return raw

    def _engage(self, lock: LockState, status: MaskStatus) -> MaskStatus:
        lock.locked_status = status
        lock.lock_frames_remaining = self.lock_duration_for(status)
        return status

    def _decide(self, state: StabilizerState, raw: MaskStatus) -> MaskStatus:
        cfg = self.config
        lock = state.lock
        streak = lock.same_result_streak

        if not lock.is_locked:
            if streak >= cfg.lock_streak:
                return self._engage(lock, raw)
            return self._fallback(state, raw)

        lock.lock_frames_remaining -= 1

        if lock.lock_frames_remaining > 0:
            # Mask removal overrides a mask lock faster than the general switch
            if (lock.locked_status == MaskStatus.WITH_MASK and
                    raw == MaskStatus.WITHOUT_MASK and
                    streak >= cfg.fast_exit_streak):
                lock.locked_status = MaskStatus.WITHOUT_MASK
                lock.lock_frames_remaining = cfg.lock_frames
            return lock.locked_status

        if streak >= cfg.switch_streak and raw != lock.locked_status:
            return self._engage(lock, raw)
        if streak < cfg.switch_streak:
            lock.lock_frames_remaining = cfg.extend_frames
            return lock.locked_status

        # Expired lock confirmed by a long streak of the same status
        return self._fallback(state, raw)

    @staticmethod
    def _fallback(state: StabilizerState, raw: MaskStatus) -> MaskStatus:
        if state.stable_status != MaskStatus.UNKNOWN:
            return state.stable_status
        return raw

    def _snapshot(self, state: StabilizerState, raw: MaskStatus) -> StabilizerDiagnostic:
        lock = state.lock
        diagnostic = StabilizerDiagnostic(
            invocation=self.invocations,
            raw_status=raw,
            streak=lock.same_result_streak,
        )
        if lock.is_locked:
            diagnostic.locked_status = lock.locked_status
            diagnostic.frames_remaining = lock.lock_frames_remaining
        return diagnostic


# Convenience function for offline replays
def stabilize_sequence(raw_statuses: Iterable, config: Optional[StabilizerConfig] = None,
                       stabilizer: Optional[StatusStabilizer] = None,
                       state: Optional[StabilizerState] = None) -> List[MaskStatus]:
    """
    Run a raw status sequence for a single face through a stabilizer.

    Args:
        raw_statuses: Raw statuses, one per frame
        config: Tunables used when no stabilizer is given
        stabilizer: Optional StatusStabilizer instance (creates one if None)
        state: Optional state to continue from (fresh one if None)

    Returns:
        Reported status for every frame
    """
    if stabilizer is None:
        stabilizer = StatusStabilizer(config, diagnostics=None)
    if state is None:
        state = stabilizer.new_state()
    return [stabilizer.update(state, raw) for raw in raw_statuses]
