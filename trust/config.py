"""Configuration constants and loaders for the status stabilization layer."""

import configparser
import logging
import os
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# Frame cadence the lock durations are calibrated for
NOMINAL_FPS = 30.0

# Streak thresholds (consecutive identical raw results)
LOCK_STREAK = 5  # Establish a lock when none is active
FAST_EXIT_STREAK = 8  # Drop a WITH_MASK lock early for WITHOUT_MASK
SWITCH_STREAK = 12  # Re-lock to a different status once the lock expired

# Lock durations (frames)
MASK_LOCK_FRAMES = 90  # ~3 s at 30 fps
LOCK_FRAMES = 60  # ~2 s at 30 fps, every status except WITH_MASK
EXTEND_FRAMES = 20  # Grace period added to an expired lock

# Diagnostics
HISTORY_SIZE = 10  # Raw statuses kept per face, never used for decisions
DIAGNOSTIC_INTERVAL = 30  # Emit a diagnostic record every N invocations

CONFIG_SECTION = "stabilizer"
ENV_PREFIX = "MASK_STABILIZER_"


class LockScope(Enum):
    """Who owns the lock fields of a stabilizer state."""
    PER_FACE = "per_face"
    SHARED = "shared"


@dataclass(frozen=True)
class StabilizerConfig:
    """Tunables of the status stabilizer."""
    lock_streak: int = LOCK_STREAK
    fast_exit_streak: int = FAST_EXIT_STREAK
    switch_streak: int = SWITCH_STREAK
    mask_lock_frames: int = MASK_LOCK_FRAMES
    lock_frames: int = LOCK_FRAMES
    extend_frames: int = EXTEND_FRAMES
    history_size: int = HISTORY_SIZE
    diagnostic_interval: int = DIAGNOSTIC_INTERVAL
    lock_scope: LockScope = LockScope.PER_FACE

    def __post_init__(self):
        for f in fields(self):
            if f.name == "lock_scope":
                continue
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{f.name} must be an integer, got {value!r}")
            if value < 1:
                raise ValueError(f"{f.name} must be >= 1, got {value}")
        if not isinstance(self.lock_scope, LockScope):
            # Accept the INI/CLI spelling ("per_face", "shared")
            object.__setattr__(self, "lock_scope", LockScope(self.lock_scope))

    def for_frame_rate(self, fps: float) -> "StabilizerConfig":
        """
        Rescale lock durations to keep their wall-clock length at another fps.

        Args:
            fps: Frame rate the stabilizer will actually be driven at

        Returns:
            New config; streak thresholds are left untouched
        """
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        scale = float(fps) / NOMINAL_FPS

        def _scaled(frames):
            return max(1, int(round(frames * scale)))

        return replace(
            self,
            mask_lock_frames=_scaled(self.mask_lock_frames),
            lock_frames=_scaled(self.lock_frames),
            extend_frames=_scaled(self.extend_frames),
        )


def _field_types():
    return {f.name: f.type for f in fields(StabilizerConfig)}


def _coerce(key: str, raw: str):
    raw = raw.strip()
    if key == "lock_scope":
        try:
            return LockScope(raw.lower())
        except ValueError:
            choices = ", ".join(s.value for s in LockScope)
            raise ValueError(f"Invalid value for {key}: {raw!r} (expected one of {choices})")
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {key}: {raw!r} (expected an integer)")


def config_from_mapping(values: Mapping[str, str],
                        base: Optional[StabilizerConfig] = None) -> StabilizerConfig:
    """
    Build a config from string key/value pairs.

    Unknown keys are logged and ignored; values that do not parse raise ValueError.
    """
    base = base or StabilizerConfig()
    known = _field_types()
    overrides = {}
    for key, raw in values.items():
        key = key.strip().lower()
        if key not in known:
            logger.warning("Unknown configuration key '%s'", key)
            continue
        overrides[key] = _coerce(key, raw)
    return replace(base, **overrides)


def load_config(path, base: Optional[StabilizerConfig] = None) -> StabilizerConfig:
    """
    Load stabilizer settings from the [stabilizer] section of an INI file.

    A file without any section header is read as plain key = value lines
    belonging to [stabilizer].

    Args:
        path: INI file path
        base: Config to start from (defaults when None)

    Returns:
        StabilizerConfig with the file's values applied

    Raises:
        FileNotFoundError: path does not exist
        ValueError: file cannot be parsed or holds an invalid value
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text()
    parser = configparser.ConfigParser(interpolation=None)
    try:
        try:
            parser.read_string(text, source=str(path))
        except configparser.MissingSectionHeaderError:
            parser = configparser.ConfigParser(interpolation=None)
            parser.read_string(f"[{CONFIG_SECTION}]\n{text}", source=str(path))
    except configparser.Error as e:
        raise ValueError(f"Invalid config file {path}: {e}") from e

    if not parser.has_section(CONFIG_SECTION):
        logger.warning("No [%s] section in %s, using defaults", CONFIG_SECTION, path)
        return base or StabilizerConfig()

    config = config_from_mapping(dict(parser.items(CONFIG_SECTION)), base)
    logger.info("Loaded configuration from: %s", path)
    return config


def apply_env_overrides(config: StabilizerConfig,
                        environ: Optional[Mapping[str, str]] = None) -> StabilizerConfig:
    """Apply MASK_STABILIZER_<KEY> environment variables on top of config."""
    environ = os.environ if environ is None else environ
    values = {}
    for name in _field_types():
        env_name = ENV_PREFIX + name.upper()
        if env_name in environ:
            values[name] = environ[env_name]
    if not values:
        return config
    logger.debug("Environment overrides: %s", ", ".join(sorted(values)))
    return config_from_mapping(values, config)
