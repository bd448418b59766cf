"""Unit tests for stabilizer configuration."""

import pytest

from trust import config as cfg
from trust.config import (
    LockScope, StabilizerConfig, apply_env_overrides, config_from_mapping, load_config,
)


def test_defaults_match_constants():
    config = StabilizerConfig()

    assert config.lock_streak == cfg.LOCK_STREAK == 5
    assert config.fast_exit_streak == cfg.FAST_EXIT_STREAK == 8
    assert config.switch_streak == cfg.SWITCH_STREAK == 12
    assert config.mask_lock_frames == cfg.MASK_LOCK_FRAMES == 90
    assert config.lock_frames == cfg.LOCK_FRAMES == 60
    assert config.extend_frames == cfg.EXTEND_FRAMES == 20
    assert config.history_size == cfg.HISTORY_SIZE == 10
    assert config.diagnostic_interval == cfg.DIAGNOSTIC_INTERVAL == 30
    assert config.lock_scope == LockScope.PER_FACE


@pytest.mark.parametrize("kwargs", [
    {"lock_streak": 0},
    {"lock_frames": -5},
    {"switch_streak": "12"},
    {"extend_frames": 2.5},
    {"history_size": True},
])
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        StabilizerConfig(**kwargs)


def test_lock_scope_from_string():
    assert StabilizerConfig(lock_scope="shared").lock_scope == LockScope.SHARED
    with pytest.raises(ValueError):
        StabilizerConfig(lock_scope="global")


def test_for_frame_rate_rescales_durations():
    """Lock durations keep their wall-clock length; streaks stay as they are."""
    fast = StabilizerConfig().for_frame_rate(60)
    assert (fast.mask_lock_frames, fast.lock_frames, fast.extend_frames) == (180, 120, 40)
    assert fast.lock_streak == 5
    assert fast.switch_streak == 12

    slow = StabilizerConfig().for_frame_rate(15)
    assert (slow.mask_lock_frames, slow.lock_frames, slow.extend_frames) == (45, 30, 10)

    tiny = StabilizerConfig(extend_frames=1).for_frame_rate(1)
    assert tiny.extend_frames == 1, "Durations never drop below one frame"

    with pytest.raises(ValueError):
        StabilizerConfig().for_frame_rate(0)


def test_config_from_mapping_ignores_unknown_keys(caplog):
    with caplog.at_level("WARNING", logger="trust.config"):
        config = config_from_mapping({"Lock_Streak": " 3 ", "colour": "blue"})

    assert config.lock_streak == 3
    assert "Unknown configuration key 'colour'" in caplog.text


def test_load_config_from_ini(tmp_path):
    path = tmp_path / "detector.conf"
    path.write_text(
        "[general]\n"
        "camera_index = 1\n"
        "\n"
        "[stabilizer]\n"
        "# faster locking for a demo booth\n"
        "lock_streak = 3\n"
        "mask_lock_frames = 120\n"
        "lock_scope = shared\n"
    )

    config = load_config(path)

    assert config.lock_streak == 3
    assert config.mask_lock_frames == 120
    assert config.lock_scope == LockScope.SHARED
    assert config.lock_frames == 60, "Unset keys keep their defaults"


def test_load_config_bad_value_names_key(tmp_path):
    path = tmp_path / "detector.conf"
    path.write_text("[stabilizer]\nswitch_streak = twelve\n")

    with pytest.raises(ValueError, match="switch_streak"):
        load_config(path)


def test_load_config_without_section_uses_defaults(tmp_path):
    path = tmp_path / "detector.conf"
    path.write_text("[ui]\nshow_preview = true\n")

    assert load_config(path) == StabilizerConfig()


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.conf")


def test_env_overrides():
    base = StabilizerConfig()
    environ = {
        "MASK_STABILIZER_SWITCH_STREAK": "15",
        "MASK_STABILIZER_LOCK_SCOPE": "shared",
        "UNRELATED": "1",
    }

    config = apply_env_overrides(base, environ)

    assert config.switch_streak == 15
    assert config.lock_scope == LockScope.SHARED
    assert apply_env_overrides(base, {}) is base


def test_load_config_sectionless_key_value_file(tmp_path, caplog):
    """Plain key=value files without headers are read as [stabilizer]."""
    path = tmp_path / "detector.conf"
    path.write_text(
        "# Face mask detector configuration\n"
        "camera_index=0\n"
        "cascade_path=models/haar%20faces.xml\n"
        "lock_streak=4\n"
        "switch_streak = 15\n"
    )

    with caplog.at_level("WARNING", logger="trust.config"):
        config = load_config(path)

    assert config.lock_streak == 4
    assert config.switch_streak == 15
    assert "Unknown configuration key 'camera_index'" in caplog.text


def test_load_config_duplicate_key_raises_value_error(tmp_path):
    path = tmp_path / "detector.conf"
    path.write_text("[stabilizer]\nlock_streak = 3\nlock_streak = 4\n")

    with pytest.raises(ValueError, match="Invalid config file"):
        load_config(path)
