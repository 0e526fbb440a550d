"""Diagnostic settings and their JSON persistence."""

from __future__ import annotations

import json
import logging
import os
import platform
from dataclasses import asdict, dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

APP_DIR_NAME = "opencode-diag"
SETTINGS_FILE_NAME = "settings.json"

# (seconds, label)
REFRESH_PRESETS: tuple[tuple[int, str], ...] = (
    (30, "30s"),
    (60, "1m"),
    (120, "2m"),
    (300, "5m"),
)

SCALE_PRESETS: tuple[tuple[float, str], ...] = (
    (1.0, "100%"),
    (1.25, "125%"),
    (1.5, "150%"),
    (2.0, "200%"),
)

MIN_REFRESH_SECS = 1
MIN_SCALE = 0.75
MAX_SCALE = 2.5

CHECK_FLAGS: tuple[str, ...] = (
    "check_cpu_ram",
    "check_gpu",
    "check_internet",
    "check_claude",
    "check_openai",
    "check_google_ai",
    "check_opencode",
    "check_terminals",
)


class SettingsError(Exception):
    """Settings could not be persisted."""


def _default_config_dir() -> Path:
    """Return the per-user configuration directory for the current platform.

    OPENCODE_DIAG_CONFIG_HOME wins over the platform defaults.
    """
    override = os.environ.get("OPENCODE_DIAG_CONFIG_HOME", "")
    if override:
        return Path(override)
    system = platform.system()
    if system == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / APP_DIR_NAME
        return Path.home() / "AppData" / "Roaming" / APP_DIR_NAME
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def settings_path() -> Path:
    return _default_config_dir() / SETTINGS_FILE_NAME


@dataclass
class DiagnosticSettings:
    # System
    check_cpu_ram: bool = True
    check_gpu: bool = False  # WMI is unreliable on some machines
    # Network
    check_internet: bool = True
    # APIs
    check_claude: bool = True
    check_openai: bool = False
    check_google_ai: bool = False
    # Processes
    check_opencode: bool = True
    check_terminals: bool = False
    # Auto-refresh
    auto_refresh: bool = False
    refresh_interval_secs: int = 60
    ui_scale: float = 1.0
    # Unused, kept so older settings files still load
    max_history_entries: int = 10

    @classmethod
    def load(cls, path: Path | None = None) -> DiagnosticSettings:
        """Load settings from disk, falling back to defaults on any problem."""
        path = path or settings_path()
        if not path.exists():
            return cls()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.debug("Could not read settings from %s", path, exc_info=True)
            return cls()
        if not isinstance(raw, dict):
            return cls()
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, d: dict) -> DiagnosticSettings:
        """Build settings from a mapping; unknown keys are ignored and
        values of the wrong type keep their default."""
        defaults = cls()
        values = {}
        for f in fields(cls):
            if f.name not in d:
                continue
            value = d[f.name]
            default = getattr(defaults, f.name)
            if isinstance(default, bool):
                ok = isinstance(value, bool)
            elif isinstance(default, int):
                ok = isinstance(value, int) and not isinstance(value, bool) and value >= 0
            elif isinstance(default, float):
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
                value = float(value) if ok else value
                if ok and f.name == "ui_scale":
                    value = min(max(value, MIN_SCALE), MAX_SCALE)
            else:
                ok = False
            if ok and f.name == "refresh_interval_secs" and value < MIN_REFRESH_SECS:
                ok = False
            if ok:
                values[f.name] = value
            else:
                logger.debug("Ignoring invalid setting %s=%r", f.name, value)
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: Path | None = None) -> None:
        """Write settings as pretty JSON.

        Raises SettingsError when the directory, serialization or write fails.
        """
        path = path or settings_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SettingsError(f"Failed to create config directory: {e}") from e
        try:
            payload = json.dumps(self.to_dict(), indent=2)
        except (TypeError, ValueError) as e:
            raise SettingsError(f"Failed to serialize settings: {e}") from e
        try:
            path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise SettingsError(f"Failed to write settings file: {e}") from e

    def is_enabled(self, flag: str) -> bool:
        return bool(getattr(self, flag))

    def set_flag(self, flag: str, enabled: bool) -> None:
        if flag not in CHECK_FLAGS:
            raise ValueError(f"Unknown check flag: {flag}")
        setattr(self, flag, enabled)

    def enabled_count(self) -> int:
        return sum(1 for flag in CHECK_FLAGS if self.is_enabled(flag))

    def current_preset_index(self) -> int:
        for i, (secs, _) in enumerate(REFRESH_PRESETS):
            if secs == self.refresh_interval_secs:
                return i
        return 1  # 1m

    def set_preset(self, index: int) -> None:
        if 0 <= index < len(REFRESH_PRESETS):
            self.refresh_interval_secs = REFRESH_PRESETS[index][0]

    def format_interval(self) -> str:
        if self.refresh_interval_secs >= 60:
            return f"{self.refresh_interval_secs // 60}m"
        return f"{self.refresh_interval_secs}s"

    def current_scale_index(self) -> int | None:
        for i, (scale, _) in enumerate(SCALE_PRESETS):
            if abs(scale - self.ui_scale) < 0.01:
                return i
        return None

    def set_scale_preset(self, index: int) -> None:
        if 0 <= index < len(SCALE_PRESETS):
            self.ui_scale = SCALE_PRESETS[index][0]

    def adjust_scale(self, delta: float) -> None:
        self.ui_scale = min(max(self.ui_scale + delta, MIN_SCALE), MAX_SCALE)

    def format_scale(self) -> str:
        return f"{int(self.ui_scale * 100)}%"
