"""
Application settings management.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Optional

from diffalyze.core.diff.normalizer import CompareOptions


logger = logging.getLogger(__name__)

# Smallest accepted value for numeric settings loaded from disk
_MINIMUMS = {
    'max_file_size': 1,
    'max_lines': 1,
    'max_exact_lines': 0,
    'worker_timeout': 0.001,
    'regex_timeout': 0.001,
    'regex_probe_budget': 0.001,
    'history_limit': 1,
}


@dataclass
class ComparisonSettings:
    """Settings for text comparison."""
    ignore_spaces_case: bool = False
    ignore_blank: bool = False
    regex: str = ""
    detect_moves: bool = True

    def to_options(self) -> CompareOptions:
        """Build engine options from these settings."""
        return CompareOptions(
            ignore_spaces_case=self.ignore_spaces_case,
            ignore_blank=self.ignore_blank,
            regex=self.regex or None,
        )


@dataclass
class LimitSettings:
    """Input limits and time budgets."""
    max_file_size: int = 10 * 1024 * 1024  # characters per input
    max_lines: int = 50000                 # lines per input
    max_exact_lines: int = 20000           # combined lines before positional fallback
    worker_timeout: float = 30.0           # seconds for one diff computation
    regex_timeout: float = 0.25            # seconds for pattern validation
    regex_probe_budget: float = 0.05       # seconds a safe pattern may take on the probe


@dataclass
class MergeSettings:
    """Settings for merge operations."""
    history_limit: int = 20


@dataclass
class ApplicationSettings:
    """Main application settings container."""
    comparison: ComparisonSettings = field(default_factory=ComparisonSettings)
    limits: LimitSettings = field(default_factory=LimitSettings)
    merge: MergeSettings = field(default_factory=MergeSettings)


class SettingsManager:
    """Manager for loading/saving application settings."""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else self._get_default_path()
        self._settings: Optional[ApplicationSettings] = None
        self._observers: list[Callable[[ApplicationSettings], None]] = []

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            # Windows
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'Diffalyze' / 'settings.json'
        else:
            # Linux/Mac
            config_home = os.environ.get('XDG_CONFIG_HOME',
                                         os.path.expanduser('~/.config'))
            return Path(config_home) / 'diffalyze' / 'settings.json'

    @property
    def settings(self) -> ApplicationSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> ApplicationSettings:
        """Load settings from disk, falling back to defaults."""
        if not self.settings_path.exists():
            return ApplicationSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return self._from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Could not load settings from %s: %s", self.settings_path, e)
            return ApplicationSettings()

    def save(self, settings: Optional[ApplicationSettings] = None) -> bool:
        """Save settings to disk."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(asdict(settings), f, indent=2)
        except OSError as e:
            logger.warning("Could not save settings to %s: %s", self.settings_path, e)
            return False

        self._settings = settings
        self._notify_observers()
        return True

    def reset(self) -> ApplicationSettings:
        """Reset to default settings."""
        self._settings = ApplicationSettings()
        self.save()
        return self._settings

    def add_observer(self, callback: Callable[[ApplicationSettings], None]) -> None:
        """Add a callback to be notified of settings changes."""
        self._observers.append(callback)

    def remove_observer(self, callback: Callable[[ApplicationSettings], None]) -> None:
        """Remove a settings change observer."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_observers(self) -> None:
        """Notify all observers of settings change."""
        for callback in self._observers:
            try:
                callback(self._settings)
            except Exception:
                logger.exception("Settings observer %r failed", callback)

    @staticmethod
    def _from_dict(data: dict) -> ApplicationSettings:
        """
        Convert dictionary back to settings objects.

        Unknown keys are ignored. A value of the wrong type, or a number
        below its minimum, keeps the default.
        """
        def build(cls: type, section: Any) -> Any:
            defaults = cls()
            if not isinstance(section, dict):
                return defaults
            known = {}
            for name, value in section.items():
                if name not in cls.__dataclass_fields__:
                    continue
                checked = _checked_value(name, value, getattr(defaults, name))
                if checked is None:
                    logger.warning("Ignoring invalid setting %s.%s=%r", cls.__name__, name, value)
                    continue
                known[name] = checked
            return replace(defaults, **known)

        if not isinstance(data, dict):
            return ApplicationSettings()

        return ApplicationSettings(
            comparison=build(ComparisonSettings, data.get('comparison')),
            limits=build(LimitSettings, data.get('limits')),
            merge=build(MergeSettings, data.get('merge')),
        )


def _checked_value(name: str, value: Any, default: Any) -> Any:
    """Return the value coerced to the default's type, or None if it is invalid."""
    if isinstance(default, bool):
        return value if isinstance(value, bool) else None
    if isinstance(default, str):
        return value if isinstance(value, str) else None

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(default, int) and not isinstance(value, int):
        return None
    if value < _MINIMUMS.get(name, 0):
        return None
    return float(value) if isinstance(default, float) else value
