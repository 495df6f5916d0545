"""
Managers for the separate concerns of a KafePano surface.

- Scheduler / RepeatingTask: cooperative loop and restartable timers
- SettingsManager: settings document with an in-memory copy
- ThemeManager: applies theme, colors and header fields to the page
- WidgetManager: widget activation, subscriptions and timers
"""

from .scheduler import RepeatingTask, Scheduler, TimerHandle
from .settings import SettingsManager
from .theme import ThemeManager
from .widget import WidgetManager, WidgetRegistry

__all__ = [
    "Scheduler",
    "RepeatingTask",
    "TimerHandle",
    "SettingsManager",
    "ThemeManager",
    "WidgetManager",
    "WidgetRegistry",
]
