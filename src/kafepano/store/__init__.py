"""
Content store backends and the shared path contract.
"""

from .base import (
    ANNOUNCEMENTS_PATH,
    EVENTS_PATH,
    MENU_ITEMS_PATH,
    PHOTOS_PATH,
    SETTINGS_PATH,
    ContentStore,
    Subscription,
    join_path,
    widget_enabled_path,
    widget_field_path,
)
from .memory import InMemoryContentStore

__all__ = [
    "ContentStore",
    "InMemoryContentStore",
    "Subscription",
    "SETTINGS_PATH",
    "EVENTS_PATH",
    "PHOTOS_PATH",
    "ANNOUNCEMENTS_PATH",
    "MENU_ITEMS_PATH",
    "join_path",
    "widget_enabled_path",
    "widget_field_path",
]
