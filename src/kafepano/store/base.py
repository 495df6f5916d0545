"""
Content store interface and path contract.

The store is a hierarchical key-value tree addressed by slash-separated
paths. The path strings below are the wire contract shared by the admin
and display surfaces.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

SETTINGS_PATH = "settings"
EVENTS_PATH = "content/events"
PHOTOS_PATH = "content/photos"
ANNOUNCEMENTS_PATH = "content/announcements"
MENU_ITEMS_PATH = "content/menuItems"


def join_path(*parts: str) -> str:
    """Join path segments, ignoring empty segments and stray slashes."""
    segments = []
    for part in parts:
        segments.extend(s for s in str(part).split("/") if s)
    return "/".join(segments)


def split_path(path: str) -> list:
    return [s for s in path.split("/") if s]


def widget_field_path(widget_name: str, field: str) -> str:
    """Path of a single option of one widget, e.g. settings/widgets/clock/format24h."""
    return join_path(SETTINGS_PATH, "widgets", widget_name, field)


def widget_enabled_path(widget_name: str) -> str:
    return widget_field_path(widget_name, "enabled")


class Subscription:
    """
    Disposable handle returned by ContentStore.subscribe().

    Cancelling is idempotent; after cancel() the callback is never invoked
    again.
    """

    def __init__(self, path: str, on_cancel: Optional[Callable[[], None]] = None):
        self.path = path
        self._on_cancel = on_cancel
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._on_cancel:
            self._on_cancel()
            self._on_cancel = None
        logger.debug(f"Subscription on '{self.path}' cancelled")

    def __repr__(self) -> str:
        return f"<Subscription(path={self.path}, active={self.active})>"


class ContentStore(ABC):
    """
    Base class for content store backends.

    All methods raise StoreError on failure. Callers at the widget layer
    turn these into Result values or empty lists.
    """

    # True when subscribe() callbacks arrive on a thread other than the caller's
    delivers_on_foreign_thread = False

    @abstractmethod
    def get(self, path: str) -> Any:
        """Read the value at path, or None if absent."""

    @abstractmethod
    def set(self, path: str, value: Any) -> None:
        """Replace the whole node at path."""

    @abstractmethod
    def update(self, path: str, patch: Dict[str, Any]) -> None:
        """
        Merge named children into the node at path.

        Keys may themselves be relative paths ("photoId/order"), which
        allows several nodes to be rewritten in one write.
        """

    @abstractmethod
    def remove(self, path: str) -> None:
        """Delete the node at path."""

    @abstractmethod
    def push(self, path: str, value: Any) -> str:
        """Create a child under path with a generated key and return the key."""

    @abstractmethod
    def subscribe(self, path: str, callback: Callable[[Any], None]) -> Subscription:
        """
        Listen for changes at or below path.

        The callback receives the current value immediately and then the
        full, fresh value after every committed change.
        """
