"""
Settings aggregate: load, save and field-level updates of the `settings`
document, with an in-memory copy kept consistent after every write.
"""

import logging
from typing import Any, Callable, Dict, List

from ..models import WIDGET_NAMES, Settings
from ..store.base import SETTINGS_PATH, ContentStore, Subscription, join_path, split_path
from ..utils.errors import Result, StoreError

logger = logging.getLogger(__name__)

# Top-level fields that may be written one at a time
TOP_LEVEL_FIELDS = ("cafeName", "theme", "primaryColor", "secondaryColor", "logoUrl")

# Per-widget fields that may be written one at a time
WIDGET_FIELDS: Dict[str, tuple] = {
    "calendar": ("enabled",),
    "gallery": ("enabled", "interval"),
    "announcement": ("enabled",),
    "clock": ("enabled", "format24h", "showDate"),
    "weather": ("enabled", "city"),
    "menu": ("enabled",),
}


def is_settable_field(field_path: str) -> bool:
    """True for 'theme', 'widgets/weather/city' and the other known fields."""
    segments = split_path(field_path)
    if len(segments) == 1:
        return segments[0] in TOP_LEVEL_FIELDS
    if len(segments) == 3 and segments[0] == "widgets":
        return segments[2] in WIDGET_FIELDS.get(segments[1], ())
    return False


def _lookup(data: Dict[str, Any], segments: List[str]) -> Any:
    node: Any = data
    for segment in segments:
        if not isinstance(node, dict):
            return None
        node = node.get(segment)
    return node


def _assign(data: Dict[str, Any], segments: List[str], value: Any) -> None:
    node = data
    for segment in segments[:-1]:
        node = node.setdefault(segment, {})
    node[segments[-1]] = value


class SettingsManager:
    """
    Owner of the settings document for one surface.

    `current` always reflects the last value loaded, saved, set or received
    from the subscription, so reads after a successful write need no round
    trip to the store.
    """

    def __init__(self, store: ContentStore):
        self.store = store
        self._settings = Settings.default()

    @property
    def current(self) -> Settings:
        return self._settings

    def load(self) -> Settings:
        """
        Read the settings document.

        Returns the stored document with missing fields defaulted, or the
        defaults when it is absent or the read fails. Never raises.
        """
        try:
            raw = self.store.get(SETTINGS_PATH)
        except StoreError as e:
            logger.error(f"Error loading settings, using defaults: {e}")
            self._settings = Settings.default()
            return self._settings

        if raw is None:
            logger.info("No settings stored yet, using defaults")
        self._settings = Settings.from_dict(raw)
        return self._settings

    def ensure_exists(self) -> Result:
        """Write the default document if none is stored yet."""
        try:
            if self.store.get(SETTINGS_PATH) is not None:
                return Result.ok()
        except StoreError as e:
            logger.error(f"Error checking settings: {e}")
            return Result.fail(e)
        logger.info("Creating default settings document")
        return self.save(Settings.default())

    def save(self, settings: Settings) -> Result:
        """Replace the whole settings document."""
        try:
            self.store.set(SETTINGS_PATH, settings.to_dict())
        except StoreError as e:
            logger.error(f"Error saving settings: {e}")
            return Result.fail(e)
        self._settings = Settings.from_dict(settings.to_dict())
        logger.info("Settings saved")
        return Result.ok(value=self._settings)

    def set_field(self, field_path: str, value: Any) -> Result:
        """
        Write a single settings field, e.g. set_field("widgets/gallery/interval", 8).

        The value must survive the same defaulting rules load() applies;
        values that would be replaced by a default are rejected without a
        write.
        """
        if not is_settable_field(field_path):
            return Result.fail(f"Unknown settings field: {field_path}")

        segments = split_path(field_path)
        candidate = self._settings.to_dict()
        _assign(candidate, segments, value)
        updated = Settings.from_dict(candidate)
        if _lookup(updated.to_dict(), segments) != value:
            return Result.fail(f"Invalid value for {field_path}: {value!r}")

        try:
            self.store.set(join_path(SETTINGS_PATH, field_path), value)
        except StoreError as e:
            logger.error(f"Error updating setting {field_path}: {e}")
            return Result.fail(e)

        self._settings = updated
        logger.debug(f"Setting {field_path} updated")
        return Result.ok(value=value)

    def set_widget_enabled(self, widget_name: str, enabled: bool) -> Result:
        if widget_name not in WIDGET_NAMES:
            return Result.fail(f"Unknown widget: {widget_name}")
        return self.set_field(f"widgets/{widget_name}/enabled", enabled)

    def subscribe(self, callback: Callable[[Settings], None]) -> Subscription:
        """
        Deliver the settings now and after every change to the document.

        Returns:
            Subscription handle; inactive if the listener could not be set up
        """

        def _on_change(raw: Any) -> None:
            self._settings = Settings.from_dict(raw)
            callback(self._settings)

        try:
            return self.store.subscribe(SETTINGS_PATH, _on_change)
        except StoreError as e:
            logger.error(f"Error subscribing to settings: {e}")
            subscription = Subscription(SETTINGS_PATH)
            subscription.active = False
            return subscription
