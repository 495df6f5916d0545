"""
Widget management for the display surface.

This module discovers the widget types, instantiates one widget of each
kind per display session and owns the lifecycle of their subscriptions
and timers.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..display.renderer import HtmlRenderer
from ..display.target import TargetSet
from ..models import WIDGET_NAMES, Settings
from ..store.base import ContentStore, Subscription
from ..utils.errors import error_boundary
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class WidgetRegistry:
    """
    Registry for auto-discovering widget types.

    Both collection widgets (store-backed) and polled widgets (clock,
    weather) are registered under their widget_type.
    """

    def __init__(self):
        """Initialize empty registry."""
        self._widgets: Dict[str, type] = {}

    def register(self, widget_class: type) -> None:
        """
        Register a widget class.

        Args:
            widget_class: Widget class to register

        Raises:
            TypeError: If widget_class is not a CollectionWidget or PolledWidget
            ValueError: If widget_type is not defined
        """
        from kafepano.widgets.base import CollectionWidget, PolledWidget

        if not issubclass(widget_class, (CollectionWidget, PolledWidget)):
            raise TypeError(f"{widget_class} must inherit from CollectionWidget or PolledWidget")

        widget_type = widget_class.widget_type

        if not widget_type:
            raise ValueError(f"{widget_class.__name__} must define widget_type class attribute")

        if widget_type in self._widgets:
            logger.warning(f"Overwriting existing widget type: {widget_type}")

        self._widgets[widget_type] = widget_class
        logger.debug(f"Registered widget type: {widget_type}")

    def get_widget_class(self, widget_type: str):
        """
        Get widget class by type.

        Args:
            widget_type: Widget type identifier

        Returns:
            Widget class or None if not found
        """
        return self._widgets.get(widget_type)

    def list_widgets(self) -> list:
        """
        List all registered widget types.

        Returns:
            List of widget type identifiers
        """
        return list(self._widgets.keys())

    def collection_types(self) -> List[str]:
        """Registered widget types that are backed by a store collection."""
        from kafepano.widgets.base import CollectionWidget

        return [name for name, cls in self._widgets.items() if issubclass(cls, CollectionWidget)]

    def auto_discover(self) -> None:
        """Auto-discover and register all widget modules."""
        import importlib
        import pkgutil

        from kafepano.widgets.base import CollectionWidget, PolledWidget

        try:
            import kafepano.widgets as widgets_pkg
        except ImportError:
            logger.warning("Widgets package not found, skipping auto-discovery")
            return

        for _importer, modname, _ispkg in pkgutil.iter_modules(widgets_pkg.__path__):
            if modname in ["base", "__init__"]:
                continue

            try:
                module = importlib.import_module(f"kafepano.widgets.{modname}")

                for attr_name in dir(module):
                    attr = getattr(module, attr_name)
                    if (
                        isinstance(attr, type)
                        and issubclass(attr, (CollectionWidget, PolledWidget))
                        and attr not in (CollectionWidget, PolledWidget)
                        and attr.__module__ == module.__name__
                        and getattr(attr, "widget_type", None)
                    ):
                        self.register(attr)
                        logger.info(f"Auto-registered widget: {attr.widget_type}")

            except Exception as e:
                logger.error(f"Failed to load widget module {modname}: {e}")


def build_collection_widgets(
    registry: WidgetRegistry,
    store: ContentStore,
    renderer: Optional[HtmlRenderer] = None,
    locale: str = "tr",
) -> Dict[str, Any]:
    """Instantiate one widget per registered collection type, keyed by widget_type."""
    renderer = renderer or HtmlRenderer()
    return {
        name: registry.get_widget_class(name)(store, renderer, locale)
        for name in registry.collection_types()
    }


class WidgetManager:
    """
    Manages the widgets of one display session.

    Responsibilities:
    - Activating enabled widgets against their render targets
    - Holding the live subscriptions and the per-session slideshow/rotation state
    - Pausing and restarting timers on visibility changes
    - Tearing everything down on shutdown
    """

    def __init__(
        self,
        store: ContentStore,
        scheduler: Scheduler,
        targets: TargetSet,
        settings_provider: Callable[[], Settings],
        renderer: Optional[HtmlRenderer] = None,
        locale: str = "tr",
    ):
        """
        Initialize the widget manager.

        Args:
            store: Content store the collection widgets read from
            scheduler: Loop that runs every timer of this session
            targets: Render targets of the display page
            settings_provider: Returns the current Settings
            renderer: Shared HTML renderer (optional)
            locale: Display locale for dates
        """
        from kafepano.widgets.announcement import AnnouncementRotation
        from kafepano.widgets.gallery import GallerySlideshow

        self.store = store
        self.scheduler = scheduler
        self.targets = targets
        self.settings_provider = settings_provider
        self.renderer = renderer or HtmlRenderer()
        self.visible = True
        self.active: List[str] = []
        self.subscriptions: Dict[str, Subscription] = {}

        self.widget_registry = WidgetRegistry()
        self.widget_registry.auto_discover()

        self.collections = build_collection_widgets(
            self.widget_registry, store, self.renderer, locale
        )
        self.calendar = self.collections["calendar"]
        self.gallery = self.collections["gallery"]
        self.announcements = self.collections["announcement"]
        self.menu = self.collections["menu"]

        self.clock = self.widget_registry.get_widget_class("clock")(
            {"locale": locale}, scheduler, self.renderer
        )
        self.weather = self.widget_registry.get_widget_class("weather")(
            {}, scheduler, self.renderer, settings_provider=settings_provider
        )
        self.slideshow = GallerySlideshow(self.gallery, scheduler)
        self.rotation = AnnouncementRotation(self.announcements, scheduler)

    def deliver(self, callback: Callable[..., Any]) -> Callable[..., Any]:
        """Route store callbacks onto the loop when the store calls back from its own threads."""
        if self.store.delivers_on_foreign_thread:
            return self.scheduler.threadsafe(callback)
        return callback

    def activate(self, settings: Settings) -> None:
        """Start every enabled widget and hide the regions of disabled ones."""
        for name in WIDGET_NAMES:
            target = self.targets[name]
            if not settings.is_enabled(name):
                target.hide()
                logger.debug(f"{name} widget disabled")
                continue

            target.show()
            try:
                getattr(self, f"_activate_{name}")(settings)
            except Exception as e:
                logger.error(f"Failed to activate {name} widget: {e}", exc_info=True)
                continue
            self.active.append(name)

        logger.info(f"Active widgets: {self.active}")

    def _subscribe(self, name: str, widget: Any, callback: Callable[[List[Any]], None]) -> None:
        self.subscriptions[name] = widget.subscribe(self.deliver(callback))

    def _activate_calendar(self, settings: Settings) -> None:
        self._subscribe("calendar", self.calendar, self._on_events)

    def _activate_gallery(self, settings: Settings) -> None:
        self.slideshow.interval = float(settings.gallery_interval)
        self.slideshow.target = self.targets["gallery"]
        self._subscribe("gallery", self.gallery, self._on_photos)

    def _activate_announcement(self, settings: Settings) -> None:
        self.rotation.target = self.targets["announcement"]
        self._subscribe("announcement", self.announcements, self._on_announcements)

    def _activate_menu(self, settings: Settings) -> None:
        self._subscribe("menu", self.menu, self._on_menu_items)

    def _activate_clock(self, settings: Settings) -> None:
        self.clock.start(
            self.targets["clock"],
            format24h=settings.clock_format24h,
            show_date=settings.clock_show_date,
        )

    def _activate_weather(self, settings: Settings) -> None:
        self.weather.start(self.targets["weather"])

    # Subscription deliveries

    @error_boundary()
    def _on_events(self, events: List[Any]) -> None:
        self.targets["calendar_date"].set_html(self.calendar.today_formatted())
        self.calendar.render_into(events, self.targets["calendar"])

    @error_boundary()
    def _on_photos(self, photos: List[Any]) -> None:
        self.slideshow.set_photos(photos)
        if not photos:
            self.slideshow.stop()
            self.slideshow.render()
        elif self.visible:
            self.slideshow.start(self.targets["gallery"])
        else:
            self.slideshow.render()

    @error_boundary()
    def _on_announcements(self, announcements: List[Any]) -> None:
        self.rotation.set_announcements(announcements)
        if self.visible:
            self.rotation.start(self.targets["announcement"])
        else:
            self.rotation.render()

    @error_boundary()
    def _on_menu_items(self, items: List[Any]) -> None:
        self.menu.render_into(items, self.targets["menu"])

    # Visibility

    def pause(self) -> None:
        """Stop gallery and announcement timers while the display is hidden."""
        self.visible = False
        self.slideshow.stop()
        self.rotation.stop()
        logger.debug("Slideshow and rotation paused")

    def resume(self) -> None:
        """Restart gallery and announcement timers with fresh intervals."""
        self.visible = True
        if "gallery" in self.active and self.slideshow.photos:
            self.slideshow.start(self.targets["gallery"])
        if "announcement" in self.active:
            self.rotation.start(self.targets["announcement"])
        logger.debug("Slideshow and rotation resumed")

    def deactivate_all(self) -> None:
        """Cancel every subscription and timer of this session."""
        for subscription in self.subscriptions.values():
            subscription.cancel()
        self.subscriptions.clear()
        self.clock.stop()
        self.weather.stop()
        self.slideshow.stop()
        self.rotation.stop()
        self.active = []
        logger.debug("Cleared all widgets")

    def has_widgets(self) -> bool:
        return len(self.active) > 0

    def get_widget_count(self) -> int:
        return len(self.active)
