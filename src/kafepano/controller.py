"""
Display controller: the long-running signage surface.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .display.renderer import HtmlRenderer
from .display.target import TargetSet
from .managers import RepeatingTask, Scheduler, SettingsManager, ThemeManager, WidgetManager
from .models import Settings
from .store.base import ContentStore, Subscription
from .store.memory import InMemoryContentStore
from .utils.errors import error_boundary

logger = logging.getLogger(__name__)

# Seconds between checks whether the page snapshot needs rewriting
SNAPSHOT_INTERVAL = 1.0

# Browser refresh interval embedded in the written page
PAGE_REFRESH_SECONDS = 5


def create_store(config: Dict[str, Any]) -> ContentStore:
    """Build the content store selected by the `store` config section."""
    store_config = config.get("store", {})
    backend = store_config.get("backend", "firebase")

    if backend == "memory":
        logger.info("Using in-memory content store")
        return InMemoryContentStore()

    from .store.firebase import FirebaseContentStore, initialize_app

    app = initialize_app(store_config["database_url"], store_config.get("credentials"))
    return FirebaseContentStore(app)


class DisplayController:
    """
    Main controller for one display surface.

    This controller delegates specific responsibilities to managers:
    - SettingsManager: Settings document and its live subscription
    - ThemeManager: Theme, colors, cafe name and logo on the page
    - WidgetManager: Widget subscriptions, slideshow, rotation, clock and weather
    """

    def __init__(
        self,
        store: ContentStore,
        config: Optional[Dict[str, Any]] = None,
        scheduler: Optional[Scheduler] = None,
        renderer: Optional[HtmlRenderer] = None,
        targets: Optional[TargetSet] = None,
    ) -> None:
        """
        Initialize the display controller.

        Args:
            store: Content store to read settings and content from
            config: Loaded configuration (only the `display` section is used)
            scheduler: Event loop (a new one is created if omitted)
            renderer: HTML renderer shared by every widget
            targets: Render targets of the page
        """
        display_config = (config or {}).get("display", {})
        self.locale: str = display_config.get("locale", "tr")
        self.output: Optional[str] = display_config.get("output")

        self.store = store
        self.scheduler = scheduler or Scheduler(
            poll_interval=display_config.get("poll_interval", 0.01)
        )
        self.renderer = renderer or HtmlRenderer()
        self.targets = targets or TargetSet()
        self.running: bool = False

        self.settings_manager = SettingsManager(store)
        self.theme_manager = ThemeManager(self.targets)
        self.widget_manager = WidgetManager(
            store,
            self.scheduler,
            self.targets,
            lambda: self.settings_manager.current,
            self.renderer,
            self.locale,
        )
        self.settings_subscription: Optional[Subscription] = None
        self._snapshot_task = RepeatingTask(self.scheduler)
        self._written_fingerprint = None

        logger.info(f"Registered widgets: {self.widget_manager.widget_registry.list_widgets()}")

    @property
    def settings(self) -> Settings:
        return self.settings_manager.current

    def start(self) -> None:
        """Load settings, apply the theme, activate enabled widgets and follow settings changes."""
        settings = self.settings_manager.load()
        self.theme_manager.apply(settings)
        self.widget_manager.activate(settings)
        self.settings_subscription = self.settings_manager.subscribe(
            self.widget_manager.deliver(self._on_settings_changed)
        )

        if self.output:
            self.write_snapshot()
            self._snapshot_task.schedule(SNAPSHOT_INTERVAL, self.write_snapshot)
        logger.info(f"Display started for '{settings.cafe_name}'")

    @error_boundary()
    def _on_settings_changed(self, settings: Settings) -> None:
        self.theme_manager.apply(settings)

    def set_visible(self, visible: bool) -> None:
        """Visibility change of the screen: hidden stops slideshow and rotation, visible restarts them."""
        if visible == self.widget_manager.visible:
            return
        if visible:
            self.widget_manager.resume()
        else:
            self.widget_manager.pause()
        logger.info(f"Display {'visible' if visible else 'hidden'}")

    def snapshot(self) -> str:
        """Render the full display page from the current state of every region."""
        page = self.targets["page"]
        logo = self.targets["logo"]
        return self.renderer.render(
            "page.html",
            locale=self.locale,
            refresh=PAGE_REFRESH_SECONDS,
            cafe_name=self.targets["cafe_name"].html or self.settings.cafe_name,
            logo_url=logo.html if logo.visible else "",
            body_classes=" ".join(sorted(page.classes)),
            body_style=page.style_text(),
            regions=self.targets,
        )

    def write_snapshot(self, force: bool = False) -> bool:
        """
        Write the page to the configured output file if anything changed.

        Returns:
            True if the file was written
        """
        if not self.output:
            return False

        fingerprint = self.targets.fingerprint()
        if not force and fingerprint == self._written_fingerprint:
            return False

        output_path = Path(self.output).expanduser()
        tmp_path = output_path.with_name(output_path.name + ".tmp")
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(self.snapshot(), encoding="utf-8")
            os.replace(tmp_path, output_path)
        except OSError as e:
            logger.error(f"Failed to write display page to {output_path}: {e}")
            return False

        self._written_fingerprint = fingerprint
        logger.debug(f"Display page written to {output_path}")
        return True

    def run(self) -> None:
        """
        Main application run loop.

        Starts the display and runs the scheduler until stop() or Ctrl+C.
        """
        self.start()
        self.running = True
        logger.info("KafePano display is running. Press Ctrl+C to exit.")

        try:
            self.scheduler.run()
        except KeyboardInterrupt:
            logger.info("Received shutdown signal")
        except Exception as e:
            logger.error(f"Unexpected error in main loop: {e}", exc_info=True)
        finally:
            self.shutdown()

    def stop(self) -> None:
        self.running = False
        self.scheduler.stop()

    def shutdown(self) -> None:
        """Cancel every subscription and timer."""
        logger.info("Shutting down KafePano display...")
        self.running = False
        if self.settings_subscription:
            self.settings_subscription.cancel()
            self.settings_subscription = None
        self.widget_manager.deactivate_all()
        self._snapshot_task.cancel()
        self.scheduler.stop()
