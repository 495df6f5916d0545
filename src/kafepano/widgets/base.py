"""
Base classes for all widget types.

Two families exist:
- CollectionWidget: owns one content path in the store and exposes the
  read/subscribe/mutate contract plus an HTML render function.
- PolledWidget: produces data on a fixed interval (clock, weather) and
  re-renders its target on every tick.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ..display.renderer import HtmlRenderer
from ..display.target import RenderTarget
from ..managers.scheduler import RepeatingTask, Scheduler
from ..models import parse_collection
from ..store.base import ContentStore, Subscription, join_path
from ..utils.errors import Result, StoreError

logger = logging.getLogger(__name__)


class CollectionWidget(ABC):
    """
    Base class for widgets backed by a store collection.

    Class Attributes:
        widget_type: Widget name as used in settings (e.g. "calendar")
        path: Collection path in the content store
        record_type: Record dataclass with from_record()/to_record()
        template: Template used by render()
        empty_text: Message shown when there is nothing to display
        assigns_order: Stamp `order = collection size` on add

    Example:
        >>> class NotesWidget(CollectionWidget):
        ...     widget_type = "notes"
        ...     path = "content/notes"
        ...     record_type = Note
        ...     template = "notes.html"
        ...
        ...     def active_view(self, records):
        ...         return sorted(records, key=lambda n: n.created_at)
    """

    widget_type: str = None
    path: str = None
    record_type: type = None
    template: str = None
    empty_text: str = ""
    assigns_order: bool = False

    def __init__(self, store: ContentStore, renderer: Optional[HtmlRenderer] = None,
                 locale: str = "tr"):
        if not self.widget_type or not self.path:
            raise ValueError(f"{self.__class__.__name__} must define widget_type and path")

        self.store = store
        self.renderer = renderer or HtmlRenderer()
        self.locale = locale
        self.clock: Callable[[], float] = time.time

    # Views

    def active_view(self, records: List[Any]) -> List[Any]:
        """Filter/sort rule for the display surface."""
        return records

    def admin_view(self, records: List[Any]) -> List[Any]:
        """Sort rule for the admin surface (unfiltered)."""
        return records

    # Reads

    def _fetch(self) -> List[Any]:
        return parse_collection(self.store.get(self.path), self.record_type)

    def query_active(self) -> Result:
        """Display view of the collection, or a failure Result."""
        try:
            return Result.ok(self.active_view(self._fetch()))
        except StoreError as e:
            logger.error(f"Error fetching {self.widget_type} records: {e}")
            return Result.fail(e)

    def query_all(self) -> Result:
        """Admin view of the collection, or a failure Result."""
        try:
            return Result.ok(self.admin_view(self._fetch()))
        except StoreError as e:
            logger.error(f"Error fetching all {self.widget_type} records: {e}")
            return Result.fail(e)

    def list_active(self) -> List[Any]:
        """Display view; empty on store failure."""
        result = self.query_active()
        return result.value if result else []

    def list_all(self) -> List[Any]:
        """Admin view; empty on store failure."""
        result = self.query_all()
        return result.value if result else []

    def subscribe(self, callback: Callable[[List[Any]], None]) -> Subscription:
        """
        Deliver the display view to callback now and after every change.

        Returns:
            Subscription handle; inactive if the listener could not be set up
        """

        def _on_change(raw: Any) -> None:
            records = parse_collection(raw, self.record_type)
            callback(self.active_view(records))

        try:
            return self.store.subscribe(self.path, _on_change)
        except StoreError as e:
            logger.error(f"Error subscribing to {self.widget_type} updates: {e}")
            subscription = Subscription(self.path)
            subscription.active = False
            return subscription

    # Mutations

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def prepare_new(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Stamp creation fields onto a new record payload."""
        data["createdAt"] = self.now_ms()
        if self.assigns_order and "order" not in data:
            existing = self.store.get(self.path)
            data["order"] = len(existing) if isinstance(existing, dict) else 0
        return data

    def add(self, data: Dict[str, Any]) -> Result:
        """Create a record under a generated key."""
        try:
            payload = self.prepare_new(_clean_payload(data))
            record = self.record_type.from_record("new", payload)
            if record is None:
                return Result.fail(f"Invalid {self.widget_type} record")
            key = self.store.push(self.path, record.to_record())
            logger.info(f"Added {self.widget_type} record {key}")
            return Result.ok(id=key)
        except StoreError as e:
            logger.error(f"Error adding {self.widget_type} record: {e}")
            return Result.fail(e)

    def update(self, record_id: str, data: Dict[str, Any]) -> Result:
        """Merge fields into an existing record; unspecified fields are kept."""
        if not record_id:
            return Result.fail("Missing record id")
        try:
            patch = _clean_payload(data)
            record_path = join_path(self.path, record_id)
            stored = self.store.get(record_path)
            merged = dict(stored) if isinstance(stored, dict) else {}
            merged.update(patch)
            merged = {k: v for k, v in merged.items() if v is not None}
            if self.record_type.from_record(record_id, merged) is None:
                logger.warning(f"Rejected update leaving {self.widget_type} record {record_id} malformed")
                return Result.fail(f"Invalid {self.widget_type} record")
            self.store.update(record_path, patch)
            return Result.ok(id=record_id)
        except StoreError as e:
            logger.error(f"Error updating {self.widget_type} record {record_id}: {e}")
            return Result.fail(e)

    def remove(self, record_id: str) -> Result:
        if not record_id:
            return Result.fail("Missing record id")
        try:
            self.store.remove(join_path(self.path, record_id))
            logger.info(f"Removed {self.widget_type} record {record_id}")
            return Result.ok(id=record_id)
        except StoreError as e:
            logger.error(f"Error deleting {self.widget_type} record {record_id}: {e}")
            return Result.fail(e)

    # Rendering

    def render(self, records: List[Any]) -> str:
        return self.renderer.render(self.template, items=records, empty_text=self.empty_text)

    def render_into(self, records: List[Any], target: RenderTarget) -> None:
        target.set_html(self.render(records))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(type={self.widget_type}, path={self.path})>"


def _clean_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise StoreError("Record payload must be a mapping")
    return {k: v for k, v in data.items() if k != "id"}


class PolledWidget(ABC):
    """
    Base class for interval-driven widgets.

    Class Attributes:
        widget_type: Unique identifier for this widget type (e.g. "clock")
        update_interval: Seconds between refreshes

    start() renders immediately and then once per update_interval; calling
    start() again replaces the timer instead of adding a second one.
    """

    widget_type: str = None
    update_interval: float = 1.0

    def __init__(self, config: Dict[str, Any], scheduler: Scheduler,
                 renderer: Optional[HtmlRenderer] = None):
        if not self.widget_type:
            raise ValueError(f"{self.__class__.__name__} must define widget_type")

        self.config = config
        self.scheduler = scheduler
        self.renderer = renderer or HtmlRenderer()
        self.target: Optional[RenderTarget] = None
        self._task = RepeatingTask(scheduler)
        self._last_data: Optional[Any] = None

    @abstractmethod
    def fetch_data(self) -> Any:
        """
        Fetch fresh data for the widget.

        May raise; safe_fetch_data() turns failures into fallback data.
        """

    @abstractmethod
    def render_html(self, data: Any) -> str:
        """Convert fetched data to an HTML fragment."""

    def get_fallback_data(self) -> Any:
        """Data rendered when fetch_data() fails."""
        return None

    def safe_fetch_data(self) -> Any:
        """
        Fetch data with standardized error handling.

        Returns:
            Fetched data on success, fallback data on failure
        """
        try:
            return self.fetch_data()
        except Exception as e:
            logger.error(
                f"Error fetching data for {self.widget_type} widget: {e}",
                exc_info=True
            )
            return self.get_fallback_data()

    @property
    def running(self) -> bool:
        return self._task.running

    def start(self, target: RenderTarget) -> None:
        self.target = target
        self.refresh()
        self._task.schedule(self.update_interval, self.refresh)
        logger.debug(f"{self.widget_type} widget started ({self.update_interval}s)")

    def stop(self) -> None:
        """Cancel the refresh timer. Idempotent."""
        self._task.cancel()

    def refresh(self) -> Any:
        data = self.safe_fetch_data()
        self._last_data = data
        if self.target is not None:
            self.target.set_html(self.render_html(data))
        return data

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(type={self.widget_type}, interval={self.update_interval})>"
