"""
Calendar widget: today's events.
"""

import logging
from datetime import date
from typing import Callable, List, Optional

from ..display.renderer import HtmlRenderer
from ..models import Event
from ..store.base import EVENTS_PATH, ContentStore
from .base import CollectionWidget
from .clock import DEFAULT_LOCALE, format_long_date

logger = logging.getLogger(__name__)


class CalendarWidget(CollectionWidget):
    """
    Events stored at content/events.

    The display sees only events dated today (viewer's local date),
    ordered by time. The admin list is ordered by date, then time.
    Both orderings rely on zero-padded date/time strings.
    """

    widget_type = "calendar"
    path = EVENTS_PATH
    record_type = Event
    template = "calendar.html"
    empty_text = "Bugün için etkinlik yok"

    def __init__(self, store: ContentStore, renderer: Optional[HtmlRenderer] = None,
                 locale: str = DEFAULT_LOCALE):
        super().__init__(store, renderer, locale)
        self.today: Callable[[], date] = date.today

    def today_string(self) -> str:
        return self.today().isoformat()

    def active_view(self, records: List[Event]) -> List[Event]:
        today = self.today_string()
        return sorted((e for e in records if e.date == today), key=lambda e: e.time)

    def admin_view(self, records: List[Event]) -> List[Event]:
        return sorted(records, key=lambda e: (e.date, e.time))

    def render(self, records: List[Event]) -> str:
        return self.renderer.render(self.template, events=records, empty_text=self.empty_text)

    def format_date(self, date_str: str) -> str:
        """Long form of an ISO date string."""
        return format_long_date(date.fromisoformat(date_str), self.locale)

    def today_formatted(self) -> str:
        return format_long_date(self.today(), self.locale)
