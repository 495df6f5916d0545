"""
Clock widget for the display header.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

from ..display.renderer import HtmlRenderer
from ..display.target import RenderTarget
from ..managers.scheduler import Scheduler
from .base import PolledWidget

logger = logging.getLogger(__name__)

# Long date names per display locale. `pattern` orders weekday, day and month
# the way the locale writes them.
LOCALES: Dict[str, Dict[str, Any]] = {
    "tr": {
        "weekdays": ["Pazartesi", "Salı", "Çarşamba", "Perşembe", "Cuma", "Cumartesi", "Pazar"],
        "months": [
            "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
            "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık",
        ],
        "pattern": "{day} {month} {weekday}",
    },
    "en": {
        "weekdays": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
        "months": [
            "January", "February", "March", "April", "May", "June",
            "July", "August", "September", "October", "November", "December",
        ],
        "pattern": "{weekday}, {month} {day}",
    },
}

DEFAULT_LOCALE = "tr"


def format_time(moment: datetime, format24h: bool = True) -> str:
    """
    Format the time of day.

    24h: zero-padded "HH:MM". 12h: "h:mm AM/PM" with 0 shown as 12 and no
    leading zero on the hour.
    """
    minutes = f"{moment.minute:02d}"
    if format24h:
        return f"{moment.hour:02d}:{minutes}"

    suffix = "PM" if moment.hour >= 12 else "AM"
    hour = moment.hour % 12 or 12
    return f"{hour}:{minutes} {suffix}"


def format_long_date(day: date, locale: str = DEFAULT_LOCALE) -> str:
    """Weekday, day and month name in the display locale (e.g. "19 Ekim Pazartesi")."""
    names = LOCALES.get(locale) or LOCALES[DEFAULT_LOCALE]
    return names["pattern"].format(
        weekday=names["weekdays"][day.weekday()],
        day=day.day,
        month=names["months"][day.month - 1],
    )


class ClockWidget(PolledWidget):
    """
    Display the current time and, optionally, the date.

    Configuration:
        format24h: 24-hour clock (default: True)
        showDate: Show the long date under the time (default: True)
        locale: Locale for the date (default: "tr")
        compact: Header layout instead of the large widget layout (default: True)

    Example:
        >>> clock = ClockWidget({"format24h": False}, scheduler)
        >>> clock.start(targets["clock"])
    """

    widget_type = "clock"
    update_interval = 1.0

    def __init__(self, config: Dict[str, Any], scheduler: Scheduler,
                 renderer: Optional[HtmlRenderer] = None,
                 now: Callable[[], datetime] = datetime.now):
        super().__init__(config, scheduler, renderer)
        self.now = now
        self.format24h = config.get("format24h", True) is not False
        self.show_date = config.get("showDate", True) is not False
        self.locale = config.get("locale", DEFAULT_LOCALE)
        self.compact = config.get("compact", True)

    def start(self, target: RenderTarget, format24h: Optional[bool] = None,
              show_date: Optional[bool] = None) -> None:
        """Render now and every second; a second start() replaces the first timer."""
        if format24h is not None:
            self.format24h = format24h
        if show_date is not None:
            self.show_date = show_date
        super().start(target)

    def fetch_data(self) -> datetime:
        return self.now()

    def get_fallback_data(self) -> datetime:
        return datetime.now()

    def render_html(self, data: datetime) -> str:
        return self.renderer.render(
            "clock.html",
            compact=self.compact,
            time=format_time(data, self.format24h),
            date=format_long_date(data, self.locale),
            show_date=self.show_date,
        )
