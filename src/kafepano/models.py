"""
Record types shared by the admin and display surfaces.

Everything read from the content store passes through from_record() /
Settings.from_dict(), which fill documented defaults and drop malformed
records so rendering never sees missing fields.
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_CAFE_NAME = "KafePano"
DEFAULT_THEME = "light"
THEMES = ("light", "dark")
DEFAULT_PRIMARY_COLOR = "#8B4513"
DEFAULT_CITY = "Istanbul"
DEFAULT_GALLERY_INTERVAL = 5
DEFAULT_EVENT_ICON = "📌"

PRIORITY_NORMAL = "normal"
PRIORITY_HIGH = "high"
PRIORITIES = (PRIORITY_NORMAL, PRIORITY_HIGH)

WIDGET_NAMES = ("calendar", "gallery", "announcement", "clock", "weather", "menu")

# Supported weather cities and their coordinates
CITIES: Dict[str, Dict[str, float]] = {
    "Istanbul": {"lat": 41.0082, "lon": 28.9784},
    "Ankara": {"lat": 39.9334, "lon": 32.8597},
    "Izmir": {"lat": 38.4237, "lon": 27.1428},
    "Bursa": {"lat": 40.1885, "lon": 29.0610},
    "Antalya": {"lat": 36.8969, "lon": 30.7133},
    "Adana": {"lat": 37.0000, "lon": 35.3213},
    "Konya": {"lat": 37.8746, "lon": 32.4932},
    "Gaziantep": {"lat": 37.0662, "lon": 37.3833},
    "Mersin": {"lat": 36.8121, "lon": 34.6415},
    "Kayseri": {"lat": 38.7312, "lon": 35.4787},
}

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^\d{2}:\d{2}$")

DEFAULT_WIDGETS: Dict[str, Dict[str, Any]] = {
    "calendar": {"enabled": True},
    "gallery": {"enabled": True, "interval": DEFAULT_GALLERY_INTERVAL},
    "announcement": {"enabled": True},
    "clock": {"enabled": True, "format24h": True, "showDate": True},
    "weather": {"enabled": True, "city": DEFAULT_CITY},
    "menu": {"enabled": False},
}


def normalize_hex_color(value: Any) -> Optional[str]:
    """
    Normalize user input to '#RRGGBB'.

    A missing leading '#' is added; anything that is not six hex digits
    returns None.
    """
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate.startswith("#"):
        candidate = "#" + candidate
    if not HEX_COLOR_RE.match(candidate):
        return None
    return candidate.upper()


def is_valid_date(value: Any) -> bool:
    if not isinstance(value, str) or not DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_valid_time(value: Any) -> bool:
    if not isinstance(value, str) or not TIME_RE.match(value):
        return False
    hours, minutes = value.split(":")
    return int(hours) < 24 and int(minutes) < 60


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def _without_none(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if v is not None}


@dataclass
class Settings:
    """
    Display configuration document stored at `settings`.

    Attributes:
        cafe_name: Name shown in the display header
        theme: "light" or "dark"
        primary_color: '#RRGGBB' accent color
        widgets: Per-widget options, each with at least an `enabled` flag
        logo_url: Optional uploaded logo URL ('' when removed)
        secondary_color: Optional second accent color
    """

    cafe_name: str = DEFAULT_CAFE_NAME
    theme: str = DEFAULT_THEME
    primary_color: str = DEFAULT_PRIMARY_COLOR
    widgets: Dict[str, Dict[str, Any]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_WIDGETS)
    )
    logo_url: str = ""
    secondary_color: Optional[str] = None

    @classmethod
    def default(cls) -> "Settings":
        return cls()

    @classmethod
    def from_dict(cls, data: Any) -> "Settings":
        """Build Settings from a stored document, defaulting every missing or invalid field."""
        if not isinstance(data, dict):
            return cls.default()

        cafe_name = data.get("cafeName")
        if not isinstance(cafe_name, str) or not cafe_name.strip():
            cafe_name = DEFAULT_CAFE_NAME

        theme = data.get("theme")
        if theme not in THEMES:
            theme = DEFAULT_THEME

        primary_color = data.get("primaryColor")
        if not isinstance(primary_color, str) or not HEX_COLOR_RE.match(primary_color):
            primary_color = DEFAULT_PRIMARY_COLOR

        secondary_color = data.get("secondaryColor")
        if not isinstance(secondary_color, str) or not HEX_COLOR_RE.match(secondary_color):
            secondary_color = None

        logo_url = data.get("logoUrl")
        if not isinstance(logo_url, str):
            logo_url = ""

        return cls(
            cafe_name=cafe_name,
            theme=theme,
            primary_color=primary_color,
            widgets=cls._merge_widgets(data.get("widgets")),
            logo_url=logo_url,
            secondary_color=secondary_color,
        )

    @staticmethod
    def _merge_widgets(raw: Any) -> Dict[str, Dict[str, Any]]:
        widgets = copy.deepcopy(DEFAULT_WIDGETS)
        if not isinstance(raw, dict):
            return widgets

        for name, options in raw.items():
            if not isinstance(options, dict):
                continue
            merged = widgets.setdefault(name, {"enabled": True})
            merged.update(copy.deepcopy(options))
            merged["enabled"] = _as_bool(
                merged.get("enabled"), DEFAULT_WIDGETS.get(name, {}).get("enabled", True)
            )

        gallery = widgets["gallery"]
        interval = _as_int(gallery.get("interval"), DEFAULT_GALLERY_INTERVAL)
        gallery["interval"] = interval if interval >= 1 else DEFAULT_GALLERY_INTERVAL

        clock = widgets["clock"]
        clock["format24h"] = _as_bool(clock.get("format24h"), True)
        clock["showDate"] = _as_bool(clock.get("showDate"), True)

        weather = widgets["weather"]
        if weather.get("city") not in CITIES:
            weather["city"] = DEFAULT_CITY

        return widgets

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "cafeName": self.cafe_name,
            "logoUrl": self.logo_url,
            "theme": self.theme,
            "primaryColor": self.primary_color,
            "widgets": copy.deepcopy(self.widgets),
        }
        if self.secondary_color:
            data["secondaryColor"] = self.secondary_color
        return data

    def widget(self, name: str) -> Dict[str, Any]:
        return self.widgets.get(name, {"enabled": False})

    def is_enabled(self, name: str) -> bool:
        return bool(self.widget(name).get("enabled", False))

    @property
    def gallery_interval(self) -> int:
        return self.widget("gallery").get("interval", DEFAULT_GALLERY_INTERVAL)

    @property
    def weather_city(self) -> str:
        return self.widget("weather").get("city", DEFAULT_CITY)

    @property
    def clock_format24h(self) -> bool:
        return self.widget("clock").get("format24h", True)

    @property
    def clock_show_date(self) -> bool:
        return self.widget("clock").get("showDate", True)


@dataclass
class Event:
    """Calendar entry at content/events/{id}."""

    id: str
    title: str
    date: str
    time: str
    description: Optional[str] = None
    icon: str = DEFAULT_EVENT_ICON
    created_at: int = 0

    @classmethod
    def from_record(cls, record_id: str, raw: Any) -> Optional["Event"]:
        if not isinstance(raw, dict):
            return None
        title = raw.get("title")
        if not isinstance(title, str) or not title.strip():
            return None
        if not is_valid_date(raw.get("date")) or not is_valid_time(raw.get("time")):
            return None
        return cls(
            id=record_id,
            title=title,
            date=raw["date"],
            time=raw["time"],
            description=_optional_str(raw.get("description")),
            icon=_optional_str(raw.get("icon")) or DEFAULT_EVENT_ICON,
            created_at=_as_int(raw.get("createdAt"), 0),
        )

    def to_record(self) -> Dict[str, Any]:
        return _without_none(
            {
                "title": self.title,
                "date": self.date,
                "time": self.time,
                "description": self.description,
                "icon": self.icon,
                "createdAt": self.created_at,
            }
        )


@dataclass
class Photo:
    """Gallery photo at content/photos/{id}."""

    id: str
    url: str
    caption: Optional[str] = None
    order: int = 0
    created_at: int = 0

    @classmethod
    def from_record(cls, record_id: str, raw: Any) -> Optional["Photo"]:
        if not isinstance(raw, dict):
            return None
        url = raw.get("url")
        if not isinstance(url, str) or not url:
            return None
        return cls(
            id=record_id,
            url=url,
            caption=_optional_str(raw.get("caption")),
            order=_as_int(raw.get("order"), 0),
            created_at=_as_int(raw.get("createdAt"), 0),
        )

    def to_record(self) -> Dict[str, Any]:
        return _without_none(
            {
                "url": self.url,
                "caption": self.caption,
                "order": self.order,
                "createdAt": self.created_at,
            }
        )


@dataclass
class Announcement:
    """Banner text at content/announcements/{id}."""

    id: str
    text: str
    priority: str = PRIORITY_NORMAL
    active: bool = True
    created_at: int = 0

    @property
    def is_high(self) -> bool:
        return self.priority == PRIORITY_HIGH

    @classmethod
    def from_record(cls, record_id: str, raw: Any) -> Optional["Announcement"]:
        if not isinstance(raw, dict):
            return None
        text = raw.get("text")
        if not isinstance(text, str) or not text.strip():
            return None
        priority = raw.get("priority")
        return cls(
            id=record_id,
            text=text,
            priority=priority if priority in PRIORITIES else PRIORITY_NORMAL,
            active=raw.get("active") is not False,
            created_at=_as_int(raw.get("createdAt"), 0),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "priority": self.priority,
            "active": self.active,
            "createdAt": self.created_at,
        }


@dataclass
class MenuItem:
    """Menu entry at content/menuItems/{id}. Price is free-form text."""

    id: str
    name: str
    price: str
    description: Optional[str] = None
    icon: Optional[str] = None
    available: bool = True
    order: int = 0
    created_at: int = 0

    @classmethod
    def from_record(cls, record_id: str, raw: Any) -> Optional["MenuItem"]:
        if not isinstance(raw, dict):
            return None
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            return None
        price = raw.get("price")
        return cls(
            id=record_id,
            name=name,
            price="" if price is None else str(price),
            description=_optional_str(raw.get("description")),
            icon=_optional_str(raw.get("icon")),
            available=raw.get("available") is not False,
            order=_as_int(raw.get("order"), 0),
            created_at=_as_int(raw.get("createdAt"), 0),
        )

    def to_record(self) -> Dict[str, Any]:
        return _without_none(
            {
                "name": self.name,
                "description": self.description,
                "price": self.price,
                "icon": self.icon,
                "available": self.available,
                "order": self.order,
                "createdAt": self.created_at,
            }
        )


R = TypeVar("R")


def parse_collection(raw: Any, record_type: Type[R]) -> List[R]:
    """
    Convert a stored collection mapping into typed records.

    Malformed entries are dropped with a warning.
    """
    if not isinstance(raw, dict):
        return []

    records = []
    for record_id, value in raw.items():
        record = record_type.from_record(record_id, value)
        if record is None:
            logger.warning(f"Dropping malformed {record_type.__name__} record '{record_id}'")
            continue
        records.append(record)
    return records
