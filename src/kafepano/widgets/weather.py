"""
Weather widget using the Open-Meteo forecast API (no API key required).
"""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Callable, Dict, List, Optional

from ..display.renderer import HtmlRenderer
from ..display.target import RenderTarget
from ..managers.scheduler import Scheduler
from ..models import CITIES, DEFAULT_CITY, Settings
from .base import PolledWidget

logger = logging.getLogger(__name__)

API_URL = "https://api.open-meteo.com/v1/forecast"

DEFAULT_ICON = "🌡️"

# WMO weather condition codes to icon and description
WEATHER_CODES: Dict[int, Dict[str, str]] = {
    0: {"icon": "☀️", "desc": "Güneşli"},
    1: {"icon": "🌤️", "desc": "Az Bulutlu"},
    2: {"icon": "⛅", "desc": "Parçalı Bulutlu"},
    3: {"icon": "☁️", "desc": "Bulutlu"},
    45: {"icon": "🌫️", "desc": "Sisli"},
    48: {"icon": "🌫️", "desc": "Kırağılı Sis"},
    51: {"icon": "🌧️", "desc": "Hafif Yağmur"},
    53: {"icon": "🌧️", "desc": "Yağmurlu"},
    55: {"icon": "🌧️", "desc": "Şiddetli Yağmur"},
    61: {"icon": "🌧️", "desc": "Hafif Yağmur"},
    63: {"icon": "🌧️", "desc": "Yağmurlu"},
    65: {"icon": "🌧️", "desc": "Şiddetli Yağmur"},
    71: {"icon": "🌨️", "desc": "Hafif Kar"},
    73: {"icon": "🌨️", "desc": "Karlı"},
    75: {"icon": "🌨️", "desc": "Yoğun Kar"},
    80: {"icon": "🌦️", "desc": "Sağanak"},
    81: {"icon": "🌦️", "desc": "Sağanak"},
    82: {"icon": "⛈️", "desc": "Şiddetli Sağanak"},
    95: {"icon": "⛈️", "desc": "Gök Gürültülü"},
    96: {"icon": "⛈️", "desc": "Dolu"},
    99: {"icon": "⛈️", "desc": "Şiddetli Dolu"},
}
UNKNOWN_CONDITION = {"icon": DEFAULT_ICON, "desc": "Bilinmiyor"}
UNAVAILABLE_DESCRIPTION = "Yüklenemedi"


def available_cities() -> List[str]:
    return list(CITIES)


def describe_code(code: Any) -> Dict[str, str]:
    """Icon/description for a condition code, generic placeholder if unmapped."""
    try:
        return WEATHER_CODES.get(int(code), UNKNOWN_CONDITION)
    except (TypeError, ValueError):
        return UNKNOWN_CONDITION


class WeatherWidget(PolledWidget):
    """
    Current temperature and conditions for one supported city.

    Configuration:
        city: Key of the supported city table (default: "Istanbul")
        compact: Header layout instead of the full widget (default: True)
        timeout: HTTP timeout in seconds (default: 10)

    start() reads the city from the current settings, renders immediately
    and refreshes every 30 minutes. A failed fetch renders a placeholder
    and the timer keeps running for the next attempt.
    """

    widget_type = "weather"
    update_interval = 30 * 60.0

    def __init__(self, config: Dict[str, Any], scheduler: Scheduler,
                 renderer: Optional[HtmlRenderer] = None,
                 settings_provider: Optional[Callable[[], Settings]] = None):
        super().__init__(config, scheduler, renderer)
        self.settings_provider = settings_provider
        self.compact = config.get("compact", True)
        self.city = DEFAULT_CITY
        self.latitude = CITIES[DEFAULT_CITY]["lat"]
        self.longitude = CITIES[DEFAULT_CITY]["lon"]
        self.set_city(config.get("city", DEFAULT_CITY))

    def set_city(self, city_name: str) -> bool:
        """Switch city; unknown names are ignored and return False."""
        coords = CITIES.get(city_name)
        if not coords:
            logger.warning(f"Unsupported weather city: {city_name}")
            return False
        self.city = city_name
        self.latitude = coords["lat"]
        self.longitude = coords["lon"]
        return True

    def build_url(self) -> str:
        query = urllib.parse.urlencode(
            {
                "latitude": self.latitude,
                "longitude": self.longitude,
                "current": "temperature_2m,weather_code",
                "timezone": "auto",
            }
        )
        return f"{API_URL}?{query}"

    def start(self, target: RenderTarget) -> None:
        if self.settings_provider:
            self.set_city(self.settings_provider().weather_city)
        super().start(target)

    def fetch_data(self) -> Dict[str, Any]:
        """Fetch current conditions. Raises on any network or format problem."""
        timeout = self.config.get("timeout", 10)
        with urllib.request.urlopen(self.build_url(), timeout=timeout) as response:
            data = json.loads(response.read().decode())

        current = data.get("current")
        if not current:
            raise ValueError("No current weather in response")

        condition = describe_code(current["weather_code"])
        return {
            "success": True,
            "temp": round(current["temperature_2m"]),
            "icon": condition["icon"],
            "description": condition["desc"],
            "city": self.city,
        }

    def safe_fetch_data(self) -> Dict[str, Any]:
        try:
            return self.fetch_data()
        except urllib.error.HTTPError as e:
            logger.error(f"Weather API HTTP error: {e.code} - {e.reason}")
        except urllib.error.URLError as e:
            logger.error(f"Weather API connection error: {e}")
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON response from weather API: {e}")
        except KeyError as e:
            logger.error(f"Unexpected weather API response format (missing key {e})")
        except Exception as e:
            logger.error(f"Unexpected error fetching weather: {e}", exc_info=True)
        return self.get_fallback_data()

    def fetch_current(self) -> Dict[str, Any]:
        """Current conditions, or the placeholder on any failure. Never raises."""
        return self.safe_fetch_data()

    def get_fallback_data(self) -> Dict[str, Any]:
        return {
            "success": False,
            "temp": "--",
            "icon": DEFAULT_ICON,
            "description": UNAVAILABLE_DESCRIPTION,
            "city": self.city,
        }

    def render_html(self, data: Dict[str, Any]) -> str:
        return self.renderer.render("weather.html", weather=data, compact=self.compact)

    def render_widget(self) -> str:
        """Full layout (city, large icon, temperature, description) from a fresh fetch."""
        data = self.fetch_current()
        return self.renderer.render("weather.html", weather=data, compact=False)
