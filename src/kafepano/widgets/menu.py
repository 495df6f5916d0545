"""
Menu widget.
"""

import logging
from typing import Any, Dict, List

from ..models import MenuItem
from ..store.base import MENU_ITEMS_PATH
from ..utils.errors import Result
from .base import CollectionWidget

logger = logging.getLogger(__name__)

DEFAULT_MENU_ICON = "🍽️"

# Offered by the admin icon picker
FOOD_EMOJIS = [
    "☕", "🍵", "🥤", "🧃", "🍺", "🍷", "🥛",
    "🍕", "🍔", "🌭", "🥪", "🌮", "🌯", "🥗",
    "🍝", "🍜", "🍲", "🍛", "🍱", "🥘", "🫕",
    "🍳", "🥐", "🥯", "🍞", "🥖", "🧀", "🥚",
    "🍰", "🧁", "🍮", "🍩", "🍪", "🎂", "🍫",
    "🍎", "🍊", "🍋", "🍇", "🍓", "🥑", "🥕",
]


class MenuWidget(CollectionWidget):
    """
    Menu items stored at content/menuItems, in `order` sequence.

    Unavailable items stay on the display, rendered dimmed.
    """

    widget_type = "menu"
    path = MENU_ITEMS_PATH
    record_type = MenuItem
    template = "menu.html"
    empty_text = "Menü henüz eklenmemiş"
    assigns_order = True

    def active_view(self, records: List[MenuItem]) -> List[MenuItem]:
        return sorted(records, key=lambda m: m.order)

    def admin_view(self, records: List[MenuItem]) -> List[MenuItem]:
        return sorted(records, key=lambda m: m.order)

    def prepare_new(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data = super().prepare_new(data)
        data["available"] = True
        return data

    def toggle_availability(self, record_id: str, available: bool) -> Result:
        return self.update(record_id, {"available": available})

    def render(self, records: List[MenuItem]) -> str:
        return self.renderer.render(
            self.template,
            items=records,
            empty_text=self.empty_text,
            default_icon=DEFAULT_MENU_ICON,
        )
