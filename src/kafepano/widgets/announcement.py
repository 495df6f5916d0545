"""
Announcement banner and its rotation.
"""

import logging
from typing import Any, Dict, List, Optional

from ..display.target import RenderTarget
from ..managers.scheduler import RepeatingTask, Scheduler
from ..models import Announcement
from ..store.base import ANNOUNCEMENTS_PATH
from ..utils.errors import Result
from .base import CollectionWidget

logger = logging.getLogger(__name__)

ROTATION_INTERVAL = 10.0
MARQUEE_SEPARATOR = "  •  "
HIGH_PRIORITY_ICON = "🔴"
NORMAL_ICON = "📢"


class AnnouncementWidget(CollectionWidget):
    """
    Announcements stored at content/announcements.

    The display sees active announcements only, high priority first, then
    newest first within each priority.
    """

    widget_type = "announcement"
    path = ANNOUNCEMENTS_PATH
    record_type = Announcement
    template = "announcement.html"

    def active_view(self, records: List[Announcement]) -> List[Announcement]:
        active = [a for a in records if a.active]
        return sorted(active, key=lambda a: (0 if a.is_high else 1, -a.created_at))

    def prepare_new(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data = super().prepare_new(data)
        data["active"] = True
        data.setdefault("priority", "normal")
        return data

    def toggle_active(self, record_id: str, active: bool) -> Result:
        return self.update(record_id, {"active": active})

    def render(self, records: List[Announcement], index: int = 0) -> str:
        """
        Banner for the given announcements.

        With two or more, every text is shown in one marquee; the index only
        picks the icon. Returns '' when there is nothing to show.
        """
        if not records:
            return ""

        current = records[index % len(records)]
        marquee = None
        if len(records) > 1:
            marquee = MARQUEE_SEPARATOR.join(a.text for a in records)
        return self.renderer.render(
            self.template,
            icon=HIGH_PRIORITY_ICON if current.is_high else NORMAL_ICON,
            text=current.text,
            marquee=marquee,
        )


class AnnouncementRotation:
    """
    Rotation state for one display session.

    A timer runs only while two or more announcements are active.
    """

    def __init__(self, widget: AnnouncementWidget, scheduler: Scheduler,
                 interval: float = ROTATION_INTERVAL):
        self.widget = widget
        self.interval = interval
        self.announcements: List[Announcement] = []
        self.current_index = 0
        self.target: Optional[RenderTarget] = None
        self._task = RepeatingTask(scheduler)

    @property
    def running(self) -> bool:
        return self._task.running

    def set_announcements(self, announcements: List[Announcement]) -> None:
        self.announcements = list(announcements)

    def start(self, target: RenderTarget) -> None:
        self.target = target
        self.render()
        self._task.cancel()
        if len(self.announcements) > 1:
            self._task.schedule(self.interval, self.advance)

    def stop(self) -> None:
        self._task.cancel()

    def advance(self) -> None:
        if not self.announcements:
            return
        self.current_index = (self.current_index + 1) % len(self.announcements)
        self.render()

    def render(self) -> None:
        if self.target is None:
            return
        if not self.announcements:
            self.target.hide()
            return
        self.current_index %= len(self.announcements)
        self.target.show()
        self.target.set_html(self.widget.render(self.announcements, self.current_index))
