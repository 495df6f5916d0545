"""
Render targets: named regions of a surface that widgets write into.
"""

import logging
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)

# Regions of the display page, in layout order
DISPLAY_REGIONS = (
    "page",
    "cafe_name",
    "logo",
    "clock",
    "weather",
    "announcement",
    "calendar_date",
    "calendar",
    "gallery",
    "menu",
)


class RenderTarget:
    """
    In-memory stand-in for a DOM container.

    Attributes:
        name: Region name
        html: Current inner HTML
        visible: Whether the region is shown
        classes: Presentation flags (e.g. "dark-theme")
        style: Presentation variables (e.g. "--primary-color")
    """

    def __init__(self, name: str):
        self.name = name
        self.html = ""
        self.visible = True
        self.classes = set()
        self.style: Dict[str, str] = {}
        self.render_count = 0

    def set_html(self, html: str) -> None:
        self.html = html
        self.render_count += 1

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def add_class(self, name: str) -> None:
        self.classes.add(name)

    def remove_class(self, *names: str) -> None:
        for name in names:
            self.classes.discard(name)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def set_style_property(self, name: str, value: str) -> None:
        self.style[name] = value

    def style_text(self) -> str:
        return "; ".join(f"{k}: {v}" for k, v in sorted(self.style.items()))

    def __repr__(self) -> str:
        return f"<RenderTarget(name={self.name}, visible={self.visible}, renders={self.render_count})>"


class TargetSet:
    """Named render targets for one surface."""

    def __init__(self, names: Iterable[str] = DISPLAY_REGIONS):
        self._targets: Dict[str, RenderTarget] = {name: RenderTarget(name) for name in names}

    def __getitem__(self, name: str) -> RenderTarget:
        return self._targets[name]

    def get(self, name: str) -> Optional[RenderTarget]:
        return self._targets.get(name)

    def names(self) -> list:
        return list(self._targets)

    def fingerprint(self) -> tuple:
        """Cheap change marker used to decide whether to rewrite the page snapshot."""
        return tuple(
            (t.render_count, t.visible, tuple(sorted(t.classes)), tuple(sorted(t.style.items())))
            for t in self._targets.values()
        )
