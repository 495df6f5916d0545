"""
Theme propagation for the display surface.
"""

import logging

from ..display.target import TargetSet
from ..models import Settings

logger = logging.getLogger(__name__)

DARK_THEME_CLASS = "dark-theme"
PRIMARY_COLOR_VAR = "--primary-color"
SECONDARY_COLOR_VAR = "--secondary-color"


class ThemeManager:
    """
    Applies the presentation parts of Settings to the page.

    The page target carries the dark-mode flag and color variables; the
    header targets carry the cafe name and logo.
    """

    def __init__(self, targets: TargetSet):
        self.targets = targets
        self.applied_theme = None

    def apply(self, settings: Settings) -> None:
        """Re-apply theme, colors, cafe name and logo. Safe to call on every change."""
        page = self.targets["page"]
        if settings.theme == "dark":
            page.add_class(DARK_THEME_CLASS)
        else:
            page.remove_class(DARK_THEME_CLASS)

        page.set_style_property(PRIMARY_COLOR_VAR, settings.primary_color)
        if settings.secondary_color:
            page.set_style_property(SECONDARY_COLOR_VAR, settings.secondary_color)
        else:
            page.style.pop(SECONDARY_COLOR_VAR, None)

        self.targets["cafe_name"].set_html(settings.cafe_name)

        logo = self.targets["logo"]
        if settings.logo_url:
            logo.set_html(settings.logo_url)
            logo.show()
        else:
            logo.set_html("")
            logo.hide()

        if settings.theme != self.applied_theme:
            logger.info(f"Applied {settings.theme} theme")
        self.applied_theme = settings.theme
