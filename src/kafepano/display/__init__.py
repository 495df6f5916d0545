"""
Display-side rendering: HTML renderer and render targets.
"""

from .renderer import HtmlRenderer
from .target import DISPLAY_REGIONS, RenderTarget, TargetSet

__all__ = ["HtmlRenderer", "RenderTarget", "TargetSet", "DISPLAY_REGIONS"]
