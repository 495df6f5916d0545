"""
Widget system for the display and admin surfaces.

Collection widgets own one content path (events, photos, announcements,
menu items); polled widgets (clock, weather) refresh on a fixed interval.
Concrete widget classes are discovered by WidgetRegistry.auto_discover().
"""

from .base import CollectionWidget, PolledWidget

__all__ = ["CollectionWidget", "PolledWidget"]
