"""
Gallery widget and the per-session slideshow that drives it.
"""

import logging
from typing import List, Optional, Sequence

from ..display.target import RenderTarget
from ..managers.scheduler import RepeatingTask, Scheduler
from ..models import DEFAULT_GALLERY_INTERVAL, Photo
from ..store.base import PHOTOS_PATH, join_path
from ..utils.errors import Result, StoreError
from .base import CollectionWidget

logger = logging.getLogger(__name__)


class GalleryWidget(CollectionWidget):
    """
    Photos stored at content/photos, shown in `order` sequence.

    New photos are appended (order = current count); reorder() rewrites the
    order of every listed photo in one multi-path write.
    """

    widget_type = "gallery"
    path = PHOTOS_PATH
    record_type = Photo
    template = "gallery.html"
    empty_text = "Henüz fotoğraf eklenmemiş"
    assigns_order = True

    def active_view(self, records: List[Photo]) -> List[Photo]:
        return sorted(records, key=lambda p: p.order)

    def admin_view(self, records: List[Photo]) -> List[Photo]:
        return sorted(records, key=lambda p: p.order)

    def reorder(self, photo_ids: Sequence[str]) -> Result:
        """Set each listed photo's order to its index in photo_ids."""
        updates = {join_path(self.path, photo_id, "order"): index
                   for index, photo_id in enumerate(photo_ids)}
        if not updates:
            return Result.ok()
        try:
            self.store.update("", updates)
            logger.info(f"Reordered {len(updates)} photos")
            return Result.ok()
        except StoreError as e:
            logger.error(f"Error reordering photos: {e}")
            return Result.fail(e)

    def render(self, records: List[Photo], index: int = 0) -> str:
        if not records:
            return self.renderer.render(self.template, photo=None, empty_text=self.empty_text)

        index = index % len(records)
        return self.renderer.render(
            self.template,
            photo=records[index],
            index=index,
            count=len(records),
            empty_text=self.empty_text,
        )


class GallerySlideshow:
    """
    Slideshow state for one display session.

    Attributes:
        photos: Current photo sequence (replaced by subscription updates)
        current_index: 0-based position; wrapped modulo the photo count on render
        interval: Seconds between slides
    """

    def __init__(self, widget: GalleryWidget, scheduler: Scheduler):
        self.widget = widget
        self.photos: List[Photo] = []
        self.current_index = 0
        self.interval: float = float(DEFAULT_GALLERY_INTERVAL)
        self.target: Optional[RenderTarget] = None
        self._task = RepeatingTask(scheduler)

    @property
    def running(self) -> bool:
        return self._task.running

    def set_photos(self, photos: List[Photo]) -> None:
        self.photos = list(photos)

    def start(self, target: RenderTarget, interval: Optional[float] = None) -> None:
        """Render the current slide and advance every `interval` seconds."""
        self.target = target
        if interval is not None:
            self.interval = float(interval)
        self.render()
        self._task.schedule(self.interval, self.next_slide)

    def stop(self) -> None:
        self._task.cancel()

    def next_slide(self) -> None:
        if not self.photos:
            return
        self.current_index = (self.current_index + 1) % len(self.photos)
        self.render()

    def prev_slide(self) -> None:
        if not self.photos:
            return
        self.current_index = (self.current_index - 1) % len(self.photos)
        self.render()

    def render(self) -> None:
        if self.target is None:
            return
        if self.photos:
            self.current_index %= len(self.photos)
        self.target.set_html(self.widget.render(self.photos, self.current_index))
