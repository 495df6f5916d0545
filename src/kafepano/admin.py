"""
Admin surface: settings editing and content management for staff.

Every operation reports its outcome as a Notification (success, error or
info) in the admin's language, and returns the underlying Result so
callers can branch on it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .assets import LOGO, PHOTO, AssetUploader, validate_upload
from .auth import AuthService, User
from .display.renderer import HtmlRenderer
from .managers.settings import SettingsManager
from .managers.widget import WidgetRegistry, build_collection_widgets
from .models import (
    DEFAULT_CAFE_NAME,
    DEFAULT_GALLERY_INTERVAL,
    WIDGET_NAMES,
    Settings,
    normalize_hex_color,
)
from .utils.errors import ConfigurationError, Result, UploadError
from .widgets.announcement import HIGH_PRIORITY_ICON, NORMAL_ICON
from .widgets.menu import DEFAULT_MENU_ICON

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"
INFO = "info"

GENERIC_ERROR = "Hata oluştu"
DELETE_FAILED = "Silinemedi"
UPDATE_FAILED = "Güncelleme başarısız"
REQUIRED_FIELDS_MISSING = "Lütfen gerekli alanları doldurun"

EMPTY_LIST_TEXT = {
    "calendar": "Henüz etkinlik eklenmemiş",
    "gallery": "Henüz fotoğraf eklenmemiş",
    "announcement": "Henüz duyuru eklenmemiş",
    "menu": "Henüz menü eklenmemiş",
}


@dataclass
class Notification:
    message: str
    level: str = INFO


def parse_interval(value: Any) -> int:
    """Slide interval from form input; anything unparseable or below 1 becomes 5."""
    try:
        interval = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_GALLERY_INTERVAL
    return interval if interval >= 1 else DEFAULT_GALLERY_INTERVAL


def parse_clock_format(value: Any) -> bool:
    """True for 24-hour input ("24h", True), False for "12h"/False."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() != "12h"


def parse_checkbox(value: Any, default: bool) -> bool:
    """Checkbox state from form input; only true/"true"/"on"/"1"/"yes" enable."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "on", "1", "yes")


def _event_row(event) -> Dict[str, Any]:
    return {
        "id": event.id,
        "icon": event.icon,
        "title": event.title,
        "subtitle": f"{event.date} - {event.time}",
    }


def _photo_row(photo) -> Dict[str, Any]:
    return {
        "id": photo.id,
        "icon": "🖼️",
        "title": photo.caption or photo.url,
        "subtitle": photo.url if photo.caption else None,
        "badge": f"#{photo.order + 1}",
    }


def _announcement_row(announcement) -> Dict[str, Any]:
    return {
        "id": announcement.id,
        "icon": HIGH_PRIORITY_ICON if announcement.is_high else NORMAL_ICON,
        "title": announcement.text,
        "subtitle": "Aktif" if announcement.active else "Pasif",
        "muted": not announcement.active,
    }


def _menu_row(item) -> Dict[str, Any]:
    subtitle = item.price if item.available else f"{item.price} (Tükendi)"
    return {
        "id": item.id,
        "icon": item.icon or DEFAULT_MENU_ICON,
        "title": item.name,
        "subtitle": subtitle,
        "muted": not item.available,
    }


ROW_BUILDERS: Dict[str, Callable[[Any], Dict[str, Any]]] = {
    "calendar": _event_row,
    "gallery": _photo_row,
    "announcement": _announcement_row,
    "menu": _menu_row,
}


class AdminController:
    """
    Controller for the authenticated admin surface.

    start() gates on the signed-in user, loads the settings (creating the
    default document if none exists) and every widget's full list.
    Mutations write through to the store immediately and refresh the
    affected list.

    Attributes:
        settings: Settings as currently shown in the admin form
        lists: Admin view of each collection widget's records
        toggles: Widget enable switches as shown (reverted on failed writes)
        notifications: Every notification raised, oldest first
    """

    def __init__(
        self,
        store,
        auth: AuthService,
        uploader: Optional[AssetUploader] = None,
        renderer: Optional[HtmlRenderer] = None,
        locale: str = "tr",
        on_login_required: Optional[Callable[[], None]] = None,
        on_notify: Optional[Callable[[Notification], None]] = None,
    ):
        self.store = store
        self.auth = auth
        self.uploader = uploader
        self.renderer = renderer or HtmlRenderer()
        self.on_login_required = on_login_required or (lambda: None)
        self.on_notify = on_notify

        self.settings_manager = SettingsManager(store)
        self.widget_registry = WidgetRegistry()
        self.widget_registry.auto_discover()
        self.widgets = build_collection_widgets(self.widget_registry, store, self.renderer, locale)

        self.user: Optional[User] = None
        self.lists: Dict[str, List[Any]] = {name: [] for name in self.widgets}
        self.toggles: Dict[str, bool] = {}
        self.notifications: List[Notification] = []

    @property
    def settings(self) -> Settings:
        return self.settings_manager.current

    def start(self) -> bool:
        """
        Open the admin surface.

        Returns:
            False (after the login callback ran) when nobody is signed in
        """
        self.user = self.auth.require_auth(self.on_login_required)
        if self.user is None:
            return False

        self.settings_manager.ensure_exists()
        settings = self.settings_manager.load()
        self.toggles = {name: settings.is_enabled(name) for name in WIDGET_NAMES}
        for name in self.widgets:
            self.refresh(name)
        logger.info(f"Admin opened by {self.user.email}")
        return True

    def notify(self, message: str, level: str = INFO) -> None:
        notification = Notification(message, level)
        self.notifications.append(notification)
        log = logger.error if level == ERROR else logger.info
        log(f"[{level}] {message}")
        if self.on_notify:
            self.on_notify(notification)

    def refresh(self, widget_name: str) -> List[Any]:
        """Reload one widget's admin list from the store."""
        records = self.widgets[widget_name].list_all()
        self.lists[widget_name] = records
        return records

    def render_list(self, widget_name: str) -> str:
        """HTML for one admin list, with an empty-state message."""
        build_row = ROW_BUILDERS[widget_name]
        return self.renderer.render(
            "admin_list.html",
            widget=widget_name,
            rows=[build_row(record) for record in self.lists[widget_name]],
            empty_text=EMPTY_LIST_TEXT[widget_name],
        )

    # Settings

    def save_settings(self, form: Dict[str, Any]) -> Result:
        """
        Save the whole settings form.

        Missing form values fall back to their defaults; the logo URL is
        always preserved from the current settings.
        """
        current = self.settings
        widgets = {
            name: dict(current.widget(name), enabled=parse_checkbox(form.get(f"{name}_enabled"), current.is_enabled(name)))
            for name in WIDGET_NAMES
        }
        widgets["gallery"]["interval"] = parse_interval(form.get("gallery_interval", current.gallery_interval))
        widgets["clock"]["format24h"] = parse_clock_format(form.get("clock_format", current.clock_format24h))
        widgets["weather"]["city"] = form.get("weather_city") or current.weather_city

        settings = Settings.from_dict({
            "cafeName": (form.get("cafe_name") or "").strip() or DEFAULT_CAFE_NAME,
            "logoUrl": current.logo_url,
            "theme": form.get("theme") or current.theme,
            "primaryColor": normalize_hex_color(form.get("primary_color")) or current.primary_color,
            "widgets": widgets,
        })

        result = self.settings_manager.save(settings)
        if result:
            self.toggles = {name: settings.is_enabled(name) for name in WIDGET_NAMES}
            self.notify("Ayarlar kaydedildi", SUCCESS)
        else:
            self.notify("Ayarlar kaydedilemedi", ERROR)
        return result

    def toggle_widget(self, widget_name: str, enabled: bool) -> Result:
        """Switch a widget on or off; the switch flips back if the write fails."""
        self.toggles[widget_name] = enabled
        result = self.settings_manager.set_widget_enabled(widget_name, enabled)
        if result:
            state = "açıldı" if enabled else "kapatıldı"
            self.notify(f"{widget_name.capitalize()} {state}", SUCCESS)
        else:
            self.toggles[widget_name] = not enabled
            self.notify(UPDATE_FAILED, ERROR)
        return result

    def _set_field(self, field_path: str, value: Any, success: str, failure: str) -> Result:
        result = self.settings_manager.set_field(field_path, value)
        if result:
            self.notify(success, SUCCESS)
        else:
            self.notify(failure, ERROR)
        return result

    def set_theme(self, theme: str) -> Result:
        return self._set_field("theme", theme, "Tema güncellendi", "Tema güncellenemedi")

    def set_weather_city(self, city: str) -> Result:
        return self._set_field("widgets/weather/city", city, "Şehir güncellendi", "Şehir güncellenemedi")

    def set_gallery_interval(self, value: Any) -> Result:
        return self._set_field(
            "widgets/gallery/interval", parse_interval(value), "Slayt süresi güncellendi", UPDATE_FAILED
        )

    def set_clock_format(self, value: Any) -> Result:
        return self._set_field(
            "widgets/clock/format24h", parse_clock_format(value), "Saat formatı güncellendi", UPDATE_FAILED
        )

    def set_cafe_name(self, name: str) -> Result:
        """Write the cafe name; blank input stores the default name."""
        value = (name or "").strip() or DEFAULT_CAFE_NAME
        return self._set_field("cafeName", value, "Kafe adı güncellendi", UPDATE_FAILED)

    def set_primary_color(self, value: str) -> Result:
        """Accepts 'RRGGBB' or '#RRGGBB'; invalid input is rejected without a write."""
        color = normalize_hex_color(value)
        if color is None:
            self.notify("Renk güncellenemedi", ERROR)
            return Result.fail(f"Invalid color: {value!r}")
        return self._set_field("primaryColor", color, "Renk güncellendi", "Renk güncellenemedi")

    # Logo

    def _upload(self, data: bytes, filename: str, kind) -> Result:
        try:
            validate_upload(data, kind)
        except UploadError as e:
            self.notify(str(e), ERROR)
            return Result.fail(e)

        label = "Logo" if kind is LOGO else "Fotoğraf"
        self.notify(f"{label} yükleniyor...", INFO)
        if self.uploader is None:
            self.notify(f"{label} yüklenemedi: uploads are not configured", ERROR)
            return Result.fail("Uploads are not configured")
        try:
            url = self.uploader.upload(data, filename, kind)
        except (UploadError, ConfigurationError) as e:
            self.notify(f"{label} yüklenemedi: {e}", ERROR)
            return Result.fail(e)
        return Result.ok(value=url)

    def upload_logo(self, data: bytes, filename: str) -> Result:
        """Upload a logo image and store its URL in the settings."""
        result = self._upload(data, filename, LOGO)
        if not result:
            return result

        saved = self.settings_manager.set_field("logoUrl", result.value)
        if not saved:
            self.notify(f"Logo yüklenemedi: {saved.error}", ERROR)
            return saved
        self.notify("Logo başarıyla yüklendi", SUCCESS)
        return result

    def remove_logo(self) -> Result:
        return self._set_field("logoUrl", "", "Logo kaldırıldı", "Logo kaldırılamadı")

    # Photos

    def upload_photo(self, data: bytes, filename: str) -> Result:
        """Upload a gallery image; the URL is returned for add_photo()."""
        result = self._upload(data, filename, PHOTO)
        if result:
            self.notify("Fotoğraf başarıyla yüklendi", SUCCESS)
        return result

    def add_photo(self, url: str, caption: Optional[str] = None) -> Result:
        if not url:
            self.notify("Lütfen bir fotoğraf yükleyin veya URL girin", ERROR)
            return Result.fail("Missing photo URL")
        data = {"url": url}
        if caption:
            data["caption"] = caption
        result = self.widgets["gallery"].add(data)
        self._after_write("gallery", result, "Fotoğraf eklendi", GENERIC_ERROR)
        return result

    def delete_photo(self, photo_id: str) -> Result:
        return self._delete("gallery", photo_id, "Fotoğraf silindi")

    def reorder_photos(self, photo_ids: List[str]) -> Result:
        result = self.widgets["gallery"].reorder(photo_ids)
        self._after_write("gallery", result, "Sıralama güncellendi", UPDATE_FAILED)
        return result

    # Events, announcements, menu

    def save_event(self, data: Dict[str, Any], event_id: Optional[str] = None) -> Result:
        return self._save(
            "calendar", data, event_id,
            required=("title", "date", "time"),
            missing_message=REQUIRED_FIELDS_MISSING,
            saved_message="Etkinlik kaydedildi",
        )

    def delete_event(self, event_id: str) -> Result:
        return self._delete("calendar", event_id, "Etkinlik silindi")

    def save_announcement(self, data: Dict[str, Any], announcement_id: Optional[str] = None) -> Result:
        return self._save(
            "announcement", data, announcement_id,
            required=("text",),
            missing_message="Lütfen duyuru metnini girin",
            saved_message="Duyuru kaydedildi",
        )

    def delete_announcement(self, announcement_id: str) -> Result:
        return self._delete("announcement", announcement_id, "Duyuru silindi")

    def toggle_announcement(self, announcement_id: str, active: bool) -> Result:
        result = self.widgets["announcement"].toggle_active(announcement_id, active)
        self._after_write("announcement", result, "Duyuru kaydedildi", UPDATE_FAILED)
        return result

    def save_menu_item(self, data: Dict[str, Any], item_id: Optional[str] = None) -> Result:
        return self._save(
            "menu", data, item_id,
            required=("name", "price"),
            missing_message=REQUIRED_FIELDS_MISSING,
            saved_message="Menü kaydedildi",
        )

    def delete_menu_item(self, item_id: str) -> Result:
        return self._delete("menu", item_id, "Menü silindi")

    def toggle_menu_item(self, item_id: str, available: bool) -> Result:
        result = self.widgets["menu"].toggle_availability(item_id, available)
        self._after_write("menu", result, "Menü kaydedildi", UPDATE_FAILED)
        return result

    # Shared write paths

    def _save(self, widget_name: str, data: Dict[str, Any], record_id: Optional[str],
              required: tuple, missing_message: str, saved_message: str) -> Result:
        if any(not data.get(field) for field in required):
            self.notify(missing_message, ERROR)
            return Result.fail(missing_message)

        widget = self.widgets[widget_name]
        result = widget.update(record_id, data) if record_id else widget.add(data)
        self._after_write(widget_name, result, saved_message, GENERIC_ERROR)
        return result

    def _delete(self, widget_name: str, record_id: str, deleted_message: str) -> Result:
        result = self.widgets[widget_name].remove(record_id)
        self._after_write(widget_name, result, deleted_message, DELETE_FAILED)
        return result

    def _after_write(self, widget_name: str, result: Result, success: str, failure: str) -> None:
        if result:
            self.refresh(widget_name)
            self.notify(success, SUCCESS)
        else:
            self.notify(failure, ERROR)

    def sign_out(self) -> None:
        self.auth.sign_out()
        self.user = None
        self.on_login_required()
