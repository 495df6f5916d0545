"""
Tests for individual widget implementations.
"""

import json
import unittest
import urllib.error
from datetime import date, datetime
from unittest.mock import MagicMock, Mock, patch

from kafepano.display.target import RenderTarget
from kafepano.managers.scheduler import Scheduler
from kafepano.models import Announcement, Photo, Settings
from kafepano.store.memory import InMemoryContentStore
from kafepano.utils.errors import StoreError
from kafepano.widgets.announcement import AnnouncementRotation, AnnouncementWidget
from kafepano.widgets.calendar import CalendarWidget
from kafepano.widgets.clock import ClockWidget, format_long_date, format_time
from kafepano.widgets.gallery import GallerySlideshow, GalleryWidget
from kafepano.widgets.menu import MenuWidget
from kafepano.widgets.weather import WeatherWidget, describe_code

TODAY = date(2026, 10, 19)


def weather_response(payload):
    """Mock urlopen result usable as a context manager."""
    response = MagicMock()
    response.__enter__.return_value.read.return_value = json.dumps(payload).encode()
    return response


class TestCalendarWidget(unittest.TestCase):
    """Test CalendarWidget functionality."""

    def setUp(self):
        self.store = InMemoryContentStore()
        self.widget = CalendarWidget(self.store)
        self.widget.today = lambda: TODAY
        self.store.set("content/events", {
            "e1": {"title": "Canlı Müzik", "date": "2026-10-19", "time": "20:00"},
            "e2": {"title": "Kahvaltı", "date": "2026-10-19", "time": "09:30"},
            "e3": {"title": "Quiz", "date": "2026-10-20", "time": "19:00"},
            "e4": {"title": "Tadım", "date": "2026-10-18", "time": "21:00"},
        })

    def test_active_view_shows_today_by_time(self):
        """Test that the display sees only today's events, earliest first."""
        events = self.widget.list_active()
        self.assertEqual([e.id for e in events], ["e2", "e1"])

    def test_admin_view_sorted_by_date_and_time(self):
        """Test that the admin list includes every event in date order."""
        events = self.widget.list_all()
        self.assertEqual([e.id for e in events], ["e4", "e2", "e1", "e3"])

    def test_render_empty_state(self):
        """Test the message for a day without events."""
        html = self.widget.render([])
        self.assertIn("Bugün için etkinlik yok", html)

    def test_render_escapes_record_text(self):
        """Test that stored markup is escaped."""
        self.store.set("content/events/e5", {"title": "<b>Jazz</b>", "date": "2026-10-19", "time": "22:00"})
        html = self.widget.render(self.widget.list_active())
        self.assertIn("&lt;b&gt;Jazz&lt;/b&gt;", html)
        self.assertNotIn("<b>Jazz</b>", html)

    def test_today_formatted(self):
        """Test the long date in Turkish and English."""
        self.assertEqual(self.widget.today_formatted(), "19 Ekim Pazartesi")
        english = CalendarWidget(self.store, locale="en")
        english.today = lambda: TODAY
        self.assertEqual(english.today_formatted(), "Monday, October 19")
        self.assertEqual(self.widget.format_date("2026-10-20"), "20 Ekim Salı")

    def test_add_stamps_created_at(self):
        """Test that new events carry a creation timestamp."""
        self.widget.clock = lambda: 1_760_000_000.0
        result = self.widget.add({"title": "Film", "date": "2026-10-21", "time": "20:00"})
        self.assertTrue(result)
        self.assertEqual(self.store.get(f"content/events/{result.id}/createdAt"), 1_760_000_000_000)
        self.assertEqual(self.store.get(f"content/events/{result.id}/icon"), "📌")

    def test_add_invalid_record_fails(self):
        """Test that an event without a title is not written."""
        result = self.widget.add({"date": "2026-10-21", "time": "20:00"})
        self.assertFalse(result)
        self.assertEqual(len(self.store.get("content/events")), 4)

    def test_update_merges_fields(self):
        """Test that an update keeps unspecified fields."""
        self.assertTrue(self.widget.update("e1", {"time": "21:00"}))
        self.assertEqual(self.store.get("content/events/e1/title"), "Canlı Müzik")
        self.assertEqual(self.store.get("content/events/e1/time"), "21:00")

    def test_update_rejects_malformed_result(self):
        """Test that an update which would make the event unreadable is refused."""
        added = self.widget.add({"title": "Quiz Gecesi", "date": "2026-10-19", "time": "19:30"})
        result = self.widget.update(added.id, {"time": "9:00"})

        self.assertFalse(result)
        self.assertEqual(result.error, "Invalid calendar record")
        self.assertEqual(self.store.get(f"content/events/{added.id}/time"), "19:30")
        self.assertIn(added.id, [e.id for e in self.widget.list_all()])

    def test_update_missing_record_fails(self):
        """Test that a partial update cannot create a record from nothing."""
        self.assertFalse(self.widget.update("missing", {"time": "21:00"}))
        self.assertIsNone(self.store.get("content/events/missing"))

    def test_store_failure_gives_empty_list(self):
        """Test that read failures collapse to an empty list."""
        store = MagicMock()
        store.get.side_effect = StoreError("offline")
        widget = CalendarWidget(store)
        self.assertFalse(widget.query_active())
        self.assertEqual(widget.list_active(), [])

    def test_subscribe_failure(self):
        """Test that a failed subscription returns an inactive handle."""
        store = MagicMock()
        store.subscribe.side_effect = StoreError("offline")
        subscription = CalendarWidget(store).subscribe(MagicMock())
        self.assertFalse(subscription.active)


class TestGalleryWidget(unittest.TestCase):
    """Test GalleryWidget and the slideshow."""

    def setUp(self):
        self.store = InMemoryContentStore()
        self.widget = GalleryWidget(self.store)
        self.clock = Mock(return_value=0.0)
        self.scheduler = Scheduler(clock=self.clock)
        self.photos = [
            Photo(id=f"p{i}", url=f"https://res.cloudinary.com/demo/{i}.jpg", order=i)
            for i in range(3)
        ]

    def test_add_appends_order(self):
        """Test that new photos go to the end of the sequence."""
        first = self.widget.add({"url": "https://example.com/a.jpg"})
        second = self.widget.add({"url": "https://example.com/b.jpg", "caption": "Latte"})
        self.assertEqual(self.store.get(f"content/photos/{first.id}/order"), 0)
        self.assertEqual(self.store.get(f"content/photos/{second.id}/order"), 1)

    def test_reorder(self):
        """Test that reorder rewrites every order in one write."""
        a = self.widget.add({"url": "https://example.com/a.jpg"}).id
        b = self.widget.add({"url": "https://example.com/b.jpg"}).id

        self.assertTrue(self.widget.reorder([b, a]))

        self.assertEqual([p.id for p in self.widget.list_active()], [b, a])
        self.assertTrue(self.widget.reorder([]))

    def test_update_rejects_blank_url(self):
        """Test that clearing a photo's URL is refused."""
        added = self.widget.add({"url": "https://example.com/a.jpg"})
        self.assertFalse(self.widget.update(added.id, {"url": ""}))
        self.assertEqual([p.url for p in self.widget.list_all()], ["https://example.com/a.jpg"])

    def test_render_empty_state(self):
        """Test the message for an empty gallery."""
        self.assertIn("Henüz fotoğraf eklenmemiş", self.widget.render([]))

    def test_render_marks_current_dot(self):
        """Test that the current photo and its dot are rendered."""
        html = self.widget.render(self.photos, 1)
        self.assertIn(self.photos[1].url, html)
        self.assertEqual(html.count("gallery-dot active"), 1)

    def test_slideshow_advances_on_interval(self):
        """Test that slides advance every interval."""
        target = RenderTarget("gallery")
        slideshow = GallerySlideshow(self.widget, self.scheduler)
        slideshow.set_photos(self.photos)
        slideshow.start(target, interval=5)

        self.assertIn(self.photos[0].url, target.html)
        self.clock.return_value = 5.0
        self.scheduler.run_pending()
        self.assertEqual(slideshow.current_index, 1)
        self.assertIn(self.photos[1].url, target.html)

    def test_prev_slide_wraps(self):
        """Test that going back from the first slide shows the last."""
        slideshow = GallerySlideshow(self.widget, self.scheduler)
        slideshow.set_photos(self.photos)
        slideshow.start(RenderTarget("gallery"))
        slideshow.prev_slide()
        self.assertEqual(slideshow.current_index, 2)

    def test_next_slide_without_photos_is_noop(self):
        """Test that advancing an empty slideshow renders nothing."""
        target = RenderTarget("gallery")
        slideshow = GallerySlideshow(self.widget, self.scheduler)
        slideshow.target = target
        slideshow.next_slide()
        self.assertEqual(target.render_count, 0)
        self.assertEqual(slideshow.current_index, 0)

    def test_restart_keeps_single_timer(self):
        """Test that restarting never leaves two slideshow timers."""
        slideshow = GallerySlideshow(self.widget, self.scheduler)
        slideshow.set_photos(self.photos)
        slideshow.start(RenderTarget("gallery"))
        slideshow.start(RenderTarget("gallery"))
        self.assertEqual(len(self.scheduler.active_timers()), 1)

        self.clock.return_value = slideshow.interval
        self.assertEqual(self.scheduler.run_pending(), 1)
        self.assertEqual(slideshow.current_index, 1)
        slideshow.stop()
        self.assertFalse(slideshow.running)

    def test_shrinking_photo_list_wraps_index(self):
        """Test that the index stays in range when photos are removed."""
        target = RenderTarget("gallery")
        slideshow = GallerySlideshow(self.widget, self.scheduler)
        slideshow.set_photos(self.photos)
        slideshow.start(target)
        slideshow.current_index = 2
        slideshow.set_photos(self.photos[:1])
        slideshow.render()
        self.assertEqual(slideshow.current_index, 0)
        self.assertIn(self.photos[0].url, target.html)


class TestAnnouncementWidget(unittest.TestCase):
    """Test AnnouncementWidget ordering and rotation."""

    def setUp(self):
        self.store = InMemoryContentStore()
        self.widget = AnnouncementWidget(self.store)
        self.clock = Mock(return_value=0.0)
        self.scheduler = Scheduler(clock=self.clock)

    def test_active_view_order(self):
        """Test high priority first, newest first, inactive hidden."""
        self.store.set("content/announcements", {
            "a": {"text": "Normal", "priority": "normal", "createdAt": 3},
            "b": {"text": "Old high", "priority": "high", "createdAt": 1},
            "c": {"text": "New high", "priority": "high", "createdAt": 2},
            "d": {"text": "Hidden", "priority": "high", "active": False, "createdAt": 4},
        })
        self.assertEqual([a.id for a in self.widget.list_active()], ["c", "b", "a"])
        self.assertEqual(len(self.widget.list_all()), 4)

    def test_add_defaults(self):
        """Test that new announcements are active with normal priority."""
        result = self.widget.add({"text": "Yeni menü"})
        record = self.store.get(f"content/announcements/{result.id}")
        self.assertTrue(record["active"])
        self.assertEqual(record["priority"], "normal")

    def test_toggle_active(self):
        """Test deactivating an announcement."""
        result = self.widget.add({"text": "Yeni menü"})
        self.widget.toggle_active(result.id, False)
        self.assertEqual(self.widget.list_active(), [])

    def test_render(self):
        """Test single text, marquee and priority icon."""
        single = [Announcement(id="a", text="Bugün kapalıyız", priority="high")]
        html = self.widget.render(single)
        self.assertIn("Bugün kapalıyız", html)
        self.assertIn("🔴", html)
        self.assertNotIn("announcement-marquee", html)

        several = single + [Announcement(id="b", text="Yeni menü")]
        html = self.widget.render(several, 1)
        self.assertIn("announcement-marquee", html)
        self.assertIn("•", html)
        self.assertIn("📢", html)

        self.assertEqual(self.widget.render([]), "")

    def test_single_announcement_has_no_timer(self):
        """Test that rotation only runs with two or more announcements."""
        target = RenderTarget("announcement")
        rotation = AnnouncementRotation(self.widget, self.scheduler)
        rotation.set_announcements([Announcement(id="a", text="Tek duyuru")])
        rotation.start(target)
        self.assertFalse(rotation.running)
        self.assertTrue(target.visible)
        self.assertIn("Tek duyuru", target.html)

    def test_rotation_advances(self):
        """Test that the rotation moves every interval."""
        rotation = AnnouncementRotation(self.widget, self.scheduler)
        rotation.set_announcements([Announcement(id="a", text="Bir"), Announcement(id="b", text="İki")])
        rotation.start(RenderTarget("announcement"))
        rotation.start(RenderTarget("announcement"))
        self.assertEqual(len(self.scheduler.active_timers()), 1)

        self.clock.return_value = 10.0
        self.assertEqual(self.scheduler.run_pending(), 1)
        self.assertEqual(rotation.current_index, 1)

    def test_no_announcements_hides_banner(self):
        """Test that the banner is hidden when nothing is active."""
        target = RenderTarget("announcement")
        rotation = AnnouncementRotation(self.widget, self.scheduler)
        rotation.start(target)
        self.assertFalse(target.visible)


class TestMenuWidget(unittest.TestCase):
    """Test MenuWidget functionality."""

    def setUp(self):
        self.store = InMemoryContentStore()
        self.widget = MenuWidget(self.store)

    def test_add_and_toggle_availability(self):
        """Test new items are available and can be marked sold out."""
        result = self.widget.add({"name": "Türk Kahvesi", "price": "60 TL"})
        self.assertTrue(self.store.get(f"content/menuItems/{result.id}/available"))
        self.assertEqual(self.store.get(f"content/menuItems/{result.id}/order"), 0)

        self.widget.toggle_availability(result.id, False)
        items = self.widget.list_active()
        self.assertEqual(len(items), 1)
        self.assertFalse(items[0].available)

    def test_render_unavailable_and_default_icon(self):
        """Test dimmed sold-out items and the fallback icon."""
        self.widget.add({"name": "Cheesecake", "price": "120 TL"})
        item = self.widget.list_active()[0]
        self.widget.toggle_availability(item.id, False)

        html = self.widget.render(self.widget.list_active())
        self.assertIn("unavailable", html)
        self.assertIn("🍽️", html)
        self.assertIn("120 TL", html)

    def test_render_empty_state(self):
        """Test the message for an empty menu."""
        self.assertIn("Menü henüz eklenmemiş", self.widget.render([]))


class TestClockWidget(unittest.TestCase):
    """Test ClockWidget functionality."""

    def setUp(self):
        self.clock = Mock(return_value=0.0)
        self.scheduler = Scheduler(clock=self.clock)
        self.moment = datetime(2026, 10, 19, 9, 5)

    def test_format_time_24h(self):
        """Test zero-padded 24-hour time."""
        self.assertEqual(format_time(self.moment), "09:05")
        self.assertEqual(format_time(datetime(2026, 10, 19, 0, 0)), "00:00")

    def test_format_time_12h(self):
        """Test 12-hour time with midnight and noon as 12."""
        self.assertEqual(format_time(self.moment, False), "9:05 AM")
        self.assertEqual(format_time(datetime(2026, 10, 19, 0, 7), False), "12:07 AM")
        self.assertEqual(format_time(datetime(2026, 10, 19, 12, 0), False), "12:00 PM")
        self.assertEqual(format_time(datetime(2026, 10, 19, 13, 30), False), "1:30 PM")

    def test_format_long_date_unknown_locale(self):
        """Test that unknown locales fall back to Turkish names."""
        self.assertEqual(format_long_date(TODAY, "xx"), "19 Ekim Pazartesi")

    def test_start_renders_immediately(self):
        """Test that starting renders before the first tick."""
        widget = ClockWidget({}, self.scheduler, now=lambda: self.moment)
        target = RenderTarget("clock")
        widget.start(target)
        self.assertIn("09:05", target.html)
        self.assertIn("19 Ekim Pazartesi", target.html)

    def test_restart_replaces_timer_and_format(self):
        """Test that a second start leaves one timer using the new format."""
        widget = ClockWidget({}, self.scheduler, now=lambda: self.moment)
        target = RenderTarget("clock")
        widget.start(target, format24h=True)
        widget.start(target, format24h=False, show_date=False)

        self.assertEqual(len(self.scheduler.active_timers()), 1)
        self.clock.return_value = 1.0
        self.assertEqual(self.scheduler.run_pending(), 1)
        self.assertIn("9:05 AM", target.html)
        self.assertNotIn("clock-date", target.html)

    def test_ticks_every_second(self):
        """Test the one-second refresh."""
        widget = ClockWidget({}, self.scheduler, now=lambda: self.moment)
        target = RenderTarget("clock")
        widget.start(target)
        for second in range(1, 4):
            self.clock.return_value = float(second)
            self.scheduler.run_pending()
        self.assertEqual(target.render_count, 4)

        widget.stop()
        self.assertFalse(widget.running)


class TestWeatherWidget(unittest.TestCase):
    """Test WeatherWidget functionality."""

    def setUp(self):
        self.scheduler = Scheduler(clock=Mock(return_value=0.0))

    def test_city_coordinates(self):
        """Test that the request targets the selected city."""
        widget = WeatherWidget({}, self.scheduler)
        self.assertTrue(widget.set_city("Ankara"))
        url = widget.build_url()
        self.assertIn("latitude=39.9334", url)
        self.assertIn("longitude=32.8597", url)

    def test_unknown_city_is_ignored(self):
        """Test that unsupported cities keep the previous city."""
        widget = WeatherWidget({}, self.scheduler)
        self.assertFalse(widget.set_city("Paris"))
        self.assertEqual(widget.city, "Istanbul")

    @patch("kafepano.widgets.weather.urllib.request.urlopen")
    def test_fetch_current(self, mock_urlopen):
        """Test parsing the forecast response."""
        mock_urlopen.return_value = weather_response(
            {"current": {"temperature_2m": 18.6, "weather_code": 2}}
        )
        widget = WeatherWidget({}, self.scheduler)
        data = widget.fetch_current()
        self.assertTrue(data["success"])
        self.assertEqual(data["temp"], 19)
        self.assertEqual(data["icon"], "⛅")
        self.assertEqual(data["description"], "Parçalı Bulutlu")
        self.assertEqual(data["city"], "Istanbul")

    @patch("kafepano.widgets.weather.urllib.request.urlopen")
    def test_network_failure_gives_placeholder(self, mock_urlopen):
        """Test the placeholder when the API is unreachable."""
        mock_urlopen.side_effect = urllib.error.URLError("offline")
        widget = WeatherWidget({}, self.scheduler)
        target = RenderTarget("weather")
        widget.start(target)

        self.assertIn("--°C", target.html)
        self.assertTrue(widget.running)
        self.assertEqual(widget.fetch_current()["description"], "Yüklenemedi")

    @patch("kafepano.widgets.weather.urllib.request.urlopen")
    def test_missing_current_gives_placeholder(self, mock_urlopen):
        """Test the placeholder for an unexpected response."""
        mock_urlopen.return_value = weather_response({"error": True})
        data = WeatherWidget({}, self.scheduler).fetch_current()
        self.assertFalse(data["success"])
        self.assertEqual(data["temp"], "--")

    def test_unknown_condition_code(self):
        """Test the generic icon for unmapped codes."""
        self.assertEqual(describe_code(42), {"icon": "🌡️", "desc": "Bilinmiyor"})
        self.assertEqual(describe_code(None)["desc"], "Bilinmiyor")

    @patch("kafepano.widgets.weather.urllib.request.urlopen")
    def test_start_uses_settings_city(self, mock_urlopen):
        """Test that the city comes from the current settings."""
        mock_urlopen.return_value = weather_response(
            {"current": {"temperature_2m": 25.2, "weather_code": 0}}
        )
        settings = Settings.from_dict({"widgets": {"weather": {"city": "Izmir"}}})
        widget = WeatherWidget({}, self.scheduler, settings_provider=lambda: settings)
        target = RenderTarget("weather")
        widget.start(target)

        self.assertEqual(widget.city, "Izmir")
        self.assertIn("25°C", target.html)
        self.assertEqual(self.scheduler.active_timers()[0].interval, 1800.0)

    @patch("kafepano.widgets.weather.urllib.request.urlopen")
    def test_render_widget_full_layout(self, mock_urlopen):
        """Test the full layout with city and description."""
        mock_urlopen.return_value = weather_response(
            {"current": {"temperature_2m": 12.0, "weather_code": 61}}
        )
        html = WeatherWidget({"city": "Bursa"}, self.scheduler).render_widget()
        self.assertIn("Bursa", html)
        self.assertIn("Hafif Yağmur", html)


if __name__ == "__main__":
    unittest.main()
