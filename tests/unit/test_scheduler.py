"""
Tests for the cooperative scheduler and repeating tasks.
"""

import unittest
from unittest.mock import MagicMock, Mock

from kafepano.managers.scheduler import RepeatingTask, Scheduler


class TestScheduler(unittest.TestCase):
    """Test timer bookkeeping on a controlled clock."""

    def setUp(self):
        self.clock = Mock(return_value=0.0)
        self.scheduler = Scheduler(clock=self.clock)

    def test_timer_fires_after_interval(self):
        """Test that a timer fires one interval after scheduling."""
        callback = MagicMock()
        self.scheduler.call_every(5, callback)

        self.assertEqual(self.scheduler.run_pending(), 0)
        self.clock.return_value = 5.0
        self.assertEqual(self.scheduler.run_pending(), 1)
        self.clock.return_value = 7.0
        self.assertEqual(self.scheduler.run_pending(), 0)
        self.clock.return_value = 10.0
        self.scheduler.run_pending()
        self.assertEqual(callback.call_count, 2)

    def test_late_loop_does_not_burst(self):
        """Test that a timer fires once when the loop fell behind."""
        callback = MagicMock()
        handle = self.scheduler.call_every(1, callback)
        self.clock.return_value = 30.0
        self.scheduler.run_pending()
        self.assertEqual(callback.call_count, 1)
        self.assertEqual(handle.next_run, 31.0)

    def test_cancelled_timer_never_fires(self):
        """Test that cancel() removes the timer."""
        callback = MagicMock()
        handle = self.scheduler.call_every(1, callback)
        handle.cancel()
        handle.cancel()
        self.clock.return_value = 5.0
        self.scheduler.run_pending()
        callback.assert_not_called()
        self.assertEqual(self.scheduler.active_timers(), [])

    def test_invalid_interval(self):
        """Test that non-positive intervals are rejected."""
        with self.assertRaises(ValueError):
            self.scheduler.call_every(0, MagicMock())

    def test_failing_callback_does_not_stop_other_timers(self):
        """Test that one timer raising does not affect the next."""
        healthy = MagicMock()
        self.scheduler.call_every(1, MagicMock(side_effect=RuntimeError("boom")))
        self.scheduler.call_every(1, healthy)
        self.clock.return_value = 1.0
        self.assertEqual(self.scheduler.run_pending(), 2)
        healthy.assert_called_once()

    def test_threadsafe_defers_to_loop(self):
        """Test that wrapped callbacks run on the next loop pass."""
        callback = MagicMock()
        wrapped = self.scheduler.threadsafe(callback)
        wrapped("payload")
        callback.assert_not_called()
        self.scheduler.run_pending()
        callback.assert_called_once_with("payload")

    def test_run_until_stopped(self):
        """Test that run() returns once stop() is called from the loop."""
        self.scheduler.poll_interval = 0.001
        self.scheduler.call_soon_threadsafe(self.scheduler.stop)
        self.scheduler.run()
        self.assertFalse(self.scheduler.running)

    def test_cancel_all(self):
        """Test cancelling every timer at once."""
        self.scheduler.call_every(1, MagicMock())
        self.scheduler.call_every(2, MagicMock())
        self.scheduler.cancel_all()
        self.assertEqual(self.scheduler.active_timers(), [])


class TestRepeatingTask(unittest.TestCase):
    """Test the single-timer owner."""

    def setUp(self):
        self.clock = Mock(return_value=0.0)
        self.scheduler = Scheduler(clock=self.clock)

    def test_reschedule_replaces_timer(self):
        """Test that scheduling twice leaves one live timer."""
        task = RepeatingTask(self.scheduler)
        first = MagicMock()
        second = MagicMock()
        task.schedule(1, first)
        task.schedule(1, second)

        self.assertEqual(len(self.scheduler.active_timers()), 1)
        self.clock.return_value = 1.0
        self.scheduler.run_pending()
        first.assert_not_called()
        second.assert_called_once()

    def test_cancel(self):
        """Test that cancel() stops the task and is idempotent."""
        task = RepeatingTask(self.scheduler)
        task.schedule(1, MagicMock())
        self.assertTrue(task.running)
        task.cancel()
        task.cancel()
        self.assertFalse(task.running)
        self.assertIsNone(task.handle)


if __name__ == "__main__":
    unittest.main()
