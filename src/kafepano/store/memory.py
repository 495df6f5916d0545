"""
In-process content store.

Backs tests and the `memory` backend. Behaves like the realtime database:
generated keys sort chronologically, writes of None delete, and listeners
receive the full value of their path after every change that touches it.
"""

import copy
import logging
import random
import string
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..utils.errors import StoreError
from .base import ContentStore, Subscription, join_path, split_path

logger = logging.getLogger(__name__)

PUSH_CHARS = "-0123456789" + string.ascii_uppercase + "_" + string.ascii_lowercase


def generate_push_id(now_ms: Optional[int] = None) -> str:
    """
    Generate a 20-character key that sorts by creation time.

    The first 8 characters encode the timestamp, the remaining 12 are random.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    time_chars = []
    for _ in range(8):
        time_chars.append(PUSH_CHARS[now_ms % 64])
        now_ms //= 64
    random_chars = [random.choice(PUSH_CHARS) for _ in range(12)]
    return "".join(reversed(time_chars)) + "".join(random_chars)


class InMemoryContentStore(ContentStore):
    """Thread-safe nested-dict tree implementing the ContentStore contract."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._root: Dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = threading.RLock()
        self._listeners: List[Tuple[str, Callable[[Any], None], Subscription]] = []

    def get(self, path: str) -> Any:
        with self._lock:
            node = self._root
            for segment in split_path(path):
                if not isinstance(node, dict) or segment not in node:
                    return None
                node = node[segment]
            return copy.deepcopy(node)

    def set(self, path: str, value: Any) -> None:
        with self._lock:
            self._write(path, value)
        self._notify(path)

    def update(self, path: str, patch: Dict[str, Any]) -> None:
        if not isinstance(patch, dict):
            raise StoreError(f"Update payload for '{path}' must be a mapping")
        with self._lock:
            for key, value in patch.items():
                self._write(join_path(path, key), value)
        self._notify(*[join_path(path, key) for key in patch])

    def remove(self, path: str) -> None:
        with self._lock:
            self._write(path, None)
        self._notify(path)

    def push(self, path: str, value: Any) -> str:
        key = generate_push_id()
        self.set(join_path(path, key), value)
        return key

    def subscribe(self, path: str, callback: Callable[[Any], None]) -> Subscription:
        normalized = join_path(path)
        subscription = Subscription(normalized)
        entry = (normalized, callback, subscription)

        def _remove():
            with self._lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        subscription._on_cancel = _remove
        with self._lock:
            self._listeners.append(entry)

        callback(self.get(normalized))
        return subscription

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _write(self, path: str, value: Any) -> None:
        segments = split_path(path)
        if not segments:
            if value is None:
                self._root = {}
            elif isinstance(value, dict):
                self._root = copy.deepcopy(value)
            else:
                raise StoreError("Root node must be a mapping")
            return

        if value is None:
            self._delete(segments)
            return

        node = self._root
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        node[segments[-1]] = copy.deepcopy(value)

    def _delete(self, segments: List[str]) -> None:
        # Empty parents disappear, as in the realtime database
        trail = []
        node = self._root
        for segment in segments[:-1]:
            if not isinstance(node, dict) or segment not in node:
                return
            trail.append((node, segment))
            node = node[segment]
        if isinstance(node, dict):
            node.pop(segments[-1], None)
        for parent, segment in reversed(trail):
            if parent[segment] == {}:
                del parent[segment]
            else:
                break

    def _notify(self, *changed_paths: str) -> None:
        changed = [join_path(p) for p in changed_paths]
        with self._lock:
            listeners = list(self._listeners)

        for listen_path, callback, subscription in listeners:
            if not subscription.active:
                continue
            if not any(_overlaps(listen_path, p) for p in changed):
                continue
            try:
                callback(self.get(listen_path))
            except Exception as e:
                logger.error(f"Listener on '{listen_path}' failed: {e}", exc_info=True)


def _overlaps(listen_path: str, changed_path: str) -> bool:
    """True if a write at changed_path affects the value at listen_path."""
    if not listen_path or not changed_path:
        return True
    if listen_path == changed_path:
        return True
    return changed_path.startswith(listen_path + "/") or listen_path.startswith(
        changed_path + "/"
    )
