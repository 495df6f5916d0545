"""
Content store backed by a Firebase Realtime Database.
"""

import logging
import os
from typing import Any, Callable, Dict, Optional

import firebase_admin
from firebase_admin import credentials, db

from ..utils.errors import ConfigurationError, StoreError
from .base import ContentStore, Subscription, join_path

logger = logging.getLogger(__name__)


def initialize_app(database_url: str, credentials_path: Optional[str] = None):
    """
    Initialize the default firebase app once per process.

    Args:
        database_url: Realtime database URL
        credentials_path: Service account JSON; application default
            credentials are used when omitted

    Returns:
        The firebase App instance
    """
    if firebase_admin._apps:
        return firebase_admin.get_app()

    if credentials_path:
        resolved = os.path.expanduser(credentials_path)
        if not os.path.exists(resolved):
            raise ConfigurationError(f"Firebase credentials not found: {resolved}")
        cred = credentials.Certificate(resolved)
    else:
        cred = credentials.ApplicationDefault()

    app = firebase_admin.initialize_app(cred, {"databaseURL": database_url})
    logger.info(f"Connected to realtime database {database_url}")
    return app


class FirebaseContentStore(ContentStore):
    """
    ContentStore adapter over firebase_admin.db references.

    Listener events are delivered on the SDK's own thread; the owning
    surface is responsible for hopping back onto its loop.
    """

    delivers_on_foreign_thread = True

    def __init__(self, app=None):
        self.app = app

    def _ref(self, path: str):
        return db.reference(f"/{join_path(path)}", app=self.app)

    def get(self, path: str) -> Any:
        try:
            return self._ref(path).get()
        except Exception as e:
            raise StoreError(f"Read of '{path}' failed: {e}") from e

    def set(self, path: str, value: Any) -> None:
        try:
            if value is None:
                self._ref(path).delete()
            else:
                self._ref(path).set(value)
        except Exception as e:
            raise StoreError(f"Write to '{path}' failed: {e}") from e

    def update(self, path: str, patch: Dict[str, Any]) -> None:
        try:
            self._ref(path).update(patch)
        except Exception as e:
            raise StoreError(f"Update of '{path}' failed: {e}") from e

    def remove(self, path: str) -> None:
        try:
            self._ref(path).delete()
        except Exception as e:
            raise StoreError(f"Delete of '{path}' failed: {e}") from e

    def push(self, path: str, value: Any) -> str:
        try:
            return self._ref(path).push(value).key
        except Exception as e:
            raise StoreError(f"Push under '{path}' failed: {e}") from e

    def subscribe(self, path: str, callback: Callable[[Any], None]) -> Subscription:
        ref = self._ref(path)

        def _on_event(event) -> None:
            # Events carry deltas; re-read so listeners always get the whole node
            try:
                value = ref.get()
            except Exception as e:
                logger.error(f"Re-read of '{path}' after change failed: {e}")
                return
            callback(value)

        try:
            registration = ref.listen(_on_event)
        except Exception as e:
            raise StoreError(f"Listening on '{path}' failed: {e}") from e

        return Subscription(join_path(path), on_cancel=registration.close)
