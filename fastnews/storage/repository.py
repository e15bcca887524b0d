import json
import logging
import os
from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, Optional

from pydantic import ValidationError

from fastnews.storage.models import NotificationMarker

logger = logging.getLogger(__name__)

FIRESTORE_COLLECTION = "system"


class MarkerStoreError(Exception):
    """Marker could not be read or written."""


class MarkerStore(ABC):
    @abstractmethod
    def get(self, topic: str) -> Optional[NotificationMarker]:
        pass

    @abstractmethod
    def save(self, marker: NotificationMarker) -> None:
        pass


class JsonMarkerStore(MarkerStore):
    """All markers in one JSON file: {topic: marker}."""

    def __init__(self, path: str):
        self.path = path
        self._lock = Lock()

    def _load(self) -> Dict[str, NotificationMarker]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            return {topic: NotificationMarker(**item) for topic, item in raw.items()}
        except (OSError, json.JSONDecodeError, ValidationError, AttributeError, TypeError) as e:
            raise MarkerStoreError(f"Cannot read markers from {self.path}: {e}") from e

    def _dump(self, db: Dict[str, NotificationMarker]) -> None:
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            tmp_path = f"{self.path}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({t: m.model_dump() for t, m in db.items()}, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise MarkerStoreError(f"Cannot write markers to {self.path}: {e}") from e

    def get(self, topic: str) -> Optional[NotificationMarker]:
        with self._lock:
            return self._load().get(topic)

    def save(self, marker: NotificationMarker) -> None:
        with self._lock:
            db = self._load()
            db[marker.topic] = marker
            self._dump(db)


class FirestoreMarkerStore(MarkerStore):
    """One document per topic: system/last_notified_<topic>."""

    def __init__(self, client, collection: str = FIRESTORE_COLLECTION):
        self.client = client
        self.collection = collection

    @classmethod
    def from_firebase(cls, firebase) -> "FirestoreMarkerStore":
        from firebase_admin import firestore

        return cls(firestore.client(app=firebase.app))

    def _doc(self, topic: str):
        return self.client.collection(self.collection).document(f"last_notified_{topic}")

    def get(self, topic: str) -> Optional[NotificationMarker]:
        from google.api_core.exceptions import GoogleAPIError

        try:
            snapshot = self._doc(topic).get()
        except GoogleAPIError as e:
            raise MarkerStoreError(f"Cannot read marker for '{topic}': {e}") from e
        if not snapshot.exists:
            return None
        data = snapshot.to_dict() or {}
        return NotificationMarker(
            topic=topic,
            link=data.get("link", ""),
            title=data.get("title", ""),
            timestamp=str(data.get("timestamp", "")),
        )

    def save(self, marker: NotificationMarker) -> None:
        from google.api_core.exceptions import GoogleAPIError

        try:
            self._doc(marker.topic).set(marker.model_dump(exclude={"topic"}))
        except GoogleAPIError as e:
            raise MarkerStoreError(f"Cannot write marker for '{marker.topic}': {e}") from e
