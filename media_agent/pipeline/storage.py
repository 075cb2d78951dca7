"""
In-memory media storage for rendered assets.

Downloaded videos are kept as bytes and served back under
  {MEDIA_URL_PREFIX}/{media_id}

which plays the role of a browser object URL: valid for the life of the
process, gone on restart.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

from .. import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredMedia:
    media_id: str
    data: bytes
    content_type: str


class MediaStore:
    def __init__(self, url_prefix: Optional[str] = None):
        self._url_prefix = (config.MEDIA_URL_PREFIX if url_prefix is None else url_prefix).rstrip("/")
        self._items: Dict[str, StoredMedia] = {}
        self._lock = threading.Lock()

    def url_for(self, media_id: str) -> str:
        return f"{self._url_prefix}/{media_id}"

    def put(self, data: bytes, content_type: str = "video/mp4") -> str:
        """Store bytes and return their playable URL."""
        media_id = uuid.uuid4().hex
        with self._lock:
            self._items[media_id] = StoredMedia(media_id, data, content_type)
        logger.info(f"Stored media {media_id} ({content_type}, {len(data)} bytes)")
        return self.url_for(media_id)

    def get(self, media_id: str) -> Optional[StoredMedia]:
        with self._lock:
            return self._items.get(media_id)

    def discard(self, url: str) -> None:
        """Forget an asset by its URL. Unknown URLs (e.g. data URLs) are ignored."""
        prefix = f"{self._url_prefix}/"
        if not url.startswith(prefix):
            return
        with self._lock:
            self._items.pop(url[len(prefix):], None)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
