import hashlib
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

ARTICLE_ID_LENGTH = 16


def article_id(link: str) -> str:
    """Stable 16-hex-char id for a link (SHA-256 prefix), reproducible by clients."""
    return hashlib.sha256(link.encode("utf-8")).hexdigest()[:ARTICLE_ID_LENGTH]


class Article(BaseModel):
    link: str  # usado como chave única
    title: str
    description: str = ""
    pub_date: str = ""  # texto cru do <pubDate>
    published_at: Optional[datetime] = None
    source: str = ""

    @property
    def id(self) -> str:
        return article_id(self.link)


class NotificationMarker(BaseModel):
    topic: str
    link: str
    title: str
    timestamp: str  # ISO-8601 UTC
