import logging
from datetime import datetime, timezone
from typing import List, Optional, Union
from xml.sax import SAXException

import feedparser
import requests
from requests.adapters import HTTPAdapter

from fastnews.storage.models import Article
from .base import BaseFeed, FeedFetchError, FeedParseError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 5

# ---------- HTTP session global com pool (sem retry: uma fonte com falha só é pulada) ----------
_SESSION = requests.Session()
_ADAPTER = HTTPAdapter(pool_connections=10, pool_maxsize=20, max_retries=0)
_SESSION.mount("https://", _ADAPTER)
_SESSION.mount("http://", _ADAPTER)
_SESSION.headers.update({"User-Agent": "FastNews/1.0 (+https://localhost)"})


def _published_at(entry) -> Optional[datetime]:
    # published_parsed preferencial; fallback para updated_parsed
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    try:
        return datetime(*parsed[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def parse_feed(raw: Union[bytes, str], max_items: int = DEFAULT_MAX_ITEMS) -> List[Article]:
    """Parses an RSS document into at most `max_items` articles, in document order.

    Raises FeedParseError when the document is not well-formed XML or not a feed. A valid
    feed whose channel has no items returns an empty list.
    """
    feed = feedparser.parse(raw)
    error = feed.get("bozo_exception")
    # XML mal formado (ex.: corpo truncado) falha mesmo que o parser tolerante recupere itens
    if feed.bozo and isinstance(error, SAXException):
        raise FeedParseError(f"malformed feed: {error}")
    if not feed.entries and (feed.bozo or not feed.version):
        raise FeedParseError(str(error or "document is not a syndication feed"))

    articles: List[Article] = []
    for entry in feed.entries[:max_items]:
        link = entry.get("link")
        if not link:
            logger.warning("Skipping feed item without link: %r", entry.get("title"))
            continue
        articles.append(
            Article(
                title=(entry.get("title") or "").strip(),
                link=link,
                description=entry.get("summary") or "",
                pub_date=entry.get("published") or "",
                published_at=_published_at(entry),
            )
        )
    return articles


class RssFeed(BaseFeed):
    TIMEOUT = 10

    def __init__(
        self,
        url: str,
        max_items: int = DEFAULT_MAX_ITEMS,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.url: str = url
        self.max_items: int = max_items
        self.timeout: float = timeout if timeout is not None else self.TIMEOUT
        self.session = session or _SESSION

    def __repr__(self) -> str:
        return f"RssFeed({self.url!r})"

    def fetch(self) -> List[Article]:
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FeedFetchError(f"Fetch failed for '{self.url}': {e}") from e

        return parse_feed(response.content, self.max_items)
