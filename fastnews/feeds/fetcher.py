import logging
from typing import Iterable, List, Optional

from pydantic import BaseModel

from fastnews.storage.models import Article
from .base import BaseFeed, FeedError

logger = logging.getLogger(__name__)


class FetchOutcome(BaseModel):
    url: str
    articles: List[Article] = []
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def fetch_sources(feeds: Iterable[BaseFeed]) -> List[FetchOutcome]:
    """Fetches every feed in turn; a failing source yields an outcome with `error` set."""
    outcomes: List[FetchOutcome] = []
    for feed in feeds:
        try:
            articles = feed.fetch()
        except FeedError as e:
            logger.error("Skipping source %s: %s", feed.url, e)
            outcomes.append(FetchOutcome(url=feed.url, error=str(e)))
            continue
        logger.debug("Fetched %d article(s) from %s", len(articles), feed.url)
        outcomes.append(FetchOutcome(url=feed.url, articles=articles))
    return outcomes
