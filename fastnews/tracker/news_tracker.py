import logging
import time
from enum import Enum
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel

from fastnews.config import Settings
from fastnews.feeds import BaseFeed, RssFeed
from fastnews.feeds.fetcher import fetch_sources
from fastnews.notifier.dispatcher import NotificationDispatcher
from fastnews.storage.models import Article
from fastnews.storage.repository import MarkerStore
from fastnews.tracker.aggregator import aggregate
from fastnews.tracker.novelty import is_novel

logger = logging.getLogger(__name__)

FeedFactory = Callable[[str], BaseFeed]


class TopicStatus(str, Enum):
    sent = "sent"
    already_notified = "already_notified"
    no_articles = "no_articles"
    error = "error"


class TopicResult(BaseModel):
    topic: str
    status: TopicStatus
    article: Optional[Article] = None
    failed_sources: List[str] = []
    error: Optional[str] = None


class NewsTracker:
    """Runs fetch -> aggregate -> novelty -> dispatch for configured topics."""

    def __init__(
        self,
        settings: Settings,
        store: MarkerStore,
        dispatcher: NotificationDispatcher,
        feed_factory: Optional[FeedFactory] = None,
    ):
        self.settings = settings
        self.store = store
        self.dispatcher = dispatcher
        self._feed_factory = feed_factory or self._rss_feed
        # Cada tópico pode ter vários feeds
        self.feeds: Dict[str, List[BaseFeed]] = {}
        self.last_results: Dict[str, TopicResult] = {}
        self.last_updated: Optional[int] = None
        # um lock por tópico: leitura do marcador -> envio -> escrita nunca se sobrepõem
        self._topic_locks: Dict[str, Lock] = {t.name: Lock() for t in settings.topics}
        for topic in settings.topics:
            self.feeds[topic.name] = [self._feed_factory(url) for url in topic.feeds]

    def _rss_feed(self, url: str) -> BaseFeed:
        return RssFeed(url, max_items=self.settings.feed_max_items, timeout=self.settings.feed_timeout)

    def run_topic(self, topic: str) -> TopicResult:
        feeds = self.feeds.get(topic)
        if feeds is None:
            return TopicResult(topic=topic, status=TopicStatus.error, error=f"Unknown topic '{topic}'")

        try:
            outcomes = fetch_sources(feeds)
            failed = [o.url for o in outcomes if not o.ok]
            articles = aggregate(outcomes)
            if not articles:
                logger.info("%s: no articles found", topic)
                return TopicResult(topic=topic, status=TopicStatus.no_articles, failed_sources=failed)

            latest = articles[0]
            logger.info("%s: latest article '%s'", topic, latest.title)

            with self._topic_locks[topic]:
                if not is_novel(self.store, topic, latest):
                    logger.info("%s: already notified", topic)
                    return TopicResult(
                        topic=topic, status=TopicStatus.already_notified, article=latest, failed_sources=failed
                    )

                self.dispatcher.dispatch(topic, latest)
        except Exception as e:
            # um tópico com falha não interrompe a varredura
            logger.exception("%s: run failed: %s", topic, e)
            return TopicResult(topic=topic, status=TopicStatus.error, error=str(e))

        return TopicResult(topic=topic, status=TopicStatus.sent, article=latest, failed_sources=failed)

    def sweep(self, topics: Iterable[str]) -> List[TopicResult]:
        results: List[TopicResult] = []
        for topic in topics:
            result = self.run_topic(topic)
            self.last_results[topic] = result
            results.append(result)
        self.last_updated = int(time.time())
        return results

    def check_combined(self) -> List[TopicResult]:
        logger.info("Starting combined news check")
        return self.sweep([self.settings.combined_topic])

    def check_categories(self) -> List[TopicResult]:
        logger.info("Starting category news check")
        return self.sweep(self.settings.category_topics())
