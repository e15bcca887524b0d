# fastnews/tests/conftest.py
from datetime import datetime, timezone
from typing import List

import pytest

from fastnews.config import Settings, TopicConfig
from fastnews.feeds import BaseFeed, FeedFetchError
from fastnews.notifier.dispatcher import NotificationDispatcher
from fastnews.notifier.push import PushChannel, PushSendError
from fastnews.storage.models import Article
from fastnews.storage.repository import JsonMarkerStore
from fastnews.tracker.news_tracker import NewsTracker


def mk_article(title, link, published=None, description=""):
    return Article(
        title=title,
        link=link,
        description=description,
        pub_date=published.strftime("%a, %d %b %Y %H:%M:%S +0000") if published else "",
        published_at=published,
    )


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class FakeFeed(BaseFeed):
    """Feed cujo conteúdo é controlado pelo teste."""

    def __init__(self, url: str):
        self.url = url
        self.articles: List[Article] = []
        self.fail = False
        self.calls = 0

    def fetch(self) -> List[Article]:
        self.calls += 1
        if self.fail:
            raise FeedFetchError(f"boom: {self.url}")
        return list(self.articles)


class FakeChannel(PushChannel):
    def __init__(self):
        self.sent = []
        self.fail = False

    def _send(self, message):
        if self.fail:
            raise PushSendError("provider unavailable")
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        marker_db_path=str(tmp_path / "markers.json"),
        topics=[
            TopicConfig(
                name="all_users",
                display_name="Tin tức mới",
                feeds=["https://vnexpress.net/rss/tin-moi-nhat.rss", "https://tuoitre.vn/rss/tin-moi-nhat.rss"],
            ),
            TopicConfig(
                name="sports",
                display_name="Thể thao",
                feeds=["https://vnexpress.net/rss/the-thao.rss", "https://thanhnien.vn/rss/the-thao.rss"],
            ),
            TopicConfig(name="kinh_te", display_name="Kinh tế", feeds=["https://vnexpress.net/rss/kinh-doanh.rss"]),
        ],
    )


@pytest.fixture()
def store(settings):
    return JsonMarkerStore(settings.marker_db_path)


@pytest.fixture()
def channel():
    return FakeChannel()


@pytest.fixture()
def feeds():
    # url -> FakeFeed, preenchido pela feed_factory do tracker
    return {}


@pytest.fixture()
def tracker(settings, store, channel, feeds):
    def factory(url):
        feeds[url] = FakeFeed(url)
        return feeds[url]

    dispatcher = NotificationDispatcher(
        channel=channel,
        store=store,
        display_name=settings.display_name,
        combined_topic=settings.combined_topic,
    )
    return NewsTracker(settings, store, dispatcher, feed_factory=factory)


@pytest.fixture()
def app(settings, tracker):
    from fastnews.api.main import create_app

    # scheduler: no-op
    class DummyScheduler:
        def add_job(self, *a, **k): pass
        def start(self): pass
        def shutdown(self, wait=False): pass

    return create_app(settings=settings, tracker=tracker, scheduler=DummyScheduler())


@pytest.fixture()
def client(app):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
