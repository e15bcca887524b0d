from abc import ABC, abstractmethod
from typing import List

from fastnews.storage.models import Article


class FeedError(Exception):
    """Base error for a single source that could not produce articles."""


class FeedFetchError(FeedError):
    pass


class FeedParseError(FeedError):
    pass


class BaseFeed(ABC):
    url: str

    @abstractmethod
    def fetch(self) -> List[Article]:
        pass
