from .rss import RssFeed, parse_feed

# Exporta também a base e os erros:
from .base import BaseFeed, FeedError, FeedFetchError, FeedParseError

__all__ = ["RssFeed", "parse_feed", "BaseFeed", "FeedError", "FeedFetchError", "FeedParseError"]
