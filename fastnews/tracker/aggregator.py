from typing import Iterable, List

from fastnews.feeds.fetcher import FetchOutcome
from fastnews.storage.models import Article
from fastnews.utils.tz_utils import EPOCH

DEFAULT_SOURCE_LABEL = "Tin tức"

# ordem importa: primeiro match vence
SOURCE_LABELS = (
    ("vnexpress", "VNExpress"),
    ("tuoitre", "Tuổi Trẻ"),
    ("thanhnien", "Thanh Niên"),
)


def source_label(url: str) -> str:
    for needle, label in SOURCE_LABELS:
        if needle in url:
            return label
    return DEFAULT_SOURCE_LABEL


def _sort_key(article: Article):
    return article.published_at or EPOCH


def aggregate(outcomes: Iterable[FetchOutcome]) -> List[Article]:
    """Merges per-source lists, tags each article with its source, newest first."""
    merged: List[Article] = []
    for outcome in outcomes:
        label = source_label(outcome.url)
        merged.extend(a.model_copy(update={"source": label}) for a in outcome.articles)
    # sort() é estável mesmo com reverse=True
    merged.sort(key=_sort_key, reverse=True)
    return merged
