from fastnews.storage.models import Article
from fastnews.storage.repository import MarkerStore


def is_novel(store: MarkerStore, topic: str, candidate: Article) -> bool:
    """True unless the topic's marker already points at `candidate.link`."""
    marker = store.get(topic)
    return marker is None or marker.link != candidate.link
