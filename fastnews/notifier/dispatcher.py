import logging
from typing import Callable, Optional

from fastnews.notifier.payload import build_article_push, notification_title
from fastnews.notifier.push import PushChannel
from fastnews.storage.models import Article, NotificationMarker
from fastnews.storage.repository import MarkerStore
from fastnews.utils.tz_utils import utc_now

logger = logging.getLogger(__name__)

TitleFn = Callable[[str], str]


class NotificationDispatcher:
    """Sends an article to a topic and advances that topic's marker.

    The marker is the dispatcher's alone to write, and it only moves after the
    push channel has accepted the message.
    """

    def __init__(
        self,
        channel: PushChannel,
        store: MarkerStore,
        display_name: TitleFn,
        combined_topic: str,
    ) -> None:
        self.channel = channel
        self.store = store
        self._display_name = display_name
        self.combined_topic = combined_topic

    def dispatch(self, topic: str, article: Article) -> Optional[str]:
        title = notification_title(topic, self._display_name(topic), self.combined_topic)
        message = build_article_push(topic, article, title)

        # PushSendError propaga: o marcador não avança sem envio confirmado
        message_id = self.channel.send(message)
        logger.info("%s: notification sent for %s (id=%s)", topic, article.link, message.article.id)

        self.store.save(
            NotificationMarker(
                topic=topic,
                link=article.link,
                title=article.title,
                timestamp=utc_now().isoformat(),
            )
        )
        return message_id
