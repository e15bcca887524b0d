"""
Push message schemas.

Every message sent to a topic is one of two kinds, tagged by `kind`:

- ArticlePush: a new article. `data` carries the whole article serialised in a
  single `payload` string so the app can open it without another request.
- DiagnosticPush: the fixed message sent by the on-demand test endpoint.

FCM only accepts string values in `data`; `to_data()` guarantees that shape.
"""

import json
import re
from typing import Dict, Literal, Union

from pydantic import BaseModel, Field

from fastnews.storage.models import Article, article_id

CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"

_IMG_SRC_RE = re.compile(r"""<img[^>]*?\ssrc\s*=\s*["']([^"']+)["']""", re.IGNORECASE)


def extract_image_url(description: str) -> str:
    """First <img src> in an HTML excerpt, or '' when there is none."""
    match = _IMG_SRC_RE.search(description or "")
    return match.group(1) if match else ""


class Notification(BaseModel):
    title: str
    body: str


class ArticlePayload(BaseModel):
    id: str
    title: str
    link: str
    description: str = ""
    pubDate: str = ""
    source: str = ""
    imageUrl: str = ""

    @classmethod
    def from_article(cls, article: Article) -> "ArticlePayload":
        return cls(
            id=article_id(article.link),
            title=article.title,
            link=article.link,
            description=article.description,
            pubDate=article.pub_date,
            source=article.source,
            imageUrl=extract_image_url(article.description),
        )


class ArticlePush(BaseModel):
    kind: Literal["article"] = "article"
    topic: str = Field(min_length=1)
    notification: Notification
    article: ArticlePayload

    def to_data(self) -> Dict[str, str]:
        return {
            "kind": self.kind,
            "topic": self.topic,
            "article_id": self.article.id,
            "payload": json.dumps(self.article.model_dump(), ensure_ascii=False),
            "click_action": CLICK_ACTION,
        }


class DiagnosticPush(BaseModel):
    kind: Literal["test"] = "test"
    topic: str = Field(min_length=1)
    notification: Notification
    timestamp: str

    def to_data(self) -> Dict[str, str]:
        return {"kind": self.kind, "test": "true", "timestamp": self.timestamp}


PushMessage = Union[ArticlePush, DiagnosticPush]


def notification_title(topic: str, display_name: str, combined_topic: str) -> str:
    if topic == combined_topic:
        return "📰 Tin tức mới"
    return f"📰 {display_name}"


def build_article_push(topic: str, article: Article, title: str) -> ArticlePush:
    return ArticlePush(
        topic=topic,
        notification=Notification(title=title, body=article.title),
        article=ArticlePayload.from_article(article),
    )


def build_diagnostic_push(topic: str, timestamp: str) -> DiagnosticPush:
    return DiagnosticPush(
        topic=topic,
        notification=Notification(
            title="🧪 Test Notification",
            body="Hệ thống thông báo hoạt động tốt! 🎉",
        ),
        timestamp=timestamp,
    )
