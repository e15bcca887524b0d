import logging
import os
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from fastnews.utils.tz_utils import DEFAULT_TIMEZONE

COMBINED_TOPIC = "all_users"

DEFAULT_MARKER_DB_PATH = os.path.join(
    os.path.dirname(__file__), "storage", "data", "markers.json"
)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class TopicConfig(BaseModel):
    name: str
    display_name: str
    feeds: List[str]


DEFAULT_TOPICS: List[TopicConfig] = [
    TopicConfig(
        name=COMBINED_TOPIC,
        display_name="Tin tức mới",
        feeds=[
            "https://vnexpress.net/rss/tin-moi-nhat.rss",
            "https://tuoitre.vn/rss/tin-moi-nhat.rss",
            "https://thanhnien.vn/rss/home.rss",
        ],
    ),
    TopicConfig(name="chinh_tri", display_name="Chính trị", feeds=["https://vnexpress.net/rss/thoi-su.rss"]),
    TopicConfig(name="kinh_te", display_name="Kinh tế", feeds=["https://vnexpress.net/rss/kinh-doanh.rss"]),
    TopicConfig(name="the_gioi", display_name="Thế giới", feeds=["https://vnexpress.net/rss/the-gioi.rss"]),
    TopicConfig(name="the_thao", display_name="Thể thao", feeds=["https://vnexpress.net/rss/the-thao.rss"]),
    TopicConfig(name="cong_nghe", display_name="Công nghệ", feeds=["https://vnexpress.net/rss/so-hoa.rss"]),
    TopicConfig(name="giai_tri", display_name="Giải trí", feeds=["https://vnexpress.net/rss/giai-tri.rss"]),
    TopicConfig(name="suc_khoe", display_name="Sức khỏe", feeds=["https://vnexpress.net/rss/suc-khoe.rss"]),
    TopicConfig(name="du_lich", display_name="Du lịch", feeds=["https://vnexpress.net/rss/du-lich.rss"]),
]


class Settings(BaseModel):
    """Process-wide configuration, built once at startup and passed explicitly."""

    timezone: str = DEFAULT_TIMEZONE
    combined_interval_minutes: int = 60
    category_interval_minutes: int = 120
    feed_max_items: int = 5
    feed_timeout: float = 10.0
    marker_backend: str = "json"  # 'json' ou 'firestore'
    marker_db_path: str = DEFAULT_MARKER_DB_PATH
    push_backend: str = "fcm"  # 'fcm' ou 'webhook'
    push_webhook_url: Optional[str] = None
    firebase_credentials: Optional[str] = None
    log_level: str = "INFO"
    combined_topic: str = COMBINED_TOPIC
    topics: List[TopicConfig] = Field(default_factory=lambda: list(DEFAULT_TOPICS))

    # ---------- Fábrica baseada em .env ----------
    @classmethod
    def from_env(cls, load_env: bool = True, dotenv_override: bool = True) -> "Settings":
        """Reads overrides from the environment (and `.env` when python-dotenv finds one)."""
        if load_env:
            from dotenv import load_dotenv

            load_dotenv(override=dotenv_override)

        values: Dict[str, object] = {}
        env_map = {
            "TIMEZONE": "timezone",
            "COMBINED_INTERVAL_MINUTES": "combined_interval_minutes",
            "CATEGORY_INTERVAL_MINUTES": "category_interval_minutes",
            "FEED_MAX_ITEMS": "feed_max_items",
            "FEED_TIMEOUT": "feed_timeout",
            "MARKER_BACKEND": "marker_backend",
            "MARKER_DB_PATH": "marker_db_path",
            "PUSH_BACKEND": "push_backend",
            "PUSH_WEBHOOK_URL": "push_webhook_url",
            "FIREBASE_CREDENTIALS": "firebase_credentials",
            "LOG_LEVEL": "log_level",
        }
        for env_name, field in env_map.items():
            raw = os.getenv(env_name)
            if raw:
                values[field] = raw
        # pydantic converte os tipos (int/float) a partir das strings
        return cls(**values)

    # ---------- Acesso a tópicos ----------
    def category_topics(self) -> List[str]:
        return [t.name for t in self.topics if t.name != self.combined_topic]

    def get_topic(self, name: str) -> Optional[TopicConfig]:
        return next((t for t in self.topics if t.name == name), None)

    def display_name(self, topic: str) -> str:
        cfg = self.get_topic(topic)
        return cfg.display_name if cfg else "Tin tức mới"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
