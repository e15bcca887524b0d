# fastnews/tests/test_config.py
import pytest

from fastnews.api.main import build_channel, build_scheduler, build_store
from fastnews.config import COMBINED_TOPIC, Settings
from fastnews.notifier.push import WebhookPushChannel
from fastnews.storage.repository import JsonMarkerStore
from fastnews.utils.firebase import FirebaseContext


def test_defaults_cover_combined_and_categories():
    s = Settings()
    assert s.combined_topic == COMBINED_TOPIC
    assert COMBINED_TOPIC not in s.category_topics()
    assert "the_thao" in s.category_topics()
    assert s.display_name("du_lich") == "Du lịch"
    assert s.display_name("unknown") == "Tin tức mới"
    assert len(s.get_topic(COMBINED_TOPIC).feeds) == 3


def test_from_env_overrides(monkeypatch):
    monkeypatch.setenv("COMBINED_INTERVAL_MINUTES", "30")
    monkeypatch.setenv("PUSH_BACKEND", "webhook")
    monkeypatch.setenv("PUSH_WEBHOOK_URL", "http://localhost:9000/push")
    s = Settings.from_env(load_env=False)
    assert s.combined_interval_minutes == 30
    assert s.push_backend == "webhook"


def test_builders(tmp_path):
    s = Settings(push_backend="webhook", push_webhook_url="http://hook", marker_db_path=str(tmp_path / "m.json"))
    firebase = FirebaseContext()
    assert isinstance(build_channel(s, firebase), WebhookPushChannel)
    assert isinstance(build_store(s, firebase), JsonMarkerStore)

    with pytest.raises(ValueError):
        build_channel(Settings(push_backend="webhook"), firebase)
    with pytest.raises(ValueError):
        build_store(Settings(marker_backend="redis"), firebase)


def test_scheduler_has_two_jobs(tracker, settings):
    scheduler = build_scheduler(settings, tracker)
    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == {"check_new_articles", "check_new_articles_by_category"}
    assert jobs["check_new_articles"].trigger.interval.total_seconds() == 60 * 60
    assert jobs["check_new_articles_by_category"].trigger.interval.total_seconds() == 120 * 60
