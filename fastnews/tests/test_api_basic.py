# fastnews/tests/test_api_basic.py
from fastnews.notifier.push import FcmPushChannel
from fastnews.storage.models import NotificationMarker
from fastnews.utils.firebase import FirebaseContext
from conftest import mk_article, utc


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "ok"
    assert isinstance(j["ts"], int)


def test_topics(client):
    r = client.get("/topics")
    assert r.status_code == 200
    names = [t["name"] for t in r.json()["data"]]
    assert names == ["all_users", "sports", "kinh_te"]


def test_send_test_notification_success(client, channel):
    r = client.get("/send-test-notification")
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Test notification sent!"}
    assert channel.sent[0].kind == "test"
    assert channel.sent[0].topic == "all_users"

    r = client.post("/send-test-notification")
    assert r.status_code == 200
    assert len(channel.sent) == 2


def test_send_test_notification_failure(client, channel):
    channel.fail = True
    r = client.get("/send-test-notification")
    assert r.status_code == 500
    j = r.json()
    assert j["success"] is False
    assert "provider unavailable" in j["error"]


def test_marker_endpoint(client, store):
    r = client.get("/markers/sports")
    assert r.status_code == 404

    store.save(NotificationMarker(topic="sports", link="https://a/1", title="X", timestamp="2026-10-19T01:00:00+00:00"))
    r = client.get("/markers/sports")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["link"] == "https://a/1"
    assert data["timestamp_local"] == "2026-10-19 08:00"


def test_check_topic_runs_pipeline(client, feeds, channel, store):
    feeds["https://vnexpress.net/rss/kinh-doanh.rss"].articles = [mk_article("K", "https://k/1", utc(2026, 10, 19, 9))]

    r = client.post("/check/kinh_te")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["status"] == "sent"
    assert data["article"]["link"] == "https://k/1"
    assert store.get("kinh_te").link == "https://k/1"

    r = client.post("/check/kinh_te")
    assert r.json()["data"]["status"] == "already_notified"

    assert client.post("/check/nope").status_code == 404


def test_send_test_notification_missing_credentials_returns_json_error(client, tracker):
    tracker.dispatcher.channel = FcmPushChannel(FirebaseContext("/nonexistent/creds.json"))
    r = client.get("/send-test-notification")
    assert r.status_code == 500
    j = r.json()
    assert j["success"] is False
    assert j["error"]


def test_marker_endpoint_corrupted_store(client, settings):
    with open(settings.marker_db_path, "w", encoding="utf-8") as f:
        f.write("{not json")
    r = client.get("/markers/sports")
    assert r.status_code == 503


def test_last_update_reports_sweep_results(client, feeds):
    r = client.get("/last-update")
    assert r.status_code == 200
    assert r.json()["last_update"] is None
    assert r.json()["results"] == {}

    client.post("/check/kinh_te")
    j = client.get("/last-update").json()
    assert isinstance(j["last_update"], int)
    assert j["results"]["kinh_te"]["status"] == "no_articles"
