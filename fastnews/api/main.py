import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from fastnews.config import Settings, configure_logging
from fastnews.notifier.dispatcher import NotificationDispatcher
from fastnews.notifier.payload import build_diagnostic_push
from fastnews.notifier.push import FcmPushChannel, PushChannel, WebhookPushChannel
from fastnews.storage.repository import FirestoreMarkerStore, JsonMarkerStore, MarkerStore, MarkerStoreError
from fastnews.tracker.news_tracker import NewsTracker
from fastnews.utils.firebase import FirebaseContext
from fastnews.utils.tz_utils import get_zone, iso_to_local_str, utc_now

logger = logging.getLogger(__name__)


# ---------- Montagem dos componentes a partir do Settings ----------
def build_store(settings: Settings, firebase: FirebaseContext) -> MarkerStore:
    if settings.marker_backend == "firestore":
        return FirestoreMarkerStore.from_firebase(firebase)
    if settings.marker_backend == "json":
        return JsonMarkerStore(settings.marker_db_path)
    raise ValueError(f"Unknown MARKER_BACKEND '{settings.marker_backend}'")


def build_channel(settings: Settings, firebase: FirebaseContext) -> PushChannel:
    if settings.push_backend == "fcm":
        return FcmPushChannel(firebase)
    if settings.push_backend == "webhook":
        if not settings.push_webhook_url:
            raise ValueError("PUSH_WEBHOOK_URL is required when PUSH_BACKEND=webhook")
        return WebhookPushChannel(settings.push_webhook_url)
    raise ValueError(f"Unknown PUSH_BACKEND '{settings.push_backend}'")


def build_tracker(settings: Settings) -> NewsTracker:
    firebase = FirebaseContext(settings.firebase_credentials)
    store = build_store(settings, firebase)
    dispatcher = NotificationDispatcher(
        channel=build_channel(settings, firebase),
        store=store,
        display_name=settings.display_name,
        combined_topic=settings.combined_topic,
    )
    return NewsTracker(settings, store, dispatcher)


def build_scheduler(settings: Settings, tracker: NewsTracker) -> BackgroundScheduler:
    # Scheduler com configurações para evitar empilhamento de jobs
    scheduler = BackgroundScheduler(
        timezone=get_zone(settings.timezone),
        job_defaults={
            "coalesce": True,         # junta execuções atrasadas
            "max_instances": 1,       # não roda dois iguais ao mesmo tempo
            "misfire_grace_time": 60,
        },
    )
    scheduler.add_job(
        tracker.check_combined,
        "interval",
        minutes=settings.combined_interval_minutes,
        id="check_new_articles",
    )
    scheduler.add_job(
        tracker.check_categories,
        "interval",
        minutes=settings.category_interval_minutes,
        id="check_new_articles_by_category",
    )
    return scheduler


#%% APP

def create_app(
    settings: Optional[Settings] = None,
    tracker: Optional[NewsTracker] = None,
    scheduler=None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    tracker = tracker or build_tracker(settings)
    scheduler = scheduler or build_scheduler(settings, tracker)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler.start()
        logger.info(
            "Scheduler started (combined every %s min, categories every %s min, tz=%s)",
            settings.combined_interval_minutes,
            settings.category_interval_minutes,
            settings.timezone,
        )
        yield
        scheduler.shutdown(wait=False)

    app = FastAPI(title="FastNews Alerts", lifespan=lifespan)
    app.state.settings = settings
    app.state.tracker = tracker

    @app.get("/health")
    def health():
        return {"status": "ok", "ts": int(time.time())}

    @app.get("/last-update")
    def last_update():
        return {
            "status": "success",
            "last_update": tracker.last_updated,
            "results": {t: r.model_dump(mode="json") for t, r in tracker.last_results.items()},
        }

    @app.get("/topics")
    def get_topics():
        return {"status": "success", "data": [t.model_dump() for t in settings.topics]}

    @app.get("/markers/{topic}")
    def get_marker(topic: str):
        try:
            marker = tracker.store.get(topic)
        except MarkerStoreError as e:
            raise HTTPException(status_code=503, detail=str(e))
        if marker is None:
            raise HTTPException(status_code=404, detail=f"No marker for topic '{topic}'")
        data = marker.model_dump()
        data["timestamp_local"] = iso_to_local_str(marker.timestamp, settings.timezone)
        return {"status": "success", "data": data}

    @app.post("/check/{topic}")
    def check_topic(topic: str):
        if topic not in tracker.feeds:
            raise HTTPException(status_code=404, detail=f"Unknown topic '{topic}'")
        result = tracker.sweep([topic])[0]
        return {"status": "success", "data": result.model_dump(mode="json")}

    @app.api_route("/send-test-notification", methods=["GET", "POST"])
    def send_test_notification():
        message = build_diagnostic_push(settings.combined_topic, utc_now().isoformat())
        try:
            tracker.dispatcher.channel.send(message)
        except Exception as e:
            logger.error("Test notification failed: %s", e)
            return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
        return {"success": True, "message": "Test notification sent!"}

    return app
