import json
import logging
from abc import ABC, abstractmethod
from typing import Annotated, Any, Dict, Optional

import requests
from pydantic import Field, TypeAdapter, ValidationError

from fastnews.notifier.payload import PushMessage

logger = logging.getLogger(__name__)

_MESSAGE_ADAPTER: TypeAdapter = TypeAdapter(Annotated[PushMessage, Field(discriminator="kind")])


class PushSendError(Exception):
    """The push provider did not accept the message."""


def validate_message(message: PushMessage) -> PushMessage:
    """Re-checks a message against its schema before it leaves the process."""
    try:
        return _MESSAGE_ADAPTER.validate_python(message.model_dump())
    except ValidationError as e:
        raise PushSendError(f"Invalid push message: {e}") from e


class PushChannel(ABC):
    def send(self, message: PushMessage) -> str:
        """Validates and sends `message` to its topic; returns the provider's message id."""
        message = validate_message(message)
        logger.debug("Sending %s push to topic %s", message.kind, message.topic)
        return self._send(message)

    @abstractmethod
    def _send(self, message: PushMessage) -> str:
        pass


class FcmPushChannel(PushChannel):
    """Firebase Cloud Messaging send-to-topic."""

    def __init__(self, firebase):
        self.firebase = firebase

    def _send(self, message: PushMessage) -> str:
        from firebase_admin import exceptions, messaging
        from google.auth.exceptions import GoogleAuthError

        fcm_message = messaging.Message(
            notification=messaging.Notification(
                title=message.notification.title,
                body=message.notification.body,
            ),
            data=message.to_data(),
            topic=message.topic,
        )
        try:
            # credenciais ausentes ou inválidas aparecem aqui (OSError, GoogleAuthError)
            return messaging.send(fcm_message, app=self.firebase.app)
        except (exceptions.FirebaseError, GoogleAuthError, OSError, ValueError) as e:
            raise PushSendError(f"FCM send to '{message.topic}' failed: {e}") from e


class WebhookPushChannel(PushChannel):
    """Posts the message as JSON to an HTTP endpoint (gateway, relay or test sink)."""

    TIMEOUT = 10

    def __init__(self, webhook_url: str, session: Optional[requests.Session] = None):
        self.webhook_url = webhook_url
        self.session = session or requests.Session()

    def _send(self, message: PushMessage) -> str:
        payload: Dict[str, Any] = {
            "topic": message.topic,
            "notification": message.notification.model_dump(),
            "data": message.to_data(),
        }
        try:
            resp = self.session.post(
                self.webhook_url,
                data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                headers={"Content-Type": "application/json"},
                timeout=self.TIMEOUT,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise PushSendError(f"Webhook send to '{message.topic}' failed: {e}") from e
        return resp.headers.get("X-Message-Id", "")
