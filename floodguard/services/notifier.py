"""
Push notification delivery through Firebase Cloud Messaging topics.
"""

import base64
import binascii
import json
import logging
import os
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from floodguard.core.config import settings
from floodguard.core.exceptions import ConfigurationException, DeliveryException
from floodguard.schemas.risk import AlertPayload

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "floodguard"


def load_service_account(
    config_base64: Optional[str] = None,
    config_json: Optional[str] = None,
    credentials_file: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Resolve the service account, first match wins:
    base64-encoded JSON, raw JSON, then a credentials file on disk.

    Returns None when no source is set.

    Raises:
        ConfigurationException: a source is set but does not decode
    """
    try:
        if config_base64:
            logger.info("Loading Firebase credentials from FIREBASE_CONFIG_BASE64")
            return json.loads(base64.b64decode(config_base64).decode("utf-8"))
        if config_json:
            logger.info("Loading Firebase credentials from FIREBASE_CONFIG")
            return json.loads(config_json)
        if credentials_file and os.path.isfile(credentials_file):
            logger.info(f"Loading Firebase credentials from {credentials_file}")
            with open(credentials_file, encoding="utf-8") as f:
                return json.load(f)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, OSError) as e:
        raise ConfigurationException(f"Invalid Firebase credentials: {e}") from e
    return None


class FcmNotifier:
    """
    Sends alert payloads to an FCM topic.

    An unconfigured notifier is a valid state: is_configured is False and the
    alert gate skips delivery.
    """

    def __init__(
        self,
        config_base64: Optional[str] = None,
        config_json: Optional[str] = None,
        credentials_file: Optional[str] = None,
    ):
        self._config_base64 = config_base64
        self._config_json = config_json
        self._credentials_file = credentials_file
        self._app: Optional[firebase_admin.App] = None
        self._initialized = False

    @classmethod
    def from_settings(cls) -> "FcmNotifier":
        return cls(
            config_base64=settings.firebase_config_base64,
            config_json=settings.firebase_config,
            credentials_file=settings.firebase_credentials_file,
        )

    @property
    def is_configured(self) -> bool:
        self._initialize()
        return self._app is not None

    def _initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True

        try:
            service_account = load_service_account(
                self._config_base64, self._config_json, self._credentials_file
            )
            if service_account is None:
                logger.warning("Firebase not initialized: no credentials configured")
                return
            cert = credentials.Certificate(service_account)
        except (ConfigurationException, ValueError) as e:
            logger.warning(f"Firebase not initialized: {e}")
            return

        try:
            self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            self._app = firebase_admin.initialize_app(cert, name=FIREBASE_APP_NAME)
        logger.info("Firebase Admin initialized")

    def send(self, payload: AlertPayload) -> str:
        """
        Deliver a notification to the payload's topic.

        Returns:
            FCM message id

        Raises:
            DeliveryException: notifier unconfigured or FCM rejected the message
        """
        if not self.is_configured:
            raise DeliveryException("Notifier is not configured")

        message = messaging.Message(
            notification=messaging.Notification(title=payload.title, body=payload.body),
            topic=payload.topic,
            data=payload.data,
        )
        try:
            message_id = messaging.send(message, app=self._app)
        except (FirebaseError, ValueError) as e:
            raise DeliveryException(
                f"FCM send failed: {e}", {"topic": payload.topic}
            ) from e

        logger.info(f"FCM alert sent to topic {payload.topic}: {message_id}")
        return message_id
