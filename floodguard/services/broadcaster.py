"""
Broadcast of new risk records to connected clients over MQTT.

Topic structure: <MQTT_TOPIC_PREFIX>/<event name>, e.g. floodguard/floodUpdate
"""

import json
import logging
from typing import Optional

import paho.mqtt.client as mqtt

from floodguard.core.config import settings
from floodguard.core.exceptions import BroadcastException
from floodguard.schemas.risk import RiskRecord

logger = logging.getLogger(__name__)


class MqttBroadcaster:
    """
    Fire-and-forget publisher: QoS 0, no delivery confirmation from subscribers.
    """

    def __init__(
        self,
        broker_host: Optional[str] = None,
        broker_port: Optional[int] = None,
        topic_prefix: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        publish_timeout: float = 5.0,
    ):
        """
        Args:
            broker_host: MQTT broker hostname
            broker_port: MQTT broker port
            topic_prefix: Prefix prepended to every event topic
            username: Optional broker username (default: settings.mqtt_username)
            password: Optional broker password (default: settings.mqtt_password)
            publish_timeout: Seconds to wait for the message to leave the client
        """
        self.broker_host = broker_host or settings.mqtt_broker_host
        self.broker_port = broker_port or settings.mqtt_broker_port
        self.topic_prefix = (topic_prefix or settings.mqtt_topic_prefix).strip("/")
        self.username = username or settings.mqtt_username
        self.password = password or settings.mqtt_password
        self.publish_timeout = publish_timeout

    def topic_for(self, event_name: str) -> str:
        return f"{self.topic_prefix}/{event_name}"

    def publish(self, event_name: str, record: RiskRecord) -> None:
        """
        Publish a record as JSON under the event's topic.

        Raises:
            BroadcastException: broker unreachable or publish rejected
        """
        topic = self.topic_for(event_name)
        payload = json.dumps(record.model_dump(mode="json", by_alias=True))

        client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
        if self.username and self.password:
            client.username_pw_set(self.username, self.password)

        try:
            client.connect(self.broker_host, self.broker_port, keepalive=60)
        except (OSError, ValueError) as e:
            raise BroadcastException(
                f"MQTT broker unreachable: {e}",
                {"host": self.broker_host, "port": self.broker_port},
            ) from e

        client.loop_start()
        try:
            info = client.publish(topic, payload, qos=0)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                raise BroadcastException(
                    f"MQTT publish rejected (rc={info.rc})", {"topic": topic}
                )
            try:
                info.wait_for_publish(timeout=self.publish_timeout)
            except (RuntimeError, ValueError) as e:
                raise BroadcastException(f"MQTT publish failed: {e}", {"topic": topic}) from e
        finally:
            client.loop_stop()
            client.disconnect()

        logger.info(f"Broadcast {event_name} for record {record.id} to {topic}")


broadcaster = MqttBroadcaster()
