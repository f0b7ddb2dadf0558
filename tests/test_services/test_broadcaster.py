import json
from unittest.mock import patch

import paho.mqtt.client as mqtt
import pytest

from floodguard.core.exceptions import BroadcastException
from floodguard.services.broadcaster import MqttBroadcaster


@pytest.fixture
def mock_mqtt_client():
    with patch("floodguard.services.broadcaster.mqtt.Client") as mock_cls:
        client = mock_cls.return_value
        client.publish.return_value.rc = mqtt.MQTT_ERR_SUCCESS
        yield client


def test_publish_sends_record_json_on_event_topic(mock_mqtt_client, make_record):
    broadcaster = MqttBroadcaster(
        broker_host="broker.test", broker_port=1883, topic_prefix="floodguard"
    )
    record = make_record(prediction=78, record_id=9)

    broadcaster.publish("floodUpdate", record)

    mock_mqtt_client.connect.assert_called_once_with("broker.test", 1883, keepalive=60)
    topic, payload = mock_mqtt_client.publish.call_args[0]
    assert topic == "floodguard/floodUpdate"
    assert mock_mqtt_client.publish.call_args[1]["qos"] == 0

    body = json.loads(payload)
    assert body["id"] == 9
    assert body["prediction"] == 78
    assert body["riskLevel"] == "high"
    assert body["dataSource"]["waterLevel"] == "USGS"
    assert body["sentAlert"] is False
    mock_mqtt_client.disconnect.assert_called_once()


def test_publish_uses_credentials(mock_mqtt_client, make_record):
    broadcaster = MqttBroadcaster(
        broker_host="broker.test", username="flood", password="guard"
    )

    broadcaster.publish("floodUpdate", make_record())

    mock_mqtt_client.username_pw_set.assert_called_once_with("flood", "guard")


def test_unreachable_broker_raises(mock_mqtt_client, make_record):
    mock_mqtt_client.connect.side_effect = ConnectionRefusedError("refused")
    broadcaster = MqttBroadcaster(broker_host="broker.test")

    with pytest.raises(BroadcastException):
        broadcaster.publish("floodUpdate", make_record())

    mock_mqtt_client.publish.assert_not_called()


def test_rejected_publish_raises_and_disconnects(mock_mqtt_client, make_record):
    mock_mqtt_client.publish.return_value.rc = mqtt.MQTT_ERR_NO_CONN
    broadcaster = MqttBroadcaster(broker_host="broker.test")

    with pytest.raises(BroadcastException):
        broadcaster.publish("floodUpdate", make_record())

    mock_mqtt_client.loop_stop.assert_called_once()
    mock_mqtt_client.disconnect.assert_called_once()
