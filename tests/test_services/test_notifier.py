import base64
import json
from unittest.mock import MagicMock, patch

import pytest
from firebase_admin.exceptions import UnavailableError

from floodguard.core.exceptions import ConfigurationException, DeliveryException
from floodguard.schemas.risk import AlertPayload
from floodguard.services.notifier import FcmNotifier, load_service_account

SERVICE_ACCOUNT = {
    "type": "service_account",
    "project_id": "floodguard-test",
    "client_email": "alerts@floodguard-test.iam.gserviceaccount.com",
}

PAYLOAD = AlertPayload(
    title="⚠️ Flood Alert: HIGH Risk",
    body="78% flood probability detected near 6.45, 3.39. Rainfall: 45.0mm",
    topic="flood_alerts",
    data={"lat": "6.45", "lng": "3.39", "risk": "78", "level": "high"},
)


@pytest.fixture
def mock_firebase():
    with patch("floodguard.services.notifier.credentials.Certificate") as cert, patch(
        "floodguard.services.notifier.firebase_admin.get_app", side_effect=ValueError
    ), patch("floodguard.services.notifier.firebase_admin.initialize_app") as init_app:
        init_app.return_value = MagicMock(name="firebase-app")
        yield {"certificate": cert, "initialize_app": init_app}


def test_base64_config_takes_precedence(tmp_path):
    encoded = base64.b64encode(json.dumps(SERVICE_ACCOUNT).encode()).decode()
    credentials_file = tmp_path / "service-account.json"
    credentials_file.write_text(json.dumps({"project_id": "from-file"}))

    account = load_service_account(
        encoded, json.dumps({"project_id": "from-json"}), str(credentials_file)
    )

    assert account["project_id"] == "floodguard-test"


def test_json_config_before_file(tmp_path):
    credentials_file = tmp_path / "service-account.json"
    credentials_file.write_text(json.dumps({"project_id": "from-file"}))

    account = load_service_account(None, json.dumps(SERVICE_ACCOUNT), str(credentials_file))

    assert account["project_id"] == "floodguard-test"


def test_credentials_file_used_last(tmp_path):
    credentials_file = tmp_path / "service-account.json"
    credentials_file.write_text(json.dumps(SERVICE_ACCOUNT))

    assert load_service_account(None, None, str(credentials_file)) == SERVICE_ACCOUNT


def test_no_credentials_source(tmp_path):
    assert load_service_account(None, None, str(tmp_path / "missing.json")) is None


def test_invalid_json_config_raises():
    with pytest.raises(ConfigurationException):
        load_service_account(None, "{not json", None)


def test_unconfigured_notifier(tmp_path, mock_firebase):
    notifier = FcmNotifier(credentials_file=str(tmp_path / "missing.json"))

    assert notifier.is_configured is False
    mock_firebase["initialize_app"].assert_not_called()
    with pytest.raises(DeliveryException):
        notifier.send(PAYLOAD)


def test_invalid_certificate_leaves_notifier_unconfigured(mock_firebase):
    mock_firebase["certificate"].side_effect = ValueError("Invalid service account")
    notifier = FcmNotifier(config_json=json.dumps({"type": "user"}))

    assert notifier.is_configured is False


@patch("floodguard.services.notifier.messaging.send")
def test_send_targets_topic(mock_send, mock_firebase):
    mock_send.return_value = "projects/floodguard-test/messages/123"
    notifier = FcmNotifier(config_json=json.dumps(SERVICE_ACCOUNT))

    message_id = notifier.send(PAYLOAD)

    assert message_id == "projects/floodguard-test/messages/123"
    mock_firebase["initialize_app"].assert_called_once()
    message = mock_send.call_args[0][0]
    assert message.topic == "flood_alerts"
    assert message.notification.title == PAYLOAD.title
    assert message.data["level"] == "high"
    assert mock_send.call_args[1]["app"] is mock_firebase["initialize_app"].return_value


@patch("floodguard.services.notifier.messaging.send")
def test_send_failure_raises_delivery_exception(mock_send, mock_firebase):
    mock_send.side_effect = UnavailableError("FCM unavailable")
    notifier = FcmNotifier(config_json=json.dumps(SERVICE_ACCOUNT))

    with pytest.raises(DeliveryException):
        notifier.send(PAYLOAD)
