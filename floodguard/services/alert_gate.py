"""
Decides whether a stored risk record warrants a push alert, and sends it once.
"""

import logging
from typing import Optional

from floodguard.core.config import settings
from floodguard.core.exceptions import DeliveryException
from floodguard.core.monitoring import record_alert
from floodguard.schemas.risk import AlertPayload, RiskLevel, RiskRecord
from floodguard.services.notifier import FcmNotifier
from floodguard.services.record_store import RiskRecordStore

logger = logging.getLogger(__name__)


def build_alert_payload(record: RiskRecord, topic: str) -> AlertPayload:
    level = record.risk_level.value
    return AlertPayload(
        title=f"⚠️ Flood Alert: {level.upper()} Risk",
        body=(
            f"{record.prediction}% flood probability detected near "
            f"{record.location.lat:.2f}, {record.location.lng:.2f}. "
            f"Rainfall: {record.rainfall:.1f}mm"
        ),
        topic=topic,
        data={
            "lat": str(record.location.lat),
            "lng": str(record.location.lng),
            "risk": str(record.prediction),
            "level": level,
        },
    )


class AlertGate:
    """
    Sends at most one alert per record, for medium and high risk only.
    """

    def __init__(
        self,
        store: RiskRecordStore,
        notifier: Optional[FcmNotifier],
        topic: Optional[str] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.topic = topic or settings.alert_topic

    def maybe_alert(self, record: RiskRecord) -> bool:
        """
        Alert on the record if it qualifies.

        Returns:
            True if an alert was delivered by this call
        """
        if record.risk_level == RiskLevel.LOW:
            return False

        if record.sent_alert:
            logger.debug(f"Alert already sent for record {record.id}")
            return False

        if self.notifier is None or not self.notifier.is_configured:
            logger.info(
                f"Notifier not configured, skipping {record.risk_level.value} risk alert"
            )
            record_alert("skipped")
            return False

        payload = build_alert_payload(record, self.topic)
        try:
            self.notifier.send(payload)
        except DeliveryException as e:
            logger.error(f"Flood alert delivery failed: {e.message}")
            record_alert("failed")
            return False

        if record.id is not None:
            self.store.update_sent_alert(record.id)
        record.mark_alert_sent()
        record_alert("sent")
        logger.info(
            f"Flood alert sent for record {record.id} "
            f"({record.prediction}%, {record.risk_level.value})"
        )
        return True
