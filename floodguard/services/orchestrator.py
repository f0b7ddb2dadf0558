"""
Prediction cycle orchestration.

One cycle: fetch the three signals concurrently, score them, persist the
record, broadcast it, then hand it to the alert gate. Cycles never overlap;
a trigger that arrives while one is running is dropped.
"""

import asyncio
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from floodguard.core.config import settings
from floodguard.core.constants import FLOOD_UPDATE_EVENT
from floodguard.core.exceptions import AppException
from floodguard.core.middleware import request_id_context
from floodguard.core.monitoring import record_cycle
from floodguard.schemas.risk import (
    AcquisitionContext,
    DataSource,
    Location,
    Reading,
    RiskRecord,
)
from floodguard.services.alert_gate import AlertGate
from floodguard.services.broadcaster import MqttBroadcaster, broadcaster
from floodguard.services.notifier import FcmNotifier
from floodguard.services.record_store import RiskRecordStore, record_store
from floodguard.services.risk_engine import RiskEngine, risk_engine
from floodguard.services.sources import SourceClient, build_source_clients

logger = logging.getLogger(__name__)


class CycleState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SCORING = "scoring"
    PERSISTING = "persisting"
    BROADCASTING = "broadcasting"
    ALERTING = "alerting"


class CycleOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class CycleResult:
    cycle_id: str
    trigger: str
    outcome: CycleOutcome
    record: Optional[RiskRecord] = None
    failed_state: Optional[CycleState] = None
    alert_sent: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycle_id": self.cycle_id,
            "trigger": self.trigger,
            "outcome": self.outcome.value,
            "record": (
                self.record.model_dump(mode="json", by_alias=True) if self.record else None
            ),
            "failed_state": self.failed_state.value if self.failed_state else None,
            "alert_sent": self.alert_sent,
            "error": self.error,
        }


class CycleOrchestrator:
    """
    Runs prediction cycles against injected collaborators.
    """

    def __init__(
        self,
        sources: Tuple[SourceClient, SourceClient, SourceClient],
        engine: RiskEngine,
        store: RiskRecordStore,
        broadcaster: MqttBroadcaster,
        alert_gate: AlertGate,
        context: AcquisitionContext,
    ):
        """
        Args:
            sources: Rainfall, water level and soil moisture clients, in that order
            engine: Risk scoring engine
            store: Risk record persistence
            broadcaster: Real-time record publisher
            alert_gate: Push alert decision and delivery
            context: Location the readings are fetched for
        """
        self.rainfall_source, self.water_level_source, self.soil_moisture_source = sources
        self.engine = engine
        self.store = store
        self.broadcaster = broadcaster
        self.alert_gate = alert_gate
        self.context = context

        self._in_flight = threading.Lock()
        self._state = CycleState.IDLE

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def run_cycle(self, trigger: str = "scheduled") -> CycleResult:
        """
        Run one cycle, or drop the trigger if a cycle is already in flight.
        """
        cycle_id = uuid.uuid4().hex[:12]

        if not self._in_flight.acquire(blocking=False):
            logger.warning(
                f"Cycle already in progress ({self._state.value}), dropping {trigger} trigger"
            )
            record_cycle(CycleOutcome.SKIPPED.value)
            return CycleResult(
                cycle_id=cycle_id, trigger=trigger, outcome=CycleOutcome.SKIPPED
            )

        token = request_id_context.set(f"cycle-{cycle_id}")
        start_time = time.time()
        try:
            result = self._execute(cycle_id, trigger)
        finally:
            self._state = CycleState.IDLE
            request_id_context.reset(token)
            self._in_flight.release()

        duration = time.time() - start_time
        record_cycle(result.outcome.value, duration)
        logger.info(
            f"Cycle {cycle_id} {result.outcome.value} in {duration:.2f}s"
        )
        return result

    def _execute(self, cycle_id: str, trigger: str) -> CycleResult:
        logger.info(f"=== Prediction cycle {cycle_id} started ({trigger}) ===")
        record: Optional[RiskRecord] = None

        try:
            self._state = CycleState.FETCHING
            rainfall, water_level, soil_moisture = asyncio.run(self._fetch_all())
            logger.info(f"Rainfall: {rainfall.value}mm [{rainfall.source}]")
            logger.info(f"Water level: {water_level.value}m [{water_level.source}]")
            logger.info(f"Soil moisture: {soil_moisture.value} [{soil_moisture.source}]")

            self._state = CycleState.SCORING
            score = self.engine.assess(
                rainfall.value, water_level.value, soil_moisture.value
            )
            record = RiskRecord(
                location=Location(lat=self.context.lat, lng=self.context.lng),
                rainfall=rainfall.value,
                water_level=water_level.value,
                soil_moisture=soil_moisture.value,
                data_source=DataSource(
                    rainfall=rainfall.source,
                    water_level=water_level.source,
                    soil_moisture=soil_moisture.source,
                ),
                prediction=score.value,
                scoring_mode=score.mode,
            )
            logger.info(
                f"Prediction: {record.prediction}% ({record.risk_level.value.upper()}) "
                f"[{score.mode.value}]"
            )

            self._state = CycleState.PERSISTING
            record_id = self.store.save(record)
            record = record.model_copy(update={"id": record_id})

            self._state = CycleState.BROADCASTING
            self.broadcaster.publish(FLOOD_UPDATE_EVENT, record)

            self._state = CycleState.ALERTING
            alert_sent = self.alert_gate.maybe_alert(record)

        except AppException as e:
            logger.error(f"Cycle {cycle_id} failed while {self._state.value}: {e.message}")
            return CycleResult(
                cycle_id=cycle_id,
                trigger=trigger,
                outcome=CycleOutcome.FAILED,
                record=record,
                failed_state=self._state,
                error=e.message,
            )
        except Exception as e:
            logger.error(
                f"Unexpected error in cycle {cycle_id} while {self._state.value}: {e}",
                exc_info=True,
            )
            return CycleResult(
                cycle_id=cycle_id,
                trigger=trigger,
                outcome=CycleOutcome.FAILED,
                record=record,
                failed_state=self._state,
                error=str(e),
            )

        return CycleResult(
            cycle_id=cycle_id,
            trigger=trigger,
            outcome=CycleOutcome.COMPLETED,
            record=record,
            alert_sent=alert_sent,
        )

    async def _fetch_all(self) -> Tuple[Reading, Reading, Reading]:
        rainfall, water_level, soil_moisture = await asyncio.gather(
            self.rainfall_source.fetch(self.context),
            self.water_level_source.fetch(self.context),
            self.soil_moisture_source.fetch(self.context),
        )
        return rainfall, water_level, soil_moisture


@lru_cache(maxsize=1)
def get_orchestrator() -> CycleOrchestrator:
    """Process-wide orchestrator wired from settings."""
    return CycleOrchestrator(
        sources=build_source_clients(settings),
        engine=risk_engine,
        store=record_store,
        broadcaster=broadcaster,
        alert_gate=AlertGate(record_store, FcmNotifier.from_settings()),
        context=AcquisitionContext(lat=settings.location_lat, lng=settings.location_lng),
    )
