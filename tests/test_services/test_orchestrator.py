import asyncio
import threading
import time
from unittest.mock import MagicMock

import httpx
import pytest

from floodguard.core.exceptions import BroadcastException, PersistenceException
from floodguard.core.middleware import request_id_context
from floodguard.schemas.risk import AcquisitionContext, Reading, ScoringMode
from floodguard.services.alert_gate import AlertGate
from floodguard.services.broadcaster import MqttBroadcaster
from floodguard.services.orchestrator import (
    CycleOrchestrator,
    CycleOutcome,
    CycleState,
)
from floodguard.services.record_store import RiskRecordStore
from floodguard.services.risk_engine import RiskEngine
from floodguard.services.sources import (
    RainfallClient,
    SoilMoistureClient,
    WaterLevelClient,
)


class FakeSource:
    def __init__(self, reading):
        self.reading = reading
        self.calls = 0

    async def fetch(self, context):
        self.calls += 1
        return self.reading


@pytest.fixture
def sources():
    return (
        FakeSource(Reading(value=45.0, source="OpenWeatherMap")),
        FakeSource(Reading(value=4.2, source="USGS")),
        FakeSource(Reading(value=0.7, source="fallback")),
    )


@pytest.fixture
def store():
    mock = MagicMock(spec=RiskRecordStore)
    mock.save.return_value = 11
    return mock


@pytest.fixture
def broadcaster():
    return MagicMock(spec=MqttBroadcaster)


@pytest.fixture
def alert_gate():
    gate = MagicMock(spec=AlertGate)
    gate.maybe_alert.return_value = True
    return gate


@pytest.fixture
def orchestrator(sources, tmp_path, store, broadcaster, alert_gate):
    return CycleOrchestrator(
        sources=sources,
        engine=RiskEngine(tmp_path / "no-model"),
        store=store,
        broadcaster=broadcaster,
        alert_gate=alert_gate,
        context=AcquisitionContext(lat=6.45, lng=3.39),
    )


def test_cycle_runs_all_stages(orchestrator, sources, store, broadcaster, alert_gate):
    result = orchestrator.run_cycle(trigger="manual")

    assert result.outcome == CycleOutcome.COMPLETED
    assert result.alert_sent is True
    assert all(source.calls == 1 for source in sources)

    saved = store.save.call_args[0][0]
    assert saved.id is None
    assert saved.prediction == 74
    assert saved.scoring_mode == ScoringMode.HEURISTIC
    assert saved.data_source.soil_moisture == "fallback"
    assert saved.location.lat == 6.45

    event, published = broadcaster.publish.call_args[0]
    assert event == "floodUpdate"
    assert published.id == 11
    assert published.prediction == 74

    alert_gate.maybe_alert.assert_called_once_with(published)
    assert result.record.id == 11
    assert orchestrator.state == CycleState.IDLE


def test_persistence_failure_ends_cycle_early(orchestrator, store, broadcaster, alert_gate):
    store.save.side_effect = PersistenceException("database is locked")

    result = orchestrator.run_cycle()

    assert result.outcome == CycleOutcome.FAILED
    assert result.failed_state == CycleState.PERSISTING
    assert result.error == "database is locked"
    broadcaster.publish.assert_not_called()
    alert_gate.maybe_alert.assert_not_called()
    assert orchestrator.state == CycleState.IDLE


def test_broadcast_failure_skips_alerting(orchestrator, broadcaster, alert_gate):
    broadcaster.publish.side_effect = BroadcastException("MQTT broker unreachable")

    result = orchestrator.run_cycle()

    assert result.outcome == CycleOutcome.FAILED
    assert result.failed_state == CycleState.BROADCASTING
    assert result.record.id == 11
    alert_gate.maybe_alert.assert_not_called()


def test_unexpected_error_is_contained(orchestrator, alert_gate):
    alert_gate.maybe_alert.side_effect = KeyError("boom")

    result = orchestrator.run_cycle()

    assert result.outcome == CycleOutcome.FAILED
    assert result.failed_state == CycleState.ALERTING


def test_trigger_during_cycle_is_dropped(orchestrator, store):
    entered = threading.Event()
    release = threading.Event()
    results = {}

    def slow_save(record):
        entered.set()
        release.wait(timeout=5)
        return 11

    store.save.side_effect = slow_save

    worker = threading.Thread(
        target=lambda: results.setdefault("first", orchestrator.run_cycle("scheduled"))
    )
    worker.start()
    assert entered.wait(timeout=5)

    assert orchestrator.busy is True
    dropped = orchestrator.run_cycle("manual")

    release.set()
    worker.join(timeout=5)

    assert dropped.outcome == CycleOutcome.SKIPPED
    assert dropped.record is None
    assert results["first"].outcome == CycleOutcome.COMPLETED
    assert store.save.call_count == 1
    assert orchestrator.busy is False


def test_cycle_id_scopes_log_context(orchestrator, store):
    before = request_id_context.get()
    seen = []
    store.save.side_effect = lambda record: seen.append(request_id_context.get()) or 11

    result = orchestrator.run_cycle()

    assert seen == [f"cycle-{result.cycle_id}"]
    assert request_id_context.get() == before


def test_result_serializes_for_celery(orchestrator):
    payload = orchestrator.run_cycle().to_dict()

    assert payload["outcome"] == "completed"
    assert payload["record"]["riskLevel"] == "high"
    assert payload["failed_state"] is None


def delayed_transport(delay, payload=None, timeout=False):
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(delay)
        if timeout:
            raise httpx.ReadTimeout("timed out", request=request)
        return httpx.Response(200, json=payload)

    return httpx.MockTransport(handler)


def test_sources_are_fetched_concurrently(tmp_path, store, broadcaster, alert_gate):
    delay = 0.4
    sources = (
        RainfallClient(
            "https://owm.test/data/2.5",
            "secret",
            transport=delayed_transport(delay, {"list": [{"rain": {"3h": 45.0}}]}),
        ),
        WaterLevelClient(
            "https://usgs.test/nwis",
            "01646500",
            transport=delayed_transport(delay, timeout=True),
        ),
        SoilMoistureClient(
            "https://soilgrids.test",
            transport=delayed_transport(
                delay,
                {"properties": {"layers": [{"depths": [{"values": {"mean": 70}}]}]}},
            ),
        ),
    )
    orchestrator = CycleOrchestrator(
        sources=sources,
        engine=RiskEngine(tmp_path / "no-model"),
        store=store,
        broadcaster=broadcaster,
        alert_gate=alert_gate,
        context=AcquisitionContext(lat=6.45, lng=3.39),
    )

    start = time.monotonic()
    result = orchestrator.run_cycle()
    elapsed = time.monotonic() - start

    assert result.outcome == CycleOutcome.COMPLETED
    record = result.record
    assert (record.rainfall, record.data_source.rainfall) == (45.0, "OpenWeatherMap")
    assert (record.water_level, record.data_source.water_level) == (2.1, "fallback")
    assert record.soil_moisture == pytest.approx(0.7)
    assert record.data_source.soil_moisture == "SoilGrids"
    # Bounded by the slowest fetch, not the sum of all three
    assert elapsed < delay * 2
