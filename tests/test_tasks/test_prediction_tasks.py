from unittest.mock import patch

from floodguard.services.orchestrator import CycleOutcome, CycleResult
from floodguard.tasks.prediction_tasks import run_prediction_cycle


@patch("floodguard.tasks.prediction_tasks.get_orchestrator")
def test_run_prediction_cycle(mock_get_orchestrator, make_record):
    orchestrator = mock_get_orchestrator.return_value
    orchestrator.run_cycle.return_value = CycleResult(
        cycle_id="abc123",
        trigger="scheduled",
        outcome=CycleOutcome.COMPLETED,
        record=make_record(prediction=74, record_id=5),
        alert_sent=True,
    )

    result = run_prediction_cycle()

    orchestrator.run_cycle.assert_called_once_with(trigger="scheduled")
    assert result["outcome"] == "completed"
    assert result["record"]["id"] == 5
    assert result["alert_sent"] is True


@patch("floodguard.tasks.prediction_tasks.get_orchestrator")
def test_run_prediction_cycle_manual_skipped(mock_get_orchestrator):
    orchestrator = mock_get_orchestrator.return_value
    orchestrator.run_cycle.return_value = CycleResult(
        cycle_id="def456", trigger="manual", outcome=CycleOutcome.SKIPPED
    )

    result = run_prediction_cycle(trigger="manual")

    orchestrator.run_cycle.assert_called_once_with(trigger="manual")
    assert result["outcome"] == "skipped"
    assert result["record"] is None


def test_beat_schedule_targets_task():
    from floodguard.core.celery_app import celery_app
    from floodguard.core.config import settings

    entry = celery_app.conf.beat_schedule["run-prediction-cycle"]
    assert entry["task"] == run_prediction_cycle.name
    assert entry["schedule"] == settings.cycle_interval_seconds
    assert entry["kwargs"] == {"trigger": "scheduled"}


def test_worker_runs_one_cycle_at_a_time():
    from floodguard.core.celery_app import celery_app

    assert celery_app.conf.worker_pool == "solo"
    assert celery_app.conf.worker_concurrency == 1
    assert celery_app.conf.worker_prefetch_multiplier == 1
