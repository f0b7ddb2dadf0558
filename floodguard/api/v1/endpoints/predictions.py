import logging
from typing import Any, Dict, List

from celery.result import AsyncResult
from fastapi import APIRouter, Depends, Query, status

from floodguard.api import deps
from floodguard.core.celery_app import celery_app
from floodguard.core.exceptions import ResourceNotFoundException
from floodguard.schemas.prediction import RiskStats, TaskSubmissionResponse
from floodguard.schemas.risk import RiskRecord
from floodguard.services.record_store import RiskRecordStore
from floodguard.tasks.prediction_tasks import run_prediction_cycle

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/latest", response_model=RiskRecord)
def get_latest_prediction(store: RiskRecordStore = Depends(deps.get_record_store)):
    """
    Most recent risk record.
    """
    latest = store.latest()
    if latest is None:
        raise ResourceNotFoundException("No data available")
    return latest


@router.get("/history", response_model=List[RiskRecord])
def get_prediction_history(
    limit: int = Query(50, ge=1, le=500),
    store: RiskRecordStore = Depends(deps.get_record_store),
):
    """
    Newest-first risk records.
    """
    return store.history(limit=limit)


@router.get("/stats", response_model=RiskStats)
def get_prediction_stats(store: RiskRecordStore = Depends(deps.get_record_store)):
    """
    Record totals per risk level, the latest record and the model status.
    """
    return store.stats()


@router.post(
    "/trigger",
    response_model=TaskSubmissionResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def trigger_prediction_cycle():
    """
    Queue a prediction cycle. Dropped by the worker if one is already running.
    """
    task = run_prediction_cycle.delay(trigger="manual")
    logger.info(f"Manual prediction cycle queued: {task.id}")
    return {"task_id": task.id, "status": "queued"}


@router.get("/tasks/{task_id}")
def get_cycle_status(task_id: str) -> Dict[str, Any]:
    """
    Status of a queued prediction cycle.
    """
    task_result = AsyncResult(task_id, app=celery_app)
    return {
        "task_id": task_id,
        "status": task_result.status,
        "result": task_result.result if task_result.ready() else None,
    }
