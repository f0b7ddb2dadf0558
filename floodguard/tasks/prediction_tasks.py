import logging
from typing import Any, Dict

from floodguard.core.celery_app import celery_app
from floodguard.services.orchestrator import get_orchestrator

logger = logging.getLogger(__name__)


@celery_app.task
def run_prediction_cycle(trigger: str = "scheduled") -> Dict[str, Any]:
    """
    Run one fetch-score-persist-broadcast-alert cycle.

    Scheduled by Celery beat and enqueued by the manual trigger endpoint.
    Returns the cycle result as a JSON-serializable dict.
    """
    logger.info(f"Prediction cycle task received ({trigger})")
    result = get_orchestrator().run_cycle(trigger=trigger)
    return result.to_dict()
