from celery import Celery

from floodguard.core.config import settings

celery_app = Celery(
    "floodguard_worker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["floodguard.tasks.prediction_tasks"],
)

celery_app.conf.task_routes = {
    "floodguard.tasks.prediction_tasks.*": {"queue": "predictions"},
}

# Beat ticks and manual triggers share one process, so the orchestrator lock serializes cycles
celery_app.conf.worker_pool = "solo"
celery_app.conf.worker_concurrency = 1
celery_app.conf.worker_prefetch_multiplier = 1

celery_app.conf.beat_schedule = {
    "run-prediction-cycle": {
        "task": "floodguard.tasks.prediction_tasks.run_prediction_cycle",
        "schedule": settings.cycle_interval_seconds,
        "kwargs": {"trigger": "scheduled"},
    },
}
