"""
Monitoring and metrics configuration for FloodGuard.
"""

import logging

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# Prometheus metrics
CYCLE_COUNT = Counter(
    "floodguard_cycles_total", "Prediction cycles by outcome", ["outcome"]
)

CYCLE_DURATION = Histogram(
    "floodguard_cycle_duration_seconds", "Prediction cycle duration in seconds"
)

SOURCE_FETCHES = Counter(
    "floodguard_source_fetch_total",
    "Data source fetches by provider and outcome",
    ["source", "outcome"],
)

RISK_SCORE = Gauge("floodguard_risk_score", "Most recent flood risk prediction")

SCORING_OPERATIONS = Counter(
    "floodguard_scoring_total", "Risk scores computed by scoring path", ["mode"]
)

ALERT_OPERATIONS = Counter(
    "floodguard_alerts_total", "Alert gate decisions by outcome", ["outcome"]
)


def record_cycle(outcome: str, duration: float = None):
    """Record prediction cycle metrics."""
    CYCLE_COUNT.labels(outcome=outcome).inc()
    if duration is not None:
        CYCLE_DURATION.observe(duration)


def record_source_fetch(source: str, success: bool = True):
    """Record data source fetch metrics."""
    outcome = "success" if success else "fallback"
    SOURCE_FETCHES.labels(source=source, outcome=outcome).inc()


def record_score(value: int, mode: str):
    """Record risk scoring metrics."""
    RISK_SCORE.set(value)
    SCORING_OPERATIONS.labels(mode=mode).inc()


def record_alert(outcome: str):
    """Record alert gate metrics."""
    ALERT_OPERATIONS.labels(outcome=outcome).inc()


def get_metrics() -> bytes:
    """Get Prometheus metrics in text format."""
    return generate_latest()
