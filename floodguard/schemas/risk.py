"""
Pydantic schemas for readings and risk records.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from floodguard.core.constants import (
    FALLBACK_SOURCE,
    HIGH_RISK_THRESHOLD,
    MEDIUM_RISK_THRESHOLD,
)


class RiskLevel(str, Enum):
    """Flood risk levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ScoringMode(str, Enum):
    """Scoring path of the risk engine."""

    MODEL = "model"
    HEURISTIC = "heuristic"


def classify_risk(prediction: int) -> RiskLevel:
    """Map a 0-100 prediction onto its risk level."""
    if prediction < MEDIUM_RISK_THRESHOLD:
        return RiskLevel.LOW
    if prediction < HIGH_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Location(CamelModel):
    lat: float
    lng: float


class AcquisitionContext(CamelModel):
    """Inputs shared by all data sources for one cycle."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class Reading(CamelModel):
    """One external observation plus its provenance."""

    model_config = ConfigDict(frozen=True)

    value: float
    source: str = Field(..., min_length=1)

    @property
    def is_fallback(self) -> bool:
        return self.source == FALLBACK_SOURCE


class DataSource(CamelModel):
    rainfall: str
    water_level: str
    soil_moisture: str


class RiskRecord(CamelModel):
    """Output of one prediction cycle."""

    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = Field(default=None, frozen=True)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), frozen=True
    )
    location: Location = Field(frozen=True)
    rainfall: float = Field(frozen=True)
    water_level: float = Field(frozen=True)
    soil_moisture: float = Field(frozen=True)
    data_source: DataSource = Field(frozen=True)
    prediction: int = Field(ge=0, le=100, frozen=True)
    scoring_mode: ScoringMode = Field(default=ScoringMode.HEURISTIC, frozen=True)
    sent_alert: bool = False

    @computed_field(alias="riskLevel")
    @property
    def risk_level(self) -> RiskLevel:
        return classify_risk(self.prediction)

    def __setattr__(self, name, value):
        if name == "sent_alert" and self.sent_alert and not value:
            raise ValueError("sent_alert cannot be reset once an alert was sent")
        super().__setattr__(name, value)

    def mark_alert_sent(self) -> None:
        """Flip sent_alert to True. The flag never reverts."""
        self.sent_alert = True


class AlertPayload(BaseModel):
    """Push notification handed to the notifier."""

    title: str
    body: str
    topic: str
    data: Dict[str, str]
