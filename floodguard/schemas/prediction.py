"""
Prediction API schemas.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from floodguard.schemas.risk import CamelModel, RiskRecord


class RiskDistribution(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class RiskStats(CamelModel):
    model_config = ConfigDict(protected_namespaces=())

    total: int
    risk_distribution: RiskDistribution
    latest: Optional[RiskRecord] = None
    model_status: str


class TaskSubmissionResponse(BaseModel):
    task_id: str
    status: str
