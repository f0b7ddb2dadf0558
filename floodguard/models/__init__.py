"""
Database models for FloodGuard.
"""

from .base import BaseModel
from .risk_record import FloodRiskRecord

__all__ = [
    "BaseModel",
    "FloodRiskRecord",
]
