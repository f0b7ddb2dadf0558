"""
Base model with common fields and functionality.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer


class BaseModel:
    """Base model with common fields."""

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)
