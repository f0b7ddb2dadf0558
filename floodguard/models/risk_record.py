from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String

from floodguard.core.database import Base
from floodguard.models.base import BaseModel
from floodguard.schemas.risk import DataSource, Location, RiskRecord


class FloodRiskRecord(Base, BaseModel):
    """
    One persisted prediction cycle result.
    """

    __tablename__ = "flood_risk_records"

    timestamp = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)

    rainfall = Column(Float, nullable=False)
    water_level = Column(Float, nullable=False)
    soil_moisture = Column(Float, nullable=False)

    # Provenance: provider name or "fallback"
    rainfall_source = Column(String(64), nullable=False)
    water_level_source = Column(String(64), nullable=False)
    soil_moisture_source = Column(String(64), nullable=False)

    prediction = Column(Integer, nullable=False)
    risk_level = Column(String(16), nullable=False, index=True)  # low, medium, high
    scoring_mode = Column(String(16), nullable=False)  # model, heuristic
    sent_alert = Column(Boolean, default=False, nullable=False)

    @classmethod
    def from_record(cls, record: RiskRecord) -> "FloodRiskRecord":
        return cls(
            timestamp=record.timestamp,
            lat=record.location.lat,
            lng=record.location.lng,
            rainfall=record.rainfall,
            water_level=record.water_level,
            soil_moisture=record.soil_moisture,
            rainfall_source=record.data_source.rainfall,
            water_level_source=record.data_source.water_level,
            soil_moisture_source=record.data_source.soil_moisture,
            prediction=record.prediction,
            risk_level=record.risk_level.value,
            scoring_mode=record.scoring_mode.value,
            sent_alert=record.sent_alert,
        )

    def to_record(self) -> RiskRecord:
        return RiskRecord(
            id=self.id,
            timestamp=self.timestamp,
            location=Location(lat=self.lat, lng=self.lng),
            rainfall=self.rainfall,
            water_level=self.water_level,
            soil_moisture=self.soil_moisture,
            data_source=DataSource(
                rainfall=self.rainfall_source,
                water_level=self.water_level_source,
                soil_moisture=self.soil_moisture_source,
            ),
            prediction=self.prediction,
            scoring_mode=self.scoring_mode,
            sent_alert=bool(self.sent_alert),
        )
