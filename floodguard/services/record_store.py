"""
Persistence of risk records.
"""

import logging
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from floodguard.core.database import SessionLocal
from floodguard.core.exceptions import PersistenceException
from floodguard.models.risk_record import FloodRiskRecord
from floodguard.schemas.prediction import RiskDistribution, RiskStats
from floodguard.schemas.risk import RiskRecord, ScoringMode

logger = logging.getLogger(__name__)


class RiskRecordStore:
    """
    Stores risk records, one short-lived session per operation.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def save(self, record: RiskRecord) -> int:
        """Insert a record and return its generated id."""
        db = self._session_factory()
        try:
            row = FloodRiskRecord.from_record(record)
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info(
                f"Saved risk record {row.id}: prediction={row.prediction} level={row.risk_level}"
            )
            return row.id
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save risk record: {e}")
            raise PersistenceException(f"Failed to save risk record: {e}") from e
        finally:
            db.close()

    def update_sent_alert(self, record_id: int) -> bool:
        """Set sent_alert on a stored record.

        The update only matches rows whose flag is still false, so the flag
        flips at most once. Returns True if this call flipped it.
        """
        db = self._session_factory()
        try:
            updated = (
                db.query(FloodRiskRecord)
                .filter(
                    FloodRiskRecord.id == record_id,
                    FloodRiskRecord.sent_alert.is_(False),
                )
                .update({FloodRiskRecord.sent_alert: True}, synchronize_session=False)
            )
            db.commit()
            if not updated:
                logger.debug(f"Risk record {record_id} already marked as alerted")
            return bool(updated)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to mark alert sent for record {record_id}: {e}")
            raise PersistenceException(
                f"Failed to mark alert sent: {e}", {"record_id": record_id}
            ) from e
        finally:
            db.close()

    def latest(self) -> Optional[RiskRecord]:
        """Most recent record by timestamp, or None."""
        db = self._session_factory()
        try:
            row = (
                db.query(FloodRiskRecord)
                .order_by(FloodRiskRecord.timestamp.desc(), FloodRiskRecord.id.desc())
                .first()
            )
            return row.to_record() if row else None
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to read latest record: {e}") from e
        finally:
            db.close()

    def history(self, limit: int = 50) -> List[RiskRecord]:
        """Newest-first records, at most `limit`."""
        db = self._session_factory()
        try:
            rows = (
                db.query(FloodRiskRecord)
                .order_by(FloodRiskRecord.timestamp.desc(), FloodRiskRecord.id.desc())
                .limit(limit)
                .all()
            )
            return [row.to_record() for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to read record history: {e}") from e
        finally:
            db.close()

    def count(self) -> int:
        db = self._session_factory()
        try:
            return db.query(func.count(FloodRiskRecord.id)).scalar() or 0
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to count records: {e}") from e
        finally:
            db.close()

    def distribution(self) -> RiskDistribution:
        """Record counts per risk level."""
        db = self._session_factory()
        try:
            rows = (
                db.query(FloodRiskRecord.risk_level, func.count(FloodRiskRecord.id))
                .group_by(FloodRiskRecord.risk_level)
                .all()
            )
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to aggregate risk levels: {e}") from e
        finally:
            db.close()

        counts = {level: int(total) for level, total in rows}
        return RiskDistribution(
            high=counts.get("high", 0),
            medium=counts.get("medium", 0),
            low=counts.get("low", 0),
        )

    def stats(self) -> RiskStats:
        """Totals per risk level plus the latest record.

        model_status reflects the scoring path of the latest record, since the
        engine itself lives in the worker process.
        """
        latest = self.latest()
        model_status = (
            "ai-model"
            if latest is not None and latest.scoring_mode == ScoringMode.MODEL
            else "fallback"
        )
        return RiskStats(
            total=self.count(),
            risk_distribution=self.distribution(),
            latest=latest,
            model_status=model_status,
        )


record_store = RiskRecordStore()
