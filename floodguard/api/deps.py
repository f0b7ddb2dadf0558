"""
API dependencies.
"""

from floodguard.services.record_store import RiskRecordStore, record_store


def get_record_store() -> RiskRecordStore:
    return record_store
