"""Persistence for SafeSpace services.

Provides the keyed record store (in-memory and PostgreSQL), connection
pooling and typed repositories per moderation entity.
"""

from .connection import ConnectionManager, DatabaseConfig
from .repository import (
    BaseRepository,
    BehaviorRepository,
    ContentRepository,
    CrisisLogRepository,
    DisputeRepository,
    ReportRepository,
    ReputationRepository,
)
from .store import InMemoryRecordStore, PostgresRecordStore, RecordStore

__all__ = [
    "ConnectionManager",
    "DatabaseConfig",
    "BaseRepository",
    "BehaviorRepository",
    "ContentRepository",
    "CrisisLogRepository",
    "DisputeRepository",
    "ReportRepository",
    "ReputationRepository",
    "InMemoryRecordStore",
    "PostgresRecordStore",
    "RecordStore",
]
