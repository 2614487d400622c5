"""Typed repositories over the record store.

Every repository converts between a domain dataclass and its stored
record, and wraps any store failure in PersistenceError so callers deal
with a single error type.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import fields
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from ..errors import ModerationError, PersistenceError
from ..models.moderation import (
    AutoModStatus,
    BehaviorRecord,
    ContentKind,
    CrisisAction,
    CrisisResponseLog,
    CrisisRiskLevel,
    Dispute,
    DisputeStatus,
    ModeratedContent,
    PriorityLevel,
    Report,
    ReportReason,
    ReportStatus,
    RiskLevel,
    UserReputation,
)
from ..utils.clock import from_iso
from .store import Record, RecordStore, serialize_value

logger = logging.getLogger(__name__)

T = TypeVar('T')


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository over one record-store table."""

    table_name: str = ""
    id_field: str = "id"

    def __init__(self, store: RecordStore):
        self.store = store

    @abstractmethod
    def _record_to_entity(self, record: Record) -> T:
        """Convert a stored record to an entity."""

    def _entity_to_record(self, entity: T) -> Record:
        record = {f.name: serialize_value(getattr(entity, f.name)) for f in fields(entity)}
        record["id"] = record[self.id_field]
        return record

    def _call(self, operation: str, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ModerationError:
            raise
        except Exception as e:
            logger.error(
                "REPOSITORY_OPERATION_FAILED",
                extra={"table_name": self.table_name, "operation": operation, "error": str(e)}
            )
            raise PersistenceError(f"{self.table_name}.{operation} failed: {e}") from e

    def find_by_id(self, entity_id: str) -> Optional[T]:
        record = self._call("get", self.store.get, self.table_name, entity_id)
        return self._record_to_entity(record) if record is not None else None

    def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        created_after: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        records = self._call(
            "find", self.store.find, self.table_name,
            filters=filters, created_after=created_after, limit=limit,
        )
        return [self._record_to_entity(r) for r in records]

    def count(
        self,
        filters: Optional[Dict[str, Any]] = None,
        created_after: Optional[datetime] = None,
    ) -> int:
        return self._call(
            "count", self.store.count, self.table_name,
            filters=filters, created_after=created_after,
        )

    def insert(self, entity: T) -> T:
        self._call("insert", self.store.insert, self.table_name, self._entity_to_record(entity))
        return entity

    def save(self, entity: T) -> T:
        """Write every field of an existing entity, inserting it if absent."""
        record = self._entity_to_record(entity)
        updated = self._call("update", self.store.update, self.table_name, record["id"], record)
        if updated is None:
            self._call("insert", self.store.insert, self.table_name, record)
        return entity

    def update_fields(self, entity_id: str, **changes) -> Optional[T]:
        """Merge selected fields. Returns None if the entity does not exist."""
        serialized = {k: serialize_value(v) for k, v in changes.items()}
        updated = self._call("update", self.store.update, self.table_name, entity_id, serialized)
        return self._record_to_entity(updated) if updated is not None else None


def _enum(enum_cls, value, default=None):
    if value is None:
        return default
    return enum_cls(value)


class ContentRepository(BaseRepository[ModeratedContent]):
    table_name = "content"

    def _record_to_entity(self, record):
        return ModeratedContent(
            id=record["id"],
            kind=ContentKind(record["kind"]),
            author_id=record["author_id"],
            body=record["body"],
            plain_text=record.get("plain_text", ""),
            auto_mod_status=AutoModStatus(record["auto_mod_status"]),
            risk_level=RiskLevel(record["risk_level"]),
            created_at=from_iso(record["created_at"]),
            updated_at=from_iso(record["updated_at"]),
            crisis_resources_added=record.get("crisis_resources_added", False),
            report_count=record.get("report_count", 0),
            is_removed=record.get("is_removed", False),
            title=record.get("title"),
            topic_id=record.get("topic_id"),
            trigger_warnings=list(record.get("trigger_warnings") or []),
            ai_analysis=record.get("ai_analysis"),
            ai_analyzed_at=from_iso(record.get("ai_analyzed_at")),
            removed_at=from_iso(record.get("removed_at")),
            removed_by=record.get("removed_by"),
        )

    def increment_report_count(self, content_id: str, now: datetime) -> Optional[ModeratedContent]:
        content = self.find_by_id(content_id)
        if content is None:
            return None
        return self.update_fields(
            content_id, report_count=content.report_count + 1, updated_at=now
        )


class BehaviorRepository(BaseRepository[BehaviorRecord]):
    """One record per author, keyed by user id."""
    table_name = "behavior"
    id_field = "user_id"

    def _entity_to_record(self, entity):
        record = super()._entity_to_record(entity)
        # the store orders by created_at; behavior rows are ordered by activity
        record["created_at"] = record.get("updated_at") or record.get("last_post_at")
        return record

    def _record_to_entity(self, record):
        return BehaviorRecord(
            user_id=record["user_id"],
            posts_in_last_hour=record.get("posts_in_last_hour", 0),
            posts_in_last_day=record.get("posts_in_last_day", 0),
            last_post_at=from_iso(record.get("last_post_at")),
            hour_window_started_at=from_iso(record.get("hour_window_started_at")),
            day_window_started_at=from_iso(record.get("day_window_started_at")),
            recent_content_hashes=list(record.get("recent_content_hashes") or []),
            duplicate_detected=record.get("duplicate_detected", False),
            rapid_posting_detected=record.get("rapid_posting_detected", False),
            last_action=record.get("last_action"),
            updated_at=from_iso(record.get("updated_at")),
        )


class ReportRepository(BaseRepository[Report]):
    table_name = "reports"

    def _record_to_entity(self, record):
        return Report(
            id=record["id"],
            reporter_id=record["reporter_id"],
            reported_content_id=record["reported_content_id"],
            content_type=ContentKind(record["content_type"]),
            reason=ReportReason(record["reason"]),
            priority_level=PriorityLevel(record["priority_level"]),
            created_at=from_iso(record["created_at"]),
            status=_enum(ReportStatus, record.get("status"), ReportStatus.PENDING),
            details=record.get("details"),
            moderator_notes=record.get("moderator_notes"),
            reviewed_by=record.get("reviewed_by"),
            updated_at=from_iso(record.get("updated_at")),
        )

    def count_by_reporter_since(self, reporter_id: str, since: datetime) -> int:
        return self.count({"reporter_id": reporter_id}, created_after=since)

    def count_for_content(self, content_id: str) -> int:
        return self.count({"reported_content_id": content_id})

    def find_queue(self, priority: Optional[PriorityLevel] = None, limit: int = 50) -> List[Report]:
        filters: Dict[str, Any] = {
            "status": [ReportStatus.PENDING.value, ReportStatus.REVIEWING.value]
        }
        if priority is not None:
            filters["priority_level"] = priority.value
        return self.find(filters, limit=limit)


class DisputeRepository(BaseRepository[Dispute]):
    table_name = "disputes"

    def _record_to_entity(self, record):
        return Dispute(
            id=record["id"],
            content_id=record["content_id"],
            content_type=ContentKind(record["content_type"]),
            user_id=record["user_id"],
            reason_text=record["reason_text"],
            created_at=from_iso(record["created_at"]),
            status=DisputeStatus(record["status"]),
            resolved_by=record.get("resolved_by"),
            resolution_notes=record.get("resolution_notes"),
            resolved_at=from_iso(record.get("resolved_at")),
        )

    def find_open_for_content(self, content_id: str) -> Optional[Dispute]:
        found = self.find(
            {"content_id": content_id, "status": DisputeStatus.OPEN.value}, limit=1
        )
        return found[0] if found else None


class CrisisLogRepository(BaseRepository[CrisisResponseLog]):
    table_name = "crisis_logs"

    def _record_to_entity(self, record):
        return CrisisResponseLog(
            id=record["id"],
            content_id=record["content_id"],
            content_type=ContentKind(record["content_type"]),
            user_id=record["user_id"],
            risk_level=CrisisRiskLevel(record["risk_level"]),
            action=CrisisAction(record["action"]),
            created_at=from_iso(record["created_at"]),
            resolution_status=record.get("resolution_status", "open"),
            resources_added_at=from_iso(record.get("resources_added_at")),
            message_sent_at=from_iso(record.get("message_sent_at")),
            resolved_at=from_iso(record.get("resolved_at")),
        )

    def exists_for_content(self, content_id: str) -> bool:
        return self.count({"content_id": content_id}) > 0


class ReputationRepository(BaseRepository[UserReputation]):
    """One record per member, keyed by user id."""
    table_name = "reputations"
    id_field = "user_id"

    def _entity_to_record(self, entity):
        record = super()._entity_to_record(entity)
        record["created_at"] = record.get("updated_at")
        return record

    def _record_to_entity(self, record):
        return UserReputation(
            user_id=record["user_id"],
            warnings_received=record.get("warnings_received", 0),
            reports_received=record.get("reports_received", 0),
            crisis_posts_count=record.get("crisis_posts_count", 0),
            last_crisis_post_at=from_iso(record.get("last_crisis_post_at")),
            trust_level=record.get("trust_level", "member"),
            reputation_score=record.get("reputation_score", 100),
            suspensions_count=record.get("suspensions_count", 0),
            is_banned=record.get("is_banned", False),
            ban_expires_at=from_iso(record.get("ban_expires_at")),
            ban_reason=record.get("ban_reason"),
            updated_at=from_iso(record.get("updated_at")),
        )

    def get_or_default(self, user_id: str) -> UserReputation:
        return self.find_by_id(user_id) or UserReputation(user_id=user_id)
