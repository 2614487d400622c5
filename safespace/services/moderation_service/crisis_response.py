"""Crisis response log and timed response plans.

Every high or critical risk post gets an append-only CrisisResponseLog
entry. Writing the log must never fail a member's submission, so write
failures are logged at CRITICAL for on-call follow-up instead of raised.

Response plans (by risk level):
    critical  alert moderators and add resources now, DM within 2 min,
              check at 5 min, escalate at 15 min without a response
    high      add resources now, DM within 15 min, check at 60 min
    medium    flag for review now, moderator comment within 4 hours
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from safespace.shared.database import CrisisLogRepository
from safespace.shared.errors import NotFoundError, PersistenceError
from safespace.shared.models import (
    ContentKind,
    CrisisAction,
    CrisisResponseLog,
    CrisisRiskLevel,
    RiskLevel,
)
from safespace.shared.utils import Clock, hash_identifier, new_record_id, to_iso, utc_now
from .alert_publisher import ALERT_CRISIS_DETECTED, ModeratorAlertPublisher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedAction:
    action: str
    delay: timedelta

    def to_dict(self, start: datetime) -> Dict[str, Any]:
        return {
            "action": self.action,
            "delay_minutes": int(self.delay.total_seconds() // 60),
            "scheduled_at": to_iso(start + self.delay),
        }


@dataclass(frozen=True)
class CrisisResponsePlan:
    risk_level: RiskLevel
    immediate: Tuple[PlannedAction, ...] = ()
    urgent: Tuple[PlannedAction, ...] = ()
    follow_up: Tuple[PlannedAction, ...] = ()
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_level": self.risk_level.value,
            "immediate": [a.to_dict(self.created_at) for a in self.immediate],
            "urgent": [a.to_dict(self.created_at) for a in self.urgent],
            "follow_up": [a.to_dict(self.created_at) for a in self.follow_up],
        }


_NOW = timedelta(0)

RESPONSE_TIMELINES: Dict[RiskLevel, Dict[str, Tuple[PlannedAction, ...]]] = {
    RiskLevel.CRITICAL: {
        "immediate": (
            PlannedAction("alert_moderator", _NOW),
            PlannedAction("add_crisis_resources", _NOW),
        ),
        "urgent": (PlannedAction("send_direct_message", timedelta(minutes=2)),),
        "follow_up": (
            PlannedAction("check_response", timedelta(minutes=5)),
            PlannedAction("escalate_if_no_response", timedelta(minutes=15)),
        ),
    },
    RiskLevel.HIGH: {
        "immediate": (PlannedAction("add_crisis_resources", _NOW),),
        "urgent": (PlannedAction("send_direct_message", timedelta(minutes=15)),),
        "follow_up": (PlannedAction("check_response", timedelta(minutes=60)),),
    },
    RiskLevel.MEDIUM: {
        "immediate": (PlannedAction("flag_for_review", _NOW),),
        "urgent": (),
        "follow_up": (PlannedAction("moderator_comment", timedelta(hours=4)),),
    },
}


class CrisisResponseService:
    """Writes the crisis audit trail and builds response plans."""

    def __init__(
        self,
        repository: CrisisLogRepository,
        alert_publisher: Optional[ModeratorAlertPublisher] = None,
        clock: Clock = utc_now,
    ):
        self.repository = repository
        self.alert_publisher = alert_publisher
        self._clock = clock

    def plan(self, risk_level: RiskLevel) -> CrisisResponsePlan:
        timeline = RESPONSE_TIMELINES.get(risk_level, {})
        return CrisisResponsePlan(
            risk_level=risk_level,
            immediate=timeline.get("immediate", ()),
            urgent=timeline.get("urgent", ()),
            follow_up=timeline.get("follow_up", ()),
            created_at=self._clock(),
        )

    def record(
        self,
        content_id: str,
        content_type: ContentKind,
        user_id: str,
        risk_level: RiskLevel,
        action: CrisisAction,
    ) -> Optional[CrisisResponseLog]:
        """Append a crisis log entry.

        Returns:
            The stored entry, or None if the write failed
        """
        now = self._clock()
        entry = CrisisResponseLog(
            id=new_record_id(),
            content_id=content_id,
            content_type=content_type,
            user_id=user_id,
            risk_level=CrisisRiskLevel.from_risk_level(risk_level),
            action=action,
            created_at=now,
            resources_added_at=now if action is CrisisAction.ADD_RESOURCES else None,
        )

        logger.critical(
            "CRISIS_CONTENT_DETECTED",
            extra={
                "content_id": content_id,
                "content_type": content_type.value,
                "user_id_hash": hash_identifier(user_id),
                "risk_level": risk_level.value,
                "action": action.value,
            }
        )

        try:
            self.repository.insert(entry)
        except PersistenceError as e:
            logger.critical(
                "CRISIS_LOG_WRITE_FAILED",
                extra={
                    "content_id": content_id,
                    "user_id_hash": hash_identifier(user_id),
                    "error": str(e),
                    "action": "MANUAL_REVIEW_REQUIRED",
                }
            )
            return None

        if risk_level is RiskLevel.CRITICAL and self.alert_publisher is not None:
            self.alert_publisher.publish(
                ALERT_CRISIS_DETECTED,
                content_id=content_id,
                content_type=content_type.value,
                severity=risk_level.value,
                user_id_hash=hash_identifier(user_id),
                details={"action": action.value},
            )
        return entry

    def has_log(self, content_id: str) -> bool:
        return self.repository.exists_for_content(content_id)

    def logs_for_content(self, content_id: str) -> List[CrisisResponseLog]:
        return self.repository.find({"content_id": content_id})

    def mark_message_sent(self, log_id: str) -> CrisisResponseLog:
        updated = self.repository.update_fields(log_id, message_sent_at=self._clock())
        if updated is None:
            raise NotFoundError(f"Crisis log not found: {log_id}")
        return updated

    def resolve(self, log_id: str) -> CrisisResponseLog:
        updated = self.repository.update_fields(
            log_id, resolution_status="resolved", resolved_at=self._clock()
        )
        if updated is None:
            raise NotFoundError(f"Crisis log not found: {log_id}")
        return updated
