"""Member reports and the moderator priority queue.

Priority, first match wins:
    P0  reason crisis, or 3+ existing reports on the content
    P1  reason harmful/harassment, 2+ existing reports, or author has warnings
    P2  reason trigger_warning/spam, or author has been reported before
    P3  everything else

P0 and P1 reports escalate: the content is re-classified in the background
and moderators are alerted.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from safespace.shared.database import ContentRepository, ReportRepository
from safespace.shared.errors import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    RateLimitError,
    ValidationError,
)
from safespace.shared.models import (
    ContentKind,
    PriorityLevel,
    Report,
    ReportReason,
    ReportStatus,
    UserReputation,
)
from safespace.shared.utils import Clock, hash_identifier, new_record_id, to_iso, utc_now
from .alert_publisher import ALERT_REPORT_ESCALATED, ModeratorAlertPublisher
from .classifier_bridge import ClassifierBridge
from .config import REPORT_LIMIT_MESSAGE, ModerationConfig
from .identity import IdentityProvider
from .reputation import ReputationService

logger = logging.getLogger(__name__)

REPORT_WINDOW = timedelta(hours=24)

ESCALATED_PRIORITIES = frozenset({PriorityLevel.P0, PriorityLevel.P1})


def determine_priority(
    reason: ReportReason,
    existing_reports: int,
    author_reputation: Optional[UserReputation] = None,
) -> PriorityLevel:
    """Compute report priority from the reason, prior reports and author history."""
    warnings = author_reputation.warnings_received if author_reputation else 0
    prior_reports = author_reputation.reports_received if author_reputation else 0

    if reason is ReportReason.CRISIS or existing_reports >= 3:
        return PriorityLevel.P0
    if reason in (ReportReason.HARMFUL, ReportReason.HARASSMENT) or existing_reports >= 2 or warnings > 0:
        return PriorityLevel.P1
    if reason in (ReportReason.TRIGGER_WARNING, ReportReason.SPAM) or prior_reports > 0:
        return PriorityLevel.P2
    return PriorityLevel.P3


def serialize_report(report: Report) -> Dict[str, Any]:
    return {
        "id": report.id,
        "reporter_id": report.reporter_id,
        "reported_content_id": report.reported_content_id,
        "content_type": report.content_type.value,
        "reason": report.reason.value,
        "details": report.details,
        "priority_level": report.priority_level.value,
        "status": report.status.value,
        "moderator_notes": report.moderator_notes,
        "reviewed_by": report.reviewed_by,
        "created_at": to_iso(report.created_at),
        "updated_at": to_iso(report.updated_at),
    }


class ReportQueue:
    """Accepts member reports and serves the moderator queue."""

    def __init__(
        self,
        repository: ReportRepository,
        content_repository: ContentRepository,
        reputation: ReputationService,
        bridge: ClassifierBridge,
        identity: IdentityProvider,
        alert_publisher: Optional[ModeratorAlertPublisher] = None,
        config: Optional[ModerationConfig] = None,
        clock: Clock = utc_now,
    ):
        self.repository = repository
        self.content_repository = content_repository
        self.reputation = reputation
        self.bridge = bridge
        self.identity = identity
        self.alert_publisher = alert_publisher
        self.config = config or ModerationConfig()
        self._clock = clock

    def report(
        self,
        reporter_id: Optional[str],
        content_id: str,
        content_type: ContentKind,
        reason: ReportReason,
        details: Optional[str] = None,
    ) -> Report:
        """File a report against a topic or reply.

        Raises:
            AuthorizationError: No reporter identity
            ValidationError: Missing content id or a content type that does
                not match the content
            NotFoundError: Content does not exist
            RateLimitError: Reporter filed too many reports in 24 hours
            PersistenceError: Report could not be stored
        """
        if not reporter_id:
            raise AuthorizationError("You must be signed in to report content")
        if not content_id:
            raise ValidationError("content_id is required")

        now = self._clock()
        recent = self.repository.count_by_reporter_since(reporter_id, now - REPORT_WINDOW)
        if recent >= self.config.daily_report_limit:
            logger.warning(
                "REPORT_RATE_LIMITED",
                extra={"reporter_id_hash": hash_identifier(reporter_id), "recent_reports": recent}
            )
            raise RateLimitError("Report limit reached", REPORT_LIMIT_MESSAGE)

        content = self.content_repository.find_by_id(content_id)
        if content is None:
            raise NotFoundError(f"Content not found: {content_id}")
        if content_type != content.kind:
            raise ValidationError(
                f"Content {content_id} is a {content.kind.value}, not a {content_type.value}"
            )

        existing = self.repository.count_for_content(content_id)
        author_reputation = self.reputation.get(content.author_id)
        priority = determine_priority(reason, existing, author_reputation)

        report = Report(
            id=new_record_id(),
            reporter_id=reporter_id,
            reported_content_id=content_id,
            content_type=content.kind,
            reason=reason,
            priority_level=priority,
            created_at=now,
            details=details,
            updated_at=now,
        )
        self.repository.insert(report)
        self.content_repository.increment_report_count(content_id, now)
        self._count_report_against_author(content.author_id)

        logger.info(
            "REPORT_FILED",
            extra={
                "report_id": report.id,
                "content_id": content_id,
                "reporter_id_hash": hash_identifier(reporter_id),
                "reason": reason.value,
                "priority_level": priority.value,
                "existing_reports": existing,
            }
        )

        if priority in ESCALATED_PRIORITIES:
            self._escalate(report, content.plain_text or content.body, content.author_id)
        return report

    def _count_report_against_author(self, author_id: str) -> None:
        try:
            self.reputation.record_report_received(author_id)
        except PersistenceError as e:
            logger.error(
                "REPORT_REPUTATION_UPDATE_FAILED",
                extra={"user_id_hash": hash_identifier(author_id), "error": str(e)}
            )

    def _escalate(self, report: Report, text: str, author_id: str) -> None:
        logger.warning(
            "REPORT_ESCALATED",
            extra={
                "report_id": report.id,
                "content_id": report.reported_content_id,
                "priority_level": report.priority_level.value,
            }
        )
        self.bridge.schedule(
            report.reported_content_id, text, report.content_type, reason="report_escalation"
        )
        if self.alert_publisher is not None:
            self.alert_publisher.publish(
                ALERT_REPORT_ESCALATED,
                content_id=report.reported_content_id,
                content_type=report.content_type.value,
                severity=report.priority_level.value,
                user_id_hash=hash_identifier(author_id),
                details={"report_id": report.id, "reason": report.reason.value},
            )

    def _require_moderator(self, moderator_id: Optional[str]) -> None:
        if not self.identity.is_moderator(moderator_id):
            raise AuthorizationError("Moderator role required")

    def moderation_queue(
        self,
        moderator_id: str,
        priority: Optional[PriorityLevel] = None,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        """Open reports, newest first, with content preview and reporter name."""
        self._require_moderator(moderator_id)
        entries = []
        for report in self.repository.find_queue(priority=priority, limit=limit):
            content = self.content_repository.find_by_id(report.reported_content_id)
            entry = serialize_report(report)
            entry["content"] = content.preview() if content is not None else None
            entry["reporter_name"] = self.identity.display_name(report.reporter_id)
            entries.append(entry)
        return entries

    def update_status(
        self,
        report_id: str,
        moderator_id: str,
        status: ReportStatus,
        notes: Optional[str] = None,
    ) -> Report:
        """Move a report through triage. Moderator only."""
        self._require_moderator(moderator_id)
        report = self.repository.find_by_id(report_id)
        if report is None:
            raise NotFoundError(f"Report not found: {report_id}")

        changes: Dict[str, Any] = {
            "status": status,
            "reviewed_by": moderator_id,
            "updated_at": self._clock(),
        }
        if notes is not None:
            changes["moderator_notes"] = notes
        updated = self.repository.update_fields(report_id, **changes)

        logger.info(
            "REPORT_STATUS_UPDATED",
            extra={
                "report_id": report_id,
                "moderator_id_hash": hash_identifier(moderator_id),
                "previous_status": report.status.value,
                "status": status.value,
            }
        )
        return updated

    def escalate(self, report_id: str, moderator_id: str) -> Report:
        """Raise a report to P0 and mark it under review."""
        self._require_moderator(moderator_id)
        report = self.repository.find_by_id(report_id)
        if report is None:
            raise NotFoundError(f"Report not found: {report_id}")

        updated = self.repository.update_fields(
            report_id,
            priority_level=PriorityLevel.P0,
            status=ReportStatus.REVIEWING,
            reviewed_by=moderator_id,
            updated_at=self._clock(),
        )
        content = self.content_repository.find_by_id(report.reported_content_id)
        if content is not None:
            self._escalate(updated, content.plain_text or content.body, content.author_id)
        return updated
