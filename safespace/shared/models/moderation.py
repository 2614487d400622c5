"""Moderation domain models shared across SafeSpace services.

Enums carry the string values stored in the record store and returned by
the HTTP API. Ordinal enums (RiskLevel, AutoModStatus) compare by severity.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class _OrderedEnum(Enum):
    """Enum whose members compare by declaration order."""

    def _rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._rank() < other._rank()

    def __le__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._rank() <= other._rank()

    def __gt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._rank() > other._rank()

    def __ge__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._rank() >= other._rank()


class RiskLevel(_OrderedEnum):
    """How dangerous a piece of content is judged to be."""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def needs_crisis_resources(self) -> bool:
        return self in (RiskLevel.HIGH, RiskLevel.CRITICAL)


class AutoModStatus(_OrderedEnum):
    """System-assigned publication state, least to most restrictive."""
    APPROVED = "approved"
    FLAGGED = "flagged"     # Visible but marked
    BLOCKED = "blocked"     # Hidden


class ContentKind(Enum):
    TOPIC = "topic"
    REPLY = "reply"


class ReportReason(Enum):
    """Reasons a member may give when reporting content."""
    HARASSMENT = "harassment"
    HATE_SPEECH = "hate_speech"
    SPAM = "spam"
    SUICIDE_METHODS = "suicide_methods"
    SELF_HARM = "self_harm"
    MEDICAL_ADVICE = "medical_advice"
    PERSONAL_INFO = "personal_info"
    GRAPHIC_CONTENT = "graphic_content"
    OTHER = "other"
    CRISIS = "crisis"
    TRIGGER_WARNING = "trigger_warning"
    HARMFUL = "harmful"


class PriorityLevel(Enum):
    """Triage urgency for a report. P0 is most urgent."""
    P0 = "P0"   # Immediate
    P1 = "P1"   # Within 1 hour
    P2 = "P2"   # Within 4 hours
    P3 = "P3"   # Within 24 hours


class ReportStatus(Enum):
    PENDING = "pending"
    REVIEWING = "reviewing"
    RESOLVED = "resolved"


class DisputeStatus(Enum):
    OPEN = "open"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"

    @property
    def is_terminal(self) -> bool:
        return self is not DisputeStatus.OPEN


class CrisisRiskLevel(Enum):
    """Risk scale used by the crisis response log."""
    MODERATE = "moderate"
    ELEVATED = "elevated"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def from_risk_level(cls, risk_level: RiskLevel) -> "CrisisRiskLevel":
        if risk_level is RiskLevel.CRITICAL:
            return cls.CRITICAL
        if risk_level is RiskLevel.HIGH:
            return cls.HIGH
        if risk_level is RiskLevel.MEDIUM:
            return cls.ELEVATED
        return cls.MODERATE


class CrisisAction(Enum):
    ADD_RESOURCES = "add_resources"
    SEND_MESSAGE = "send_message"
    AI_DETECTED = "ai_detected"


@dataclass(frozen=True)
class ContentSubmission:
    """A topic or reply as submitted by its author. Never persisted as-is."""
    body: str
    author_id: str
    kind: ContentKind
    trigger_tags: Tuple[str, ...] = ()
    title: Optional[str] = None
    topic_id: Optional[str] = None


@dataclass
class ModeratedContent:
    """A stored topic or reply. Soft-deleted only, never hard-deleted."""
    id: str
    kind: ContentKind
    author_id: str
    body: str
    plain_text: str
    auto_mod_status: AutoModStatus
    risk_level: RiskLevel
    created_at: datetime
    updated_at: datetime
    crisis_resources_added: bool = False
    report_count: int = 0
    is_removed: bool = False
    title: Optional[str] = None
    topic_id: Optional[str] = None
    trigger_warnings: List[str] = field(default_factory=list)
    ai_analysis: Optional[Dict[str, Any]] = None
    ai_analyzed_at: Optional[datetime] = None
    removed_at: Optional[datetime] = None
    removed_by: Optional[str] = None

    @property
    def is_disputable(self) -> bool:
        return self.auto_mod_status in (AutoModStatus.FLAGGED, AutoModStatus.BLOCKED)

    def preview(self, length: int = 200) -> Dict[str, Any]:
        """Snapshot used by moderator queues."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title,
            "content": self.plain_text[:length],
            "auto_mod_status": self.auto_mod_status.value,
            "risk_level": self.risk_level.value,
            "user_id": self.author_id,
            "is_removed": self.is_removed,
        }


@dataclass
class BehaviorRecord:
    """Rolling posting statistics for one author."""
    user_id: str
    posts_in_last_hour: int = 0
    posts_in_last_day: int = 0
    last_post_at: Optional[datetime] = None
    hour_window_started_at: Optional[datetime] = None
    day_window_started_at: Optional[datetime] = None
    recent_content_hashes: List[str] = field(default_factory=list)
    duplicate_detected: bool = False
    rapid_posting_detected: bool = False
    last_action: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass
class Report:
    id: str
    reporter_id: str
    reported_content_id: str
    content_type: ContentKind
    reason: ReportReason
    priority_level: PriorityLevel
    created_at: datetime
    status: ReportStatus = ReportStatus.PENDING
    details: Optional[str] = None
    moderator_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass
class Dispute:
    id: str
    content_id: str
    content_type: ContentKind
    user_id: str
    reason_text: str
    created_at: datetime
    status: DisputeStatus = DisputeStatus.OPEN
    resolved_by: Optional[str] = None
    resolution_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None


@dataclass
class CrisisResponseLog:
    """Audit entry for one detected crisis event. Append-only."""
    id: str
    content_id: str
    content_type: ContentKind
    user_id: str
    risk_level: CrisisRiskLevel
    action: CrisisAction
    created_at: datetime
    resolution_status: str = "open"
    resources_added_at: Optional[datetime] = None
    message_sent_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


@dataclass
class UserReputation:
    user_id: str
    warnings_received: int = 0
    reports_received: int = 0
    crisis_posts_count: int = 0
    last_crisis_post_at: Optional[datetime] = None
    trust_level: str = "member"
    reputation_score: int = 100
    suspensions_count: int = 0
    is_banned: bool = False
    ban_expires_at: Optional[datetime] = None
    ban_reason: Optional[str] = None
    updated_at: Optional[datetime] = None

    def is_currently_banned(self, now: datetime) -> bool:
        return bool(
            self.is_banned
            and self.ban_expires_at is not None
            and self.ban_expires_at > now
        )
