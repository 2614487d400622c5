"""Shared domain models for the SafeSpace platform."""
from .moderation import (
    AutoModStatus,
    BehaviorRecord,
    ContentKind,
    ContentSubmission,
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

__all__ = [
    "AutoModStatus",
    "BehaviorRecord",
    "ContentKind",
    "ContentSubmission",
    "CrisisAction",
    "CrisisResponseLog",
    "CrisisRiskLevel",
    "Dispute",
    "DisputeStatus",
    "ModeratedContent",
    "PriorityLevel",
    "Report",
    "ReportReason",
    "ReportStatus",
    "RiskLevel",
    "UserReputation",
]
