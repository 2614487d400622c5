"""Moderation Service: content moderation and crisis detection.

Every topic and reply is analyzed before it is stored. Blocked content is
never persisted; high and critical risk content is stored with crisis
resources appended and an entry in the crisis response log.

Components:
- patterns.py: ordered detection rule groups
- analyzer.py: ContentAnalyzer, the synchronous blocking layer
- behavior_tracker.py: rate and duplicate detection per author
- lifecycle.py: ContentLifecycleManager, submission and moderator actions
- classifier_bridge.py: background re-classification by a remote service
- reports.py: member reports and the moderator priority queue
- disputes.py: author disputes of moderation decisions
- crisis_response.py: crisis audit trail and response plans
- reputation.py: warnings, suspensions and member standing
- alert_publisher.py: moderator alerts on Kinesis
- handler.py: Flask HTTP endpoints

Usage:
    # As HTTP service
    POST /submissions {"user_id": "...", "kind": "topic", "content": "..."}

    # Direct import
    from safespace.services.moderation_service import ContentAnalyzer
    result = ContentAnalyzer().analyze(text)
"""

from .analyzer import AnalysisResult, ContentAnalyzer, compose_trigger_warning, parse_trigger_warning
from .behavior_tracker import BehaviorSignal, BehaviorTracker, content_hash
from .classifier_bridge import ClassificationVerdict, ClassifierBridge, RemoteClassifier
from .config import CRISIS_RESOURCES, ModerationConfig, ReputationPolicy
from .crisis_response import CrisisResponsePlan, CrisisResponseService
from .disputes import DisputeService
from .identity import IdentityProvider, StaticIdentityProvider
from .lifecycle import ContentLifecycleManager, SubmissionOutcome
from .pipeline import ModerationPipeline, build_pipeline
from .reports import ReportQueue, determine_priority
from .reputation import ReputationService

__all__ = [
    "AnalysisResult",
    "ContentAnalyzer",
    "compose_trigger_warning",
    "parse_trigger_warning",
    "BehaviorSignal",
    "BehaviorTracker",
    "content_hash",
    "ClassificationVerdict",
    "ClassifierBridge",
    "RemoteClassifier",
    "CRISIS_RESOURCES",
    "ModerationConfig",
    "ReputationPolicy",
    "CrisisResponsePlan",
    "CrisisResponseService",
    "DisputeService",
    "IdentityProvider",
    "StaticIdentityProvider",
    "ContentLifecycleManager",
    "SubmissionOutcome",
    "ModerationPipeline",
    "build_pipeline",
    "ReportQueue",
    "determine_priority",
    "ReputationService",
]
