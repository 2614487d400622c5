"""Content lifecycle: submission, composition, and moderator actions.

Submission steps, in order:
1. Strip markup; empty text is rejected
2. Analyze; blocked content is rejected with crisis resources, never stored
3. Track behavior; duplicates are rejected, rapid posting is a policy flag
4. Compose the body: warning line first, crisis resources last
5. Persist (flagged for high/critical risk, else approved)
6. Log the crisis response for high/critical risk
7. Queue background re-classification
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from safespace.shared.database import ContentRepository
from safespace.shared.errors import (
    AuthorizationError,
    DuplicateContentError,
    NotFoundError,
    PersistenceError,
    PolicyBlockedError,
    RateLimitError,
    ValidationError,
)
from safespace.shared.models import (
    AutoModStatus,
    ContentSubmission,
    CrisisAction,
    ModeratedContent,
)
from safespace.shared.utils import Clock, hash_identifier, new_record_id, to_iso, utc_now
from .analyzer import AnalysisResult, ContentAnalyzer, compose_trigger_warning, parse_trigger_warning
from .behavior_tracker import BehaviorSignal, BehaviorTracker
from .classifier_bridge import ClassifierBridge
from .config import (
    BLOCKED_CONTENT_NOTICE,
    CRISIS_RESOURCES,
    CRISIS_RESOURCES_DIVIDER,
    DUPLICATE_CONTENT_MESSAGE,
    EMPTY_CONTENT_MESSAGE,
    RAPID_POSTING_MESSAGE,
    ModerationConfig,
)
from .crisis_response import CrisisResponseService
from .identity import IdentityProvider
from .reputation import ReputationService
from .text_normalizer import to_plain_text

logger = logging.getLogger(__name__)

SUSPENDED_MESSAGE = "Your account is temporarily suspended from posting."


@dataclass(frozen=True)
class SubmissionOutcome:
    accepted: bool
    content: Optional[ModeratedContent] = None
    user_message: Optional[str] = None
    analysis: Optional[AnalysisResult] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"accepted": self.accepted, "user_message": self.user_message}
        if self.content is not None:
            result["content"] = serialize_content(self.content)
        if self.analysis is not None:
            result["analysis"] = self.analysis.to_dict()
        return result


def serialize_content(content: ModeratedContent) -> Dict[str, Any]:
    return {
        "id": content.id,
        "kind": content.kind.value,
        "author_id": content.author_id,
        "title": content.title,
        "topic_id": content.topic_id,
        "body": content.body,
        "auto_mod_status": content.auto_mod_status.value,
        "risk_level": content.risk_level.value,
        "trigger_warnings": list(content.trigger_warnings),
        "crisis_resources_added": content.crisis_resources_added,
        "report_count": content.report_count,
        "is_removed": content.is_removed,
        "created_at": to_iso(content.created_at),
        "updated_at": to_iso(content.updated_at),
    }


def blocked_message() -> str:
    return f"{BLOCKED_CONTENT_NOTICE}\n\n{CRISIS_RESOURCES}"


def compose_body(body: str, warning_line: Optional[str], add_crisis_resources: bool) -> str:
    """Prepend the warning line and append the resource block."""
    composed = body
    if warning_line:
        composed = f"{warning_line}\n\n{composed}"
    if add_crisis_resources:
        composed = f"{composed}{CRISIS_RESOURCES_DIVIDER}{CRISIS_RESOURCES}"
    return composed


class ContentLifecycleManager:
    """Orchestrates analysis, tracking, composition and storage of posts."""

    def __init__(
        self,
        analyzer: ContentAnalyzer,
        tracker: BehaviorTracker,
        repository: ContentRepository,
        crisis_response: CrisisResponseService,
        bridge: ClassifierBridge,
        reputation: ReputationService,
        identity: IdentityProvider,
        config: Optional[ModerationConfig] = None,
        clock: Clock = utc_now,
    ):
        self.analyzer = analyzer
        self.tracker = tracker
        self.repository = repository
        self.crisis_response = crisis_response
        self.bridge = bridge
        self.reputation = reputation
        self.identity = identity
        self.config = config or ModerationConfig()
        self._clock = clock

    def submit(self, submission: ContentSubmission) -> SubmissionOutcome:
        """Moderate and store one topic or reply.

        Raises:
            ValidationError: Empty body or missing author
            AuthorizationError: Author is currently suspended
            PolicyBlockedError: Content matched a blocking rule
            DuplicateContentError: Author recently posted the same content
            RateLimitError: Rapid posting, only when enforcement is enabled
            PersistenceError: Content could not be stored; safe to retry
        """
        if not submission.author_id:
            raise ValidationError("author_id is required")
        author_hash = hash_identifier(submission.author_id)

        # 1. Markup
        plain_text = to_plain_text(submission.body)
        if not plain_text:
            raise ValidationError("Content body is empty", EMPTY_CONTENT_MESSAGE)

        if self.reputation.is_banned(submission.author_id):
            logger.warning("SUBMISSION_REJECTED_SUSPENDED", extra={"user_id_hash": author_hash})
            raise AuthorizationError("Author is suspended", SUSPENDED_MESSAGE)

        # 2. Analysis
        analysis = self.analyzer.analyze(plain_text)
        if analysis.blocked:
            logger.warning(
                "SUBMISSION_BLOCKED",
                extra={
                    "user_id_hash": author_hash,
                    "kind": submission.kind.value,
                    "risk_level": analysis.risk_level.value,
                    "reason": analysis.reason,
                    "matched_rules": list(analysis.matched_rules),
                    "pattern_version": self.analyzer.pattern_version,
                }
            )
            raise PolicyBlockedError(
                f"Content blocked: {analysis.reason}",
                user_message=blocked_message(),
                risk_level=analysis.risk_level.value,
                reason=analysis.reason,
            )

        # 3. Behavior
        signal = self._track(submission, plain_text)
        if signal.is_duplicate:
            raise DuplicateContentError("Duplicate content", DUPLICATE_CONTENT_MESSAGE)
        if signal.is_rapid and self.config.enforce_rapid_posting_limit:
            # Post is not stored, so a later retry must not count as a duplicate
            self.tracker.release(submission.author_id, plain_text)
            raise RateLimitError("Rapid posting", RAPID_POSTING_MESSAGE)

        # 4. Composition
        declared = parse_trigger_warning(plain_text)
        warning_line = None
        if analysis.needs_trigger_warning or submission.trigger_tags:
            warning_line = compose_trigger_warning(
                submission.trigger_tags, analysis.suggested_triggers, declared
            )
        needs_resources = analysis.needs_crisis_resources
        body = compose_body(submission.body, warning_line, needs_resources)

        # 5. Persistence
        now = self._clock()
        content = ModeratedContent(
            id=new_record_id(),
            kind=submission.kind,
            author_id=submission.author_id,
            body=body,
            plain_text=plain_text,
            auto_mod_status=AutoModStatus.FLAGGED if needs_resources else AutoModStatus.APPROVED,
            risk_level=analysis.risk_level,
            created_at=now,
            updated_at=now,
            crisis_resources_added=needs_resources,
            title=submission.title,
            topic_id=submission.topic_id,
            trigger_warnings=parse_trigger_warning(warning_line) if warning_line else list(declared),
        )
        try:
            self.repository.insert(content)
        except PersistenceError:
            logger.error(
                "SUBMISSION_PERSIST_FAILED",
                extra={"user_id_hash": author_hash, "kind": submission.kind.value}
            )
            self.tracker.release(submission.author_id, plain_text)
            raise

        logger.info(
            "SUBMISSION_ACCEPTED",
            extra={
                "content_id": content.id,
                "user_id_hash": author_hash,
                "kind": content.kind.value,
                "auto_mod_status": content.auto_mod_status.value,
                "risk_level": content.risk_level.value,
                "trigger_warning": warning_line is not None,
                "is_rapid": signal.is_rapid,
            }
        )

        # 6. Crisis log
        if needs_resources:
            self.crisis_response.record(
                content_id=content.id,
                content_type=content.kind,
                user_id=content.author_id,
                risk_level=content.risk_level,
                action=CrisisAction.ADD_RESOURCES,
            )
            self._record_crisis_post(content.author_id)

        # 7. Background re-classification
        self.bridge.schedule(content.id, plain_text, content.kind)

        return SubmissionOutcome(
            accepted=True,
            content=content,
            user_message=CRISIS_RESOURCES if needs_resources else None,
            analysis=analysis,
        )

    def _track(self, submission: ContentSubmission, plain_text: str) -> BehaviorSignal:
        try:
            return self.tracker.track(submission.author_id, submission.kind.value, plain_text)
        except PersistenceError as e:
            logger.error(
                "BEHAVIOR_TRACKING_FAILED",
                extra={"user_id_hash": hash_identifier(submission.author_id), "error": str(e)}
            )
            return BehaviorSignal()

    def _record_crisis_post(self, author_id: str) -> None:
        try:
            self.reputation.record_crisis_post(author_id)
        except PersistenceError as e:
            logger.error(
                "CRISIS_POST_COUNT_FAILED",
                extra={"user_id_hash": hash_identifier(author_id), "error": str(e)}
            )

    def _require_moderator(self, moderator_id: Optional[str]) -> None:
        if not self.identity.is_moderator(moderator_id):
            raise AuthorizationError("Moderator role required")

    def get(self, content_id: str) -> ModeratedContent:
        content = self.repository.find_by_id(content_id)
        if content is None:
            raise NotFoundError(f"Content not found: {content_id}")
        return content

    def remove_content(self, content_id: str, moderator_id: str, reason: str) -> ModeratedContent:
        """Soft-delete content and record a violation against its author.

        Raises:
            AuthorizationError: Actor is not a moderator
            NotFoundError: Unknown content
            PersistenceError: Write failed; safe to retry
        """
        self._require_moderator(moderator_id)
        content = self.get(content_id)
        if content.is_removed:
            return content

        now = self._clock()
        updated = self.repository.update_fields(
            content_id,
            is_removed=True,
            auto_mod_status=AutoModStatus.BLOCKED,
            removed_at=now,
            removed_by=moderator_id,
            updated_at=now,
        )
        action = self.reputation.record_violation(content.author_id, reason)

        logger.warning(
            "CONTENT_REMOVED",
            extra={
                "content_id": content_id,
                "moderator_id_hash": hash_identifier(moderator_id),
                "user_id_hash": hash_identifier(content.author_id),
                "reason": reason,
                "consequence": action.value,
            }
        )
        return updated

    def set_status(self, content_id: str, moderator_id: str, status: AutoModStatus) -> ModeratedContent:
        """Force any status transition. Moderator only."""
        self._require_moderator(moderator_id)
        content = self.get(content_id)
        updated = self.repository.update_fields(
            content_id, auto_mod_status=status, updated_at=self._clock()
        )
        logger.info(
            "CONTENT_STATUS_SET",
            extra={
                "content_id": content_id,
                "moderator_id_hash": hash_identifier(moderator_id),
                "previous_status": content.auto_mod_status.value,
                "status": status.value,
            }
        )
        return updated
