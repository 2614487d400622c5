"""Dispute resolution for automated moderation decisions.

States: open -> accepted | rejected | withdrawn. All resolutions are
terminal; a new dispute may be opened if the content is flagged again.

- Only the content's author may open a dispute, and only against
  flagged or blocked content. At most one dispute per content is open,
  and each author may hold at most max_open_disputes open disputes.
- Flagged content whose text reads as educational, quoted, help-seeking,
  recovery or resource-seeking is accepted on open by the system actor.
  Moderator removals and critical content always wait for a moderator.
- accepted/rejected are moderator-only; withdrawn is allowed for the
  author or a moderator.
- Accepting a dispute restores the content to approved and clears any
  removal.
"""
import logging
from typing import Any, Dict, List, Optional

from safespace.shared.database import ContentRepository, DisputeRepository
from safespace.shared.errors import (
    AuthorizationError,
    DisputeStateError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from safespace.shared.models import (
    AutoModStatus,
    ContentKind,
    Dispute,
    DisputeStatus,
    ModeratedContent,
    RiskLevel,
)
from safespace.shared.utils import Clock, hash_identifier, new_record_id, to_iso, utc_now
from .config import TOO_MANY_DISPUTES_MESSAGE, ModerationConfig
from .identity import IdentityProvider
from .patterns import FALSE_POSITIVE_CONTEXT

logger = logging.getLogger(__name__)

MODERATOR_RESOLUTIONS = frozenset({DisputeStatus.ACCEPTED, DisputeStatus.REJECTED})

SYSTEM_ACTOR = "system"


def serialize_dispute(dispute: Dispute) -> Dict[str, Any]:
    return {
        "id": dispute.id,
        "content_id": dispute.content_id,
        "content_type": dispute.content_type.value,
        "user_id": dispute.user_id,
        "reason": dispute.reason_text,
        "status": dispute.status.value,
        "resolved_by": dispute.resolved_by,
        "resolution_notes": dispute.resolution_notes,
        "created_at": to_iso(dispute.created_at),
        "resolved_at": to_iso(dispute.resolved_at),
    }


def false_positive_context(content: ModeratedContent) -> Optional[str]:
    """Name the first benign-context category the content's text matches."""
    for category, group in FALSE_POSITIVE_CONTEXT.items():
        if group.matches(content.plain_text):
            return category
    return None


class DisputeService:
    """State machine for author disputes of moderation decisions."""

    def __init__(
        self,
        repository: DisputeRepository,
        content_repository: ContentRepository,
        identity: IdentityProvider,
        config: Optional[ModerationConfig] = None,
        clock: Clock = utc_now,
    ):
        self.repository = repository
        self.content_repository = content_repository
        self.identity = identity
        self.config = config or ModerationConfig()
        self._clock = clock

    def open(
        self,
        author_id: Optional[str],
        content_id: str,
        content_type: ContentKind,
        reason_text: str,
    ) -> Dispute:
        """Open a dispute against a flagged or blocked post.

        Returns the dispute, already accepted when the content qualifies
        for automatic acceptance.

        Raises:
            ValidationError: Missing fields or a content type that does not
                match the content
            NotFoundError: Unknown content
            AuthorizationError: Actor is not the content's author
            DisputeStateError: Content is approved or already disputed
            RateLimitError: Author already has too many open disputes
        """
        if not author_id or not content_id or not (reason_text or "").strip():
            raise ValidationError("userId, contentId, contentType and reason are required")

        content = self.content_repository.find_by_id(content_id)
        if content is None:
            raise NotFoundError(f"Content not found: {content_id}")
        if content_type != content.kind:
            raise ValidationError(
                f"Content {content_id} is a {content.kind.value}, not a {content_type.value}"
            )
        if content.author_id != author_id:
            raise AuthorizationError("Only the author can dispute this content")
        if not content.is_disputable:
            raise DisputeStateError(
                f"Content is {content.auto_mod_status.value}; only flagged or blocked content can be disputed"
            )
        if self.repository.find_open_for_content(content_id) is not None:
            raise DisputeStateError("A dispute is already open for this content")

        open_count = self.repository.count(
            {"user_id": author_id, "status": DisputeStatus.OPEN.value}
        )
        if open_count >= self.config.max_open_disputes:
            logger.warning(
                "DISPUTE_LIMIT_REACHED",
                extra={"user_id_hash": hash_identifier(author_id), "open_disputes": open_count}
            )
            raise RateLimitError("Too many open disputes", TOO_MANY_DISPUTES_MESSAGE)

        dispute = Dispute(
            id=new_record_id(),
            content_id=content_id,
            content_type=content.kind,
            user_id=author_id,
            reason_text=reason_text.strip(),
            created_at=self._clock(),
        )
        self.repository.insert(dispute)

        logger.info(
            "DISPUTE_OPENED",
            extra={
                "dispute_id": dispute.id,
                "content_id": content_id,
                "user_id_hash": hash_identifier(author_id),
                "auto_mod_status": content.auto_mod_status.value,
            }
        )

        category = self._auto_accept_category(content)
        if category is not None:
            return self._apply_resolution(
                dispute, SYSTEM_ACTOR, DisputeStatus.ACCEPTED, f"Auto-accepted: {category} context"
            )
        return dispute

    def _auto_accept_category(self, content: ModeratedContent) -> Optional[str]:
        if not self.config.auto_accept_disputes:
            return None
        if content.is_removed or content.auto_mod_status is not AutoModStatus.FLAGGED:
            return None
        if content.risk_level >= RiskLevel.CRITICAL:
            return None
        return false_positive_context(content)

    def resolve(
        self,
        dispute_id: str,
        actor_id: Optional[str],
        resolution: DisputeStatus,
        notes: Optional[str] = None,
    ) -> Dispute:
        """Move an open dispute to a terminal state.

        Raises:
            ValidationError: Resolution is not terminal
            NotFoundError: Unknown dispute
            AuthorizationError: Actor may not apply this resolution
            DisputeStateError: Dispute is already resolved
            PersistenceError: Write failed; safe to retry
        """
        if not resolution.is_terminal:
            raise ValidationError("Resolution must be accepted, rejected or withdrawn")

        dispute = self.repository.find_by_id(dispute_id)
        if dispute is None:
            raise NotFoundError(f"Dispute not found: {dispute_id}")

        is_moderator = self.identity.is_moderator(actor_id)
        if resolution in MODERATOR_RESOLUTIONS and not is_moderator:
            raise AuthorizationError("Moderator role required")
        if resolution is DisputeStatus.WITHDRAWN and not (is_moderator or actor_id == dispute.user_id):
            raise AuthorizationError("Only the author or a moderator can withdraw a dispute")

        if dispute.status.is_terminal:
            raise DisputeStateError(f"Dispute already {dispute.status.value}")

        return self._apply_resolution(dispute, actor_id, resolution, notes)

    def _apply_resolution(
        self,
        dispute: Dispute,
        actor_id: Optional[str],
        resolution: DisputeStatus,
        notes: Optional[str],
    ) -> Dispute:
        now = self._clock()
        resolved = self.repository.update_fields(
            dispute.id,
            status=resolution,
            resolved_by=actor_id,
            resolution_notes=notes,
            resolved_at=now,
        )

        if resolution is DisputeStatus.ACCEPTED:
            self.content_repository.update_fields(
                dispute.content_id,
                auto_mod_status=AutoModStatus.APPROVED,
                is_removed=False,
                removed_at=None,
                removed_by=None,
                updated_at=now,
            )

        logger.info(
            "DISPUTE_RESOLVED",
            extra={
                "dispute_id": dispute.id,
                "content_id": dispute.content_id,
                "actor_id_hash": hash_identifier(actor_id),
                "resolution": resolution.value,
                "automatic": actor_id == SYSTEM_ACTOR,
            }
        )
        return resolved

    def open_disputes(self, moderator_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Open disputes joined with a content preview. Moderator only."""
        if not self.identity.is_moderator(moderator_id):
            raise AuthorizationError("Moderator role required")

        entries = []
        for dispute in self.repository.find({"status": DisputeStatus.OPEN.value}, limit=limit):
            content = self.content_repository.find_by_id(dispute.content_id)
            entry = serialize_dispute(dispute)
            entry["content"] = content.preview() if content is not None else None
            entries.append(entry)
        return entries

    def disputes_for_user(self, user_id: str, status: Optional[DisputeStatus] = None) -> List[Dispute]:
        filters: Dict[str, Any] = {"user_id": user_id}
        if status is not None:
            filters["status"] = status.value
        return self.repository.find(filters)

    def stats(self, moderator_id: str) -> Dict[str, Any]:
        """Dispute outcome totals for the moderator dashboard.

        approval_rate is accepted / (accepted + rejected). Review time is
        averaged over accepted and rejected disputes, in minutes.

        Raises:
            AuthorizationError: Actor is not a moderator
        """
        if not self.identity.is_moderator(moderator_id):
            raise AuthorizationError("Moderator role required")

        accepted = self.repository.find({"status": DisputeStatus.ACCEPTED.value})
        rejected = self.repository.find({"status": DisputeStatus.REJECTED.value})
        reviewed = accepted + rejected

        review_minutes = [
            (d.resolved_at - d.created_at).total_seconds() / 60
            for d in reviewed
            if d.resolved_at is not None
        ]
        return {
            "total": self.repository.count(),
            "open": self.repository.count({"status": DisputeStatus.OPEN.value}),
            "accepted": len(accepted),
            "rejected": len(rejected),
            "withdrawn": self.repository.count({"status": DisputeStatus.WITHDRAWN.value}),
            "auto_accepted": sum(1 for d in accepted if d.resolved_by == SYSTEM_ACTOR),
            "approval_rate": round(len(accepted) / len(reviewed), 2) if reviewed else 0.0,
            "average_review_minutes": (
                round(sum(review_minutes) / len(review_minutes)) if review_minutes else 0
            ),
        }
