"""Member reputation: warnings, suspensions, report and crisis counters.

Trust levels:
    member      default
    at-risk     3+ warnings or reputation score below 50
    restricted  currently or previously suspended
"""
import logging
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Optional

from safespace.shared.database import ReputationRepository
from safespace.shared.models import UserReputation
from safespace.shared.utils import Clock, hash_identifier, to_iso, utc_now
from .config import ReputationPolicy

logger = logging.getLogger(__name__)

TRUST_MEMBER = "member"
TRUST_AT_RISK = "at-risk"
TRUST_RESTRICTED = "restricted"


class ViolationAction(Enum):
    WARNING = "warning"
    SUSPENSION = "suspension"


class ReputationService:
    """Read-modify-write updates of UserReputation records."""

    def __init__(
        self,
        repository: ReputationRepository,
        policy: Optional[ReputationPolicy] = None,
        clock: Clock = utc_now,
    ):
        self.repository = repository
        self.policy = policy or ReputationPolicy()
        self._clock = clock

    def get(self, user_id: str) -> UserReputation:
        return self.repository.get_or_default(user_id)

    def _save(self, reputation: UserReputation) -> UserReputation:
        reputation.updated_at = self._clock()
        return self.repository.save(reputation)

    def record_violation(self, user_id: str, reason: str) -> ViolationAction:
        """Apply the consequence of a confirmed violation.

        Members who already hold the maximum number of warnings are
        suspended instead of warned again.
        """
        reputation = self.get(user_id)
        if reputation.warnings_received >= self.policy.warnings_before_suspension:
            self.suspend(user_id, reason="Repeated violations", reputation=reputation)
            return ViolationAction.SUSPENSION
        self.add_warning(user_id, reason, reputation=reputation)
        return ViolationAction.WARNING

    def add_warning(
        self, user_id: str, reason: str, reputation: Optional[UserReputation] = None
    ) -> UserReputation:
        reputation = reputation or self.get(user_id)
        reputation.warnings_received += 1
        reputation.reputation_score = max(
            0, 100 - self.policy.warning_penalty * reputation.warnings_received
        )
        if (
            reputation.warnings_received >= self.policy.at_risk_warning_count
            or reputation.reputation_score < self.policy.at_risk_score
        ) and reputation.trust_level != TRUST_RESTRICTED:
            reputation.trust_level = TRUST_AT_RISK

        logger.warning(
            "MEMBER_WARNING_ADDED",
            extra={
                "user_id_hash": hash_identifier(user_id),
                "reason": reason,
                "warnings_received": reputation.warnings_received,
                "trust_level": reputation.trust_level,
            }
        )
        return self._save(reputation)

    def suspension_days(self, suspensions_count: int) -> int:
        days = self.policy.suspension_days
        return days[min(suspensions_count, len(days) - 1)]

    def suspend(
        self, user_id: str, reason: str, reputation: Optional[UserReputation] = None
    ) -> UserReputation:
        reputation = reputation or self.get(user_id)
        days = self.suspension_days(reputation.suspensions_count)
        reputation.is_banned = True
        reputation.ban_expires_at = self._clock() + timedelta(days=days)
        reputation.ban_reason = reason
        reputation.suspensions_count += 1
        reputation.trust_level = TRUST_RESTRICTED

        logger.warning(
            "MEMBER_SUSPENDED",
            extra={
                "user_id_hash": hash_identifier(user_id),
                "days": days,
                "suspensions_count": reputation.suspensions_count,
            }
        )
        return self._save(reputation)

    def record_report_received(self, user_id: str) -> UserReputation:
        reputation = self.get(user_id)
        reputation.reports_received += 1
        return self._save(reputation)

    def record_crisis_post(self, user_id: str) -> UserReputation:
        reputation = self.get(user_id)
        reputation.crisis_posts_count += 1
        reputation.last_crisis_post_at = self._clock()
        return self._save(reputation)

    def is_banned(self, user_id: str) -> bool:
        reputation = self.repository.find_by_id(user_id)
        return reputation is not None and reputation.is_currently_banned(self._clock())

    def status(self, user_id: str) -> Dict[str, Any]:
        """Member-facing standing summary."""
        reputation = self.get(user_id)
        banned = reputation.is_currently_banned(self._clock())
        return {
            "user_id": user_id,
            "is_banned": banned,
            "ban_expires_at": to_iso(reputation.ban_expires_at) if banned else None,
            "ban_reason": reputation.ban_reason if banned else None,
            "trust_level": reputation.trust_level,
            "reputation_score": reputation.reputation_score,
            "warnings_received": reputation.warnings_received,
            "reports_received": reputation.reports_received,
            "suspensions_count": reputation.suspensions_count,
        }
