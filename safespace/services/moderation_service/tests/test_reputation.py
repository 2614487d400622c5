"""Tests for ReputationService."""
from datetime import timedelta

import pytest

from safespace.shared.database import ReputationRepository
from safespace.shared.utils import configure_identifier_salt
from safespace.services.moderation_service.config import ReputationPolicy
from safespace.services.moderation_service.reputation import (
    TRUST_AT_RISK,
    TRUST_MEMBER,
    TRUST_RESTRICTED,
    ReputationService,
    ViolationAction,
)


@pytest.fixture(autouse=True)
def setup_identifier_salt():
    """Configure identifier salt before each test."""
    configure_identifier_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def service(store, clock):
    return ReputationService(ReputationRepository(store), policy=ReputationPolicy(), clock=clock)


class TestWarnings:

    def test_default_reputation(self, service):
        reputation = service.get("user-1")

        assert reputation.trust_level == TRUST_MEMBER
        assert reputation.reputation_score == 100
        assert reputation.warnings_received == 0

    def test_warning_lowers_score(self, service):
        reputation = service.add_warning("user-1", "spam")

        assert reputation.warnings_received == 1
        assert reputation.reputation_score == 90
        assert reputation.trust_level == TRUST_MEMBER
        assert service.get("user-1").warnings_received == 1

    def test_three_warnings_is_at_risk(self, service):
        for _ in range(3):
            reputation = service.add_warning("user-1", "harassment")

        assert reputation.trust_level == TRUST_AT_RISK
        assert reputation.reputation_score == 70

    def test_low_score_is_at_risk(self, store, clock):
        service = ReputationService(
            ReputationRepository(store), policy=ReputationPolicy(warning_penalty=60), clock=clock
        )
        assert service.add_warning("user-1", "spam").trust_level == TRUST_AT_RISK

    def test_score_never_negative(self, store, clock):
        service = ReputationService(
            ReputationRepository(store), policy=ReputationPolicy(warning_penalty=200), clock=clock
        )
        assert service.add_warning("user-1", "spam").reputation_score == 0


class TestViolations:

    def test_violations_warn_then_suspend(self, service, clock):
        actions = [service.record_violation("user-1", "spam") for _ in range(4)]

        assert actions == [ViolationAction.WARNING] * 3 + [ViolationAction.SUSPENSION]
        reputation = service.get("user-1")
        assert reputation.is_banned is True
        assert reputation.ban_expires_at == clock.now + timedelta(days=1)
        assert reputation.trust_level == TRUST_RESTRICTED
        assert reputation.suspensions_count == 1

    def test_suspensions_escalate(self, service, clock):
        service.suspend("user-1", "first")
        service.suspend("user-1", "second")

        assert service.get("user-1").ban_expires_at == clock.now + timedelta(days=3)

    def test_suspension_length_caps_at_last_step(self, service):
        assert service.suspension_days(0) == 1
        assert service.suspension_days(3) == 30
        assert service.suspension_days(10) == 30

    def test_ban_expires(self, service, clock):
        service.suspend("user-1", "first")
        assert service.is_banned("user-1") is True

        clock.advance(days=1, seconds=1)
        assert service.is_banned("user-1") is False

    def test_unknown_member_is_not_banned(self, service):
        assert service.is_banned("nobody") is False


class TestCounters:

    def test_report_received(self, service):
        service.record_report_received("user-1")
        service.record_report_received("user-1")
        assert service.get("user-1").reports_received == 2

    def test_crisis_post(self, service, clock):
        service.record_crisis_post("user-1")

        reputation = service.get("user-1")
        assert reputation.crisis_posts_count == 1
        assert reputation.last_crisis_post_at == clock.now


class TestStatus:

    def test_status_of_suspended_member(self, service, clock):
        service.suspend("user-1", "Repeated violations")

        status = service.status("user-1")

        assert status["is_banned"] is True
        assert status["ban_reason"] == "Repeated violations"
        assert status["ban_expires_at"] == (clock.now + timedelta(days=1)).isoformat()
        assert status["trust_level"] == TRUST_RESTRICTED

    def test_status_hides_expired_ban(self, service, clock):
        service.suspend("user-1", "Repeated violations")
        clock.advance(days=2)

        status = service.status("user-1")
        assert status["is_banned"] is False
        assert status["ban_reason"] is None
        assert status["suspensions_count"] == 1
