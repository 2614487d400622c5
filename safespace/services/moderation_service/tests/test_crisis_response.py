"""Tests for the crisis response log and response plans."""
from unittest.mock import MagicMock

import pytest

from safespace.shared.database import CrisisLogRepository
from safespace.shared.errors import NotFoundError, PersistenceError
from safespace.shared.models import ContentKind, CrisisAction, CrisisRiskLevel, RiskLevel
from safespace.shared.utils import configure_identifier_salt
from safespace.services.moderation_service.alert_publisher import ALERT_CRISIS_DETECTED
from safespace.services.moderation_service.crisis_response import CrisisResponseService


@pytest.fixture(autouse=True)
def setup_identifier_salt():
    """Configure identifier salt before each test."""
    configure_identifier_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def service(store, alert_publisher, clock):
    return CrisisResponseService(CrisisLogRepository(store), alert_publisher=alert_publisher, clock=clock)


def _record(service, risk_level=RiskLevel.HIGH, action=CrisisAction.ADD_RESOURCES, content_id="c-1"):
    return service.record(
        content_id=content_id,
        content_type=ContentKind.TOPIC,
        user_id="user-1",
        risk_level=risk_level,
        action=action,
    )


class TestPlan:

    def test_critical_timeline(self, service, clock):
        plan = service.plan(RiskLevel.CRITICAL).to_dict()

        assert [a["action"] for a in plan["immediate"]] == ["alert_moderator", "add_crisis_resources"]
        assert plan["urgent"][0]["delay_minutes"] == 2
        assert [a["delay_minutes"] for a in plan["follow_up"]] == [5, 15]
        assert plan["immediate"][0]["scheduled_at"] == clock.now.isoformat()

    def test_high_timeline(self, service):
        plan = service.plan(RiskLevel.HIGH).to_dict()

        assert plan["urgent"][0]["action"] == "send_direct_message"
        assert plan["urgent"][0]["delay_minutes"] == 15
        assert plan["follow_up"][0]["delay_minutes"] == 60

    def test_medium_timeline(self, service):
        plan = service.plan(RiskLevel.MEDIUM).to_dict()

        assert plan["immediate"][0]["action"] == "flag_for_review"
        assert plan["urgent"] == []
        assert plan["follow_up"][0]["delay_minutes"] == 240

    def test_low_risk_has_no_actions(self, service):
        plan = service.plan(RiskLevel.LOW)
        assert plan.immediate == plan.urgent == plan.follow_up == ()


class TestRecord:

    def test_record_high(self, service, alert_publisher, clock):
        entry = _record(service)

        assert entry.risk_level == CrisisRiskLevel.HIGH
        assert entry.resolution_status == "open"
        assert entry.resources_added_at == clock.now
        assert service.has_log("c-1") is True
        alert_publisher.publish.assert_not_called()

    def test_record_critical_alerts_moderators(self, service, alert_publisher):
        _record(service, risk_level=RiskLevel.CRITICAL, action=CrisisAction.AI_DETECTED)

        alert_publisher.publish.assert_called_once()
        call = alert_publisher.publish.call_args
        assert call.args[0] == ALERT_CRISIS_DETECTED
        assert call.kwargs["severity"] == "critical"
        assert call.kwargs["details"] == {"action": "ai_detected"}

    def test_ai_detected_has_no_resources_timestamp(self, service):
        entry = _record(service, action=CrisisAction.AI_DETECTED)
        assert entry.resources_added_at is None

    def test_write_failure_returns_none(self, alert_publisher, clock):
        repository = MagicMock()
        repository.insert.side_effect = PersistenceError("down")
        service = CrisisResponseService(repository, alert_publisher=alert_publisher, clock=clock)

        assert _record(service, risk_level=RiskLevel.CRITICAL) is None
        alert_publisher.publish.assert_not_called()

    def test_logs_for_content(self, service):
        _record(service, content_id="c-1")
        _record(service, content_id="c-2")

        assert [e.content_id for e in service.logs_for_content("c-1")] == ["c-1"]
        assert service.has_log("c-3") is False


class TestFollowUp:

    def test_mark_message_sent(self, service, clock):
        entry = _record(service)
        clock.advance(minutes=10)

        updated = service.mark_message_sent(entry.id)
        assert updated.message_sent_at == clock.now

    def test_resolve(self, service, clock):
        entry = _record(service)
        clock.advance(hours=1)

        resolved = service.resolve(entry.id)

        assert resolved.resolution_status == "resolved"
        assert resolved.resolved_at == clock.now

    def test_unknown_log(self, service):
        with pytest.raises(NotFoundError):
            service.resolve("missing")
        with pytest.raises(NotFoundError):
            service.mark_message_sent("missing")
