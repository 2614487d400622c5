"""Tests for the dispute resolution state machine."""
import pytest

from safespace.shared.errors import (
    AuthorizationError,
    DisputeStateError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from safespace.shared.models import AutoModStatus, ContentKind, ContentSubmission, DisputeStatus
from safespace.shared.utils import configure_identifier_salt
from safespace.services.moderation_service.config import TOO_MANY_DISPUTES_MESSAGE
from safespace.services.moderation_service.disputes import SYSTEM_ACTOR


@pytest.fixture(autouse=True)
def setup_identifier_salt():
    """Configure identifier salt before each test."""
    configure_identifier_salt("test_salt_that_is_at_least_32_characters_long")


def _submit(pipeline, body, author="author-1"):
    return pipeline.lifecycle.submit(
        ContentSubmission(body=body, author_id=author, kind=ContentKind.TOPIC)
    ).content


@pytest.fixture
def flagged(pipeline):
    content = _submit(pipeline, "I feel hopeless")
    assert content.auto_mod_status == AutoModStatus.FLAGGED
    return content


@pytest.fixture
def dispute(pipeline, flagged):
    return pipeline.disputes.open("author-1", flagged.id, ContentKind.TOPIC, "I was sharing, not in danger")


class TestOpen:

    def test_open_on_flagged_content(self, dispute, flagged, clock):
        assert dispute.status == DisputeStatus.OPEN
        assert dispute.content_id == flagged.id
        assert dispute.user_id == "author-1"
        assert dispute.reason_text == "I was sharing, not in danger"
        assert dispute.created_at == clock.now

    def test_open_on_blocked_content(self, pipeline, moderator_id):
        content = _submit(pipeline, "hello there")
        pipeline.lifecycle.remove_content(content.id, moderator_id, "spam")

        dispute = pipeline.disputes.open("author-1", content.id, ContentKind.TOPIC, "Not spam")
        assert dispute.status == DisputeStatus.OPEN

    def test_approved_content_cannot_be_disputed(self, pipeline):
        content = _submit(pipeline, "hello there")

        with pytest.raises(DisputeStateError):
            pipeline.disputes.open("author-1", content.id, ContentKind.TOPIC, "why")

    def test_only_author_may_dispute(self, pipeline, flagged):
        with pytest.raises(AuthorizationError):
            pipeline.disputes.open("someone-else", flagged.id, ContentKind.TOPIC, "unfair")

    def test_one_open_dispute_per_content(self, pipeline, dispute, flagged):
        with pytest.raises(DisputeStateError):
            pipeline.disputes.open("author-1", flagged.id, ContentKind.TOPIC, "again")

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reason_required(self, pipeline, flagged, reason):
        with pytest.raises(ValidationError):
            pipeline.disputes.open("author-1", flagged.id, ContentKind.TOPIC, reason)

    def test_unknown_content(self, pipeline):
        with pytest.raises(NotFoundError):
            pipeline.disputes.open("author-1", "missing", ContentKind.TOPIC, "why")

    def test_content_type_must_match_content(self, pipeline, flagged, store):
        with pytest.raises(ValidationError):
            pipeline.disputes.open("author-1", flagged.id, ContentKind.REPLY, "wrong type")
        assert store.count("disputes") == 0

    def test_open_dispute_limit_per_author(self, pipeline, flagged, dispute):
        for body in ("I feel hopeless tonight", "so tired of living"):
            content = _submit(pipeline, body)
            pipeline.disputes.open("author-1", content.id, ContentKind.TOPIC, "context")
        fourth = _submit(pipeline, "I can't take this anymore")

        with pytest.raises(RateLimitError) as exc_info:
            pipeline.disputes.open("author-1", fourth.id, ContentKind.TOPIC, "context")
        assert exc_info.value.user_message == TOO_MANY_DISPUTES_MESSAGE

    def test_resolved_disputes_free_the_limit(self, make_pipeline, moderator_id):
        pipeline = make_pipeline(max_open_disputes=1)
        first = _submit(pipeline, "I feel hopeless")
        second = _submit(pipeline, "so tired of living")
        dispute = pipeline.disputes.open("author-1", first.id, ContentKind.TOPIC, "context")
        pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.REJECTED)

        assert pipeline.disputes.open("author-1", second.id, ContentKind.TOPIC, "context").status == (
            DisputeStatus.OPEN
        )


class TestAutoAccept:

    def test_educational_context_is_accepted_on_open(self, pipeline, moderator_id, clock):
        content = _submit(pipeline, "I feel hopeless, says the character in my school project")
        assert content.auto_mod_status == AutoModStatus.FLAGGED

        dispute = pipeline.disputes.open("author-1", content.id, ContentKind.TOPIC, "It is fiction")

        assert dispute.status == DisputeStatus.ACCEPTED
        assert dispute.resolved_by == SYSTEM_ACTOR
        assert dispute.resolution_notes == "Auto-accepted: educational context"
        assert dispute.resolved_at == clock.now
        assert pipeline.lifecycle.get(content.id).auto_mod_status == AutoModStatus.APPROVED
        assert pipeline.disputes.stats(moderator_id)["auto_accepted"] == 1

    def test_crisis_log_is_kept(self, pipeline):
        content = _submit(pipeline, "I feel hopeless, how can I help my friend")
        pipeline.disputes.open("author-1", content.id, ContentKind.TOPIC, "Asking for a friend")

        assert len(pipeline.crisis_response.logs_for_content(content.id)) == 1

    def test_moderator_removal_waits_for_review(self, pipeline, moderator_id):
        content = _submit(pipeline, "notes from my school project")
        pipeline.lifecycle.remove_content(content.id, moderator_id, "spam")

        dispute = pipeline.disputes.open("author-1", content.id, ContentKind.TOPIC, "Homework")
        assert dispute.status == DisputeStatus.OPEN

    def test_plain_flagged_content_waits_for_review(self, dispute):
        assert dispute.status == DisputeStatus.OPEN

    def test_can_be_disabled(self, make_pipeline):
        pipeline = make_pipeline(auto_accept_disputes=False)
        content = _submit(pipeline, "I feel hopeless, says the character in my school project")

        dispute = pipeline.disputes.open("author-1", content.id, ContentKind.TOPIC, "It is fiction")
        assert dispute.status == DisputeStatus.OPEN


class TestResolve:

    def test_accept_restores_removed_content(self, pipeline, moderator_id):
        content = _submit(pipeline, "hello there")
        pipeline.lifecycle.remove_content(content.id, moderator_id, "spam")
        dispute = pipeline.disputes.open("author-1", content.id, ContentKind.TOPIC, "Not spam")

        pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.ACCEPTED)

        restored = pipeline.lifecycle.get(content.id)
        assert restored.auto_mod_status == AutoModStatus.APPROVED
        assert restored.is_removed is False
        assert restored.removed_at is None
        assert restored.removed_by is None

    def test_accept_restores_content(self, pipeline, dispute, flagged, moderator_id, clock):
        resolved = pipeline.disputes.resolve(
            dispute.id, moderator_id, DisputeStatus.ACCEPTED, notes="Supportive context"
        )

        assert resolved.status == DisputeStatus.ACCEPTED
        assert resolved.resolved_by == moderator_id
        assert resolved.resolution_notes == "Supportive context"
        assert resolved.resolved_at == clock.now
        assert pipeline.lifecycle.get(flagged.id).auto_mod_status == AutoModStatus.APPROVED

    def test_reject_keeps_content_status(self, pipeline, dispute, flagged, moderator_id):
        pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.REJECTED)
        assert pipeline.lifecycle.get(flagged.id).auto_mod_status == AutoModStatus.FLAGGED

    @pytest.mark.parametrize("resolution", [DisputeStatus.ACCEPTED, DisputeStatus.REJECTED])
    def test_author_cannot_accept_or_reject(self, pipeline, dispute, resolution):
        with pytest.raises(AuthorizationError):
            pipeline.disputes.resolve(dispute.id, "author-1", resolution)

    def test_author_can_withdraw(self, pipeline, dispute):
        resolved = pipeline.disputes.resolve(dispute.id, "author-1", DisputeStatus.WITHDRAWN)
        assert resolved.status == DisputeStatus.WITHDRAWN

    def test_moderator_can_withdraw(self, pipeline, dispute, moderator_id):
        resolved = pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.WITHDRAWN)
        assert resolved.status == DisputeStatus.WITHDRAWN

    def test_other_member_cannot_withdraw(self, pipeline, dispute):
        with pytest.raises(AuthorizationError):
            pipeline.disputes.resolve(dispute.id, "someone-else", DisputeStatus.WITHDRAWN)

    def test_terminal_states_are_final(self, pipeline, dispute, moderator_id):
        pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.REJECTED)

        with pytest.raises(DisputeStateError):
            pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.ACCEPTED)

    def test_open_is_not_a_resolution(self, pipeline, dispute, moderator_id):
        with pytest.raises(ValidationError):
            pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.OPEN)

    def test_unknown_dispute(self, pipeline, moderator_id):
        with pytest.raises(NotFoundError):
            pipeline.disputes.resolve("missing", moderator_id, DisputeStatus.REJECTED)

    def test_new_dispute_after_rejection(self, pipeline, dispute, flagged, moderator_id, clock):
        pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.REJECTED)
        clock.advance(days=1)

        second = pipeline.disputes.open("author-1", flagged.id, ContentKind.TOPIC, "New context")
        assert second.status == DisputeStatus.OPEN


class TestListing:

    def test_open_disputes_include_preview(self, pipeline, dispute, flagged, moderator_id):
        entries = pipeline.disputes.open_disputes(moderator_id)

        assert len(entries) == 1
        assert entries[0]["id"] == dispute.id
        assert entries[0]["reason"] == "I was sharing, not in danger"
        assert entries[0]["content"]["id"] == flagged.id
        assert entries[0]["content"]["auto_mod_status"] == "flagged"

    def test_open_disputes_requires_moderator(self, pipeline, dispute):
        with pytest.raises(AuthorizationError):
            pipeline.disputes.open_disputes("author-1")

    def test_resolved_disputes_leave_open_list(self, pipeline, dispute, moderator_id):
        pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.REJECTED)
        assert pipeline.disputes.open_disputes(moderator_id) == []

    def test_disputes_for_user(self, pipeline, dispute, moderator_id):
        pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.REJECTED)

        assert [d.id for d in pipeline.disputes.disputes_for_user("author-1")] == [dispute.id]
        assert pipeline.disputes.disputes_for_user("author-1", DisputeStatus.OPEN) == []
        assert pipeline.disputes.disputes_for_user("someone-else") == []


class TestStats:

    def test_stats(self, pipeline, dispute, moderator_id, clock):
        other = _submit(pipeline, "so tired of living")
        second = pipeline.disputes.open("author-1", other.id, ContentKind.TOPIC, "context")
        third = _submit(pipeline, "I feel hopeless tonight")
        pipeline.disputes.open("author-1", third.id, ContentKind.TOPIC, "context")

        clock.advance(minutes=30)
        pipeline.disputes.resolve(dispute.id, moderator_id, DisputeStatus.ACCEPTED)
        clock.advance(minutes=60)
        pipeline.disputes.resolve(second.id, moderator_id, DisputeStatus.REJECTED)

        assert pipeline.disputes.stats(moderator_id) == {
            "total": 3,
            "open": 1,
            "accepted": 1,
            "rejected": 1,
            "withdrawn": 0,
            "auto_accepted": 0,
            "approval_rate": 0.5,
            "average_review_minutes": 60,
        }

    def test_empty_stats(self, pipeline, moderator_id):
        stats = pipeline.disputes.stats(moderator_id)

        assert stats["total"] == 0
        assert stats["approval_rate"] == 0.0
        assert stats["average_review_minutes"] == 0

    def test_stats_requires_moderator(self, pipeline):
        with pytest.raises(AuthorizationError):
            pipeline.disputes.stats("author-1")
