"""Tests for environment-driven configuration and the static identity roster."""
import os
from unittest.mock import patch

import pytest

from safespace.services.moderation_service.config import ModerationConfig, ReputationPolicy
from safespace.services.moderation_service.identity import StaticIdentityProvider


class TestModerationConfig:

    def test_defaults(self):
        config = ModerationConfig()

        assert config.rapid_posting_threshold == 5
        assert config.enforce_rapid_posting_limit is False
        assert config.daily_report_limit == 5
        assert config.classifier_endpoint is None
        assert config.store_backend == "memory"
        assert config.max_open_disputes == 3
        assert config.auto_accept_disputes is True

    def test_from_env(self):
        env = {
            "RAPID_POSTING_THRESHOLD": "3",
            "ENFORCE_RAPID_POSTING_LIMIT": "true",
            "DAILY_REPORT_LIMIT": "10",
            "CLASSIFIER_ENDPOINT": "http://classifier.local/analyze",
            "CLASSIFIER_TIMEOUT_SECONDS": "5",
            "STORE_BACKEND": "postgres",
        }
        with patch.dict(os.environ, env):
            config = ModerationConfig.from_env()

        assert config.rapid_posting_threshold == 3
        assert config.enforce_rapid_posting_limit is True
        assert config.daily_report_limit == 10
        assert config.classifier_endpoint == "http://classifier.local/analyze"
        assert config.classifier_timeout_seconds == 5.0
        assert config.store_backend == "postgres"

    def test_tracker_and_dispute_settings_from_env(self):
        env = {
            "HASH_PREFIX_LENGTH": "40",
            "MAX_OPEN_DISPUTES": "5",
            "AUTO_ACCEPT_DISPUTES": "false",
        }
        with patch.dict(os.environ, env):
            config = ModerationConfig.from_env()

        assert config.hash_prefix_length == 40
        assert config.max_open_disputes == 5
        assert config.auto_accept_disputes is False

    def test_dispute_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            ModerationConfig(max_open_disputes=0)

    def test_empty_endpoint_disables_classifier(self):
        with patch.dict(os.environ, {"CLASSIFIER_ENDPOINT": ""}):
            assert ModerationConfig.from_env().classifier_endpoint is None

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValueError):
            ModerationConfig(store_backend="redis")

    def test_threshold_must_be_positive(self):
        with pytest.raises(ValueError):
            ModerationConfig(rapid_posting_threshold=0)

    def test_config_is_immutable(self):
        config = ModerationConfig()
        with pytest.raises(Exception):  # FrozenInstanceError
            config.daily_report_limit = 100


class TestReputationPolicy:

    def test_suspension_days_from_env(self):
        with patch.dict(os.environ, {"SUSPENSION_DAYS": "2,4,8", "WARNING_PENALTY": "20"}):
            policy = ReputationPolicy.from_env()

        assert policy.suspension_days == (2, 4, 8)
        assert policy.warning_penalty == 20

    def test_at_risk_thresholds_from_env(self):
        with patch.dict(os.environ, {"AT_RISK_WARNING_COUNT": "2", "AT_RISK_SCORE": "70"}):
            policy = ReputationPolicy.from_env()

        assert policy.at_risk_warning_count == 2
        assert policy.at_risk_score == 70


class TestStaticIdentityProvider:

    def test_moderator_roster_from_env(self):
        with patch.dict(os.environ, {"MODERATOR_IDS": "mod-1, mod-2,,"}):
            identity = StaticIdentityProvider.from_env()

        assert identity.is_moderator("mod-1") is True
        assert identity.is_moderator("mod-2") is True
        assert identity.is_moderator("member-1") is False

    def test_missing_actor_is_not_moderator(self):
        identity = StaticIdentityProvider(moderator_ids=["mod-1"])

        assert identity.is_moderator(None) is False
        assert identity.is_moderator("") is False

    def test_display_name_fallback(self):
        identity = StaticIdentityProvider(display_names={"member-1": "Sam"})

        assert identity.display_name("member-1") == "Sam"
        assert identity.display_name("member-2") == "Community member"
