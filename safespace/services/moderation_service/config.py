"""Moderation Service configuration and member-facing text.

The crisis resource block is reproduced verbatim wherever a blocked or
high/critical outcome is shown to a member.
"""
import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class ModerationConfig:
    """Tunables for the moderation pipeline."""

    # Behavior tracking
    rapid_posting_threshold: int = 5
    enforce_rapid_posting_limit: bool = False
    hash_history_size: int = 10
    hash_prefix_length: int = 100

    # Report abuse limit (per reporter, trailing 24 hours)
    daily_report_limit: int = 5

    # Disputes
    max_open_disputes: int = 3
    auto_accept_disputes: bool = True

    # Remote classification
    classifier_endpoint: Optional[str] = None
    classifier_timeout_seconds: float = 30.0
    classifier_workers: int = 4

    # Moderator alerts
    alert_stream_name: str = "safespace-moderator-alerts"
    alerts_enabled: bool = False

    # Persistence backend: "memory" or "postgres"
    store_backend: str = "memory"

    # Version tracking for audit trail
    pattern_version: str = "2026.03.01"

    def __post_init__(self):
        if self.rapid_posting_threshold < 1:
            raise ValueError("rapid_posting_threshold must be at least 1")
        if self.hash_history_size < 1:
            raise ValueError("hash_history_size must be at least 1")
        if self.max_open_disputes < 1:
            raise ValueError("max_open_disputes must be at least 1")
        if self.store_backend not in ("memory", "postgres"):
            raise ValueError(f"Unknown store backend: {self.store_backend}")

    @classmethod
    def from_env(cls) -> "ModerationConfig":
        """Create config from environment variables.

        Environment variables:
            RAPID_POSTING_THRESHOLD, ENFORCE_RAPID_POSTING_LIMIT
            HASH_HISTORY_SIZE, HASH_PREFIX_LENGTH, DAILY_REPORT_LIMIT
            MAX_OPEN_DISPUTES, AUTO_ACCEPT_DISPUTES
            CLASSIFIER_ENDPOINT, CLASSIFIER_TIMEOUT_SECONDS, CLASSIFIER_WORKERS
            MODERATOR_ALERT_STREAM, MODERATOR_ALERTS_ENABLED
            STORE_BACKEND, PATTERN_VERSION
        """
        return cls(
            rapid_posting_threshold=int(os.getenv("RAPID_POSTING_THRESHOLD", "5")),
            enforce_rapid_posting_limit=_env_bool("ENFORCE_RAPID_POSTING_LIMIT", "false"),
            hash_history_size=int(os.getenv("HASH_HISTORY_SIZE", "10")),
            hash_prefix_length=int(os.getenv("HASH_PREFIX_LENGTH", "100")),
            daily_report_limit=int(os.getenv("DAILY_REPORT_LIMIT", "5")),
            max_open_disputes=int(os.getenv("MAX_OPEN_DISPUTES", "3")),
            auto_accept_disputes=_env_bool("AUTO_ACCEPT_DISPUTES", "true"),
            classifier_endpoint=os.getenv("CLASSIFIER_ENDPOINT") or None,
            classifier_timeout_seconds=float(os.getenv("CLASSIFIER_TIMEOUT_SECONDS", "30")),
            classifier_workers=int(os.getenv("CLASSIFIER_WORKERS", "4")),
            alert_stream_name=os.getenv("MODERATOR_ALERT_STREAM", "safespace-moderator-alerts"),
            alerts_enabled=_env_bool("MODERATOR_ALERTS_ENABLED", "false"),
            store_backend=os.getenv("STORE_BACKEND", "memory"),
            pattern_version=os.getenv("PATTERN_VERSION", "2026.03.01"),
        )


@dataclass(frozen=True)
class ReputationPolicy:
    """Warning and suspension rules applied after moderator removals."""
    warning_penalty: int = 10
    at_risk_warning_count: int = 3
    at_risk_score: int = 50
    warnings_before_suspension: int = 3
    # Suspension length in days, indexed by prior suspension count
    suspension_days: tuple = (1, 3, 7, 30)

    @classmethod
    def from_env(cls) -> "ReputationPolicy":
        days = os.getenv("SUSPENSION_DAYS")
        return cls(
            warning_penalty=int(os.getenv("WARNING_PENALTY", "10")),
            at_risk_warning_count=int(os.getenv("AT_RISK_WARNING_COUNT", "3")),
            at_risk_score=int(os.getenv("AT_RISK_SCORE", "50")),
            warnings_before_suspension=int(os.getenv("WARNINGS_BEFORE_SUSPENSION", "3")),
            suspension_days=tuple(int(d) for d in days.split(",")) if days else (1, 3, 7, 30),
        )


CRISIS_RESOURCES = (
    "If you're in crisis or thinking about suicide, please reach out now:\n"
    "- Call or text 988 (Suicide & Crisis Lifeline), available 24/7\n"
    "- Text HOME to 741741 (Crisis Text Line)\n"
    "- If you are in immediate danger, call 911 or go to the nearest emergency room\n"
    "- Chat with Amani, our in-app support companion, from the Support tab\n"
    "You are not alone. Help is available."
)

# Separator between member text and the appended resource block
CRISIS_RESOURCES_DIVIDER = "\n\n---\n\n"

BLOCKED_CONTENT_NOTICE = (
    "We're concerned about the content in your post. If you're in crisis, "
    "please reach out for help immediately. Our community guidelines prohibit "
    "detailed descriptions of suicide methods or self-harm. You can share that "
    "you're struggling without specific details."
)

DUPLICATE_CONTENT_MESSAGE = (
    "This content appears to be a duplicate of a recent post. "
    "Please check if you've already posted this."
)

RAPID_POSTING_MESSAGE = (
    "You're posting very quickly. Please take a short break before posting again."
)

EMPTY_CONTENT_MESSAGE = "Please write something before posting."

REPORT_LIMIT_MESSAGE = "Daily report limit reached. Please try again tomorrow."

TRIGGER_WARNING_MARKER = "\u26a0\ufe0f"

TOO_MANY_DISPUTES_MESSAGE = (
    "You have too many open disputes. Please wait for reviews to complete."
)
