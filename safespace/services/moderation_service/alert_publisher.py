"""Moderator alert publisher.

Publishes moderator-facing alerts (escalated reports, detected crises) to
a Kinesis stream. The moderator dashboard and notification workers consume
the stream; delivery mechanics live there.

Failure Handling:
    - Publishing never raises and never blocks the member's request
    - Failures are logged at CRITICAL level so on-call sees them
"""
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

import boto3

from safespace.shared.utils import utc_now

logger = logging.getLogger(__name__)

ALERT_REPORT_ESCALATED = "moderation.report.escalated"
ALERT_CRISIS_DETECTED = "moderation.crisis.detected"


@dataclass(frozen=True)
class ModeratorAlert:
    """Immutable moderator alert event."""
    event_id: str
    event_type: str
    content_id: str
    content_type: str
    severity: str
    user_id_hash: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)

    def to_kinesis_payload(self) -> dict:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp.isoformat(),
            "source": "moderation-service",
            "data": {
                "content_id": self.content_id,
                "content_type": self.content_type,
                "severity": self.severity,
                "user_id_hash": self.user_id_hash,
                **self.details,
            },
        }


class ModeratorAlertPublisher:
    """Fire-and-forget Kinesis publisher for moderator alerts."""

    def __init__(
        self,
        stream_name: str = "safespace-moderator-alerts",
        enabled: bool = True,
        region: Optional[str] = None,
    ):
        """Initialize publisher.

        Args:
            stream_name: Kinesis stream name
            enabled: Whether publishing is enabled (disable for local dev)
            region: AWS region (defaults to AWS_REGION env var)
        """
        self.stream_name = stream_name
        self.enabled = enabled
        self.region = region or os.getenv("AWS_REGION", "us-east-1")
        self._kinesis_client = None

    @property
    def kinesis_client(self):
        """Lazy initialization of Kinesis client."""
        if self._kinesis_client is None and self.enabled:
            try:
                self._kinesis_client = boto3.client("kinesis", region_name=self.region)
            except Exception as e:
                logger.error("KINESIS_CLIENT_INIT_FAILED", extra={"error": str(e)})
        return self._kinesis_client

    def publish(
        self,
        event_type: str,
        content_id: str,
        content_type: str,
        severity: str,
        user_id_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Publish one alert.

        Returns:
            True if published, False if disabled or failed. Never raises.
        """
        if not self.enabled:
            logger.info(
                "MODERATOR_ALERT_SKIPPED",
                extra={"event_type": event_type, "content_id": content_id, "reason": "publishing_disabled"}
            )
            return False

        alert = ModeratorAlert(
            event_id=f"evt_{uuid.uuid4().hex[:12]}",
            event_type=event_type,
            content_id=content_id,
            content_type=content_type,
            severity=severity,
            user_id_hash=user_id_hash,
            details=details or {},
        )
        payload = alert.to_kinesis_payload()

        try:
            if self.kinesis_client is None:
                logger.critical(
                    "MODERATOR_ALERT_FALLBACK_LOG",
                    extra={
                        "event_id": alert.event_id,
                        "payload": json.dumps(payload),
                        "reason": "kinesis_client_unavailable",
                        "action": "MANUAL_PROCESSING_REQUIRED",
                    }
                )
                return False

            response = self.kinesis_client.put_record(
                StreamName=self.stream_name,
                Data=json.dumps(payload),
                PartitionKey=content_id,  # Same content → same shard
            )
        except Exception as e:
            logger.critical(
                "MODERATOR_ALERT_PUBLISH_FAILED",
                extra={
                    "event_id": alert.event_id,
                    "event_type": event_type,
                    "content_id": content_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "MANUAL_REVIEW_REQUIRED",
                }
            )
            return False

        logger.info(
            "MODERATOR_ALERT_PUBLISHED",
            extra={
                "event_id": alert.event_id,
                "event_type": event_type,
                "content_id": content_id,
                "severity": severity,
                "shard_id": response.get("ShardId"),
            }
        )
        return True
