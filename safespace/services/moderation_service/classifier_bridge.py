"""Asynchronous re-classification of stored content.

After a post is stored (or escalated by a report) it is sent to a remote
classification service. The verdict is reconciled into the stored record
in the background:

- recommendedAction remove -> blocked, flag/crisis_response -> flagged,
  anything else -> approved, applied forward-only (never loosens)
- riskLevel overwrites the stored risk when it differs
- the raw verdict is stored with a timestamp
- high/critical verdicts get an ai_detected crisis log if none exists

The bridge never raises into the caller. Remote failures are logged and
leave the content at its synchronous status. There is no retry.
"""
import asyncio
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import aiohttp

from safespace.shared.database import ContentRepository
from safespace.shared.errors import ClassificationUnavailableError
from safespace.shared.models import (
    AutoModStatus,
    ContentKind,
    CrisisAction,
    ModeratedContent,
    RiskLevel,
)
from safespace.shared.utils import Clock, hash_identifier, utc_now
from .crisis_response import CrisisResponseService

logger = logging.getLogger(__name__)

ACTION_TO_STATUS: Dict[str, AutoModStatus] = {
    "remove": AutoModStatus.BLOCKED,
    "flag": AutoModStatus.FLAGGED,
    "crisis_response": AutoModStatus.FLAGGED,
}


@dataclass(frozen=True)
class ClassificationVerdict:
    """Parsed response of the remote classifier."""
    risk_level: RiskLevel
    concerns: Tuple[str, ...] = ()
    recommended_action: str = "none"
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def target_status(self) -> AutoModStatus:
        return ACTION_TO_STATUS.get(self.recommended_action, AutoModStatus.APPROVED)

    @classmethod
    def from_payload(cls, payload: Any) -> "ClassificationVerdict":
        """Parse a bare verdict or a {success, analysis} envelope.

        Raises:
            ClassificationUnavailableError: On failure envelopes or malformed verdicts
        """
        if not isinstance(payload, dict):
            raise ClassificationUnavailableError("Classifier returned a non-object payload")

        analysis = payload
        if "success" in payload or "analysis" in payload:
            if not payload.get("success", False):
                raise ClassificationUnavailableError(
                    f"Classifier reported failure: {payload.get('error', 'unknown error')}"
                )
            analysis = payload.get("analysis")
            if not isinstance(analysis, dict):
                raise ClassificationUnavailableError("Classifier envelope missing analysis")

        try:
            risk_level = RiskLevel(str(analysis.get("riskLevel", "")).lower())
        except ValueError:
            raise ClassificationUnavailableError(
                f"Classifier returned invalid riskLevel: {analysis.get('riskLevel')!r}"
            )

        concerns = analysis.get("concerns") or []
        if not isinstance(concerns, list):
            concerns = [concerns]

        return cls(
            risk_level=risk_level,
            concerns=tuple(str(c) for c in concerns),
            recommended_action=str(analysis.get("recommendedAction") or "none").lower(),
            raw=dict(analysis),
        )


class RemoteClassifier:
    """HTTP client for the remote content classification service.

    POSTs {"content": ..., "contentType": ...} and expects
    {"riskLevel", "concerns", "recommendedAction"} back.
    """

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float = 30.0,
        api_key: Optional[str] = None,
    ):
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    async def classify(self, text: str, kind: ContentKind) -> ClassificationVerdict:
        payload = {"content": text, "contentType": kind.value}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.endpoint,
                    headers=self.headers,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
                ) as response:
                    response.raise_for_status()
                    result = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ClassificationUnavailableError(
                f"Classifier request failed: {type(e).__name__}: {e}"
            ) from e

        return ClassificationVerdict.from_payload(result)


class ClassifierBridge:
    """Schedules remote classification off the request path."""

    def __init__(
        self,
        classifier: Optional[RemoteClassifier],
        content_repository: ContentRepository,
        crisis_response: CrisisResponseService,
        executor: Optional[Executor] = None,
        max_workers: int = 4,
        clock: Clock = utc_now,
    ):
        self.classifier = classifier
        self.content_repository = content_repository
        self.crisis_response = crisis_response
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="classifier-bridge"
        )
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self.classifier is not None

    def schedule(self, content_id: str, text: str, kind: ContentKind, reason: str = "submission") -> Optional[Future]:
        """Queue a background classification. Never raises.

        Returns:
            The Future of the background task, or None if nothing was queued
        """
        if not self.enabled:
            logger.debug("CLASSIFIER_SKIPPED", extra={"content_id": content_id, "reason": "no_endpoint"})
            return None
        try:
            return self._executor.submit(self._run, content_id, text, kind, reason)
        except Exception as e:
            logger.error(
                "CLASSIFIER_SCHEDULE_FAILED",
                extra={"content_id": content_id, "error": str(e), "error_type": type(e).__name__}
            )
            return None

    def _run(self, content_id: str, text: str, kind: ContentKind, reason: str) -> Optional[ModeratedContent]:
        # Task boundary: nothing escapes into the executor
        try:
            return asyncio.run(self.reconcile(content_id, text, kind))
        except ClassificationUnavailableError as e:
            logger.error(
                "CLASSIFICATION_UNAVAILABLE",
                extra={"content_id": content_id, "trigger": reason, "error": str(e)}
            )
        except Exception as e:
            logger.error(
                "CLASSIFICATION_RECONCILE_FAILED",
                extra={
                    "content_id": content_id,
                    "trigger": reason,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
        return None

    async def reconcile(self, content_id: str, text: str, kind: ContentKind) -> Optional[ModeratedContent]:
        """Classify remotely and merge the verdict into the stored content.

        Raises:
            ClassificationUnavailableError: If the remote call fails
            PersistenceError: If the content cannot be read or written
        """
        verdict = await self.classifier.classify(text, kind)

        content = self.content_repository.find_by_id(content_id)
        if content is None:
            logger.warning("CLASSIFICATION_CONTENT_MISSING", extra={"content_id": content_id})
            return None

        now = self._clock()
        new_status = max(content.auto_mod_status, verdict.target_status)
        changes: Dict[str, Any] = {
            "ai_analysis": verdict.raw,
            "ai_analyzed_at": now,
            "updated_at": now,
        }
        if new_status is not content.auto_mod_status:
            changes["auto_mod_status"] = new_status
        if verdict.risk_level is not content.risk_level:
            changes["risk_level"] = verdict.risk_level

        updated = self.content_repository.update_fields(content_id, **changes)

        logger.info(
            "CLASSIFICATION_RECONCILED",
            extra={
                "content_id": content_id,
                "previous_status": content.auto_mod_status.value,
                "status": new_status.value,
                "previous_risk_level": content.risk_level.value,
                "risk_level": verdict.risk_level.value,
                "recommended_action": verdict.recommended_action,
            }
        )

        if verdict.risk_level.needs_crisis_resources and not self.crisis_response.has_log(content_id):
            logger.critical(
                "CLASSIFIER_CRISIS_DETECTED",
                extra={
                    "content_id": content_id,
                    "user_id_hash": hash_identifier(content.author_id),
                    "risk_level": verdict.risk_level.value,
                }
            )
            self.crisis_response.record(
                content_id=content_id,
                content_type=content.kind,
                user_id=content.author_id,
                risk_level=verdict.risk_level,
                action=CrisisAction.AI_DETECTED,
            )
        return updated

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
