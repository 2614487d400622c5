"""Moderation Service HTTP handler.

Every topic and reply passes through POST /submissions before it is
stored. Actor ids arrive in the request; authentication happens upstream
at the gateway.

Identifiers are never logged raw - use hash_identifier().
Error responses are built from ModerationError.to_dict() and carry the
member-facing message, including crisis resources for blocked posts.
"""
import logging
import os
from typing import Any, Dict, Optional, Type, TypeVar

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from safespace.shared.errors import AuthorizationError, ModerationError, ValidationError
from safespace.shared.models import (
    AutoModStatus,
    ContentKind,
    ContentSubmission,
    DisputeStatus,
    PriorityLevel,
    ReportReason,
    ReportStatus,
    RiskLevel,
)
from safespace.shared.utils import configure_identifier_salt, hash_identifier, to_iso
from .config import CRISIS_RESOURCES, ModerationConfig, ReputationPolicy
from .disputes import serialize_dispute
from .identity import StaticIdentityProvider
from .lifecycle import serialize_content
from .pipeline import ModerationPipeline, build_pipeline
from .reports import serialize_report
from .text_normalizer import to_plain_text

logger = logging.getLogger(__name__)

E = TypeVar("E")


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body required")
    return data


def _required(data: Dict[str, Any], name: str) -> Any:
    value = data.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Missing required field: {name}")
    return value


def _enum(enum_cls: Type[E], value: Any, name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {name}: {value!r} (expected one of {allowed})")


def _optional_enum(enum_cls: Type[E], value: Any, name: str) -> Optional[E]:
    return _enum(enum_cls, value, name) if value else None


def _serialize_crisis_log(entry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "content_id": entry.content_id,
        "content_type": entry.content_type.value,
        "risk_level": entry.risk_level.value,
        "action": entry.action.value,
        "resolution_status": entry.resolution_status,
        "created_at": to_iso(entry.created_at),
        "resources_added_at": to_iso(entry.resources_added_at),
        "message_sent_at": to_iso(entry.message_sent_at),
        "resolved_at": to_iso(entry.resolved_at),
    }


def create_app(pipeline: ModerationPipeline) -> Flask:
    """Build the Flask app around an assembled pipeline."""
    app = Flask(__name__)

    @app.errorhandler(ModerationError)
    def handle_moderation_error(error: ModerationError):
        log = logger.error if error.status_code >= 500 else logger.info
        log(
            "REQUEST_REJECTED",
            extra={
                "path": request.path,
                "error_code": error.error_code,
                "status_code": error.status_code,
                "error": error.message,
            }
        )
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.error(
            "REQUEST_FAILED",
            extra={"path": request.path, "error": str(error), "error_type": type(error).__name__}
        )
        return jsonify({"error": "internal_error", "message": "Something went wrong. Please try again."}), 500

    def require_moderator(moderator_id: Optional[str]) -> str:
        if not pipeline.identity.is_moderator(moderator_id):
            raise AuthorizationError("Moderator role required")
        return moderator_id

    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint for ECS/ALB."""
        return jsonify({
            "status": "healthy",
            "service": "moderation-service",
            "pattern_version": pipeline.config.pattern_version,
            "classifier_enabled": pipeline.bridge.enabled,
        }), 200

    @app.route("/ready", methods=["GET"])
    def ready():
        """Readiness check - verifies the record store is reachable.

        Returns:
            200 if ready, 503 if not
        """
        store_status = pipeline.store.health_check()
        if not store_status.get("healthy"):
            return jsonify({"status": "not_ready", "store": store_status}), 503
        return jsonify({"status": "ready", "store": store_status}), 200

    @app.route("/analyze", methods=["POST"])
    def analyze():
        """Dry-run analysis of text. Nothing is stored or tracked.

        Request Body:
            {"content": "Post text or HTML"}
        """
        data = _body()
        text = to_plain_text(_required(data, "content"))
        result = pipeline.analyzer.analyze(text)
        response = result.to_dict()
        response["pattern_version"] = pipeline.analyzer.pattern_version
        if result.blocked or result.needs_crisis_resources:
            response["crisis_resources"] = CRISIS_RESOURCES
        return jsonify(response), 200

    @app.route("/submissions", methods=["POST"])
    def submit():
        """Moderate and store a topic or reply.

        Request Body:
            {
                "user_id": "author id",
                "kind": "topic" | "reply",
                "content": "body text or HTML",
                "title": "topic title" (optional),
                "topic_id": "parent topic for replies" (optional),
                "trigger_warnings": ["Depression", ...] (optional)
            }

        Responses:
            201 with the stored content and any crisis resources
            409 duplicate, 422 blocked (with crisis resources), 429 rate limited
        """
        data = _body()
        tags = data.get("trigger_warnings") or []
        if not isinstance(tags, list):
            raise ValidationError("trigger_warnings must be a list")

        submission = ContentSubmission(
            body=_required(data, "content"),
            author_id=_required(data, "user_id"),
            kind=_enum(ContentKind, data.get("kind", ContentKind.TOPIC.value), "kind"),
            trigger_tags=tuple(str(t) for t in tags),
            title=data.get("title"),
            topic_id=data.get("topic_id"),
        )
        outcome = pipeline.lifecycle.submit(submission)
        return jsonify(outcome.to_dict()), 201

    @app.route("/content/<content_id>", methods=["GET"])
    def get_content(content_id: str):
        return jsonify(serialize_content(pipeline.lifecycle.get(content_id))), 200

    @app.route("/content/<content_id>/remove", methods=["POST"])
    def remove_content(content_id: str):
        data = _body()
        content = pipeline.lifecycle.remove_content(
            content_id,
            moderator_id=_required(data, "moderator_id"),
            reason=data.get("reason") or "Community guidelines violation",
        )
        return jsonify(serialize_content(content)), 200

    @app.route("/content/<content_id>/status", methods=["POST"])
    def set_content_status(content_id: str):
        data = _body()
        content = pipeline.lifecycle.set_status(
            content_id,
            moderator_id=_required(data, "moderator_id"),
            status=_enum(AutoModStatus, _required(data, "status"), "status"),
        )
        return jsonify(serialize_content(content)), 200

    @app.route("/content/<content_id>/crisis-logs", methods=["GET"])
    def content_crisis_logs(content_id: str):
        require_moderator(request.args.get("moderator_id"))
        logs = pipeline.crisis_response.logs_for_content(content_id)
        return jsonify({"crisis_logs": [_serialize_crisis_log(e) for e in logs]}), 200

    @app.route("/reports", methods=["POST"])
    def create_report():
        """File a report.

        Request Body:
            {
                "reporter_id": "...",
                "content_id": "...",
                "content_type": "topic" | "reply",
                "reason": "harassment" | "crisis" | ...,
                "details": "free text" (optional)
            }
        """
        data = _body()
        report = pipeline.reports.report(
            reporter_id=data.get("reporter_id"),
            content_id=_required(data, "content_id"),
            content_type=_enum(ContentKind, _required(data, "content_type"), "content_type"),
            reason=_enum(ReportReason, _required(data, "reason"), "reason"),
            details=data.get("details"),
        )
        return jsonify(serialize_report(report)), 201

    @app.route("/reports/queue", methods=["GET"])
    def report_queue():
        entries = pipeline.reports.moderation_queue(
            moderator_id=request.args.get("moderator_id"),
            priority=_optional_enum(PriorityLevel, request.args.get("priority"), "priority"),
            limit=request.args.get("limit", 50, type=int),
        )
        return jsonify({"reports": entries, "count": len(entries)}), 200

    @app.route("/reports/<report_id>/status", methods=["POST"])
    def update_report_status(report_id: str):
        data = _body()
        report = pipeline.reports.update_status(
            report_id,
            moderator_id=_required(data, "moderator_id"),
            status=_enum(ReportStatus, _required(data, "status"), "status"),
            notes=data.get("notes"),
        )
        return jsonify(serialize_report(report)), 200

    @app.route("/reports/<report_id>/escalate", methods=["POST"])
    def escalate_report(report_id: str):
        data = _body()
        report = pipeline.reports.escalate(report_id, moderator_id=_required(data, "moderator_id"))
        return jsonify(serialize_report(report)), 200

    @app.route("/disputes", methods=["POST"])
    def open_dispute():
        data = _body()
        dispute = pipeline.disputes.open(
            author_id=data.get("user_id"),
            content_id=data.get("content_id"),
            content_type=_enum(ContentKind, _required(data, "content_type"), "content_type"),
            reason_text=data.get("reason") or "",
        )
        return jsonify(serialize_dispute(dispute)), 201

    @app.route("/disputes", methods=["GET"])
    def list_disputes():
        user_id = request.args.get("user_id")
        if not user_id:
            raise ValidationError("Missing required parameter: user_id")
        disputes = pipeline.disputes.disputes_for_user(
            user_id, status=_optional_enum(DisputeStatus, request.args.get("status"), "status")
        )
        return jsonify({"disputes": [serialize_dispute(d) for d in disputes]}), 200

    @app.route("/disputes/open", methods=["GET"])
    def open_disputes():
        entries = pipeline.disputes.open_disputes(request.args.get("moderator_id"))
        return jsonify({"disputes": entries, "count": len(entries)}), 200

    @app.route("/disputes/stats", methods=["GET"])
    def dispute_stats():
        return jsonify(pipeline.disputes.stats(request.args.get("moderator_id"))), 200

    @app.route("/disputes/<dispute_id>/resolve", methods=["POST"])
    def resolve_dispute(dispute_id: str):
        data = _body()
        dispute = pipeline.disputes.resolve(
            dispute_id,
            actor_id=_required(data, "actor_id"),
            resolution=_enum(DisputeStatus, _required(data, "resolution"), "resolution"),
            notes=data.get("notes"),
        )
        return jsonify(serialize_dispute(dispute)), 200

    @app.route("/users/<user_id>/status", methods=["GET"])
    def user_status(user_id: str):
        return jsonify(pipeline.reputation.status(user_id)), 200

    @app.route("/crisis-response", methods=["POST"])
    def crisis_response_plan():
        """Timed response plan for a detected risk level.

        Request Body:
            {"risk_level": "critical" | "high" | "medium", "content_id": "..." (optional)}
        """
        data = _body()
        risk_level = _enum(RiskLevel, _required(data, "risk_level"), "risk_level")
        plan = pipeline.crisis_response.plan(risk_level)

        logger.warning(
            "CRISIS_RESPONSE_PLAN_REQUESTED",
            extra={"content_id": data.get("content_id"), "risk_level": risk_level.value}
        )
        response = plan.to_dict()
        response["content_id"] = data.get("content_id")
        response["crisis_resources"] = CRISIS_RESOURCES
        return jsonify(response), 200

    @app.route("/crisis-logs/<log_id>/message-sent", methods=["POST"])
    def crisis_message_sent(log_id: str):
        data = _body()
        moderator_id = require_moderator(data.get("moderator_id"))
        entry = pipeline.crisis_response.mark_message_sent(log_id)
        logger.info(
            "CRISIS_MESSAGE_SENT",
            extra={"crisis_log_id": log_id, "moderator_id_hash": hash_identifier(moderator_id)}
        )
        return jsonify(_serialize_crisis_log(entry)), 200

    @app.route("/crisis-logs/<log_id>/resolve", methods=["POST"])
    def resolve_crisis_log(log_id: str):
        data = _body()
        moderator_id = require_moderator(data.get("moderator_id"))
        entry = pipeline.crisis_response.resolve(log_id)
        logger.info(
            "CRISIS_LOG_RESOLVED",
            extra={"crisis_log_id": log_id, "moderator_id_hash": hash_identifier(moderator_id)}
        )
        return jsonify(_serialize_crisis_log(entry)), 200

    return app


# Configure identifier salt from environment
identifier_salt = os.getenv(
    "IDENTIFIER_HASH_SALT", "default_dev_salt_change_in_production_32chars"
)
configure_identifier_salt(identifier_salt)

pipeline = build_pipeline(
    config=ModerationConfig.from_env(),
    identity=StaticIdentityProvider.from_env(),
    reputation_policy=ReputationPolicy.from_env(),
)
app = create_app(pipeline)


if __name__ == "__main__":
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Run development server
    port = int(os.getenv("PORT", "8002"))
    app.run(host="0.0.0.0", port=port, debug=False)
