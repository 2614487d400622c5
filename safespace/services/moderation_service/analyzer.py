"""Synchronous content analyzer - the blocking layer for community posts.

Runs the rule groups from patterns.py in a fixed order, first match wins:

1. Compound: suicide intent AND (method-seeking OR quick/painless)
2. Critical suicide or self-harm method
3. Harassment urging self-harm (blocks)
4. Disguised harm terms: leetspeak, lookalike letters, spaced-out words (blocks)
5. Other harassment
6. Coordinated harm, then impersonation of a clinician
7. Spam/scam
8. Unqualified medical advice
9. High-risk ideation, softened to medium by enough recovery language
10. Toxic positivity, only with several dismissive phrases

Trigger-topic suggestion runs independently over the whole text.
Pure and deterministic: no I/O, no clock, no logging of member text.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from safespace.shared.models import RiskLevel
from .config import CRISIS_RESOURCES, TRIGGER_WARNING_MARKER
from .patterns import (
    COMPOUND_QUALIFIERS,
    COORDINATED_HARM,
    CRITICAL_METHOD_GROUPS,
    DISGUISED_HARM,
    HARASSMENT,
    HIGH_RISK_IDEATION,
    IMPERSONATION,
    MEDICAL_ADVICE,
    PATTERN_VERSION,
    POSITIVE_INDICATORS,
    POSITIVE_MIN_HITS,
    SPAM,
    SUICIDE_INTENT,
    TOXIC_POSITIVITY,
    TOXIC_POSITIVITY_MIN_HITS,
    TRIGGER_TOPICS,
    TRIGGER_WARNING_PREFIX,
    Rule,
    RuleGroup,
)

REASON_COMPOUND = "method-seeking or quick/painless suicide request"
REASON_CRITICAL_METHODS = "prohibited suicide or self-harm methods"
REASON_CRITICAL_HARASSMENT = "directed harassment urging self-harm"
REASON_DISGUISED = "disguised self-harm or suicide language"
REASON_HARASSMENT = "harassment or bullying"
REASON_COORDINATED = "possible coordinated self-harm"
REASON_IMPERSONATION = "claims professional authority or diagnoses others"
REASON_SPAM = "possible spam or scam content"
REASON_MEDICAL = "unqualified medical advice"
REASON_IDEATION = "high-risk suicide ideation language"
REASON_IDEATION_RECOVERY = "ideation language alongside recovery language"
REASON_TOXIC_POSITIVITY = "dismissive toxic positivity"


@dataclass(frozen=True)
class AnalysisResult:
    """Classification of one piece of text.

    Immutable - recomputed whenever content changes.
    """
    blocked: bool = False
    flagged: bool = False
    risk_level: RiskLevel = RiskLevel.NONE
    needs_trigger_warning: bool = False
    suggested_triggers: Tuple[str, ...] = ()
    reason: Optional[str] = None
    matched_rules: Tuple[str, ...] = field(default=())

    def __post_init__(self):
        if self.blocked and not self.flagged:
            raise ValueError("Blocked content must also be flagged")

    @property
    def needs_crisis_resources(self) -> bool:
        return self.risk_level.needs_crisis_resources

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "blocked": self.blocked,
            "flagged": self.flagged,
            "risk_level": self.risk_level.value,
            "needs_trigger_warning": self.needs_trigger_warning,
            "suggested_triggers": list(self.suggested_triggers),
            "reason": self.reason,
            "matched_rules": list(self.matched_rules),
        }


@dataclass(frozen=True)
class _Outcome:
    group: RuleGroup
    blocked: bool
    risk_level: RiskLevel
    reason: str


# Steps 6-9, evaluated after the harassment check
_FLAGGING_CASCADE: Tuple[_Outcome, ...] = (
    _Outcome(COORDINATED_HARM, False, RiskLevel.HIGH, REASON_COORDINATED),
    _Outcome(IMPERSONATION, False, RiskLevel.HIGH, REASON_IMPERSONATION),
    _Outcome(SPAM, False, RiskLevel.MEDIUM, REASON_SPAM),
    _Outcome(MEDICAL_ADVICE, False, RiskLevel.MEDIUM, REASON_MEDICAL),
    _Outcome(HIGH_RISK_IDEATION, False, RiskLevel.HIGH, REASON_IDEATION),
)


def parse_trigger_warning(text: str) -> List[str]:
    """Return the topics named by a leading self-declared warning line.

    Recognizes "TW:", "CW:", "Trigger Warning:" and "Content Warning:",
    optionally preceded by the warning marker. Returns [] if absent.
    """
    for line in text.splitlines():
        if not line.strip():
            continue
        match = TRIGGER_WARNING_PREFIX.match(line)
        if not match:
            return []
        return [topic.strip() for topic in match.group(1).split(",") if topic.strip()]
    return []


def strip_crisis_resources(text: str) -> str:
    """Remove system-authored resource blocks so only member text is analyzed."""
    if CRISIS_RESOURCES not in text:
        return text
    text = text.replace(CRISIS_RESOURCES, "")
    return "\n".join(line for line in text.splitlines() if line.strip() != "---")


class ContentAnalyzer:
    """Deterministic rule-based analyzer for posts and replies."""

    def __init__(self, pattern_version: str = PATTERN_VERSION):
        self.pattern_version = pattern_version

    def analyze(self, text: str) -> AnalysisResult:
        """Classify plain text.

        Args:
            text: Markup-free text. May contain a composed warning line
                and crisis resource block from an earlier submission.

        Returns:
            AnalysisResult
        """
        text = strip_crisis_resources(text or "")
        suggested = self._suggest_triggers(text)
        trigger_fields = {
            "needs_trigger_warning": bool(suggested),
            "suggested_triggers": suggested,
        }

        # 1. Compound critical check
        intent = SUICIDE_INTENT.first_match(text)
        if intent is not None:
            for qualifier_group in COMPOUND_QUALIFIERS:
                qualifier = qualifier_group.first_match(text)
                if qualifier is not None:
                    return AnalysisResult(
                        blocked=True,
                        flagged=True,
                        risk_level=RiskLevel.CRITICAL,
                        reason=REASON_COMPOUND,
                        matched_rules=(intent.name, qualifier.name),
                        **trigger_fields,
                    )

        # 2. Critical method keywords
        for group in CRITICAL_METHOD_GROUPS:
            rule = group.first_match(text)
            if rule is not None:
                return AnalysisResult(
                    blocked=True,
                    flagged=True,
                    risk_level=RiskLevel.CRITICAL,
                    reason=REASON_CRITICAL_METHODS,
                    matched_rules=(rule.name,),
                    **trigger_fields,
                )

        # 3. Harassment; critical rules come first in the group
        harassment = HARASSMENT.first_match(text)
        if harassment is not None and harassment.critical:
            return AnalysisResult(
                blocked=True,
                flagged=True,
                risk_level=RiskLevel.CRITICAL,
                reason=REASON_CRITICAL_HARASSMENT,
                matched_rules=(harassment.name,),
                **trigger_fields,
            )

        # 4. Disguised spellings of harm terms
        rule = DISGUISED_HARM.first_match(text)
        if rule is not None:
            return AnalysisResult(
                blocked=True,
                flagged=True,
                risk_level=RiskLevel.CRITICAL,
                reason=REASON_DISGUISED,
                matched_rules=(rule.name,),
                **trigger_fields,
            )

        # 5. Remaining harassment
        if harassment is not None:
            return AnalysisResult(
                flagged=True,
                risk_level=RiskLevel.HIGH,
                reason=REASON_HARASSMENT,
                matched_rules=(harassment.name,),
                **trigger_fields,
            )

        # 6-9. Coordinated harm, impersonation, spam, medical advice, ideation
        for outcome in _FLAGGING_CASCADE:
            rule = outcome.group.first_match(text)
            if rule is None:
                continue
            if outcome.group is HIGH_RISK_IDEATION:
                softened = self._soften_for_recovery(text, rule, trigger_fields)
                if softened is not None:
                    return softened
            return AnalysisResult(
                blocked=outcome.blocked,
                flagged=True,
                risk_level=outcome.risk_level,
                reason=outcome.reason,
                matched_rules=(rule.name,),
                **trigger_fields,
            )

        # 10. Toxic positivity needs several dismissive phrases
        dismissive = TOXIC_POSITIVITY.all_matches(text)
        if len(dismissive) >= TOXIC_POSITIVITY_MIN_HITS:
            return AnalysisResult(
                flagged=True,
                risk_level=RiskLevel.MEDIUM,
                reason=REASON_TOXIC_POSITIVITY,
                matched_rules=tuple(r.name for r in dismissive),
                **trigger_fields,
            )

        return AnalysisResult(**trigger_fields)

    def _soften_for_recovery(
        self, text: str, ideation: Rule, trigger_fields: Dict[str, Any]
    ) -> Optional[AnalysisResult]:
        """Downgrade ideation to medium when the post is mostly about recovery."""
        positives = POSITIVE_INDICATORS.all_matches(text)
        if len(positives) < POSITIVE_MIN_HITS:
            return None
        return AnalysisResult(
            flagged=True,
            risk_level=RiskLevel.MEDIUM,
            reason=REASON_IDEATION_RECOVERY,
            matched_rules=(ideation.name,) + tuple(r.name for r in positives),
            **trigger_fields,
        )

    def _suggest_triggers(self, text: str) -> Tuple[str, ...]:
        covered = {topic.lower() for topic in parse_trigger_warning(text)}
        suggested: List[str] = []
        for topic, group in TRIGGER_TOPICS.items():
            if topic.lower() in covered:
                continue
            if group.matches(text):
                suggested.append(topic)
        return tuple(suggested)


def compose_trigger_warning(
    author_tags: Sequence[str],
    suggested: Sequence[str],
    declared: Sequence[str] = (),
) -> Optional[str]:
    """Build the warning line: author tags first, then topics the body
    already declares, then new suggestions. Case-insensitive duplicates are
    dropped.

    Returns None when there is nothing to warn about.
    """
    topics: List[str] = []
    seen = set()
    for topic in list(author_tags) + list(declared) + list(suggested):
        cleaned = topic.strip()
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            topics.append(cleaned)
    if not topics:
        return None
    return f"{TRIGGER_WARNING_MARKER} TW: " + ", ".join(topics)
