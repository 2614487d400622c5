"""Tests for the synchronous content analyzer.

The analyzer is the blocking layer for every post, so the ordering of
the rule cascade is tested explicitly.
"""
import pytest

from safespace.shared.models import RiskLevel
from safespace.services.moderation_service.analyzer import (
    REASON_COMPOUND,
    REASON_COORDINATED,
    REASON_CRITICAL_HARASSMENT,
    REASON_CRITICAL_METHODS,
    REASON_DISGUISED,
    REASON_HARASSMENT,
    REASON_IDEATION,
    REASON_IDEATION_RECOVERY,
    REASON_IMPERSONATION,
    REASON_MEDICAL,
    REASON_SPAM,
    REASON_TOXIC_POSITIVITY,
    AnalysisResult,
    ContentAnalyzer,
    compose_trigger_warning,
    parse_trigger_warning,
    strip_crisis_resources,
)
from safespace.services.moderation_service.config import (
    CRISIS_RESOURCES,
    CRISIS_RESOURCES_DIVIDER,
    TRIGGER_WARNING_MARKER,
)


@pytest.fixture
def analyzer():
    return ContentAnalyzer()


class TestCompoundCheck:
    """Intent AND (method-seeking OR quick/painless)."""

    def test_intent_with_method_seeking_blocks(self, analyzer):
        result = analyzer.analyze("I want to kill myself. Which pills would work?")

        assert result.blocked is True
        assert result.flagged is True
        assert result.risk_level == RiskLevel.CRITICAL
        assert result.reason == REASON_COMPOUND
        assert result.matched_rules == (
            "suicide_intent.first_person_intent",
            "method_seeking.which_method",
        )

    def test_order_of_phrases_does_not_matter(self, analyzer):
        result = analyzer.analyze("Which pills work fastest? I want to die.")
        assert result.blocked is True
        assert result.reason == REASON_COMPOUND

    def test_intent_with_quick_painless_blocks(self, analyzer):
        result = analyzer.analyze("I want to die. Is there a painless way?")
        assert result.blocked is True
        assert result.risk_level == RiskLevel.CRITICAL

    def test_intent_alone_is_flagged_not_blocked(self, analyzer):
        result = analyzer.analyze("I want to die")

        assert result.blocked is False
        assert result.flagged is True
        assert result.risk_level == RiskLevel.HIGH
        assert result.reason == REASON_IDEATION

    def test_qualifier_alone_is_not_a_concern(self, analyzer):
        result = analyzer.analyze("What is a painless way to get blood drawn?")
        assert result.blocked is False
        assert result.risk_level == RiskLevel.NONE


class TestCriticalMethods:
    """Critical suicide and self-harm method phrases always block."""

    @pytest.mark.parametrize("text", [
        "I keep thinking about hanging myself",
        "writing my suicide note tonight",
        "this is goodbye",
        "how deep to cut so it scars",
        "I bought razor blades today",
    ])
    def test_blocks(self, analyzer, text):
        result = analyzer.analyze(text)

        assert result.blocked is True
        assert result.flagged is True
        assert result.risk_level == RiskLevel.CRITICAL
        assert result.reason == REASON_CRITICAL_METHODS
        assert result.needs_crisis_resources is True


class TestHarassment:

    @pytest.mark.parametrize("text", [
        "just kys",
        "you should just leave",
        "Go die already",
        "k1ll yourself",
    ])
    def test_critical_harassment_blocks(self, analyzer, text):
        result = analyzer.analyze(text)

        assert result.blocked is True
        assert result.risk_level == RiskLevel.CRITICAL
        assert result.reason == REASON_CRITICAL_HARASSMENT

    def test_general_harassment_flags(self, analyzer):
        result = analyzer.analyze("honestly you're pathetic")

        assert result.blocked is False
        assert result.flagged is True
        assert result.risk_level == RiskLevel.HIGH
        assert result.reason == REASON_HARASSMENT

    def test_harassment_wins_over_spam(self, analyzer):
        result = analyzer.analyze("you're worthless. Passive income, link in bio")
        assert result.reason == REASON_HARASSMENT


class TestFlaggingCascade:
    """Spam, then medical advice, then ideation."""

    def test_spam_is_medium(self, analyzer):
        result = analyzer.analyze("Earn passive income from your phone, link in bio")

        assert result.blocked is False
        assert result.flagged is True
        assert result.risk_level == RiskLevel.MEDIUM
        assert result.reason == REASON_SPAM
        assert result.needs_crisis_resources is False

    def test_multiple_links_are_spam(self, analyzer):
        result = analyzer.analyze("see http://a.example\nand also https://b.example")
        assert result.reason == REASON_SPAM

    def test_medical_advice_is_medium(self, analyzer):
        result = analyzer.analyze("You should stop taking your meds, they do nothing")

        assert result.risk_level == RiskLevel.MEDIUM
        assert result.reason == REASON_MEDICAL

    def test_spam_precedes_medical_advice(self, analyzer):
        result = analyzer.analyze("financial freedom! also stop taking your meds")
        assert result.reason == REASON_SPAM

    def test_hopeless_is_high_risk_but_not_blocked(self, analyzer):
        result = analyzer.analyze("I feel hopeless today")

        assert result.blocked is False
        assert result.flagged is True
        assert result.risk_level == RiskLevel.HIGH
        assert result.needs_crisis_resources is True

    def test_ordinary_post(self, analyzer):
        result = analyzer.analyze("Had a really good session with my therapist today")

        assert result == AnalysisResult()
        assert result.flagged is False


class TestDisguisedHarm:
    """Obfuscated harm terms block like the critical methods."""

    @pytest.mark.parametrize("text", [
        "s u i c i d e is all I think about",
        "thinking about su1c1de again",
        "time to $elf h4rm",
    ])
    def test_disguised_terms_block(self, analyzer, text):
        result = analyzer.analyze(text)

        assert result.blocked is True
        assert result.risk_level == RiskLevel.CRITICAL
        assert result.reason == REASON_DISGUISED

    def test_plain_spelling_is_not_blocked(self, analyzer):
        result = analyzer.analyze("Walking for suicide awareness this weekend")

        assert result.blocked is False
        assert result.flagged is False
        assert result.suggested_triggers == ("Suicide",)

    def test_disguised_term_blocks_before_general_harassment(self, analyzer):
        result = analyzer.analyze("you're pathetic, go s e l f h a r m")
        assert result.reason == REASON_DISGUISED


class TestReviewFlags:
    """Coordinated harm and impersonation flag high; dismissive replies flag medium."""

    def test_coordinated_harm_is_high(self, analyzer):
        result = analyzer.analyze("let's end it together this weekend")

        assert result.blocked is False
        assert result.risk_level == RiskLevel.HIGH
        assert result.reason == REASON_COORDINATED
        assert result.needs_crisis_resources is True

    def test_impersonation_is_high(self, analyzer):
        result = analyzer.analyze("I'm a therapist and you have depression")

        assert result.flagged is True
        assert result.risk_level == RiskLevel.HIGH
        assert result.reason == REASON_IMPERSONATION

    def test_impersonation_precedes_spam(self, analyzer):
        result = analyzer.analyze("As your therapist: passive income, link in bio")
        assert result.reason == REASON_IMPERSONATION

    def test_several_dismissive_phrases_flag_medium(self, analyzer):
        result = analyzer.analyze("Just think positive! Others have it worse.")

        assert result.flagged is True
        assert result.risk_level == RiskLevel.MEDIUM
        assert result.reason == REASON_TOXIC_POSITIVITY
        assert result.matched_rules == (
            "toxic_positivity.just_be_positive",
            "toxic_positivity.others_have_it_worse",
        )

    def test_single_dismissive_phrase_is_ignored(self, analyzer):
        assert analyzer.analyze("Everything happens for a reason") == AnalysisResult()


class TestRecoveryLanguage:
    """Recovery language softens ideation, never the blocking steps."""

    def test_ideation_with_recovery_is_medium(self, analyzer):
        result = analyzer.analyze(
            "I feel hopeless some days but I made it through this week. Thank you everyone"
        )

        assert result.flagged is True
        assert result.risk_level == RiskLevel.MEDIUM
        assert result.reason == REASON_IDEATION_RECOVERY
        assert result.matched_rules == (
            "high_risk_ideation.hopeless",
            "positive.made_it_through",
            "positive.thanks",
        )
        assert result.needs_crisis_resources is False

    def test_one_recovery_phrase_is_not_enough(self, analyzer):
        result = analyzer.analyze("I feel hopeless. Thank you everyone")

        assert result.risk_level == RiskLevel.HIGH
        assert result.reason == REASON_IDEATION

    def test_recovery_language_does_not_soften_blocks(self, analyzer):
        result = analyzer.analyze(
            "I made it through today, thank you all, but this is goodbye"
        )
        assert result.blocked is True


class TestTriggerSuggestions:
    """Trigger-topic scan runs independently of the blocking path."""

    def test_topics_suggested_in_map_order(self, analyzer):
        result = analyzer.analyze("My depression got worse after a panic attack")

        assert result.needs_trigger_warning is True
        assert result.suggested_triggers == ("Depression", "Anxiety")
        assert result.risk_level == RiskLevel.NONE

    def test_declared_topics_are_covered(self, analyzer):
        result = analyzer.analyze("TW: Depression\nMy depression got worse")

        assert result.needs_trigger_warning is False
        assert result.suggested_triggers == ()

    def test_only_uncovered_topics_are_suggested(self, analyzer):
        result = analyzer.analyze("⚠️ TW: depression\nMy depression and my anorexia")
        assert result.suggested_triggers == ("Eating Disorders",)

    def test_blocked_content_still_gets_suggestions(self, analyzer):
        result = analyzer.analyze("I keep thinking about hanging myself, suicide feels close")

        assert result.blocked is True
        assert "Suicide" in result.suggested_triggers


class TestComposedBodies:
    """Re-analysis of bodies that already carry system text."""

    def test_crisis_resources_do_not_add_topics(self, analyzer):
        body = f"I feel hopeless{CRISIS_RESOURCES_DIVIDER}{CRISIS_RESOURCES}"
        result = analyzer.analyze(body)

        assert result.suggested_triggers == ()
        assert result.risk_level == RiskLevel.HIGH

    def test_composed_warning_is_not_retriggered(self, analyzer):
        first = analyzer.analyze("I feel hopeless and my depression is back")
        warning = compose_trigger_warning((), first.suggested_triggers)
        body = f"{warning}\n\nI feel hopeless and my depression is back"
        body += f"{CRISIS_RESOURCES_DIVIDER}{CRISIS_RESOURCES}"

        second = analyzer.analyze(body)

        assert first.suggested_triggers == ("Depression",)
        assert second.suggested_triggers == ()
        assert second.needs_trigger_warning is False

    def test_strip_crisis_resources_keeps_member_text(self):
        body = f"hello{CRISIS_RESOURCES_DIVIDER}{CRISIS_RESOURCES}"
        assert strip_crisis_resources(body).strip() == "hello"


class TestHelpers:

    def test_parse_trigger_warning(self):
        assert parse_trigger_warning("\n  \nCW: Grief, Loss\nbody") == ["Grief", "Loss"]

    def test_parse_without_prefix(self):
        assert parse_trigger_warning("Just a post\nTW: late") == []

    def test_compose_orders_author_tags_first(self):
        line = compose_trigger_warning(("Grief",), ("Depression", "grief"))
        assert line == f"{TRIGGER_WARNING_MARKER} TW: Grief, Depression"

    def test_compose_keeps_declared_topics(self):
        line = compose_trigger_warning((), ("Anxiety",), declared=("Loss",))
        assert line == f"{TRIGGER_WARNING_MARKER} TW: Loss, Anxiety"

    def test_compose_with_nothing_returns_none(self):
        assert compose_trigger_warning((), ()) is None

    def test_blocked_requires_flagged(self):
        with pytest.raises(ValueError):
            AnalysisResult(blocked=True, flagged=False)

    def test_to_dict(self, analyzer):
        data = analyzer.analyze("I feel hopeless").to_dict()

        assert data["risk_level"] == "high"
        assert data["matched_rules"] == ["high_risk_ideation.hopeless"]
        assert data["suggested_triggers"] == []
