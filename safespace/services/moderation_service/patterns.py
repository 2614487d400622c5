"""Detection rule groups for community moderation.

Every group is an ordered tuple of named, case-insensitive phrase rules.
Order matters: analyzers evaluate groups and rules first-match-wins.

Updated: 2026-03-01 - narrowed "jump off" and "this is it" phrases that
fired on ordinary posts about exercise and milestones.
"""
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple

PATTERN_VERSION = "2026.03.01"


# A span counts as disguised if it carries digits, symbols or non-ASCII
# lookalikes, or spells a word out one letter at a time.
_DISGUISE_CHARS = re.compile(r"[0-9!@$|*]|[^\x00-\x7f]")
_SPACED_LETTERS = re.compile(r"(?<![a-z])[a-z](?:[\s.\-_*]+[a-z](?![a-z])){2,}", re.IGNORECASE)


def looks_disguised(span: str) -> bool:
    return bool(_DISGUISE_CHARS.search(span) or _SPACED_LETTERS.search(span))


@dataclass(frozen=True)
class Rule:
    """A single named phrase predicate."""
    name: str
    pattern: Pattern
    # Harassment only: direct commands to self-harm or to leave
    critical: bool = False
    # Only matches written in a disguised form count
    disguised_only: bool = False

    def matches(self, text: str) -> bool:
        if not self.disguised_only:
            return self.pattern.search(text) is not None
        return any(looks_disguised(m.group(0)) for m in self.pattern.finditer(text))


@dataclass(frozen=True)
class RuleGroup:
    name: str
    rules: Tuple[Rule, ...]

    def first_match(self, text: str) -> Optional[Rule]:
        for rule in self.rules:
            if rule.matches(text):
                return rule
        return None

    def all_matches(self, text: str) -> Tuple[Rule, ...]:
        return tuple(rule for rule in self.rules if rule.matches(text))

    def matches(self, text: str) -> bool:
        return self.first_match(text) is not None


def _group(
    name: str,
    *entries,
    critical: bool = False,
    disguised_only: bool = False,
    flags: int = 0,
) -> RuleGroup:
    rules = tuple(
        Rule(
            name=f"{name}.{rule_name}",
            pattern=re.compile(expr, re.IGNORECASE | flags),
            critical=critical,
            disguised_only=disguised_only,
        )
        for rule_name, expr in entries
    )
    return RuleGroup(name=name, rules=rules)


# ==========================================================================
# COMPOUND CHECK: intent + (method-seeking or quick/painless)
# Neither half blocks on its own.
# ==========================================================================

SUICIDE_INTENT = _group(
    "suicide_intent",
    ("first_person_intent",
     r"\bi\s*(?:'m|\s+am)?\s*(?:want|wanna|need|plan|planning|intend|going|gonna|ready)\s+"
     r"(?:to\s+)?(?:die|kill\s+myself|end\s+my\s+life|end\s+it\s+all|commit\s+suicide)\b"),
    ("decided",
     r"\bi(?:'ve|\s+have)\s+decided\s+to\s+(?:die|end\s+(?:it|my\s+life)|kill\s+myself)\b"),
    ("will_end",
     r"\bi(?:'ll|\s+will)\s+(?:kill\s+myself|end\s+my\s+life|end\s+it\s+all)\b"),
)

METHOD_SEEKING = _group(
    "method_seeking",
    ("which_method", r"\bwhich\s+(?:pills?|meds?|medications?|drugs?|method)\b"),
    ("how_many", r"\bhow\s+many\s+(?:pills?|tablets?|mg|milligrams)\b"),
    ("best_way", r"\bthe\s+(?:best|easiest|surest|most\s+effective)\s+(?:way|method)\b"),
    ("where_to_get",
     r"\bwhere\s+(?:can\s+i|to|do\s+i)\s+(?:get|buy|find)\s+(?:a\s+)?(?:gun|pills|rope)\b"),
    ("how_do_i", r"\bhow\s+(?:do|would|should)\s+i\s+(?:do|end)\s+it\b"),
    ("lethal_dose", r"\b(?:lethal|fatal)\s+(?:dose|amount)\b"),
)

QUICK_PAINLESS = _group(
    "quick_painless",
    ("painless", r"\bpainless(?:ly)?\b"),
    ("quick_way", r"\b(?:quick|quickest|fastest|easiest)\s+(?:way|death|method|option|exit)\b"),
    ("without_pain", r"\bwithout\s+(?:any\s+)?pain\b"),
    ("peaceful_way", r"\bpeaceful\s+way\b"),
)

# ==========================================================================
# CRITICAL PATTERNS - AUTO BLOCK
# ==========================================================================

CRITICAL_SUICIDE_METHODS = _group(
    "critical_suicide_method",
    ("how_to_kill", r"\bhow\s+(?:to|do\s+i|can\s+i)\s+(?:kill|end)\s+(?:myself|my\s+life)\b"),
    ("best_way_to_die", r"\bbest\s+way\s+to\s+(?:die|kill\s+myself|commit\s+suicide)\b"),
    ("easiest_way_to_die", r"\beasiest\s+way\s+to\s+(?:die|end\s+it)\b"),
    ("hanging", r"\bhang(?:ing)?\s+myself\b"),
    ("overdose", r"\boverdos(?:e|ing)\s+on\b"),
    ("jump", r"\bjump(?:ing)?\s+(?:off|from)\s+(?:a|the)\s+(?:bridge|building|roof|cliff)\b"),
    ("gun_to_head", r"\bgun\s+to\s+(?:my\s+)?head\b"),
    ("wrists", r"\bslit(?:ting)?\s+my\s+wrists?\b"),
    ("carbon_monoxide", r"\bcarbon\s+monoxide\b"),
    ("imminent", r"\b(?:going|gonna|about)\s+to\s+(?:kill|end)\s+(?:myself|it\s+all)\b"),
    ("tonight", r"\btonight\s+(?:is|will\s+be)\s+(?:the\s+night|my\s+last)\b"),
    ("goodbye", r"\bgoodbye\s+(?:world|everyone|cruel\s+world)\b"),
    ("this_is_goodbye", r"\bthis\s+is\s+goodbye\b"),
    ("note", r"\bwriting\s+(?:my|a)\s+suicide\s+note\b"),
)

CRITICAL_SELF_HARM_METHODS = _group(
    "critical_self_harm_method",
    ("how_deep", r"\bhow\s+(?:deep|much)\s+to\s+cut\b"),
    ("cutting_deeper", r"\bcutting\s+(?:deeper|until)\b"),
    ("burn_myself", r"\bburn\s+myself\s+with\b"),
    ("razor_blade", r"\brazor\s+blades?\b"),
    ("where_to_cut", r"\bwhere\s+to\s+cut\s+(?:to|for)\b"),
    ("best_place", r"\bbest\s+place\s+to\s+cut\b"),
)

# ==========================================================================
# DISGUISED HARM - AUTO BLOCK
# Leetspeak, letter spacing, lookalike characters and emoji shorthand.
# Plain spellings are left to the groups above and below.
# ==========================================================================

_S = r"[s5$\u0455]"
_U = r"[u\u03bc\u03c5]"
_I = r"[i1!|\u0131\u0456\u03b9]"
_C = r"[c\u00a2\u03f2\u0441]"
_D = r"[d\u0501]"
_E = r"[e3\u0435]"
_L = r"[l1|]"
_H = r"[h\u043d]"
_A = r"[a4@\u0430]"
_M = r"[m\u043c]"
_O = r"[o0\u043e]"
_Y = r"[y\u0443]"


def _spelled(*letters: str) -> str:
    return r"[\W_]*".join(letters)


DISGUISED_HARM = _group(
    "disguised_harm",
    ("suicide", rf"(?<!\w){_spelled(_S, _U, _I, _C, _I, _D, _E)}(?!\w)"),
    ("self_harm", rf"(?<!\w){_spelled(_S, _E, _L, 'f', _H, _A, 'r', _M)}(?!\w)"),
    ("kill_self",
     rf"(?<!\w){_spelled('k', _I, _L, _L)}[\W_]*"
     rf"(?:{_spelled(_M, _Y)}|{_spelled(_Y, _O, 'u', 'r')})[\W_]*{_spelled(_S, _E, _L, 'f')}(?!\w)"),
    ("die_already", rf"(?<!\w){_spelled(_D, _I, _E)}\s+already\b"),
    ("weapon_emoji", r"[\U0001F52B\U0001F48A\U0001F52A].*\b(?:myself|tonight)\b"),
    ("skull_emoji", r"\U0001F480.*\b(?:ready|tonight|finally)\b"),
    disguised_only=True,
)

# ==========================================================================
# HARASSMENT - critical subset first
# ==========================================================================

_CRITICAL_HARASSMENT = _group(
    "harassment",
    ("kill_yourself", r"\bk[i1!]ll\s+y[o0]urself\b"),
    ("kys", r"\bkys\b"),
    ("go_die", r"\bgo\s+die\b"),
    ("should_die", r"\byou\s+should\s+(?:just\s+)?(?:die|end\s+it|kill\s+yourself)\b"),
    ("never_come_back",
     r"\b(?:leave|get\s+out|go\s+away)\s+and\s+never\s+come\s+back\b"),
    ("should_leave", r"\byou\s+should\s+(?:just\s+)?(?:leave|disappear)\b"),
    ("nobody_wants_you_here", r"\bnobody\s+wants\s+you\s+here\b"),
    critical=True,
)

_GENERAL_HARASSMENT = _group(
    "harassment",
    ("nobody_cares", r"\bnobody\s+(?:cares\s+about|likes|wants)\s+you\b"),
    ("better_without_you", r"\bworld\s+(?:would\s+be\s+)?better\s+without\s+you\b"),
    ("worthless", r"\byou(?:'re|\s+are)\s+(?:so\s+)?(?:worthless|pathetic|useless|a\s+waste)\b"),
    ("insults", r"\byou(?:'re|\s+are)\s+(?:so\s+)?(?:stupid|an\s+idiot|a\s+loser)\b"),
    ("attention_seeking", r"\byou(?:'re|\s+are)\s+just\s+(?:attention\s+seeking|faking\s+it)\b"),
)

HARASSMENT = RuleGroup(
    name="harassment",
    rules=_CRITICAL_HARASSMENT.rules + _GENERAL_HARASSMENT.rules,
)

# ==========================================================================
# FLAG FOR REVIEW
# ==========================================================================

COORDINATED_HARM = _group(
    "coordinated_harm",
    ("method_offer", r"\b(?:here'?s|try\s+this)\s+(?:a\s+|the\s+|my\s+)?method\b"),
    ("worked_for_me", r"\bworked\s+for\s+me\b.*\b(?:pills|cutting|hanging)\b"),
    ("be_free", r"\b(?:do|go\s+for)\s+it\b.*\byou'?ll\s+(?:finally\s+)?be\s+free\b"),
    ("do_it_with_you", r"\bi'?ll\s+do\s+it\s+(?:with\s+you|too|if\s+you\s+do)\b"),
    ("together", r"\b(?:we|let'?s)\s+(?:can\s+)?(?:end\s+it|die)\s+together\b"),
    ("pact", r"\bsuicide\s+pact\b"),
    ("both_end_it", r"\bboth\s+(?:end\s+it|die\s+together)\b"),
    ("meet_up", r"\bmeet\s+up\s+(?:and|to)\s+(?:end\s+it|die|do\s+it)\b"),
    flags=re.DOTALL,
)

# Members claiming clinical authority or diagnosing others
IMPERSONATION = _group(
    "impersonation",
    ("claims_credentials",
     r"\b(?:i'?m|i\s+am)\s+(?:a|your)\s+(?:therapist|psychiatrist|psychologist|doctor|counselor|"
     r"licensed\s+professional)\b"),
    ("as_your_clinician", r"\bas\s+your\s+(?:therapist|doctor|counselor)\b"),
    ("claims_degree", r"\bi\s+have\s+a\s+(?:phd|doctorate|medical\s+degree)\s+in\b"),
    ("as_professional", r"\bas\s+(?:a|your)\s+mental\s+health\s+professional\b"),
    ("professional_opinion", r"\bin\s+my\s+professional\s+(?:opinion|experience)\b"),
    ("certified", r"\bi'?m\s+(?:board\s+)?certified\s+in\b"),
    ("diagnoses_condition",
     r"\byou\s+(?:definitely\s+|clearly\s+)?have\s+(?:depression|anxiety|ptsd|bipolar|schizophrenia|bpd)\b"),
    ("diagnoses_state", r"\byou\s+(?:are|seem)\s+(?:clearly\s+)?(?:depressed|manic|psychotic)\b"),
    ("i_diagnose", r"\bi\s+diagnose\s+you\s+with\b"),
    ("suffering_from", r"\byou'?re\s+suffering\s+from\s+(?:clinical|major)\b"),
)

SPAM = _group(
    "spam",
    ("multiple_urls", r"https?://\S+.*https?://\S+"),
    ("dm_me", r"\b(?:dm|message)\s+me\s+(?:for|to\s+learn)\b"),
    ("earn_from_home", r"\b(?:make|earn)\s+\$\d+.*(?:from\s+home|working\s+from)"),
    ("passive_income", r"\bpassive\s+income\b"),
    ("financial_freedom", r"\bfinancial\s+freedom\b"),
    ("fake_cure", r"\bi\s+can\s+(?:cure|fix|heal)\s+(?:your|you)\b"),
    ("guaranteed", r"\bguaranteed\s+(?:results|cure|recovery)\b"),
    ("miracle", r"\bmiracle\s+(?:cure|treatment|remedy)\b"),
    ("link_in_bio", r"\blink\s+in\s+(?:my\s+)?bio\b"),
    flags=re.DOTALL,
)

MEDICAL_ADVICE = _group(
    "medical_advice",
    ("change_medication",
     r"\byou\s+should\s+(?:stop|start|increase|decrease|change)\s+(?:taking\s+)?(?:your\s+)?"
     r"(?:medication|meds)\b"),
    ("stop_taking", r"\bstop\s+taking\s+your\s+(?:medication|meds|pills)\b"),
    ("supplements", r"\btry\s+(?:this|these)\s+(?:supplements?|vitamins?|herbs?)\b"),
    ("instead_of_treatment", r"\binstead\s+of\s+(?:therapy|medication|meds)\b"),
    ("prescribe",
     r"\byou\s+(?:should|need\s+to)\s+(?:take|get\s+on)\s+(?:antidepressants|ssris?|benzos)\b"),
    ("recommend_drug", r"\bi\s+recommend\s+(?:zoloft|prozac|xanax|lexapro|wellbutrin)\b"),
)

HIGH_RISK_IDEATION = _group(
    "high_risk_ideation",
    ("suicidal_thoughts", r"\bsuicidal\s+(?:thoughts|ideation|feelings)\b"),
    ("want_to_die", r"\bwant\s+to\s+(?:die|disappear|not\s+exist)\b"),
    ("wish_dead", r"\bwish\s+i\s+(?:was|were)\s+(?:dead|never\s+born)\b"),
    ("dont_want_to_live", r"\bdon'?t\s+want\s+to\s+(?:live|be\s+here|exist|be\s+alive)\b"),
    ("tired_of_living", r"\btired\s+of\s+(?:living|life|being\s+alive)\b"),
    ("cant_anymore", r"\bcan'?t\s+(?:take|do)\s+(?:it|this)\s+anymore\b"),
    ("ready_to_give_up", r"\bready\s+to\s+(?:give\s+up|end\s+(?:it|things))\b"),
    ("hopeless", r"\b(?:feel|feeling|felt)\s+(?:so\s+|completely\s+|totally\s+)?hopeless\b"),
    ("no_reason_to_live", r"\bno\s+reason\s+to\s+(?:live|keep\s+going)\b"),
    ("better_off_without_me", r"\b(?:better\s+off|be\s+better)\s+without\s+me\b"),
)

# Dismissive "good vibes only" replies. Flags only at TOXIC_POSITIVITY_MIN_HITS.
TOXIC_POSITIVITY = _group(
    "toxic_positivity",
    ("just_be_positive",
     r"\bjust\s+(?:think\s+positive|be\s+happy|smile\s+more|get\s+over\s+it|cheer\s+up)\b"),
    ("stop_being_sad", r"\bstop\s+(?:being\s+)?(?:negative|sad|depressed)\b"),
    ("all_in_your_head", r"\bit'?s\s+all\s+in\s+your\s+head\b"),
    ("just_stressed", r"\byou'?re\s+(?:just|only)\s+(?:sad|upset|stressed)\b"),
    ("others_have_it_worse", r"\b(?:others|people)\s+have\s+it\s+(?:much\s+|way\s+)?worse\b"),
    ("too_sensitive", r"\byou'?re\s+(?:being\s+)?(?:dramatic|overdramatic|too\s+sensitive)\b"),
    ("at_least", r"\bat\s+least\s+you'?re\s+not\b"),
    ("could_be_worse", r"\bcould\s+be\s+worse\b"),
    ("first_world", r"\bfirst\s+world\s+problems\b"),
    ("happens_for_a_reason", r"\beverything\s+happens\s+for\s+a\s+reason\b"),
    ("gods_plan", r"\b(?:it'?s|this\s+is)\s+god'?s\s+(?:plan|will)\b"),
    ("need_more_faith", r"\byou\s+(?:just\s+)?need\s+(?:more\s+)?(?:faith|prayer)\b"),
    ("universe_plan", r"\bthe\s+universe\s+(?:has\s+a\s+plan|is\s+testing\s+you)\b"),
    ("no_excuses", r"\bno\s+excuses\b"),
    ("hustle", r"\b(?:grind|hustle)\s+harder\b"),
    ("mind_over_matter", r"\bmind\s+over\s+matter\b"),
    ("weak_minded", r"\bweak\s+(?:people|minded)\b"),
    ("suck_it_up", r"\bsuck\s+it\s+up\b"),
    ("everyone_struggles", r"\beveryone\s+struggles\b"),
    ("was_sad_once", r"\bi\s+(?:was|felt)\s+(?:sad|depressed)\s+(?:once|too)\s+(?:and|but)\b"),
    ("just_a_choice", r"\bdepression\s+is\s+(?:just|only)\s+a\s+(?:mood|feeling|choice)\b"),
)

TOXIC_POSITIVITY_MIN_HITS = 2

# ==========================================================================
# POSITIVE INDICATORS
# Recovery and help-seeking language. Enough hits soften ideation to medium.
# ==========================================================================

POSITIVE_INDICATORS = _group(
    "positive",
    ("days_clean", r"\b\d+\s+days?\s+(?:clean|sober|self[-\s]?harm[-\s]free)\b"),
    ("made_it_through", r"\bmade\s+it\s+through\b"),
    ("feeling_better", r"\bfeeling\s+(?:a\s+(?:little|bit)\s+)?better\b"),
    ("small_win", r"\bsmall\s+(?:win|victory|progress)\b"),
    ("proud", r"\bproud\s+of\s+myself\b"),
    ("in_therapy",
     r"\b(?:started|seeing|going\s+to)\s+(?:therapy|a\s+therapist|counseling|a\s+counselor)\b"),
    ("talked_to_someone", r"\btalked\s+to\s+(?:someone|a\s+professional|my\s+doctor)\b"),
    ("reached_out", r"\breached\s+out\s+for\s+help\b"),
    ("appointment", r"\bscheduled\s+(?:an\s+)?appointment\b"),
    ("thanks", r"\bthank\s+you\s+(?:all|everyone|so\s+much)\b"),
    ("you_helped", r"\byou\s+(?:really\s+)?helped\s+me\b"),
    ("appreciate", r"\bappreciate\s+(?:you|this\s+community)\b"),
    ("not_alone", r"\bnot\s+alone\b"),
)

POSITIVE_MIN_HITS = 2

# ==========================================================================
# FALSE-POSITIVE CONTEXT (dispute auto-acceptance only)
# ==========================================================================

FALSE_POSITIVE_CONTEXT: Dict[str, RuleGroup] = {
    "educational": _group(
        "false_positive.educational",
        ("writing_about", r"\bi'?m\s+writing\s+(?:a|an|about)\b"),
        ("awareness", r"\braising\s+awareness\s+(?:about|for)\b"),
        ("educational", r"\beducation(?:al)?\s+(?:content|post|article|purpose)"),
        ("learning_about", r"\blearning\s+about\b"),
        ("research", r"\bresearch(?:ing)?\s+(?:on|about)\b"),
        ("documentary", r"\bdocumentary\s+(?:about|on)\b"),
        ("school_work", r"\bschool\s+(?:project|assignment|paper)\b"),
    ),
    "quoted": _group(
        "false_positive.quoted",
        ("someone_said", r"\bsomeone\s+(?:told|said)\s+(?:me|to\s+me)\b"),
        ("read_about", r"\bi\s+(?:read|heard)\s+(?:that|about)\b"),
        ("from_source", r"\b(?:in|from)\s+the\s+(?:article|book|news|story)\b"),
        ("according_to", r"\b(?:according|referring)\s+to\b"),
        ("quoting", r"\b(?:quoting|quoted|quote\s+from)\b"),
    ),
    "help_seeking": _group(
        "false_positive.help_seeking",
        ("help_a_friend", r"\bhow\s+(?:can|do)\s+i\s+help\s+(?:someone|a\s+friend|my\s+friend)\b"),
        ("worried_about", r"\bworried\s+about\s+(?:someone|my|a)\b"),
        ("supporting", r"\bsupport(?:ing)?\s+(?:someone|a\s+friend)\b"),
    ),
    "recovery": _group(
        "false_positive.recovery",
        ("time_clean", r"\b\d+\s+(?:days?|weeks?|months?|years?)\s+(?:clean|sober|free)\b"),
        ("recovering_from", r"\b(?:recovering|recovery)\s+from\b"),
        ("overcame", r"\bovercom(?:e|ing)\b|\bovercame\b"),
    ),
    "resource_seeking": _group(
        "false_positive.resource_seeking",
        ("helplines", r"\b(?:hotline|helpline|crisis\s+line|support\s+group)s?\b"),
        ("find_help", r"\b(?:where|how)\s+(?:can|do)\s+i\s+(?:find|get)\s+help\b"),
        ("recommend_therapist",
         r"\b(?:recommend|suggestion)s?\s+(?:for|of)\s+(?:a\s+)?(?:therapist|help)\b"),
    ),
}

# ==========================================================================
# TRIGGER WARNING TOPICS (suggestion only, never blocks)
# ==========================================================================

_TRIGGER_TOPIC_ENTRIES: List[Tuple[str, Tuple[Tuple[str, str], ...]]] = [
    ("Suicide", (
        ("suicid", r"\bsuicid"),
        ("want_to_die", r"\bwant\s+to\s+die\b"),
        ("kill_myself", r"\bkill\s+myself\b"),
        ("end_my_life", r"\bend\s+my\s+life\b"),
    )),
    ("Self-Harm", (
        ("self_harm", r"\bself[-\s]?harm"),
        ("cutting", r"\bcutting\b"),
        ("hurt_myself", r"\bhurt(?:ing)?\s+myself\b"),
    )),
    ("Sexual Abuse", (
        ("sexual_abuse", r"\b(?:sexual|sex)\s+abuse\b"),
        ("rape", r"\brap(?:e|ed)\b"),
        ("molest", r"\bmolest"),
        ("sexual_assault", r"\bsexual\s+assault\b"),
    )),
    ("Physical Abuse", (
        ("physical_abuse", r"\b(?:physical|domestic)\s+(?:abuse|violence)\b"),
        ("beaten", r"\bbeaten\b"),
        ("hit_me", r"\bhit\s+me\b"),
    )),
    ("Eating Disorders", (
        ("anorexia", r"\banorexi"),
        ("bulimia", r"\bbulimi"),
        ("eating_disorder", r"\beating\s+disorders?\b"),
        ("purging", r"\bpurging\b"),
    )),
    ("Substance Abuse", (
        ("addiction", r"\baddiction\b"),
        ("alcoholic", r"\balcoholic\b"),
        ("drug_abuse", r"\bdrug\s+abuse\b"),
        ("relapse", r"\brelaps(?:e|ed|ing)\b"),
    )),
    ("Trauma/PTSD", (
        ("ptsd", r"\bptsd\b"),
        ("trauma", r"\btrauma"),
        ("flashback", r"\bflashbacks?\b"),
        ("triggered", r"\btriggered\b"),
    )),
    ("Depression", (
        ("depression", r"\bdepression\b"),
        ("depressed", r"\bdepressed\b"),
    )),
    ("Anxiety", (
        ("anxiety_attack", r"\banxiety\s+attacks?\b"),
        ("panic_attack", r"\bpanic\s+attacks?\b"),
    )),
]

TRIGGER_TOPICS: Dict[str, RuleGroup] = {
    topic: _group(f"trigger_topic.{topic}", *entries)
    for topic, entries in _TRIGGER_TOPIC_ENTRIES
}

# Groups that fire the compound check, in evaluation order
COMPOUND_QUALIFIERS: Tuple[RuleGroup, ...] = (METHOD_SEEKING, QUICK_PAINLESS)
CRITICAL_METHOD_GROUPS: Tuple[RuleGroup, ...] = (CRITICAL_SUICIDE_METHODS, CRITICAL_SELF_HARM_METHODS)

# Self-declared warning prefix on the first line, e.g. "⚠️ TW: Suicide, Grief"
TRIGGER_WARNING_PREFIX = re.compile(
    r"^\s*(?:\u26a0\ufe0f?\s*)?(?:TW|CW|Trigger\s+Warning|Content\s+Warning)\s*:\s*(.+?)\s*$",
    re.IGNORECASE,
)
