import logging

from remindercall.branches import BranchMatch, match_branch
from remindercall.dates import extract_date_token
from remindercall.intents import (
    Intent,
    INTENT_CASCADE,
    NEGATION_PARTICLES,
    OBJECTION_RULES,
    POSTPONEMENT_PHRASES,
    STRONG_CONFIRM_PHRASES,
    FILLER_ONLY_PHRASES,
    GREETING_CONFUSION_PHRASES,
    OFF_TOPIC_PHRASES,
    OFF_TOPIC_WORDS,
)
from remindercall.normalize import normalize_text, match_any_phrase, match_any_word
from remindercall.states import State

logger = logging.getLogger(__name__)

# States where any affirmative means "go ahead", so the filler guard is skipped
CONFIRM_GUARD_BYPASS_STATES = {
    State.AWAITING_INITIAL_DECISION,
    State.AWAITING_DATE,
    State.AWAITING_DATE_CONFIRM,
    State.AWAITING_BRANCH,
    State.AWAITING_SERVICE_DETAILS,
}

# States where a bare number ("25") is read as a day of the month
DATE_PROMPT_STATES = {State.AWAITING_DATE, State.AWAITING_DATE_CONFIRM}


def classify_intent(
    norm_text: str,
    raw_text: str = "",
    branch: BranchMatch | None = None,
    allow_bare_number: bool = False,
) -> Intent:
    """Assign one intent to an utterance.

    Walks the ordered cascade: repeat > confusion > already_done >
    driver_unavailable > machine_busy > working_fine > money_issue >
    call_later > provide_date > confirm > provide_branch > reject > unknown.
    Empty input is ``unclear``; input that fits no category is ``unknown``.

    ``branch`` is an optional pre-computed location match; when None the
    raw text is matched against the service-center directory here.
    """
    if not norm_text:
        return Intent.UNCLEAR

    raw = raw_text or norm_text
    for rule in INTENT_CASCADE:
        if rule.intent == Intent.REJECT:
            if branch is None:
                branch = match_branch(raw)
            if branch is not None:
                return Intent.PROVIDE_BRANCH
        if rule.matches(norm_text):
            return rule.intent
        if rule.intent == Intent.PROVIDE_DATE and extract_date_token(raw, allow_bare_number=allow_bare_number):
            return Intent.PROVIDE_DATE

    # Bare negations only count as whole tokens.
    if match_any_word(norm_text, NEGATION_PARTICLES):
        return Intent.REJECT
    return Intent.UNKNOWN


def detect_objection(norm_text: str) -> Intent | None:
    """Return the first objection category present in the text, if any."""
    for rule in OBJECTION_RULES:
        if rule.matches(norm_text):
            return rule.intent
    return None


def signals_postponement(norm_text: str) -> bool:
    return match_any_phrase(norm_text, POSTPONEMENT_PHRASES)


def is_greeting_confusion(raw_text: str) -> bool:
    """Customer is asking who is calling or why, right after the greeting."""
    return match_any_phrase(normalize_text(raw_text), GREETING_CONFUSION_PHRASES)


def is_off_topic(raw_text: str) -> bool:
    text = normalize_text(raw_text)
    return match_any_phrase(text, OFF_TOPIC_PHRASES) or match_any_word(text, OFF_TOPIC_WORDS)


def is_genuine_confirm(raw_text: str, state: State) -> bool:
    """Tell a real "yes, book it" apart from a listening noise like "accha".

    Filler-only acknowledgments are rejected while the customer is explaining
    an objection; everywhere else any affirmative counts.
    """
    if state in CONFIRM_GUARD_BYPASS_STATES:
        return True
    text = normalize_text(raw_text)
    if match_any_phrase(text, STRONG_CONFIRM_PHRASES):
        return True
    is_only_filler = any(
        text in (f, f"{f} ji", f"ji {f}") for f in FILLER_ONLY_PHRASES
    )
    if is_only_filler and state.is_objection_handling:
        return False
    return True


def classify_utterance(
    raw_text: str,
    state: State,
    branch: BranchMatch | None = None,
) -> Intent:
    """Normalize, classify and apply the genuine-confirm guard for one turn."""
    norm = normalize_text(raw_text)
    intent = classify_intent(
        norm,
        raw_text,
        branch=branch,
        allow_bare_number=state in DATE_PROMPT_STATES,
    )
    if intent == Intent.CONFIRM and not is_genuine_confirm(raw_text, state):
        logger.info("Filler acknowledgment in %s treated as unclear: %r", state.value, norm)
        return Intent.UNCLEAR
    return intent
