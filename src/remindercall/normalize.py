import re

# Latin sentence punctuation plus the Devanagari danda and double danda.
# Slash and hyphen are kept so numeric dates like 25/03 survive.
_PUNCTUATION_RE = re.compile(r"[.,!?;:'\"()\[\]{}।॥]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(raw: str | None) -> str:
    """Canonicalize an utterance for pattern matching.

    Lower-cases, replaces sentence punctuation with spaces, collapses
    whitespace and trims.  Applying it twice gives the same result as
    applying it once.
    """
    if not raw:
        return ""
    text = _PUNCTUATION_RE.sub(" ", raw.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def _token_pattern(word: str) -> str:
    # \b is unreliable next to Devanagari vowel signs, so token edges are
    # whitespace or the ends of the string.
    return rf"(?<!\S){re.escape(word)}(?!\S)"


def contains_phrase(text: str, phrase: str) -> bool:
    return phrase in text


def contains_word(text: str, word: str) -> bool:
    """Check whether word (or a multi-word phrase) appears as whole tokens."""
    return re.search(_token_pattern(word), text) is not None


def match_any_phrase(text: str, phrases) -> bool:
    """Check if any phrase appears in text as a substring."""
    return any(p in text for p in phrases)


def match_any_word(text: str, words) -> bool:
    """Check if any word appears in text as a whole token (not a substring)."""
    return any(contains_word(text, w) for w in words)


NUMBER_WORDS = {
    # Devanagari
    "एक": "1", "दो": "2", "तीन": "3", "चार": "4", "पाँच": "5", "पांच": "5",
    "छह": "6", "छः": "6", "सात": "7", "आठ": "8", "नौ": "9", "दस": "10",
    "ग्यारह": "11", "बारह": "12", "तेरह": "13", "चौदह": "14", "पंद्रह": "15",
    "सोलह": "16", "सत्रह": "17", "अठारह": "18", "उन्नीस": "19", "बीस": "20",
    "इक्कीस": "21", "बाईस": "22", "तेईस": "23", "चौबीस": "24", "पच्चीस": "25",
    "छब्बीस": "26", "सत्ताईस": "27", "अट्ठाईस": "28", "उनतीस": "29", "तीस": "30",
    "इकतीस": "31",
    # Romanized
    "ek": "1", "do": "2", "teen": "3", "char": "4", "chaar": "4",
    "paanch": "5", "panch": "5", "chhe": "6", "chheh": "6", "saat": "7",
    "aath": "8", "nau": "9", "das": "10",
    "gyarah": "11", "barah": "12", "baarah": "12", "terah": "13", "chaudah": "14",
    "pandrah": "15", "solah": "16", "satrah": "17", "atharah": "18", "unnees": "19",
    "bees": "20", "ikkees": "21", "baaees": "22", "baais": "22", "teyees": "23",
    "chaubees": "24", "pachees": "25", "pachchees": "25", "pachis": "25",
    "chhabbees": "26", "sattaees": "27", "atthaees": "28", "unatees": "29",
    "tees": "30", "ikattees": "31",
}

# "ek" and "do" double as everyday Hinglish ("ek baar", "kar do"), so they are
# only read as numbers right before a date unit.
AMBIGUOUS_NUMBER_WORDS = frozenset({"ek", "do", "एक", "दो"})
DATE_UNIT_WORDS = frozenset({
    "tarikh", "tareekh", "तारीख", "date", "din", "दिन",
    "hafte", "hafta", "हफ्ते", "हफ्ता", "week",
})

_PLAIN_NUMBER_RE = re.compile(
    "|".join(
        _token_pattern(w)
        for w in sorted(NUMBER_WORDS, key=len, reverse=True)
        if w not in AMBIGUOUS_NUMBER_WORDS
    )
)
_AMBIGUOUS_NUMBER_RE = re.compile(
    r"(?<!\S)("
    + "|".join(re.escape(w) for w in sorted(AMBIGUOUS_NUMBER_WORDS, key=len, reverse=True))
    + r")(?=\s+(?:"
    + "|".join(re.escape(w) for w in sorted(DATE_UNIT_WORDS, key=len, reverse=True))
    + r")(?!\S))"
)


def replace_number_words(text: str) -> str:
    """Replace spoken Hindi number words (one to thirty-one) with digits.

    Example: "pachees tarikh" -> "25 tarikh", "do din baad" -> "2 din baad"
    """
    out = _PLAIN_NUMBER_RE.sub(lambda m: NUMBER_WORDS[m.group(0)], text)
    return _AMBIGUOUS_NUMBER_RE.sub(lambda m: NUMBER_WORDS[m.group(1)], out)
