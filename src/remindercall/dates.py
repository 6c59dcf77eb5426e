"""Spoken date extraction and resolution.

extract_date_token() pulls a raw date expression ("25 तारीख", "कल",
"सोमवार", "25/03") out of an utterance.  resolve_date() turns that token into
a concrete calendar date that is always strictly after today in the
anchor timezone.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from remindercall.config import ANCHOR_UTC_OFFSET
from remindercall.normalize import normalize_text, replace_number_words


@dataclass(frozen=True)
class ResolvedDate:
    display: str
    iso: str


WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Spoken month -> canonical Devanagari month used in tokens
MONTH_TOKENS = {
    "january": "जनवरी", "jan": "जनवरी", "february": "फरवरी", "feb": "फरवरी",
    "march": "मार्च", "mar": "मार्च", "april": "अप्रैल", "apr": "अप्रैल",
    "may": "मई", "june": "जून", "jun": "जून", "july": "जुलाई", "jul": "जुलाई",
    "august": "अगस्त", "aug": "अगस्त", "september": "सितंबर", "sep": "सितंबर",
    "sept": "सितंबर", "october": "अक्टूबर", "oct": "अक्टूबर",
    "november": "नवंबर", "nov": "नवंबर", "december": "दिसंबर", "dec": "दिसंबर",
    "जनवरी": "जनवरी", "फरवरी": "फरवरी", "फ़रवरी": "फरवरी", "मार्च": "मार्च",
    "अप्रैल": "अप्रैल", "मई": "मई", "जून": "जून", "जुलाई": "जुलाई", "अगस्त": "अगस्त",
    "सितंबर": "सितंबर", "सितम्बर": "सितंबर", "अक्टूबर": "अक्टूबर", "अक्तूबर": "अक्टूबर",
    "नवंबर": "नवंबर", "नवम्बर": "नवंबर", "दिसंबर": "दिसंबर", "दिसम्बर": "दिसंबर",
}

MONTH_INDEX = {
    "जनवरी": 1, "फरवरी": 2, "मार्च": 3, "अप्रैल": 4, "मई": 5, "जून": 6,
    "जुलाई": 7, "अगस्त": 8, "सितंबर": 9, "अक्टूबर": 10, "नवंबर": 11, "दिसंबर": 12,
}

# Spoken weekday -> canonical Devanagari weekday used in tokens.
# "sun" and "sat" are left out: "sun" is the Hindi verb "listen" and "sat"
# is a common mis-transcription of "saat" (seven).  "ravi" and "guru" are
# left out because they are common first names.
WEEKDAY_TOKENS = {
    "monday": "सोमवार", "mon": "सोमवार", "somwar": "सोमवार", "somvar": "सोमवार",
    "somvaar": "सोमवार", "samvar": "सोमवार",
    "tuesday": "मंगलवार", "tue": "मंगलवार", "tues": "मंगलवार", "mangalwar": "मंगलवार",
    "mangalvar": "मंगलवार", "mangal": "मंगलवार",
    "wednesday": "बुधवार", "wed": "बुधवार", "budhwar": "बुधवार", "budhvar": "बुधवार",
    "budh": "बुधवार",
    "thursday": "गुरुवार", "thu": "गुरुवार", "thurs": "गुरुवार", "guruwar": "गुरुवार",
    "guruvar": "गुरुवार", "veervar": "गुरुवार",
    "friday": "शुक्रवार", "fri": "शुक्रवार", "shukrawar": "शुक्रवार",
    "shukravar": "शुक्रवार", "shukra": "शुक्रवार",
    "saturday": "शनिवार", "shaniwar": "शनिवार", "shanivar": "शनिवार", "shani": "शनिवार",
    "sunday": "रविवार", "raviwar": "रविवार", "ravivar": "रविवार",
    "itwar": "रविवार", "itvaar": "रविवार",
    "सोमवार": "सोमवार", "समवार": "सोमवार", "मंगलवार": "मंगलवार", "मंगल": "मंगलवार",
    "बुधवार": "बुधवार", "बुध": "बुधवार", "गुरुवार": "गुरुवार",
    "वीरवार": "गुरुवार", "शुक्रवार": "शुक्रवार", "शुक्र": "शुक्रवार",
    "शनिवार": "शनिवार", "शनि": "शनिवार", "रविवार": "रविवार",
    "इतवार": "रविवार",
}

WEEKDAY_INDEX = {
    "सोमवार": 0, "मंगलवार": 1, "बुधवार": 2, "गुरुवार": 3,
    "शुक्रवार": 4, "शनिवार": 5, "रविवार": 6,
}

TOMORROW = "कल"
DAY_AFTER_TOMORROW = "परसों"
NEXT_WEEK = "अगले हफ्ते"
NEXT_MONTH = "अगले महीने"
SOONEST = "asap"

RELATIVE_DAY_TOKENS = {
    "kal": TOMORROW, "कल": TOMORROW, "tomorrow": TOMORROW,
    "parso": DAY_AFTER_TOMORROW, "parson": DAY_AFTER_TOMORROW, "parsoon": DAY_AFTER_TOMORROW,
    "परसों": DAY_AFTER_TOMORROW, "परसो": DAY_AFTER_TOMORROW,
    "day after tomorrow": DAY_AFTER_TOMORROW,
    "agle hafte": NEXT_WEEK, "agle week": NEXT_WEEK, "next week": NEXT_WEEK,
    "अगले हफ्ते": NEXT_WEEK, "अगले सप्ताह": NEXT_WEEK,
    "agle mahine": NEXT_MONTH, "next month": NEXT_MONTH, "अगले महीने": NEXT_MONTH,
    "asap": SOONEST, "jald se jald": SOONEST, "जल्द से जल्द": SOONEST,
}

ORDINAL_WORDS = ("tarikh", "tareekh", "तारीख", "तारीख़", "date")
POSTPOSITIONS = ("ko", "को")
BOOKING_CUES_AFTER = ("ke liye", "tak", "se pehle", "तक", "से पहले", "के लिए", "को बुक")
BOOKING_CUES_BEFORE = ("for", "by", "before", "on")


def _alternation(words) -> str:
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


_SLASH_DATE_RE = re.compile(r"(?<!\d)(\d{1,2})[/-](\d{1,2})(?:[/-](\d{4}|\d{2}))?(?!\d)")
_DAY_MONTH_RE = re.compile(rf"(?<!\S)(\d{{1,2}})\s+({_alternation(MONTH_TOKENS)})(?!\S)")
_NUMBER_THEN_ORDINAL_RE = re.compile(
    rf"(?<!\S)(\d{{1,2}})(?:st|nd|rd|th)?\s*(?:{_alternation(ORDINAL_WORDS)})(?!\S)"
)
_ENGLISH_ORDINAL_RE = re.compile(r"(?<!\S)(\d{1,2})(?:st|nd|rd|th)(?!\S)")
_ORDINAL_THEN_NUMBER_RE = re.compile(rf"(?<!\S)(?:{_alternation(ORDINAL_WORDS)})\s+(\d{{1,2}})(?!\S)")
_NUMBER_THEN_POSTPOSITION_RE = re.compile(rf"(?<!\S)(\d{{1,2}})\s+(?:{_alternation(POSTPOSITIONS)})(?!\S)")
_CUE_AFTER_RE = re.compile(rf"(?<!\S)(\d{{1,2}})\s+(?:{_alternation(BOOKING_CUES_AFTER)})(?!\S)")
_CUE_BEFORE_RE = re.compile(rf"(?<!\S)(?:{_alternation(BOOKING_CUES_BEFORE)})\s+(?:the\s+)?(\d{{1,2}})(?!\S)")
_DAYS_LATER_RE = re.compile(r"(?<!\S)(\d{1,2})\s+(?:din|दिन|days?)\s+(?:baad|bad|बाद|later)(?!\S)")
_WEEKS_LATER_RE = re.compile(
    r"(?<!\S)(\d{1,2})\s+(?:hafte|hafta|हफ्ते|हफ्ता|weeks?)\s+(?:baad|bad|बाद|later)(?!\S)"
)
_BARE_NUMBER_RE = re.compile(r"(?<!\S)(\d{1,2})(?!\S)")
_WEEKDAY_RE = re.compile(rf"(?<!\S)({_alternation(WEEKDAY_TOKENS)})(?!\S)")
_RELATIVE_RE = re.compile(rf"(?<!\S)({_alternation(RELATIVE_DAY_TOKENS)})(?!\S)")


def _day_token(day: str) -> str | None:
    n = int(day)
    if 1 <= n <= 31:
        return f"{n} तारीख"
    return None


def _prepare(raw: str) -> str:
    return replace_number_words(normalize_text(raw))


def _extract_explicit(text: str) -> str | None:
    """Numeric, day+month, ordinal and booking-cue forms, in that order."""
    m = _SLASH_DATE_RE.search(text)
    if m:
        day, month, year = m.group(1), m.group(2), m.group(3)
        if year:
            return f"{int(day)}/{int(month)}/{year}"
        return f"{int(day)}/{int(month)}"

    m = _DAY_MONTH_RE.search(text)
    if m:
        return f"{int(m.group(1))} {MONTH_TOKENS[m.group(2)]}"

    for pattern in (
        _NUMBER_THEN_ORDINAL_RE,
        _ORDINAL_THEN_NUMBER_RE,
        _ENGLISH_ORDINAL_RE,
        _NUMBER_THEN_POSTPOSITION_RE,
        _CUE_AFTER_RE,
        _CUE_BEFORE_RE,
    ):
        for m in pattern.finditer(text):
            token = _day_token(m.group(1))
            if token:
                return token
    return None


def extract_date_token(raw: str | None, allow_bare_number: bool = True) -> str | None:
    """Pull a raw date expression out of an utterance.

    Tries, first match wins: numeric DD/MM[/YYYY], day + month name,
    ordinal-date forms ("25 tarikh", "tarikh 25", "25 को"), a number next to a
    booking cue ("25 tak", "by 25"), a named weekday, relative-day words
    ("kal", "2 din baad", "agle hafte"), and finally a bare 1-31 number
    unless allow_bare_number is False.
    """
    if not raw:
        return None
    text = _prepare(raw)
    if not text:
        return None

    token = _extract_explicit(text)
    if token:
        return token

    m = _WEEKDAY_RE.search(text)
    if m:
        return WEEKDAY_TOKENS[m.group(1)]

    m = _DAYS_LATER_RE.search(text)
    if m and int(m.group(1)) >= 1:
        return f"{int(m.group(1))} दिन बाद"
    m = _WEEKS_LATER_RE.search(text)
    if m and int(m.group(1)) >= 1:
        return f"{int(m.group(1))} हफ्ते बाद"
    m = _RELATIVE_RE.search(text)
    if m:
        return RELATIVE_DAY_TOKENS[m.group(1)]

    if not allow_bare_number:
        return None
    for m in _BARE_NUMBER_RE.finditer(text):
        token = _day_token(m.group(1))
        if token:
            return token
    return None


# --- Resolution ---

_TOMORROW_KEYS = {"कल", "kal", "tomorrow"}
_DAY_AFTER_KEYS = {"परसों", "परसो", "parso", "parson", "parsoon", "day after tomorrow"}
_SOONEST_KEYS = {"अगले", "अगला", "agle", "agla", "next", "asap"}
_NEXT_WEEK_KEYS = {"अगले हफ्ते", "अगले सप्ताह", "agle hafte", "agle week", "next week"}
_NEXT_MONTH_KEYS = {"अगले महीने", "agle mahine", "next month"}

_DAYS_LATER_TOKEN_RE = re.compile(r"^(\d+)\s*(?:दिन बाद|din baad|days? later)$")
_WEEKS_LATER_TOKEN_RE = re.compile(r"^(\d+)\s*(?:हफ्ते बाद|hafte baad|weeks? later)$")
_DAY_ONLY_TOKEN_RE = re.compile(r"^(\d{1,2})\s*(?:तारीख|tarikh|date)?$")
_SLASH_TOKEN_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})(?:[/-](\d{4}|\d{2}))?$")
_DAY_MONTH_TOKEN_RE = re.compile(r"^(\d{1,2})\s+(\S+)$")


def _now_anchor() -> datetime:
    """Get current time at the fixed anchor offset. Extracted for test mocking."""
    return datetime.now(timezone.utc).astimezone(ANCHOR_UTC_OFFSET)


def format_date(d: date) -> ResolvedDate:
    display = f"{WEEKDAY_NAMES[d.weekday()]}, {d.day} {MONTH_NAMES[d.month - 1]} {d.year}"
    return ResolvedDate(display=display, iso=d.isoformat())


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _add_months(year: int, month: int, n: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + n
    return index // 12, index % 12 + 1


def _next_weekday(today: date, weekday: int) -> date:
    diff = weekday - today.weekday()
    if diff <= 0:
        diff += 7
    return today + timedelta(days=diff)


def _next_day_of_month(today: date, day: int) -> date | None:
    if not 1 <= day <= 31:
        return None
    # Months without that day (31 in April, 30 in February) are skipped.
    for offset in range(0, 13):
        year, month = _add_months(today.year, today.month, offset)
        candidate = _safe_date(year, month, day)
        if candidate and candidate > today:
            return candidate
    return None


def _next_day_and_month(today: date, day: int, month: int) -> date | None:
    if not 1 <= month <= 12:
        return None
    # Up to eight years ahead so 29 February finds the next leap year.
    for year in range(today.year, today.year + 9):
        candidate = _safe_date(year, month, day)
        if candidate and candidate > today:
            return candidate
    return None


def resolve_date(token: str | None, today: date | None = None) -> ResolvedDate | None:
    """Turn a raw date token into a concrete future calendar date.

    Returns None when the token matches no rule, or when an explicit
    DD/MM/YYYY date is invalid or not in the future.
    """
    if not token:
        return None
    if today is None:
        today = _now_anchor().date()
    t = re.sub(r"\s+", " ", token.strip().lower())

    target = None
    if t in _TOMORROW_KEYS:
        target = today + timedelta(days=1)
    elif t in _DAY_AFTER_KEYS:
        target = today + timedelta(days=2)
    elif t in _SOONEST_KEYS:
        target = today + timedelta(days=1)
    elif t in _NEXT_WEEK_KEYS:
        target = today + timedelta(days=7)
    elif t in _NEXT_MONTH_KEYS:
        year, month = _add_months(today.year, today.month, 1)
        target = date(year, month, 1)
    elif t in WEEKDAY_INDEX:
        target = _next_weekday(today, WEEKDAY_INDEX[t])
    elif t in WEEKDAY_TOKENS:
        target = _next_weekday(today, WEEKDAY_INDEX[WEEKDAY_TOKENS[t]])
    else:
        target = _resolve_numeric(t, today)

    if target is None or target <= today:
        return None
    return format_date(target)


def _resolve_numeric(t: str, today: date) -> date | None:
    m = _DAYS_LATER_TOKEN_RE.match(t)
    if m:
        n = int(m.group(1))
        return today + timedelta(days=n) if n >= 1 else None

    m = _WEEKS_LATER_TOKEN_RE.match(t)
    if m:
        n = int(m.group(1))
        return today + timedelta(days=7 * n) if n >= 1 else None

    m = _DAY_ONLY_TOKEN_RE.match(t)
    if m:
        return _next_day_of_month(today, int(m.group(1)))

    m = _SLASH_TOKEN_RE.match(t)
    if m:
        day, month, year = int(m.group(1)), int(m.group(2)), m.group(3)
        if year:
            full_year = 2000 + int(year) if len(year) == 2 else int(year)
            return _safe_date(full_year, month, day)
        return _next_day_and_month(today, day, month)

    m = _DAY_MONTH_TOKEN_RE.match(t)
    if m:
        month_name = MONTH_TOKENS.get(m.group(2))
        if month_name:
            return _next_day_and_month(today, int(m.group(1)), MONTH_INDEX[month_name])
    return None
