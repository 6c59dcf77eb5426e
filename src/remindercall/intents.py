"""Intent tags and the ordered phrase cascade used to classify utterances.

Each rule carries two phrase sets: ``phrases`` match as substrings of the
normalized utterance, ``words`` match only as whole tokens.  Short words
("ok", "han", "no") go in ``words`` so they cannot fire inside longer ones
("book", "nahi").  The cascade order is the classification priority.
"""

from dataclasses import dataclass
from enum import Enum

from remindercall.normalize import match_any_phrase, match_any_word


class Intent(Enum):
    CONFIRM = "confirm"
    REJECT = "reject"
    ALREADY_DONE = "already_done"
    DRIVER_UNAVAILABLE = "driver_unavailable"
    MACHINE_BUSY = "machine_busy"
    WORKING_FINE = "working_fine"
    MONEY_ISSUE = "money_issue"
    CALL_LATER = "call_later"
    PROVIDE_DATE = "provide_date"
    PROVIDE_BRANCH = "provide_branch"
    REPEAT = "repeat"
    CONFUSION = "confusion"
    UNCLEAR = "unclear"
    UNKNOWN = "unknown"

    @property
    def is_objection(self) -> bool:
        return self in OBJECTION_INTENTS


OBJECTION_INTENTS = frozenset({
    Intent.DRIVER_UNAVAILABLE,
    Intent.MACHINE_BUSY,
    Intent.WORKING_FINE,
    Intent.MONEY_ISSUE,
    Intent.CALL_LATER,
})


@dataclass(frozen=True)
class IntentRule:
    intent: Intent
    phrases: frozenset = frozenset()
    words: frozenset = frozenset()

    def matches(self, norm_text: str) -> bool:
        return match_any_phrase(norm_text, self.phrases) or match_any_word(norm_text, self.words)


REPEAT = IntentRule(Intent.REPEAT, phrases=frozenset({
    "dobara boliye", "dobara bolo", "dobara bolie", "phir se boliye", "phir se bolo",
    "fir se bolo", "fir se boliye", "ek baar aur", "ek baar phir", "kya kaha", "kya bola",
    "kya bol raha", "suna nahi", "sunai nahi", "awaz nahi", "awaaz nahi",
    "clear nahi", "repeat karo", "repeat karein", "repeat please", "say again",
    "say that again", "come again", "thoda dheere", "dheere boliye", "nahi suna",
    "kuch nahi suna",
    "दोबारा बोलो", "दोबारा बोलिए", "फिर से बोलो", "फिर से बोलिए", "फिर बोलो",
    "एक बार और", "क्या कहा", "क्या बोले", "नहीं सुना", "सुनाई नहीं", "आवाज़ नहीं",
    "आवाज नहीं", "धीरे बोलिए", "साफ बोलिए",
}), words=frozenset({"repeat", "pardon"}))

CONFUSION = IntentRule(Intent.CONFUSION, phrases=frozenset({
    "kaunsi machine", "konsi machine", "kaun si machine", "kaunsa service",
    "konsa service", "meri machine nahi", "galat machine", "galat number",
    "yeh meri nahi", "samajh nahi aaya", "nahi samjha", "nahi samjhi",
    "samjha nahi", "samjhi nahi", "samajh nahi", "kya matlab", "kya bol rahe",
    "kya pooch rahe", "kya hai yeh", "kaun bol raha", "kon bol raha", "aap kaun",
    "galat call", "wrong number", "mujhe nahi pata", "kis liye call", "kyun call",
    "कौन सी मशीन", "गलत मशीन", "गलत नंबर", "यह मेरी नहीं", "समझ नहीं",
    "क्या मतलब", "गलत कॉल", "यह क्या है", "मुझे नहीं पता", "आप कौन",
    "कौन बोल", "किस लिए", "कौन सी कंपनी",
}), words=frozenset({"kon hai", "kaun hai"}))

ALREADY_DONE = IntentRule(Intent.ALREADY_DONE, phrases=frozenset({
    "ho chuki hai", "ho gayi hai", "karwa chuka", "karwa chuki", "kar chuka",
    "kar chuki", "pehle karwa li", "already karwa li", "already ho gayi",
    "service ho gayi", "service karwa chuke", "service karwa li", "karwa di hai",
    "kar di hai", "already done", "already serviced", "done hai", "ho gayi",
    "पहले करवा ली", "पहले करवाई", "पहले हो गई", "हो चुकी", "पहले ही करवा ली",
    "करवा दी", "हो गई है", "सर्विस हो गई",
}), words=frozenset({"serviced", "कर दी", "पहले की"}))

DRIVER_UNAVAILABLE = IntentRule(Intent.DRIVER_UNAVAILABLE, phrases=frozenset({
    "driver nahi", "driver available nahi", "driver chutti par", "driver chutti pe",
    "driver gaya hua", "koi driver nahi", "operator nahi", "operator available nahi",
    "chalane wala nahi", "chauffeur nahi", "driver busy",
    "ड्राइवर नहीं", "ड्राइवर उपलब्ध नहीं", "ड्राइवर छुट्टी", "ऑपरेटर नहीं",
}))

MACHINE_BUSY = IntentRule(Intent.MACHINE_BUSY, phrases=frozenset({
    "machine chal rahi hai", "machine kaam kar rahi", "site pe chal rahi",
    "kaam chal raha", "project chal raha", "site pe hai", "site par hai",
    "machine site pe", "machine busy hai", "chal rahi hai abhi", "kaam me lagi hai",
    "kaam mein lagi hai", "nikali nahi ja sakti", "rok nahi sakte", "nikal nahi sakti",
    "मशीन चल रही", "साइट पर है", "काम चल रहा", "मशीन बिज़ी", "मशीन बिजी", "काम में लगी",
}))

WORKING_FINE = IntentRule(Intent.WORKING_FINE, phrases=frozenset({
    "machine thik hai", "machine theek hai", "machine sahi hai", "koi problem nahi",
    "chalti rehti hai", "theek chal rahi", "thik chal rahi", "abhi thik hai",
    "koi dikkat nahi", "kaam kar rahi hai", "service ki zaroorat nahi", "sab theek hai",
    "sab thik hai", "koi issue nahi", "machine kharab nahi", "breakdown nahi",
    "मशीन ठीक है", "कोई दिक्कत नहीं", "ठीक चल रही", "सब ठीक है", "कोई प्रॉब्लम नहीं",
}))

MONEY_ISSUE = IntentRule(Intent.MONEY_ISSUE, phrases=frozenset({
    "paisa nahi", "paise nahi", "budget nahi", "funding nahi", "payment nahi",
    "mehnga hai", "mahanga", "afford nahi", "payment problem", "funds nahi",
    "rakh nahi sakta",
    "पैसा नहीं", "पैसे नहीं", "बजट नहीं", "महंगा है", "फंड नहीं",
}))

CALL_LATER = IntentRule(Intent.CALL_LATER, phrases=frozenset({
    "baad mein call karo", "baad mein baat karo", "phir se call karo",
    "busy hoon", "busy hun", "drive kar raha hoon", "gaadi chala raha",
    "meeting mein hoon", "thodi der baad", "kuch time baad", "later karo",
    "call back karo", "dobaara call", "phir call", "free nahi", "waqt nahi",
    "time nahi", "baad mein", "baad me", "call later",
    "बाद में कॉल करो", "बाद में बात करो", "बिज़ी हूँ", "बिजी हूं", "गाड़ी चला रहा",
    "मीटिंग में हूँ", "थोड़ी देर बाद", "बाद में", "खाली नहीं", "वक्त नहीं", "टाइम नहीं",
}))

# Date-bearing phrases.  Bare "tarikh" is deliberately absent: "koi tarikh
# nahi" is a refusal, and a real date is caught by the date extractor.
PROVIDE_DATE = IntentRule(Intent.PROVIDE_DATE, phrases=frozenset({
    "date change kar do", "date badal do", "date badlo", "schedule badal do",
    "reschedule karo", "koi aur din", "dusra din", "aur koi din", "baad ki date",
    "time change",
    "तारीख बदल दो", "तारीख बदलो", "शेड्यूल बदलो", "रीशेड्यूल करो", "कोई और दिन", "दूसरा दिन",
}), words=frozenset({"reschedule"}))

CONFIRM = IntentRule(Intent.CONFIRM, phrases=frozenset({
    "haan ji bilkul", "ji haan zaroor", "bilkul theek hai", "haan book karo",
    "book kar do", "book kardo", "book kar", "book karo", "confirm karo",
    "confirm kar do", "karwa do", "karvao", "karwa lo", "zaroor karo", "haan zaroor",
    "please book", "haan ji", "ji haan", "theek hai", "thik hai", "sahi hai",
    "karwana hai", "karna hai",
    "हाँ बुक करो", "बुक कर दो", "बुक करो", "कन्फर्म करो", "करवा दो", "करवाओ",
    "ज़रूर करो", "हाँ जी", "जी हाँ", "जी हां", "ठीक है", "सही है", "करवाना है",
}), words=frozenset({
    "haan", "haa", "han", "ha", "haanji", "ji ha", "theek h", "bilkul", "zaroor",
    "jarur", "acha", "accha", "achha", "achcha", "ok", "okay", "yes", "yep",
    "yeah", "done", "perfect", "hmm", "confirm", "sure",
    "हाँ", "हां", "बिल्कुल", "ज़रूर", "जरूर", "अच्छा", "ओके",
}))

REJECT = IntentRule(Intent.REJECT, phrases=frozenset({
    "nahi chahiye abhi", "abhi nahi karna", "nahi karna hai", "nahi book karna",
    "book nahi karna", "cancel kar do", "nahi chahiye", "nahi karna", "mat karo",
    "mat kar", "rehne do", "rehne de", "chhod do", "band karo", "zaroorat nahi",
    "need nahi", "mat karna", "abhi nahi", "don t", "dont", "koi tarikh nahi",
    "koi date nahi", "date nahi dunga", "tarikh nahi bataunga", "koi bhi tarikh nahi",
    "नहीं चाहिए", "नहीं करना", "मत करो", "मत कर", "छोड़ दो", "बंद करो",
    "ज़रूरत नहीं", "अभी नहीं", "कैंसल कर दो", "कोई भी तारीख नहीं", "कोई तारीख नहीं",
    "तारीख नहीं दूंगा", "कोई दिन नहीं",
}), words=frozenset({"no", "nope", "cancel", "not interested"}))

# Bare negation particles, matched as whole tokens after every other category
# so "samajh nahi aaya" stays confusion.
NEGATION_PARTICLES = frozenset({"nahi", "nahin", "nai", "नहीं", "नही", "ना"})

# Ordered (category, phrase-set) cascade.  PROVIDE_DATE also fires on any
# extractable date, and PROVIDE_BRANCH (between CONFIRM and REJECT) needs a
# matched service center; classify_intent() adds both checks in place.
INTENT_CASCADE = (
    REPEAT,
    CONFUSION,
    ALREADY_DONE,
    DRIVER_UNAVAILABLE,
    MACHINE_BUSY,
    WORKING_FINE,
    MONEY_ISSUE,
    CALL_LATER,
    PROVIDE_DATE,
    CONFIRM,
    REJECT,
)

OBJECTION_RULES = (DRIVER_UNAVAILABLE, MACHINE_BUSY, WORKING_FINE, MONEY_ISSUE, CALL_LATER)

# Booking phrases that count as a real yes even mid-objection
STRONG_CONFIRM_PHRASES = frozenset({
    "book karo", "book kar", "confirm karo", "confirm kar do", "karwa do", "karvao",
    "haan book", "haan ji bilkul", "bilkul theek hai", "zaroor karo", "please book",
    "haan zaroor", "book kar do", "kardo", "karwana hai", "karna hai", "kar do",
    "बुक करो", "बुक कर दो", "कन्फर्म करो", "करवा दो", "ज़रूर करो", "करवाना है", "करना है",
})

# Acknowledgments that only mean "I'm listening"
FILLER_ONLY_PHRASES = frozenset({
    "accha", "achha", "acha", "achcha", "hmm", "theek hai", "theek h", "thik hai",
    "ok", "okay", "haan", "haa", "han", "अच्छा", "ठीक है", "हाँ", "हां", "ओके",
})

# Soft-deferral cues: the customer wants a later date, not no service at all
POSTPONEMENT_PHRASES = frozenset({
    "abhi nahi", "baad mein", "baad me", "thodi der", "kuch din baad", "later",
    "aage karo", "aage kar do", "postpone",
    "अभी नहीं", "बाद में", "आगे करो", "आगे कर दो",
})

# Who-is-this / why-the-call questions right after the greeting, answered
# with a short re-introduction rather than the full confusion script
GREETING_CONFUSION_PHRASES = frozenset({
    "aap kaun", "kaun bol raha", "kon bol raha", "kaun bol rahi", "kaun ho",
    "kis liye", "kyun call", "kyon call", "kyu call", "kis cheez",
    "kaunsi company", "kaun si company", "konsi company", "company ka naam",
    "आप कौन", "कौन बोल", "कौन हो", "किस लिए", "क्यों कॉल", "किस चीज",
    "कौन सी कंपनी", "कंपनी का नाम",
})

# Small talk that has nothing to do with the booking
OFF_TOPIC_PHRASES = frozenset({
    "mausam", "baarish", "barish", "garmi bahut", "thand bahut", "joke sunao",
    "gaana sunao", "gana sunao", "kahani sunao", "aap robot", "aap insaan",
    "aapki umar", "aapki shaadi", "kahan rehti", "khana khaya", "chai pi",
    "kaun jeeta", "score kya",
    "मौसम", "बारिश", "क्रिकेट", "चुनाव", "मज़ाक", "मजाक", "फिल्म", "गाना सुनाओ",
    "चाय पी", "खाना खाया",
})

OFF_TOPIC_WORDS = frozenset({
    "cricket", "match", "weather", "politics", "election", "chunav", "joke",
    "movie", "film", "song", "news", "khabar", "ipl",
})
