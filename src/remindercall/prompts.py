"""Spoken lines for the reminder agent (Priya, Rajesh Motors JCB Service).

Every line is plain text handed to TTS.  Functions take the fields they need
rather than the session so the state machine can compose them freely.
"""

from remindercall.branches import city_examples
from remindercall.intents import Intent
from remindercall.session import CallSession
from remindercall.states import State

AGENT_NAME = "Priya"
COMPANY = "Rajesh Motors JCB Service"


def greeting(name: str, model: str, asset_id: str, service_type: str) -> str:
    return (
        f"Namaskar {name} ji! Main {AGENT_NAME} bol rahi hoon, {COMPANY} se. "
        f"Aapki machine number {asset_id}, model {model}, ki {service_type} service ka samay aa gaya hai. "
        f"Kya main is hafte ke liye booking kar sakti hoon?"
    )


def ask_date(name: str) -> str:
    return (
        f"{name} ji, kripya bataiye, kaunsa din aapke liye suvidhajanak rahega? "
        f"Kal, parso, somwar, ya koi bhi tarikh boliye."
    )


def ask_date_explicit(name: str) -> str:
    return f"{name} ji, kaunsa din ya tarikh suvidhajanak rahega? Jaise kal, somwar, ya 15 tarikh boliye."


def confirm_date(name: str, display_date: str) -> str:
    return f"Bilkul {name} ji. {display_date} ko booking kar rahi hoon, kya yeh theek rahega? Haan ya nahi boliye."


def ask_branch(name: str) -> str:
    return f"{name} ji, aapki machine abhi kis shehar mein hai? {city_examples()}, kripya shehar ka naam bataiye."


def ask_branch_again(name: str) -> str:
    return f"{name} ji, shehar ka naam thoda spasht bataiye please. {city_examples()} mein se kaunsa?"


def branch_persuasion(name: str, display_date: str) -> str:
    return (
        f"{name} ji, {display_date} ki tarikh note ho gayi hai. "
        f"Bas shehar ka naam bata dijiye taaki sahi service center se engineer bhej sakein."
    )


def confirm_booking(name: str, branch_name: str, branch_city: str, display_date: str) -> str:
    return (
        f"Bahut achchi baat hai {name} ji! Aapki service book ho gayi, "
        f"{display_date} ko {branch_name}, {branch_city} mein. "
        f"Hamare service engineer aapse jald sampark karenge. Dhanyavaad!"
    )


def date_noted_without_branch(name: str, display_date: str) -> str:
    return (
        f"Theek hai {name} ji. {display_date} ki tarikh note kar li hai. "
        f"Hamari team aapse shehar ki jaankari ke liye sampark karegi. Dhanyavaad!"
    )


def ask_reason(name: str) -> str:
    return f"Samajh gayi {name} ji. Kripya bataiye kya karan hai, main dekhti hoon ki kya koi sahayata ho sakti hai."


def ask_already_done_details(name: str) -> str:
    return (
        f"Achha, bahut achchi baat hai {name} ji! Kripya bataiye, "
        f"kab karwaai thi, kahan se, aur kaunsi service thi?"
    )


def already_done_saved(name: str) -> str:
    return (
        f"Shukriya {name} ji! Aapka record update kar diya gaya hai. "
        f"Agli service ka reminder samay se pahle aayega. Dhanyavaad!"
    )


OBJECTION_REPLIES = {
    Intent.DRIVER_UNAVAILABLE: (
        "Bilkul samajh gayi {name} ji. Driver ke uplabdh hone par ek suvidhajanak din "
        "bata deejiye, main usi ke liye fix kar dungi."
    ),
    Intent.MACHINE_BUSY: (
        "Samajh gayi {name} ji, machine abhi kaam par hai. "
        "Jab thodi der ke liye free ho sake, tab ka ek din bata deejiye."
    ),
    Intent.WORKING_FINE: (
        "Yeh sunkar achcha laga {name} ji ki machine sahi chal rahi hai. "
        "Samay par service se future mein kharabi ka khatra bhi kam ho jata hai. Kab karein?"
    ),
    Intent.MONEY_ISSUE: (
        "Koi chinta nahi {name} ji. Pehle ek tarikh tay kar lein, payment baad mein bhi ho sakti hai."
    ),
    Intent.CALL_LATER: (
        "Bilkul {name} ji. Koi ek suvidhajanak din bata deejiye, main record mein note kar leti hoon."
    ),
}


def objection_reply(intent: Intent, name: str) -> str:
    return OBJECTION_REPLIES[intent].format(name=name)


def persuasion_final(name: str) -> str:
    return (
        f"{name} ji, service aage karne se baad mein adhik kharcha pad sakta hai. "
        f"Kripya ek tarikh bataiye, baaki sab main sambhal lungi."
    )


def rejected(name: str) -> str:
    return (
        f"Theek hai {name} ji. Jab bhi zaroorat ho, Rajesh Motors ko call kijiye, "
        f"hum hamesha taiyaar hain. Dhanyavaad!"
    )


def no_response_end(name: str) -> str:
    return (
        f"{name} ji, awaaz nahi aayi. Koi baat nahi, main baad mein aapko dobara call karungi. "
        f"Aapka aashirwad chahti hoon. Shukriya!"
    )


def too_many_unknown(name: str) -> str:
    return f"{name} ji, awaaz mein kuch takleef aa rahi hai. Main baad mein aapko call karungi. Shukriya!"


def agent_callback(name: str) -> str:
    return (
        f"{name} ji, lagta hai awaaz mein kuch takleef aa rahi hai. "
        f"Hamare senior agent aapko jald call karenge. Dhanyavaad!"
    )


def polite_ask_again(name: str) -> str:
    return f"{name} ji, samajh nahi aaya. Kripya haan ya nahi boliye."


def low_confidence(name: str, question: str) -> str:
    return f"{name} ji, awaaz thodi dhimi aa rahi hai. Kripya thoda tez aur spasht awaaz se dobara boliye. {question}"


def technical_error(name: str) -> str:
    return f"{name} ji, thodi technical dikkat aa gayi. Hum jald dobara sampark karenge. Kshama kijiye!"


NO_CALL_DATA = "Namaskar ji! Data load karne mein thodi dikkat aa gayi. Kripya thodi der baad call karein. Shukriya!"
NO_SESSION = "Namaskar ji! Session samaapt ho gaya. Kripya dobara call karein. Shukriya!"
MISSING_CALL_ID = "Technical samasya aa gayi. Thodi der baad sampark karein. Shukriya!"


# --- Repeat / confusion ---

REPEAT_INTROS = (
    "Zaroor, phir se bata rahi hoon.",
    "Bilkul ji, dobara keh rahi hoon.",
    "Haan ji, suniye.",
    "Koi baat nahi, phir se.",
    "Zaroor, ek baar aur.",
)


def repeat_reply(session: CallSession) -> str:
    """Replay the last message behind a rotating intro so it never sounds canned."""
    if not session.last_message:
        return (
            f"Ji zaroor. Main {AGENT_NAME} hoon, {COMPANY} se. "
            f"Aapki machine ki service booking ke baare mein baat kar rahi thi."
        )
    intro = REPEAT_INTROS[session.repeat_count % len(REPEAT_INTROS)]
    return f"{intro} {session.last_message}"


def confusion_clarify(session: CallSession) -> str:
    return (
        f"{session.display_name} ji, ek baar spasht kar doon, main {AGENT_NAME} hoon, Rajesh Motors se. "
        f"Machine number {session.asset_id or 'aapki machine'} ki {session.service_type or 'scheduled service'} "
        f"ke liye call aa rahi hai. Kya aap service book karna chahte hain?"
    )


def confusion_full(session: CallSession) -> str:
    return (
        f"Namaskar phir se {session.display_name} ji. Main {AGENT_NAME} hoon, {COMPANY} se. "
        f"Aapke registered number par machine number {session.asset_id or 'aapki machine'} ki "
        f"{session.service_type or 'scheduled service'} ke baare mein call kar rahi hoon. "
        f"Kya yeh aapki machine hai? Haan ya nahi boliye."
    )


# --- Greeting confusion, noise and small talk ---


def short_greeting(name: str) -> str:
    return (
        f"{name} ji, main {AGENT_NAME} hoon Rajesh Motors se. "
        f"Aapki JCB machine ki service ke liye call kiya hai. Kya aap sun pa rahe hain?"
    )


def greeting_confusion_limit(name: str) -> str:
    return f"{name} ji, lagta hai abhi baat karna suvidhajanak nahi hai. Main baad mein call karungi. Dhanyavaad!"


def off_topic_redirect(name: str) -> str:
    return (
        f"{name} ji, mujhe samajh nahi aaya. Kripya apna uttar dijiye, "
        f"kya aap service ke liye appointment rakhna chahte hain?"
    )


def off_topic_firm(name: str, question: str) -> str:
    return f"{name} ji, maafi chahti hoon. Main bas itna jaana chahti hoon: {question} Kripya jawab dijiye."


# --- Per-state questions ---

# The key question of each state, replayed after noise or low confidence
STATE_QUESTIONS = {
    State.AWAITING_INITIAL_DECISION: "Kya main is hafte ke liye booking kar sakti hoon? Haan ya nahi boliye.",
    State.AWAITING_REASON: "Kripya bataiye, kya karan hai? Main sahayata kar sakti hoon.",
    State.AWAITING_REASON_PERSISTED: "Kripya bataiye, kya karan hai? Main sahayata kar sakti hoon.",
    State.AWAITING_DATE: "Kaunsa din aapke liye theek rahega? Kal, somwar, parso, ya koi tarikh? Please boliye.",
    State.AWAITING_DATE_CONFIRM: "Kya yeh din theek hai? Haan ya nahi boliye.",
    State.AWAITING_BRANCH: f"Machine abhi kaunse sheher mein hai? {city_examples()}?",
    State.AWAITING_SERVICE_DETAILS: "Service kab aur kahan se karwaai thi?",
}


def state_question(state: State) -> str:
    return STATE_QUESTIONS.get(state, "Kripya apna jawab dijiye.")


def reask(session: CallSession) -> str:
    """Re-ask the current state's question after an unclear answer."""
    name = session.display_name
    state = session.state
    if state == State.AWAITING_REASON:
        return ask_reason(name)
    if state == State.AWAITING_REASON_PERSISTED:
        return persuasion_final(name)
    if state == State.AWAITING_DATE:
        return ask_date_explicit(name)
    if state == State.AWAITING_DATE_CONFIRM:
        return confirm_date(name, session.display_date or "nirdharit tarikh")
    if state == State.AWAITING_BRANCH:
        return ask_branch_again(name)
    if state == State.AWAITING_SERVICE_DETAILS:
        return ask_already_done_details(name)
    return polite_ask_again(name)


# --- Silence and slow speech ---

SILENCE_QUESTIONS = {
    State.AWAITING_INITIAL_DECISION: "kya aap mujhe sun pa rahe hain? Haan boliye to service ke liye appointment fix kar dungi.",
    State.AWAITING_REASON: "main sun rahi hoon. Kripya apna kaaran samjhaiye.",
    State.AWAITING_REASON_PERSISTED: "main ek tarikh sunna chahti hoon jo aapke liye suvidhajanak ho. Kripya koi din bataiye.",
    State.AWAITING_DATE: "kaunsa din aapke liye theek rahega? Kal, somwar, agle hafte, ya koi din ka naam boliye.",
    State.AWAITING_DATE_CONFIRM: "haan ya nahi boliye. Ek baar haan boliye to booking fix ho jayegi.",
    State.AWAITING_BRANCH: f"aapki machine kaunse sheher mein hai? {city_examples()}, ya koi aur sheher ka naam boliye.",
    State.AWAITING_SERVICE_DETAILS: "kripya bataiye ki service kab aur kahan se karwaai thi?",
}


def silence_prompt(name: str, state: State, retry: int, max_retries: int = 3) -> str:
    """Progressive encouragement after an empty turn.

    retry is the 1-based count of consecutive silent turns; the call ends
    when it reaches max_retries, so the turn before that is the last chance.
    """
    question = SILENCE_QUESTIONS.get(state, "kripya jawab dijiye.")
    if retry >= max_retries - 1 and retry > 1:
        return f"{name} ji, ye aakhri baar pooch rahi hoon, kripya tez awaaz se jawab dijiye. {question}"
    if retry <= 1:
        return f"{name} ji, awaaz nahi aayi. Kripya thoda tez awaaz se boliye. {question}"
    return f"{name} ji, kripya thoda aur spasht awaaz se boliye. {question}"


SLOW_SPEECH_PROMPTS = (
    "{name} ji, kripya thoda tez awaaz se boliye, awaaz dhimi aa rahi hai.",
    "{name} ji, awaaz thodi kam aayi. Kripya thoda zyada tez aur spasht boliye.",
    "{name} ji, shayad awaaz ki samasya aa rahi hai. Kripya paas aake thoda tez boliye.",
)


def slow_speech_prompt(name: str, retry: int) -> str:
    idx = min(max(retry, 1) - 1, len(SLOW_SPEECH_PROMPTS) - 1)
    return SLOW_SPEECH_PROMPTS[idx].format(name=name)


def slow_speech_farewell(name: str) -> str:
    return (
        f"{name} ji, awaaz mein thodi takleef aa rahi hai. "
        f"Main ek baar aur call karungi, aapka aashirwad chahti hoon. Shukriya!"
    )
