import logging
from dataclasses import dataclass

from remindercall import config
from remindercall import prompts
from remindercall.branches import match_branch
from remindercall.classification import classify_utterance, is_greeting_confusion, is_off_topic
from remindercall.config import DialogueSettings
from remindercall.errors import (
    DialogueError,
    MissingCallIdentifier,
    NoPendingCallData,
    NoActiveSession,
    ClassificationOrResolutionFailure,
)
from remindercall.intents import Intent
from remindercall.pending_calls import PendingCallDirectory
from remindercall.post_call import resolve_outcome
from remindercall.session import CallSession
from remindercall.session_manager import SessionManager
from remindercall.state_machine import StateMachine, Action
from remindercall.states import State, Outcome

logger = logging.getLogger(__name__)

# Very short transcripts that still carry meaning
MEANINGFUL_SHORT_WORDS = frozenset({"haan", "han", "ji", "haanji", "ok", "theek", "kal", "हाँ", "हां", "जी"})


@dataclass
class TurnReply:
    speak: str
    continue_listening: bool = True
    hangup: bool = False


def _hangup(speak: str) -> TurnReply:
    return TurnReply(speak=speak, continue_listening=False, hangup=True)


def _is_garbage_audio(text: str, confidence: float, threshold: float) -> bool:
    # Line noise: a character or two the recognizer itself barely believes
    if len(text) > 2 or text.lower() in MEANINGFUL_SHORT_WORDS:
        return False
    return confidence < threshold


def _is_unclear_speech(text: str, low_confidence: bool, intent: Intent) -> bool:
    if intent != Intent.UNKNOWN:
        return False
    very_short = len(text) <= 2 and text.lower() not in MEANINGFUL_SHORT_WORDS
    return very_short or low_confidence


class TurnProcessor:
    """Drives one call turn by turn.

    Owns every side effect the StateMachine refuses to have: counters,
    collected fields, the turn log, state updates and ending the session.

    Per turn:
    1. Turn cap and silence are handled before classification
    2. Who-is-calling questions at the greeting get a short re-introduction
    3. Near-empty, near-zero-confidence noise is filtered out
    4. The utterance is classified (with a branch match computed once)
    5. Low confidence asks the customer to repeat, once, before trusting it
    6. Unclear speech gets slow-speech prompts
    7. Unrecognized small talk is redirected back to the question
    8. The state machine decides; the action is applied here
    9. On termination the outcome is resolved before state is overwritten
    """

    def __init__(
        self,
        sessions: SessionManager,
        directory: PendingCallDirectory,
        machine: StateMachine | None = None,
        settings: DialogueSettings | None = None,
    ):
        self.sessions = sessions
        self.directory = directory
        self.settings = settings or DialogueSettings()
        self.machine = machine or StateMachine(self.settings)

    async def start_call(self, call_id: str | None) -> TurnReply:
        """Create the session for a newly connected call and greet."""
        try:
            if not call_id:
                raise MissingCallIdentifier("call start without a call id")
            pending = self.directory.pop(call_id)
            if pending is None:
                raise NoPendingCallData(f"no pending data for {call_id}", call_id=call_id)
        except MissingCallIdentifier as e:
            logger.error("Greeting failed: %s", e)
            return _hangup(prompts.MISSING_CALL_ID)
        except NoPendingCallData as e:
            logger.error("Greeting failed: %s", e)
            return _hangup(prompts.NO_CALL_DATA)

        session = self.sessions.create(pending)
        speak = prompts.greeting(
            session.display_name,
            session.asset_model or "JCB",
            session.asset_id or "aapki machine",
            session.service_type or "scheduled",
        )
        session.last_message = speak
        logger.info("Greeting sent for call %s", call_id)
        return TurnReply(speak=speak)

    async def handle_status(self, call_id: str | None, status: str | None) -> bool:
        """Force-end an open session when the carrier reports the call is over."""
        if not call_id or status not in config.TERMINAL_CALL_STATUSES:
            return False
        if call_id not in self.sessions:
            return False
        logger.info("Hangup detected for call %s: status=%s", call_id, status)
        return await self.sessions.end(call_id, f"hangup_{status}", Outcome.NO_RESPONSE)

    async def handle_turn(self, call_id: str | None, text: str | None, confidence: float | None = None) -> TurnReply:
        """Process one customer utterance and return what to say next."""
        text = (text or "").strip()
        confidence = 1.0 if confidence is None else confidence
        try:
            return await self._handle_turn(call_id, text, confidence)
        except MissingCallIdentifier as e:
            logger.error("Turn rejected: %s", e)
            return _hangup(prompts.MISSING_CALL_ID)
        except NoActiveSession as e:
            logger.warning("Turn rejected for call %s: %s", e.call_id, e)
            return _hangup(prompts.NO_SESSION)
        except DialogueError as e:
            logger.error("Turn failed for call %s: %s", e.call_id, e)
            return await self._fail(call_id, text, confidence)
        except Exception as e:
            failure = ClassificationOrResolutionFailure(str(e), call_id=call_id or "")
            logger.exception("Turn failed for call %s: %s", failure.call_id, failure)
            return await self._fail(call_id, text, confidence)

    async def _handle_turn(self, call_id: str | None, text: str, confidence: float) -> TurnReply:
        if not call_id:
            raise MissingCallIdentifier("turn without a call id")
        session = self.sessions.get(call_id)
        if session is None:
            raise NoActiveSession("no session", call_id=call_id)
        if session.finalized:
            logger.warning("Ignoring turn for call %s: session already ending", call_id)
            return _hangup("")

        s = self.settings
        session.total_turns += 1
        name = session.display_name
        logger.info("Call %s turn %d | state=%s | text=%r | confidence=%.2f",
                    call_id, session.total_turns, session.state.value, text[:80], confidence)

        if session.total_turns > s.max_total_turns:
            logger.warning("Call %s hit the turn cap of %d", call_id, s.max_total_turns)
            return await self._end_early(session, text, confidence, "max_turns", prompts.no_response_end(name))

        if not text:
            return await self._handle_silence(session)
        session.silence_retries = 0

        if session.state == State.AWAITING_INITIAL_DECISION and is_greeting_confusion(text):
            session.greeting_confusion_count += 1
            logger.warning("Call %s: greeting confusion #%d", call_id, session.greeting_confusion_count)
            if session.greeting_confusion_count >= s.max_greeting_confusion:
                return await self._end_early(session, text, confidence, "greeting_confusion_max",
                                             prompts.greeting_confusion_limit(name))
            return self._reply_in_place(session, text, confidence, "greeting_confusion",
                                        prompts.short_greeting(name))

        if _is_garbage_audio(text, confidence, s.garbage_confidence):
            session.garbage_audio_count += 1
            logger.warning("Call %s: garbage audio #%d | confidence=%.2f | len=%d",
                           call_id, session.garbage_audio_count, confidence, len(text))
            if session.garbage_audio_count >= s.max_garbage_audio:
                return await self._end_early(session, text, confidence, "garbage_audio_max",
                                             prompts.greeting_confusion_limit(name))
            return self._reply_in_place(session, text, confidence, "garbage_audio",
                                        prompts.short_greeting(name))

        branch = match_branch(text)
        intent = classify_utterance(text, session.state, branch=branch)
        low_confidence = confidence < s.confidence_threshold

        if low_confidence and intent not in (Intent.UNKNOWN, Intent.REPEAT):
            session.low_confidence_retries += 1
            if session.low_confidence_retries < s.max_low_confidence_retries:
                logger.info("Call %s: low confidence %.2f for %s, asking again",
                            call_id, confidence, intent.value)
                speak = prompts.low_confidence(name, prompts.state_question(session.state))
                return self._reply_in_place(session, text, confidence, "low_confidence", speak)
            logger.info("Call %s: low confidence again, processing %s anyway", call_id, intent.value)
            session.low_confidence_retries = 0
        elif not low_confidence:
            session.low_confidence_retries = 0

        if _is_unclear_speech(text, low_confidence, intent):
            session.slow_speech_retries += 1
            logger.warning("Call %s: unclear speech #%d (confidence=%.2f)",
                           call_id, session.slow_speech_retries, confidence)
            if session.slow_speech_retries >= s.max_slow_speech_retries:
                return await self._end_early(session, text, confidence, "slow_speech_max",
                                             prompts.slow_speech_farewell(name))
            speak = prompts.slow_speech_prompt(name, session.slow_speech_retries)
            return self._reply_in_place(session, text, confidence, "slow_speech", speak)
        session.slow_speech_retries = 0

        if (intent == Intent.UNKNOWN and session.state != State.AWAITING_SERVICE_DETAILS
                and is_off_topic(text)):
            session.off_topic_count += 1
            logger.info("Call %s: off-topic #%d in %s", call_id, session.off_topic_count, session.state.value)
            if session.off_topic_count >= s.off_topic_firm_after:
                speak = prompts.off_topic_firm(name, prompts.state_question(session.state))
            else:
                speak = prompts.off_topic_redirect(name)
            return self._reply_in_place(session, text, confidence, "off_topic", speak)
        if intent not in (Intent.UNKNOWN, Intent.CONFUSION):
            session.off_topic_count = 0
        if intent != Intent.UNKNOWN:
            session.garbage_audio_count = 0

        session.unknown_streak = session.unknown_streak + 1 if intent == Intent.UNKNOWN else 0
        session.confusion_streak = session.confusion_streak + 1 if intent == Intent.CONFUSION else 0
        session.repeat_count = session.repeat_count + 1 if intent == Intent.REPEAT else 0

        previous_state = session.state
        action = self.machine.process(session, text, intent, branch)
        terminating = action.end_call or action.next_state == State.ENDED

        # Outcome is decided against the pre-transition session
        outcome = resolve_outcome(action, previous_state, session) if terminating else None

        self._apply(session, action, previous_state)
        session.append_turn(text, confidence, action.intent.value, action.speak)
        if action.intent != Intent.REPEAT or terminating:
            session.last_message = action.speak
        session.state = State.ENDED if terminating else (action.next_state or previous_state)

        logger.info("Call %s -> %s | intent=%s | date=%s | iso=%s | branch=%s",
                    call_id, session.state.value, action.intent.value,
                    session.date_token or "N/A",
                    session.resolved_date.iso if session.resolved_date else "N/A",
                    session.branch_code or "N/A")

        if terminating:
            await self.sessions.end(call_id, f"end_{previous_state.value}", outcome)
            return _hangup(action.speak)
        return TurnReply(speak=action.speak)

    def _apply(self, session: CallSession, action: Action, previous_state: State) -> None:
        if action.clear_date:
            session.date_token = ""
            session.resolved_date = None
        if action.date_token:
            session.date_token = action.date_token
            session.resolved_date = action.resolved_date
            if action.resolved_date is None:
                logger.warning("Call %s: date token %r could not be resolved, storing raw",
                               session.call_id, action.date_token)
        if action.branch:
            session.branch_name = action.branch.name
            session.branch_code = action.branch.code
            session.branch_city = action.branch.city
            session.branch_address = action.branch.address
            session.branch_retries = 0
            logger.info("Call %s: branch matched %s (code %s)", session.call_id, action.branch.name, action.branch.code)
        elif action.branch_missed:
            session.branch_retries += 1
        if action.persuaded:
            session.persuasion_count += 1
            if previous_state == State.AWAITING_BRANCH:
                session.branch_persuaded = True
        if action.rejection_reason:
            session.rejection_reason = action.rejection_reason
        if action.already_done_detail:
            session.already_done_detail = action.already_done_detail
            logger.info("Call %s: already-done details captured: %s", session.call_id, action.already_done_detail[:80])

    def _reply_in_place(self, session: CallSession, text: str, confidence: float | None, tag: str, speak: str) -> TurnReply:
        session.append_turn(text, confidence, tag, speak)
        session.last_message = speak
        return TurnReply(speak=speak)

    async def _handle_silence(self, session: CallSession) -> TurnReply:
        s = self.settings
        session.silence_retries += 1
        logger.warning("Call %s: silence #%d/%d in %s", session.call_id,
                       session.silence_retries, s.max_silence_retries, session.state.value)
        if session.silence_retries >= s.max_silence_retries:
            return await self._end_early(session, "", None, "silence_max",
                                         prompts.no_response_end(session.display_name))
        speak = prompts.silence_prompt(session.display_name, session.state,
                                       session.silence_retries, s.max_silence_retries)
        return self._reply_in_place(session, "", None, "silence", speak)

    async def _end_early(self, session: CallSession, text: str, confidence: float | None, reason: str, speak: str) -> TurnReply:
        """End the call without consulting the state machine (caps and retries)."""
        session.append_turn(text, confidence, reason, speak)
        session.last_message = speak
        session.state = State.ENDED
        await self.sessions.end(session.call_id, reason, Outcome.NO_RESPONSE)
        return _hangup(speak)

    async def _fail(self, call_id: str | None, text: str, confidence: float | None) -> TurnReply:
        session = self.sessions.get(call_id) if call_id else None
        if session is None or session.finalized:
            return _hangup(prompts.technical_error("ji"))
        speak = prompts.technical_error(session.display_name)
        return await self._end_early(session, text, confidence, "internal_error", speak)
