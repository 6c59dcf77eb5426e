import logging
from dataclasses import dataclass

from remindercall import config
from remindercall import prompts
from remindercall.branches import BranchMatch, match_branch
from remindercall.classification import DATE_PROMPT_STATES, detect_objection, signals_postponement
from remindercall.config import DialogueSettings
from remindercall.dates import ResolvedDate, extract_date_token, resolve_date
from remindercall.intents import Intent
from remindercall.normalize import normalize_text
from remindercall.session import CallSession
from remindercall.states import State

logger = logging.getLogger(__name__)


@dataclass
class Action:
    speak: str = ""
    next_state: State | None = None
    end_call: bool = False
    intent: Intent = Intent.UNKNOWN

    # Fields collected this turn; the orchestrator copies them onto the session
    date_token: str = ""
    resolved_date: ResolvedDate | None = None
    clear_date: bool = False
    branch: BranchMatch | None = None
    branch_missed: bool = False
    persuaded: bool = False
    rejected: bool = False
    rejection_reason: str = ""
    already_done_detail: str = ""
    # Ended by a guard after the customer stopped making sense
    exhausted: bool = False


class StateMachine:
    """Pure dialogue decision function.

    process() reads the session snapshot and returns an Action; it never
    mutates the session.  TurnProcessor applies the action.
    """

    def __init__(
        self,
        settings: DialogueSettings | None = None,
        reject_in_date_policy: str | None = None,
    ):
        self.settings = settings or DialogueSettings()
        self.reject_in_date_policy = reject_in_date_policy or config.AWAITING_DATE_REJECT_POLICY

    def process(
        self,
        session: CallSession,
        text: str,
        intent: Intent,
        branch: BranchMatch | None = None,
    ) -> Action:
        state = session.state
        name = session.display_name

        if state.is_terminal:
            return Action(next_state=State.ENDED, end_call=True, intent=intent)

        if session.unknown_streak >= self.settings.max_unknown_streak:
            logger.warning("Unknown streak %d in %s, ending call", session.unknown_streak, state.value)
            return Action(
                speak=prompts.too_many_unknown(name),
                next_state=State.ENDED,
                end_call=True,
                intent=intent,
                exhausted=True,
            )

        if intent == Intent.REPEAT:
            if session.repeat_count > self.settings.max_repeat_count:
                logger.warning("Repeat loop in %s, handing off to an agent callback", state.value)
                return Action(
                    speak=prompts.agent_callback(name),
                    next_state=State.ENDED,
                    end_call=True,
                    intent=intent,
                    exhausted=True,
                )
            return Action(speak=prompts.repeat_reply(session), next_state=state, intent=intent)

        if intent == Intent.CONFUSION:
            if session.confusion_streak >= self.settings.max_confusion_streak:
                speak = prompts.confusion_full(session)
            else:
                speak = prompts.confusion_clarify(session)
            return Action(speak=speak, next_state=State.AWAITING_INITIAL_DECISION, intent=intent)

        if intent == Intent.UNCLEAR:
            return Action(speak=prompts.reask(session), next_state=state, intent=intent)

        handler = getattr(self, f"_handle_{state.value}")
        return handler(session, text, intent, branch)

    # --- Helpers ---

    def _extract_date(self, text: str, state: State) -> str | None:
        return extract_date_token(text, allow_bare_number=state in DATE_PROMPT_STATES)

    def _confirm_date(self, session: CallSession, token: str, intent: Intent) -> Action:
        resolved = resolve_date(token)
        display = resolved.display if resolved else token
        return Action(
            speak=prompts.confirm_date(session.display_name, display),
            next_state=State.AWAITING_DATE_CONFIRM,
            intent=intent,
            date_token=token,
            resolved_date=resolved,
        )

    def _date_or_ask(self, session: CallSession, text: str, intent: Intent) -> Action:
        token = self._extract_date(text, session.state)
        if token:
            return self._confirm_date(session, token, intent)
        return Action(speak=prompts.ask_date(session.display_name), next_state=State.AWAITING_DATE, intent=intent)

    def _objection(self, session: CallSession, objection: Intent, intent: Intent, next_state: State) -> Action:
        return Action(
            speak=prompts.objection_reply(objection, session.display_name),
            next_state=next_state,
            intent=intent,
        )

    def _already_done(self, session: CallSession, intent: Intent) -> Action:
        return Action(
            speak=prompts.ask_already_done_details(session.display_name),
            next_state=State.AWAITING_SERVICE_DETAILS,
            intent=intent,
        )

    def _end_rejected(self, session: CallSession, intent: Intent, reason: str = "") -> Action:
        return Action(
            speak=prompts.rejected(session.display_name),
            next_state=State.ENDED,
            end_call=True,
            intent=intent,
            rejected=True,
            rejection_reason=reason,
        )

    # --- State handlers ---

    def _handle_awaiting_initial_decision(self, session, text, intent, branch) -> Action:
        name = session.display_name
        if intent == Intent.CONFIRM:
            return Action(speak=prompts.ask_date(name), next_state=State.AWAITING_DATE, intent=intent)
        if intent == Intent.ALREADY_DONE:
            return self._already_done(session, intent)
        if intent == Intent.REJECT:
            return Action(speak=prompts.ask_reason(name), next_state=State.AWAITING_REASON, intent=intent)
        if intent.is_objection:
            return self._objection(session, intent, intent, State.AWAITING_DATE)
        if intent == Intent.PROVIDE_DATE:
            return self._date_or_ask(session, text, intent)
        if intent == Intent.PROVIDE_BRANCH:
            # Location first: keep it, still need a date
            return Action(
                speak=prompts.ask_date(name),
                next_state=State.AWAITING_DATE,
                intent=intent,
                branch=branch or match_branch(text),
            )
        return Action(speak=prompts.polite_ask_again(name), next_state=session.state, intent=intent)

    def _handle_awaiting_reason(self, session, text, intent, branch) -> Action:
        name = session.display_name
        if intent == Intent.ALREADY_DONE:
            return self._already_done(session, intent)
        if intent == Intent.PROVIDE_DATE:
            action = self._date_or_ask(session, text, intent)
            action.rejection_reason = text
            return action
        if intent == Intent.CONFIRM:
            # "haan, driver nahi hai" is an objection, not a yes
            objection = detect_objection(normalize_text(text))
            if objection:
                action = self._objection(session, objection, intent, State.AWAITING_DATE)
            else:
                action = Action(speak=prompts.ask_date(name), next_state=State.AWAITING_DATE, intent=intent)
            action.rejection_reason = text
            return action
        if intent.is_objection:
            action = self._objection(session, intent, intent, State.AWAITING_DATE)
            action.rejection_reason = text
            return action
        if intent == Intent.REJECT and session.persuasion_count >= 1:
            return self._end_rejected(session, intent, reason=text)
        # First reject or an unrecognized reason: one persuasion attempt
        return Action(
            speak=prompts.persuasion_final(name),
            next_state=State.AWAITING_REASON_PERSISTED,
            intent=intent,
            persuaded=True,
            rejection_reason=text,
        )

    def _handle_awaiting_reason_persisted(self, session, text, intent, branch) -> Action:
        if intent == Intent.ALREADY_DONE:
            return self._already_done(session, intent)
        if intent in (Intent.CONFIRM, Intent.PROVIDE_DATE):
            action = self._date_or_ask(session, text, intent)
            action.rejection_reason = text
            return action
        if intent.is_objection:
            action = self._objection(session, intent, intent, State.AWAITING_DATE)
            action.rejection_reason = text
            return action
        if intent == Intent.REJECT:
            # "nahi, 25 ko kar do" still carries a usable date
            token = self._extract_date(text, session.state)
            if token:
                action = self._confirm_date(session, token, intent)
                action.rejection_reason = text
                return action
        return self._end_rejected(session, intent, reason=text)

    def _handle_awaiting_date(self, session, text, intent, branch) -> Action:
        name = session.display_name
        # A stray number in "5 din pehle ho gayi" is not a booking date
        if intent == Intent.ALREADY_DONE:
            return self._already_done(session, intent)
        token = self._extract_date(text, session.state)
        if token:
            return self._confirm_date(session, token, intent)
        if intent == Intent.CONFIRM:
            # A bare yes must never default to some date
            return Action(speak=prompts.ask_date_explicit(name), next_state=session.state, intent=intent)
        if intent == Intent.REJECT:
            if self.reject_in_date_policy == config.REJECT_IN_DATE_COLLECTS_BRANCH:
                return Action(speak=prompts.ask_branch(name), next_state=State.AWAITING_BRANCH, intent=intent)
            return self._end_rejected(session, intent)
        if intent.is_objection:
            return self._objection(session, intent, intent, session.state)
        if intent == Intent.PROVIDE_BRANCH:
            return Action(
                speak=prompts.ask_date_explicit(name),
                next_state=session.state,
                intent=intent,
                branch=branch or match_branch(text),
            )
        return Action(speak=prompts.ask_date_explicit(name), next_state=session.state, intent=intent)

    def _handle_awaiting_date_confirm(self, session, text, intent, branch) -> Action:
        name = session.display_name
        token = self._extract_date(text, session.state)

        # Repeating the date being confirmed is a yes
        if intent == Intent.PROVIDE_DATE and token and token == session.date_token:
            intent = Intent.CONFIRM

        if intent == Intent.CONFIRM:
            if not session.has_date:
                return Action(speak=prompts.ask_date(name), next_state=State.AWAITING_DATE, intent=intent)
            if session.has_branch:
                return Action(
                    speak=prompts.confirm_booking(name, session.branch_name, session.branch_city, session.display_date),
                    next_state=State.ENDED,
                    end_call=True,
                    intent=intent,
                )
            return Action(speak=prompts.ask_branch(name), next_state=State.AWAITING_BRANCH, intent=intent)

        norm = normalize_text(text)
        if intent == Intent.CALL_LATER or (intent == Intent.REJECT and signals_postponement(norm)):
            return Action(
                speak=prompts.objection_reply(Intent.CALL_LATER, name),
                next_state=State.AWAITING_DATE,
                intent=intent,
                clear_date=True,
            )

        if intent == Intent.PROVIDE_DATE:
            if token:
                return self._confirm_date(session, token, intent)
            return Action(
                speak=prompts.ask_date(name),
                next_state=State.AWAITING_DATE,
                intent=intent,
                clear_date=True,
            )

        if intent == Intent.REJECT:
            return Action(
                speak=prompts.ask_date(name),
                next_state=State.AWAITING_DATE,
                intent=intent,
                clear_date=True,
            )

        return Action(
            speak=prompts.confirm_date(name, session.display_date or "nirdharit tarikh"),
            next_state=session.state,
            intent=intent,
        )

    def _handle_awaiting_branch(self, session, text, intent, branch) -> Action:
        name = session.display_name
        matched = branch or match_branch(text)
        if matched:
            display = session.display_date or "nirdharit tarikh"
            return Action(
                speak=prompts.confirm_booking(name, matched.name, matched.city, display),
                next_state=State.ENDED,
                end_call=True,
                intent=intent,
                branch=matched,
            )

        if intent == Intent.REJECT and session.has_date:
            if not session.branch_persuaded:
                return Action(
                    speak=prompts.branch_persuasion(name, session.display_date),
                    next_state=session.state,
                    intent=intent,
                    persuaded=True,
                )
            return self._close_without_branch(session, intent)

        # Refusing the city with no date held counts as a missed answer
        if session.branch_retries + 1 >= self.settings.max_branch_retries:
            logger.warning("No branch matched after %d attempts", session.branch_retries + 1)
            if session.has_date:
                return self._close_without_branch(session, intent, branch_missed=True)
            return Action(
                speak=prompts.agent_callback(name),
                next_state=State.ENDED,
                end_call=True,
                intent=intent,
                branch_missed=True,
                exhausted=True,
            )
        return Action(
            speak=prompts.ask_branch_again(name),
            next_state=session.state,
            intent=intent,
            branch_missed=True,
        )

    def _close_without_branch(self, session, intent, branch_missed: bool = False) -> Action:
        name = session.display_name
        if config.DATE_ALONE_CONFIRMS:
            speak = prompts.date_noted_without_branch(name, session.display_date)
        else:
            speak = prompts.rejected(name)
        return Action(
            speak=speak,
            next_state=State.ENDED,
            end_call=True,
            intent=intent,
            branch_missed=branch_missed,
        )

    def _handle_awaiting_service_details(self, session, text, intent, branch) -> Action:
        return Action(
            speak=prompts.already_done_saved(session.display_name),
            next_state=State.ENDED,
            end_call=True,
            intent=intent,
            already_done_detail=text,
        )
