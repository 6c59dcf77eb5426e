from dataclasses import dataclass, field, asdict
from remindercall.states import State, Outcome
from remindercall.dates import ResolvedDate


@dataclass(frozen=True)
class TurnRecord:
    turn_number: int
    state: str
    utterance: str
    confidence: float | None
    intent: str
    system_reply: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CallSession:
    call_id: str
    state: State = State.AWAITING_INITIAL_DECISION

    # From the pending-call directory
    customer_name: str = ""
    customer_phone: str = ""
    asset_model: str = ""
    asset_id: str = ""
    service_type: str = ""
    due_date: str = ""

    # Collected during the call
    date_token: str = ""
    resolved_date: ResolvedDate | None = None
    branch_name: str = ""
    branch_code: str = ""
    branch_city: str = ""
    branch_address: str = ""
    rejection_reason: str = ""
    already_done_detail: str = ""

    # Retry and escalation counters
    silence_retries: int = 0
    low_confidence_retries: int = 0
    slow_speech_retries: int = 0
    persuasion_count: int = 0
    unknown_streak: int = 0
    confusion_streak: int = 0
    repeat_count: int = 0
    branch_retries: int = 0
    branch_persuaded: bool = False
    greeting_confusion_count: int = 0
    garbage_audio_count: int = 0
    off_topic_count: int = 0
    total_turns: int = 0

    # Call metadata
    started_at: float = 0.0
    ended_at: float = 0.0
    last_message: str = ""
    outcome: Outcome | None = None
    finalized: bool = False
    turns: list = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.customer_name or "ji"

    @property
    def has_date(self) -> bool:
        return bool(self.date_token)

    @property
    def has_branch(self) -> bool:
        return bool(self.branch_code)

    @property
    def display_date(self) -> str:
        """Human-readable booking date, falling back to the raw spoken token."""
        if self.resolved_date:
            return self.resolved_date.display
        return self.date_token

    def append_turn(
        self,
        utterance: str,
        confidence: float | None,
        intent: str,
        system_reply: str,
    ) -> TurnRecord:
        record = TurnRecord(
            turn_number=self.total_turns,
            state=self.state.value,
            utterance=utterance,
            confidence=confidence,
            intent=intent,
            system_reply=system_reply,
        )
        self.turns.append(record)
        return record
