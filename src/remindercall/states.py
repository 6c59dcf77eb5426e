from enum import Enum

OBJECTION_HANDLING_STATES = {"awaiting_reason", "awaiting_reason_persisted"}
COLLECTION_STATES = {"awaiting_date", "awaiting_date_confirm", "awaiting_branch", "awaiting_service_details"}
TERMINAL_STATES = {"ended"}


class State(Enum):
    AWAITING_INITIAL_DECISION = "awaiting_initial_decision"
    AWAITING_REASON = "awaiting_reason"
    AWAITING_REASON_PERSISTED = "awaiting_reason_persisted"
    AWAITING_DATE = "awaiting_date"
    AWAITING_DATE_CONFIRM = "awaiting_date_confirm"
    AWAITING_BRANCH = "awaiting_branch"
    AWAITING_SERVICE_DETAILS = "awaiting_service_details"
    ENDED = "ended"

    @property
    def is_objection_handling(self) -> bool:
        return self.value in OBJECTION_HANDLING_STATES

    @property
    def is_collection(self) -> bool:
        return self.value in COLLECTION_STATES

    @property
    def is_terminal(self) -> bool:
        return self.value in TERMINAL_STATES


class Outcome(Enum):
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    ALREADY_DONE = "already_done"
    NO_RESPONSE = "no_response"
