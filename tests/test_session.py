import dataclasses

import pytest

from remindercall.dates import ResolvedDate
from remindercall.session import CallSession, TurnRecord
from remindercall.states import State


def test_new_session_starts_awaiting_initial_decision():
    s = CallSession(call_id="CA1")
    assert s.state == State.AWAITING_INITIAL_DECISION


def test_session_fields_default_empty():
    s = CallSession(call_id="CA1")
    assert s.date_token == ""
    assert s.resolved_date is None
    assert s.branch_code == ""
    assert s.rejection_reason == ""
    assert s.already_done_detail == ""
    assert s.outcome is None
    assert s.finalized is False
    assert s.turns == []


def test_counters_start_at_zero():
    s = CallSession(call_id="CA1")
    assert s.silence_retries == 0
    assert s.low_confidence_retries == 0
    assert s.persuasion_count == 0
    assert s.unknown_streak == 0
    assert s.off_topic_count == 0
    assert s.garbage_audio_count == 0
    assert s.greeting_confusion_count == 0
    assert s.total_turns == 0


def test_display_name_falls_back():
    assert CallSession(call_id="CA1").display_name == "ji"
    assert CallSession(call_id="CA1", customer_name="Ramesh").display_name == "Ramesh"


def test_has_date_and_branch():
    s = CallSession(call_id="CA1")
    assert not s.has_date
    assert not s.has_branch
    s.date_token = "कल"
    s.branch_code = "4"
    assert s.has_date
    assert s.has_branch


def test_display_date_prefers_resolved():
    s = CallSession(call_id="CA1", date_token="25 तारीख")
    assert s.display_date == "25 तारीख"
    s.resolved_date = ResolvedDate(display="Tuesday, 25 November 2025", iso="2025-11-25")
    assert s.display_date == "Tuesday, 25 November 2025"


class TestAppendTurn:
    def test_records_state_at_turn(self, session):
        session.total_turns = 1
        record = session.append_turn("haan", 0.9, "confirm", "Kaunsa din?")
        assert record == TurnRecord(
            turn_number=1,
            state="awaiting_initial_decision",
            utterance="haan",
            confidence=0.9,
            intent="confirm",
            system_reply="Kaunsa din?",
        )
        assert session.turns == [record]

    def test_turns_are_ordered(self, session):
        for i, text in enumerate(["haan", "kal", "haan"], start=1):
            session.total_turns = i
            session.append_turn(text, 1.0, "confirm", "ok")
        assert [t.turn_number for t in session.turns] == [1, 2, 3]

    def test_records_are_immutable(self, session):
        record = session.append_turn("haan", 1.0, "confirm", "ok")
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.utterance = "nahi"

    def test_to_dict(self, session):
        record = session.append_turn("", None, "silence", "awaaz nahi aayi")
        assert record.to_dict() == {
            "turn_number": 0,
            "state": "awaiting_initial_decision",
            "utterance": "",
            "confidence": None,
            "intent": "silence",
            "system_reply": "awaaz nahi aayi",
        }
