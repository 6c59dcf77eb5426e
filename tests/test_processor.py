from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio

from remindercall import prompts
from remindercall.config import DialogueSettings, REJECT_IN_DATE_COLLECTS_BRANCH
from remindercall.intents import Intent
from remindercall.processor import TurnProcessor
from remindercall.session_manager import SessionManager
from remindercall.state_machine import StateMachine
from remindercall.states import State

pytestmark = pytest.mark.usefixtures("frozen_today")

CALL_ID = "CA_proc_1"


@pytest.fixture
def sink():
    client = MagicMock()
    client.send_booking = AsyncMock(return_value={"success": True})
    return client


@pytest.fixture
def manager(sink):
    return SessionManager(sink, ttl_seconds=1800)


@pytest.fixture
def processor(manager, directory):
    return TurnProcessor(manager, directory)


@pytest_asyncio.fixture
async def started(processor, directory, pending_payload):
    directory.register(CALL_ID, pending_payload)
    await processor.start_call(CALL_ID)
    return processor


def _payload(sink):
    assert sink.send_booking.await_count == 1
    return sink.send_booking.await_args.args[0]


async def _say(processor, *utterances, confidence=None):
    reply = None
    for text in utterances:
        reply = await processor.handle_turn(CALL_ID, text, confidence)
    return reply


class TestStartCall:
    @pytest.mark.asyncio
    async def test_greets_with_asset_details(self, processor, directory, pending_payload):
        directory.register(CALL_ID, pending_payload)
        reply = await processor.start_call(CALL_ID)
        assert reply.speak == prompts.greeting("Ramesh", "3DX", "JCB-4521", "500 hour")
        assert reply.continue_listening
        session = processor.sessions.get(CALL_ID)
        assert session.state == State.AWAITING_INITIAL_DECISION
        assert session.last_message == reply.speak
        assert CALL_ID not in directory

    @pytest.mark.asyncio
    async def test_missing_call_id(self, processor):
        reply = await processor.start_call(None)
        assert reply.hangup
        assert reply.speak == prompts.MISSING_CALL_ID

    @pytest.mark.asyncio
    async def test_no_pending_data(self, processor):
        reply = await processor.start_call("CA_unknown")
        assert reply.hangup
        assert reply.speak == prompts.NO_CALL_DATA
        assert len(processor.sessions) == 0


class TestFullCalls:
    @pytest.mark.asyncio
    async def test_happy_path_books_service(self, processor, directory, pending_payload, sink):
        directory.register(CALL_ID, pending_payload)
        await processor.start_call(CALL_ID)

        reply = await _say(processor, "haan ji")
        assert reply.speak == prompts.ask_date("Ramesh")
        reply = await _say(processor, "25 tarikh ko")
        assert "Tuesday, 25 November 2025" in reply.speak
        reply = await _say(processor, "haan")
        assert reply.speak == prompts.ask_branch("Ramesh")
        reply = await _say(processor, "Jaipur")

        assert reply.hangup
        assert reply.speak == prompts.confirm_booking("Ramesh", "JAIPUR", "JAIPUR", "Tuesday, 25 November 2025")
        payload = _payload(sink)
        assert payload["outcome"] == "confirmed"
        assert payload["confirmed_service_date_iso"] == "2025-11-25"
        assert payload["branch_code"] == "4"
        assert payload["total_turns"] == 4
        assert [t["state"] for t in payload["turns"]] == [
            "awaiting_initial_decision",
            "awaiting_date",
            "awaiting_date_confirm",
            "awaiting_branch",
        ]
        assert CALL_ID not in processor.sessions

    @pytest.mark.asyncio
    async def test_branch_given_early_skips_city_question(self, started, sink):
        await _say(started, "machine jaipur mein hai", "kal")
        reply = await _say(started, "haan ji")
        assert reply.hangup
        payload = _payload(sink)
        assert payload["outcome"] == "confirmed"
        assert payload["branch_code"] == "4"
        assert payload["confirmed_service_date_iso"] == "2025-11-19"

    @pytest.mark.asyncio
    async def test_reject_twice_ends_rejected(self, started, sink):
        reply = await _say(started, "nahi")
        assert reply.speak == prompts.ask_reason("Ramesh")
        reply = await _say(started, "nahi chahiye")
        assert reply.speak == prompts.persuasion_final("Ramesh")
        assert started.sessions.get(CALL_ID).persuasion_count == 1
        reply = await _say(started, "nahi")

        assert reply.hangup
        assert reply.speak == prompts.rejected("Ramesh")
        payload = _payload(sink)
        assert payload["outcome"] == "rejected"
        assert payload["rejection_reason"] == "nahi"

    @pytest.mark.asyncio
    async def test_already_done(self, started, sink):
        await _say(started, "service ho gayi hai")
        reply = await _say(started, "pichle mahine Kota se karwa li")
        assert reply.hangup
        payload = _payload(sink)
        assert payload["outcome"] == "already_done"
        assert payload["already_done_details"] == "pichle mahine Kota se karwa li"

    @pytest.mark.asyncio
    async def test_already_done_with_a_number_while_asking_date(self, started, sink):
        await _say(started, "haan ji")
        reply = await _say(started, "service 5 din pehle ho gayi")
        session = started.sessions.get(CALL_ID)
        assert reply.speak == prompts.ask_already_done_details("Ramesh")
        assert session.state == State.AWAITING_SERVICE_DETAILS
        assert session.date_token == ""
        await _say(started, "Kota se karwa li")
        assert _payload(sink)["outcome"] == "already_done"

    @pytest.mark.asyncio
    async def test_objection_then_date(self, started, sink):
        reply = await _say(started, "driver nahi hai abhi")
        assert reply.speak == prompts.objection_reply(Intent.DRIVER_UNAVAILABLE, "Ramesh")
        assert started.sessions.get(CALL_ID).state == State.AWAITING_DATE
        await _say(started, "somvar", "haan")
        assert started.sessions.get(CALL_ID).state == State.AWAITING_BRANCH


class TestSilence:
    @pytest.mark.asyncio
    async def test_three_silences_end_as_no_response(self, started, sink):
        first = await _say(started, "")
        assert first.continue_listening
        assert "awaaz nahi aayi" in first.speak
        second = await _say(started, "")
        assert "aakhri baar" in second.speak
        third = await _say(started, "")

        assert third.hangup
        assert third.speak == prompts.no_response_end("Ramesh")
        payload = _payload(sink)
        assert payload["outcome"] == "no_response"
        assert [t["intent"] for t in payload["turns"]] == ["silence", "silence", "silence_max"]

    @pytest.mark.asyncio
    async def test_speech_resets_silence_count(self, started):
        await _say(started, "", "")
        await _say(started, "haan ji")
        reply = await _say(started, "")
        assert not reply.hangup
        assert started.sessions.get(CALL_ID).silence_retries == 1


class TestConfidence:
    @pytest.mark.asyncio
    async def test_low_confidence_asks_again_once(self, started):
        reply = await _say(started, "haan ji", confidence=0.2)
        session = started.sessions.get(CALL_ID)
        assert session.state == State.AWAITING_INITIAL_DECISION
        assert reply.speak == prompts.low_confidence(
            "Ramesh", prompts.state_question(State.AWAITING_INITIAL_DECISION)
        )
        await _say(started, "haan ji", confidence=0.2)
        assert session.state == State.AWAITING_DATE
        assert session.low_confidence_retries == 0

    @pytest.mark.asyncio
    async def test_unclear_speech_prompts_then_ends(self, started, sink):
        first = await _say(started, "hm")
        assert first.speak == prompts.slow_speech_prompt("Ramesh", 1)
        await _say(started, "asdf qwer", confidence=0.1)
        third = await _say(started, "hm")
        assert third.hangup
        assert third.speak == prompts.slow_speech_farewell("Ramesh")
        assert _payload(sink)["outcome"] == "no_response"


class TestGreetingConfusion:
    @pytest.mark.asyncio
    async def test_who_is_calling_gets_short_greeting(self, started):
        reply = await _say(started, "aap kaun bol rahe ho")
        session = started.sessions.get(CALL_ID)
        assert reply.speak == prompts.short_greeting("Ramesh")
        assert not reply.hangup
        assert session.state == State.AWAITING_INITIAL_DECISION
        assert session.last_message == reply.speak
        assert session.greeting_confusion_count == 1

    @pytest.mark.asyncio
    async def test_third_confusion_ends_as_no_response(self, started, sink):
        await _say(started, "aap kaun", "kis liye call kiya")
        reply = await _say(started, "kaun si company hai")
        assert reply.hangup
        assert reply.speak == prompts.greeting_confusion_limit("Ramesh")
        payload = _payload(sink)
        assert payload["outcome"] == "no_response"
        assert [t["intent"] for t in payload["turns"]] == [
            "greeting_confusion", "greeting_confusion", "greeting_confusion_max",
        ]

    @pytest.mark.asyncio
    async def test_only_checked_at_greeting(self, started):
        await _say(started, "haan ji")
        reply = await _say(started, "aap kaun")
        session = started.sessions.get(CALL_ID)
        assert reply.speak == prompts.confusion_clarify(session)
        assert session.greeting_confusion_count == 0


class TestGarbageAudio:
    @pytest.mark.asyncio
    async def test_noise_gets_short_greeting_then_ends(self, started, sink):
        first = await _say(started, "x", confidence=0.1)
        assert first.speak == prompts.short_greeting("Ramesh")
        assert not first.hangup
        await _say(started, "x", confidence=0.1)
        third = await _say(started, "hm", confidence=0.05)
        assert third.hangup
        assert third.speak == prompts.greeting_confusion_limit("Ramesh")
        payload = _payload(sink)
        assert payload["outcome"] == "no_response"
        assert payload["turns"][-1]["intent"] == "garbage_audio_max"

    @pytest.mark.asyncio
    async def test_meaningful_short_word_is_not_noise(self, started):
        reply = await _say(started, "ji", confidence=0.1)
        assert reply.speak == prompts.slow_speech_prompt("Ramesh", 1)
        assert started.sessions.get(CALL_ID).garbage_audio_count == 0

    @pytest.mark.asyncio
    async def test_clear_answer_resets_count(self, started):
        await _say(started, "x", confidence=0.1)
        session = started.sessions.get(CALL_ID)
        assert session.garbage_audio_count == 1
        await _say(started, "haan ji")
        assert session.garbage_audio_count == 0
        assert session.state == State.AWAITING_DATE


class TestOffTopic:
    @pytest.mark.asyncio
    async def test_gentle_then_firm_redirect(self, started):
        first = await _say(started, "cricket ka score kya hua")
        assert first.speak == prompts.off_topic_redirect("Ramesh")
        second = await _say(started, "koi joke sunao")
        assert second.speak == prompts.off_topic_firm(
            "Ramesh", prompts.state_question(State.AWAITING_INITIAL_DECISION)
        )
        session = started.sessions.get(CALL_ID)
        assert session.state == State.AWAITING_INITIAL_DECISION
        assert session.off_topic_count == 2
        assert session.unknown_streak == 0
        assert not second.hangup

    @pytest.mark.asyncio
    async def test_real_answer_resets_count(self, started):
        await _say(started, "cricket dekh rahe the")
        reply = await _say(started, "haan ji")
        session = started.sessions.get(CALL_ID)
        assert reply.speak == prompts.ask_date("Ramesh")
        assert session.off_topic_count == 0

    @pytest.mark.asyncio
    async def test_service_details_accept_anything(self, started, sink):
        await _say(started, "service ho gayi hai")
        reply = await _say(started, "cricket match ke din karwai thi")
        assert reply.hangup
        payload = _payload(sink)
        assert payload["outcome"] == "already_done"
        assert payload["already_done_details"] == "cricket match ke din karwai thi"


class TestLimits:
    @pytest.mark.asyncio
    async def test_unknown_streak_ends_call(self, started, sink):
        await _say(started, "asdf qwer", "zxcv bnm")
        reply = await _say(started, "lorem ipsum")
        assert reply.hangup
        assert reply.speak == prompts.too_many_unknown("Ramesh")
        assert _payload(sink)["outcome"] == "no_response"

    @pytest.mark.asyncio
    async def test_unknown_streak_with_date_held_is_not_a_booking(self, started, sink):
        await _say(started, "haan ji", "25 tarikh")
        assert started.sessions.get(CALL_ID).state == State.AWAITING_DATE_CONFIRM
        await _say(started, "asdf qwer", "zxcv bnm")
        reply = await _say(started, "lorem ipsum")
        assert reply.hangup
        assert reply.speak == prompts.too_many_unknown("Ramesh")
        payload = _payload(sink)
        assert payload["outcome"] == "no_response"
        assert payload["confirmed_service_date"] is None

    @pytest.mark.asyncio
    async def test_city_refused_without_date_ends(self, manager, directory, pending_payload, sink):
        machine = StateMachine(reject_in_date_policy=REJECT_IN_DATE_COLLECTS_BRANCH)
        processor = TurnProcessor(manager, directory, machine=machine)
        directory.register(CALL_ID, pending_payload)
        await processor.start_call(CALL_ID)
        await _say(processor, "haan ji", "nahi")
        session = processor.sessions.get(CALL_ID)
        assert session.state == State.AWAITING_BRANCH
        await _say(processor, "nahi", "nahi")
        assert session.branch_retries == 2
        reply = await _say(processor, "nahi")
        assert reply.hangup
        assert reply.speak == prompts.agent_callback("Ramesh")
        assert _payload(sink)["outcome"] == "no_response"

    @pytest.mark.asyncio
    async def test_turn_cap(self, manager, directory, pending_payload, sink):
        processor = TurnProcessor(manager, directory, settings=DialogueSettings(max_total_turns=2))
        directory.register(CALL_ID, pending_payload)
        await processor.start_call(CALL_ID)
        await _say(processor, "dobara boliye", "dobara boliye")
        reply = await _say(processor, "dobara boliye")
        assert reply.hangup
        assert _payload(sink)["turns"][-1]["intent"] == "max_turns"

    @pytest.mark.asyncio
    async def test_repeat_keeps_last_message(self, started):
        session = started.sessions.get(CALL_ID)
        greeting = session.last_message
        reply = await _say(started, "dobara boliye")
        assert reply.speak == f"{prompts.REPEAT_INTROS[1]} {greeting}"
        assert session.last_message == greeting


class TestStatusAndErrors:
    @pytest.mark.asyncio
    async def test_hangup_status_ends_session(self, started, sink):
        await _say(started, "haan ji", "kal")
        assert await started.handle_status(CALL_ID, "completed") is True
        assert CALL_ID not in started.sessions
        assert _payload(sink)["outcome"] == "no_response"

    @pytest.mark.asyncio
    async def test_non_terminal_status_ignored(self, started, sink):
        assert await started.handle_status(CALL_ID, "in-progress") is False
        assert CALL_ID in started.sessions
        sink.send_booking.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_status_for_unknown_call(self, processor):
        assert await processor.handle_status("CA_unknown", "completed") is False

    @pytest.mark.asyncio
    async def test_turn_without_call_id(self, processor):
        reply = await processor.handle_turn(None, "haan")
        assert reply.hangup
        assert reply.speak == prompts.MISSING_CALL_ID

    @pytest.mark.asyncio
    async def test_turn_without_session(self, processor):
        reply = await processor.handle_turn("CA_unknown", "haan")
        assert reply.hangup
        assert reply.speak == prompts.NO_SESSION

    @pytest.mark.asyncio
    async def test_turn_after_call_ended(self, started):
        await _say(started, "", "", "")
        reply = await _say(started, "haan")
        assert reply.speak == prompts.NO_SESSION

    @pytest.mark.asyncio
    async def test_unexpected_error_ends_politely(self, started, sink):
        with patch.object(started.machine, "process", side_effect=RuntimeError("boom")):
            reply = await _say(started, "haan ji")
        assert reply.hangup
        assert reply.speak == prompts.technical_error("Ramesh")
        payload = _payload(sink)
        assert payload["outcome"] == "no_response"
        assert payload["turns"][-1]["intent"] == "internal_error"
