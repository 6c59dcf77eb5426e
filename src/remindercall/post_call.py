import time
import logging
from datetime import datetime, timezone

from remindercall import config
from remindercall.booking_sync import BookingSyncClient
from remindercall.intents import Intent
from remindercall.session import CallSession
from remindercall.state_machine import Action
from remindercall.states import State, Outcome
from remindercall.transcript import to_plain_text, to_json_array

logger = logging.getLogger(__name__)


def resolve_outcome(action: Action, previous_state: State, session: CallSession) -> Outcome:
    """Derive the final disposition of a call from its terminating turn.

    Must be called before the session's state is overwritten: previous_state
    is the state the customer was answering, and the session still holds
    what was collected before this turn.  Fields the terminating action
    itself collects (a branch, a date) are counted too.

    A call a guard ended because the customer stopped answering is never
    a booking, whatever was collected before.
    """
    if not action.end_call and action.next_state != State.ENDED:
        return Outcome.NO_RESPONSE
    if action.exhausted:
        return Outcome.NO_RESPONSE
    if previous_state == State.AWAITING_SERVICE_DETAILS:
        return Outcome.ALREADY_DONE

    has_date = (session.has_date and not action.clear_date) or bool(action.date_token)
    has_branch = session.has_branch or action.branch is not None

    if has_date and has_branch:
        return Outcome.CONFIRMED
    if has_date and config.DATE_ALONE_CONFIRMS:
        return Outcome.CONFIRMED
    if action.intent == Intent.REJECT or action.rejected:
        return Outcome.REJECTED
    return Outcome.NO_RESPONSE


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def build_booking_payload(session: CallSession, outcome: Outcome, end_time: float) -> dict:
    """Build the finalized call record for the bookings webhook."""
    start = session.started_at if session.started_at > 0 else end_time
    confirmed = outcome == Outcome.CONFIRMED

    payload = {
        "call_id": session.call_id,
        "customer_name": session.customer_name,
        "customer_phone": session.customer_phone,
        "asset_model": session.asset_model,
        "asset_id": session.asset_id,
        "service_type": session.service_type,
        "due_date_original": session.due_date,
        "outcome": outcome.value,

        # Outcome-specific
        "confirmed_service_date": (session.display_date or "[date unresolved]") if confirmed else None,
        "confirmed_service_date_iso": session.resolved_date.iso if confirmed and session.resolved_date else None,
        "branch_name": session.branch_name or None,
        "branch_code": session.branch_code or None,
        "branch_city": session.branch_city or None,
        "rejection_reason": (session.rejection_reason or None) if outcome == Outcome.REJECTED else None,
        "already_done_details": (session.already_done_detail or None) if outcome == Outcome.ALREADY_DONE else None,

        # Call metadata
        "total_turns": session.total_turns,
        "call_started_at": _iso(start),
        "call_ended_at": _iso(end_time),
        "call_duration_seconds": max(0, int(end_time - start)),

        # Transcript
        "turns": to_json_array(session.turns),
        "call_transcript": to_plain_text(session.turns),
    }
    return payload


async def persist_call(session: CallSession, outcome: Outcome, client: BookingSyncClient | None) -> dict:
    """Send the finalized call record to the bookings webhook.

    Never raises: the customer-facing call must end cleanly whatever the
    sink does.
    """
    end_time = session.ended_at or time.time()
    payload = build_booking_payload(session, outcome, end_time)

    if client is None:
        logger.warning("No bookings webhook configured, call %s not persisted (outcome=%s)",
                       session.call_id, outcome.value)
        return {"success": False, "error": "not configured"}

    result = await client.send_booking(payload)
    if result.get("success") is False:
        logger.error("Booking sync failed for call %s: %s", session.call_id, result.get("error"))
    else:
        logger.info("Booking synced for call %s: outcome=%s date=%s branch=%s",
                    session.call_id, outcome.value, session.display_date or "N/A",
                    session.branch_code or "N/A")
    return result
