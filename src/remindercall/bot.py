import os
import logging
from contextlib import asynccontextmanager
from xml.sax.saxutils import escape, quoteattr

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

load_dotenv()

# Policy constants in config are read from the environment at import.
from remindercall import config  # noqa: E402
from remindercall.booking_sync import BookingSyncClient  # noqa: E402
from remindercall.config import DialogueSettings  # noqa: E402
from remindercall.pending_calls import PendingCallDirectory  # noqa: E402
from remindercall.processor import TurnProcessor, TurnReply  # noqa: E402
from remindercall.session_manager import SessionManager  # noqa: E402

config.validate_config()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

PUBLIC_URL = os.getenv("PUBLIC_URL", "").rstrip("/")
TTS_VOICE = os.getenv("TTS_VOICE", config.DEFAULT_TTS_VOICE)

settings = DialogueSettings.from_env()

_bookings_url = os.getenv("BOOKINGS_WEBHOOK_URL", "")
booking_client = (
    BookingSyncClient(
        bookings_url=_bookings_url,
        webhook_secret=os.getenv("BOOKINGS_WEBHOOK_SECRET", ""),
    )
    if _bookings_url
    else None
)
sessions = SessionManager(booking_client, ttl_seconds=settings.session_ttl_seconds)
directory = PendingCallDirectory()
processor = TurnProcessor(sessions, directory, settings=settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sessions.start_sweeper(settings.sweep_interval_seconds)
    yield
    await sessions.stop_sweeper()


app = FastAPI(title="Service Reminder Voice Agent", lifespan=lifespan)


def _process_url() -> str:
    return f"{PUBLIC_URL}/voice/process"


def _say(text: str) -> str:
    return (
        f'<Say voice={quoteattr(TTS_VOICE)} language="{config.TTS_LANGUAGE}">'
        f"{escape(text)}"
        "</Say>"
    )


def build_twiml(reply: TurnReply) -> str:
    """Render a TurnReply as TwiML.

    A listening reply wraps the prompt in a speech <Gather> that posts back
    even on silence, so empty turns reach the silence handler.
    """
    if reply.hangup or not reply.continue_listening:
        body = (_say(reply.speak) if reply.speak else "") + "<Hangup/>"
        return f'<?xml version="1.0" encoding="UTF-8"?><Response>{body}</Response>'

    action = quoteattr(_process_url())
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        "<Response>"
        f'<Gather input="speech" action={action} method="POST" language="{config.TTS_LANGUAGE}" '
        'speechTimeout="auto" timeout="6" actionOnEmptyResult="true">'
        f"{_say(reply.speak)}"
        "</Gather>"
        f'<Redirect method="POST">{escape(_process_url())}</Redirect>'
        "</Response>"
    )


def _twiml_response(reply: TurnReply) -> Response:
    return Response(content=build_twiml(reply), media_type="application/xml")


def _parse_confidence(raw) -> float | None:
    if raw in (None, ""):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.warning("Unparseable Confidence value: %r", raw)
        return None


@app.get("/health")
async def health():
    return PlainTextResponse("ok")


@app.post("/voice")
async def voice(request: Request):
    """Answer webhook: create the session and speak the greeting."""
    form = await request.form()
    reply = await processor.start_call(form.get("CallSid"))
    return _twiml_response(reply)


@app.post("/voice/process")
async def voice_process(request: Request):
    """Gather callback: one customer utterance in, one reply out."""
    form = await request.form()
    reply = await processor.handle_turn(
        form.get("CallSid"),
        form.get("SpeechResult", ""),
        _parse_confidence(form.get("Confidence")),
    )
    return _twiml_response(reply)


@app.post("/voice/status")
async def voice_status(request: Request):
    form = await request.form()
    await processor.handle_status(form.get("CallSid"), form.get("CallStatus"))
    return Response(status_code=204)


@app.post("/outbound/pending")
async def register_pending_call(request: Request):
    """Register customer data for a call the dialer is about to place."""
    try:
        data = await request.json()
    except ValueError:
        return JSONResponse({"error": "invalid JSON"}, status_code=400)
    if not isinstance(data, dict):
        return JSONResponse({"error": "expected a JSON object"}, status_code=400)

    call_id = data.get("call_id") or data.get("callSid") or data.get("CallSid")
    if not call_id:
        return JSONResponse({"error": "call_id is required"}, status_code=400)

    pending = directory.register(str(call_id), data)
    return JSONResponse({"registered": pending.call_id}, status_code=201)


if __name__ == "__main__":
    port = int(os.getenv("PORT", "8765"))
    uvicorn.run("remindercall.bot:app", host="0.0.0.0", port=port, reload=True)
