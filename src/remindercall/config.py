"""Startup configuration and dialogue limits.

Checks that all required environment variables are set before the server
accepts calls.  Called from bot.py at import time so that a missing key
causes a clear startup failure rather than a silent mid-call crash.
"""

import os
import sys
import logging
from dataclasses import dataclass
from datetime import timedelta, timezone

logger = logging.getLogger(__name__)

REQUIRED_VARS = [
    "PUBLIC_URL",
]

OPTIONAL_VARS = [
    "BOOKINGS_WEBHOOK_URL",
    "BOOKINGS_WEBHOOK_SECRET",
    "TTS_VOICE",
    "LOG_LEVEL",
]

# Date resolution is anchored to Indian Standard Time regardless of host locale.
ANCHOR_UTC_OFFSET = timezone(timedelta(hours=5, minutes=30), name="IST")

TTS_LANGUAGE = "hi-IN"
DEFAULT_TTS_VOICE = "Polly.Aditi"

# What a reject in awaiting_date does: "end" closes the call as rejected,
# "collect_branch" keeps going and asks for the city.
REJECT_IN_DATE_ENDS_CALL = "end"
REJECT_IN_DATE_COLLECTS_BRANCH = "collect_branch"
AWAITING_DATE_REJECT_POLICY = os.getenv("AWAITING_DATE_REJECT_POLICY", REJECT_IN_DATE_ENDS_CALL)

# A captured date without a branch is still actionable for the service desk.
DATE_ALONE_CONFIRMS = os.getenv("DATE_ALONE_CONFIRMS", "true").lower() != "false"

TERMINAL_CALL_STATUSES = frozenset({"completed", "busy", "failed", "no-answer", "canceled"})


@dataclass
class DialogueSettings:
    max_silence_retries: int = 3
    max_slow_speech_retries: int = 3
    max_low_confidence_retries: int = 2
    max_total_turns: int = 15
    confidence_threshold: float = 0.4
    max_unknown_streak: int = 3
    max_confusion_streak: int = 2
    max_repeat_count: int = 3
    max_branch_retries: int = 3
    max_greeting_confusion: int = 3
    max_garbage_audio: int = 3
    garbage_confidence: float = 0.15
    off_topic_firm_after: int = 2
    session_ttl_seconds: float = 30 * 60
    sweep_interval_seconds: float = 5 * 60

    @classmethod
    def from_env(cls) -> "DialogueSettings":
        settings = cls()
        if os.getenv("SESSION_TTL_SECONDS"):
            settings.session_ttl_seconds = float(os.getenv("SESSION_TTL_SECONDS"))
        if os.getenv("MAX_TOTAL_TURNS"):
            settings.max_total_turns = int(os.getenv("MAX_TOTAL_TURNS"))
        if os.getenv("CONFIDENCE_THRESHOLD"):
            settings.confidence_threshold = float(os.getenv("CONFIDENCE_THRESHOLD"))
        return settings


def validate_config() -> None:
    """Validate environment variables at startup.

    Exits the process with a clear error if any required variable is missing
    or empty, or if a policy variable holds an unknown value.  Logs warnings
    for missing optional variables.
    """
    missing = [var for var in REQUIRED_VARS if not os.getenv(var)]

    if missing:
        print(
            f"\nFATAL: Missing required environment variables:\n"
            f"  {', '.join(missing)}\n"
            f"\nSet them in .env (local) or the deployment secrets (production).\n",
            file=sys.stderr,
        )
        sys.exit(1)

    if AWAITING_DATE_REJECT_POLICY not in (REJECT_IN_DATE_ENDS_CALL, REJECT_IN_DATE_COLLECTS_BRANCH):
        print(
            f"\nFATAL: AWAITING_DATE_REJECT_POLICY must be "
            f"'{REJECT_IN_DATE_ENDS_CALL}' or '{REJECT_IN_DATE_COLLECTS_BRANCH}', "
            f"got '{AWAITING_DATE_REJECT_POLICY}'\n",
            file=sys.stderr,
        )
        sys.exit(1)

    for var in OPTIONAL_VARS:
        if not os.getenv(var):
            logger.warning("Optional env var %s is not set", var)
