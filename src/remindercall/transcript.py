from remindercall.session import TurnRecord


def to_plain_text(turns: list[TurnRecord]) -> str:
    """Convert the turn log to plain text.

    Each turn yields a "Customer:" line (skipped when the turn was silent)
    followed by an "Agent:" line.
    """
    if not turns:
        return ""

    lines = []
    for turn in turns:
        if turn.utterance:
            lines.append(f"Customer: {turn.utterance}")
        if turn.system_reply:
            lines.append(f"Agent: {turn.system_reply}")
    return "\n".join(lines)


def to_json_array(turns: list[TurnRecord]) -> list[dict]:
    """Convert the turn log to a list of plain dicts for the bookings webhook."""
    if not turns:
        return []
    return [turn.to_dict() for turn in turns]
