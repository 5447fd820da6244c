"""Rebuild a thread's full state from its reply list.

Used by both the startup backfill and the live rebuild-on-miss path, so a
thread reconstructed either way ends up with the same name, participants
and status.
"""

from typing import Any, Dict, Optional, Sequence

from .models import ThreadSnapshot
from .parser import UNTITLED_THREAD_NAME, ThreadParser


def message_text(message: Dict[str, Any]) -> str:
    """Text of a Slack message payload, empty when absent."""
    return message.get("text") or ""


def build_snapshot(
    messages: Sequence[Dict[str, Any]],
    parser: ThreadParser,
    created_at: float,
) -> Optional[ThreadSnapshot]:
    """Reconstruct a thread from ``conversations.replies`` messages.

    ``messages`` is ordered oldest to newest with the root first, as Slack
    returns it. Returns None for an empty list.
    """
    if not messages:
        return None

    participants = frozenset(msg["user"] for msg in messages if msg.get("user"))
    texts = [message_text(msg) for msg in messages]

    custom_name = parser.latest_rename(texts)
    if custom_name:
        name = custom_name
    else:
        name = parser.derive_default_name(texts[0]) or UNTITLED_THREAD_NAME

    return ThreadSnapshot(
        name=name,
        is_manually_renamed=custom_name is not None,
        participants=participants,
        last_message_text=texts[-1],
        created_at=created_at,
    )


def ts_to_seconds(ts: Optional[str], default: float = 0.0) -> float:
    """Convert a Slack ``ts`` like ``"1712345678.000200"`` to seconds."""
    try:
        return float(ts) if ts else default
    except ValueError:
        return default
