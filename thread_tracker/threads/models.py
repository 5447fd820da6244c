"""Thread records and reconstruction snapshots."""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, NamedTuple, Set


class ThreadStatus(str, Enum):
    """Open/closed state derived from a thread's latest message."""

    OPEN = "open"
    CLOSED = "closed"


class ThreadKey(NamedTuple):
    """Composite identity of a thread: channel plus root message timestamp."""

    channel: str
    root_ts: str


@dataclass
class Thread:
    """A tracked Slack thread.

    ``status`` lives next to ``last_message_text`` but is only ever written by
    ThreadRegistry, which recomputes it from the text on every upsert.
    """

    channel: str
    root_ts: str
    name: str
    is_manually_renamed: bool
    participants: Set[str]
    last_message_text: str
    status: ThreadStatus
    created_at: float

    @property
    def is_open(self) -> bool:
        return self.status is ThreadStatus.OPEN


@dataclass(frozen=True)
class ThreadSnapshot:
    """Complete thread state rebuilt from one fetch of its replies."""

    name: str
    is_manually_renamed: bool
    participants: FrozenSet[str] = field(default_factory=frozenset)
    last_message_text: str = ""
    created_at: float = 0.0
