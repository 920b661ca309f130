"""
Shared message and event types for the agent layer.
"""

from dataclasses import dataclass
from typing import Callable, Literal, Optional

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Message:
    """A single chat message sent to a provider."""

    role: Role
    content: str


@dataclass(frozen=True)
class StreamEvent:
    """
    Transient progress unit emitted while an agent or graph is running.

    Never persisted. `done=True` marks the end of one call's stream.
    """

    content: Optional[str] = None
    done: bool = False


# Low-level progress callback: fire-and-forget, synchronous, unbuffered
StreamCallback = Callable[[StreamEvent], None]
