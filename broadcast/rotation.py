"""
Broadcast identifier rotation.

The identifier only advances when the canonical observation time changes.
State is an immutable value: callers hand the current state in and keep the
returned one.
"""

import asyncio
from dataclasses import dataclass, replace
import logging
from typing import Optional

logger = logging.getLogger("rotation")

ATIS_IDENTIFIERS = [
    "ALPHA", "BRAVO", "CHARLIE", "DELTA", "ECHO", "FOXTROT", "GOLF", "HOTEL",
    "INDIA", "JULIET", "KILO", "LIMA", "MIKE", "NOVEMBER", "OSCAR", "PAPA",
    "QUEBEC", "ROMEO", "SIERRA", "TANGO", "UNIFORM", "VICTOR", "WHISKEY",
    "XRAY", "YANKEE", "ZULU",
]

# Stands in for an absent observation time so that "no time" is still a
# value that can be compared with the last broadcast.
UNKNOWN_OBSERVATION_TIME = "UNKNOWN"


@dataclass(frozen=True)
class RotationState:
    # Starts on the last code so the first advance yields ALPHA.
    current_index: int = len(ATIS_IDENTIFIERS) - 1
    last_broadcast_observation_time: Optional[str] = None

    @property
    def identifier(self) -> str:
        return ATIS_IDENTIFIERS[self.current_index]


def advance_rotation(state: RotationState, observation_time: Optional[str]) -> RotationState:
    """
    Move to the next identifier if `observation_time` differs from the last
    broadcast one; otherwise return `state` unchanged.
    """
    key = observation_time or UNKNOWN_OBSERVATION_TIME
    if key == state.last_broadcast_observation_time:
        return state

    next_index = (state.current_index + 1) % len(ATIS_IDENTIFIERS)
    logger.info(
        "New observation %s (last %s): information %s -> %s",
        key, state.last_broadcast_observation_time,
        state.identifier, ATIS_IDENTIFIERS[next_index],
    )
    return replace(state, current_index=next_index, last_broadcast_observation_time=key)


class RotationStore:
    """
    Holds the rotation state for one running process.

    The lock serializes read-advance-write across concurrent report
    requests. Nothing survives a restart: a new process starts at ALPHA.
    """

    def __init__(self, state: Optional[RotationState] = None):
        self._state = state or RotationState()
        self.lock = asyncio.Lock()

    @property
    def state(self) -> RotationState:
        return self._state

    def save(self, state: RotationState) -> None:
        self._state = state
