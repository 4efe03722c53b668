import asyncio
from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from broadcast import ATIS_IDENTIFIERS, RotationState, RotationStore, advance_rotation, select_runway


def test_first_report_is_alpha():
    state = advance_rotation(RotationState(), "12:00")
    assert state.identifier == "ALPHA"
    assert state.last_broadcast_observation_time == "12:00"


def test_first_report_is_alpha_even_without_time():
    state = advance_rotation(RotationState(), None)
    assert state.identifier == "ALPHA"
    assert advance_rotation(state, None) is state


def test_same_observation_time_keeps_identifier():
    state = advance_rotation(RotationState(), "12:00")
    assert advance_rotation(state, "12:00") is state


def test_new_observation_time_advances():
    state = advance_rotation(RotationState(), "12:00")
    state = advance_rotation(state, "12:30")
    assert state.identifier == "BRAVO"
    state = advance_rotation(state, None)
    assert state.identifier == "CHARLIE"
    assert state.last_broadcast_observation_time == "UNKNOWN"


def test_rotation_wraps_after_zulu():
    state = RotationState(current_index=ATIS_IDENTIFIERS.index("YANKEE"), last_broadcast_observation_time="10:00")
    state = advance_rotation(state, "10:30")
    assert state.identifier == "ZULU"
    state = advance_rotation(state, "11:00")
    assert state.identifier == "ALPHA"
    assert state.current_index == 0


def test_rotation_state_is_immutable():
    state = RotationState()
    advance_rotation(state, "12:00")
    assert state.identifier == "ZULU"
    assert state.last_broadcast_observation_time is None


def test_identifier_table():
    assert len(ATIS_IDENTIFIERS) == 26
    assert ATIS_IDENTIFIERS[0] == "ALPHA"
    assert ATIS_IDENTIFIERS[-1] == "ZULU"


def test_rotation_store_saves_state():
    store = RotationStore()

    async def run():
        async with store.lock:
            store.save(advance_rotation(store.state, "09:00"))

    asyncio.run(run())
    assert store.state.identifier == "ALPHA"


@pytest.mark.parametrize(
    "direction,runway",
    [
        (10, "01"),
        (360, "01"),
        (350, "01"),
        (190, "19"),
        (200, "19"),
        (100, "01"),
        (280, "01"),
        (281, "01"),
        (279, "19"),
        (99, "01"),
        (101, "19"),
        (None, "01"),
    ],
)
def test_select_runway(direction, runway):
    assert select_runway(direction) == runway
