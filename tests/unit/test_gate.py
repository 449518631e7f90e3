"""Tests for SuspensionGate draft editing and resolution."""

import pytest

from catalog_export.pipeline.errors import (
    InvalidOrderingError,
    InvalidTransitionError,
    SuspensionTokenError,
)
from catalog_export.pipeline.gate import SuspensionGate, validate_ordering

from tests.fakes import make_policy, make_record

IMAGES = ("a.png", "b.png", "c.png")


@pytest.fixture
def gate():
    return SuspensionGate()


@pytest.fixture
def state(gate):
    return gate.open(make_record("CAL-1", category_id="3", images=IMAGES), make_policy("3", ordered=True), 4)


class TestOpen:
    def test_open_exposes_draft_copy(self, gate, state):
        assert gate.is_open
        assert state.cursor_index == 4
        assert state.draft == list(IMAGES)
        assert state.token

    def test_only_one_open_suspension(self, gate, state):
        with pytest.raises(InvalidTransitionError):
            gate.open(make_record("X"), make_policy("3", ordered=True), 5)


class TestDraftEditing:
    def test_swap(self, gate, state):
        assert gate.swap(state.token, 0, 2) == ["c.png", "b.png", "a.png"]

    def test_move(self, gate, state):
        assert gate.move(state.token, 2, 0) == ["c.png", "a.png", "b.png"]

    def test_out_of_range_position(self, gate, state):
        with pytest.raises(InvalidOrderingError):
            gate.swap(state.token, 0, 3)
        assert gate.current.draft == list(IMAGES)

    def test_stale_token(self, gate, state):
        with pytest.raises(SuspensionTokenError):
            gate.move("not-the-token", 0, 1)


class TestResolve:
    def test_confirm_draft(self, gate, state):
        gate.swap(state.token, 0, 1)

        resolution = gate.resolve(state.token)

        assert not resolution.cancelled
        assert resolution.record.images == ("b.png", "a.png", "c.png")
        assert resolution.cursor_index == 4
        assert not gate.is_open

    def test_explicit_ordering_replaces_draft(self, gate, state):
        resolution = gate.resolve(state.token, ["c.png", "a.png", "b.png"])

        assert resolution.record.images == ("c.png", "a.png", "b.png")

    @pytest.mark.parametrize(
        "ordering",
        [
            ["a.png", "b.png"],
            ["a.png", "b.png", "c.png", "d.png"],
            ["a.png", "a.png", "b.png"],
            ["a.png", "b.png", "x.png"],
        ],
    )
    def test_rejected_ordering_keeps_gate_open(self, gate, state, ordering):
        with pytest.raises(InvalidOrderingError):
            gate.resolve(state.token, ordering)

        assert gate.is_open
        assert gate.current.token == state.token

    def test_cancel(self, gate, state):
        resolution = gate.resolve(state.token, cancel=True)

        assert resolution.cancelled
        assert resolution.record is None
        assert not gate.is_open

    def test_token_cannot_be_reused(self, gate, state):
        gate.resolve(state.token)

        with pytest.raises(SuspensionTokenError):
            gate.resolve(state.token)


def test_validate_ordering_details():
    with pytest.raises(InvalidOrderingError) as exc_info:
        validate_ordering(["a", "b"], ["a", "z"])

    assert exc_info.value.details["missing"] == ["b"]
    assert exc_info.value.details["unexpected"] == ["z"]
