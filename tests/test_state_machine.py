"""Tests for the election state machine — proves one-way phase progression."""

import pytest

from ballotbox.errors import InvalidStateError, UnauthorizedError
from ballotbox.governance.access_control import AccessControl
from ballotbox.governance.state_machine import ElectionStateMachine
from ballotbox.models.election import ElectionState


ADMIN = "0xadmin"


def _make_machine(state: ElectionState = ElectionState.NOT_STARTED) -> ElectionStateMachine:
    return ElectionStateMachine(AccessControl(ADMIN), state)


class TestValidTransitions:
    def test_initial_state(self) -> None:
        assert _make_machine().state == ElectionState.NOT_STARTED

    def test_start(self) -> None:
        machine = _make_machine()
        assert machine.start_election(ADMIN) == ElectionState.STARTED

    def test_start_then_end(self) -> None:
        machine = _make_machine()
        machine.start_election(ADMIN)
        assert machine.end_election(ADMIN) == ElectionState.ENDED


class TestInvalidTransitions:
    def test_end_before_start(self) -> None:
        machine = _make_machine()
        with pytest.raises(InvalidStateError, match="Election not started"):
            machine.end_election(ADMIN)
        assert machine.state == ElectionState.NOT_STARTED

    def test_double_start(self) -> None:
        machine = _make_machine(ElectionState.STARTED)
        with pytest.raises(InvalidStateError):
            machine.start_election(ADMIN)

    def test_no_restart_after_end(self) -> None:
        machine = _make_machine(ElectionState.ENDED)
        with pytest.raises(InvalidStateError):
            machine.start_election(ADMIN)
        with pytest.raises(InvalidStateError):
            machine.end_election(ADMIN)
        assert machine.state == ElectionState.ENDED

    def test_non_admin_cannot_start(self) -> None:
        machine = _make_machine()
        with pytest.raises(UnauthorizedError):
            machine.start_election("0xvoter")
        assert machine.state == ElectionState.NOT_STARTED

    def test_non_admin_cannot_end(self) -> None:
        machine = _make_machine(ElectionState.STARTED)
        with pytest.raises(UnauthorizedError):
            machine.end_election("0xvoter")
        assert machine.state == ElectionState.STARTED


class TestGates:
    def test_require_state_passes(self) -> None:
        _make_machine(ElectionState.STARTED).require_state(ElectionState.STARTED)

    def test_require_state_reason(self) -> None:
        machine = _make_machine()
        with pytest.raises(InvalidStateError, match="custom reason"):
            machine.require_state(ElectionState.ENDED, reason="custom reason")

    def test_require_not(self) -> None:
        machine = _make_machine(ElectionState.ENDED)
        with pytest.raises(InvalidStateError):
            machine.require_not(ElectionState.ENDED)


class TestTerminalAndValidTransitions:
    def test_ended_is_terminal(self) -> None:
        assert ElectionStateMachine.is_terminal(ElectionState.ENDED)

    def test_started_not_terminal(self) -> None:
        assert not ElectionStateMachine.is_terminal(ElectionState.STARTED)

    def test_valid_transitions(self) -> None:
        assert ElectionStateMachine.valid_transitions(ElectionState.NOT_STARTED) == {
            ElectionState.STARTED
        }
        assert ElectionStateMachine.valid_transitions(ElectionState.ENDED) == set()
