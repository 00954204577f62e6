# tests/test_state_machine.py
import pytest

from core.constants import AppointmentStatus as S
from core.exceptions import InvalidTransitionError
from services import state_machine


def reachable(start):
    seen, stack = {start}, [start]
    while stack:
        for nxt in state_machine.available_transitions(stack.pop()):
            if nxt not in seen:
                seen.add(nxt)
                stack.append(nxt)
    return seen


def test_every_status_has_a_transition_entry():
    assert set(state_machine.TRANSITIONS) == set(S)


def test_every_status_is_reachable_from_initial():
    assert reachable(state_machine.INITIAL_STATUS) == set(S)


@pytest.mark.parametrize('status', [S.COMPLETED, S.CANCELLED, S.NO_SHOW])
def test_terminal_statuses_have_no_exits(status):
    assert state_machine.is_terminal(status)
    assert state_machine.available_transitions(status) == frozenset()


def test_non_terminal_statuses_can_reach_a_terminal_one():
    for status in set(S) - state_machine.TERMINAL_STATUSES:
        assert reachable(status) & state_machine.TERMINAL_STATUSES


@pytest.mark.parametrize('from_status,to_status', [
    (S.PENDING, S.CONFIRMED),
    (S.CONFIRMED, S.IN_CONSULTATION),
    (S.IN_CONSULTATION, S.TRANSFER_PENDING),
    (S.TRANSFER_PENDING, S.PAID),
    (S.PAID, S.COMPLETED),
    (S.REQUIRES_RESCHEDULE, S.PENDING),
])
def test_legal_transitions(from_status, to_status):
    assert state_machine.is_valid_transition(from_status, to_status)
    state_machine.assert_transition(from_status, to_status)


@pytest.mark.parametrize('from_status,to_status', [
    (S.PENDING, S.COMPLETED),
    (S.PENDING, S.PENDING),
    (S.IN_CONSULTATION, S.CANCELLED),
    (S.PAID, S.CANCELLED),
    (S.COMPLETED, S.PENDING),
])
def test_illegal_transitions(from_status, to_status):
    assert not state_machine.is_valid_transition(from_status, to_status)
    with pytest.raises(InvalidTransitionError) as exc:
        state_machine.assert_transition(from_status, to_status)
    assert exc.value.from_status == from_status
    assert exc.value.to_status == to_status


def test_unknown_statuses_are_rejected_not_raised():
    assert state_machine.available_transitions('ARCHIVED') == frozenset()
    assert not state_machine.is_valid_transition('PENDING', 'ARCHIVED')
    assert not state_machine.is_terminal(None)


def test_describe_payload():
    info = state_machine.describe('CONFIRMED')
    assert info['label'] == 'Confirmada'
    assert info['color_class'] == 'bg-blue-100 text-blue-700'
    assert info['is_terminal'] is False
    assert info['available_transitions'] == ['CANCELLED', 'IN_CONSULTATION', 'NO_SHOW', 'REQUIRES_RESCHEDULE']


def test_unknown_status_presentation_falls_back():
    assert state_machine.label('ARCHIVED') == 'ARCHIVED'
    assert state_machine.color_class('ARCHIVED') == state_machine.DEFAULT_COLOR_CLASS
